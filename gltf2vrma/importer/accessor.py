"""
glTF accessor reader for extracting data from embedded buffers.
"""

import numpy as np
from typing import Any, Dict
import logging

from .buffers import decode_data_uri
from ..exceptions import DocumentError

logger = logging.getLogger(__name__)


class AccessorReader:
    """Reads data from glTF accessors of an embedded document."""

    # Component type to numpy dtype mapping
    COMPONENT_TYPE_MAP = {
        5120: np.int8,    # BYTE
        5121: np.uint8,   # UNSIGNED_BYTE
        5122: np.int16,   # SHORT
        5123: np.uint16,  # UNSIGNED_SHORT
        5125: np.uint32,  # UNSIGNED_INT
        5126: np.float32, # FLOAT
    }

    # Type to component count mapping
    TYPE_SIZE_MAP = {
        'SCALAR': 1,
        'VEC2': 2,
        'VEC3': 3,
        'VEC4': 4,
        'MAT2': 4,
        'MAT3': 9,
        'MAT4': 16,
    }

    def __init__(self, document: Dict[str, Any], binary_chunk: bytes = None):
        """
        Initialize accessor reader.

        Args:
            document: glTF JSON document
            binary_chunk: BIN chunk of a GLB container, used for the buffer
                that has no URI
        """
        self.document = document
        self.binary_chunk = binary_chunk
        self._buffer_cache = {}

    def read_accessor(self, accessor_idx: int) -> np.ndarray:
        """
        Read data from accessor.

        Args:
            accessor_idx: Index of accessor

        Returns:
            Numpy array with accessor data

        Raises:
            DocumentError: If accessor cannot be read
        """
        accessors = self.document.get('accessors') or []
        if accessor_idx is None or accessor_idx < 0:
            raise DocumentError(f"Invalid accessor index: {accessor_idx}")

        if accessor_idx >= len(accessors):
            raise DocumentError(f"Accessor index {accessor_idx} out of range")

        accessor = accessors[accessor_idx]

        dtype = self.COMPONENT_TYPE_MAP.get(accessor.get('componentType'))
        if dtype is None:
            raise DocumentError(f"Unknown component type: {accessor.get('componentType')}")

        elements_per_item = self.TYPE_SIZE_MAP.get(accessor.get('type'))
        if elements_per_item is None:
            raise DocumentError(f"Unknown accessor type: {accessor.get('type')}")

        count = accessor.get('count', 0)

        if accessor.get('bufferView') is None:
            # Sparse accessor or zero-initialized
            return self._create_zero_data(count, dtype, elements_per_item)

        buffer_view = self.document['bufferViews'][accessor['bufferView']]
        buffer_data = self._get_buffer_data(buffer_view.get('buffer', 0))

        offset = buffer_view.get('byteOffset', 0) + accessor.get('byteOffset', 0)
        item_size = elements_per_item * np.dtype(dtype).itemsize
        stride = buffer_view.get('byteStride') or item_size

        try:
            if stride == item_size:
                data = np.frombuffer(buffer_data, dtype=dtype,
                                     count=count * elements_per_item, offset=offset)
            else:
                # Interleaved buffer view: gather each element separately
                data = np.concatenate([
                    np.frombuffer(buffer_data, dtype=dtype, count=elements_per_item,
                                  offset=offset + i * stride)
                    for i in range(count)
                ]) if count else np.zeros(0, dtype=dtype)

            if elements_per_item > 1:
                data = data.reshape((count, elements_per_item))

            logger.debug(f"Read accessor {accessor_idx}: shape={data.shape}, dtype={data.dtype}")
            return data

        except ValueError as e:
            raise DocumentError(f"Failed to read accessor {accessor_idx}: {e}")

    def _get_buffer_data(self, buffer_idx: int) -> bytes:
        """Get raw buffer data."""
        if buffer_idx in self._buffer_cache:
            return self._buffer_cache[buffer_idx]

        buffers = self.document.get('buffers') or []
        if buffer_idx >= len(buffers):
            raise DocumentError(f"Buffer index {buffer_idx} out of range")

        uri = buffers[buffer_idx].get('uri')
        if uri is None:
            # Binary chunk (GLB format)
            if self.binary_chunk is None:
                raise DocumentError("Binary buffer expected but not found")
            data = self.binary_chunk
        else:
            data = decode_data_uri(uri)
            if data is None:
                raise DocumentError(f"Buffer {buffer_idx} is not embedded")

        self._buffer_cache[buffer_idx] = data
        return data

    @staticmethod
    def _create_zero_data(count: int, dtype, elements_per_item: int) -> np.ndarray:
        """Create zero-initialized data for accessor."""
        if elements_per_item > 1:
            shape = (count, elements_per_item)
        else:
            shape = (count,)

        return np.zeros(shape, dtype=dtype)
