"""
Binary glTF (GLB) container writer and reader.

Layout::

    header      magic | version | total length       (3 x uint32 LE)
    JSON chunk  length | "JSON" | JSON padded with 0x20
    BIN chunk   length | "BIN\\0" | payload padded with 0x00   (optional)
"""

import copy
import json
import logging
import math
import struct
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..common import (
    CHUNK_TYPE_BIN,
    CHUNK_TYPE_JSON,
    GLB_CHUNK_HEADER_SIZE,
    GLB_HEADER_SIZE,
    GLB_MAGIC,
    GLB_VERSION,
)
from ..exceptions import ContainerError
from ..importer.buffers import decode_data_uri

logger = logging.getLogger(__name__)

GLB_HEADER = struct.Struct("<3I")
CHUNK_HEADER = struct.Struct("<2I")


@dataclass
class GLBContainer:
    """Contents of a parsed GLB file."""
    version: int
    json: Dict[str, Any]
    binary: Optional[bytes] = None


def padded_length(length: int) -> int:
    return (length + 3) // 4 * 4


def _pad(data: bytes, fill: bytes) -> bytes:
    return data + fill * (padded_length(len(data)) - len(data))


def _finite_json(value: Any) -> Any:
    """Copy of ``value`` with NaN and infinite floats replaced by None."""
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {key: _finite_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_finite_json(item) for item in value)
    return value


def encode_json_chunk(document: Dict[str, Any]) -> bytes:
    """
    Compact UTF-8 JSON for the JSON chunk, without padding.

    JSON has no NaN or Infinity, so non-finite numbers are written as null.

    Raises:
        ContainerError: If the document holds values JSON cannot represent
    """
    json_data = _finite_json(document)
    if json_data != document:
        logger.warning("Non-finite numbers in the document were written as null")

    try:
        text = json.dumps(json_data, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise ContainerError(f"Document cannot be encoded as JSON: {e}")
    return text.encode("utf-8")


def extract_binary_payload(document: Dict[str, Any]) -> Tuple[Dict[str, Any], bytes]:
    """
    Move the first buffer's data URI payload out of the JSON.

    Returns:
        Tuple of (copy of the document without ``buffers[0].uri``, payload).
        The payload is empty when the first buffer has no base64 data URI.
    """
    json_data = copy.deepcopy(document)
    buffers = json_data.get("buffers")
    if not isinstance(buffers, list) or not buffers or not isinstance(buffers[0], dict):
        return json_data, b""

    payload = decode_data_uri(buffers[0].get("uri"))
    if payload is None:
        return json_data, b""

    # GLB buffers have no URI
    del buffers[0]["uri"]
    return json_data, payload


def pack_glb(document: Dict[str, Any]) -> bytes:
    """
    Serialize a glTF document into a GLB container.

    The first buffer's base64 data URI, if present, becomes the BIN chunk.

    Args:
        document: glTF document

    Returns:
        GLB bytes

    Raises:
        ContainerError: If the document cannot be encoded or the written
            size differs from the computed size
    """
    json_data, payload = extract_binary_payload(document)

    json_chunk = _pad(encode_json_chunk(json_data), b" ")

    has_bin = len(payload) > 0
    bin_chunk = _pad(payload, b"\x00") if has_bin else b""

    total_length = (
        GLB_HEADER_SIZE
        + GLB_CHUNK_HEADER_SIZE + len(json_chunk)
        + (GLB_CHUNK_HEADER_SIZE + len(bin_chunk) if has_bin else 0)
    )

    parts = [
        GLB_HEADER.pack(GLB_MAGIC, GLB_VERSION, total_length),
        CHUNK_HEADER.pack(len(json_chunk), CHUNK_TYPE_JSON),
        json_chunk,
    ]
    if has_bin:
        parts.append(CHUNK_HEADER.pack(len(bin_chunk), CHUNK_TYPE_BIN))
        parts.append(bin_chunk)

    glb = b"".join(parts)
    if len(glb) != total_length:
        raise ContainerError(
            f"GLB size mismatch: header declares {total_length} bytes, wrote {len(glb)}"
        )

    logger.info(f"Packed GLB: {total_length} bytes (JSON: {len(json_chunk)}, BIN: {len(bin_chunk)})")
    return glb


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def _read_chunk(data: bytes, offset: int) -> Tuple[int, bytes, int]:
    if offset + GLB_CHUNK_HEADER_SIZE > len(data):
        raise ContainerError(f"Truncated chunk header at offset {offset}")

    length, chunk_type = CHUNK_HEADER.unpack_from(data, offset)
    if length % 4:
        raise ContainerError(f"Chunk at offset {offset} is not 4-byte aligned ({length} bytes)")

    start = offset + GLB_CHUNK_HEADER_SIZE
    end = start + length
    if end > len(data):
        raise ContainerError(f"Chunk at offset {offset} runs past the end of the file")
    return chunk_type, data[start:end], end


def read_glb(data: bytes) -> GLBContainer:
    """
    Parse a GLB container.

    Args:
        data: GLB bytes

    Returns:
        GLBContainer with the decoded JSON and the (padded) BIN chunk

    Raises:
        ContainerError: If the header, the chunk layout or the JSON is invalid
    """
    if len(data) < GLB_HEADER_SIZE:
        raise ContainerError(f"File too short for a GLB header ({len(data)} bytes)")

    magic, version, total_length = GLB_HEADER.unpack_from(data)
    if magic != GLB_MAGIC:
        raise ContainerError(f"Bad GLB magic: 0x{magic:08X}")
    if total_length != len(data):
        raise ContainerError(
            f"GLB header declares {total_length} bytes but the data has {len(data)}"
        )

    chunk_type, json_chunk, offset = _read_chunk(data, GLB_HEADER_SIZE)
    if chunk_type != CHUNK_TYPE_JSON:
        raise ContainerError(f"First chunk must be JSON, got 0x{chunk_type:08X}")

    try:
        json_data = json.loads(json_chunk.decode("utf-8").rstrip(" "), parse_constant=_reject_constant)
    except ValueError as e:
        raise ContainerError(f"Invalid JSON chunk: {e}")

    binary = None
    if offset < len(data):
        chunk_type, binary, offset = _read_chunk(data, offset)
        if chunk_type != CHUNK_TYPE_BIN:
            raise ContainerError(f"Second chunk must be BIN, got 0x{chunk_type:08X}")
    if offset != len(data):
        raise ContainerError(f"Unexpected data after chunks at offset {offset}")

    return GLBContainer(version=version, json=json_data, binary=binary)
