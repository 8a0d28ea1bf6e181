"""
Loading glTF documents and inlining their binary buffers.
"""

import base64
import binascii
import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pygltflib import DATA_URI_HEADER, GLTF2

from ..exceptions import DocumentError

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = "data:"


def load_document(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a glTF JSON document.

    Args:
        path: Path to the .gltf file

    Returns:
        Parsed document

    Raises:
        DocumentError: If the file is missing, is not JSON, or is not an object
    """
    path = Path(path)
    if not path.exists():
        raise DocumentError(f"File not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, ValueError) as e:
        raise DocumentError(f"Failed to load glTF document {path}: {e}")

    if not isinstance(document, dict):
        raise DocumentError(f"glTF document {path} is not a JSON object")

    logger.debug(f"Loaded glTF document: {path}")
    return document


def is_data_uri(uri: Optional[str]) -> bool:
    return isinstance(uri, str) and uri.startswith(DATA_URI_PREFIX)


def decode_data_uri(uri: Optional[str]) -> Optional[bytes]:
    """
    Decode a base64 data URI.

    Any media type is accepted; the payload is decoded by pygltflib.

    Returns:
        The decoded bytes, or None if ``uri`` is not a base64 data URI
    """
    if not is_data_uri(uri):
        return None

    header, sep, payload = uri.partition(",")
    if not sep or not header.endswith(";base64"):
        return None

    try:
        # pygltflib only recognises the octet-stream header
        return GLTF2.decode_data_uri(DATA_URI_HEADER + payload)
    except (binascii.Error, ValueError):
        logger.warning("Buffer data URI is not valid base64")
        return None


def encode_data_uri(data: bytes) -> str:
    return DATA_URI_HEADER + base64.b64encode(data).decode("ascii")


def embed_buffers(document: Dict[str, Any], base_dir: Union[str, Path]) -> Dict[str, Any]:
    """
    Replace external buffer references with inline base64 data URIs.

    Buffers that already carry a data URI are left alone. A referenced file
    that does not exist is reported and left as an external reference.

    Args:
        document: Parsed glTF document
        base_dir: Directory the buffer URIs are relative to

    Returns:
        A new document with embedded buffers
    """
    result = copy.deepcopy(document)
    buffers = result.get("buffers") or []
    if not buffers:
        logger.info("No buffers to embed")
        return result

    base_dir = Path(base_dir)
    for buffer in buffers:
        uri = buffer.get("uri") if isinstance(buffer, dict) else None
        if not isinstance(uri, str) or not uri or is_data_uri(uri):
            continue

        buffer_path = base_dir / uri
        if not buffer_path.exists():
            logger.warning(f"Buffer file not found: {uri}")
            continue

        data = buffer_path.read_bytes()
        buffer["uri"] = encode_data_uri(data)
        logger.info(f"Embedded buffer: {uri} ({len(data)} bytes)")

    return result
