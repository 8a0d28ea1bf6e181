"""
Construction of the VRMA JSON document.
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from ..animation.timing import AnimationMetadata
from ..common import DEF_DURATION, DEF_FRAMERATE, VRMA_EXTENSION_NAME, VRMA_SPEC_VERSION
from ..exceptions import DocumentError

logger = logging.getLogger(__name__)

# Node properties that have no meaning in a VRMA file: there is no geometry,
# and the rest pose is defined by translation and rotation only.
STRIPPED_NODE_KEYS = ("mesh", "skin", "scale")

PASSTHROUGH_KEYS = ("asset", "scene", "scenes")
BUFFER_KEYS = ("accessors", "bufferViews", "buffers")


def strip_node(node: Dict[str, Any]) -> Dict[str, Any]:
    return {key: copy.deepcopy(value) for key, value in node.items()
            if key not in STRIPPED_NODE_KEYS}


def strip_nodes(nodes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Copy the scene graph without geometry.

    Raises:
        DocumentError: If ``nodes`` is not a list of objects
    """
    if not isinstance(nodes, list):
        raise DocumentError(f"nodes must be a list, got {type(nodes).__name__}")

    stripped = []
    for index, node in enumerate(nodes):
        if not isinstance(node, dict):
            raise DocumentError(f"Node {index} is not an object: {node!r}")
        stripped.append(strip_node(node))
    return stripped


def build_vrma_document(
    document: Dict[str, Any],
    human_bones: Dict[str, Dict[str, int]],
    animations: List[Dict[str, Any]],
    metadata: Optional[AnimationMetadata] = None
) -> Dict[str, Any]:
    """
    Assemble the VRMA glTF document.

    Args:
        document: Source glTF document (buffers embedded)
        human_bones: VRM bone name to ``{"node": index}``
        animations: Filtered animations
        metadata: Timing computed for the source; defaults are used if None

    Returns:
        New document holding the source scene graph without geometry, the
        filtered animations and the VRMC_vrm_animation extension

    Raises:
        DocumentError: If the source nodes are malformed
    """
    logger.info("Converting to VRMA with enhanced timing...")

    if metadata is not None:
        duration = metadata.max_duration
        framerate = metadata.framerate
        frame_count = metadata.frame_count
        logger.info(f"Using calculated duration: {duration} seconds")
    else:
        duration = DEF_DURATION
        framerate = DEF_FRAMERATE
        frame_count = 0

    vrma = {}
    for key in PASSTHROUGH_KEYS:
        if document.get(key) is not None:
            vrma[key] = copy.deepcopy(document[key])

    if document.get("nodes") is not None:
        vrma["nodes"] = strip_nodes(document["nodes"])

    vrma["animations"] = copy.deepcopy(animations)

    for key in BUFFER_KEYS:
        if document.get(key) is not None:
            vrma[key] = copy.deepcopy(document[key])

    vrma["extensionsUsed"] = [VRMA_EXTENSION_NAME]
    vrma["extensions"] = {
        VRMA_EXTENSION_NAME: {
            "specVersion": VRMA_SPEC_VERSION,
            "humanoid": {
                "humanBones": copy.deepcopy(human_bones),
            },
        },
    }
    vrma["extras"] = {
        "duration": duration,
        "frameCount": frame_count,
        "framerate": framerate,
    }

    logger.info(f"Generated VRMA with {len(human_bones)} bones and {duration}s duration")
    return vrma
