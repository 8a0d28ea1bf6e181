"""
Removal of animation channels that VRMA does not allow on humanoid bones.

VRMA humanoid bones are rotation only, with the exception of ``hips`` which
may also carry translation. Scale is never allowed. Channels that target
nodes outside the humanoid bone map are kept as they are.
"""

import copy
import logging
from typing import Any, Dict, List, Optional, Tuple

from ..exceptions import AnimationError
from ..retargeter.bone_map import HIPS, invert_bone_map

logger = logging.getLogger(__name__)

SCALE = "scale"
TRANSLATION = "translation"


def _channel_target(channel: Dict[str, Any]) -> Tuple[Any, Any]:
    target = channel.get("target")
    if not isinstance(target, dict):
        return None, None
    return target.get("node"), target.get("path")


def is_channel_allowed(channel: Dict[str, Any], node_to_bone: Dict[int, str]) -> bool:
    node, path = _channel_target(channel)
    try:
        bone = node_to_bone.get(node)
    except TypeError:
        # Unhashable node reference, cannot be a humanoid bone
        return True

    if bone is None:
        return True
    if path == SCALE:
        logger.debug(f"  Removed scale channel for bone: {bone}")
        return False
    if path == TRANSLATION and bone != HIPS:
        logger.debug(f"  Removed translation channel for non-hips bone: {bone}")
        return False
    return True


def filter_channels(
    channels: Optional[List[Dict[str, Any]]],
    node_to_bone: Dict[int, str]
) -> Tuple[List[Dict[str, Any]], int]:
    """
    Drop the channels that are not allowed on humanoid bones.

    Returns:
        Tuple of (kept channels, number of removed channels)

    Raises:
        AnimationError: If ``channels`` is not a list of objects
    """
    channels = channels or []
    if not isinstance(channels, list):
        raise AnimationError(f"Channels must be a list, got {type(channels).__name__}")
    for index, channel in enumerate(channels):
        if not isinstance(channel, dict):
            raise AnimationError(f"Channel {index} is not an object: {channel!r}")

    kept = [ch for ch in channels if is_channel_allowed(ch, node_to_bone)]
    return kept, len(channels) - len(kept)


def compact_samplers(
    channels: List[Dict[str, Any]],
    samplers: Optional[List[Dict[str, Any]]]
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Keep only the samplers referenced by ``channels`` and renumber them.

    Samplers keep their relative order; the lowest referenced index becomes 0.

    Returns:
        Tuple of (channels with new sampler indices, compacted samplers)

    Raises:
        AnimationError: If a channel references a sampler that does not exist
    """
    samplers = samplers or []
    if not isinstance(samplers, list):
        raise AnimationError(f"Samplers must be a list, got {type(samplers).__name__}")

    used = set()
    for channel in channels:
        index = channel.get("sampler")
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(samplers):
            raise AnimationError(
                f"Channel references sampler {index!r} but the animation has "
                f"{len(samplers)} sampler(s)"
            )
        used.add(index)

    old_to_new = {}
    new_samplers = []
    for old_index in sorted(used):
        old_to_new[old_index] = len(new_samplers)
        new_samplers.append(copy.deepcopy(samplers[old_index]))

    new_channels = []
    for channel in channels:
        new_channel = copy.deepcopy(channel)
        new_channel["sampler"] = old_to_new[channel["sampler"]]
        new_channels.append(new_channel)

    return new_channels, new_samplers


def filter_animations(
    animations: Optional[List[Dict[str, Any]]],
    human_bones: Dict[str, Dict[str, int]]
) -> List[Dict[str, Any]]:
    """
    Filter the channels of every animation against the humanoid bone map.

    Args:
        animations: glTF animations
        human_bones: VRM bone name to ``{"node": index}``

    Returns:
        New animations with only name, channels and samplers; unnamed
        animations are called ``VRMAnimation<index>``. Entries that are not
        objects are skipped.

    Raises:
        AnimationError: If an animation has malformed channels or samplers
    """
    if not animations:
        return []
    if not isinstance(animations, list):
        logger.warning(f"Ignoring animations: expected a list, got {type(animations).__name__}")
        return []

    node_to_bone = invert_bone_map(human_bones)
    result = []

    for index, animation in enumerate(animations):
        if not isinstance(animation, dict):
            logger.warning(f"Skipping animation {index}: not an object")
            continue

        name = animation.get("name") or f"VRMAnimation{index}"
        try:
            channels, removed = filter_channels(animation.get("channels"), node_to_bone)
            channels, samplers = compact_samplers(channels, animation.get("samplers"))
        except AnimationError as e:
            raise AnimationError(f"Animation \"{name}\": {e}")

        if removed > 0:
            logger.info(f"  Animation \"{name}\": removed {removed} invalid channel(s)")

        result.append({
            "name": name,
            "channels": channels,
            "samplers": samplers,
        })

    return result
