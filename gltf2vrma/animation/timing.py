"""
Animation timing analysis.

The duration of a glTF animation is not stored explicitly; it is the largest
keyframe time across all samplers. FBX2glTF records that value as the ``max``
of each SCALAR time accessor, so no buffer data has to be read.
"""

import copy
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from numbers import Real
from typing import Any, Dict, Optional

from ..common import DEF_FRAMERATE, validate_framerate

logger = logging.getLogger(__name__)

METADATA_KEY = "animationMetadata"


@dataclass(frozen=True)
class AnimationMetadata:
    """Duration and frame information computed from the keyframe data."""
    max_duration: float
    framerate: int
    frame_count: int
    computed_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "maxDuration": self.max_duration,
            "framerate": self.framerate,
            "frameCount": self.frame_count,
            "calculatedAt": self.computed_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnimationMetadata":
        return cls(
            max_duration=data.get("maxDuration", 0.0),
            framerate=data.get("framerate", DEF_FRAMERATE),
            frame_count=data.get("frameCount", 0),
            computed_at=data.get("calculatedAt"),
        )


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _sampler_end_time(sampler: Any, accessors: list) -> Optional[float]:
    if not isinstance(sampler, dict):
        return None

    input_idx = sampler.get("input")
    if isinstance(input_idx, bool) or not isinstance(input_idx, int):
        return None
    if not 0 <= input_idx < len(accessors):
        return None

    accessor = accessors[input_idx]
    if not isinstance(accessor, dict) or accessor.get("type") != "SCALAR":
        return None

    max_values = accessor.get("max")
    if not isinstance(max_values, (list, tuple)) or not max_values:
        return None

    end_time = max_values[0]
    if isinstance(end_time, bool) or not isinstance(end_time, Real):
        return None
    try:
        end_time = float(end_time)
    except OverflowError:
        return None
    return end_time if math.isfinite(end_time) else None


def compute_max_duration(document: Dict[str, Any]) -> float:
    """
    Largest sampler end time over all animations of the document.

    Returns:
        Duration in seconds, 0.0 if there is no qualifying time accessor
    """
    animations = _as_list(document.get("animations"))
    accessors = _as_list(document.get("accessors"))
    max_duration = 0.0

    for anim_idx, animation in enumerate(animations):
        if not isinstance(animation, dict):
            continue
        logger.info(f"Processing animation {anim_idx}: {animation.get('name')}")

        for sampler_idx, sampler in enumerate(_as_list(animation.get("samplers"))):
            end_time = _sampler_end_time(sampler, accessors)
            if end_time is None:
                continue
            max_duration = max(max_duration, end_time)
            count = accessors[sampler["input"]].get("count")
            logger.debug(f"  Sampler {sampler_idx}: {count} frames, max time: {end_time}s")

    return max_duration


def analyze_animation_timing(document: Dict[str, Any], framerate: int) -> Dict[str, Any]:
    """
    Attach computed timing metadata to a copy of the document.

    Args:
        document: Parsed glTF document
        framerate: Target frames per second (positive int)

    Returns:
        A new document whose ``extras.animationMetadata`` holds
        maxDuration, framerate, frameCount and calculatedAt
    """
    framerate = validate_framerate(framerate)
    logger.info("Enhancing animation timing data...")

    max_duration = compute_max_duration(document)
    if not document.get("animations"):
        logger.info("No animations found")
    logger.info(f"Calculated max animation duration: {max_duration} seconds")

    frames = max_duration * framerate
    if not math.isfinite(frames):
        logger.warning(f"Duration of {max_duration} seconds is out of range, using 0")
        max_duration, frames = 0.0, 0

    metadata = AnimationMetadata(
        max_duration=max_duration,
        framerate=framerate,
        frame_count=math.ceil(frames),
        computed_at=datetime.now(timezone.utc).isoformat(),
    )

    result = copy.deepcopy(document)
    extras = result.get("extras")
    if not isinstance(extras, dict):
        extras = {}
    extras[METADATA_KEY] = metadata.to_dict()
    result["extras"] = extras
    return result


def read_animation_metadata(document: Dict[str, Any]) -> Optional[AnimationMetadata]:
    """Timing metadata previously attached by analyze_animation_timing, if any."""
    extras = document.get("extras")
    if not isinstance(extras, dict) or not isinstance(extras.get(METADATA_KEY), dict):
        return None
    return AnimationMetadata.from_dict(extras[METADATA_KEY])
