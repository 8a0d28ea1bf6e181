"""
Animation timing analysis and VRMA channel filtering.
"""

from .timing import (
    AnimationMetadata,
    analyze_animation_timing,
    compute_max_duration,
    read_animation_metadata,
)
from .channel_filter import compact_samplers, filter_animations, filter_channels

__all__ = [
    'AnimationMetadata',
    'analyze_animation_timing',
    'compute_max_duration',
    'read_animation_metadata',
    'compact_samplers',
    'filter_animations',
    'filter_channels',
]
