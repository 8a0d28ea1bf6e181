"""
Humanoid bone retargeting from Mixamo names to VRM 1.0 bones.
"""

from .bone_map import (
    HIPS,
    MIXAMO_TO_VRM_BONES,
    REQUIRED_VRM_BONES,
    find_missing_required_bones,
    invert_bone_map,
    retarget,
)

__all__ = [
    'HIPS',
    'MIXAMO_TO_VRM_BONES',
    'REQUIRED_VRM_BONES',
    'find_missing_required_bones',
    'invert_bone_map',
    'retarget',
]
