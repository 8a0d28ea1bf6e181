"""
Mixamo to VRM 1.0 humanoid bone mapping.
"""

import logging
from types import MappingProxyType
from typing import Any, Dict, List, Mapping

logger = logging.getLogger(__name__)

HIPS = "hips"

MIXAMO_TO_VRM_BONES: Mapping[str, str] = MappingProxyType({
    "mixamorig:Hips": "hips",
    "mixamorig:Spine": "spine",
    "mixamorig:Spine1": "chest",
    "mixamorig:Spine2": "upperChest",
    "mixamorig:Neck": "neck",
    "mixamorig:Head": "head",
    "mixamorig:LeftShoulder": "leftShoulder",
    "mixamorig:LeftArm": "leftUpperArm",
    "mixamorig:LeftForeArm": "leftLowerArm",
    "mixamorig:LeftHand": "leftHand",
    "mixamorig:RightShoulder": "rightShoulder",
    "mixamorig:RightArm": "rightUpperArm",
    "mixamorig:RightForeArm": "rightLowerArm",
    "mixamorig:RightHand": "rightHand",
    "mixamorig:LeftUpLeg": "leftUpperLeg",
    "mixamorig:LeftLeg": "leftLowerLeg",
    "mixamorig:LeftFoot": "leftFoot",
    "mixamorig:RightUpLeg": "rightUpperLeg",
    "mixamorig:RightLeg": "rightLowerLeg",
    "mixamorig:RightFoot": "rightFoot",
    "mixamorig:LeftToeBase": "leftToes",
    "mixamorig:RightToeBase": "rightToes",

    # Left hand fingers
    "mixamorig:LeftHandThumb1": "leftThumbMetacarpal",
    "mixamorig:LeftHandThumb2": "leftThumbProximal",
    "mixamorig:LeftHandThumb3": "leftThumbDistal",
    "mixamorig:LeftHandIndex1": "leftIndexProximal",
    "mixamorig:LeftHandIndex2": "leftIndexIntermediate",
    "mixamorig:LeftHandIndex3": "leftIndexDistal",
    "mixamorig:LeftHandMiddle1": "leftMiddleProximal",
    "mixamorig:LeftHandMiddle2": "leftMiddleIntermediate",
    "mixamorig:LeftHandMiddle3": "leftMiddleDistal",
    "mixamorig:LeftHandRing1": "leftRingProximal",
    "mixamorig:LeftHandRing2": "leftRingIntermediate",
    "mixamorig:LeftHandRing3": "leftRingDistal",
    "mixamorig:LeftHandPinky1": "leftLittleProximal",
    "mixamorig:LeftHandPinky2": "leftLittleIntermediate",
    "mixamorig:LeftHandPinky3": "leftLittleDistal",

    # Right hand fingers
    "mixamorig:RightHandThumb1": "rightThumbMetacarpal",
    "mixamorig:RightHandThumb2": "rightThumbProximal",
    "mixamorig:RightHandThumb3": "rightThumbDistal",
    "mixamorig:RightHandIndex1": "rightIndexProximal",
    "mixamorig:RightHandIndex2": "rightIndexIntermediate",
    "mixamorig:RightHandIndex3": "rightIndexDistal",
    "mixamorig:RightHandMiddle1": "rightMiddleProximal",
    "mixamorig:RightHandMiddle2": "rightMiddleIntermediate",
    "mixamorig:RightHandMiddle3": "rightMiddleDistal",
    "mixamorig:RightHandRing1": "rightRingProximal",
    "mixamorig:RightHandRing2": "rightRingIntermediate",
    "mixamorig:RightHandRing3": "rightRingDistal",
    "mixamorig:RightHandPinky1": "rightLittleProximal",
    "mixamorig:RightHandPinky2": "rightLittleIntermediate",
    "mixamorig:RightHandPinky3": "rightLittleDistal",
})

# Bones a VRM 1.0 humanoid must define
REQUIRED_VRM_BONES = (
    "hips", "spine", "head",
    "leftUpperArm", "leftLowerArm", "leftHand",
    "rightUpperArm", "rightLowerArm", "rightHand",
    "leftUpperLeg", "leftLowerLeg", "leftFoot",
    "rightUpperLeg", "rightLowerLeg", "rightFoot",
)


def retarget(document: Dict[str, Any]) -> Dict[str, Dict[str, int]]:
    """
    Build the VRM humanBones map from the document's node names.

    Nodes are visited in index order. When two nodes carry the same Mixamo
    name the later one wins.

    Args:
        document: Parsed glTF document

    Returns:
        Mapping of VRM bone name to ``{"node": index}``
    """
    human_bones = {}
    nodes = document.get("nodes")
    if not isinstance(nodes, list):
        return human_bones

    for index, node in enumerate(nodes):
        if not isinstance(node, dict) or not isinstance(node.get("name"), str):
            continue
        vrm_bone = MIXAMO_TO_VRM_BONES.get(node["name"])
        if vrm_bone is None:
            continue
        if vrm_bone in human_bones:
            logger.debug(
                f"Duplicate bone {node['name']}: node {index} replaces "
                f"node {human_bones[vrm_bone]['node']}"
            )
        human_bones[vrm_bone] = {"node": index}

    return human_bones


def invert_bone_map(human_bones: Dict[str, Dict[str, int]]) -> Dict[int, str]:
    """Node index to VRM bone name."""
    return {bone["node"]: name for name, bone in human_bones.items()}


def find_missing_required_bones(human_bones: Dict[str, Dict[str, int]]) -> List[str]:
    return [bone for bone in REQUIRED_VRM_BONES if bone not in human_bones]
