"""MimicRig: retarget skeletal poses between differently-proportioned hierarchies."""

__version__ = "0.3.0"

from mimicrig.retarget import (
    ImitationController,
    MappingDefinition,
    RetargetEngine,
    RetargetMode,
    build_bone_tree,
)
from mimicrig.skeleton import BindPoseIndex, SkeletonAsset

__all__ = [
    "BindPoseIndex",
    "ImitationController",
    "MappingDefinition",
    "RetargetEngine",
    "RetargetMode",
    "SkeletonAsset",
    "build_bone_tree",
]
