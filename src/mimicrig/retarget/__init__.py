"""Retargeting -- bone mapping tree, two-pass engine, chains and debug mirror."""

from mimicrig.retarget.bone_tree import BoneNode, BoneTree, SourceLink, build_bone_tree
from mimicrig.retarget.chain import ChainImitation, build_chain_imitation
from mimicrig.retarget.controller import ImitationController
from mimicrig.retarget.debug_mirror import DebugMirror
from mimicrig.retarget.definition import (
    MappingDefinition,
    MappingRow,
    MatchField,
    PositionMethod,
    RetargetMode,
)
from mimicrig.retarget.engine import RetargetEngine

__all__ = [
    "BoneNode",
    "BoneTree",
    "ChainImitation",
    "DebugMirror",
    "ImitationController",
    "MappingDefinition",
    "MappingRow",
    "MatchField",
    "PositionMethod",
    "RetargetEngine",
    "RetargetMode",
    "SourceLink",
    "build_bone_tree",
    "build_chain_imitation",
]
