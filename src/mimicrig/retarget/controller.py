"""Imitation controller: setup and per-tick update of a retargeted hierarchy."""

import logging
from typing import Callable, Optional

from mimicrig.constants import DEBUG_MIRROR_OFFSET, DEBUGGING_SOURCE_SUFFIX
from mimicrig.core.math_utils import Vec3, vec3
from mimicrig.core.scene_graph import SceneNode
from mimicrig.retarget.bone_tree import BoneTree, build_bone_tree
from mimicrig.retarget.chain import ChainImitation, build_chain_imitation
from mimicrig.retarget.debug_mirror import DebugMirror
from mimicrig.retarget.definition import MappingDefinition, MatchField, RetargetMode
from mimicrig.retarget.engine import RetargetEngine
from mimicrig.skeleton.bind_pose import BindPoseIndex, SkeletonAsset, reset_as_bind_pose

logger = logging.getLogger(__name__)

# Writes the source hierarchy's local transforms for a tick: (source_root, dt)
PoseDriver = Callable[[SceneNode, float], None]


class ImitationController:
    """Retargets a posed source hierarchy onto a target hierarchy every tick.

    The source hierarchy is posed by an external ``driver`` before each
    retarget. Optional pieces, all built in ``setup()``:

    - chain imitations from ``definition.chains``;
    - a debugging source: a clone of the source hierarchy that mirrors the
      raw source pose, offset from ``debug_position``.
    """

    def __init__(
        self,
        definition: MappingDefinition,
        source_root: SceneNode,
        target_root: SceneNode,
        source_skeleton: SkeletonAsset,
        target_skeleton: SkeletonAsset,
        driver: Optional[PoseDriver] = None,
        mode: RetargetMode = RetargetMode.SOURCE_ANIMATED,
        match: MatchField = MatchField.TARGET,
        reset_to_bind_pose: bool = False,
        debug_mirror: bool = False,
        debug_position: Optional[Vec3] = None,
    ):
        self.definition = definition
        self.source_root = source_root
        self.target_root = target_root
        self.source_bind = BindPoseIndex(source_skeleton)
        self.target_bind = BindPoseIndex(target_skeleton)
        self.driver = driver
        self.mode = mode
        self.match = match
        self.reset_to_bind_pose = reset_to_bind_pose
        self.debug_mirror = debug_mirror
        self.debug_position = vec3() if debug_position is None else debug_position

        self.tree: Optional[BoneTree] = None
        self.engine: Optional[RetargetEngine] = None
        self.chains: list[ChainImitation] = []
        self.debugging_source: Optional[SceneNode] = None
        self.mirror: Optional[DebugMirror] = None

    def setup(self) -> "ImitationController":
        if self.reset_to_bind_pose:
            reset_as_bind_pose(self.source_root, self.source_bind.skeleton)
            reset_as_bind_pose(self.target_root, self.target_bind.skeleton)

        if self.debug_mirror:
            self.debugging_source = self.source_root.clone(
                f"{self.source_root.name}{DEBUGGING_SOURCE_SUFFIX}")
            self.debugging_source.set_position(*(self.debug_position + vec3(*DEBUG_MIRROR_OFFSET)))

        self.tree = build_bone_tree(
            self.target_root, self.source_root,
            self.source_bind, self.target_bind,
            self.definition, self.match,
        )
        if self.tree is not None:
            self.engine = RetargetEngine(self.tree, self.mode)

        for chain_def in self.definition.chains:
            chain = build_chain_imitation(
                self.source_root, self.target_root, chain_def, self.debugging_source)
            if chain is not None:
                self.chains.append(chain)

        if self.debugging_source is not None:
            beginning = self.definition.debugging_source_copy_beginning
            if beginning:
                self.mirror = DebugMirror.from_chain(self.source_root, self.debugging_source, beginning)
            elif self.tree is not None:
                self.mirror = DebugMirror.from_tree(self.tree, self.debugging_source)

        logger.info(
            "Imitation %s -> %s ready: %d chains, mirror=%s",
            self.source_root.name, self.target_root.name, len(self.chains),
            "on" if self.mirror is not None else "off",
        )
        return self

    def update(self, dt: float) -> None:
        """One animation tick: pose the source, retarget, then refresh debug views."""
        if self.driver is not None:
            self.driver(self.source_root, dt)
        if self.engine is not None:
            self.engine.imitate()
        for chain in self.chains:
            chain.imitate()
        if self.mirror is not None:
            self.mirror.apply()
