"""Bone mapping tree mirroring the target hierarchy.

Nodes live in a flat list in pre-order and refer to each other by index,
so a parent always precedes its descendants. Each node optionally carries
a ``SourceLink`` resolved once at setup: the source joint it follows and
the bind poses of both sides.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator, NamedTuple, Optional

import numpy as np

from mimicrig.constants import MIN_BONE_LENGTH
from mimicrig.core.math_utils import (
    Mat4, Quat, Vec3, mat4_identity, mat4_inverse, quat_identity, quat_multiply,
)
from mimicrig.core.scene_graph import SceneNode, accumulate_matrix
from mimicrig.core.transform import Transform, compose
from mimicrig.retarget.definition import (
    MappingDefinition, MappingRow, MatchField, PositionMethod,
)
from mimicrig.skeleton.bind_pose import BindPoseIndex

logger = logging.getLogger(__name__)


class SourceSample(NamedTuple):
    """Source joint pose relative to the source root."""
    parent_position: Vec3
    position: Vec3
    rotation: Quat


@dataclass
class SourceLink:
    """Resolved link from a target bone to the source joint it imitates."""
    source_node: SceneNode
    source_chain: tuple[SceneNode, ...]  # source_node up to the source root, exclusive
    source_reference_world: Transform
    source_reference_local: Transform
    target_bind_world: Transform
    target_bind_local: Transform
    method: PositionMethod = PositionMethod.SCALED
    length_ratio: Optional[float] = None

    def __post_init__(self):
        world = self.source_reference_world.to_matrix()
        parent_world = world @ mat4_inverse(self.source_reference_local.to_matrix())
        self._bind_sample = SourceSample(
            parent_world[:3, 3].copy(),
            world[:3, 3].copy(),
            self.source_reference_world.rotation.copy(),
        )

    def sample_animated(self) -> SourceSample:
        """Current pose, composed down the cached chain from the source root."""
        parent_world = mat4_identity()
        world = mat4_identity()
        rotation = quat_identity()
        for node in reversed(self.source_chain):
            parent_world = world
            world = world @ node.compose_local()
            rotation = quat_multiply(rotation, node.quaternion)
        return SourceSample(parent_world[:3, 3].copy(), world[:3, 3].copy(), rotation)

    def sample_bind(self) -> SourceSample:
        return self._bind_sample


@dataclass
class BoneNode:
    index: int
    name: str
    target: SceneNode
    reference_local: Transform
    reference_world: Transform
    parent: Optional[int] = None
    children: list[int] = field(default_factory=list)
    mapping: Optional[SourceLink] = None
    # Per-frame scratch; overwritten by every imitate()
    working_world: Transform = field(default_factory=Transform)
    output_local: Transform = field(default_factory=Transform)

    @property
    def is_mapped(self) -> bool:
        return self.mapping is not None


class BoneTree:
    """Arena of ``BoneNode`` in pre-order; index 0 is the root."""

    def __init__(
        self, target_root: SceneNode, source_root: SceneNode, root_parent: Optional[Mat4] = None,
    ):
        self.target_root = target_root
        self.source_root = source_root
        # Skeleton-space frame the root node's local transform is relative to
        self.root_parent: Mat4 = mat4_identity() if root_parent is None else root_parent
        self.nodes: list[BoneNode] = []

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[BoneNode]:
        return iter(self.nodes)

    @property
    def root(self) -> BoneNode:
        return self.nodes[0]

    def find(self, name: str) -> Optional[BoneNode]:
        for node in self.nodes:
            if node.name == name:
                return node
        return None

    def mapped(self) -> list[BoneNode]:
        return [n for n in self.nodes if n.mapping is not None]

    def parent_of(self, node: BoneNode) -> Optional[BoneNode]:
        return None if node.parent is None else self.nodes[node.parent]

    def root_world(self, local: Transform) -> Transform:
        """Skeleton-space transform of the root node for a given root local."""
        return Transform.from_matrix(self.root_parent @ local.to_matrix())

    def root_local(self, world: Transform) -> Transform:
        """Inverse of ``root_world``."""
        return Transform.from_matrix(mat4_inverse(self.root_parent) @ world.to_matrix())

    def check_reference_consistency(self, tol: float = 1e-5) -> list[str]:
        """Names of nodes whose reference world != parent world @ reference local."""
        bad = []
        for node in self.nodes:
            parent = self.parent_of(node)
            if parent is None:
                expected = self.root_world(node.reference_local)
            else:
                expected = compose(parent.reference_world, node.reference_local)
            if not expected.approx_equal(node.reference_world, tol):
                bad.append(node.name)
        return bad


def build_bone_tree(
    target_root: SceneNode,
    source_root: SceneNode,
    source_bind: BindPoseIndex,
    target_bind: BindPoseIndex,
    definition: MappingDefinition,
    match: MatchField = MatchField.TARGET,
) -> Optional[BoneTree]:
    """Mirror the hierarchy under ``definition.target_root`` and resolve mappings.

    Returns:
        The tree, or None if the target root path does not resolve.
    """
    root_node = target_root.find_by_path(definition.target_root)
    if root_node is None:
        logger.error(
            "Can not find target root %r starting from %s",
            definition.target_root, target_root.get_path_in_hierarchy(),
        )
        return None

    tree = BoneTree(root_node, source_root, _root_parent_matrix(root_node, target_root))

    def _visit(scene_node: SceneNode, parent: Optional[BoneNode]) -> None:
        reference_local = scene_node.get_transform()
        if parent is None:
            reference_world = tree.root_world(reference_local)
        else:
            reference_world = compose(parent.reference_world, reference_local)

        bone = BoneNode(
            index=len(tree.nodes),
            name=scene_node.name,
            target=scene_node,
            reference_local=reference_local,
            reference_world=reference_world,
            parent=None if parent is None else parent.index,
        )
        bone.working_world = reference_world.copy()
        bone.output_local = reference_local.copy()
        tree.nodes.append(bone)
        if parent is not None:
            parent.children.append(bone.index)

        row = definition.find_row(scene_node.name, match)
        if row is not None:
            bone.mapping = _resolve_link(bone, row, source_root, source_bind, target_bind, definition)

        for child in scene_node.children:
            _visit(child, bone)

    _visit(root_node, None)

    logger.info(
        "Bone tree under %s: %d nodes, %d mapped",
        root_node.name, len(tree.nodes), len(tree.mapped()),
    )
    return tree


def _root_parent_matrix(root_node: SceneNode, model_root: SceneNode) -> Mat4:
    """Frame of ``root_node``'s parent in skeleton space (model root excluded).

    When the tree starts at the model root itself, its own transform lies
    outside skeleton space, so the frame cancels it.
    """
    if root_node is model_root:
        return mat4_inverse(root_node.compose_local())
    return accumulate_matrix(root_node.parent, model_root)


def _resolve_link(
    bone: BoneNode,
    row: MappingRow,
    source_root: SceneNode,
    source_bind: BindPoseIndex,
    target_bind: BindPoseIndex,
    definition: MappingDefinition,
) -> Optional[SourceLink]:
    if not definition.is_included(row.source):
        logger.debug("Mapping %s -> %s excluded by includes", row.source, row.target)
        return None

    source_node = source_root.find(row.source)
    if source_node is None:
        logger.error(
            "Can not find source node %s starting from %s",
            row.source, source_root.get_path_in_hierarchy(),
        )
        return None

    source_id = source_bind.resolve(row.source)
    target_id = target_bind.resolve(bone.name)
    if source_id is None or target_id is None:
        missing = row.source if source_id is None else bone.name
        logger.warning(
            "Joint %s does not have bind pose recorded; %s -> %s left unmapped",
            missing, row.source, bone.name,
        )
        return None

    source_local = source_bind.local_bind_pose(source_id)
    target_local = target_bind.local_bind_pose(target_id)
    source_length = float(np.linalg.norm(source_local.position))
    if source_length < MIN_BONE_LENGTH:
        ratio = None
    else:
        ratio = float(np.linalg.norm(target_local.position)) / source_length

    return SourceLink(
        source_node=source_node,
        source_chain=tuple(source_node.ancestors_to(source_root)),
        source_reference_world=source_bind.world_bind_pose(source_id),
        source_reference_local=source_local,
        target_bind_world=target_bind.world_bind_pose(target_id),
        target_bind_local=target_local,
        method=row.method,
        length_ratio=ratio,
    )
