"""Rotation-only imitation along named joint chains.

Each chain pairs source and target nodes by position along the chain and
copies the local rotation delta from the source reference pose:
``target = source * inv(source_ref) * target_ref``.
"""

import logging
from typing import Optional

from mimicrig.core.scene_graph import SceneNode
from mimicrig.core.transform import Transform
from mimicrig.core.math_utils import quat_inverse, quat_multiply, quat_normalize
from mimicrig.retarget.definition import ChainDefinition, ChainEnds

logger = logging.getLogger(__name__)


class ChainInstance:
    """Chain nodes from first to last with their reference local transforms."""

    def __init__(self, nodes: list[SceneNode]):
        self.nodes = nodes
        self.reference_pose_transforms: list[Transform] = [n.get_transform() for n in nodes]

    def __len__(self) -> int:
        return len(self.nodes)


def instantiate_chain(origin: SceneNode, ends: ChainEnds) -> Optional[ChainInstance]:
    """Resolve ``ends`` under ``origin``. Logs and returns None on failure."""
    if not ends.first:
        return None
    first = origin.find(ends.first)
    if first is None:
        logger.error("Can not find first node %s starting from %s",
                     ends.first, origin.get_path_in_hierarchy())
        return None
    last = origin.find(ends.last_or_first)
    if last is None:
        logger.error("Can not find last node %s starting from %s",
                     ends.last_or_first, origin.get_path_in_hierarchy())
        return None
    nodes = []
    node: Optional[SceneNode] = last
    while node is not first:
        if node is None:
            logger.error("%s is not a successor node of %s",
                         last.get_path_in_hierarchy(), first.get_path_in_hierarchy())
            return None
        nodes.append(node)
        node = node.parent
    nodes.append(first)
    nodes.reverse()
    return ChainInstance(nodes)


class ChainImitation:
    def __init__(
        self,
        source: ChainInstance,
        target: ChainInstance,
        debugging_source: Optional[ChainInstance] = None,
    ):
        self.source = source
        self.target = target
        self.debugging_source = debugging_source

    def imitate(self) -> None:
        for i, source_node in enumerate(self.source.nodes):
            source_ref = self.source.reference_pose_transforms[i]
            target_ref = self.target.reference_pose_transforms[i]
            delta = quat_multiply(quat_inverse(source_ref.rotation), target_ref.rotation)
            rotation = quat_normalize(quat_multiply(source_node.quaternion, delta))
            self.target.nodes[i].set_quaternion(rotation)
            if self.debugging_source is not None:
                self.debugging_source.nodes[i].set_quaternion(source_node.quaternion)


def build_chain_imitation(
    source_origin: SceneNode,
    target_origin: SceneNode,
    definition: ChainDefinition,
    debugging_origin: Optional[SceneNode] = None,
) -> Optional[ChainImitation]:
    if not definition.enabled:
        return None
    source = instantiate_chain(source_origin, definition.source)
    if source is None:
        return None
    target = instantiate_chain(target_origin, definition.target)
    if target is None:
        return None
    if len(source) != len(target):
        logger.warning(
            "Chain %s..%s has %d nodes but %s..%s has %d. Skipped.",
            definition.source.first, definition.source.last_or_first, len(source),
            definition.target.first, definition.target.last_or_first, len(target),
        )
        return None

    debugging = None
    if debugging_origin is not None:
        debugging = instantiate_chain(debugging_origin, definition.source)
    return ChainImitation(source, target, debugging)
