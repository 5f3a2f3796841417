"""Per-frame retargeting of a source pose onto the bone tree.

``imitate()`` runs two passes over the tree:

1. Pre-order (root to leaves): every node's working transform becomes its
   reference local composed under its parent's working transform, which is
   already in skeleton space (the root composes under ``tree.root_parent``).
   Mapped nodes then take the source joint's rotation delta from its bind
   pose, applied on top of the target bind rotation, and follow the source
   joint's offset from its parent scaled by the ratio of bind-pose bone
   lengths.
2. Post-order (leaves to root): each node converts its working transform into
   a parent-relative local transform and writes it to its target node.
   Children localize before their parent so the parent's working transform
   is still in skeleton space when they read it.
"""

import logging
from typing import Callable, Optional

from mimicrig.core.math_utils import (
    Mat4, mat4_inverse, quat_inverse, quat_multiply, quat_normalize,
    transform_direction, transform_point,
)
from mimicrig.core.transform import Transform, compose, local_from
from mimicrig.retarget.bone_tree import BoneTree, SourceLink, SourceSample
from mimicrig.retarget.definition import PositionMethod, RetargetMode

logger = logging.getLogger(__name__)

_SAMPLERS: dict[RetargetMode, Optional[Callable[[SourceLink], SourceSample]]] = {
    RetargetMode.REFERENCE_POSE: None,
    RetargetMode.SOURCE_BIND_POSE: SourceLink.sample_bind,
    RetargetMode.SOURCE_ANIMATED: SourceLink.sample_animated,
}


class RetargetEngine:
    """Drives a ``BoneTree`` from its source hierarchy once per tick."""

    def __init__(self, tree: BoneTree, mode: RetargetMode = RetargetMode.SOURCE_ANIMATED):
        self.tree = tree
        self.mode = mode
        self._sample = _SAMPLERS[mode]
        logger.debug("Retarget engine for %s in %s mode", tree.target_root.name, mode.name)

    def imitate(self) -> None:
        """Retarget the current source pose and write target local transforms."""
        self._compute_world()
        self._localize()

    def _compute_world(self) -> None:
        tree = self.tree
        for node in tree.nodes:
            parent = tree.parent_of(node)
            if parent is None:
                world = tree.root_world(node.reference_local)
            else:
                world = compose(parent.working_world, node.reference_local)
            if node.mapping is not None and self._sample is not None:
                parent_world = tree.root_parent if parent is None else parent.working_world.to_matrix()
                self._retarget(world, parent_world, node.mapping)
            node.working_world = world

    def _retarget(self, world: Transform, parent_world: Mat4, link: SourceLink) -> None:
        sample = self._sample(link)

        # Anim_t * inv(Bind_t) = Anim_s * inv(Bind_s), in world space
        delta = quat_multiply(sample.rotation, quat_inverse(link.source_reference_world.rotation))
        world.rotation = quat_normalize(quat_multiply(delta, link.target_bind_world.rotation))

        if link.method is not PositionMethod.SCALED or link.length_ratio is None:
            return
        offset = sample.position - sample.parent_position
        local_offset = transform_direction(mat4_inverse(parent_world), offset)
        world.position = transform_point(parent_world, local_offset * link.length_ratio)

    def _localize(self) -> None:
        tree = self.tree
        # Reverse pre-order visits every descendant before its ancestor
        for node in reversed(tree.nodes):
            parent = tree.parent_of(node)
            if parent is None:
                local = tree.root_local(node.working_world)
            else:
                local = local_from(node.working_world, parent.working_world)
            node.output_local = local
            node.target.set_transform(local)
