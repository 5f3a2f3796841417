"""Skeleton assets and bind-pose lookup by joint name.

A skeleton asset records, for every joint, a ``/``-joined path from the
model root and the inverse of that joint's bind pose in skeleton space.
``BindPoseIndex`` inverts those once and derives parent-local bind poses,
so per-frame code only deals in integer joint ids.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Sequence

import numpy as np

from mimicrig.constants import PATH_SEPARATOR
from mimicrig.core.math_utils import Mat4, mat4_inverse
from mimicrig.core.scene_graph import SceneNode, accumulate_matrix
from mimicrig.core.transform import Transform

logger = logging.getLogger(__name__)


@dataclass
class SkeletonAsset:
    """Ordered joint paths and their inverse bind matrices."""
    joints: list[str]
    inverse_bind_poses: list[Mat4] = field(default_factory=list)

    def __post_init__(self):
        if len(self.joints) != len(self.inverse_bind_poses):
            raise ValueError(
                f"Skeleton has {len(self.joints)} joints but "
                f"{len(self.inverse_bind_poses)} inverse bind poses"
            )
        self.inverse_bind_poses = [_as_mat4(m) for m in self.inverse_bind_poses]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SkeletonAsset":
        """Build from ``{"joints": [...], "inverseBindPoses": [...]}``.

        Matrices may be nested 4x4 lists or flat lists of 16 floats in
        column-major order.
        """
        try:
            joints = list(data["joints"])
            matrices = list(data["inverseBindPoses"])
        except KeyError as e:
            raise ValueError(f"Skeleton asset missing key: {e}") from e
        return cls(joints=joints, inverse_bind_poses=matrices)

    @classmethod
    def from_hierarchy(cls, model_root: SceneNode) -> "SkeletonAsset":
        """Record the current pose of every node below ``model_root`` as bind pose."""
        joints: list[str] = []
        matrices: list[Mat4] = []

        def _record(node: SceneNode) -> None:
            if node is not model_root:
                joints.append(node.relative_path(model_root))
                matrices.append(mat4_inverse(accumulate_matrix(node, model_root)))

        model_root.traverse(_record)
        return cls(joints=joints, inverse_bind_poses=matrices)


def _as_mat4(values: Sequence) -> Mat4:
    arr = np.asarray(values, dtype=np.float64)
    if arr.shape == (16,):
        return arr.reshape(4, 4).T.copy()
    if arr.shape != (4, 4):
        raise ValueError(f"Expected a 4x4 matrix or 16 values, got shape {arr.shape}")
    return arr


@dataclass(frozen=True)
class BindPoseEntry:
    """Bind pose of one joint in skeleton space and relative to its parent."""
    joint_id: int
    joint_name: str
    world_matrix: Mat4
    local_matrix: Mat4
    parent_id: Optional[int] = None


class BindPoseIndex:
    """Per-skeleton lookup from joint name to world and local bind poses."""

    def __init__(self, skeleton: SkeletonAsset):
        self.skeleton = skeleton
        self._path_to_id: dict[str, int] = {}
        for i, path in enumerate(skeleton.joints):
            # First occurrence wins for duplicate paths
            self._path_to_id.setdefault(path, i)

        self._entries: list[BindPoseEntry] = []
        for i, path in enumerate(skeleton.joints):
            world = mat4_inverse(skeleton.inverse_bind_poses[i])
            parent_id = self._parent_id(path)
            if parent_id is not None:
                parent_world = mat4_inverse(skeleton.inverse_bind_poses[parent_id])
                local = mat4_inverse(parent_world) @ world
            else:
                local = world.copy()
            self._entries.append(BindPoseEntry(i, path, world, local, parent_id))

        self._world = [Transform.from_matrix(e.world_matrix) for e in self._entries]
        self._local = [Transform.from_matrix(e.local_matrix) for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def _parent_id(self, path: str) -> Optional[int]:
        if PATH_SEPARATOR not in path:
            return None
        parent_path = path.rsplit(PATH_SEPARATOR, 1)[0]
        return self._path_to_id.get(parent_path)

    def joint_id(self, path: str) -> Optional[int]:
        """Exact path lookup."""
        return self._path_to_id.get(path)

    def resolve(self, name: str) -> Optional[int]:
        """First joint whose path ends with ``name``.

        Suffix matching is ambiguous for names like ``Hand`` and ``LeftHand``;
        table order decides.
        """
        if not name:
            return None
        for i, path in enumerate(self.skeleton.joints):
            if path.endswith(name):
                return i
        return None

    def entry(self, joint_id: int) -> BindPoseEntry:
        return self._entries[joint_id]

    def entries(self) -> Iterator[BindPoseEntry]:
        return iter(self._entries)

    def world_bind_pose(self, joint_id: int) -> Transform:
        return self._world[joint_id].copy()

    def local_bind_pose(self, joint_id: int) -> Transform:
        return self._local[joint_id].copy()

    def get_world_bind_pose(self, name: str) -> Optional[Transform]:
        joint_id = self.resolve(name)
        if joint_id is None:
            return None
        return self.world_bind_pose(joint_id)

    def get_local_bind_pose(self, name: str) -> Optional[Transform]:
        joint_id = self.resolve(name)
        if joint_id is None:
            return None
        return self.local_bind_pose(joint_id)


def reset_as_bind_pose(model_root: SceneNode, skeleton: SkeletonAsset) -> int:
    """Write each joint's local bind pose onto the model hierarchy.

    Joint paths are built from child names under ``model_root``. Joints
    without a recorded bind pose are left as-is and their subtrees skipped.

    Returns:
        Number of nodes reset.
    """
    index = BindPoseIndex(skeleton)
    count = 0

    def _reset_children(node: SceneNode, prefix: str) -> None:
        nonlocal count
        for child in node.children:
            if not child.name:
                logger.warning("Joint %s has an empty name. Skipped.", child.get_path_in_hierarchy())
                continue
            path = f"{prefix}{PATH_SEPARATOR}{child.name}" if prefix else child.name
            joint_id = index.joint_id(path)
            if joint_id is None:
                logger.info("Joint %s does not have bind pose recorded. Skipped.", path)
                continue
            child.set_transform(index.local_bind_pose(joint_id))
            count += 1
            _reset_children(child, path)

    _reset_children(model_root, "")
    logger.debug("Reset %d joints under %s to bind pose", count, model_root.name)
    return count
