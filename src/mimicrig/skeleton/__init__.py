"""Skeleton assets and bind poses."""

from mimicrig.skeleton.bind_pose import (
    BindPoseEntry,
    BindPoseIndex,
    SkeletonAsset,
    reset_as_bind_pose,
)

__all__ = ["BindPoseEntry", "BindPoseIndex", "SkeletonAsset", "reset_as_bind_pose"]
