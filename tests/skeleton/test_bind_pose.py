"""Tests for skeleton assets, bind-pose lookup and reset to bind pose."""

import logging

import numpy as np
import pytest

from mimicrig.core.math_utils import (
    mat4_compose, mat4_inverse, quat_from_axis_angle, quat_from_euler, quat_identity, vec3,
)
from mimicrig.core.scene_graph import SceneNode
from mimicrig.core.transform import compose
from mimicrig.skeleton.bind_pose import BindPoseIndex, SkeletonAsset, reset_as_bind_pose


def _humanoid() -> SceneNode:
    root = SceneNode(name="Model")
    hips = SceneNode(name="Hips").set_position(0, 1, 0)
    spine = SceneNode(name="Spine").set_position(0, 0.5, 0)
    spine.set_quaternion(quat_from_axis_angle(vec3(1, 0, 0), 0.2))
    hand_l = SceneNode(name="LeftHand").set_position(-0.8, 0.4, 0)
    hand_l.set_quaternion(quat_from_euler(0.1, 0.5, -0.3))
    hand_r = SceneNode(name="RightHand").set_position(0.8, 0.4, 0)
    root.add(hips)
    hips.add(spine)
    spine.add(hand_l)
    spine.add(hand_r)
    return root


def test_from_hierarchy_records_paths_in_preorder():
    asset = SkeletonAsset.from_hierarchy(_humanoid())
    assert asset.joints == [
        "Hips", "Hips/Spine", "Hips/Spine/LeftHand", "Hips/Spine/RightHand",
    ]


def test_mismatched_lengths_raise():
    with pytest.raises(ValueError):
        SkeletonAsset(joints=["a", "b"], inverse_bind_poses=[np.eye(4)])


def test_bad_matrix_shape_raises():
    with pytest.raises(ValueError):
        SkeletonAsset(joints=["a"], inverse_bind_poses=[[1, 2, 3]])


def test_from_dict_missing_key_raises():
    with pytest.raises(ValueError):
        SkeletonAsset.from_dict({"joints": []})


def test_world_bind_pose_is_inverse_of_inverse_bind():
    m = mat4_compose(vec3(1, 2, 3), quat_from_euler(0.1, 0.2, 0.3), vec3(1, 1, 1))
    index = BindPoseIndex(SkeletonAsset(["Hips"], [mat4_inverse(m)]))
    np.testing.assert_array_almost_equal(index.get_world_bind_pose("Hips").to_matrix(), m)


def test_bind_pose_round_trip():
    index = BindPoseIndex(SkeletonAsset.from_hierarchy(_humanoid()))
    for entry in index.entries():
        if entry.parent_id is None:
            continue
        recomposed = compose(index.world_bind_pose(entry.parent_id), index.local_bind_pose(entry.joint_id))
        assert recomposed.approx_equal(index.world_bind_pose(entry.joint_id), tol=1e-5), entry.joint_name


def test_local_bind_pose_matches_node_transform():
    model = _humanoid()
    index = BindPoseIndex(SkeletonAsset.from_hierarchy(model))
    hand = model.find("LeftHand")
    assert index.get_local_bind_pose("LeftHand").approx_equal(hand.get_transform(), tol=1e-9)


def test_root_local_equals_world():
    index = BindPoseIndex(SkeletonAsset.from_hierarchy(_humanoid()))
    assert index.get_local_bind_pose("Hips").approx_equal(index.get_world_bind_pose("Hips"))


def test_missing_parent_falls_back_to_world():
    m = mat4_compose(vec3(0, 2, 0), quat_identity(), vec3(1, 1, 1))
    index = BindPoseIndex(SkeletonAsset(["Missing/Child"], [mat4_inverse(m)]))
    assert index.entry(0).parent_id is None
    np.testing.assert_array_almost_equal(index.get_local_bind_pose("Child").position, [0, 2, 0])


def test_unknown_name_is_absent():
    index = BindPoseIndex(SkeletonAsset.from_hierarchy(_humanoid()))
    assert index.resolve("Tail") is None
    assert index.resolve("") is None
    assert index.get_world_bind_pose("Tail") is None
    assert index.get_local_bind_pose("Tail") is None


def test_ambiguous_suffix_first_match_wins():
    index = BindPoseIndex(SkeletonAsset(
        joints=["Arm/LeftHand", "Arm/Hand"],
        inverse_bind_poses=[np.eye(4), np.eye(4)],
    ))
    # "Arm/LeftHand" also ends with "Hand" and comes first
    assert index.resolve("Hand") == 0
    assert index.resolve("Arm/Hand") == 1
    assert index.joint_id("Arm/Hand") == 1


def test_reset_as_bind_pose():
    model = _humanoid()
    asset = SkeletonAsset.from_hierarchy(model)
    expected = {n: model.find(n).get_transform() for n in ("Hips", "Spine", "LeftHand")}

    for name in expected:
        node = model.find(name)
        node.set_position(9, 9, 9)
        node.set_quaternion(quat_from_euler(1.0, 1.0, 1.0))

    count = reset_as_bind_pose(model, asset)
    assert count == 4
    for name, t in expected.items():
        assert model.find(name).get_transform().approx_equal(t, tol=1e-9), name


def test_reset_skips_unrecorded_and_unnamed_joints(caplog):
    model = _humanoid()
    asset = SkeletonAsset.from_hierarchy(model)
    extra = SceneNode(name="Prop").set_position(5, 5, 5)
    model.find("Spine").add(extra)
    unnamed = SceneNode(name="").set_position(7, 7, 7)
    model.add(unnamed)

    with caplog.at_level(logging.INFO, logger="mimicrig.skeleton.bind_pose"):
        count = reset_as_bind_pose(model, asset)

    assert count == 4
    np.testing.assert_array_equal(extra.position, [5, 5, 5])
    np.testing.assert_array_equal(unnamed.position, [7, 7, 7])
    assert "Hips/Spine/Prop does not have bind pose recorded" in caplog.text
    assert "empty name" in caplog.text
