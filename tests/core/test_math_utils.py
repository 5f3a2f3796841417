"""Tests for math_utils module."""

import numpy as np
import pytest

from mimicrig.core.math_utils import (
    vec3, mat4_identity,
    mat4_from_quaternion, mat4_compose, mat4_decompose, mat4_inverse,
    mat3_to_quat,
    quat_identity, quat_from_euler, quat_from_axis_angle,
    quat_multiply, quat_conjugate, quat_inverse, quat_normalize, quat_equal,
    normalize, transform_point, transform_direction,
)


def _rotate(q, v):
    return transform_direction(mat4_from_quaternion(q), v)


def test_vec3():
    v = vec3(1, 2, 3)
    assert v.shape == (3,)
    np.testing.assert_array_equal(v, [1, 2, 3])


def test_mat4_identity():
    m = mat4_identity()
    np.testing.assert_array_equal(m, np.eye(4))


def test_quat_identity():
    q = quat_identity()
    np.testing.assert_array_equal(q, [0, 0, 0, 1])


def test_quat_from_axis_angle():
    q = quat_from_axis_angle(vec3(0, 1, 0), np.pi / 2)
    v = _rotate(q, vec3(0, 0, 1))
    np.testing.assert_array_almost_equal(v, [1, 0, 0], decimal=10)


def test_quat_multiply_identity():
    q = quat_from_axis_angle(vec3(1, 0, 0), 0.5)
    result = quat_multiply(q, quat_identity())
    np.testing.assert_array_almost_equal(result, q)


def test_quat_multiply_applies_right_first():
    qx = quat_from_axis_angle(vec3(1, 0, 0), np.pi / 2)
    qz = quat_from_axis_angle(vec3(0, 0, 1), np.pi / 2)
    v = vec3(0, 1, 0)
    combined = _rotate(quat_multiply(qz, qx), v)
    sequential = _rotate(qz, _rotate(qx, v))
    np.testing.assert_array_almost_equal(combined, sequential, decimal=10)


def test_quat_inverse_cancels():
    q = quat_from_euler(0.3, -0.2, 1.1)
    np.testing.assert_array_almost_equal(quat_multiply(q, quat_inverse(q)), quat_identity())
    np.testing.assert_array_almost_equal(quat_inverse(q), quat_conjugate(q))


def test_quat_normalize_zero_is_identity():
    np.testing.assert_array_equal(quat_normalize(np.zeros(4)), quat_identity())


def test_quat_equal_double_cover():
    q = quat_from_axis_angle(vec3(0, 1, 0), 0.7)
    assert quat_equal(q, -q)
    assert not quat_equal(q, quat_identity())


def test_mat4_from_quaternion_is_proper_rotation():
    m = mat4_from_quaternion(quat_from_euler(0.3, 0.5, 0.7))
    rot = m[:3, :3]
    np.testing.assert_array_almost_equal(rot @ rot.T, np.eye(3), decimal=10)
    assert np.linalg.det(rot) == pytest.approx(1.0)
    np.testing.assert_array_equal(m[3], [0, 0, 0, 1])


@pytest.mark.parametrize("angles", [
    (0.0, 0.0, 0.0),
    (np.pi, 0.0, 0.0),
    (0.0, np.pi, 0.0),
    (0.0, 0.0, np.pi),
    (0.4, -1.2, 2.9),
])
def test_mat3_to_quat_all_branches(angles):
    q = quat_from_euler(*angles)
    back = mat3_to_quat(mat4_from_quaternion(q)[:3, :3])
    assert quat_equal(back, q, tol=1e-9)


def test_mat4_compose():
    pos = vec3(1, 2, 3)
    q = quat_identity()
    scale = vec3(2, 2, 2)
    m = mat4_compose(pos, q, scale)
    p = transform_point(m, vec3(1, 0, 0))
    np.testing.assert_array_almost_equal(p, [3, 2, 3])


def test_mat4_compose_scales_before_rotating():
    q = quat_from_axis_angle(vec3(0, 0, 1), np.pi / 2)
    m = mat4_compose(vec3(), q, vec3(2, 3, 4))
    # x axis is scaled by 2 then rotated onto y
    np.testing.assert_array_almost_equal(transform_direction(m, vec3(1, 0, 0)), [0, 2, 0])


def test_mat4_decompose_roundtrip():
    pos = vec3(1, -2, 3)
    q = quat_from_euler(0.2, 0.9, -0.4)
    scale = vec3(1.5, 0.5, 2.0)
    p, r, s = mat4_decompose(mat4_compose(pos, q, scale))
    np.testing.assert_array_almost_equal(p, pos)
    np.testing.assert_array_almost_equal(s, scale)
    assert quat_equal(r, q, tol=1e-9)


def test_mat4_decompose_reflection():
    q = quat_from_euler(0.3, -0.6, 1.2)
    m = mat4_compose(vec3(4, 5, 6), q, vec3(1, -2, 3))
    assert np.linalg.det(m[:3, :3]) < 0

    p, r, s = mat4_decompose(m)
    assert np.all(np.isfinite(r))
    assert abs(np.linalg.norm(r) - 1.0) < 1e-9
    assert np.prod(s) < 0
    np.testing.assert_array_almost_equal(np.abs(s), [1, 2, 3])
    np.testing.assert_array_almost_equal(mat4_compose(p, r, s), m, decimal=10)


def test_mat4_decompose_zero_scale_is_finite():
    m = mat4_compose(vec3(), quat_from_euler(0.1, 0.2, 0.3), vec3(0, 1, 1))
    p, r, s = mat4_decompose(m)
    assert np.all(np.isfinite(r))
    assert abs(np.linalg.norm(r) - 1.0) < 1e-9
    assert s[0] == 0.0


def test_mat4_inverse():
    m = mat4_compose(vec3(5, 10, 15), quat_identity(), vec3(1, 1, 1))
    mi = mat4_inverse(m)
    result = m @ mi
    np.testing.assert_array_almost_equal(result, np.eye(4), decimal=10)


def test_transform_direction_ignores_translation():
    m = mat4_compose(vec3(5, 10, 15), quat_identity(), vec3(1, 1, 1))
    np.testing.assert_array_equal(transform_direction(m, vec3(1, 0, 0)), [1, 0, 0])


def test_normalize():
    v = normalize(vec3(3, 0, 0))
    np.testing.assert_array_almost_equal(v, [1, 0, 0])


def test_normalize_zero():
    v = normalize(vec3(0, 0, 0))
    np.testing.assert_array_equal(v, [0, 0, 0])
