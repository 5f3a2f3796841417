"""Position/rotation/scale value type and frame algebra."""

from dataclasses import dataclass, field

import numpy as np

from mimicrig.core.math_utils import (
    Mat4, Vec3, Quat,
    mat4_compose, mat4_decompose, mat4_inverse,
    quat_equal, quat_identity, vec3,
)


@dataclass
class Transform:
    """A TRS triple. Rotation is a unit quaternion [x, y, z, w]."""
    position: Vec3 = field(default_factory=vec3)
    rotation: Quat = field(default_factory=quat_identity)
    scale: Vec3 = field(default_factory=lambda: vec3(1, 1, 1))

    def __post_init__(self):
        self.position = np.array(self.position, dtype=np.float64)
        self.rotation = np.array(self.rotation, dtype=np.float64)
        self.scale = np.array(self.scale, dtype=np.float64)

    @classmethod
    def identity(cls) -> "Transform":
        return cls()

    @classmethod
    def from_matrix(cls, m: Mat4) -> "Transform":
        position, rotation, scale = mat4_decompose(m)
        return cls(position, rotation, scale)

    def to_matrix(self) -> Mat4:
        return mat4_compose(self.position, self.rotation, self.scale)

    def copy(self) -> "Transform":
        return Transform(self.position.copy(), self.rotation.copy(), self.scale.copy())

    def approx_equal(self, other: "Transform", tol: float = 1e-6) -> bool:
        """Component-wise comparison; q and -q count as the same rotation."""
        return (
            bool(np.allclose(self.position, other.position, atol=tol))
            and bool(np.allclose(self.scale, other.scale, atol=tol))
            and quat_equal(self.rotation, other.rotation, tol)
        )


def compose(a: Transform, b: Transform) -> Transform:
    """Express b's frame inside a's frame (``a @ b``)."""
    return Transform.from_matrix(a.to_matrix() @ b.to_matrix())


def local_from(child_world: Transform, parent_world: Transform) -> Transform:
    """Child transform relative to its parent: ``inverse(parent) @ child``."""
    return Transform.from_matrix(mat4_inverse(parent_world.to_matrix()) @ child_world.to_matrix())
