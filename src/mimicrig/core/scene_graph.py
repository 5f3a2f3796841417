"""Scene graph with hierarchical transforms for skeleton hierarchies."""

from typing import Optional

import numpy as np

from mimicrig.constants import PATH_SEPARATOR
from mimicrig.core.math_utils import (
    Mat4, Vec3, Quat,
    mat4_identity, mat4_compose, quat_identity, vec3,
)
from mimicrig.core.transform import Transform


class HierarchyError(ValueError):
    """Raised when a node is walked towards something that is not its ancestor."""


class SceneNode:
    """A node in the scene graph hierarchy.

    position, quaternion, scale -> local matrix.
    World matrix = parent.world_matrix @ local_matrix.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self.parent: Optional["SceneNode"] = None
        self.children: list["SceneNode"] = []

        # Transform
        self.position: Vec3 = vec3()
        self.quaternion: Quat = quat_identity()
        self.scale: Vec3 = vec3(1, 1, 1)

        # Matrices
        self.local_matrix: Mat4 = mat4_identity()
        self.world_matrix: Mat4 = mat4_identity()

        # Dirty flag for matrix updates
        self._matrix_dirty: bool = True

    def __repr__(self) -> str:
        return f"SceneNode({self.get_path_in_hierarchy()!r})"

    def add(self, child: "SceneNode") -> "SceneNode":
        """Add a child node. Removes from previous parent if any."""
        if child.parent is not None:
            child.parent.remove(child)
        child.parent = self
        self.children.append(child)
        child._matrix_dirty = True
        return self

    def remove(self, child: "SceneNode") -> "SceneNode":
        """Remove a child node."""
        if child in self.children:
            self.children.remove(child)
            child.parent = None
        return self

    def set_position(self, x: float, y: float, z: float) -> "SceneNode":
        self.position = vec3(x, y, z)
        self._matrix_dirty = True
        return self

    def set_quaternion(self, q: Quat) -> "SceneNode":
        self.quaternion = np.array(q, dtype=np.float64)
        self._matrix_dirty = True
        return self

    def set_scale(self, x: float, y: float, z: float) -> "SceneNode":
        self.scale = vec3(x, y, z)
        self._matrix_dirty = True
        return self

    def get_transform(self) -> Transform:
        """Snapshot of the local position, rotation and scale."""
        return Transform(self.position.copy(), self.quaternion.copy(), self.scale.copy())

    def set_transform(self, t: Transform) -> "SceneNode":
        self.position = t.position.copy()
        self.quaternion = t.rotation.copy()
        self.scale = t.scale.copy()
        self._matrix_dirty = True
        return self

    def compose_local(self) -> Mat4:
        """Local matrix from the current TRS, without touching cached state."""
        return mat4_compose(self.position, self.quaternion, self.scale)

    def update_local_matrix(self) -> None:
        """Recompute local matrix from position, quaternion, scale."""
        self.local_matrix = self.compose_local()
        self._matrix_dirty = False

    def update_world_matrix(self, force: bool = False) -> None:
        """Recursively update world matrices for this node and all descendants."""
        if self._matrix_dirty or force:
            self.update_local_matrix()

        if self.parent is not None:
            self.world_matrix = self.parent.world_matrix @ self.local_matrix
        else:
            self.world_matrix = self.local_matrix.copy()

        for child in self.children:
            child.update_world_matrix(force=force)

    def traverse(self, callback) -> None:
        """Visit this node and all descendants depth-first."""
        callback(self)
        for child in self.children:
            child.traverse(callback)

    def find(self, name: str) -> Optional["SceneNode"]:
        """Find first node (self included) with given name, depth-first."""
        if self.name == name:
            return self
        for child in self.children:
            found = child.find(name)
            if found is not None:
                return found
        return None

    def find_by_path(self, path: str) -> Optional["SceneNode"]:
        """Resolve a ``/``-separated path of child names. Empty path is self."""
        node = self
        for part in (p for p in path.split(PATH_SEPARATOR) if p):
            node = next((c for c in node.children if c.name == part), None)
            if node is None:
                return None
        return node

    def get_path_in_hierarchy(self) -> str:
        names = []
        node: Optional[SceneNode] = self
        while node is not None:
            names.append(node.name)
            node = node.parent
        return PATH_SEPARATOR.join(reversed(names))

    def relative_path(self, ancestor: "SceneNode") -> str:
        """Path from ``ancestor`` (exclusive) down to this node."""
        return PATH_SEPARATOR.join(n.name for n in reversed(self.ancestors_to(ancestor)))

    def ancestors_to(self, ancestor: "SceneNode") -> list["SceneNode"]:
        """Nodes from self up to ``ancestor`` (exclusive), self first.

        Raises:
            HierarchyError: if ``ancestor`` is not self or one of self's ancestors.
        """
        chain = []
        node: Optional[SceneNode] = self
        while node is not ancestor:
            if node is None:
                raise HierarchyError(
                    f"{self.get_path_in_hierarchy()} is not a successor node of "
                    f"{ancestor.get_path_in_hierarchy()}"
                )
            chain.append(node)
            node = node.parent
        return chain

    def get_world_position(self) -> Vec3:
        """Extract world position from world matrix."""
        return self.world_matrix[:3, 3].copy()

    def clone(self, name: Optional[str] = None) -> "SceneNode":
        """Deep copy of this subtree (transforms and names), detached."""
        copy = SceneNode(self.name if name is None else name)
        copy.set_transform(self.get_transform())
        for child in self.children:
            copy.add(child.clone())
        return copy


def accumulate_matrix(node: SceneNode, ancestor: SceneNode) -> Mat4:
    """Compose local matrices from ``ancestor`` (exclusive) down to ``node``.

    Raises:
        HierarchyError: if ``ancestor`` is not an ancestor of ``node``.
    """
    m = mat4_identity()
    for n in reversed(node.ancestors_to(ancestor)):
        m = m @ n.compose_local()
    return m
