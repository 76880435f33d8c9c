"""
Renderable Hierarchy
====================
A small scene graph on top of PyVista meshes.

PyVista renders a flat list of actors, while the tree needs parent-relative
transforms (a child branch hangs from a pivot at the top of its parent). Each
`SceneNode` stores a local position and an XYZ Euler rotation; the widget
renders a node's mesh with the node's world matrix as the actor user matrix.

The hierarchy is derived data. It is rebuilt from the model on every change
and never patched in place.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Iterator, Optional, TYPE_CHECKING

import numpy as np
import pyvista as pv

from treepruner.model.tree import NodeKind

if TYPE_CHECKING:
    import numpy.typing as npt


class RenderStyle(StrEnum):
    SURFACE = "surface"
    POINTS = "points"
    WIREFRAME = "wireframe"


# -------------------------------------------------------------------------------
# Transform helpers
# -------------------------------------------------------------------------------

def euler_xyz_matrix(rotation: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Rotation matrix for intrinsic XYZ Euler angles (R = Rx @ Ry @ Rz)."""
    x, y, z = np.asarray(rotation, dtype=np.float64)
    cx, sx = math.cos(x), math.sin(x)
    cy, sy = math.cos(y), math.sin(y)
    cz, sz = math.cos(z), math.sin(z)
    rx = np.array([[1, 0, 0], [0, cx, -sx], [0, sx, cx]], dtype=np.float64)
    ry = np.array([[cy, 0, sy], [0, 1, 0], [-sy, 0, cy]], dtype=np.float64)
    rz = np.array([[cz, -sz, 0], [sz, cz, 0], [0, 0, 1]], dtype=np.float64)
    return rx @ ry @ rz


def matrix_to_euler_xyz(matrix: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Inverse of `euler_xyz_matrix` for a pure rotation matrix."""
    m = np.asarray(matrix, dtype=np.float64)[:3, :3]
    y = math.asin(max(-1.0, min(1.0, m[0, 2])))
    if abs(m[0, 2]) < 0.9999999:
        x = math.atan2(-m[1, 2], m[2, 2])
        z = math.atan2(-m[0, 1], m[0, 0])
    else:
        # Gimbal lock
        x = math.atan2(m[2, 1], m[1, 1])
        z = 0.0
    return np.array([x, y, z], dtype=np.float64)


def compose_matrix(position: npt.ArrayLike, rotation: npt.ArrayLike) -> npt.NDArray[np.float64]:
    matrix = np.eye(4, dtype=np.float64)
    matrix[:3, :3] = euler_xyz_matrix(rotation)
    matrix[:3, 3] = np.asarray(position, dtype=np.float64)
    return matrix


def transform_points(points: npt.ArrayLike, matrix: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    return pts @ matrix[:3, :3].T + matrix[:3, 3]


# -------------------------------------------------------------------------------
# Scene node
# -------------------------------------------------------------------------------

@dataclass(eq=False)
class SceneNode:
    """
    One node of the renderable hierarchy.

    Nodes created for a tree element carry the element id and kind, so picking
    never has to guess what a mesh represents from its shape.
    """
    name: str = ""
    node_id: Optional[int] = None
    kind: Optional[NodeKind] = None
    position: npt.NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    rotation: npt.NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))

    mesh: Optional[pv.PolyData] = None
    color: str = "white"
    style: RenderStyle = RenderStyle.SURFACE
    point_size: float = 10.0
    pickable: bool = False
    highlighted: bool = False

    parent: Optional[SceneNode] = field(default=None, repr=False)
    children: list[SceneNode] = field(default_factory=list, repr=False)

    # ---- hierarchy ----

    def add(self, child: SceneNode) -> SceneNode:
        if child.parent is not None:
            child.parent.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def remove(self, child: SceneNode) -> None:
        if child in self.children:
            self.children.remove(child)
            child.parent = None

    def detach(self) -> None:
        if self.parent is not None:
            self.parent.remove(self)

    def traverse(self) -> Iterator[SceneNode]:
        """Pre-order walk including this node."""
        yield self
        for child in self.children:
            yield from child.traverse()

    def find_by_id(self, node_id: int) -> Optional[SceneNode]:
        for node in self.traverse():
            if node.node_id == node_id:
                return node
        return None

    # ---- transforms ----

    def local_matrix(self) -> npt.NDArray[np.float64]:
        return compose_matrix(self.position, self.rotation)

    def world_matrix(self) -> npt.NDArray[np.float64]:
        matrix = self.local_matrix()
        node = self.parent
        while node is not None:
            matrix = node.local_matrix() @ matrix
            node = node.parent
        return matrix

    def world_position(self) -> npt.NDArray[np.float64]:
        return self.world_matrix()[:3, 3].copy()

    def world_mesh(self) -> Optional[pv.PolyData]:
        """A copy of the mesh with the world transform baked into its points."""
        if self.mesh is None:
            return None
        world = self.mesh.copy()
        world.points = transform_points(self.mesh.points, self.world_matrix())
        return world

    # ---- lifecycle ----

    def clone(self) -> SceneNode:
        """Deep copy of this subtree (meshes copied, no parent)."""
        copy = SceneNode(
            name=self.name,
            node_id=self.node_id,
            kind=self.kind,
            position=self.position.copy(),
            rotation=self.rotation.copy(),
            mesh=self.mesh.copy() if self.mesh is not None else None,
            color=self.color,
            style=self.style,
            point_size=self.point_size,
            pickable=self.pickable,
            highlighted=self.highlighted,
        )
        for child in self.children:
            copy.add(child.clone())
        return copy

    def dispose(self) -> None:
        """Detach from the parent and release every mesh in the subtree."""
        self.detach()
        for node in list(self.traverse()):
            node.mesh = None
            node.highlighted = False
            node.children.clear()
            node.parent = None
