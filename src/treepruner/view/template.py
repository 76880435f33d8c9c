"""
Branch Template Loading
Reads an external mesh file and normalizes it for use as a segment shape:
height scaled to 1 unit, pivot moved to the base of the model. A preview scene
lets the user check the result before it replaces the cylinders.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import os

import numpy as np
import pyvista as pv

from treepruner.config import (
    HIGHLIGHT_COLOR, PREVIEW_AXIS_COLORS, PREVIEW_GRID_COLOR, PREVIEW_GRID_DIVISIONS, PREVIEW_GRID_SIZE,
    TEMPLATE_COLOR
)
from treepruner.view.scene import RenderStyle, SceneNode

logger = logging.getLogger(__name__)


@dataclass
class BranchTemplate:
    mesh: pv.PolyData
    filename: str
    original_dims: tuple[float, float, float]
    scale_factor: float
    pivot: tuple[float, float, float]

    def describe(self) -> dict[str, str]:
        """Human readable info for the template panel."""
        dx, dy, dz = self.original_dims
        px, py, pz = self.pivot
        return {
            "filename": self.filename,
            "dims": f"({dx:.2f}, {dy:.2f}, {dz:.2f})",
            "scale": f"{self.scale_factor:.4f}",
            "pivot": f"({px:.2f}, {py:.2f}, {pz:.2f})",
        }


def normalize_template(mesh: pv.DataSet, filename: str = "") -> BranchTemplate:
    """
    Scale a mesh uniformly to height 1 and put its lowest point at y = 0.

    Raises:
        ValueError: If the mesh has no points or zero height.
    """
    if isinstance(mesh, pv.MultiBlock):
        mesh = mesh.combine()
    surface = mesh.extract_surface().triangulate()
    if surface.n_points == 0:
        raise ValueError("No mesh geometry found in the file.")

    x_min, x_max, y_min, y_max, z_min, z_max = surface.bounds
    height = y_max - y_min
    if height <= 0:
        raise ValueError("Model height is 0.")

    scale = 1.0 / height
    points = np.asarray(surface.points, dtype=np.float64) * scale
    offset_y = -points[:, 1].min()
    points[:, 1] += offset_y

    normalized = surface.copy()
    normalized.points = points

    template = BranchTemplate(
        mesh=normalized,
        filename=filename,
        original_dims=(x_max - x_min, height, z_max - z_min),
        scale_factor=scale,
        pivot=(0.0, offset_y, 0.0),
    )
    logger.info(f"Template '{filename}' normalized: scale {scale:.4f}, pivot offset {offset_y:.2f}.")
    return template


def load_branch_template(path: str) -> BranchTemplate:
    logger.info(f"Loading branch template from: {path}")
    mesh = pv.read(path)
    return normalize_template(mesh, filename=os.path.basename(path))


def build_template_preview(template: BranchTemplate) -> SceneNode:
    """The normalized model on a unit grid, with axes and a marker at its pivot."""
    root = SceneNode(name="template-preview")
    root.add(SceneNode(name="model", mesh=template.mesh.copy(), color=TEMPLATE_COLOR))
    root.add(SceneNode(
        name="grid",
        mesh=pv.Plane(
            center=(0.0, 0.0, 0.0),
            direction=(0.0, 1.0, 0.0),
            i_size=PREVIEW_GRID_SIZE,
            j_size=PREVIEW_GRID_SIZE,
            i_resolution=PREVIEW_GRID_DIVISIONS,
            j_resolution=PREVIEW_GRID_DIVISIONS,
        ),
        color=PREVIEW_GRID_COLOR,
        style=RenderStyle.WIREFRAME,
    ))
    for name, axis, color in zip("xyz", np.eye(3), PREVIEW_AXIS_COLORS):
        root.add(SceneNode(
            name=f"axis-{name}",
            mesh=pv.Line((0.0, 0.0, 0.0), tuple(axis)),
            color=color,
            style=RenderStyle.WIREFRAME,
        ))
    root.add(SceneNode(
        name="pivot",
        mesh=pv.PolyData(np.zeros((1, 3), dtype=np.float64)),
        color=HIGHLIGHT_COLOR,
        style=RenderStyle.POINTS,
        point_size=12.0,
    ))
    return root
