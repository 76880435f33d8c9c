"""
Picker
======
Maps a pointer ray to the tree element under the cursor and keeps track of the
single highlighted node.

The ray comes from the 3D widget (camera + cursor position). World-space copies
of the pickable meshes are merged into one surface whose cells carry the index
of the node they came from, and a single VTK OBB tree is built over it. The
surface and its locator live until the hierarchy is rebuilt, so a pick costs
one tree query no matter how many nodes the view holds.
"""
from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

import numpy as np
import pyvista as pv
from vtkmodules.vtkCommonCore import vtkIdList, vtkPoints
from vtkmodules.vtkFiltersCore import vtkAppendPolyData
from vtkmodules.vtkFiltersGeneral import vtkOBBTree

from treepruner.view.scene import SceneNode

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

NODE_INDEX_ARRAY = "node_index"


class Picker:
    def __init__(self, ray_length: float = 1000.0) -> None:
        self.ray_length = ray_length
        self._highlighted: Optional[SceneNode] = None

        # Geometry cache, keyed by the root it was built from
        self._cache_root: Optional[SceneNode] = None
        self._nodes: list[SceneNode] = []
        self._surface: Optional[pv.PolyData] = None
        self._locator: Optional[vtkOBBTree] = None

    @property
    def highlighted(self) -> Optional[SceneNode]:
        return self._highlighted

    def invalidate(self) -> None:
        """Forget cached geometry (call after the hierarchy was rebuilt)."""
        self._cache_root = None
        self._nodes = []
        self._surface = None
        self._locator = None
        self._highlighted = None

    def pick(
        self,
        origin: npt.ArrayLike,
        direction: npt.ArrayLike,
        root: SceneNode,
    ) -> Optional[SceneNode]:
        """Nearest pickable node with an element id hit by the ray, or None."""
        origin = np.asarray(origin, dtype=np.float64)
        direction = np.asarray(direction, dtype=np.float64)
        norm = np.linalg.norm(direction)
        if norm == 0:
            return None
        if not self._ensure_locator(root):
            return None
        end_point = origin + direction / norm * self.ray_length

        points = vtkPoints()
        cell_ids = vtkIdList()
        self._locator.IntersectWithLine(origin, end_point, points, cell_ids)
        n_hits = cell_ids.GetNumberOfIds()
        if n_hits == 0:
            return None

        hits = np.array([points.GetPoint(i) for i in range(n_hits)], dtype=np.float64)
        nearest = int(np.argmin(np.linalg.norm(hits - origin, axis=1)))
        owner = self._surface.cell_data[NODE_INDEX_ARRAY][cell_ids.GetId(nearest)]
        return self._nodes[int(owner)]

    def clear_highlight(self) -> None:
        if self._highlighted is not None:
            self._highlighted.highlighted = False
            self._highlighted = None

    def update_highlight(
        self,
        origin: Optional[npt.ArrayLike],
        direction: Optional[npt.ArrayLike],
        root: Optional[SceneNode],
    ) -> Optional[SceneNode]:
        """Clear the previous highlight, then highlight whatever the ray hits."""
        self.clear_highlight()
        if origin is None or direction is None or root is None:
            return None

        node = self.pick(origin, direction, root)
        if node is not None:
            node.highlighted = True
            self._highlighted = node
        return node

    def _ensure_locator(self, root: SceneNode) -> bool:
        """Build the merged surface and its OBB tree once per hierarchy."""
        if root is self._cache_root:
            return self._locator is not None

        self._cache_root = root
        self._nodes = [
            node for node in root.traverse()
            if node.pickable and node.node_id is not None and node.mesh is not None
        ]
        if not self._nodes:
            self._surface = None
            self._locator = None
            return False

        append = vtkAppendPolyData()
        for index, node in enumerate(self._nodes):
            mesh = node.world_mesh()
            mesh.cell_data[NODE_INDEX_ARRAY] = np.full(mesh.n_cells, index, dtype=np.int64)
            append.AddInputData(mesh)
        append.Update()
        self._surface = pv.wrap(append.GetOutput())

        locator = vtkOBBTree()
        locator.SetDataSet(self._surface)
        locator.BuildLocator()
        self._locator = locator

        logger.debug(f"Pick locator built over {len(self._nodes)} nodes, {self._surface.n_cells} cells.")
        return True
