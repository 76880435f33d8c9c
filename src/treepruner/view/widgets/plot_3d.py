"""
3D Visualization Widget (PyVista Wrapper) - Tree Scene
"""

from __future__ import annotations

from typing import Optional
import logging

import numpy as np
import numpy.typing as npt

from PySide6.QtWidgets import QWidget, QVBoxLayout
from PySide6.QtCore import QTimer, QElapsedTimer, Signal
from PySide6.QtGui import QCloseEvent

from pyvistaqt import QtInteractor
import pyvista as pv

from treepruner.config import (
    SKY_COLOR, GROUND_COLOR, HIGHLIGHT_COLOR, FRAME_INTERVAL_MS, DEBRIS_MAX_DT, PREVIEW_BACKGROUND_COLOR
)
from treepruner.model.pruning import PruneSet
from treepruner.model.tree import TreeModel
from treepruner.view.builders import build_tree_view
from treepruner.view.debris import DebrisSim, FallingBody
from treepruner.view.picker import Picker
from treepruner.view.scene import RenderStyle, SceneNode
from treepruner.view.template import BranchTemplate, build_template_preview

logger = logging.getLogger(__name__)


class TreeViewWidget(QWidget):
    """
    Renders the tree hierarchy and runs the frame loop.

    Per frame: camera (handled by the interactor) -> highlight -> debris -> render.
    """
    # Emitted with the element id when the user clicks a highlighted node
    prune_requested = Signal(int)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        self.layout_box: QVBoxLayout = QVBoxLayout(self)
        self.layout_box.setContentsMargins(0, 0, 0, 0)

        self.plotter: QtInteractor = QtInteractor(self)
        self.layout_box.addWidget(self.plotter)

        self._init_plotter()

        # --- Scene state ---
        self._tree_root: Optional[SceneNode] = None
        self._tree_actors: list[tuple[SceneNode, pv.Actor]] = []
        self._debris_actors: dict[FallingBody, list[tuple[SceneNode, pv.Actor]]] = {}
        self._skeleton: bool = False

        # --- Branch model preview ---
        self._preview_actors: list[pv.Actor] = []
        self._saved_camera = None

        # --- Interaction ---
        self.picker = Picker()
        self.debris = DebrisSim()
        self._pointer: Optional[tuple[int, int]] = None
        # Pointer, camera and hierarchy of the last pick
        self._pick_key: Optional[tuple] = None
        self._attach_observers()

        # --- Frame loop ---
        self._clock = QElapsedTimer()
        self._clock.start()
        self._frame_timer = QTimer(self)
        self._frame_timer.setInterval(FRAME_INTERVAL_MS)
        self._frame_timer.timeout.connect(self._tick)
        self._frame_timer.start()

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    def show_tree(
        self,
        tree: TreeModel,
        pruned: PruneSet,
        skeleton: bool = False,
        template: Optional[pv.PolyData] = None,
        reset_camera: bool = False,
    ) -> None:
        """
        Rebuild the whole tree view. The previous hierarchy is released before
        the new one is attached.
        """
        self._clear_tree_layer()
        self._skeleton = skeleton

        self._tree_root = build_tree_view(tree, pruned, skeleton=skeleton, template=template)
        for node in self._tree_root.traverse():
            if node.mesh is not None:
                actor = self._add_node_actor(node)
                actor.visibility = not self.preview_active
                self._tree_actors.append((node, actor))

        if reset_camera:
            self._reset_camera()
        self.plotter.render()

    @property
    def highlighted(self) -> Optional[SceneNode]:
        return self.picker.highlighted

    def drop_highlighted(self) -> Optional[FallingBody]:
        """Turn the highlighted node subtree into falling debris."""
        node = self.picker.highlighted
        if node is None:
            return None
        body = self.debris.spawn(node)
        self._debris_actors[body] = [
            (child, self._add_node_actor(child))
            for child in body.node.traverse()
            if child.mesh is not None
        ]
        self._sync_debris_actors(body)
        return body

    @property
    def preview_active(self) -> bool:
        return bool(self._preview_actors)

    def show_template_preview(self, template: BranchTemplate) -> None:
        """
        Swap the tree scene for a view of the normalized branch model alone.
        The tree camera is kept and restored by `close_template_preview`.
        """
        if self.preview_active:
            self._remove_preview_actors()
        else:
            self._saved_camera = self.plotter.camera_position
            self._clear_debris_layer()
            self._set_scene_visible(False)
            self.plotter.set_background(PREVIEW_BACKGROUND_COLOR)

        for node in build_template_preview(template).traverse():
            if node.mesh is not None:
                self._preview_actors.append(self._add_node_actor(node))

        cam = self.plotter.camera
        cam.position = (1.0, 1.0, 1.0)
        cam.focal_point = (0.0, 0.5, 0.0)
        cam.up = (0.0, 1.0, 0.0)
        self.plotter.reset_camera()
        self.plotter.render()

    def close_template_preview(self) -> None:
        if not self.preview_active:
            return
        self._remove_preview_actors()
        self._set_scene_visible(True)
        self.plotter.set_background(SKY_COLOR)
        if self._saved_camera is not None:
            self.plotter.camera_position = self._saved_camera
            self._saved_camera = None
        self._pick_key = None
        self.plotter.render()

    # ------------------------------------------------------------------------------
    # Internal: Frame loop
    # ------------------------------------------------------------------------------

    def _tick(self) -> None:
        dt = min(self._clock.restart() / 1000.0, DEBRIS_MAX_DT)

        self._update_highlight()

        removed = self.debris.step(dt)
        for body in removed:
            for _, actor in self._debris_actors.pop(body, []):
                self.plotter.remove_actor(actor, render=False)
        for body in self.debris.bodies:
            self._sync_debris_actors(body)

        self.plotter.render()

    def _update_highlight(self) -> None:
        cam = self.plotter.camera
        key = (
            self._tree_root, self._skeleton, self.preview_active, self._pointer,
            tuple(cam.position), tuple(cam.focal_point), tuple(cam.up), tuple(self.plotter.window_size),
        )
        # Same ray through the same hierarchy: same result
        if key == self._pick_key:
            return
        self._pick_key = key

        previous = self.picker.highlighted
        if self._skeleton or self.preview_active or self._pointer is None:
            origin, direction = None, None
        else:
            origin, direction = self._pointer_ray(*self._pointer)

        current = self.picker.update_highlight(origin, direction, self._tree_root)
        if previous is not current:
            self._apply_node_color(previous)
            self._apply_node_color(current)

    def _sync_debris_actors(self, body: FallingBody) -> None:
        for node, actor in self._debris_actors.get(body, []):
            actor.user_matrix = node.world_matrix()

    # ------------------------------------------------------------------------------
    # Internal: Layer Management
    # ------------------------------------------------------------------------------

    def _add_node_actor(self, node: SceneNode) -> pv.Actor:
        points = node.style == RenderStyle.POINTS
        actor = self.plotter.add_mesh(
            node.mesh,
            color=node.color,
            style=str(node.style),
            point_size=node.point_size,
            render_points_as_spheres=points,
            pickable=False,
            show_scalar_bar=False,
            reset_camera=False,
        )
        actor.user_matrix = node.world_matrix()
        return actor

    def _apply_node_color(self, node: Optional[SceneNode]) -> None:
        if node is None:
            return
        for tree_node, actor in self._tree_actors:
            if tree_node is node:
                actor.prop.color = HIGHLIGHT_COLOR if node.highlighted else node.color
                return

    def _clear_tree_layer(self) -> None:
        """Removes the tree actors and releases the old hierarchy."""
        for _, actor in self._tree_actors:
            self.plotter.remove_actor(actor, render=False)
        self._tree_actors.clear()
        self.picker.invalidate()
        if self._tree_root is not None:
            self._tree_root.dispose()
            self._tree_root = None

    def _clear_debris_layer(self) -> None:
        for body in self.debris.clear():
            for _, actor in self._debris_actors.pop(body, []):
                self.plotter.remove_actor(actor, render=False)

    def _remove_preview_actors(self) -> None:
        for actor in self._preview_actors:
            self.plotter.remove_actor(actor, render=False)
        self._preview_actors.clear()

    def _set_scene_visible(self, visible: bool) -> None:
        self._ground_actor.visibility = visible
        for _, actor in self._tree_actors:
            actor.visibility = visible

    # ------------------------------------------------------------------------------
    # Internal: Picking
    # ------------------------------------------------------------------------------

    def _display_to_world(self, x: float, y: float, z: float) -> npt.NDArray[np.float64]:
        ren = self.plotter.renderer
        ren.SetDisplayPoint(x, y, z)
        ren.DisplayToWorld()
        wx, wy, wz, w = ren.GetWorldPoint()
        if w == 0:
            w = 1.0
        return np.array([wx / w, wy / w, wz / w], dtype=np.float64)

    def _pointer_ray(self, x: int, y: int) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        near = self._display_to_world(x, y, 0.0)
        far = self._display_to_world(x, y, 1.0)
        return near, far - near

    # ------------------------------------------------------------------------------
    # Internal: Setup & Observers
    # ------------------------------------------------------------------------------

    def _init_plotter(self) -> None:
        self.plotter.set_background(SKY_COLOR)
        ground = pv.Plane(center=(0.0, 0.0, 0.0), direction=(0.0, 1.0, 0.0), i_size=50, j_size=50)
        self._ground_actor = self.plotter.add_mesh(ground, color=GROUND_COLOR, pickable=False, reset_camera=False)
        self._reset_camera()

    def _reset_camera(self) -> None:
        cam = self.plotter.camera
        cam.position = (15.0, 15.0, 15.0)
        cam.focal_point = (0.0, 4.0, 0.0)
        cam.up = (0.0, 1.0, 0.0)
        self.plotter.reset_camera_clipping_range()

    def _attach_observers(self) -> None:
        iren = self.plotter.iren
        iren.add_observer("MouseMoveEvent", lambda *_: self._on_mouse_move())
        iren.add_observer("LeftButtonPressEvent", lambda *_: self._on_left_press())

    def _on_mouse_move(self) -> None:
        x, y = self.plotter.iren.get_event_position()
        self._pointer = (int(x), int(y))

    def _on_left_press(self) -> None:
        if self._skeleton or self.preview_active:
            return
        node = self.picker.highlighted
        if node is not None and node.node_id is not None:
            self.prune_requested.emit(node.node_id)

    def closeEvent(self, event: QCloseEvent) -> None:
        self._frame_timer.stop()
        self._remove_preview_actors()
        self._clear_debris_layer()
        self._clear_tree_layer()
        self.plotter.close()
        event.accept()
