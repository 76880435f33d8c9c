"""
Main Application Window
=======================
The primary GUI container that holds the Menu Bar, the control panel and the
3D view.

Why is this file needed?
------------------------
1. Layout: It organizes the high-level visual structure of the application.
2. Routing: It connects user actions (generate, prune, save, load) to the
   session and rebuilds the view after every structural change.
"""
import logging
import os
import random
from typing import Optional

from PySide6.QtWidgets import (
    QMainWindow, QSplitter, QFileDialog, QMessageBox
)
from PySide6.QtCore import Qt, QSettings
from PySide6.QtGui import QAction, QGuiApplication

from treepruner.config import RANDOM_SEED_MAX, SETTINGS_STATE_KEY, STATE_LINK_PREFIX
from treepruner.model.codec import state_query
from treepruner.model.io import IOManager
from treepruner.model.state import PruneOutcome, TreeSession, TreeState
from treepruner.view.tabs.tab_tree import TreeControlPanel
from treepruner.view.template import BranchTemplate, load_branch_template
from treepruner.view.widgets.plot_3d import TreeViewWidget

logger = logging.getLogger(__name__)

VISIBLE_APP_NAME = "Tree Pruner"


class MainWindow(QMainWindow):
    def __init__(self, session: TreeSession, initial_state: TreeState) -> None:
        super().__init__()
        self.session: TreeSession = session
        self.settings = QSettings()

        # Loaded template (preview) vs. template in use for segments
        self._loaded_template: Optional[BranchTemplate] = None
        self._active_template: Optional[BranchTemplate] = None

        self.update_window_title()
        self.resize(1400, 900)

        # --- SPLITTER (CONTENT AREA) ---
        splitter = QSplitter(Qt.Horizontal)
        self.setCentralWidget(splitter)

        # --- LEFT SIDE: Control Panel ---
        self.tree_panel = TreeControlPanel(self.session)
        splitter.addWidget(self.tree_panel)

        # --- RIGHT SIDE: 3D Visualization ---
        self.visualizer = TreeViewWidget()
        splitter.addWidget(self.visualizer)

        # Set initial proportions (1 part sidebar : 4 parts 3D view)
        splitter.setSizes([350, 1050])

        # --- SIGNAL CONNECTIONS ---
        self.tree_panel.generate_requested.connect(self.on_generate_requested)
        self.tree_panel.random_requested.connect(self.on_random_requested)
        self.tree_panel.copy_link_requested.connect(self.on_copy_link)
        self.tree_panel.save_requested.connect(self.on_file_save)
        self.tree_panel.load_requested.connect(self.on_file_open)
        self.tree_panel.skeleton_toggled.connect(lambda _: self.update_visualization())
        self.tree_panel.template_load_requested.connect(self.on_template_load)
        self.tree_panel.template_use_requested.connect(self.on_template_use)
        self.tree_panel.template_clear_requested.connect(self.on_template_clear)
        self.tree_panel.template_preview_toggled.connect(self.on_template_preview)
        self.visualizer.prune_requested.connect(self.on_prune_requested)

        # --- ACTIONS & MENUS ---
        self._create_actions()
        self._create_menus()

        # Initial tree
        self.generate(initial_state.seed, initial_state.pruned_ids, reset_camera=True)

    def _create_actions(self) -> None:
        self.act_random = QAction("Random Tree", self)
        self.act_random.setShortcut("Ctrl+N")
        self.act_random.triggered.connect(self.on_random_requested)

        self.act_open = QAction("Load State...", self)
        self.act_open.setShortcut("Ctrl+O")
        self.act_open.triggered.connect(self.on_file_open)

        self.act_save = QAction("Save State...", self)
        self.act_save.setShortcut("Ctrl+S")
        self.act_save.triggered.connect(self.on_file_save)

        self.act_copy_link = QAction("Copy Link", self)
        self.act_copy_link.setShortcut("Ctrl+Shift+C")
        self.act_copy_link.triggered.connect(self.on_copy_link)

        self.act_exit = QAction("Exit", self)
        self.act_exit.triggered.connect(self.close)

    def _create_menus(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        file_menu.addAction(self.act_random)
        file_menu.addSeparator()
        file_menu.addAction(self.act_open)
        file_menu.addAction(self.act_save)
        file_menu.addAction(self.act_copy_link)
        file_menu.addSeparator()
        file_menu.addAction(self.act_exit)

    # --- HELPER METHODS ---
    def update_window_title(self) -> None:
        title = f"{VISIBLE_APP_NAME} - [seed {self.session.seed}]"
        if self.session.filepath:
            title += f" {os.path.basename(self.session.filepath)}"
        self.setWindowTitle(title)

    def generate(self, seed: int, pruned_ids=None, reset_camera: bool = False) -> None:
        self.session.generate(seed, pruned_ids)
        self.update_visualization(reset_camera=reset_camera)

    def update_visualization(self, reset_camera: bool = False) -> None:
        """Full rebuild of the 3D view, then sync the persisted state."""
        if self.session.tree is None:
            return
        template = self._active_template.mesh if self._active_template else None
        self.visualizer.show_tree(
            self.session.tree,
            self.session.pruned,
            skeleton=self.tree_panel.skeleton,
            template=template,
            reset_camera=reset_camera,
        )
        self.on_state_changed()

    def on_state_changed(self) -> None:
        """Keep the state string (panel + settings) in sync with the session."""
        self.tree_panel.load_from_state()
        self.settings.setValue(SETTINGS_STATE_KEY, self.session.state_string())
        self.update_window_title()

    # --- TREE SLOTS ---

    def on_generate_requested(self, text: str) -> None:
        try:
            seed = int(text.strip())
        except ValueError:
            logger.debug(f"Ignoring invalid seed input: {text!r}")
            return
        self.session.filepath = None
        self.generate(seed)

    def on_random_requested(self) -> None:
        self.session.filepath = None
        self.generate(random.randrange(RANDOM_SEED_MAX))

    def on_prune_requested(self, node_id: int) -> None:
        outcome = self.session.prune(node_id)
        if outcome == PruneOutcome.PRUNED:
            self.visualizer.drop_highlighted()
            self.update_visualization()
        elif outcome == PruneOutcome.REJECTED:
            self.statusBar().showMessage("The base of the trunk cannot be pruned.", 3000)

    def on_copy_link(self) -> None:
        link = STATE_LINK_PREFIX + state_query(self.session.seed, self.session.pruned.ids)
        QGuiApplication.clipboard().setText(link)
        self.statusBar().showMessage("Link copied!", 3000)

    # --- FILE SLOTS ---

    def on_file_open(self) -> None:
        fname, _ = QFileDialog.getOpenFileName(
            self, "Load Tree State", "", "JSON Files (*.json)"
        )
        if not fname:
            return
        try:
            state = IOManager.load_state(fname)
        except (ValueError, OSError) as e:
            QMessageBox.critical(self, "Error", f"Could not load the tree state:\n{e}")
            return
        self.session.filepath = fname
        self.generate(state.seed, state.pruned_ids, reset_camera=True)

    def on_file_save(self) -> None:
        state = self.session.to_state()
        fname, _ = QFileDialog.getSaveFileName(
            self, "Save Tree State", IOManager.default_filename(state), "JSON Files (*.json)"
        )
        if not fname:
            return
        if not fname.endswith(".json"):
            fname += ".json"
        try:
            IOManager.save_state(state, fname)
            self.session.filepath = fname
            self.update_window_title()
        except OSError as e:
            QMessageBox.critical(self, "Error", f"Could not save the tree state:\n{e}")

    # --- TEMPLATE SLOTS ---

    def on_template_load(self) -> None:
        fname, _ = QFileDialog.getOpenFileName(
            self, "Load Branch Model", "", "Mesh Files (*.glb *.gltf *.obj *.stl *.ply *.vtk *.vtp)"
        )
        if not fname:
            return
        try:
            self._loaded_template = load_branch_template(fname)
        except (ValueError, OSError) as e:
            logger.exception(f"Failed to load branch model: {e}")
            QMessageBox.critical(self, "Error", f"Could not load the model:\n{e}")
            return
        self.tree_panel.set_template_info(self._loaded_template.describe())
        # Show what was loaded before it is applied
        if self.tree_panel.preview_checked:
            self.visualizer.show_template_preview(self._loaded_template)
        else:
            self.tree_panel.set_preview_checked(True)

    def on_template_preview(self, checked: bool) -> None:
        if checked and self._loaded_template is not None:
            self.visualizer.show_template_preview(self._loaded_template)
        else:
            self.visualizer.close_template_preview()

    def on_template_use(self) -> None:
        if self._loaded_template is None:
            return
        self._active_template = self._loaded_template
        self.tree_panel.set_preview_checked(False)
        self.statusBar().showMessage("Branch model updated!", 3000)
        self.update_visualization()

    def on_template_clear(self) -> None:
        self._loaded_template = None
        self._active_template = None
        self.tree_panel.set_template_info(None)
        self.update_visualization()

    def closeEvent(self, event, /) -> None:
        self.settings.setValue(SETTINGS_STATE_KEY, self.session.state_string())
        if self.visualizer:
            self.visualizer.close()
        event.accept()
