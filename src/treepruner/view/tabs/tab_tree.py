from typing import Optional

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QGroupBox, QFormLayout, QHBoxLayout,
    QLineEdit, QPushButton, QCheckBox, QLabel
)
from PySide6.QtCore import Signal

from treepruner.model.state import TreeSession


class TreeControlPanel(QWidget):
    """Seed input, state string, view mode and branch template controls."""
    generate_requested = Signal(str)
    random_requested = Signal()
    copy_link_requested = Signal()
    save_requested = Signal()
    load_requested = Signal()
    skeleton_toggled = Signal(bool)
    template_load_requested = Signal()
    template_use_requested = Signal()
    template_clear_requested = Signal()
    template_preview_toggled = Signal(bool)

    def __init__(self, session: TreeSession) -> None:
        super().__init__()
        self.session = session

        layout = QVBoxLayout(self)

        # --- Tree group ---
        grp_tree = QGroupBox("Tree")
        form = QFormLayout(grp_tree)

        self.seed_edit = QLineEdit()
        self.seed_edit.setPlaceholderText("Integer seed")
        self.seed_edit.returnPressed.connect(self._on_generate_clicked)
        form.addRow("Seed:", self.seed_edit)

        row = QHBoxLayout()
        self.btn_generate = QPushButton("Generate")
        self.btn_generate.clicked.connect(self._on_generate_clicked)
        self.btn_random = QPushButton("Random")
        self.btn_random.clicked.connect(self.random_requested)
        row.addWidget(self.btn_generate)
        row.addWidget(self.btn_random)
        form.addRow(row)

        self.state_edit = QLineEdit()
        self.state_edit.setReadOnly(True)
        form.addRow("State:", self.state_edit)

        row = QHBoxLayout()
        self.btn_copy = QPushButton("Copy link")
        self.btn_copy.clicked.connect(self.copy_link_requested)
        self.btn_save = QPushButton("Save...")
        self.btn_save.clicked.connect(self.save_requested)
        self.btn_load = QPushButton("Load...")
        self.btn_load.clicked.connect(self.load_requested)
        row.addWidget(self.btn_copy)
        row.addWidget(self.btn_save)
        row.addWidget(self.btn_load)
        form.addRow(row)

        self.skeleton_check = QCheckBox("Skeleton view (points)")
        self.skeleton_check.toggled.connect(self.skeleton_toggled)
        form.addRow(self.skeleton_check)

        layout.addWidget(grp_tree)

        # --- Template group ---
        grp_template = QGroupBox("Branch model")
        form = QFormLayout(grp_template)

        row = QHBoxLayout()
        self.btn_template_load = QPushButton("Load model...")
        self.btn_template_load.clicked.connect(self.template_load_requested)
        self.btn_template_use = QPushButton("Use model")
        self.btn_template_use.setEnabled(False)
        self.btn_template_use.clicked.connect(self.template_use_requested)
        self.btn_template_clear = QPushButton("Clear model")
        self.btn_template_clear.clicked.connect(self.template_clear_requested)
        row.addWidget(self.btn_template_load)
        row.addWidget(self.btn_template_use)
        row.addWidget(self.btn_template_clear)
        form.addRow(row)

        self.btn_template_preview = QPushButton("Preview model")
        self.btn_template_preview.setCheckable(True)
        self.btn_template_preview.setEnabled(False)
        self.btn_template_preview.toggled.connect(self.template_preview_toggled)
        form.addRow(self.btn_template_preview)

        self.info_filename = QLabel("None")
        self.info_dims = QLabel("N/A")
        self.info_scale = QLabel("N/A")
        self.info_pivot = QLabel("N/A")
        form.addRow("File:", self.info_filename)
        form.addRow("Original size:", self.info_dims)
        form.addRow("Scale factor:", self.info_scale)
        form.addRow("Pivot:", self.info_pivot)

        layout.addWidget(grp_template)

        hint = QLabel("Hover a segment or leaf and click to prune it.")
        hint.setWordWrap(True)
        layout.addWidget(hint)
        layout.addStretch()

        self.load_from_state()

    def _on_generate_clicked(self) -> None:
        self.generate_requested.emit(self.seed_edit.text())

    @property
    def skeleton(self) -> bool:
        return self.skeleton_check.isChecked()

    def load_from_state(self) -> None:
        """Sync widgets with the session (after generate, prune or load)."""
        self.seed_edit.setText(str(self.session.seed))
        self.state_edit.setText(self.session.state_string())

    def set_template_info(self, info: Optional[dict[str, str]]) -> None:
        info = info or {}
        self.info_filename.setText(info.get("filename", "None"))
        self.info_dims.setText(info.get("dims", "N/A"))
        self.info_scale.setText(info.get("scale", "N/A"))
        self.info_pivot.setText(info.get("pivot", "N/A"))
        self.btn_template_use.setEnabled(bool(info))
        self.btn_template_preview.setEnabled(bool(info))
        if not info:
            self.set_preview_checked(False)

    @property
    def preview_checked(self) -> bool:
        return self.btn_template_preview.isChecked()

    def set_preview_checked(self, checked: bool) -> None:
        self.btn_template_preview.setChecked(checked)
