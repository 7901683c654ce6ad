"""Editor toolbar widget.

Toolbar of the template editor window: undo/redo, adding sections,
alignment, pages, saving and snapping toggles.
"""

from __future__ import annotations

from typing import Optional

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtGui import QAction
from PyQt6.QtWidgets import QComboBox, QMenu, QToolBar, QToolButton, QWidget

from checkform.core.layout_engine import AlignMode
from checkform.models.section import SECTION_LABELS, USER_SECTION_TYPES, SectionType
from checkform.utils.logger import setup_logger

logger = setup_logger(__name__)


ALIGN_LABELS: dict[AlignMode, str] = {
    AlignMode.LEFT: "Align left",
    AlignMode.CENTER: "Align center",
    AlignMode.RIGHT: "Align right",
    AlignMode.TOP: "Align top",
    AlignMode.MIDDLE: "Align middle",
    AlignMode.BOTTOM: "Align bottom",
    AlignMode.DISTRIBUTE_H: "Distribute horizontally",
    AlignMode.DISTRIBUTE_V: "Distribute vertically",
}


class EditorToolbar(QToolBar):
    """Template editor toolbar.

    Keyboard shortcuts are handled by the canvas, so the actions here carry
    none of their own.

    Signals:
        undo_requested: Undo clicked
        redo_requested: Redo clicked
        add_section_requested: Section type to add
        align_requested: Alignment mode
        add_page_requested: Add page clicked
        remove_page_requested: Remove the current page
        page_selected: Page number picked in the page selector
        save_requested: Save clicked
        snap_to_grid_toggled: Grid snapping switched
        snap_to_edges_toggled: Edge snapping switched
        movement_toggled: Mouse movement switched
        grid_toggled: Grid display switched
        zoom_in_requested: Zoom in clicked
        zoom_out_requested: Zoom out clicked
    """

    undo_requested = pyqtSignal()
    redo_requested = pyqtSignal()
    add_section_requested = pyqtSignal(str)  # SectionType value
    align_requested = pyqtSignal(str)  # AlignMode value
    add_page_requested = pyqtSignal()
    remove_page_requested = pyqtSignal()
    page_selected = pyqtSignal(int)
    save_requested = pyqtSignal()
    snap_to_grid_toggled = pyqtSignal(bool)
    snap_to_edges_toggled = pyqtSignal(bool)
    movement_toggled = pyqtSignal(bool)
    grid_toggled = pyqtSignal(bool)
    zoom_in_requested = pyqtSignal()
    zoom_out_requested = pyqtSignal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        self.setObjectName("EditorToolbar")
        self.setMovable(False)
        self.setFloatable(False)

        self._updating_pages = False
        self._setup_ui()

    def _setup_ui(self) -> None:
        self._add_history_actions()
        self.addSeparator()
        self._add_section_actions()
        self._add_alignment_actions()
        self.addSeparator()
        self._add_page_actions()
        self.addSeparator()
        self._add_toggle_actions()
        self.addSeparator()
        self._add_view_actions()

    # ========================
    # Action groups
    # ========================

    def _add_history_actions(self) -> None:
        self._action_save = QAction("Save", self)
        self._action_save.setToolTip("Save template (Ctrl+S)")
        self._action_save.triggered.connect(self.save_requested.emit)
        self.addAction(self._action_save)

        self._action_undo = QAction("Undo", self)
        self._action_undo.setEnabled(False)
        self._action_undo.triggered.connect(self.undo_requested.emit)
        self.addAction(self._action_undo)

        self._action_redo = QAction("Redo", self)
        self._action_redo.setEnabled(False)
        self._action_redo.triggered.connect(self.redo_requested.emit)
        self.addAction(self._action_redo)

        self.set_undo_tooltip("")
        self.set_redo_tooltip("")

    def _add_section_actions(self) -> None:
        button = QToolButton(self)
        button.setText("Add section")
        button.setToolTip("Add a section to the current page")
        button.setPopupMode(QToolButton.ToolButtonPopupMode.InstantPopup)

        menu = QMenu(button)
        self._add_actions: dict[SectionType, QAction] = {}
        for section_type in SectionType:
            if section_type not in USER_SECTION_TYPES:
                continue
            action = menu.addAction(SECTION_LABELS[section_type])
            action.triggered.connect(
                lambda _checked=False, t=section_type: self.add_section_requested.emit(t.value)
            )
            self._add_actions[section_type] = action

        button.setMenu(menu)
        self.addWidget(button)

    def _add_alignment_actions(self) -> None:
        button = QToolButton(self)
        button.setText("Align")
        button.setToolTip("Align the selected sections (Shift+click to select several)")
        button.setPopupMode(QToolButton.ToolButtonPopupMode.InstantPopup)

        menu = QMenu(button)
        self._align_actions: dict[AlignMode, QAction] = {}
        for mode, label in ALIGN_LABELS.items():
            if mode == AlignMode.DISTRIBUTE_H:
                menu.addSeparator()
            action = menu.addAction(label)
            action.triggered.connect(
                lambda _checked=False, m=mode: self.align_requested.emit(m.value)
            )
            self._align_actions[mode] = action

        button.setMenu(menu)
        self.addWidget(button)

    def _add_page_actions(self) -> None:
        self._page_combo = QComboBox(self)
        self._page_combo.setToolTip("Current page")
        self._page_combo.currentIndexChanged.connect(self._on_page_index_changed)
        self.addWidget(self._page_combo)

        self._action_add_page = QAction("Add page", self)
        self._action_add_page.triggered.connect(self.add_page_requested.emit)
        self.addAction(self._action_add_page)

        self._action_remove_page = QAction("Remove page", self)
        self._action_remove_page.setToolTip("Remove the current page and its sections")
        self._action_remove_page.triggered.connect(self.remove_page_requested.emit)
        self.addAction(self._action_remove_page)

        self.set_pages(1, 1)

    def _add_toggle_actions(self) -> None:
        self._action_snap_grid = self._checkable("Snap to grid", self.snap_to_grid_toggled)
        self._action_snap_edges = self._checkable("Snap to edges", self.snap_to_edges_toggled)
        self._action_movement = self._checkable("Allow moving", self.movement_toggled)
        self._action_grid = self._checkable("Show grid", self.grid_toggled)

    def _add_view_actions(self) -> None:
        action_zoom_out = QAction("Zoom out", self)
        action_zoom_out.triggered.connect(self.zoom_out_requested.emit)
        self.addAction(action_zoom_out)

        action_zoom_in = QAction("Zoom in", self)
        action_zoom_in.triggered.connect(self.zoom_in_requested.emit)
        self.addAction(action_zoom_in)

    def _checkable(self, text: str, signal) -> QAction:
        action = QAction(text, self)
        action.setCheckable(True)
        action.setChecked(True)
        action.toggled.connect(signal.emit)
        self.addAction(action)
        return action

    # ========================
    # State updates
    # ========================

    def set_undo_enabled(self, enabled: bool) -> None:
        self._action_undo.setEnabled(enabled)

    def set_redo_enabled(self, enabled: bool) -> None:
        self._action_redo.setEnabled(enabled)

    def set_undo_tooltip(self, description: str) -> None:
        """Show the action that undo would revert."""
        if description:
            self._action_undo.setToolTip(f"Undo: {description} (Ctrl+Z)")
        else:
            self._action_undo.setToolTip("Undo (Ctrl+Z)")

    def set_redo_tooltip(self, description: str) -> None:
        if description:
            self._action_redo.setToolTip(f"Redo: {description} (Ctrl+Y)")
        else:
            self._action_redo.setToolTip("Redo (Ctrl+Y / Ctrl+Shift+Z)")

    def set_pages(self, page_count: int, current_page: int) -> None:
        """Refill the page selector.

        Args:
            page_count: Number of pages
            current_page: Page to show as selected
        """
        self._updating_pages = True
        try:
            self._page_combo.clear()
            for page in range(1, page_count + 1):
                self._page_combo.addItem(f"Page {page}", page)
            self._page_combo.setCurrentIndex(current_page - 1)
        finally:
            self._updating_pages = False
        self._action_remove_page.setEnabled(page_count > 1)

    def set_toggles(
        self,
        snap_to_grid: bool,
        snap_to_edges: bool,
        movement_enabled: bool,
        show_grid: bool,
    ) -> None:
        """Sync the toggle buttons without emitting signals."""
        for action, checked in (
            (self._action_snap_grid, snap_to_grid),
            (self._action_snap_edges, snap_to_edges),
            (self._action_movement, movement_enabled),
            (self._action_grid, show_grid),
        ):
            action.blockSignals(True)
            action.setChecked(checked)
            action.blockSignals(False)

    def _on_page_index_changed(self, index: int) -> None:
        if self._updating_pages or index < 0:
            return
        self.page_selected.emit(index + 1)
