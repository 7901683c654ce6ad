"""Template editor window.

Layout:
    ┌──────────────────────────────────────────────┐
    │                   Toolbar                     │
    ├───────────────────────────────┬──────────────┤
    │                               │              │
    │        Page canvas            │  Sections    │
    │        (scrollable)           │  on page     │
    │                               │              │
    ├───────────────────────────────┴──────────────┤
    │                  Status bar                   │
    └──────────────────────────────────────────────┘
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QCloseEvent, QKeyEvent, QKeySequence
from PyQt6.QtWidgets import (
    QApplication,
    QFileDialog,
    QInputDialog,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMenu,
    QScrollArea,
    QSplitter,
    QStatusBar,
    QWidget,
)

from checkform.core.config_manager import ConfigManager
from checkform.core.editor_controller import EditorController
from checkform.models.section import SectionType
from checkform.models.template_document import TemplateDocument
from checkform.services.checklist_source import ChecklistSource
from checkform.services.preset_source import PresetSource
from checkform.utils.constants import APP_NAME, WINDOW_MIN_HEIGHT, WINDOW_MIN_WIDTH
from checkform.utils.exceptions import ConfigError
from checkform.utils.logger import setup_logger
from checkform.ui.widgets.editor_toolbar import EditorToolbar
from checkform.ui.widgets.section_canvas import SectionCanvas

logger = setup_logger(__name__)

STATUS_TIMEOUT_MS = 5000

# Section list item data role
SECTION_ID_ROLE = Qt.ItemDataRole.UserRole


class EditorWindow(QMainWindow):
    """Template editor main window.

    Example:
        >>> window = EditorWindow(controller)
        >>> window.show()
    """

    def __init__(
        self,
        controller: EditorController,
        config: Optional[ConfigManager] = None,
        checklist_source: Optional[ChecklistSource] = None,
        preset_source: Optional[PresetSource] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        """Initialize the window.

        Args:
            controller: Editor controller
            config: Configuration manager for remembered preferences
            checklist_source: Checklist templates offered for binding
            preset_source: Section presets offered for insertion
            parent: Parent widget
        """
        super().__init__(parent)

        self._controller = controller
        self._config = config
        self._checklist_source = checklist_source or ChecklistSource()
        self._preset_source = preset_source or PresetSource()

        self._setup_window()
        self._setup_menubar()
        self._setup_toolbar()
        self._setup_central_widget()
        self._setup_statusbar()
        self._connect_signals()
        self._apply_preferences()
        self._refresh_document()

        logger.debug("Editor window initialized")

    @property
    def controller(self) -> EditorController:
        return self._controller

    @property
    def canvas(self) -> SectionCanvas:
        return self._canvas

    @property
    def toolbar(self) -> EditorToolbar:
        return self._toolbar

    @property
    def section_list(self) -> QListWidget:
        return self._section_list

    # ========================
    # Setup
    # ========================

    def _setup_window(self) -> None:
        self.setWindowTitle(APP_NAME)
        self.setMinimumSize(WINDOW_MIN_WIDTH, WINDOW_MIN_HEIGHT)
        self.resize(1280, 900)

    def _setup_menubar(self) -> None:
        menubar = self.menuBar()

        file_menu = menubar.addMenu("&File")
        self._add_action(file_menu, "&New template...", self._on_new_template, QKeySequence.StandardKey.New)
        self._add_action(file_menu, "&Open template...", self._on_open_template, QKeySequence.StandardKey.Open)
        self._add_action(file_menu, "&Duplicate template...", self._on_duplicate_template)
        self._add_action(file_menu, "De&lete template", self._on_delete_template)
        file_menu.addSeparator()
        self._add_action(file_menu, "&Import...", self._on_import)
        self._add_action(file_menu, "&Export...", self._on_export)
        file_menu.addSeparator()
        self._add_action(file_menu, "Save &version", self._on_create_version)
        self._add_action(file_menu, "&Restore version...", self._on_restore_version)
        file_menu.addSeparator()
        self._add_action(file_menu, "Set &background...", self._on_set_background)
        self._add_action(file_menu, "Clear background", lambda: self._controller.set_background_image(None))
        file_menu.addSeparator()
        self._add_action(file_menu, "&Close", self.close, QKeySequence.StandardKey.Close)

        edit_menu = self.menuBar().addMenu("&Edit")
        self._add_action(edit_menu, "&Copy", self._controller.copy_selected)
        self._add_action(edit_menu, "&Paste", self._controller.paste)
        self._add_action(edit_menu, "&Delete", self._on_delete_selected)
        edit_menu.addSeparator()
        self._add_action(edit_menu, "Toggle &visibility", self._on_toggle_visibility)
        self._add_action(edit_menu, "Toggle &lock", self._on_toggle_lock)

        checklist_menu = self.menuBar().addMenu("&Checklist")
        bind_menu = checklist_menu.addMenu("&Bind to template")
        clone_menu = checklist_menu.addMenu("&Copy items from template")
        for template in self._checklist_source:
            bind_menu.addAction(template.name).triggered.connect(
                lambda _checked=False, t=template: self._on_checklist(t, clone=False)
            )
            clone_menu.addAction(template.name).triggered.connect(
                lambda _checked=False, t=template: self._on_checklist(t, clone=True)
            )

        insert_menu = self.menuBar().addMenu("&Insert")
        category_menus: dict[str, QMenu] = {}
        for category in self._preset_source.categories():
            category_menus[category] = insert_menu.addMenu(category)
        for preset in self._preset_source:
            category_menus[preset.category].addAction(preset.name).triggered.connect(
                lambda _checked=False, p=preset: self._controller.add_preset_section(p)
            )

    def _add_action(self, menu: QMenu, text: str, slot, shortcut=None) -> QAction:
        action = QAction(text, self)
        if shortcut is not None:
            action.setShortcut(shortcut)
        action.triggered.connect(lambda _checked=False: slot())
        menu.addAction(action)
        return action

    def _setup_toolbar(self) -> None:
        self._toolbar = EditorToolbar(self)
        self.addToolBar(self._toolbar)

    def _setup_central_widget(self) -> None:
        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.setHandleWidth(1)
        self.setCentralWidget(splitter)

        self._canvas = SectionCanvas(self._controller)
        self._scroll_area = QScrollArea()
        self._scroll_area.setWidget(self._canvas)
        self._scroll_area.setAlignment(Qt.AlignmentFlag.AlignCenter)
        splitter.addWidget(self._scroll_area)

        self._section_list = QListWidget()
        self._section_list.setMinimumWidth(220)
        self._section_list.setMaximumWidth(320)
        splitter.addWidget(self._section_list)

        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 0)

    def _setup_statusbar(self) -> None:
        self._statusbar = QStatusBar()
        self.setStatusBar(self._statusbar)
        self._statusbar.showMessage("Ready")

    def _connect_signals(self) -> None:
        c = self._controller
        c.document_changed.connect(lambda _doc: self._refresh_document())
        c.selection_changed.connect(self._on_selection_changed)
        c.warning_raised.connect(self._show_warning)
        c.error_raised.connect(self._show_error)
        c.saved.connect(self._on_saved)
        c.history.history_changed.connect(self._refresh_history)

        t = self._toolbar
        t.undo_requested.connect(c.undo)
        t.redo_requested.connect(c.redo)
        t.save_requested.connect(c.save)
        t.add_section_requested.connect(c.add_section)
        t.align_requested.connect(c.align)
        t.add_page_requested.connect(c.add_page)
        t.remove_page_requested.connect(lambda: c.remove_page(c.state.current_page))
        t.page_selected.connect(c.set_current_page)
        t.snap_to_grid_toggled.connect(c.set_snap_to_grid)
        t.snap_to_edges_toggled.connect(c.set_snap_to_edges)
        t.movement_toggled.connect(c.set_movement_enabled)
        t.grid_toggled.connect(self._canvas.set_show_grid)
        t.zoom_in_requested.connect(self._canvas.zoom_in)
        t.zoom_out_requested.connect(self._canvas.zoom_out)

        self._section_list.itemClicked.connect(self._on_section_item_clicked)

    def _apply_preferences(self) -> None:
        state = self._controller.state
        if self._config is not None:
            for key, setter in (
                ("snap_to_grid", self._controller.set_snap_to_grid),
                ("snap_to_edges", self._controller.set_snap_to_edges),
            ):
                value = self._config.get_preference(key)
                if value is not None:
                    setter(bool(value))
            self._controller.set_show_grid(bool(self._config.get_preference("show_grid")))
            self._canvas.set_zoom(float(self._config.get_preference("zoom")))

        self._toolbar.set_toggles(
            state.snap_to_grid, state.snap_to_edges, state.movement_enabled, state.show_grid
        )

    # ========================
    # Refresh
    # ========================

    def _refresh_document(self) -> None:
        doc = self._controller.document
        state = self._controller.state
        self._update_window_title()

        if doc is None:
            self._toolbar.set_pages(1, 1)
            self._section_list.clear()
            return

        self._toolbar.set_pages(doc.page_count, state.current_page)
        self._refresh_section_list(doc)

    def _refresh_section_list(self, doc: TemplateDocument) -> None:
        state = self._controller.state
        self._section_list.blockSignals(True)
        self._section_list.clear()
        for section in doc.sections_on_page(state.current_page):
            text = section.label
            if not section.visible:
                text += " (hidden)"
            if section.locked:
                text += " (locked)"
            item = QListWidgetItem(text)
            item.setData(SECTION_ID_ROLE, section.id)
            self._section_list.addItem(item)
            item.setSelected(section.id in state.selected_sections)
        self._section_list.blockSignals(False)

    def _refresh_history(self) -> None:
        history = self._controller.history
        self._toolbar.set_undo_enabled(history.can_undo)
        self._toolbar.set_redo_enabled(history.can_redo)
        self._toolbar.set_undo_tooltip(history.undo_description if history.can_undo else "")
        self._toolbar.set_redo_tooltip(history.redo_description if history.can_redo else "")

    def _update_window_title(self) -> None:
        doc = self._controller.document
        title = APP_NAME
        if doc is not None:
            title = f"{APP_NAME} - {doc.name}"
            if self._controller.state.dirty:
                title += " *"
        self.setWindowTitle(title)

    # ========================
    # Slots
    # ========================

    def _show_warning(self, message: str) -> None:
        self._statusbar.showMessage(message, STATUS_TIMEOUT_MS)

    def _show_error(self, message: str) -> None:
        self._statusbar.showMessage(f"Error: {message}", STATUS_TIMEOUT_MS * 2)

    def _on_saved(self, doc: TemplateDocument) -> None:
        self._statusbar.showMessage(f"Saved: {doc.name}", STATUS_TIMEOUT_MS)
        self._update_window_title()

    def _on_selection_changed(self, _ids: list) -> None:
        doc = self._controller.document
        if doc is not None:
            self._refresh_section_list(doc)
        self._canvas.update()

    def _on_section_item_clicked(self, item: QListWidgetItem) -> None:
        self._controller.select_section(item.data(SECTION_ID_ROLE))
        self._canvas.setFocus()

    def _selected_id(self) -> Optional[str]:
        return self._controller.state.selected_section

    def _on_delete_selected(self) -> None:
        if self._selected_id():
            self._controller.delete_section(self._selected_id())

    def _on_toggle_visibility(self) -> None:
        if self._selected_id():
            self._controller.toggle_visibility(self._selected_id())

    def _on_toggle_lock(self) -> None:
        if self._selected_id():
            self._controller.toggle_lock(self._selected_id())

    def _on_checklist(self, template, clone: bool) -> None:
        section = self._controller.selected
        if section is None or section.type != SectionType.CHECKLIST:
            self._show_warning("Select a checklist section first")
            return
        if clone:
            self._controller.clone_checklist(section.id, template)
        else:
            self._controller.bind_checklist(section.id, template)

    # ========================
    # File actions
    # ========================

    def _on_new_template(self) -> None:
        name, ok = QInputDialog.getText(self, "New template", "Template name:")
        if ok and name.strip():
            self._controller.new_template(name.strip())

    def _on_open_template(self) -> None:
        repository = self._controller.repository
        if repository is None:
            return
        templates = repository.load_templates()
        if not templates:
            self._show_warning("No templates stored yet")
            return
        labels = [f"{t.name}{' (default)' if t.is_default else ''}" for t in templates]
        label, ok = QInputDialog.getItem(self, "Open template", "Template:", labels, 0, False)
        if ok:
            self._controller.open_template(templates[labels.index(label)].id)

    def _on_duplicate_template(self) -> None:
        doc = self._controller.document
        if doc is None:
            return
        name, ok = QInputDialog.getText(self, "Duplicate template", "Name:", text=f"{doc.name} (copy)")
        if ok and name.strip():
            copy = self._controller.duplicate(name.strip())
            if copy is not None:
                self._statusbar.showMessage(f"Duplicated as {copy.name}", STATUS_TIMEOUT_MS)

    def _on_delete_template(self) -> None:
        self._controller.delete_current()

    def _on_import(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Import template", "", "Templates (*.json);;All files (*)")
        if not path:
            return
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            self._show_error(f"Cannot read {path}: {e}")
            return
        self._controller.import_template(data)

    def _on_export(self) -> None:
        doc = self._controller.document
        if doc is None:
            return
        path, _ = QFileDialog.getSaveFileName(self, "Export template", f"{doc.name}.json", "Templates (*.json)")
        if not path:
            return
        try:
            Path(path).write_bytes(self._controller.export_current())
        except OSError as e:
            self._show_error(f"Cannot write {path}: {e}")
            return
        self._statusbar.showMessage(f"Exported to {path}", STATUS_TIMEOUT_MS)

    def _on_create_version(self) -> None:
        version = self._controller.create_version()
        if version is not None:
            self._statusbar.showMessage(f"Saved {version.name}", STATUS_TIMEOUT_MS)

    def _on_restore_version(self) -> None:
        versions = self._controller.list_versions()
        if not versions:
            self._show_warning("No versions saved for this template")
            return
        labels = [f"{v.name} ({v.created_at:%Y-%m-%d %H:%M})" for v in versions]
        label, ok = QInputDialog.getItem(self, "Restore version", "Version:", labels, 0, False)
        if ok:
            self._controller.restore_version(versions[labels.index(label)].id)

    def _on_set_background(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self,
            "Background image",
            "",
            "Images (*.png *.jpg *.jpeg *.webp *.bmp *.gif)",
        )
        if path:
            self._controller.set_background_image(path)

    # ========================
    # Events
    # ========================

    def keyPressEvent(self, event: QKeyEvent) -> None:
        """Route editor shortcuts to the canvas when it lacks focus."""
        if not self._canvas.hasFocus():
            self._canvas.keyPressEvent(event)
            if event.isAccepted():
                return
        super().keyPressEvent(event)

    def closeEvent(self, event: QCloseEvent) -> None:
        saver = self._controller.saver
        if saver is not None:
            saver.wait_for_all()

        if self._config is not None:
            state = self._controller.state
            doc = self._controller.document
            try:
                self._config.save_preferences(
                    {
                        "zoom": state.zoom,
                        "show_grid": state.show_grid,
                        "snap_to_grid": state.snap_to_grid,
                        "snap_to_edges": state.snap_to_edges,
                        "last_template_id": doc.id if doc else None,
                    }
                )
            except ConfigError as e:
                logger.warning(f"Preferences not saved: {e}")
        event.accept()


def center_on_screen(window: QMainWindow) -> None:
    """Move a window to the center of the primary screen."""
    screen = QApplication.primaryScreen()
    if screen:
        geometry = window.frameGeometry()
        geometry.moveCenter(screen.availableGeometry().center())
        window.move(geometry.topLeft())
