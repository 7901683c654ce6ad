"""Editor controller.

Glue between user input and the template model: pointer gestures, keyboard
shortcuts, selection, clipboard, undo/redo and persistence.

One ``EditorState`` holds every piece of editor UI state. Layout
computations go through the layout engine; every discrete edit commits one
history entry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError
from PyQt6.QtCore import QObject, pyqtSignal

from checkform.core.history import HistoryManager
from checkform.core.layout_engine import (
    AlignMode,
    SnapOptions,
    align_sections,
    apply_geometry,
    clamp_position,
    compute_drag_position,
    compute_resize,
    fit_to_page,
    nudge_position,
    parse_handle,
)
from checkform.models.app_settings import Settings
from checkform.models.section import (
    Rect,
    Section,
    SectionCondition,
    SectionStyle,
    SectionType,
)
from checkform.models.template_document import (
    PageOrientation,
    PageSize,
    TemplateDocument,
    TemplateVersion,
)
from checkform.services.asset_store import AssetStore
from checkform.services.checklist_source import ChecklistTemplate
from checkform.services.preset_source import SectionPreset
from checkform.services.template_repository import (
    TemplateRepository,
    TemplateSaver,
    generate_template_id,
)
from checkform.utils.constants import (
    DEFAULT_ZOOM,
    MAX_ZOOM,
    MIN_ZOOM,
    NUDGE_STEP,
    NUDGE_STEP_LARGE,
    PASTE_OFFSET,
)
from checkform.utils.error_handler import get_user_friendly_message, handle_exception
from checkform.utils.exceptions import (
    AppException,
    EditValidationError,
    InsufficientSelectionError,
    PageRangeError,
    SectionLockedError,
    StructuralSectionError,
)
from checkform.utils.logger import setup_logger

logger = setup_logger(__name__)


class GestureKind(str, Enum):
    """Pointer gesture in progress."""

    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"


# Arrow key -> unit direction
ARROW_KEYS: dict[str, tuple[int, int]] = {
    "left": (-1, 0),
    "right": (1, 0),
    "up": (0, -1),
    "down": (0, 1),
}


@dataclass
class EditorState:
    """Complete editor UI state."""

    document: Optional[TemplateDocument] = None
    current_page: int = 1

    # Selection
    selected_section: Optional[str] = None
    selected_sections: list[str] = field(default_factory=list)

    # Gesture
    gesture: GestureKind = GestureKind.IDLE
    gesture_section_id: Optional[str] = None
    drag_offset: Optional[tuple[float, float]] = None
    resize_handle: Optional[str] = None
    resize_start: Optional[Rect] = None
    gesture_moved: bool = False
    blocked_section_id: Optional[str] = None

    clipboard: Optional[Section] = None

    # Toggles
    snap_to_grid: bool = True
    snap_to_edges: bool = True
    movement_enabled: bool = True
    zoom: float = DEFAULT_ZOOM
    show_grid: bool = True

    dirty: bool = False

    def end_gesture(self) -> None:
        self.gesture = GestureKind.IDLE
        self.gesture_section_id = None
        self.drag_offset = None
        self.resize_handle = None
        self.resize_start = None
        self.gesture_moved = False
        self.blocked_section_id = None


class EditorController(QObject):
    """Template editor controller.

    Signals:
        document_changed: Working document changed (TemplateDocument or None)
        selection_changed: Selected section ids changed
        warning_raised: An edit was rejected, document unchanged
        error_raised: A persistence operation failed, draft kept
        saved: Save completed, carries the stored TemplateDocument
        history_changed: Undo log changed

    Example:
        >>> controller = EditorController(settings=Settings())
        >>> controller.load_document(TemplateDocument.create("Check"))
        >>> controller.add_section(SectionType.TABLE)
    """

    document_changed = pyqtSignal(object)
    selection_changed = pyqtSignal(list)
    warning_raised = pyqtSignal(str)
    error_raised = pyqtSignal(str)
    saved = pyqtSignal(object)
    history_changed = pyqtSignal()

    def __init__(
        self,
        repository: Optional[TemplateRepository] = None,
        settings: Optional[Settings] = None,
        saver: Optional[TemplateSaver] = None,
        asset_store: Optional[AssetStore] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        """Initialize the controller.

        Args:
            repository: Template store; edits stay in memory when omitted
            settings: Application settings, defaults when omitted
            saver: Save runner, built from the repository when omitted
            asset_store: Image upload target for backgrounds
            parent: Parent object
        """
        super().__init__(parent)

        self._settings = settings or Settings()
        self._repository = repository
        self._asset_store = asset_store
        self._state = EditorState(
            snap_to_grid=self._settings.snap_to_grid,
            snap_to_edges=self._settings.snap_to_edges,
        )

        self._history = HistoryManager(self._settings.max_history_depth, parent=self)
        self._history.history_changed.connect(self.history_changed)

        if saver is None and repository is not None:
            saver = TemplateSaver(repository, self._settings.background_saves, parent=self)
        self._saver = saver
        if self._saver is not None:
            self._saver.save_finished.connect(self._on_save_finished)
            self._saver.save_failed.connect(self._on_save_failed)

    # ========================
    # Properties
    # ========================

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def document(self) -> Optional[TemplateDocument]:
        return self._state.document

    @property
    def history(self) -> HistoryManager:
        return self._history

    @property
    def saver(self) -> Optional[TemplateSaver]:
        return self._saver

    @property
    def repository(self) -> Optional[TemplateRepository]:
        return self._repository

    @property
    def selected(self) -> Optional[Section]:
        """Anchor selected section."""
        doc = self._state.document
        if doc is None or self._state.selected_section is None:
            return None
        return doc.get_section(self._state.selected_section)

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    def snap_options(self) -> SnapOptions:
        """Snap options for the current toggles and settings."""
        return SnapOptions(
            snap_to_grid=self._state.snap_to_grid,
            snap_to_edges=self._state.snap_to_edges,
            grid_size=self._settings.grid_size,
            threshold=self._settings.snap_threshold,
        )

    # ========================
    # Internal helpers
    # ========================

    def _require_document(self) -> TemplateDocument:
        if self._state.document is None:
            raise EditValidationError("No template is open", "NO_DOCUMENT")
        return self._state.document

    def _report(self, exc: AppException, context: str = "") -> None:
        """Route an exception to the warning or error signal."""
        message = get_user_friendly_message(exc)
        if isinstance(exc, EditValidationError):
            logger.warning(f"Edit rejected: {exc}")
            self.warning_raised.emit(message)
        else:
            handle_exception(exc, context, reraise=False, log_traceback=False)
            self.error_raised.emit(message)

    def _commit(self, action: str, persist: bool = False) -> None:
        doc = self._require_document()
        self._history.push(doc.sections, action, doc.page_settings())
        self._state.dirty = True
        self.document_changed.emit(doc)
        if persist:
            self._persist()

    def _persist(self) -> None:
        doc = self._state.document
        if doc is None or self._saver is None:
            return
        # Assign the id up front so overlapping saves of a new template agree on it
        if doc.id is None:
            doc.id = generate_template_id()
        self._saver.save(doc)

    def _set_selection(self, anchor: Optional[str], ids: list[str]) -> None:
        self._state.selected_section = anchor
        self._state.selected_sections = ids
        self.selection_changed.emit(list(ids))

    def _prune_selection(self) -> None:
        doc = self._state.document
        existing = {s.id for s in doc.sections} if doc else set()
        ids = [i for i in self._state.selected_sections if i in existing]
        anchor = self._state.selected_section if self._state.selected_section in existing else None
        if ids != self._state.selected_sections or anchor != self._state.selected_section:
            self._set_selection(anchor, ids)

    # ========================
    # Loading
    # ========================

    def load_document(self, doc: TemplateDocument) -> None:
        """Open a document for editing; the undo log restarts."""
        self._state.end_gesture()
        self._state.document = doc.copy_document()
        self._state.current_page = 1
        self._state.dirty = False
        self._history.reset(self._state.document.sections, self._state.document.page_settings())
        self._set_selection(None, [])
        self.document_changed.emit(self._state.document)
        logger.info(f"Template opened: {doc.name}")

    def close_document(self) -> None:
        self._state.end_gesture()
        self._state.document = None
        self._history.clear()
        self._set_selection(None, [])
        self.document_changed.emit(None)

    def new_template(self, name: str) -> Optional[TemplateDocument]:
        """Create a template with the default sections and open it."""
        try:
            if self._repository is not None:
                doc = self._repository.create_template(name)
            else:
                doc = TemplateDocument.create(name)
        except AppException as e:
            self._report(e, "Create template")
            return None
        self.load_document(doc)
        return self._state.document

    def open_template(self, template_id: str) -> bool:
        """Load a stored template into the editor."""
        if self._repository is None:
            return False
        try:
            doc = self._repository.load_template(template_id)
        except AppException as e:
            self._report(e, "Open template")
            return False
        self.load_document(doc)
        return True

    # ========================
    # Pointer gestures
    # ========================

    def pointer_down(
        self,
        section_id: Optional[str],
        x: float,
        y: float,
        shift: bool = False,
        handle: Optional[str] = None,
    ) -> bool:
        """Press on a section (or empty canvas when section_id is None).

        Args:
            section_id: Section under the pointer
            x: Pointer x in page points
            y: Pointer y in page points
            shift: Shift held, toggles multi-selection
            handle: Resize handle under the pointer

        Returns:
            True when a drag or resize gesture started
        """
        doc = self._state.document
        if doc is None:
            return False

        if section_id is None:
            if not shift:
                self._set_selection(None, [])
            return False

        section = doc.get_section(section_id)
        if section is None or not section.visible:
            return False

        if handle is not None:
            try:
                parse_handle(handle)
            except ValueError:
                self._report(EditValidationError(f"Unknown resize handle: {handle}", "INVALID_HANDLE"))
                return False

        ids = list(self._state.selected_sections)
        if shift:
            was_empty = not ids
            if section_id in ids:
                ids.remove(section_id)
            else:
                ids.append(section_id)
            anchor = section_id if was_empty else self._state.selected_section
            if not ids:
                anchor = None
            self._set_selection(anchor, ids)
        else:
            if section_id not in ids:
                ids = [section_id]
            self._set_selection(section_id, ids)

        self._state.end_gesture()
        if section.locked:
            self._state.blocked_section_id = section_id
            return False
        if not self._state.movement_enabled:
            return False

        self._state.gesture_section_id = section_id
        if handle:
            self._state.gesture = GestureKind.RESIZING
            self._state.resize_handle = handle
            self._state.resize_start = section.bounds
        else:
            self._state.gesture = GestureKind.DRAGGING
            self._state.drag_offset = (x - section.x, y - section.y)
        logger.debug(f"Gesture started: {self._state.gesture.value} {section_id}")
        return True

    def select_section(self, section_id: Optional[str]) -> bool:
        """Select a section from a list view; hidden sections are allowed.

        Switches to the section's page when needed.
        """
        doc = self._state.document
        if doc is None:
            return False
        if section_id is None:
            self._set_selection(None, [])
            return True

        section = doc.get_section(section_id)
        if section is None:
            return False
        self._state.end_gesture()
        if section.page != self._state.current_page:
            self._state.current_page = section.page
            self.document_changed.emit(doc)
        self._set_selection(section_id, [section_id])
        return True

    def pointer_move(self, x: float, y: float) -> bool:
        """Update the active gesture; nothing is committed.

        Returns:
            True when geometry changed
        """
        state = self._state
        doc = state.document
        if doc is None:
            return False

        if state.gesture == GestureKind.IDLE:
            if state.blocked_section_id is not None:
                self._report(SectionLockedError(state.blocked_section_id))
                state.blocked_section_id = None
            return False

        section = doc.get_section(state.gesture_section_id)
        if section is None:
            state.end_gesture()
            return False

        if state.gesture == GestureKind.DRAGGING:
            new_x, new_y = compute_drag_position(
                doc, section, x, y, state.drag_offset, self.snap_options()
            )
            if (new_x, new_y) == (section.x, section.y):
                return False
            doc.update_section(section.moved_to(new_x, new_y))
        else:
            rect = compute_resize(
                section,
                state.resize_handle,
                x,
                y,
                state.resize_start,
                doc.page_width,
                doc.page_height,
            )
            if rect == section.bounds:
                return False
            doc.update_section(section.with_geometry(rect))

        state.gesture_moved = True
        self.document_changed.emit(doc)
        return True

    def pointer_up(self) -> bool:
        """Finish the gesture, committing one history entry if anything moved.

        Returns:
            True when an entry was committed
        """
        state = self._state
        if state.gesture == GestureKind.IDLE:
            state.blocked_section_id = None
            return False

        action = "Move section" if state.gesture == GestureKind.DRAGGING else "Resize section"
        moved = state.gesture_moved
        state.end_gesture()
        if not moved:
            return False

        self._commit(action, persist=True)
        return True

    def pointer_leave(self) -> bool:
        """Pointer left the canvas; same as releasing."""
        return self.pointer_up()

    # ========================
    # Keyboard
    # ========================

    def key_press(self, key: str, ctrl: bool = False, shift: bool = False) -> bool:
        """Handle a shortcut.

        Args:
            key: ``left``/``right``/``up``/``down``, ``delete`` or a letter
            ctrl: Ctrl (or Cmd) held
            shift: Shift held

        Returns:
            True when the key was handled
        """
        key = key.lower()

        if ctrl:
            if key == "z" and not shift:
                return self.undo()
            if key == "y" or (key == "z" and shift):
                return self.redo()
            if key == "c":
                return self.copy_selected()
            if key == "v":
                return self.paste() is not None
            if key == "s":
                return self.save()
            return False

        if key == "delete":
            if self._state.selected_section is None:
                return False
            return self.delete_section(self._state.selected_section)

        if key in ARROW_KEYS:
            step = NUDGE_STEP_LARGE if shift else NUDGE_STEP
            dx, dy = ARROW_KEYS[key]
            return self.nudge(dx * step, dy * step)

        return False

    def nudge(self, dx: float, dy: float) -> bool:
        """Move the anchor selection by a keyboard step."""
        try:
            doc = self._require_document()
            section = self.selected
            if section is None:
                return False
            if section.locked:
                raise SectionLockedError(section.id)
            new_x, new_y = nudge_position(section, dx, dy, doc.page_width, doc.page_height)
            if (new_x, new_y) == (section.x, section.y):
                return False
            doc.update_section(section.moved_to(new_x, new_y))
        except AppException as e:
            self._report(e)
            return False

        self._commit("Nudge section")
        return True

    # ========================
    # Section editing
    # ========================

    def add_section(self, section_type: SectionType | str) -> Optional[Section]:
        """Add a section of the given type to the current page.

        Returns:
            The new section, or None when rejected
        """
        try:
            doc = self._require_document()
            try:
                section = Section.create(section_type, page=self._state.current_page)
            except ValueError as e:
                raise EditValidationError(f"Unknown section type: {section_type}") from e
            section = section.with_geometry(fit_to_page(section, doc.page_width, doc.page_height))
            doc.add_section(section)
        except AppException as e:
            self._report(e)
            return None

        self._set_selection(section.id, [section.id])
        self._commit(f"Add {section.type.value}")
        logger.info(f"Section added: {section.id}")
        return section

    def add_preset_section(self, preset: SectionPreset) -> Optional[Section]:
        """Insert a copy of a preset section on the current page.

        Returns:
            The new section, or None when rejected
        """
        try:
            doc = self._require_document()
            section = preset.build_section(self._state.current_page)
            section = section.with_geometry(fit_to_page(section, doc.page_width, doc.page_height))
            doc.add_section(section)
        except AppException as e:
            self._report(e)
            return None

        self._set_selection(section.id, [section.id])
        self._commit(f"Add preset: {preset.name}")
        logger.info(f"Preset section added: {preset.id} -> {section.id}")
        return section

    def delete_section(self, section_id: str) -> bool:
        """Delete a user-added section; built-in sections can only be hidden."""
        try:
            doc = self._require_document()
            section = doc.require_section(section_id)
            if section.is_structural:
                raise StructuralSectionError(section.id, section.type.value)
            doc.remove_section(section_id)
        except AppException as e:
            self._report(e)
            return False

        self._prune_selection()
        self._commit("Delete section")
        logger.info(f"Section deleted: {section_id}")
        return True

    def copy_selected(self) -> bool:
        """Copy the anchor selection to the clipboard."""
        section = self.selected
        if section is None:
            return False
        self._state.clipboard = section.model_copy(deep=True)
        logger.debug(f"Copied section: {section.id}")
        return True

    def paste(self) -> Optional[Section]:
        """Paste the clipboard as a new section offset by the paste step.

        Returns:
            The pasted section, or None when the clipboard is empty
        """
        clipboard = self._state.clipboard
        if clipboard is None:
            return None

        try:
            doc = self._require_document()
            page = clipboard.page if clipboard.page <= doc.page_count else self._state.current_page
            x, y = clamp_position(
                clipboard.x + PASTE_OFFSET,
                clipboard.y + PASTE_OFFSET,
                clipboard.width,
                clipboard.height,
                doc.page_width,
                doc.page_height,
            )
            pasted = clipboard.clone().model_copy(update={"x": x, "y": y, "page": page})
            doc.add_section(pasted)
        except AppException as e:
            self._report(e)
            return None

        self._set_selection(pasted.id, [pasted.id])
        self._commit("Paste section")
        return pasted

    def toggle_visibility(self, section_id: str) -> bool:
        try:
            doc = self._require_document()
            section = doc.require_section(section_id)
            doc.update_section(section.model_copy(update={"visible": not section.visible}))
        except AppException as e:
            self._report(e)
            return False

        self._commit("Toggle visibility", persist=True)
        return True

    def toggle_lock(self, section_id: str) -> bool:
        try:
            doc = self._require_document()
            section = doc.require_section(section_id)
            doc.update_section(section.model_copy(update={"locked": not section.locked}))
        except AppException as e:
            self._report(e)
            return False

        self._commit("Toggle lock", persist=True)
        return True

    def update_section(
        self,
        section_id: str,
        settings: Optional[dict[str, Any]] = None,
        style: Optional[SectionStyle | dict[str, Any]] = None,
        condition: Optional[SectionCondition | dict[str, Any]] = None,
        clear_condition: bool = False,
    ) -> bool:
        """Edit a section's content; allowed on locked sections.

        Args:
            section_id: Section id
            settings: Settings merged over the current settings
            style: New style
            condition: New render condition
            clear_condition: Remove the render condition

        Returns:
            True when the section changed
        """
        try:
            doc = self._require_document()
            section = doc.require_section(section_id)
            data = section.model_dump()
            if settings:
                data["settings"] = {**section.settings, **settings}
            if style is not None:
                data["style"] = style.model_dump() if isinstance(style, SectionStyle) else style
            if clear_condition:
                data["condition"] = None
            elif condition is not None:
                data["condition"] = (
                    condition.model_dump() if isinstance(condition, SectionCondition) else condition
                )
            try:
                updated = Section.model_validate(data)
            except ValidationError as e:
                raise EditValidationError(f"Invalid section settings: {e.errors()[0]['msg']}") from e
            if updated == section:
                return False
            doc.update_section(updated)
        except AppException as e:
            self._report(e)
            return False

        self._commit("Update section")
        return True

    def align(self, mode: AlignMode | str) -> bool:
        """Align or distribute the selected sections."""
        try:
            doc = self._require_document()
            try:
                mode = AlignMode(mode)
            except ValueError as e:
                raise EditValidationError(f"Unknown alignment: {mode}") from e
            ids = self._state.selected_sections
            if len(ids) < 2:
                raise InsufficientSelectionError(len(ids))
            locked = [i for i in ids if (s := doc.get_section(i)) is not None and s.locked]
            updates = align_sections(doc, ids, mode)
            if locked:
                self._report(SectionLockedError(locked[0]))
            doc.replace_sections(apply_geometry(doc, updates).sections)
        except AppException as e:
            self._report(e)
            return False

        self._commit(f"Align {mode.value}")
        return True

    def bind_checklist(self, section_id: str, template: ChecklistTemplate) -> bool:
        """Make a checklist section draw the points of a checklist template."""
        return self._update_checklist(
            section_id,
            {
                "checklistTemplateId": template.id,
                "checklistTemplateName": template.name,
                "useCustomItems": False,
            },
        )

    def clone_checklist(self, section_id: str, template: ChecklistTemplate) -> bool:
        """Copy a checklist template's points into the section for editing."""
        return self._update_checklist(
            section_id,
            {
                "checklistTemplateId": template.id,
                "checklistTemplateName": template.name,
                "useCustomItems": True,
                "checklistItems": [p.to_checklist_item() for p in template.inspection_points],
            },
        )

    def _update_checklist(self, section_id: str, settings: dict[str, Any]) -> bool:
        doc = self._state.document
        section = doc.get_section(section_id) if doc else None
        if section is not None and section.type != SectionType.CHECKLIST:
            self._report(EditValidationError(f"Section '{section_id}' is not a checklist"))
            return False
        return self.update_section(section_id, settings=settings)

    # ========================
    # Pages
    # ========================

    def set_current_page(self, page: int) -> bool:
        try:
            doc = self._require_document()
            if not 1 <= page <= doc.page_count:
                raise PageRangeError(page, doc.page_count)
        except AppException as e:
            self._report(e)
            return False

        self._state.end_gesture()
        self._state.current_page = page
        self._set_selection(None, [])
        self.document_changed.emit(doc)
        return True

    def add_page(self) -> Optional[int]:
        """Append a page and switch to it."""
        try:
            doc = self._require_document()
        except AppException as e:
            self._report(e)
            return None

        page = doc.add_page()
        self._state.current_page = page
        self._set_selection(None, [])
        self._commit("Add page", persist=True)
        return page

    def remove_page(self, page: int) -> bool:
        """Remove a page with its sections; later pages move up."""
        try:
            doc = self._require_document()
            dropped = doc.remove_page(page)
        except AppException as e:
            self._report(e)
            return False

        self._state.current_page = min(self._state.current_page, doc.page_count)
        self._prune_selection()
        self._commit("Remove page", persist=True)
        logger.info(f"Page {page} removed with {len(dropped)} section(s)")
        return True

    def set_page_settings(
        self,
        page_size: Optional[PageSize | str] = None,
        orientation: Optional[PageOrientation | str] = None,
        margins: Optional[float] = None,
        custom_width: Optional[float] = None,
        custom_height: Optional[float] = None,
    ) -> bool:
        """Change page size, orientation or margins.

        Sections that no longer fit are moved and shrunk onto the page.
        """
        changes: dict[str, Any] = {}
        if page_size is not None:
            changes["pageSize"] = page_size
        if orientation is not None:
            changes["pageOrientation"] = orientation
        if margins is not None:
            changes["pageMargins"] = margins
        if custom_width is not None:
            changes["customPageWidth"] = custom_width
        if custom_height is not None:
            changes["customPageHeight"] = custom_height

        try:
            doc = self._require_document()
            try:
                doc.apply_page_settings(changes)
            except ValidationError as e:
                raise EditValidationError(f"Invalid page settings: {e.errors()[0]['msg']}") from e
        except AppException as e:
            self._report(e)
            return False

        for section in list(doc.sections):
            rect = fit_to_page(section, doc.page_width, doc.page_height)
            if rect != section.bounds:
                doc.update_section(section.with_geometry(rect))

        self._commit("Page settings", persist=True)
        return True

    # ========================
    # Template metadata
    # ========================

    def add_tag(self, tag: str) -> bool:
        doc = self._state.document
        if doc is None or not doc.add_tag(tag):
            return False
        self._state.dirty = True
        self.document_changed.emit(doc)
        self._persist()
        return True

    def remove_tag(self, tag: str) -> bool:
        doc = self._state.document
        if doc is None or not doc.remove_tag(tag):
            return False
        self._state.dirty = True
        self.document_changed.emit(doc)
        self._persist()
        return True

    def set_background_image(self, path: Optional[Path | str]) -> bool:
        """Upload an image and use it as page background; None clears it."""
        try:
            doc = self._require_document()
            if path is None:
                doc.background_image = None
            elif self._asset_store is not None and self._asset_store.contains(path):
                doc.background_image = str(path)
            elif self._asset_store is not None:
                doc.background_image = str(self._asset_store.upload(path))
            else:
                doc.background_image = str(path)
        except AppException as e:
            self._report(e, "Background upload")
            return False

        self._state.dirty = True
        self.document_changed.emit(doc)
        self._persist()
        return True

    # ========================
    # Editor toggles
    # ========================

    def set_snap_to_grid(self, enabled: bool) -> None:
        self._state.snap_to_grid = enabled

    def set_snap_to_edges(self, enabled: bool) -> None:
        self._state.snap_to_edges = enabled

    def set_movement_enabled(self, enabled: bool) -> None:
        self._state.movement_enabled = enabled
        if not enabled:
            self._state.end_gesture()

    def set_show_grid(self, show: bool) -> None:
        self._state.show_grid = show

    def set_zoom(self, zoom: float) -> float:
        """Set the zoom factor, clamped to the supported range."""
        self._state.zoom = max(MIN_ZOOM, min(MAX_ZOOM, zoom))
        return self._state.zoom

    # ========================
    # Undo / redo
    # ========================

    def undo(self) -> bool:
        if self._state.document is None or self._state.gesture != GestureKind.IDLE:
            return False
        if not self._history.undo(self._restore_snapshot):
            return False
        self._after_replay()
        return True

    def redo(self) -> bool:
        if self._state.document is None or self._state.gesture != GestureKind.IDLE:
            return False
        if not self._history.redo(self._restore_snapshot):
            return False
        self._after_replay()
        return True

    def _restore_snapshot(self, sections: list[Section], page_settings: dict[str, Any]) -> None:
        # Page size and count come back with the sections they were committed with
        self._require_document().restore_snapshot(sections, page_settings)

    def _after_replay(self) -> None:
        doc = self._state.document
        self._state.current_page = min(self._state.current_page, doc.page_count)
        self._state.dirty = True
        self._prune_selection()
        self.document_changed.emit(doc)

    # ========================
    # Persistence
    # ========================

    def save(self) -> bool:
        """Save the working document.

        Returns:
            True when a save was started
        """
        if self._state.document is None:
            return False
        if self._saver is None:
            self.warning_raised.emit("No template store is configured")
            return False
        self._persist()
        return True

    def _on_save_finished(self, stored: TemplateDocument) -> None:
        doc = self._state.document
        if doc is not None and doc.id == stored.id:
            doc.created_at = stored.created_at
            doc.updated_at = stored.updated_at
            if doc.sections == stored.sections:
                self._state.dirty = False
        logger.info(f"Template saved: {stored.name}")
        self.saved.emit(stored)

    def _on_save_failed(self, message: str) -> None:
        # The local draft is kept as-is so the user can retry
        logger.error(f"Save failed, draft kept: {message}")
        self.error_raised.emit(message)

    def _require_saved(self) -> tuple[TemplateRepository, TemplateDocument]:
        doc = self._require_document()
        if self._repository is None:
            raise EditValidationError("No template store is configured", "NO_STORE")
        if doc.id is None or not self._repository.exists(doc.id):
            raise EditValidationError("Save the template first", "NOT_SAVED")
        return self._repository, doc

    def create_version(self, name: Optional[str] = None) -> Optional[TemplateVersion]:
        """Snapshot the current sections and page settings as a version."""
        try:
            repository, doc = self._require_saved()
            return repository.create_version(doc.id, doc.sections, doc.page_settings(), name)
        except AppException as e:
            self._report(e, "Create version")
            return None

    def list_versions(self) -> list[TemplateVersion]:
        try:
            repository, doc = self._require_saved()
            return repository.list_versions(doc.id)
        except AppException as e:
            self._report(e, "List versions")
            return []

    def restore_version(self, version_id: int) -> bool:
        """Replace sections and page settings with a stored version."""
        try:
            repository, doc = self._require_saved()
            restored = repository.restore_version(doc.id, version_id)
        except AppException as e:
            self._report(e, "Restore version")
            return False

        self._state.end_gesture()
        self._state.document = restored.copy_document()
        self._state.current_page = min(self._state.current_page, restored.page_count)
        self._prune_selection()
        self._history.push(
            self._state.document.sections,
            "Restore version",
            self._state.document.page_settings(),
        )
        self._state.dirty = False
        self.document_changed.emit(self._state.document)
        return True

    def duplicate(self, name: str) -> Optional[TemplateDocument]:
        """Store a copy of the current template under a new name."""
        try:
            repository, doc = self._require_saved()
            return repository.duplicate_template(doc.id, name)
        except AppException as e:
            self._report(e, "Duplicate template")
            return None

    def delete_current(self) -> bool:
        """Delete the open template from the store and close it."""
        try:
            repository, doc = self._require_saved()
            repository.delete_template(doc.id)
        except AppException as e:
            self._report(e, "Delete template")
            return False
        self.close_document()
        return True

    def export_current(self) -> bytes:
        """Export the working document as UTF-8 JSON."""
        doc = self._require_document()
        return doc.to_json().encode("utf-8")

    def import_template(self, data: bytes | str) -> Optional[TemplateDocument]:
        """Import an exported template and open it.

        Nothing is stored or opened when the payload is malformed.
        """
        try:
            if self._repository is not None:
                doc = self._repository.import_template(data)
            else:
                doc = TemplateDocument.from_json(data)
                doc.id = None
                doc.is_default = False
        except AppException as e:
            self._report(e, "Import template")
            return None

        self.load_document(doc)
        return self._state.document
