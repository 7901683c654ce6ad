"""Editor controller unit tests.

Tests:
    - Drag/resize gestures commit one history entry on release
    - Locked and hidden sections
    - Selection and multi-selection
    - Keyboard shortcuts, clipboard and delete rules
    - Alignment, pages, section updates, checklist binding, section presets
    - Undo/redo through the controller
    - Persistence: saves, versions, duplicate, delete, import/export, uploads
"""

from pathlib import Path

import pytest

from checkform.core.editor_controller import EditorController, GestureKind
from checkform.models.section import Section, SectionType
from checkform.models.template_document import TemplateDocument
from checkform.services.checklist_source import ChecklistSource
from checkform.services.preset_source import PresetSource, SectionPreset
from checkform.utils.exceptions import TemplateSaveError


# ===================
# Fixtures
# ===================


class SignalLog:
    """Collects warning and error messages of a controller."""

    def __init__(self, controller: EditorController):
        self.warnings: list[str] = []
        self.errors: list[str] = []
        controller.warning_raised.connect(self.warnings.append)
        controller.error_raised.connect(self.errors.append)


@pytest.fixture
def blank_controller(app, settings, add_table) -> EditorController:
    """Controller on a blank A4 document holding two tables."""
    doc = TemplateDocument(name="Blank")
    add_table(doc, "t1", 100, 400, width=100, height=50)
    add_table(doc, "t2", 300, 600, width=100, height=50)
    editor = EditorController(settings=settings)
    editor.load_document(doc)
    return editor


@pytest.fixture
def paged_controller(app, settings, add_table) -> EditorController:
    """Controller on a three-page document with one table per page."""
    doc = TemplateDocument(name="Paged", page_count=3)
    for page in (1, 2, 3):
        add_table(doc, f"table-p{page}", 20, 20, page=page)
    editor = EditorController(settings=settings)
    editor.load_document(doc)
    return editor


@pytest.fixture
def log(blank_controller) -> SignalLog:
    return SignalLog(blank_controller)


def actions(controller: EditorController) -> list[str]:
    return [e.action for e in controller.history.entries]


def click(controller: EditorController, section_id: str, shift: bool = False) -> None:
    """Press and release on a section without moving."""
    section = controller.document.get_section(section_id)
    controller.pointer_down(section_id, section.x + 1, section.y + 1, shift=shift)
    controller.pointer_up()


# ===================
# Gestures
# ===================


class TestDrag:
    """Drag gesture."""

    def test_drag_should_commit_single_entry_on_release(self, blank_controller):
        assert blank_controller.pointer_down("t1", 110, 410)
        assert blank_controller.state.gesture == GestureKind.DRAGGING

        blank_controller.pointer_move(130, 430)
        blank_controller.pointer_move(160, 460)
        assert actions(blank_controller) == ["Initial"]

        assert blank_controller.pointer_up()
        assert actions(blank_controller) == ["Initial", "Move section"]
        t1 = blank_controller.document.get_section("t1")
        assert (t1.x, t1.y) == (150, 450)
        assert blank_controller.state.gesture == GestureKind.IDLE

    def test_release_without_move_should_not_commit(self, blank_controller):
        blank_controller.pointer_down("t1", 110, 410)
        assert not blank_controller.pointer_up()
        assert actions(blank_controller) == ["Initial"]

    def test_pointer_leave_should_commit(self, blank_controller):
        blank_controller.pointer_down("t1", 110, 410)
        blank_controller.pointer_move(160, 460)
        assert blank_controller.pointer_leave()
        assert actions(blank_controller)[-1] == "Move section"

    def test_drag_should_clamp_to_page(self, blank_controller):
        blank_controller.pointer_down("t1", 110, 410)
        blank_controller.pointer_move(2000, 410)
        blank_controller.pointer_up()
        assert blank_controller.document.get_section("t1").right == 595

    def test_undo_should_restore_position_before_drag(self, blank_controller):
        blank_controller.pointer_down("t1", 110, 410)
        blank_controller.pointer_move(160, 460)
        blank_controller.pointer_up()

        assert blank_controller.undo()
        t1 = blank_controller.document.get_section("t1")
        assert (t1.x, t1.y) == (100, 400)
        assert blank_controller.redo()
        assert blank_controller.document.get_section("t1").x == 150

    def test_undo_should_be_blocked_during_gesture(self, blank_controller):
        blank_controller.pointer_down("t1", 110, 410)
        blank_controller.pointer_move(160, 460)
        blank_controller.pointer_up()

        blank_controller.pointer_down("t1", 160, 460)
        blank_controller.pointer_move(200, 500)
        assert not blank_controller.undo()

    def test_movement_disabled_should_only_select(self, blank_controller):
        blank_controller.set_movement_enabled(False)
        assert not blank_controller.pointer_down("t1", 110, 410)
        assert blank_controller.state.selected_section == "t1"
        assert not blank_controller.pointer_move(200, 500)


class TestResize:
    """Resize gesture."""

    def test_resize_should_commit_resize_entry(self, blank_controller):
        assert blank_controller.pointer_down("t1", 200, 450, handle="se")
        assert blank_controller.state.gesture == GestureKind.RESIZING

        blank_controller.pointer_move(250, 500)
        blank_controller.pointer_up()

        t1 = blank_controller.document.get_section("t1")
        assert (t1.x, t1.y, t1.width, t1.height) == (100, 400, 150, 100)
        assert actions(blank_controller)[-1] == "Resize section"

    def test_resize_should_keep_minimum_size(self, blank_controller):
        blank_controller.pointer_down("t1", 200, 450, handle="se")
        blank_controller.pointer_move(0, 0)
        blank_controller.pointer_up()

        t1 = blank_controller.document.get_section("t1")
        assert (t1.width, t1.height) == (50, 30)

    def test_unknown_handle_should_warn_without_gesture(self, blank_controller, log):
        assert not blank_controller.pointer_down("t1", 110, 410, handle="xx")
        assert log.warnings == ["Unknown resize handle: xx"]
        assert blank_controller.state.gesture == GestureKind.IDLE
        assert blank_controller.document.get_section("t1").width == 100


class TestLockedAndHidden:
    """Locked and hidden sections."""

    def test_locked_section_should_select_and_warn_on_move(self, blank_controller, log):
        blank_controller.toggle_lock("t1")

        assert not blank_controller.pointer_down("t1", 110, 410)
        assert blank_controller.state.selected_section == "t1"

        assert not blank_controller.pointer_move(200, 500)
        assert log.warnings == ["Section 't1' is locked"]
        assert blank_controller.document.get_section("t1").x == 100

    def test_toggle_lock_should_be_undoable(self, blank_controller):
        blank_controller.toggle_lock("t1")
        assert actions(blank_controller)[-1] == "Toggle lock"
        blank_controller.undo()
        assert not blank_controller.document.get_section("t1").locked

    def test_hidden_section_should_not_be_hit(self, blank_controller):
        blank_controller.toggle_visibility("t1")
        assert not blank_controller.pointer_down("t1", 110, 410)
        assert blank_controller.state.selected_section is None

    def test_hidden_section_should_be_selectable_from_list(self, blank_controller):
        blank_controller.toggle_visibility("t1")
        assert blank_controller.select_section("t1")
        assert blank_controller.state.selected_sections == ["t1"]


# ===================
# Selection
# ===================


class TestSelection:
    """Click and shift-click."""

    def test_click_should_select_single(self, blank_controller, qtbot):
        with qtbot.waitSignal(blank_controller.selection_changed) as blocker:
            click(blank_controller, "t1")
        assert blocker.args == [["t1"]]
        assert blank_controller.selected.id == "t1"

    def test_shift_click_should_add_without_moving_anchor(self, blank_controller):
        click(blank_controller, "t1")
        click(blank_controller, "t2", shift=True)
        assert blank_controller.state.selected_sections == ["t1", "t2"]
        assert blank_controller.state.selected_section == "t1"

    def test_shift_click_on_empty_selection_should_set_anchor(self, blank_controller):
        click(blank_controller, "t2", shift=True)
        assert blank_controller.state.selected_section == "t2"

    def test_shift_click_should_toggle_membership(self, blank_controller):
        click(blank_controller, "t1")
        click(blank_controller, "t2", shift=True)
        click(blank_controller, "t2", shift=True)
        assert blank_controller.state.selected_sections == ["t1"]

    def test_click_on_empty_canvas_should_clear(self, blank_controller):
        click(blank_controller, "t1")
        blank_controller.pointer_down(None, 5, 5)
        assert blank_controller.state.selected_sections == []
        assert blank_controller.selected is None

    def test_select_section_should_switch_page(self, paged_controller):
        assert paged_controller.select_section("table-p3")
        assert paged_controller.state.current_page == 3


# ===================
# Keyboard
# ===================


class TestKeyboard:
    """Shortcuts."""

    def test_arrow_should_nudge_one_unit(self, blank_controller):
        click(blank_controller, "t1")
        assert blank_controller.key_press("right")
        assert blank_controller.document.get_section("t1").x == 101
        assert actions(blank_controller)[-1] == "Nudge section"

    def test_shift_arrow_should_nudge_ten_units(self, blank_controller):
        click(blank_controller, "t1")
        blank_controller.key_press("up", shift=True)
        assert blank_controller.document.get_section("t1").y == 390

    def test_nudge_should_clamp(self, blank_controller):
        blank_controller.select_section("t1")
        for _ in range(15):
            blank_controller.key_press("left", shift=True)
        assert blank_controller.document.get_section("t1").x == 0

    def test_nudge_locked_should_warn(self, blank_controller, log):
        blank_controller.toggle_lock("t1")
        blank_controller.select_section("t1")
        assert not blank_controller.key_press("down")
        assert log.warnings == ["Section 't1' is locked"]

    def test_ctrl_z_and_ctrl_y(self, blank_controller):
        click(blank_controller, "t1")
        blank_controller.key_press("right")
        assert blank_controller.key_press("z", ctrl=True)
        assert blank_controller.document.get_section("t1").x == 100
        assert blank_controller.key_press("y", ctrl=True)
        assert blank_controller.document.get_section("t1").x == 101

    def test_ctrl_shift_z_should_redo(self, blank_controller):
        click(blank_controller, "t1")
        blank_controller.key_press("right")
        blank_controller.key_press("z", ctrl=True)
        assert blank_controller.key_press("z", ctrl=True, shift=True)

    def test_copy_paste_should_offset_and_get_new_id(self, blank_controller):
        click(blank_controller, "t1")
        original = blank_controller.document.get_section("t1")

        assert blank_controller.key_press("c", ctrl=True)
        assert blank_controller.key_press("v", ctrl=True)

        pasted = blank_controller.selected
        assert pasted.id != "t1"
        assert (pasted.x, pasted.y) == (original.x + 20, original.y + 20)
        assert pasted.settings == original.settings
        assert pasted.style == original.style
        assert actions(blank_controller)[-1] == "Paste section"

    def test_paste_with_empty_clipboard_should_do_nothing(self, blank_controller):
        assert not blank_controller.key_press("v", ctrl=True)
        assert actions(blank_controller) == ["Initial"]

    def test_delete_should_remove_user_section(self, blank_controller):
        click(blank_controller, "t1")
        assert blank_controller.key_press("delete")
        assert blank_controller.document.get_section("t1") is None
        assert blank_controller.state.selected_sections == []

    def test_delete_structural_section_should_warn(self, controller):
        log = SignalLog(controller)
        controller.select_section("header")
        assert not controller.key_press("delete")
        assert controller.document.get_section("header") is not None
        assert "cannot be deleted" in log.warnings[0]

    def test_ctrl_s_without_store_should_warn(self, blank_controller, log):
        assert not blank_controller.key_press("s", ctrl=True)
        assert log.warnings == ["No template store is configured"]

    def test_unbound_key_should_be_ignored(self, blank_controller):
        assert not blank_controller.key_press("q")


# ===================
# Section editing
# ===================


class TestSectionEditing:
    """Add, update, align."""

    def test_add_section_should_select_new_section(self, blank_controller):
        section = blank_controller.add_section("table")
        assert section.page == 1
        assert blank_controller.state.selected_section == section.id
        assert actions(blank_controller)[-1] == "Add table"

    def test_add_unknown_type_should_warn(self, blank_controller, log):
        assert blank_controller.add_section("sticker") is None
        assert log.warnings == ["Unknown section type: sticker"]

    def test_add_without_document_should_warn(self, app, settings):
        editor = EditorController(settings=settings)
        log = SignalLog(editor)
        assert editor.add_section(SectionType.TABLE) is None
        assert log.warnings == ["No template is open"]

    def test_add_preset_should_insert_fresh_copy_on_current_page(self, paged_controller):
        preset = PresetSource().get_preset("fuel-mileage")
        paged_controller.set_current_page(2)

        section = paged_controller.add_preset_section(preset)

        assert (section.x, section.y, section.page) == (30, 400, 2)
        assert section.id != preset.config.id
        assert section.settings["tableData"] == preset.config.settings["tableData"]
        assert paged_controller.state.selected_section == section.id
        assert actions(paged_controller)[-1] == "Add preset: Fuel and mileage"

    def test_add_same_preset_twice_should_get_distinct_ids(self, blank_controller):
        preset = PresetSource().get_preset("contract-qr")
        first = blank_controller.add_preset_section(preset)
        second = blank_controller.add_preset_section(preset)
        assert first.id != second.id
        assert len(blank_controller.document.sections) == 4

    def test_add_preset_should_fit_page(self, blank_controller):
        preset = SectionPreset(
            id="tall",
            name="Tall photo",
            config=Section.create(SectionType.IMAGE, width=200, height=300),
        )
        blank_controller.set_page_settings(orientation="landscape")

        section = blank_controller.add_preset_section(preset)

        assert section.bottom <= blank_controller.document.page_height

    def test_undo_add_preset_should_remove_it(self, blank_controller):
        section = blank_controller.add_preset_section(PresetSource().get_preset("damage-photo"))
        blank_controller.undo()
        assert blank_controller.document.get_section(section.id) is None

    def test_add_preset_without_document_should_warn(self, app, settings):
        editor = EditorController(settings=settings)
        log = SignalLog(editor)
        assert editor.add_preset_section(PresetSource().get_preset("damage-photo")) is None
        assert log.warnings == ["No template is open"]

    def test_update_section_should_merge_settings(self, controller):
        assert controller.update_section("header", settings={"companyName": "ACME"})
        header = controller.document.get_section("header")
        assert header.settings["companyName"] == "ACME"
        assert header.settings["headerColor"] == "#334d99"
        assert actions(controller)[-1] == "Update section"

    def test_update_without_change_should_not_commit(self, controller):
        assert not controller.update_section("header", settings={"companyName": "Company Name"})
        assert actions(controller) == ["Initial"]

    def test_update_invalid_style_should_warn(self, controller):
        log = SignalLog(controller)
        assert not controller.update_section("header", style={"opacity": 2})
        assert log.warnings
        assert controller.document.get_section("header").style is None

    def test_update_condition_and_clear(self, controller):
        condition = {"field": "checkType", "operator": "equals", "value": "pickup"}
        controller.update_section("remarks", condition=condition)
        assert controller.document.get_section("remarks").condition.value == "pickup"

        controller.update_section("remarks", clear_condition=True)
        assert controller.document.get_section("remarks").condition is None

    def test_update_locked_section_content_should_be_allowed(self, blank_controller):
        blank_controller.toggle_lock("t1")
        assert blank_controller.update_section("t1", settings={"customLabel": "Damages"})

    def test_align_should_commit(self, blank_controller):
        click(blank_controller, "t1")
        click(blank_controller, "t2", shift=True)
        assert blank_controller.align("left")
        assert blank_controller.document.get_section("t2").x == 100
        assert actions(blank_controller)[-1] == "Align left"

    def test_align_single_selection_should_warn_and_change_nothing(self, blank_controller, log):
        click(blank_controller, "t1")
        before = blank_controller.document.copy_document()

        assert not blank_controller.align("left")

        assert blank_controller.document == before
        assert actions(blank_controller) == ["Initial"]
        assert log.warnings == ["Select at least 2 sections to align (selected: 1)"]

    def test_align_unknown_mode_should_warn(self, blank_controller, log):
        click(blank_controller, "t1")
        click(blank_controller, "t2", shift=True)
        assert not blank_controller.align("diagonal")
        assert log.warnings == ["Unknown alignment: diagonal"]

    def test_bind_checklist(self, controller):
        template = ChecklistSource().get_template("standard")
        assert controller.bind_checklist("checklist", template)
        settings = controller.document.get_section("checklist").settings
        assert settings["checklistTemplateId"] == "standard"
        assert settings["useCustomItems"] is False

    def test_clone_checklist_should_copy_points(self, controller):
        template = ChecklistSource().get_template("standard")
        controller.clone_checklist("checklist", template)
        settings = controller.document.get_section("checklist").settings
        assert settings["useCustomItems"] is True
        assert len(settings["checklistItems"]) == len(template.inspection_points)

    def test_bind_checklist_to_other_type_should_warn(self, controller):
        log = SignalLog(controller)
        template = ChecklistSource().get_template("standard")
        assert not controller.bind_checklist("header", template)
        assert log.warnings == ["Section 'header' is not a checklist"]


# ===================
# Pages
# ===================


class TestPages:
    """Page operations."""

    def test_add_page_should_switch_to_it(self, blank_controller):
        assert blank_controller.add_page() == 2
        assert blank_controller.state.current_page == 2
        assert blank_controller.document.page_count == 2

    def test_remove_page_should_renumber(self, paged_controller):
        assert paged_controller.remove_page(2)
        doc = paged_controller.document
        assert doc.page_count == 2
        assert doc.get_section("table-p2") is None
        assert doc.get_section("table-p3").page == 2
        assert actions(paged_controller)[-1] == "Remove page"

    def test_undo_remove_page_should_restore_sections(self, paged_controller):
        paged_controller.remove_page(2)
        paged_controller.undo()
        doc = paged_controller.document
        assert doc.page_count == 3
        assert doc.get_section("table-p2").page == 2
        assert doc.get_section("table-p3").page == 3

    def test_redo_remove_page_should_drop_page_again(self, paged_controller):
        paged_controller.remove_page(2)
        paged_controller.undo()
        paged_controller.redo()
        doc = paged_controller.document
        assert doc.page_count == 2
        assert [s.page for s in doc.sections] == [1, 2]

    def test_undo_remove_empty_last_page_should_bring_it_back(self, blank_controller):
        blank_controller.add_page()
        blank_controller.remove_page(2)
        assert blank_controller.document.page_count == 1

        blank_controller.undo()
        assert blank_controller.document.page_count == 2

    def test_undo_add_page_should_remove_it(self, blank_controller):
        blank_controller.add_page()
        assert actions(blank_controller)[-1] == "Add page"

        blank_controller.undo()
        assert blank_controller.document.page_count == 1
        assert blank_controller.state.current_page == 1

    def test_undo_page_settings_should_restore_page_and_geometry(self, blank_controller):
        blank_controller.set_page_settings(orientation="landscape")
        blank_controller.undo()

        doc = blank_controller.document
        assert doc.page_orientation.value == "portrait"
        assert doc.get_section("t2").y == 600
        assert all(s.bottom <= doc.page_height for s in doc.sections)

        blank_controller.redo()
        assert doc.page_orientation.value == "landscape"
        assert doc.get_section("t2").bottom == 595

    def test_remove_last_page_should_warn(self, blank_controller, log):
        assert not blank_controller.remove_page(1)
        assert log.warnings == ["A template needs at least one page"]

    def test_set_current_page_out_of_range_should_warn(self, blank_controller, log):
        assert not blank_controller.set_current_page(4)
        assert log.warnings == ["Page 4 is outside 1..1"]

    def test_landscape_should_fit_sections(self, blank_controller):
        assert blank_controller.set_page_settings(orientation="landscape")
        doc = blank_controller.document
        assert doc.page_dimensions() == (842, 595)
        assert doc.get_section("t2").bottom == 595
        assert actions(blank_controller)[-1] == "Page settings"

    def test_invalid_page_settings_should_warn(self, blank_controller, log):
        assert not blank_controller.set_page_settings(page_size="custom")
        assert log.warnings
        assert blank_controller.document.page_size.value == "A4"


# ===================
# View toggles
# ===================


class TestToggles:
    """Editor toggles."""

    def test_zoom_should_clamp(self, blank_controller):
        assert blank_controller.set_zoom(10) == 3.0
        assert blank_controller.set_zoom(0.01) == 0.25

    def test_snap_options_should_follow_toggles(self, blank_controller):
        blank_controller.set_snap_to_grid(False)
        blank_controller.set_snap_to_edges(False)
        options = blank_controller.snap_options()
        assert not options.snap_to_grid
        assert not options.snap_to_edges


# ===================
# Persistence
# ===================


class TestPersistence:
    """Controller backed by a template store."""

    def test_new_template_should_be_stored(self, stored_controller, repository):
        doc = stored_controller.document
        assert doc.id is not None
        assert repository.exists(doc.id)
        assert doc.is_default

    def test_gesture_should_persist(self, stored_controller, repository):
        stored_controller.pointer_down("remarks", 20, 710)
        stored_controller.pointer_move(20, 690)
        stored_controller.pointer_up()

        doc = stored_controller.document
        stored = repository.load_template(doc.id)
        assert stored.get_section("remarks").y == doc.get_section("remarks").y

    def test_save_should_clear_dirty(self, stored_controller, repository, qtbot):
        section = stored_controller.add_section("table")
        assert stored_controller.state.dirty

        with qtbot.waitSignal(stored_controller.saved):
            assert stored_controller.save()

        assert not stored_controller.state.dirty
        stored = repository.load_template(stored_controller.document.id)
        assert stored.get_section(section.id) is not None

    def test_failed_save_should_keep_draft(self, stored_controller, repository, monkeypatch):
        log = SignalLog(stored_controller)

        def failing(_doc):
            raise TemplateSaveError("disk full")

        monkeypatch.setattr(repository, "save_template", failing)
        section = stored_controller.add_section("table")
        stored_controller.save()

        assert log.errors == ["disk full"]
        assert stored_controller.state.dirty
        assert stored_controller.document.get_section(section.id) is not None

    def test_versions(self, stored_controller):
        version = stored_controller.create_version("Before edits")
        assert version.version == 1
        assert [v.name for v in stored_controller.list_versions()] == ["Before edits"]

    def test_restore_version_should_replace_sections(self, stored_controller):
        original_ids = [s.id for s in stored_controller.document.sections]
        version = stored_controller.create_version()
        stored_controller.add_section("table")
        stored_controller.save()

        assert stored_controller.restore_version(version.id)

        assert [s.id for s in stored_controller.document.sections] == original_ids
        assert stored_controller.history.undo_description == "Restore version"

    def test_undo_restore_version_should_bring_back_page_settings(self, stored_controller):
        version = stored_controller.create_version()
        stored_controller.set_page_settings(orientation="landscape")
        stored_controller.restore_version(version.id)
        assert stored_controller.document.page_orientation.value == "portrait"

        stored_controller.undo()

        doc = stored_controller.document
        assert doc.page_orientation.value == "landscape"
        assert all(s.bottom <= doc.page_height for s in doc.sections)

    def test_restore_unknown_version_should_report_error(self, stored_controller):
        log = SignalLog(stored_controller)
        assert not stored_controller.restore_version(999)
        assert log.errors

    def test_version_without_store_should_warn(self, blank_controller, log):
        assert blank_controller.create_version() is None
        assert log.warnings == ["No template store is configured"]

    def test_duplicate(self, stored_controller):
        copy = stored_controller.duplicate("Copy")
        assert copy.id != stored_controller.document.id
        assert copy.name == "Copy"
        assert not copy.is_default

    def test_delete_current_should_close(self, stored_controller, repository):
        template_id = stored_controller.document.id
        assert stored_controller.delete_current()
        assert stored_controller.document is None
        assert not repository.exists(template_id)

    def test_export_then_import_should_open_new_template(self, stored_controller, repository):
        source_id = stored_controller.document.id
        data = stored_controller.export_current()

        imported = stored_controller.import_template(data)

        assert imported.id != source_id
        assert not imported.is_default
        assert repository.exists(imported.id)
        assert stored_controller.document.id == imported.id

    def test_malformed_import_should_keep_document(self, stored_controller):
        log = SignalLog(stored_controller)
        before = stored_controller.document.id
        assert stored_controller.import_template(b"{oops") is None
        assert log.errors == ["The file is not a valid template export."]
        assert stored_controller.document.id == before

    def test_open_unknown_template_should_report_error(self, stored_controller):
        log = SignalLog(stored_controller)
        assert not stored_controller.open_template("missing")
        assert log.errors

    def test_background_image_should_upload(self, stored_controller, repository, sample_image, tmp_path):
        assert stored_controller.set_background_image(sample_image)
        background = Path(stored_controller.document.background_image)
        assert background.parent == tmp_path / "assets"
        stored = repository.load_template(stored_controller.document.id)
        assert stored.background_image == str(background)

    def test_stored_background_should_not_be_uploaded_again(
        self, stored_controller, sample_image, tmp_path, monkeypatch
    ):
        stored_controller.set_background_image(sample_image)
        background = stored_controller.document.background_image

        def failing(_store, _path):
            raise AssertionError("stored asset uploaded again")

        monkeypatch.setattr("checkform.services.asset_store.AssetStore.upload", failing)
        assert stored_controller.set_background_image(background)

        assert stored_controller.document.background_image == background
        assert len(list((tmp_path / "assets").iterdir())) == 1

    def test_background_image_rejects_non_image(self, stored_controller, tmp_path):
        log = SignalLog(stored_controller)
        notes = tmp_path / "notes.txt"
        notes.write_text("not an image")
        assert not stored_controller.set_background_image(notes)
        assert log.errors == ["The image could not be uploaded."]
        assert stored_controller.document.background_image is None

    def test_import_without_store_should_open_unsaved_copy(self, blank_controller):
        data = blank_controller.export_current()
        imported = blank_controller.import_template(data)
        assert imported.id is None
        assert blank_controller.document.get_section("t1") is not None
