"""Section canvas widget tests.

Tests:
    - Coordinate mapping and zoom
    - Hit testing and resize handles
    - Mouse and keyboard input routed to the controller
"""

import pytest
from PyQt6.QtCore import QPointF, Qt

from checkform.ui.widgets.section_canvas import CANVAS_MARGIN, SectionCanvas, key_name


# ===================
# Fixtures
# ===================


@pytest.fixture
def canvas(qtbot, controller) -> SectionCanvas:
    """Canvas at zoom 1 on the default template."""
    widget = SectionCanvas(controller)
    qtbot.addWidget(widget)
    widget.set_zoom(1.0)
    widget.show()
    return widget


def press(qtbot, canvas, x, y, modifier=Qt.KeyboardModifier.NoModifier):
    qtbot.mousePress(canvas, Qt.MouseButton.LeftButton, modifier, canvas.widget_point(x, y).toPoint())


def release(qtbot, canvas, x, y):
    qtbot.mouseRelease(canvas, Qt.MouseButton.LeftButton, pos=canvas.widget_point(x, y).toPoint())


# ===================
# Geometry
# ===================


class TestGeometry:
    """Coordinates and zoom."""

    def test_page_point_should_remove_margin_and_zoom(self, canvas):
        canvas.set_zoom(2.0)
        assert canvas.page_point(QPointF(CANVAS_MARGIN + 200, CANVAS_MARGIN + 100)) == (100, 50)

    def test_widget_point_should_invert_page_point(self, canvas):
        point = canvas.widget_point(100, 50)
        assert canvas.page_point(point) == pytest.approx((100, 50))

    def test_size_should_follow_page_and_zoom(self, canvas):
        assert canvas.width() == 595 + CANVAS_MARGIN * 2
        assert canvas.height() == 842 + CANVAS_MARGIN * 2

    def test_zoom_should_clamp_and_emit(self, canvas, qtbot):
        with qtbot.waitSignal(canvas.zoom_changed) as blocker:
            canvas.set_zoom(10)
        assert blocker.args == [3.0]

    def test_zoom_in_and_out(self, canvas):
        canvas.zoom_in()
        assert canvas.zoom == pytest.approx(1.1)
        canvas.zoom_out()
        canvas.zoom_out()
        assert canvas.zoom == pytest.approx(0.9)


# ===================
# Hit testing
# ===================


class TestHitTesting:
    """section_at and handle_at."""

    def test_should_find_section_under_point(self, canvas):
        assert canvas.section_at(20, 20).id == "header"

    def test_empty_area_should_find_nothing(self, canvas):
        assert canvas.section_at(590, 838) is None

    def test_should_prefer_topmost_section(self, canvas, controller):
        table = controller.add_section("table")
        assert canvas.section_at(table.x + 5, table.y + 5).id == table.id

    def test_hidden_section_should_not_be_hit(self, canvas, controller):
        controller.toggle_visibility("header")
        assert canvas.section_at(20, 20) is None

    def test_corner_handle(self, canvas, controller):
        controller.select_section("header")
        assert canvas.handle_at(580, 55) == "se"
        assert canvas.handle_at(15, 15) == "nw"

    def test_edge_handle_only_at_midpoint(self, canvas, controller):
        controller.select_section("header")
        assert canvas.handle_at(297.5, 15) == "n"
        assert canvas.handle_at(100, 15) is None

    def test_locked_section_has_no_handles(self, canvas, controller):
        controller.toggle_lock("header")
        controller.select_section("header")
        assert canvas.handle_at(580, 55) is None

    def test_no_selection_has_no_handles(self, canvas):
        assert canvas.handle_at(580, 55) is None


# ===================
# Input
# ===================


class TestInput:
    """Mouse and keyboard."""

    def test_press_should_select_section(self, canvas, controller, qtbot):
        press(qtbot, canvas, 20, 20)
        assert controller.state.selected_section == "header"
        release(qtbot, canvas, 20, 20)
        assert controller.history.cursor == 0

    def test_press_on_empty_area_should_clear_selection(self, canvas, controller, qtbot):
        controller.select_section("header")
        press(qtbot, canvas, 590, 838)
        assert controller.state.selected_sections == []

    def test_shift_press_should_extend_selection(self, canvas, controller, qtbot):
        press(qtbot, canvas, 20, 20)
        release(qtbot, canvas, 20, 20)
        press(qtbot, canvas, 20, 70, Qt.KeyboardModifier.ShiftModifier)
        assert controller.state.selected_sections == ["header", "contractInfo"]

    def test_press_on_handle_should_start_resize(self, canvas, controller, qtbot):
        controller.select_section("header")
        press(qtbot, canvas, 580, 55)
        assert controller.state.resize_handle == "se"

    def test_arrow_key_should_nudge(self, canvas, controller, qtbot):
        table = controller.add_section("table")
        qtbot.keyClick(canvas, Qt.Key.Key_Right)
        assert controller.document.get_section(table.id).x == table.x + 1

    def test_ctrl_z_should_undo(self, canvas, controller, qtbot):
        table = controller.add_section("table")
        qtbot.keyClick(canvas, Qt.Key.Key_Z, Qt.KeyboardModifier.ControlModifier)
        assert controller.document.get_section(table.id) is None

    def test_paint_should_not_fail(self, canvas, controller, sample_image):
        controller.set_background_image(sample_image)
        controller.select_section("header")
        controller.toggle_visibility("remarks")
        canvas.repaint()


class TestKeyNames:
    """Qt key mapping."""

    @pytest.mark.parametrize(
        "key, name",
        [
            (Qt.Key.Key_Left, "left"),
            (Qt.Key.Key_Down, "down"),
            (Qt.Key.Key_Delete, "delete"),
            (Qt.Key.Key_Backspace, "delete"),
            (Qt.Key.Key_Z, "z"),
            (Qt.Key.Key_S, "s"),
        ],
    )
    def test_mapped_keys(self, key, name):
        assert key_name(key.value) == name

    def test_unmapped_key(self):
        assert key_name(Qt.Key.Key_F1.value) is None
