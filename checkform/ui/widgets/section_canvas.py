"""Section canvas widget.

Paints the current template page and turns mouse and keyboard input into
editor controller calls.

Features:
    - Page, margin and grid painting with zoom
    - Section painting in document order, hidden sections faded
    - Selection outline and resize handles
    - Hit testing of visible sections, topmost first
    - Ctrl + wheel zoom
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from PyQt6.QtCore import QPointF, QRectF, QSize, Qt, pyqtSignal
from PyQt6.QtGui import (
    QBrush,
    QColor,
    QKeyEvent,
    QMouseEvent,
    QPainter,
    QPaintEvent,
    QPen,
    QPixmap,
    QWheelEvent,
)
from PyQt6.QtWidgets import QSizePolicy, QWidget

from checkform.core.editor_controller import EditorController, GestureKind
from checkform.models.section import SECTION_COLORS, Section
from checkform.utils.constants import ZOOM_STEP
from checkform.utils.logger import setup_logger

logger = setup_logger(__name__)


# ===================
# Constants
# ===================

# Space around the page (pixels)
CANVAS_MARGIN = 24

# Resize handle size (pixels, independent of zoom)
HANDLE_SIZE = 8

BACKGROUND_COLOR = QColor(245, 245, 245)
PAGE_COLOR = QColor(255, 255, 255)
PAGE_BORDER_COLOR = QColor(200, 200, 200)
PAGE_SHADOW_COLOR = QColor(0, 0, 0, 30)
GRID_COLOR = QColor(235, 235, 235)
MARGIN_COLOR = QColor(255, 140, 140)
SELECTION_COLOR = QColor(37, 99, 235)
HIDDEN_OPACITY = 0.25

# Qt key -> controller key name
KEY_NAMES: dict[int, str] = {
    Qt.Key.Key_Left.value: "left",
    Qt.Key.Key_Right.value: "right",
    Qt.Key.Key_Up.value: "up",
    Qt.Key.Key_Down.value: "down",
    Qt.Key.Key_Delete.value: "delete",
    Qt.Key.Key_Backspace.value: "delete",
}

HANDLE_CURSORS = {
    "n": Qt.CursorShape.SizeVerCursor,
    "s": Qt.CursorShape.SizeVerCursor,
    "e": Qt.CursorShape.SizeHorCursor,
    "w": Qt.CursorShape.SizeHorCursor,
    "nw": Qt.CursorShape.SizeFDiagCursor,
    "se": Qt.CursorShape.SizeFDiagCursor,
    "ne": Qt.CursorShape.SizeBDiagCursor,
    "sw": Qt.CursorShape.SizeBDiagCursor,
}


def key_name(key: int) -> Optional[str]:
    """Map a Qt key code to the controller's key name."""
    if key in KEY_NAMES:
        return KEY_NAMES[key]
    if Qt.Key.Key_A.value <= key <= Qt.Key.Key_Z.value:
        return chr(key).lower()
    return None


# ===================
# Canvas
# ===================


class SectionCanvas(QWidget):
    """Template page canvas.

    The canvas holds no document state of its own; it reads everything from
    the controller and repaints on its signals.

    Signals:
        zoom_changed: Zoom factor changed

    Example:
        >>> canvas = SectionCanvas(controller)
        >>> scroll_area.setWidget(canvas)
    """

    zoom_changed = pyqtSignal(float)

    def __init__(self, controller: EditorController, parent: Optional[QWidget] = None) -> None:
        """Initialize the canvas.

        Args:
            controller: Editor controller
            parent: Parent widget
        """
        super().__init__(parent)

        self._controller = controller
        self._background_path: Optional[str] = None
        self._background_pixmap: Optional[QPixmap] = None

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setSizePolicy(QSizePolicy.Policy.Fixed, QSizePolicy.Policy.Fixed)

        self._controller.document_changed.connect(self._on_document_changed)
        self._controller.selection_changed.connect(lambda _ids: self.update())

        self._update_size()

    @property
    def controller(self) -> EditorController:
        return self._controller

    @property
    def zoom(self) -> float:
        return self._controller.state.zoom

    # ========================
    # Geometry
    # ========================

    def _page_size(self) -> tuple[float, float]:
        doc = self._controller.document
        if doc is None:
            return (0.0, 0.0)
        return doc.page_dimensions()

    def sizeHint(self) -> QSize:
        width, height = self._page_size()
        return QSize(
            int(width * self.zoom) + CANVAS_MARGIN * 2,
            int(height * self.zoom) + CANVAS_MARGIN * 2,
        )

    def _update_size(self) -> None:
        self.setFixedSize(self.sizeHint())
        self.update()

    def page_point(self, pos: QPointF) -> tuple[float, float]:
        """Convert a widget position to page points."""
        return (
            (pos.x() - CANVAS_MARGIN) / self.zoom,
            (pos.y() - CANVAS_MARGIN) / self.zoom,
        )

    def widget_point(self, x: float, y: float) -> QPointF:
        """Convert page points to a widget position."""
        return QPointF(x * self.zoom + CANVAS_MARGIN, y * self.zoom + CANVAS_MARGIN)

    def section_at(self, x: float, y: float) -> Optional[Section]:
        """Topmost visible section on the current page under a page point."""
        doc = self._controller.document
        if doc is None:
            return None
        for section in reversed(doc.sections_on_page(self._controller.state.current_page)):
            if section.visible and section.contains_point(x, y):
                return section
        return None

    def handle_at(self, x: float, y: float) -> Optional[str]:
        """Resize handle of the selected section under a page point."""
        section = self._controller.selected
        if section is None or not section.visible or section.locked:
            return None
        if section.page != self._controller.state.current_page:
            return None

        tolerance = HANDLE_SIZE / self.zoom
        if not (
            section.x - tolerance <= x <= section.right + tolerance
            and section.y - tolerance <= y <= section.bottom + tolerance
        ):
            return None

        vertical = ""
        if abs(y - section.y) <= tolerance:
            vertical = "n"
        elif abs(y - section.bottom) <= tolerance:
            vertical = "s"

        horizontal = ""
        if abs(x - section.x) <= tolerance:
            horizontal = "w"
        elif abs(x - section.right) <= tolerance:
            horizontal = "e"

        handle = vertical + horizontal
        if not handle:
            return None
        # Edge handles only exist at the middle of each side
        if len(handle) == 1:
            if handle in "ns" and abs(x - section.center_x) > tolerance:
                return None
            if handle in "ew" and abs(y - section.center_y) > tolerance:
                return None
        return handle

    # ========================
    # Zoom
    # ========================

    def set_zoom(self, zoom: float) -> None:
        """Set the zoom factor, clamped by the controller."""
        previous = self.zoom
        applied = self._controller.set_zoom(zoom)
        if applied != previous:
            self._update_size()
            self.zoom_changed.emit(applied)

    def zoom_in(self) -> None:
        self.set_zoom(self.zoom + ZOOM_STEP)

    def zoom_out(self) -> None:
        self.set_zoom(self.zoom - ZOOM_STEP)

    def set_show_grid(self, show: bool) -> None:
        self._controller.set_show_grid(show)
        self.update()

    # ========================
    # Painting
    # ========================

    def paintEvent(self, event: QPaintEvent) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), BACKGROUND_COLOR)

        doc = self._controller.document
        if doc is None:
            painter.end()
            return

        width, height = doc.page_dimensions()
        painter.translate(CANVAS_MARGIN, CANVAS_MARGIN)
        painter.scale(self.zoom, self.zoom)

        page_rect = QRectF(0, 0, width, height)
        painter.fillRect(page_rect.translated(3, 3), PAGE_SHADOW_COLOR)
        painter.fillRect(page_rect, PAGE_COLOR)

        pixmap = self._background(doc.background_image)
        if pixmap is not None:
            painter.drawPixmap(page_rect, pixmap, QRectF(pixmap.rect()))

        if self._controller.state.show_grid:
            self._draw_grid(painter, width, height)
        self._draw_margins(painter, width, height, doc.page_margins)

        for section in doc.sections_on_page(self._controller.state.current_page):
            self._draw_section(painter, section)

        painter.setPen(QPen(PAGE_BORDER_COLOR, 1 / self.zoom))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawRect(page_rect)
        painter.end()

    def _draw_grid(self, painter: QPainter, width: float, height: float) -> None:
        grid = self._controller.snap_options().grid_size
        painter.setPen(QPen(GRID_COLOR, 0.5 / self.zoom))
        x = grid
        while x < width:
            painter.drawLine(QPointF(x, 0), QPointF(x, height))
            x += grid
        y = grid
        while y < height:
            painter.drawLine(QPointF(0, y), QPointF(width, y))
            y += grid

    def _draw_margins(self, painter: QPainter, width: float, height: float, margin: float) -> None:
        if margin <= 0:
            return
        pen = QPen(MARGIN_COLOR, 0.5 / self.zoom)
        pen.setStyle(Qt.PenStyle.DashLine)
        painter.setPen(pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawRect(QRectF(margin, margin, width - margin * 2, height - margin * 2))

    def _draw_section(self, painter: QPainter, section: Section) -> None:
        state = self._controller.state
        rect = QRectF(section.x, section.y, section.width, section.height)
        color = QColor(SECTION_COLORS.get(section.type, "#64748b"))

        painter.save()
        if not section.visible:
            painter.setOpacity(HIDDEN_OPACITY)

        fill = QColor(color)
        fill.setAlpha(40)
        painter.setBrush(QBrush(fill))
        pen = QPen(color, 1 / self.zoom)
        if section.locked:
            pen.setStyle(Qt.PenStyle.DotLine)
        painter.setPen(pen)
        painter.drawRect(rect)

        label = section.label
        if section.locked:
            label = f"{label} (locked)"
        painter.setPen(QPen(color.darker(150)))
        painter.drawText(
            rect.adjusted(4, 2, -4, -2),
            int(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop),
            label,
        )

        if section.id in state.selected_sections:
            painter.setBrush(Qt.BrushStyle.NoBrush)
            painter.setPen(QPen(SELECTION_COLOR, 2 / self.zoom))
            painter.drawRect(rect)
            if section.id == state.selected_section and not section.locked:
                self._draw_handles(painter, section)
        painter.restore()

    def _draw_handles(self, painter: QPainter, section: Section) -> None:
        size = HANDLE_SIZE / self.zoom
        painter.setBrush(QBrush(PAGE_COLOR))
        painter.setPen(QPen(SELECTION_COLOR, 1 / self.zoom))
        xs = (section.x, section.center_x, section.right)
        ys = (section.y, section.center_y, section.bottom)
        for i, cx in enumerate(xs):
            for j, cy in enumerate(ys):
                if i == 1 and j == 1:
                    continue
                painter.drawRect(QRectF(cx - size / 2, cy - size / 2, size, size))

    def _background(self, path: Optional[str]) -> Optional[QPixmap]:
        if path != self._background_path:
            self._background_path = path
            self._background_pixmap = None
            if path and Path(path).is_file():
                pixmap = QPixmap(path)
                if pixmap.isNull():
                    logger.warning(f"Cannot load background image: {path}")
                else:
                    self._background_pixmap = pixmap
        return self._background_pixmap

    # ========================
    # Input
    # ========================

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.MouseButton.LeftButton:
            super().mousePressEvent(event)
            return

        self.setFocus()
        x, y = self.page_point(event.position())
        shift = bool(event.modifiers() & Qt.KeyboardModifier.ShiftModifier)

        handle = None if shift else self.handle_at(x, y)
        if handle is not None:
            section_id = self._controller.state.selected_section
        else:
            section = self.section_at(x, y)
            section_id = section.id if section else None

        self._controller.pointer_down(section_id, x, y, shift=shift, handle=handle)
        self.update()
        event.accept()

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        x, y = self.page_point(event.position())
        state = self._controller.state

        if state.gesture != GestureKind.IDLE or state.blocked_section_id is not None:
            if self._controller.pointer_move(x, y):
                self.update()
            event.accept()
            return

        handle = self.handle_at(x, y)
        if handle is not None:
            self.setCursor(HANDLE_CURSORS[handle])
        elif self.section_at(x, y) is not None and state.movement_enabled:
            self.setCursor(Qt.CursorShape.SizeAllCursor)
        else:
            self.unsetCursor()
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self._controller.pointer_up()
            self.update()
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def leaveEvent(self, event) -> None:
        self._controller.pointer_leave()
        self.unsetCursor()
        super().leaveEvent(event)

    def wheelEvent(self, event: QWheelEvent) -> None:
        """Ctrl + wheel zooms."""
        if event.modifiers() & Qt.KeyboardModifier.ControlModifier:
            if event.angleDelta().y() > 0:
                self.zoom_in()
            else:
                self.zoom_out()
            event.accept()
            return
        super().wheelEvent(event)

    def keyPressEvent(self, event: QKeyEvent) -> None:
        name = key_name(event.key())
        if name is None:
            super().keyPressEvent(event)
            return

        modifiers = event.modifiers()
        ctrl = bool(
            modifiers & Qt.KeyboardModifier.ControlModifier
            or modifiers & Qt.KeyboardModifier.MetaModifier
        )
        shift = bool(modifiers & Qt.KeyboardModifier.ShiftModifier)

        if self._controller.key_press(name, ctrl=ctrl, shift=shift):
            self.update()
            event.accept()
            return
        super().keyPressEvent(event)

    # ========================
    # Slots
    # ========================

    def _on_document_changed(self, _doc) -> None:
        if self.sizeHint() != self.size():
            self._update_size()
        else:
            self.update()
