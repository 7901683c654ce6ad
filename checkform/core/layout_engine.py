"""Layout engine.

Pure geometry functions for the template editor: drag with edge and grid
snapping, resize from compass handles, keyboard nudges, and multi-section
alignment and distribution.

Nothing here mutates its inputs or touches the undo history; callers apply
the returned geometry and decide when to commit.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Optional

from checkform.models.section import Rect, Section
from checkform.models.template_document import TemplateDocument
from checkform.utils.constants import (
    GRID_SIZE,
    MIN_SECTION_HEIGHT,
    MIN_SECTION_WIDTH,
    SNAP_THRESHOLD,
)
from checkform.utils.exceptions import InsufficientSelectionError
from checkform.utils.logger import setup_logger

logger = setup_logger(__name__)

RESIZE_HANDLE_CHARS = frozenset("nsew")


@dataclass
class SnapOptions:
    """Snapping behaviour for drags."""

    snap_to_grid: bool = True
    snap_to_edges: bool = True
    grid_size: float = GRID_SIZE
    threshold: float = SNAP_THRESHOLD


class AlignMode(str, Enum):
    """Alignment and distribution modes."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    TOP = "top"
    MIDDLE = "middle"
    BOTTOM = "bottom"
    DISTRIBUTE_H = "distribute-h"
    DISTRIBUTE_V = "distribute-v"


# ===================
# Snapping and clamping
# ===================


def _snap_targets(doc: TemplateDocument, moving: Section) -> list[Section]:
    return [
        s
        for s in doc.sections
        if s.id != moving.id and s.page == moving.page and s.visible and not s.locked
    ]


def _snap_axis(
    start: float,
    size: float,
    edges: Iterable[tuple[float, float]],
    threshold: float,
) -> Optional[float]:
    """Snap one axis against (near, far) edge pairs, first match wins."""
    for near, far in edges:
        candidates = (
            (start, near, near),
            (start, far, far),
            (start + size, near, near - size),
            (start + size, far, far - size),
        )
        for edge, target, snapped in candidates:
            if abs(edge - target) < threshold:
                return snapped
    return None


def snap_to_grid(value: float, grid_size: float) -> float:
    """Round a coordinate to the nearest grid line."""
    if grid_size <= 0:
        return value
    return round(value / grid_size) * grid_size


def find_snap_position(
    doc: TemplateDocument,
    moving: Section,
    x: float,
    y: float,
    options: Optional[SnapOptions] = None,
) -> tuple[float, float]:
    """Apply edge snapping, then grid snapping, to a candidate position.

    Edge snapping compares the candidate left/right (top/bottom) edges with
    the edges of every other visible, unlocked section on the same page and
    takes the first match within the threshold per axis. The result is not
    clamped to the page.

    Args:
        doc: Document holding the snap targets
        moving: Section being dragged
        x: Candidate left edge
        y: Candidate top edge
        options: Snap options, defaults when omitted

    Returns:
        Snapped (x, y)
    """
    options = options or SnapOptions()
    snapped_x, snapped_y = x, y

    if options.snap_to_edges:
        targets = _snap_targets(doc, moving)
        edge_x = _snap_axis(
            x, moving.width, ((t.x, t.right) for t in targets), options.threshold
        )
        edge_y = _snap_axis(
            y, moving.height, ((t.y, t.bottom) for t in targets), options.threshold
        )
        if edge_x is not None:
            snapped_x = edge_x
        if edge_y is not None:
            snapped_y = edge_y

    if options.snap_to_grid:
        snapped_x = snap_to_grid(snapped_x, options.grid_size)
        snapped_y = snap_to_grid(snapped_y, options.grid_size)

    return snapped_x, snapped_y


def clamp_position(
    x: float,
    y: float,
    width: float,
    height: float,
    page_width: float,
    page_height: float,
) -> tuple[float, float]:
    """Clamp a top-left corner so the rectangle stays on the page."""
    clamped_x = max(0.0, min(x, page_width - width))
    clamped_y = max(0.0, min(y, page_height - height))
    return clamped_x, clamped_y


def fit_to_page(section: Section, page_width: float, page_height: float) -> Rect:
    """Shrink and move a section so it lies fully on the page."""
    width = min(section.width, page_width)
    height = min(section.height, page_height)
    x, y = clamp_position(section.x, section.y, width, height, page_width, page_height)
    return Rect(x, y, width, height)


# ===================
# Gestures
# ===================


def compute_drag_position(
    doc: TemplateDocument,
    moving: Section,
    pointer_x: float,
    pointer_y: float,
    drag_offset: tuple[float, float],
    options: Optional[SnapOptions] = None,
) -> tuple[float, float]:
    """Compute the new top-left of a dragged section.

    Args:
        doc: Working document
        moving: Dragged section
        pointer_x: Pointer x in page points
        pointer_y: Pointer y in page points
        drag_offset: Pointer offset from the section's top-left at grab time
        options: Snap options

    Returns:
        (x, y) inside the page; the current position for locked or hidden
        sections
    """
    if moving.locked or not moving.visible:
        return moving.x, moving.y

    candidate_x = pointer_x - drag_offset[0]
    candidate_y = pointer_y - drag_offset[1]
    snapped_x, snapped_y = find_snap_position(doc, moving, candidate_x, candidate_y, options)
    return clamp_position(
        snapped_x,
        snapped_y,
        moving.width,
        moving.height,
        doc.page_width,
        doc.page_height,
    )


def parse_handle(handle: str) -> frozenset[str]:
    """Validate a resize handle such as ``"se"`` or ``"n"``.

    Raises:
        ValueError: Empty handle or letters outside n/s/e/w
    """
    letters = frozenset(handle)
    if not handle or not letters <= RESIZE_HANDLE_CHARS:
        raise ValueError(f"Invalid resize handle: {handle!r}")
    return letters


def compute_resize(
    section: Section,
    handle: str,
    pointer_x: float,
    pointer_y: float,
    original_bounds: Rect,
    page_width: float,
    page_height: float,
    min_width: float = MIN_SECTION_WIDTH,
    min_height: float = MIN_SECTION_HEIGHT,
) -> Rect:
    """Compute new bounds while resizing from a handle.

    ``e``/``s`` move the far edge to the pointer. ``w``/``n`` move the near
    edge and keep the opposite edge fixed. The result respects the minimum
    size and is clamped into the page, shrinking rather than moving when an
    edge would leave it.

    Args:
        section: Section being resized
        handle: Any combination of n, s, e, w
        pointer_x: Pointer x in page points
        pointer_y: Pointer y in page points
        original_bounds: Bounds when the gesture started
        page_width: Page width
        page_height: Page height
        min_width: Minimum width
        min_height: Minimum height

    Returns:
        New bounds; the current bounds for locked sections

    Raises:
        ValueError: Invalid handle
    """
    letters = parse_handle(handle)
    if section.locked:
        return section.bounds

    start = original_bounds
    x, y, width, height = start.x, start.y, start.width, start.height

    if "e" in letters:
        width = max(min_width, pointer_x - start.x)
    if "s" in letters:
        height = max(min_height, pointer_y - start.y)
    if "w" in letters:
        width = max(min_width, start.width - (pointer_x - start.x))
        x = start.x + (start.width - width)
    if "n" in letters:
        height = max(min_height, start.height - (pointer_y - start.y))
        y = start.y + (start.height - height)

    # Near edges dragged past the page origin stop there, far edges stay put
    if x < 0:
        width = max(min_width, width + x)
        x = 0.0
    if y < 0:
        height = max(min_height, height + y)
        y = 0.0

    width = max(min_width, min(width, page_width - x))
    height = max(min_height, min(height, page_height - y))
    x, y = clamp_position(x, y, width, height, page_width, page_height)
    return Rect(x, y, width, height)


def nudge_position(
    section: Section,
    dx: float,
    dy: float,
    page_width: float,
    page_height: float,
) -> tuple[float, float]:
    """Move a section by a keyboard step, clamped to the page."""
    if section.locked:
        return section.x, section.y
    return clamp_position(
        section.x + dx,
        section.y + dy,
        section.width,
        section.height,
        page_width,
        page_height,
    )


# ===================
# Alignment
# ===================


def align_sections(
    doc: TemplateDocument,
    selected_ids: Iterable[str],
    mode: AlignMode | str,
) -> dict[str, Rect]:
    """Compute aligned or distributed bounds for a selection.

    Locked sections in the selection are ignored. Sizes never change and
    every result is clamped to the page.

    Args:
        doc: Working document
        selected_ids: Selected section ids
        mode: Alignment mode

    Returns:
        New bounds keyed by section id

    Raises:
        InsufficientSelectionError: Fewer than two movable sections selected
    """
    mode = AlignMode(mode)
    wanted = set(selected_ids)
    sections = [s for s in doc.sections if s.id in wanted and not s.locked]
    if len(sections) < 2:
        raise InsufficientSelectionError(len(sections))

    page_width, page_height = doc.page_width, doc.page_height
    positions: dict[str, tuple[float, float]] = {}

    if mode == AlignMode.LEFT:
        left = min(s.x for s in sections)
        positions = {s.id: (left, s.y) for s in sections}
    elif mode == AlignMode.RIGHT:
        right = max(s.right for s in sections)
        positions = {s.id: (right - s.width, s.y) for s in sections}
    elif mode == AlignMode.CENTER:
        center = sum(s.center_x for s in sections) / len(sections)
        positions = {s.id: (center - s.width / 2, s.y) for s in sections}
    elif mode == AlignMode.TOP:
        top = min(s.y for s in sections)
        positions = {s.id: (s.x, top) for s in sections}
    elif mode == AlignMode.BOTTOM:
        bottom = max(s.bottom for s in sections)
        positions = {s.id: (s.x, bottom - s.height) for s in sections}
    elif mode == AlignMode.MIDDLE:
        middle = sum(s.center_y for s in sections) / len(sections)
        positions = {s.id: (s.x, middle - s.height / 2) for s in sections}
    elif mode == AlignMode.DISTRIBUTE_H:
        ordered = sorted(sections, key=lambda s: s.x)
        gap = (page_width - sum(s.width for s in ordered)) / (len(ordered) + 1)
        cursor = gap
        for s in ordered:
            positions[s.id] = (cursor, s.y)
            cursor += s.width + gap
    else:
        ordered = sorted(sections, key=lambda s: s.y)
        gap = (page_height - sum(s.height for s in ordered)) / (len(ordered) + 1)
        cursor = gap
        for s in ordered:
            positions[s.id] = (s.x, cursor)
            cursor += s.height + gap

    result: dict[str, Rect] = {}
    for s in sections:
        x, y = clamp_position(*positions[s.id], s.width, s.height, page_width, page_height)
        result[s.id] = Rect(x, y, s.width, s.height)

    logger.debug(f"Aligned {len(result)} sections ({mode.value})")
    return result


def apply_geometry(doc: TemplateDocument, updates: Mapping[str, Rect]) -> TemplateDocument:
    """Return a copy of the document with new bounds applied.

    Args:
        doc: Source document, left untouched
        updates: New bounds keyed by section id

    Returns:
        Updated copy

    Raises:
        SectionNotFoundError: An id is not in the document
    """
    result = doc.copy_document()
    for section_id, rect in updates.items():
        section = result.require_section(section_id)
        result.update_section(section.with_geometry(rect))
    return result
