"""Core editing logic."""

from checkform.core.layout_engine import (
    AlignMode,
    SnapOptions,
    align_sections,
    apply_geometry,
    clamp_position,
    compute_drag_position,
    compute_resize,
    find_snap_position,
    fit_to_page,
    nudge_position,
    snap_to_grid,
)
from checkform.core.history import HistoryEntry, HistoryManager
from checkform.core.editor_controller import EditorController, EditorState, GestureKind

__all__ = [
    # Layout engine
    "AlignMode",
    "SnapOptions",
    "align_sections",
    "apply_geometry",
    "clamp_position",
    "compute_drag_position",
    "compute_resize",
    "find_snap_position",
    "fit_to_page",
    "nudge_position",
    "snap_to_grid",
    # History
    "HistoryEntry",
    "HistoryManager",
    # Controller
    "EditorController",
    "EditorState",
    "GestureKind",
]
