"""UI widgets."""

from checkform.ui.widgets.editor_toolbar import EditorToolbar
from checkform.ui.widgets.section_canvas import SectionCanvas

__all__ = [
    "EditorToolbar",
    "SectionCanvas",
]
