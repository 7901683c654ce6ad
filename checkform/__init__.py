"""Checkform template editor.

Visual editor for damage-check PDF templates: positioned sections on one or
more pages, with snapping, alignment, undo/redo and a local template store.
"""

__version__ = "1.0.0"
