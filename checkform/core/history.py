"""Undo/redo history.

Linear snapshot log for the template editor. Every committed edit stores a
deep copy of the full section list together with the page settings (size,
orientation, margins, page count); undo and redo move a cursor through the
log and hand a fresh copy of the target snapshot to a restore callback.

Features:
    - Deep-copied snapshots of sections and page settings, with timestamp and action label
    - Future entries discarded on a new commit after undo
    - Bounded depth, oldest entries evicted first
    - Replay guard so a restore is never recorded as a new entry
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from checkform.models.section import Section
from checkform.utils.constants import MAX_HISTORY_DEPTH
from checkform.utils.logger import setup_logger

logger = setup_logger(__name__)

# Receives (sections, page settings) of the target entry
RestoreCallback = Callable[[list[Section], dict[str, Any]], None]


def snapshot_sections(sections: Iterable[Section]) -> list[Section]:
    """Deep copy a section list."""
    return [s.model_copy(deep=True) for s in sections]


@dataclass
class HistoryEntry:
    """One committed state of the section list and page settings."""

    sections: list[Section]
    action: str
    page_settings: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)


class HistoryManager(QObject):
    """Snapshot undo/redo log.

    Signals:
        can_undo_changed: Undo availability changed
        can_redo_changed: Redo availability changed
        history_changed: Log or cursor changed

    Example:
        >>> history = HistoryManager()
        >>> history.reset(doc.sections, doc.page_settings())
        >>> history.push(doc.sections, "Move section", doc.page_settings())
        >>> history.undo(doc.restore_snapshot)
        True
    """

    can_undo_changed = pyqtSignal(bool)
    can_redo_changed = pyqtSignal(bool)
    history_changed = pyqtSignal()

    def __init__(
        self,
        max_depth: int = MAX_HISTORY_DEPTH,
        parent: Optional[QObject] = None,
    ) -> None:
        """Initialize the history.

        Args:
            max_depth: Maximum number of entries kept
            parent: Parent object
        """
        super().__init__(parent)

        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")

        self._entries: list[HistoryEntry] = []
        self._cursor = -1
        self._max_depth = max_depth
        self._is_replaying = False

    # ------------------
    # State
    # ------------------

    @property
    def cursor(self) -> int:
        """Index of the current entry, -1 when empty."""
        return self._cursor

    @property
    def entries(self) -> list[HistoryEntry]:
        """Entries, oldest first."""
        return list(self._entries)

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return 0 <= self._cursor < len(self._entries) - 1

    @property
    def undo_description(self) -> str:
        """Label of the edit an undo would revert."""
        if self.can_undo:
            return self._entries[self._cursor].action
        return ""

    @property
    def redo_description(self) -> str:
        """Label of the edit a redo would reapply."""
        if self.can_redo:
            return self._entries[self._cursor + 1].action
        return ""

    @property
    def is_replaying(self) -> bool:
        """True while a restore callback is running."""
        return self._is_replaying

    @property
    def current(self) -> Optional[HistoryEntry]:
        if self._cursor < 0:
            return None
        return self._entries[self._cursor]

    # ------------------
    # Recording
    # ------------------

    def reset(
        self,
        sections: Iterable[Section],
        page_settings: Optional[Mapping[str, Any]] = None,
        action: str = "Initial",
    ) -> None:
        """Start a new log holding only the given state.

        Args:
            sections: Sections of the newly loaded document
            page_settings: Page settings of the document
            action: Label of the initial entry
        """
        self._entries = [_make_entry(sections, page_settings, action)]
        self._cursor = 0
        self._emit_state_changed()
        logger.debug(f"History reset: {action}")

    def push(
        self,
        sections: Iterable[Section],
        action: str,
        page_settings: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Commit a new state.

        Ignored while replaying. Entries after the cursor are discarded.

        Args:
            sections: Current sections
            action: Edit label such as "Move section"
            page_settings: Current page settings
        """
        if self._is_replaying:
            logger.debug(f"Push ignored during replay: {action}")
            return

        del self._entries[self._cursor + 1:]
        self._entries.append(_make_entry(sections, page_settings, action))

        while len(self._entries) > self._max_depth:
            self._entries.pop(0)

        self._cursor = len(self._entries) - 1
        self._emit_state_changed()
        logger.debug(f"History push: {action} ({self._cursor + 1}/{len(self._entries)})")

    # ------------------
    # Replay
    # ------------------

    def undo(self, restore: RestoreCallback) -> bool:
        """Step back one entry.

        Args:
            restore: Receives deep copies of the target sections and page settings

        Returns:
            True when a step was taken
        """
        if not self.can_undo or self._is_replaying:
            return False

        action = self._entries[self._cursor].action
        self._replay(self._cursor - 1, restore)
        logger.debug(f"Undo: {action}")
        return True

    def redo(self, restore: RestoreCallback) -> bool:
        """Step forward one entry.

        Args:
            restore: Receives deep copies of the target sections and page settings

        Returns:
            True when a step was taken
        """
        if not self.can_redo or self._is_replaying:
            return False

        self._replay(self._cursor + 1, restore)
        logger.debug(f"Redo: {self._entries[self._cursor].action}")
        return True

    def _replay(self, target: int, restore: RestoreCallback) -> None:
        # Cursor moves only once the restore succeeded
        entry = self._entries[target]
        self._is_replaying = True
        try:
            restore(snapshot_sections(entry.sections), dict(entry.page_settings))
        finally:
            self._is_replaying = False
        self._cursor = target
        self._emit_state_changed()

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()
        self._cursor = -1
        self._emit_state_changed()
        logger.debug("History cleared")

    def _emit_state_changed(self) -> None:
        self.can_undo_changed.emit(self.can_undo)
        self.can_redo_changed.emit(self.can_redo)
        self.history_changed.emit()


def _make_entry(
    sections: Iterable[Section],
    page_settings: Optional[Mapping[str, Any]],
    action: str,
) -> HistoryEntry:
    return HistoryEntry(
        sections=snapshot_sections(sections),
        action=action,
        page_settings=dict(page_settings or {}),
    )
