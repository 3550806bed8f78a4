from typing import List, Optional, Protocol

from tessera.models import CellChange, CellValidationResult, HistoryResult
from tessera.utils.logger import get_logger

logger = get_logger(__name__)


class CellEditor(Protocol):
    def update_cell(self, row: int, col: int, raw: Optional[str], record: bool = True) -> CellValidationResult:
        ...


class HistoryLog:
    """
    Linear undo/redo history of committed cell edits.

    Replays go back through the editor's update_cell, so they are validated
    against the current schema. A replay that fails leaves both stacks exactly
    as they were before the call.
    """

    def __init__(self):
        self._undo: List[CellChange] = []
        self._redo: List[CellChange] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def record(self, change: CellChange) -> None:
        self._undo.append(change)
        self._redo.clear()

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    def undo(self, editor: CellEditor) -> HistoryResult:
        if not self._undo:
            return HistoryResult(ok=False, message="Nothing to undo.")

        change = self._undo.pop()
        result = editor.update_cell(change.row, change.col, change.old_value, record=False)
        if not result.is_valid:
            self._undo.append(change)
            logger.warning(f"Undo of cell ({change.row}, {change.col}) failed: {result.message}")
            return HistoryResult(ok=False, message=result.message or "Undo failed validation.", change=change)

        self._redo.append(change)
        return HistoryResult(ok=True, change=change)

    def redo(self, editor: CellEditor) -> HistoryResult:
        if not self._redo:
            return HistoryResult(ok=False, message="Nothing to redo.")

        change = self._redo.pop()
        result = editor.update_cell(change.row, change.col, change.new_value, record=False)
        if not result.is_valid:
            self._redo.append(change)
            logger.warning(f"Redo of cell ({change.row}, {change.col}) failed: {result.message}")
            return HistoryResult(ok=False, message=result.message or "Redo failed validation.", change=change)

        self._undo.append(change)
        return HistoryResult(ok=True, change=change)
