"""
Editing session: the single owner of Table, Schema and JSON.

Every mutation goes through this class. Each operation validates first and only
then writes, so on failure the three views are left exactly as they were. After
a committed mutation the JSON projection is rebuilt, column statistics are
refreshed and listeners are notified.

Not thread-safe. Callers must serialize access (one event loop or UI thread).
"""
from typing import Callable, List, Optional, Tuple

from tessera.config import settings
from tessera.core.diff import build_diff
from tessera.core.history import HistoryLog
from tessera.core.inference import column_statistics
from tessera.core.transform import json_to_table, table_to_json
from tessera.core.validation import validate_cell_in_row, validate_column, validate_json, validate_json_text
from tessera.models import (
    CellChange,
    CellValidationResult,
    ChangeEvent,
    ChangeKind,
    ColumnSchema,
    ColumnValidationReport,
    HistoryResult,
    JsonDocument,
    JsonEditResult,
    JsonErrorKind,
    JsonValidationError,
    JsonValidationResult,
    Schema,
    Table,
    TableEditResult,
)
from tessera.utils.exceptions import InconsistentStateError
from tessera.utils.logger import get_logger

logger = get_logger(__name__)

Listener = Callable[[ChangeEvent], None]
Rows = List[List[Optional[str]]]


def check_table(table: Table, schema: Schema) -> Tuple[Rows, List[str]]:
    """
    Validate every cell of `table` against `schema`. Empty cells on continuation
    rows pass in non-nullable columns.

    Returns the normalized rows and a list of error messages; the rows are only
    meaningful when the error list is empty.
    """
    if len(table.columns) != len(schema.columns):
        return [], [
            f"Table has {len(table.columns)} columns but the schema defines {len(schema.columns)}."
        ]

    errors: List[str] = []
    for index, (header, column) in enumerate(zip(table.columns, schema.columns)):
        if header != column.name:
            errors.append(f"Column {index} is named '{header}' but the schema expects '{column.name}'.")

    rows: Rows = []
    for row_index, row in enumerate(table.rows):
        normalized = []
        for column, cell in zip(schema.columns, row):
            result = validate_cell_in_row(column, cell, row, row_index)
            if not result.is_valid:
                errors.append(f"Row {row_index}: {result.message}")
            normalized.append(result.normalized_value)
        rows.append(normalized)
    return rows, errors


class EditingSession:
    """
    Keeps Table, Schema and JSON consistent for the lifetime of an editing session.

    Args:
        table: Initial table; every cell must satisfy `schema`.
        schema: Column schemas, position-aligned with the table.
        json: Initial JSON projection. Built from the table when omitted or empty.
        history: Undo/redo log; a fresh one is created when omitted.
        multiline: Array display mode used when JSON edits are turned back into rows.

    Raises:
        InconsistentStateError: The initial table does not satisfy the schema.
    """

    def __init__(
        self,
        table: Table,
        schema: Schema,
        json: Optional[JsonDocument] = None,
        history: Optional[HistoryLog] = None,
        multiline: Optional[bool] = None,
    ):
        rows, errors = check_table(table, schema)
        if errors:
            logger.error(f"Refusing inconsistent initial state: {errors[0]}")
            raise InconsistentStateError(
                f"Initial table does not satisfy the schema ({len(errors)} problems): {errors[0]}"
            )

        self._schema = schema.model_copy(deep=True)
        self._table = Table(columns=list(table.columns), rows=rows)
        if json is not None and json.records:
            self._json = json
        else:
            self._json = table_to_json(self._table, self._schema)

        self.history = history if history is not None else HistoryLog()
        self.multiline = settings.ARRAY_DISPLAY_MULTILINE if multiline is None else multiline
        self._listeners: List[Listener] = []
        self.refresh_statistics()

        logger.info(
            f"Session ready: {self._table.row_count} rows, {self._table.column_count} columns, "
            f"{len(self._json.records)} records."
        )

    # --- Read access ---

    @property
    def table(self) -> Table:
        return self._table

    @property
    def schema(self) -> Schema:
        return self._schema

    @property
    def json(self) -> JsonDocument:
        return self._json

    # --- Notifications ---

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _commit(self, event: ChangeEvent) -> None:
        self._json = table_to_json(self._table, self._schema)
        self.refresh_statistics()
        self._notify(event)

    def _notify(self, event: ChangeEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Change listener failed on {event.kind.value} event: {e}")

    # --- Statistics ---

    def refresh_statistics(self) -> None:
        """Recompute distinct counts and samples. Range bounds are left untouched."""
        for index, column in enumerate(self._schema.columns):
            column.distinct_count, column.sample_values = column_statistics(
                self._table.column_values(index)
            )

    # --- Cell edits ---

    def update_cell(self, row: int, col: int, raw: Optional[str], record: bool = True) -> CellValidationResult:
        """
        Validate and write one cell.

        On success the normalized value is stored and, when `record` is set and the
        value actually changed, the edit is pushed onto the history log.
        """
        if not 0 <= row < self._table.row_count:
            return CellValidationResult.failure("Row index is out of range.", "IndexError")
        if not 0 <= col < self._table.column_count:
            return CellValidationResult.failure("Column index is out of range.", "IndexError")

        if raw is not None and settings.TRIM_WHITESPACE:
            raw = raw.strip()

        candidate = list(self._table.rows[row])
        candidate[col] = raw
        result = validate_cell_in_row(self._schema.columns[col], raw, candidate, row)
        if not result.is_valid:
            logger.info(f"Rejected edit at ({row}, {col}): {result.message}")
            return result

        old_value = self._table.rows[row][col]
        self._table.rows[row][col] = result.normalized_value
        if record and old_value != result.normalized_value:
            self.history.record(CellChange(row=row, col=col, old_value=old_value, new_value=result.normalized_value))

        self._commit(ChangeEvent(kind=ChangeKind.CELL, row=row, col=col))
        return result

    def undo(self) -> HistoryResult:
        return self.history.undo(self)

    def redo(self) -> HistoryResult:
        return self.history.redo(self)

    # --- Schema edits ---

    def update_schema(self, col: int, candidate: ColumnSchema) -> ColumnValidationReport:
        """
        Change one column's schema. All rows must pass under the candidate;
        otherwise nothing is mutated and the full report is returned.
        """
        if not 0 <= col < len(self._schema.columns):
            return ColumnValidationReport(is_valid=False, message="Column index is out of range.")

        report = validate_column(self._table, col, candidate)
        if not report.is_valid:
            return report

        for row, value in zip(self._table.rows, report.normalized_values):
            row[col] = value

        column = candidate.model_copy(deep=True)
        self._schema.columns[col] = column
        self._table.columns[col] = column.name
        logger.info(f"Column {col} is now '{column.name}' ({column.type.value}, nullable={column.nullable}).")

        self._commit(ChangeEvent(kind=ChangeKind.SCHEMA, col=col))
        return report

    def rename_column(self, col: int, new_name: str) -> bool:
        if not 0 <= col < len(self._schema.columns):
            return False

        self._schema.columns[col].name = new_name
        self._table.columns[col] = new_name
        self._commit(ChangeEvent(kind=ChangeKind.RENAME, col=col))
        return True

    # --- JSON edits ---

    def preview_json_edit(self, candidate: JsonDocument) -> JsonEditResult:
        """Validate and diff a candidate document without applying it."""
        validation = validate_json(candidate, self._schema, self.multiline)
        if not validation.is_valid:
            return JsonEditResult(applied=False, validation=validation)
        return JsonEditResult(
            applied=False,
            validation=validation,
            diff=build_diff(self._json, candidate, self._schema),
        )

    def preview_json_text(self, text: str) -> JsonEditResult:
        validation = validate_json_text(text, self._schema, self.multiline)
        if not validation.is_valid or validation.document is None:
            return JsonEditResult(applied=False, validation=validation)
        return JsonEditResult(
            applied=False,
            validation=validation,
            diff=build_diff(self._json, validation.document, self._schema),
        )

    def apply_json_edit(self, candidate: JsonDocument) -> JsonEditResult:
        """
        Replace the dataset from an edited JSON document.

        The table is rebuilt from the candidate and normalized; the returned diff is
        against the JSON that was current before the call. History is cleared since
        row positions no longer correspond to recorded edits.
        """
        validation = validate_json(candidate, self._schema, self.multiline)
        if not validation.is_valid:
            logger.info(f"JSON edit rejected with {len(validation.errors)} errors.")
            return JsonEditResult(applied=False, validation=validation)

        table = json_to_table(candidate, self._schema, multiline=self.multiline)
        rows, errors = check_table(table, self._schema)
        if errors:
            return JsonEditResult(
                applied=False,
                validation=JsonValidationResult(
                    is_valid=False,
                    errors=[JsonValidationError(kind=JsonErrorKind.STRUCTURE, message=m) for m in errors],
                    document=candidate,
                ),
            )

        diff = build_diff(self._json, candidate, self._schema)
        self._table = Table(columns=list(table.columns), rows=rows)
        self._json = candidate
        self.history.clear()
        self.refresh_statistics()
        self._notify(ChangeEvent(kind=ChangeKind.JSON))

        logger.info(
            f"JSON edit applied: +{len(diff.added)} -{len(diff.removed)} ~{len(diff.modified)} records."
        )
        return JsonEditResult(applied=True, validation=validation, diff=diff)

    def apply_json_text(self, text: str) -> JsonEditResult:
        validation = validate_json_text(text, self._schema, self.multiline)
        if not validation.is_valid or validation.document is None:
            return JsonEditResult(applied=False, validation=validation)
        return self.apply_json_edit(validation.document)

    # --- Whole-table edits ---

    def apply_table_edit(self, candidate: Table) -> TableEditResult:
        rows, errors = check_table(candidate, self._schema)
        if errors:
            logger.info(f"Table edit rejected with {len(errors)} errors.")
            return TableEditResult(applied=False, errors=errors)

        self._table = Table(columns=list(candidate.columns), rows=rows)
        self.history.clear()
        self._commit(ChangeEvent(kind=ChangeKind.TABLE))
        return TableEditResult(applied=True)
