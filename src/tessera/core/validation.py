"""
Validation engine.

Gates every mutation: single cells, whole columns against a candidate schema,
and whole JSON documents against the current schema. Parsers raise; everything
here converts those exceptions into result objects so callers never need to
catch.
"""
import json
from typing import List, Optional

from tessera.models import (
    CellValidationResult,
    ColumnSchema,
    ColumnValidationReport,
    DataType,
    JsonArray,
    JsonBool,
    JsonDocument,
    JsonErrorKind,
    JsonFloat,
    JsonInt,
    JsonNull,
    JsonObject,
    JsonString,
    JsonValidationError,
    JsonValidationResult,
    JsonValue,
    RowError,
    Schema,
    Table,
)
from tessera.core.transform import is_continuation_row, ungroup_record
from tessera.models.json_value import from_python
from tessera.utils.exceptions import (
    CellValueError,
    JsonSyntaxError,
    NullabilityError,
    ParseError,
    RangeError,
    SchemaMismatchError,
)
from tessera.utils.logger import get_logger
from tessera.utils.parsing import (
    can_parse,
    format_bool,
    format_date,
    format_float,
    format_int,
    is_empty,
    parse_bool,
    parse_date,
    parse_float,
    parse_int,
)

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# SINGLE CELL
# ---------------------------------------------------------------------------

def _check_range(column: ColumnSchema, number: float) -> None:
    low, high = column.min, column.max
    if low is not None and high is not None:
        if not low <= number <= high:
            raise RangeError(
                f"{column.name} must be between {format_float(low)} and {format_float(high)}."
            )
    elif low is not None:
        if number < low:
            raise RangeError(f"{column.name} must be at least {format_float(low)}.")
    elif high is not None:
        if number > high:
            raise RangeError(f"{column.name} must be at most {format_float(high)}.")


def normalize_cell(column: ColumnSchema, raw: Optional[str]) -> Optional[str]:
    """
    Return the canonical form of `raw` under `column`.

    Raises:
        NullabilityError: Empty value in a non-nullable column.
        ParseError: Text does not parse as the declared type.
        RangeError: Numeric value outside the configured bounds.
    """
    if is_empty(raw):
        if not column.nullable:
            raise NullabilityError(f"{column.name} cannot be empty.")
        return None

    try:
        if column.type == DataType.INT:
            value = parse_int(raw)
            _check_range(column, value)
            return format_int(value)
        if column.type == DataType.FLOAT:
            number = parse_float(raw)
            _check_range(column, number)
            return format_float(number)
        if column.type == DataType.BOOL:
            return format_bool(parse_bool(raw))
        if column.type == DataType.DATE:
            return format_date(parse_date(raw))
    except ParseError as e:
        raise ParseError(f"{column.name}: {e.message}") from e

    return raw


def validate_cell(column: ColumnSchema, raw: Optional[str]) -> CellValidationResult:
    try:
        return CellValidationResult.success(normalize_cell(column, raw))
    except CellValueError as e:
        return CellValidationResult.failure(e.message, e.kind)


def validate_cell_in_row(
    column: ColumnSchema,
    raw: Optional[str],
    row: List[Optional[str]],
    row_index: int,
) -> CellValidationResult:
    """
    Validate `raw` as it sits in `row`. Empty cells on a continuation row are
    accepted whatever the column's nullability, because the row belongs to the
    record above it and holds no value of its own there.
    """
    if row_index > 0 and is_empty(raw) and is_continuation_row(row):
        return CellValidationResult.success(None)
    return validate_cell(column, raw)


# ---------------------------------------------------------------------------
# COLUMN BATCH
# ---------------------------------------------------------------------------

def validate_column(table: Table, column_index: int, candidate: ColumnSchema) -> ColumnValidationReport:
    """
    Re-validate every cell of one column against a candidate schema.

    Normalized values are reported for every row (None for failing rows) so the
    caller can commit the whole column in one step when the report is valid.
    """
    errors: List[RowError] = []
    normalized: List[Optional[str]] = []

    for row_index, row in enumerate(table.rows):
        result = validate_cell_in_row(candidate, row[column_index], row, row_index)
        normalized.append(result.normalized_value)
        if not result.is_valid:
            errors.append(RowError(row_index=row_index, message=result.message or "Invalid value."))

    if errors:
        logger.info(
            f"Column '{candidate.name}' rejected as {candidate.type.value}: "
            f"{len(errors)} of {len(table.rows)} rows failed."
        )
    return ColumnValidationReport(is_valid=not errors, row_errors=errors, normalized_values=normalized)


# ---------------------------------------------------------------------------
# JSON DOCUMENT
# ---------------------------------------------------------------------------

def is_value_compatible(value: JsonValue, data_type: DataType) -> bool:
    """Type compatibility of a non-null scalar or object with a column type."""
    if data_type == DataType.INT:
        if isinstance(value, JsonInt):
            return True
        return isinstance(value, JsonFloat) and value.value.is_integer()
    if data_type == DataType.FLOAT:
        return isinstance(value, (JsonInt, JsonFloat))
    if data_type == DataType.BOOL:
        return isinstance(value, JsonBool)
    if data_type == DataType.DATE:
        return isinstance(value, JsonString) and can_parse(parse_date, value.value)
    return isinstance(value, (JsonString, JsonObject))


def _check_value(
    column: ColumnSchema,
    value: JsonValue,
    record_index: int,
    errors: List[JsonValidationError],
    multiline: bool = True,
) -> None:
    if isinstance(value, JsonNull) or (isinstance(value, JsonArray) and not value.items):
        if not column.nullable:
            errors.append(JsonValidationError(
                kind=JsonErrorKind.NULL_NOT_ALLOWED,
                record_index=record_index,
                key=column.name,
                message=f"Record {record_index}: '{column.name}' cannot be null.",
            ))
        return

    if isinstance(value, JsonArray):
        if not multiline and len(value.items) > 1 and column.type != DataType.STRING:
            # Single-line display joins the items into one cell
            errors.append(JsonValidationError(
                kind=JsonErrorKind.TYPE_MISMATCH,
                record_index=record_index,
                key=column.name,
                message=(
                    f"Record {record_index}: '{column.name}' is {column.type.value}; "
                    f"single-line display can only hold several values in a String column."
                ),
            ))
            return
        for item in value.items:
            if isinstance(item, JsonArray) and column.type == DataType.STRING:
                # Serialized to JSON text in the table cell
                continue
            if isinstance(item, JsonArray):
                errors.append(JsonValidationError(
                    kind=JsonErrorKind.TYPE_MISMATCH,
                    record_index=record_index,
                    key=column.name,
                    message=f"Record {record_index}: '{column.name}' does not support nested arrays.",
                ))
                return
            _check_value(column, item, record_index, errors)
        return

    if not is_value_compatible(value, column.type):
        errors.append(JsonValidationError(
            kind=JsonErrorKind.TYPE_MISMATCH,
            record_index=record_index,
            key=column.name,
            message=(
                f"Record {record_index}: '{column.name}' expects {column.type.value}, "
                f"got {value.kind}."
            ),
        ))
        return

    if column.has_bounds() and isinstance(value, (JsonInt, JsonFloat)):
        try:
            _check_range(column, value.value)
        except RangeError as e:
            errors.append(JsonValidationError(
                kind=JsonErrorKind.TYPE_MISMATCH,
                record_index=record_index,
                key=column.name,
                message=f"Record {record_index}: {e.message}",
            ))


def check_layout(document: JsonDocument, schema: Schema, multiline: bool = True) -> List[JsonValidationError]:
    """
    Structure errors for records the table cannot hold as one row group.

    Only the first column expands over continuation rows. A record splits when a
    later column spreads over several rows, and merges into the record above when
    every column after the first is empty.
    """
    errors: List[JsonValidationError] = []
    if not schema.columns:
        return errors
    first = schema.columns[0].name

    for index, record in enumerate(document.records):
        rows = ungroup_record(record, schema, multiline)

        if index > 0 and is_continuation_row(rows[0]):
            errors.append(JsonValidationError(
                kind=JsonErrorKind.STRUCTURE,
                record_index=index,
                key=first,
                message=(
                    f"Record {index} only has '{first}' filled and would merge into the "
                    f"record above it."
                ),
            ))
            continue

        for row in rows[1:]:
            if is_continuation_row(row):
                continue
            spread = [schema.columns[i].name for i, cell in enumerate(row) if i > 0 and not is_empty(cell)]
            key = spread[0] if spread else first
            if spread:
                message = (
                    f"Record {index}: '{key}' holds several values but only the first "
                    f"column ('{first}') can spread over rows."
                )
            else:
                message = f"Record {index}: '{key}' holds several values but a single-column table keeps one per row."
            errors.append(JsonValidationError(
                kind=JsonErrorKind.STRUCTURE,
                record_index=index,
                key=key,
                message=message,
            ))
            break

    return errors


def validate_json(document: JsonDocument, schema: Schema, multiline: bool = True) -> JsonValidationResult:
    """
    Check every record against the schema, then, when the values are sound, that
    the records survive the trip through the table unchanged in number.
    """
    errors: List[JsonValidationError] = []
    known = set(schema.names())

    for index, record in enumerate(document.records):
        for column in schema.columns:
            if column.name not in record:
                errors.append(JsonValidationError(
                    kind=JsonErrorKind.MISSING_KEY,
                    record_index=index,
                    key=column.name,
                    message=f"Record {index} is missing key '{column.name}'.",
                ))
                continue
            _check_value(column, record[column.name], index, errors, multiline)

        for key in record:
            if key not in known:
                errors.append(JsonValidationError(
                    kind=JsonErrorKind.UNKNOWN_KEY,
                    record_index=index,
                    key=key,
                    message=f"Record {index} has unknown key '{key}'.",
                ))

    if not errors:
        errors = check_layout(document, schema, multiline)

    return JsonValidationResult(is_valid=not errors, errors=errors, document=document)


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def parse_json_document(text: str) -> JsonDocument:
    """
    Parse JSON text into a JsonDocument.

    Raises:
        JsonSyntaxError: Malformed text, with the line number when known.
        SchemaMismatchError: Root is not an array of objects.
    """
    if text is None or not text.strip():
        raise JsonSyntaxError("JSON cannot be empty.")

    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        raise JsonSyntaxError(f"Invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})", line_number=e.lineno)
    except ValueError as e:
        raise JsonSyntaxError(f"Invalid JSON: {e}")

    if not isinstance(data, list):
        raise SchemaMismatchError("JSON must be an array of objects.")
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise SchemaMismatchError(f"Entry at index {index} is not an object.")
    return JsonDocument(records=[{k: from_python(v) for k, v in entry.items()} for entry in data])


def validate_json_text(text: str, schema: Schema, multiline: bool = True) -> JsonValidationResult:
    try:
        document = parse_json_document(text)
    except JsonSyntaxError as e:
        return JsonValidationResult.failure(e.message, JsonErrorKind.SYNTAX, e.line_number)
    except SchemaMismatchError as e:
        return JsonValidationResult.failure(e.message, JsonErrorKind.STRUCTURE)
    return validate_json(document, schema, multiline)
