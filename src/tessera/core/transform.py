"""
Table <-> JSON transformation.

Table -> JSON groups consecutive rows into records. The first column is the
array-expansion column: a row whose other columns are all empty continues the
current record instead of starting a new one. Every column collects its
non-empty values across the group; one value becomes a scalar and several
become an array.

JSON -> Table is the inverse: array fields are spread over successive rows
(or joined into a single cell in single-line mode) and scalars go on the
record's first row.
"""
import json
import re
from typing import List, Optional

from tessera.models import (
    DataType,
    JsonArray,
    JsonBool,
    JsonDocument,
    JsonFloat,
    JsonInt,
    JsonNull,
    JsonObject,
    JsonRecord,
    JsonString,
    JsonValue,
    Schema,
    Table,
)
from tessera.models.json_value import dumps_compact, from_python, is_primitive
from tessera.utils.exceptions import ParseError, SchemaMismatchError
from tessera.utils.logger import get_logger
from tessera.utils.parsing import (
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

_OBJECT_SPLIT_RE = re.compile(r"\}\s*,\s*\{")


# ---------------------------------------------------------------------------
# CELL -> JSON VALUE
# ---------------------------------------------------------------------------

def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def _parse_embedded(text: str) -> Optional[JsonValue]:
    """
    Parse cell text holding JSON, including the comma-joined object list
    form `{...},{...}` produced by single-line array rendering.
    """
    try:
        return from_python(json.loads(text, parse_constant=_reject_constant))
    except ValueError:
        pass

    if text.startswith("{") and text.endswith("}"):
        parts = _OBJECT_SPLIT_RE.split(text[1:-1])
        if len(parts) > 1:
            try:
                return JsonArray(items=[
                    from_python(json.loads("{" + part + "}", parse_constant=_reject_constant))
                    for part in parts
                ])
            except ValueError:
                return None
    return None


def convert_cell(text: str, data_type: DataType) -> JsonValue:
    """Convert one non-empty cell to a JSON value of the column's type."""
    trimmed = text.strip()
    if trimmed.startswith(("{", "[")):
        embedded = _parse_embedded(trimmed)
        if embedded is not None:
            return embedded

    try:
        if data_type == DataType.INT:
            return JsonInt(value=parse_int(trimmed))
        if data_type == DataType.FLOAT:
            return JsonFloat(value=parse_float(trimmed, allow_decimal_comma=True))
        if data_type == DataType.BOOL:
            return JsonBool(value=parse_bool(trimmed))
        if data_type == DataType.DATE:
            return JsonString(value=format_date(parse_date(trimmed)))
    except ParseError:
        logger.debug(f"Cell '{text}' does not parse as {data_type.value}; keeping it as text.")

    return JsonString(value=text)


# ---------------------------------------------------------------------------
# TABLE -> JSON
# ---------------------------------------------------------------------------

def is_continuation_row(row: List[Optional[str]]) -> bool:
    """
    True when every column after the first is empty, so the row extends the
    record above it. Single-column rows never continue a record.
    """
    return len(row) >= 2 and all(is_empty(cell) for cell in row[1:])


def group_rows(table: Table) -> List[List[List[Optional[str]]]]:
    """Partition rows into record groups."""
    groups: List[List[List[Optional[str]]]] = []
    for row in table.rows:
        if not groups or not is_continuation_row(row):
            groups.append([row])
        else:
            groups[-1].append(row)
    return groups


def table_to_json(table: Table, schema: Schema) -> JsonDocument:
    if len(schema.columns) != len(table.columns):
        raise SchemaMismatchError(
            f"Schema has {len(schema.columns)} columns but the table has {len(table.columns)}."
        )

    records: List[JsonRecord] = []
    for group in group_rows(table):
        record: JsonRecord = {}
        for index, name in enumerate(table.columns):
            data_type = schema.columns[index].type
            collected = [row[index] for row in group if not is_empty(row[index])]

            if not collected:
                record[name] = JsonNull()
            elif len(collected) == 1:
                record[name] = convert_cell(collected[0], data_type)
            else:
                record[name] = JsonArray(items=[convert_cell(v, data_type) for v in collected])
        records.append(record)

    return JsonDocument(records=records)


# ---------------------------------------------------------------------------
# JSON -> TABLE
# ---------------------------------------------------------------------------

def render_value(value: JsonValue, data_type: DataType) -> Optional[str]:
    """Compact scalar text for one JSON value; structures become compact JSON."""
    if isinstance(value, JsonNull):
        return None
    if isinstance(value, JsonBool):
        return format_bool(value.value)
    if isinstance(value, JsonInt):
        return format_int(value.value)
    if isinstance(value, JsonFloat):
        if data_type == DataType.INT and value.value.is_integer():
            return format_int(int(value.value))
        return format_float(value.value)
    if isinstance(value, JsonString):
        return value.value
    if isinstance(value, (JsonArray, JsonObject)):
        return dumps_compact(value)
    raise TypeError(f"Unsupported JSON node: {type(value).__name__}")


def _render_single_line(value: JsonArray, data_type: DataType) -> Optional[str]:
    if not value.items:
        return None
    if all(is_primitive(item) for item in value.items):
        return ", ".join(render_value(item, data_type) or "" for item in value.items)
    return ",".join(dumps_compact(item) for item in value.items)


def ungroup_record(record: JsonRecord, schema: Schema, multiline: bool = True) -> List[List[Optional[str]]]:
    """
    Rows for one record: max(array lengths, 1) rows in multi-line mode and
    exactly one row in single-line mode. Missing keys produce empty cells.
    """
    column_cells: List[List[Optional[str]]] = []
    for column in schema.columns:
        value = record.get(column.name, JsonNull())
        if isinstance(value, JsonArray):
            if multiline:
                cells = [render_value(item, column.type) for item in value.items]
            else:
                cells = [_render_single_line(value, column.type)]
        else:
            cells = [render_value(value, column.type)]
        column_cells.append(cells)

    height = max([1] + [len(cells) for cells in column_cells])
    return [
        [cells[offset] if offset < len(cells) else None for cells in column_cells]
        for offset in range(height)
    ]


def json_to_table(document: JsonDocument, schema: Schema, multiline: bool = True) -> Table:
    """Ungroup records into rows."""
    rows: List[List[Optional[str]]] = []
    for record in document.records:
        rows.extend(ungroup_record(record, schema, multiline))
    return Table(columns=schema.names(), rows=rows)
