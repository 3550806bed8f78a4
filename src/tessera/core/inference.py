"""
Schema inference.

Derives a column's logical type and statistics from its observed string values,
and a whole schema from either a table or a typed JSON document.
"""
from typing import Iterable, List, Optional, Sequence, Tuple

from tessera.config import settings
from tessera.models import (
    ColumnSchema,
    DataType,
    JsonArray,
    JsonBool,
    JsonDocument,
    JsonFloat,
    JsonInt,
    JsonNull,
    JsonString,
    JsonValue,
    Schema,
    Table,
)
from tessera.utils.logger import get_logger
from tessera.utils.parsing import (
    can_parse,
    is_empty,
    parse_bool,
    parse_date,
    parse_float,
    parse_int,
)

logger = get_logger(__name__)

_EMPTY_BUCKET = object()

# Checked in order. Int must come before Float: whole numbers parse as both.
_TYPE_PRECEDENCE = (
    (DataType.BOOL, parse_bool),
    (DataType.INT, parse_int),
    (DataType.FLOAT, parse_float),
    (DataType.DATE, parse_date),
)


def _infer_type(values: List[str]) -> DataType:
    for data_type, parser in _TYPE_PRECEDENCE:
        if all(can_parse(parser, v) for v in values):
            return data_type
    return DataType.STRING


def column_statistics(values: Sequence[Optional[str]]) -> Tuple[int, List[str]]:
    """Distinct count (all empties share one bucket) and leading non-empty samples."""
    distinct = {_EMPTY_BUCKET if is_empty(v) else v for v in values}
    samples = [v for v in values if not is_empty(v)][: settings.SAMPLE_VALUE_LIMIT]
    return len(distinct), samples


def infer_column(name: str, values: Sequence[Optional[str]]) -> ColumnSchema:
    """
    Infer a ColumnSchema from raw cell text.

    Empty values do not take part in the type decision but make the column
    nullable and count as one distinct bucket. Never raises: columns that do not
    fit any narrower type widen to String.
    """
    non_empty = [v.strip() for v in values if not is_empty(v)]
    nullable = len(non_empty) < len(values)

    distinct_count, samples = column_statistics(values)

    if not non_empty:
        return ColumnSchema(
            name=name,
            type=DataType.STRING,
            nullable=True,
            distinct_count=distinct_count,
            sample_values=samples,
        )

    data_type = _infer_type(non_empty)
    minimum = maximum = None
    if data_type.is_numeric:
        numbers = [parse_float(v) for v in non_empty]
        minimum, maximum = min(numbers), max(numbers)

    return ColumnSchema(
        name=name,
        type=data_type,
        nullable=nullable,
        min=minimum,
        max=maximum,
        distinct_count=distinct_count,
        sample_values=samples,
    )


def infer_schema(table: Table) -> Schema:
    """Infer one ColumnSchema per table column."""
    columns = [
        infer_column(name, table.column_values(i))
        for i, name in enumerate(table.columns)
    ]
    logger.debug(
        "Inferred schema: " + ", ".join(f"{c.name}:{c.type.value}" for c in columns)
    )
    return Schema(columns=columns)


# ---------------------------------------------------------------------------
# INFERENCE FROM TYPED JSON
# ---------------------------------------------------------------------------

def _flatten(values: Iterable[JsonValue]) -> Iterable[JsonValue]:
    """Spread one level of arrays; nested arrays are yielded whole."""
    for value in values:
        if isinstance(value, JsonArray):
            yield from value.items
        else:
            yield value


def _infer_json_type(values: Iterable[JsonValue]) -> DataType:
    can_int = can_float = can_bool = can_date = True
    seen = False

    for value in _flatten(values):
        if isinstance(value, JsonNull):
            continue
        seen = True

        if isinstance(value, JsonInt):
            can_bool = can_date = False
        elif isinstance(value, JsonFloat):
            can_int = can_bool = can_date = False
        elif isinstance(value, JsonBool):
            can_int = can_float = can_date = False
        elif isinstance(value, JsonString):
            can_int = can_float = can_bool = False
            if can_date and not can_parse(parse_date, value.value):
                can_date = False
        else:
            # Objects and nested arrays are carried as serialized text
            return DataType.STRING

        if not (can_int or can_float or can_bool or can_date):
            return DataType.STRING

    if not seen:
        return DataType.STRING
    if can_int:
        return DataType.INT
    if can_float:
        return DataType.FLOAT
    if can_bool:
        return DataType.BOOL
    if can_date:
        return DataType.DATE
    return DataType.STRING


def infer_schema_from_json(document: JsonDocument) -> Schema:
    """
    Infer a schema from typed JSON records.

    Keys keep their first-seen order and every column is nullable, since records
    may omit keys or hold nulls.
    """
    keys: List[str] = []
    for record in document.records:
        for key in record:
            if key not in keys:
                keys.append(key)

    columns = []
    for key in keys:
        values = [record[key] for record in document.records if key in record]
        columns.append(ColumnSchema(name=key, type=_infer_json_type(values), nullable=True))
    return Schema(columns=columns)
