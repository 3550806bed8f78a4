from .schema import ColumnSchema, DataType, Schema
from .table import Cell, Table
from .json_value import (
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
    from_python,
    to_python,
)
from .results import (
    CellChange,
    CellValidationResult,
    ChangeEvent,
    ChangeKind,
    ColumnValidationReport,
    DiffResult,
    HistoryResult,
    JsonEditResult,
    JsonErrorKind,
    JsonValidationError,
    JsonValidationResult,
    KeyMismatch,
    KeyMismatchKind,
    RowError,
    TableEditResult,
)
