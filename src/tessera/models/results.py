from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .json_value import JsonDocument
from .table import Cell


class CellValidationResult(BaseModel):
    """Outcome of validating (and normalizing) one raw cell value."""
    is_valid: bool
    message: Optional[str] = None
    normalized_value: Optional[str] = None
    error_kind: Optional[str] = None

    @classmethod
    def success(cls, normalized: Optional[str]) -> "CellValidationResult":
        return cls(is_valid=True, normalized_value=normalized)

    @classmethod
    def failure(cls, message: str, error_kind: str) -> "CellValidationResult":
        return cls(is_valid=False, message=message, error_kind=error_kind)


class RowError(BaseModel):
    row_index: int
    message: str


class ColumnValidationReport(BaseModel):
    is_valid: bool
    message: Optional[str] = None
    row_errors: List[RowError] = Field(default_factory=list)
    normalized_values: List[Cell] = Field(default_factory=list)


class JsonErrorKind(str, Enum):
    SYNTAX = "Syntax"
    STRUCTURE = "Structure"
    MISSING_KEY = "MissingKey"
    NULL_NOT_ALLOWED = "NullNotAllowed"
    TYPE_MISMATCH = "TypeMismatch"
    UNKNOWN_KEY = "UnknownKey"


class JsonValidationError(BaseModel):
    kind: JsonErrorKind
    message: str
    record_index: Optional[int] = None
    key: Optional[str] = None
    line_number: Optional[int] = None


class JsonValidationResult(BaseModel):
    is_valid: bool
    errors: List[JsonValidationError] = Field(default_factory=list)
    document: Optional[JsonDocument] = None

    @classmethod
    def failure(
        cls,
        message: str,
        kind: JsonErrorKind = JsonErrorKind.SYNTAX,
        line_number: Optional[int] = None,
    ) -> "JsonValidationResult":
        return cls(
            is_valid=False,
            errors=[JsonValidationError(kind=kind, message=message, line_number=line_number)],
        )


class KeyMismatchKind(str, Enum):
    MISSING = "Missing"
    UNKNOWN = "Unknown"


class KeyMismatch(BaseModel):
    record_index: int
    key: str
    kind: KeyMismatchKind


class DiffResult(BaseModel):
    added: List[int] = Field(default_factory=list)
    removed: List[int] = Field(default_factory=list)
    modified: List[int] = Field(default_factory=list)
    key_mismatches: List[KeyMismatch] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.modified or self.key_mismatches)


class JsonEditResult(BaseModel):
    applied: bool
    validation: JsonValidationResult
    diff: Optional[DiffResult] = None


class TableEditResult(BaseModel):
    applied: bool
    errors: List[str] = Field(default_factory=list)


class CellChange(BaseModel):
    """One committed cell edit, as recorded by the history log."""
    model_config = ConfigDict(frozen=True)

    row: int
    col: int
    old_value: Cell = None
    new_value: Cell = None


class HistoryResult(BaseModel):
    ok: bool
    message: Optional[str] = None
    change: Optional[CellChange] = None


class ChangeKind(str, Enum):
    CELL = "cell"
    SCHEMA = "schema"
    RENAME = "rename"
    JSON = "json"
    TABLE = "table"


class ChangeEvent(BaseModel):
    kind: ChangeKind
    row: Optional[int] = None
    col: Optional[int] = None
