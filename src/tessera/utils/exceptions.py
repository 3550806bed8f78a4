"""
Custom exception classes for Tessera.
Cell-level errors are raised by the parsers and turned into result objects by the
validation engine; only InconsistentStateError escapes the session.
"""
from typing import Optional


class AppException(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class FileProcessingError(AppException):
    """Raised when file upload or parsing fails."""
    def __init__(self, message: str = "Failed to process the uploaded file."):
        super().__init__(message, status_code=400)


class CellValueError(AppException):
    """Base class for a single cell value that cannot be committed."""
    def __init__(self, message: str = "Invalid cell value."):
        super().__init__(message, status_code=400)


class ParseError(CellValueError):
    """Raised when cell text does not match the declared column type."""


class RangeError(CellValueError):
    """Raised when a numeric value falls outside the configured bounds."""


class NullabilityError(CellValueError):
    """Raised when an empty value is written to a non-nullable column."""


class SchemaMismatchError(AppException):
    """Raised when a table or document is structurally incompatible with the schema."""
    def __init__(self, message: str = "Data does not match the schema.", status_code: int = 422):
        super().__init__(message, status_code=status_code)


class InconsistentStateError(SchemaMismatchError):
    """Raised when a session is constructed from a table that violates its schema."""
    def __init__(self, message: str = "Initial table does not satisfy the schema."):
        super().__init__(message, status_code=500)


class JsonSyntaxError(AppException):
    """Raised when JSON text is malformed."""
    def __init__(self, message: str = "Invalid JSON.", line_number: Optional[int] = None):
        self.line_number = line_number
        super().__init__(message, status_code=400)


class NoActiveSessionError(AppException):
    """Raised when an operation needs a loaded dataset and none is present."""
    def __init__(self, message: str = "No dataset loaded. Please upload a file first."):
        super().__init__(message, status_code=400)
