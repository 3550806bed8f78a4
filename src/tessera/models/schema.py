from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class DataType(str, Enum):
    STRING = "String"
    INT = "Int"
    FLOAT = "Float"
    BOOL = "Bool"
    DATE = "Date"

    @property
    def is_numeric(self) -> bool:
        return self in (DataType.INT, DataType.FLOAT)


class ColumnSchema(BaseModel):
    """Represents the declared type and observed statistics of a single column."""
    name: str
    type: DataType = DataType.STRING
    nullable: bool = True
    min: Optional[float] = None
    max: Optional[float] = None
    distinct_count: int = 0
    sample_values: List[str] = Field(default_factory=list)

    def has_bounds(self) -> bool:
        return self.type.is_numeric and (self.min is not None or self.max is not None)


class Schema(BaseModel):
    """Ordered column schemas, position-aligned with the table columns."""
    columns: List[ColumnSchema] = Field(default_factory=list)

    def names(self) -> List[str]:
        return [c.name for c in self.columns]
