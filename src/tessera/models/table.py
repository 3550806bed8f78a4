from typing import List, Optional

import pandas as pd
from pydantic import BaseModel, Field, model_validator

Cell = Optional[str]


class Table(BaseModel):
    """
    Column headers plus rows of raw cell text.
    A cell is either a string or None (logically empty).
    """
    columns: List[str] = Field(default_factory=list)
    rows: List[List[Cell]] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_row_widths(self) -> "Table":
        width = len(self.columns)
        for index, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(
                    f"Row {index} has {len(row)} cells but the table has {width} columns."
                )
        return self

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.columns)

    def column_values(self, column_index: int) -> List[Cell]:
        return [row[column_index] for row in self.rows]

    def copy_deep(self) -> "Table":
        return Table(columns=list(self.columns), rows=[list(r) for r in self.rows])

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows, columns=self.columns, dtype=object)
