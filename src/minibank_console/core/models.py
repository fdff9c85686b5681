"""Query result models for MiniBank Console.

The backend does not declare column types, so every value is a Cell:
a closed tagged variant of text, number or null. Rows are positional
lists of cells aligned to the result's column names.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class TextCell(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    value: str

    def display(self) -> str:
        return self.value

    def to_python(self) -> str:
        return self.value


class NumberCell(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["number"] = "number"
    value: int | float

    def display(self) -> str:
        # JSON has one number type; 1000.0 and 1000 render the same.
        if isinstance(self.value, float) and self.value.is_integer():
            return str(int(self.value))
        return str(self.value)

    def to_python(self) -> int | float:
        return self.value


class NullCell(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["null"] = "null"

    def display(self) -> str:
        return ""

    def to_python(self) -> None:
        return None


Cell = Annotated[Union[TextCell, NumberCell, NullCell], Field(discriminator="kind")]

NULL = NullCell()


def cell_from_wire(value: Any) -> TextCell | NumberCell | NullCell:
    """Wrap a decoded JSON value in the matching Cell variant."""
    if isinstance(value, (TextCell, NumberCell, NullCell)):
        return value
    if value is None:
        return NULL
    if isinstance(value, bool):
        return TextCell(value="true" if value else "false")
    if isinstance(value, (int, float)):
        return NumberCell(value=value)
    if isinstance(value, str):
        return TextCell(value=value)
    return TextCell(value=json.dumps(value, default=str))


class QueryResult(BaseModel):
    """Result of a query: column names plus positional rows of cells.

    A result with ``rows == []`` means the query ran and matched nothing.
    "No result yet" is represented by the absence of a QueryResult.
    """

    columns: list[str]
    rows: list[list[Cell]] = []

    @field_validator("rows", mode="before")
    @classmethod
    def wrap_wire_values(cls, v: Any) -> Any:
        if v is None:
            return []
        if not isinstance(v, list):
            return v
        return [
            [cell_from_wire(val) for val in row] if isinstance(row, list) else row
            for row in v
        ]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def cell(self, row_index: int, column_index: int) -> TextCell | NumberCell | NullCell:
        """Cell at the given position; missing trailing cells read as null."""
        row = self.rows[row_index]
        if column_index < len(row):
            return row[column_index]
        return NULL

    @classmethod
    def from_wire(cls, payload: dict[str, Any]) -> QueryResult:
        return cls(columns=payload.get("columns") or [], rows=payload.get("rows"))


def validation_summary(exc: ValidationError) -> str:
    """First validation problem as ``field: message``."""
    err = exc.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err.get('msg', 'invalid value')}"
