"""Immutable grid model for roster workbooks.

A workbook is an ordered collection of named sheets. Each sheet is a
tuple of rows and each row a tuple of cells. Row 0 is always the header.
Cells are plain Python values restricted to the closed set described by
``CellKind``; any other type is rejected when a sheet is built.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum

from roster_purifier.utils.exceptions import CellEditError

CellValue = str | int | float | dt.date | None
Row = tuple[CellValue, ...]

# Fixed roster layout
HEADER_ROW = 0
DATE_COLUMN = 2
NAME_COLUMN = 5
ROW_LIMIT = 72
COLUMN_COUNT = 8


class CellKind(str, Enum):
    """The four kinds of value a roster cell may hold."""

    NULL = "null"
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"


def cell_kind(value: object) -> CellKind:
    """Classify a cell value.

    Raises:
        TypeError: If the value is not one of the supported cell types.
    """
    if value is None:
        return CellKind.NULL
    # bool is an int subclass but never a valid roster cell
    if isinstance(value, bool):
        raise TypeError("Unsupported cell value type: bool")
    if isinstance(value, str):
        return CellKind.TEXT
    if isinstance(value, (int, float)):
        return CellKind.NUMBER
    if isinstance(value, dt.date):
        return CellKind.DATE
    raise TypeError(f"Unsupported cell value type: {type(value).__name__}")


@dataclass(frozen=True)
class Sheet:
    """A single roster tab: its label and its grid of cells."""

    name: str
    rows: tuple[Row, ...] = ()

    def __post_init__(self) -> None:
        rows = tuple(tuple(row) for row in self.rows)
        for row in rows:
            for value in row:
                cell_kind(value)
        object.__setattr__(self, "rows", rows)

    @property
    def header(self) -> Row | None:
        return self.rows[HEADER_ROW] if self.rows else None

    @property
    def data_rows(self) -> tuple[Row, ...]:
        return self.rows[HEADER_ROW + 1 :]

    def with_rows(self, rows: Iterable[Iterable[CellValue]]) -> Sheet:
        return Sheet(name=self.name, rows=tuple(tuple(row) for row in rows))

    def with_cell(self, row: int, column: int, value: CellValue) -> Sheet:
        """Return a copy of this sheet with one cell replaced."""
        cell_kind(value)
        if not 0 <= row < len(self.rows):
            raise CellEditError(
                f"Row {row} is outside sheet '{self.name}'",
                sheet=self.name,
                row=row,
                column=column,
            )
        target = self.rows[row]
        if not 0 <= column < len(target):
            raise CellEditError(
                f"Column {column} is outside row {row} of sheet '{self.name}'",
                sheet=self.name,
                row=row,
                column=column,
            )
        new_row = target[:column] + (value,) + target[column + 1 :]
        return Sheet(
            name=self.name,
            rows=self.rows[:row] + (new_row,) + self.rows[row + 1 :],
        )


@dataclass(frozen=True)
class Workbook:
    """Ordered collection of sheets keyed by unique tab name."""

    sheets: tuple[Sheet, ...] = ()

    def __post_init__(self) -> None:
        sheets = tuple(self.sheets)
        names = [sheet.name for sheet in sheets]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate sheet names: {', '.join(duplicates)}")
        object.__setattr__(self, "sheets", sheets)

    @property
    def sheet_names(self) -> list[str]:
        return [sheet.name for sheet in self.sheets]

    def __len__(self) -> int:
        return len(self.sheets)

    def __iter__(self) -> Iterator[Sheet]:
        return iter(self.sheets)

    def __getitem__(self, name: str) -> Sheet:
        for sheet in self.sheets:
            if sheet.name == name:
                return sheet
        raise KeyError(name)

    def __contains__(self, name: object) -> bool:
        return any(sheet.name == name for sheet in self.sheets)

    def with_cell(
        self, sheet_name: str, row: int, column: int, value: CellValue
    ) -> Workbook:
        """Return a copy of this workbook with one cell of one sheet replaced.

        This is the only way edits made during review reach the roster; the
        original workbook is left untouched.

        Raises:
            CellEditError: If the sheet, row or column does not exist.
        """
        if sheet_name not in self:
            raise CellEditError(f"Sheet not found: {sheet_name}", sheet=sheet_name)
        return Workbook(
            sheets=tuple(
                sheet.with_cell(row, column, value) if sheet.name == sheet_name else sheet
                for sheet in self.sheets
            )
        )


@dataclass(frozen=True)
class StaffNameList:
    """Canonical full staff names in list order; first match wins."""

    names: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        names = tuple(self.names)
        for name in names:
            if not name or name != name.strip():
                raise ValueError(f"Staff names must be non-empty and trimmed: {name!r}")
        object.__setattr__(self, "names", names)

    @classmethod
    def from_values(cls, values: Iterable[CellValue]) -> StaffNameList:
        """Build a staff list from raw cells, skipping blanks and trimming."""
        names = []
        for value in values:
            if value is None:
                continue
            text = str(value).strip()
            if text:
                names.append(text)
        return cls(names=tuple(names))

    @classmethod
    def from_workbook(cls, workbook: Workbook) -> StaffNameList:
        """Take column A of every row of the first sheet as the staff list."""
        if not workbook.sheets:
            return cls()
        first = workbook.sheets[0]
        return cls.from_values(row[0] if row else None for row in first.rows)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names)

    def __len__(self) -> int:
        return len(self.names)
