"""Load roster workbooks and staff lists into the immutable grid model."""

from __future__ import annotations

import datetime as dt
import io
import re
import zipfile
from pathlib import Path

import pandas as pd
from openpyxl import load_workbook
from openpyxl.cell import Cell
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from roster_purifier.config import settings
from roster_purifier.roster import CellValue, Row, Sheet, Workbook
from roster_purifier.utils.exceptions import (
    FileTooLargeError,
    RosterFileNotFoundError,
    RosterLoadError,
    UnsupportedFormatError,
)
from roster_purifier.utils.logging import get_logger

logger = get_logger(__name__)

WORKBOOK_EXTENSIONS = frozenset({".xlsx", ".xlsm", ".xltx", ".xltm"})
CSV_EXTENSION = ".csv"
CSV_SHEET_NAME = "Sheet1"

ROSTER_TAB_PATTERN = re.compile(r"^\d{8}$")

# Excel number-format tokens, longest first so "yyyy" wins over "yy"
_FORMAT_TOKEN = re.compile(
    r'"[^"]*"|\\.|yyyy|yy|mmmm|mmm|mm|m|dddd|ddd|dd|d|hh|h|ss|s|am/pm|a/p|.',
    re.IGNORECASE,
)
_FORMAT_NOISE = re.compile(r"\[[^\]]*\]")
_TIME_TOKENS = frozenset({"hh", "h", "ss", "s", "am/pm", "a/p"})


def is_roster_tab(name: str) -> bool:
    """A roster tab is one whose trimmed name is exactly eight digits."""
    return ROSTER_TAB_PATTERN.match(name.strip()) is not None


def select_roster_tabs(sheet_names: list[str], is_csv: bool) -> list[str]:
    """Keep only roster tabs when a workbook has any, otherwise keep all.

    CSV files always pass through unfiltered so a single-sheet staff list
    is never discarded.
    """
    if is_csv or not any(is_roster_tab(name) for name in sheet_names):
        return list(sheet_names)
    return [name for name in sheet_names if is_roster_tab(name)]


def render_display_date(value: dt.date | dt.time, number_format: str | None) -> str:
    """Render a date cell the way the spreadsheet would display it.

    Only the date part of the number format is honoured; rendering stops at
    the first time token. Formats without date tokens (``General``) fall
    back to ``yyyy-mm-dd``.
    """
    if isinstance(value, dt.time):
        return value.strftime("%H:%M:%S")

    fmt = _FORMAT_NOISE.sub("", (number_format or "").split(";")[0])
    pieces: list[str] = []
    saw_date_token = False
    for token in _FORMAT_TOKEN.findall(fmt):
        lower = token.lower()
        if lower in _TIME_TOKENS:
            break
        rendered = _render_date_token(value, lower)
        if rendered is not None:
            saw_date_token = True
            pieces.append(rendered)
        elif token.startswith('"'):
            pieces.append(token[1:-1])
        elif token.startswith("\\"):
            pieces.append(token[1:])
        else:
            pieces.append(token)

    if not saw_date_token:
        return value.strftime("%Y-%m-%d")
    return "".join(pieces).strip(" :T")


def _render_date_token(value: dt.date, token: str) -> str | None:
    match token:
        case "yyyy":
            return f"{value.year:04d}"
        case "yy":
            return f"{value.year % 100:02d}"
        case "mmmm":
            return value.strftime("%B")
        case "mmm":
            return value.strftime("%b")
        case "mm":
            return f"{value.month:02d}"
        case "m":
            return str(value.month)
        case "dddd":
            return value.strftime("%A")
        case "ddd":
            return value.strftime("%a")
        case "dd":
            return f"{value.day:02d}"
        case "d":
            return str(value.day)
    return None


class SheetLoader:
    """Turn raw workbook or CSV bytes into a ``Workbook`` of roster tabs."""

    def __init__(self, max_file_size_bytes: int | None = None) -> None:
        self.max_file_size_bytes = (
            max_file_size_bytes
            if max_file_size_bytes is not None
            else settings.max_file_size_bytes
        )

    def load(self, content: bytes, filename: str) -> Workbook:
        """Decode file bytes into a workbook restricted to relevant tabs.

        Args:
            content: Raw file bytes.
            filename: Original file name; its extension selects the codec.

        Returns:
            Workbook with one sheet per retained tab.

        Raises:
            FileTooLargeError: If the content exceeds the configured limit.
            UnsupportedFormatError: If the extension is not a spreadsheet.
            RosterLoadError: If the bytes cannot be decoded.
        """
        if len(content) > self.max_file_size_bytes:
            raise FileTooLargeError(
                file_size=len(content),
                max_size=self.max_file_size_bytes,
                filename=filename,
            )

        extension = Path(filename).suffix.lower()
        if extension == CSV_EXTENSION:
            workbook = self._load_csv(content, filename)
        elif extension in WORKBOOK_EXTENSIONS:
            workbook = self._load_workbook(content, filename)
        else:
            raise UnsupportedFormatError(
                f"Unsupported spreadsheet format: {extension or '(none)'}",
                extension=extension or None,
                filename=filename,
            )

        logger.info(
            "Loaded spreadsheet",
            filename=filename,
            sheets=len(workbook),
            sheet_names=",".join(workbook.sheet_names),
        )
        return workbook

    def load_path(self, file_path: Path) -> Workbook:
        """Load a workbook or CSV from disk."""
        if not file_path.exists():
            raise RosterFileNotFoundError(str(file_path))
        return self.load(file_path.read_bytes(), file_path.name)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _load_workbook(self, content: bytes, filename: str) -> Workbook:
        try:
            wb = load_workbook(
                filename=io.BytesIO(content), data_only=True, read_only=False
            )
        except (
            InvalidFileException,
            zipfile.BadZipFile,
            KeyError,
            ValueError,
            OSError,
        ) as e:
            raise RosterLoadError(
                f"Could not read workbook: {filename}",
                filename=filename,
                cause=f"{type(e).__name__}: {e}",
            ) from e

        selected = select_roster_tabs(wb.sheetnames, is_csv=False)
        if len(selected) < len(wb.sheetnames):
            logger.debug(
                "Filtered non-roster tabs",
                filename=filename,
                kept=len(selected),
                skipped=len(wb.sheetnames) - len(selected),
            )
        return Workbook(sheets=tuple(self._extract_sheet(wb[name]) for name in selected))

    def _extract_sheet(self, sheet: Worksheet) -> Sheet:
        rows: list[Row] = [
            tuple(self._build_cell(cell) for cell in row_cells)
            for row_cells in sheet.iter_rows()
        ]
        return Sheet(name=sheet.title, rows=tuple(_drop_trailing_blank_rows(rows)))

    @staticmethod
    def _build_cell(cell: Cell) -> CellValue:
        """Convert an openpyxl cell to a roster cell value.

        Dates keep the string the spreadsheet displays so that date parsing
        downstream sees the original format.
        """
        value = cell.value
        if value is None:
            return None
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        if isinstance(value, (dt.datetime, dt.date, dt.time)):
            return render_display_date(value, cell.number_format)
        if isinstance(value, dt.timedelta):
            return str(value)
        if isinstance(value, (int, float)):
            return value
        text = str(value)
        return text if text else None

    def _load_csv(self, content: bytes, filename: str) -> Workbook:
        try:
            frame = pd.read_csv(
                io.BytesIO(content),
                header=None,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=False,
                encoding="utf-8-sig",
            )
        except pd.errors.EmptyDataError:
            return Workbook(sheets=(Sheet(name=CSV_SHEET_NAME),))
        except (pd.errors.ParserError, UnicodeDecodeError) as e:
            raise RosterLoadError(
                f"Could not read CSV file: {filename}",
                filename=filename,
                cause=f"{type(e).__name__}: {e}",
            ) from e

        rows: list[Row] = [
            tuple(
                value if isinstance(value, str) and value != "" else None
                for value in record
            )
            for record in frame.itertuples(index=False, name=None)
        ]
        return Workbook(
            sheets=(Sheet(name=CSV_SHEET_NAME, rows=tuple(_drop_trailing_blank_rows(rows))),)
        )


def _drop_trailing_blank_rows(rows: list[Row]) -> list[Row]:
    end = len(rows)
    while end > 0 and all(value is None for value in rows[end - 1]):
        end -= 1
    return rows[:end]
