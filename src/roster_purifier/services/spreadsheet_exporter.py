"""Write a processed roster back to an xlsx workbook."""

from __future__ import annotations

import io
from pathlib import Path

from openpyxl import Workbook as OpenpyxlWorkbook
from openpyxl.worksheet.worksheet import Worksheet

from roster_purifier.config import settings
from roster_purifier.roster import DATE_COLUMN, HEADER_ROW, Sheet, Workbook
from roster_purifier.services.date_parser import parse_calendar_date
from roster_purifier.utils.exceptions import ExportError
from roster_purifier.utils.logging import get_logger

logger = get_logger(__name__)

DATE_NUMBER_FORMAT = "yyyy-mm-dd"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def build_output_filename(month: str, extension: str = "xlsx") -> str:
    """Name of the exported workbook, e.g. ``Processed_Roster_2024-03.xlsx``."""
    return f"{settings.export_filename_prefix}{month}.{extension.lstrip('.')}"


def build_workbook(workbook: Workbook) -> OpenpyxlWorkbook:
    """Build an openpyxl workbook with one tab per roster sheet.

    The date column of every data row is parsed again, since review edits
    may have replaced dates with text, and stored as a real date.

    Raises:
        ExportError: If the roster has no sheets or a tab name is invalid.
    """
    if len(workbook) == 0:
        raise ExportError("Cannot export a roster without sheets")

    wb = OpenpyxlWorkbook()
    wb.remove(wb.active)
    for sheet in workbook:
        try:
            ws = wb.create_sheet(title=sheet.name)
        except ValueError as e:
            raise ExportError(
                f"Invalid sheet name for export: {sheet.name}",
                details={"cause": str(e)},
            ) from e
        _write_sheet(ws, sheet)
    return wb


def _write_sheet(ws: Worksheet, sheet: Sheet) -> None:
    for index, row in enumerate(sheet.rows):
        ws.append(list(row))
        if index == HEADER_ROW or len(row) <= DATE_COLUMN or not row[DATE_COLUMN]:
            continue
        date = parse_calendar_date(row[DATE_COLUMN])
        if date is None:
            continue
        cell = ws.cell(row=index + 1, column=DATE_COLUMN + 1)
        cell.value = date
        cell.number_format = DATE_NUMBER_FORMAT


def export_workbook(workbook: Workbook) -> bytes:
    """Serialize a roster workbook to xlsx bytes."""
    wb = build_workbook(workbook)
    buffer = io.BytesIO()
    wb.save(buffer)
    content = buffer.getvalue()
    logger.info("Exported roster", sheets=len(workbook), size_bytes=len(content))
    return content


def write_workbook(workbook: Workbook, path: Path) -> Path:
    """Write a roster workbook to ``path`` and return the path."""
    content = export_workbook(workbook)
    try:
        path.write_bytes(content)
    except OSError as e:
        raise ExportError(f"Could not write workbook: {path}", filename=str(path)) from e
    logger.info("Wrote roster workbook", path=str(path))
    return path
