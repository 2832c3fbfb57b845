"""Restrict a roster workbook to one month and the fixed 72x8 shape.

Each sheet is cut to its first 72 rows (header plus 71 data rows), data
rows outside the target month are dropped, every surviving row is cut or
padded to 8 cells, and sheets without any remaining data row disappear.
The input workbook is never modified; a new one is returned together with
a per-row record of what happened.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from roster_purifier.roster import (
    COLUMN_COUNT,
    DATE_COLUMN,
    HEADER_ROW,
    ROW_LIMIT,
    CellValue,
    Row,
    Sheet,
    Workbook,
)
from roster_purifier.services.date_parser import month_key, parse_calendar_date
from roster_purifier.utils.logging import LogContext, get_logger

logger = get_logger(__name__)


class RowOutcome(str, Enum):
    """What the cleaner did with a data row."""

    KEPT = "kept"
    DROPPED_NO_DATE = "dropped_no_date"
    DROPPED_OTHER_MONTH = "dropped_other_month"
    DROPPED_ROW_LIMIT = "dropped_row_limit"


@dataclass(frozen=True)
class RowDiagnostic:
    """Outcome for one data row, addressed by its index in the input sheet."""

    sheet: str
    row: int
    outcome: RowOutcome
    month: str | None = None


@dataclass(frozen=True)
class CleaningResult:
    """Cleaned workbook plus the per-row and per-sheet record."""

    workbook: Workbook
    month: str
    diagnostics: tuple[RowDiagnostic, ...] = ()
    dropped_sheets: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return len(self.workbook) == 0

    def count(self, outcome: RowOutcome) -> int:
        return sum(1 for d in self.diagnostics if d.outcome is outcome)


def fit_row(row: Row, width: int = COLUMN_COUNT) -> Row:
    """Cut or pad a row with nulls to exactly ``width`` cells."""
    padding: tuple[CellValue, ...] = (None,) * max(0, width - len(row))
    return tuple(row[:width]) + padding


def clean_sheet(sheet: Sheet, month: str) -> tuple[Sheet, list[RowDiagnostic]]:
    """Clean one sheet; the result may contain only its header row."""
    diagnostics: list[RowDiagnostic] = []
    if not sheet.rows:
        return sheet, diagnostics

    rows: list[Row] = [fit_row(sheet.rows[HEADER_ROW])]
    for index, row in enumerate(sheet.rows[HEADER_ROW + 1 :], start=HEADER_ROW + 1):
        if index >= ROW_LIMIT:
            diagnostics.append(
                RowDiagnostic(sheet.name, index, RowOutcome.DROPPED_ROW_LIMIT)
            )
            continue

        value = row[DATE_COLUMN] if len(row) > DATE_COLUMN else None
        date = parse_calendar_date(value)
        if date is None:
            diagnostics.append(
                RowDiagnostic(sheet.name, index, RowOutcome.DROPPED_NO_DATE)
            )
            continue

        row_month = month_key(date)
        if row_month != month:
            diagnostics.append(
                RowDiagnostic(
                    sheet.name, index, RowOutcome.DROPPED_OTHER_MONTH, row_month
                )
            )
            continue

        fitted = fit_row(row)
        rows.append(fitted[:DATE_COLUMN] + (date,) + fitted[DATE_COLUMN + 1 :])
        diagnostics.append(
            RowDiagnostic(sheet.name, index, RowOutcome.KEPT, row_month)
        )

    return sheet.with_rows(rows), diagnostics


def clean_roster(workbook: Workbook, month: str) -> CleaningResult:
    """Clean every sheet of a workbook against the target month.

    Args:
        workbook: Loaded roster workbook.
        month: Target ``YYYY-MM`` key, normally the majority month.

    Returns:
        CleaningResult whose workbook holds only sheets with data rows left.
    """
    kept: list[Sheet] = []
    dropped: list[str] = []
    diagnostics: list[RowDiagnostic] = []

    for sheet in workbook:
        with LogContext(sheet=sheet.name):
            cleaned, sheet_diagnostics = clean_sheet(sheet, month)
            diagnostics.extend(sheet_diagnostics)
            if len(cleaned.rows) > 1:
                kept.append(cleaned)
            else:
                dropped.append(sheet.name)
                logger.debug("Dropped sheet without rows in month")

    result = CleaningResult(
        workbook=Workbook(sheets=tuple(kept)),
        month=month,
        diagnostics=tuple(diagnostics),
        dropped_sheets=tuple(dropped),
    )
    logger.info(
        "Roster cleaned",
        month=month,
        sheets_kept=len(kept),
        sheets_dropped=len(dropped),
        rows_kept=result.count(RowOutcome.KEPT),
        rows_dropped=len(diagnostics) - result.count(RowOutcome.KEPT),
    )
    return result
