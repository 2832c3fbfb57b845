from __future__ import annotations

import io
from collections.abc import Callable
from typing import Any

import pytest
from openpyxl import Workbook as OpenpyxlWorkbook

from roster_purifier.roster import StaffNameList

HEADER = ["Shift", "Ward", "Date", "Start", "End", "Name", "Role", "Remarks"]

STAFF_NAMES = [
    "Clara Cheung Ka Man",
    "Clara Cheung Wing Kum",
    "Jane Smith",
    "Mary Li",
    "Peter Wong",
]


def roster_row(date: Any, name: Any = "Peter Wong", shift: str = "AM") -> list[Any]:
    """One eight-column roster line with the date in column C and name in F."""
    return [shift, "Ward 5", date, "08:00", "16:00", name, "RN", None]


def build_xlsx(sheets: dict[str, list[list[Any]]]) -> bytes:
    """Serialize ``{tab name: rows}`` to xlsx bytes, tabs in dict order."""
    wb = OpenpyxlWorkbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title=title)
        for row in rows:
            ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_row() -> Callable[..., list[Any]]:
    return roster_row


@pytest.fixture
def make_xlsx() -> Callable[[dict[str, list[list[Any]]]], bytes]:
    return build_xlsx


@pytest.fixture
def staff() -> StaffNameList:
    return StaffNameList(names=tuple(STAFF_NAMES))


@pytest.fixture
def staff_xlsx() -> bytes:
    """Staff list workbook; column A of the first tab holds the names."""
    return build_xlsx({"Staff": [[name] for name in STAFF_NAMES]})


@pytest.fixture
def two_tab_roster_xlsx() -> bytes:
    """Roster with a March tab, an April tab and a non-roster notes tab.

    Across both tabs March has five dated rows and April two, so March is
    the majority month.
    """
    return build_xlsx(
        {
            "20240301": [
                HEADER,
                roster_row("2024/03/01", "Clara CKM"),
                roster_row("2024/03/02", "J. Smith (am)"),
                roster_row("2024/03/03", "peter wong"),
                roster_row("2024/04/01", "Mary"),
                roster_row(None, "Nobody"),
            ],
            "20240401": [
                HEADER,
                roster_row("2024-03-30", "Clara Cheung"),
                roster_row("2024-03-31", "Unknown Locum"),
                roster_row("2024-04-02", "Mary Li"),
            ],
            "Notes": [["Not a roster"]],
        }
    )
