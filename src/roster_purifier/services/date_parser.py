"""Calendar date normalisation for roster date cells.

Roster exports write dates as ``yyyy/mm/dd`` or ``yyyy-mm-dd``. Those are
split into components explicitly so the month/day order never depends on
a generic parser's guesses; anything else goes through ``dateutil`` as a
best effort.
"""

from __future__ import annotations

import datetime as dt
import re

from dateutil import parser as dateparser

from roster_purifier.roster import CellValue

_SEPARATORS = re.compile(r"[/-]")
_LEADING_INT = re.compile(r"^\s*(\d+)")
# Fallback parses run against both defaults; a year or month that differs
# between the two came from the default, not from the text.
_FALLBACK_DEFAULTS = (dt.datetime(1900, 1, 1), dt.datetime(1901, 2, 1))


def parse_calendar_date(value: CellValue) -> dt.date | None:
    """Return the calendar date a cell represents, or None.

    Never raises: anything that cannot be read as a date yields None.
    """
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if value is None or isinstance(value, bool):
        return None

    text = str(value).strip()
    if not text:
        return None

    components = _split_year_month_day(text)
    if components is not None:
        year, month, day = components
        try:
            return dt.date(year, month, day)
        except ValueError:
            # A year-first triple that is not a real date (2023/02/29,
            # month 13) is rejected outright instead of being reinterpreted.
            return None

    return _parse_fallback(text)


def _parse_fallback(text: str) -> dt.date | None:
    try:
        first, second = (
            dateparser.parse(text, default=default) for default in _FALLBACK_DEFAULTS
        )
    except (ValueError, OverflowError):
        return None
    if (first.year, first.month) != (second.year, second.month):
        return None
    return first.date()


def _split_year_month_day(text: str) -> tuple[int, int, int] | None:
    parts = _SEPARATORS.split(text)
    if len(parts) != 3:
        return None
    numbers = []
    for part in parts:
        match = _LEADING_INT.match(part)
        if match is None:
            return None
        numbers.append(match.group(1))
    if len(numbers[0]) != 4:
        return None
    year, month, day = (int(n) for n in numbers)
    return year, month, day


def month_key(date: dt.date) -> str:
    """Render the ``YYYY-MM`` grouping key of a date."""
    return f"{date.year:04d}-{date.month:02d}"
