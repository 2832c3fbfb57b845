"""Find the month most roster rows belong to."""

from __future__ import annotations

from collections import Counter

from roster_purifier.roster import DATE_COLUMN, Workbook
from roster_purifier.services.date_parser import month_key, parse_calendar_date
from roster_purifier.utils.logging import get_logger

logger = get_logger(__name__)


def count_months(workbook: Workbook) -> Counter[str]:
    """Count data rows per ``YYYY-MM`` key across every sheet.

    Header rows and rows whose date cell cannot be parsed are not counted.
    Keys are inserted in the order they are first encountered.
    """
    counts: Counter[str] = Counter()
    for sheet in workbook:
        for row in sheet.data_rows:
            value = row[DATE_COLUMN] if len(row) > DATE_COLUMN else None
            date = parse_calendar_date(value)
            if date is not None:
                counts[month_key(date)] += 1
    return counts


def find_majority_month(workbook: Workbook) -> str | None:
    """Return the month key with the most rows, or None if no row has a date.

    Ties go to the key encountered first (sheet order, then row order).
    """
    counts = count_months(workbook)
    if not counts:
        logger.warning("No parseable dates found", sheets=len(workbook))
        return None

    # most_common keeps insertion order among equal counts
    month, count = counts.most_common(1)[0]
    logger.info(
        "Majority month detected",
        month=month,
        rows=count,
        months_seen=len(counts),
    )
    return month
