"""Resolve abbreviated roster names to canonical staff names.

Rules, applied per non-empty name cell:

1. Parenthesised annotations are removed, e.g. ``"J. Smith (am)"`` becomes
   ``"J. Smith"``. A name that is empty afterwards is left untouched.
2. Known aliases are checked in table order. An alias applies when the
   cleaned name equals its trigger (case-insensitive) and some staff name
   contains its target; otherwise matching carries on.
3. The first staff name equal to the cleaned name (case-insensitive).
4. The first staff name containing the cleaned name (case-insensitive).
5. Otherwise the cleaned name itself.

Substring matching can pick an unintended person when one name is part of
another ("Li" in "Julie"). That is a known limitation of the rule set.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from roster_purifier.roster import (
    HEADER_ROW,
    NAME_COLUMN,
    CellValue,
    Row,
    StaffNameList,
    Workbook,
)
from roster_purifier.utils.logging import get_logger

logger = get_logger(__name__)

_ANNOTATION = re.compile(r"\s*\(.*?\)\s*")


@dataclass(frozen=True)
class NameAlias:
    """A roster spelling that must resolve to a specific staff member."""

    trigger: str
    target: str


# Two staff members share "Clara Cheung"; plain substring matching cannot
# tell them apart.
ALIASES: tuple[NameAlias, ...] = (
    NameAlias(trigger="clara ckm", target="clara cheung ka man"),
    NameAlias(trigger="clara cheung", target="clara cheung wing kum"),
)


class MatchRule(str, Enum):
    """Which rule decided a name cell."""

    ALIAS = "alias"
    EXACT = "exact"
    SUBSTRING = "substring"
    UNMATCHED = "unmatched"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class NameMatch:
    """Resolution of one roster name."""

    original: CellValue
    resolved: CellValue
    rule: MatchRule
    sheet: str | None = None
    row: int | None = None

    @property
    def changed(self) -> bool:
        return self.original != self.resolved


@dataclass(frozen=True)
class ResolutionResult:
    """Workbook with resolved names plus one record per name cell."""

    workbook: Workbook
    matches: tuple[NameMatch, ...] = ()

    @property
    def unmatched(self) -> list[NameMatch]:
        return [m for m in self.matches if m.rule is MatchRule.UNMATCHED]


def strip_annotations(name: str) -> str:
    """Remove ``(...)`` annotations and surrounding whitespace from a name."""
    return _ANNOTATION.sub(" ", name.strip()).strip()


class NameResolver:
    """Match roster names against a staff list."""

    def __init__(
        self,
        staff: StaffNameList,
        aliases: Sequence[NameAlias] = ALIASES,
    ) -> None:
        self.staff = staff
        self.aliases = tuple(aliases)
        self._lowered = [(name, name.lower()) for name in staff]

    def resolve(self, value: CellValue) -> NameMatch:
        """Resolve a single name cell value."""
        if value is None:
            return NameMatch(original=value, resolved=value, rule=MatchRule.SKIPPED)

        cleaned = strip_annotations(str(value))
        if not cleaned:
            return NameMatch(original=value, resolved=value, rule=MatchRule.SKIPPED)
        needle = cleaned.lower()

        for alias in self.aliases:
            if needle != alias.trigger.lower():
                continue
            target = self._first_containing(alias.target.lower())
            if target is not None:
                return NameMatch(original=value, resolved=target, rule=MatchRule.ALIAS)

        for name, lowered in self._lowered:
            if lowered == needle:
                return NameMatch(original=value, resolved=name, rule=MatchRule.EXACT)

        partial = self._first_containing(needle)
        if partial is not None:
            return NameMatch(original=value, resolved=partial, rule=MatchRule.SUBSTRING)

        return NameMatch(original=value, resolved=cleaned, rule=MatchRule.UNMATCHED)

    def _first_containing(self, fragment: str) -> str | None:
        for name, lowered in self._lowered:
            if fragment in lowered:
                return name
        return None


def resolve_names(
    workbook: Workbook,
    staff: StaffNameList,
    aliases: Sequence[NameAlias] = ALIASES,
) -> ResolutionResult:
    """Rewrite the name column of every data row to canonical staff names.

    Args:
        workbook: Cleaned roster workbook.
        staff: Canonical staff names.
        aliases: Alias table consulted before generic matching.

    Returns:
        ResolutionResult with a new workbook; the input is not modified.
    """
    resolver = NameResolver(staff, aliases)
    matches: list[NameMatch] = []
    sheets = []

    for sheet in workbook:
        rows: list[Row] = []
        for index, row in enumerate(sheet.rows):
            if index == HEADER_ROW or len(row) <= NAME_COLUMN or row[NAME_COLUMN] is None:
                rows.append(row)
                continue
            match = resolver.resolve(row[NAME_COLUMN])
            matches.append(
                NameMatch(
                    original=match.original,
                    resolved=match.resolved,
                    rule=match.rule,
                    sheet=sheet.name,
                    row=index,
                )
            )
            rows.append(row[:NAME_COLUMN] + (match.resolved,) + row[NAME_COLUMN + 1 :])
        sheets.append(sheet.with_rows(rows))

    result = ResolutionResult(workbook=Workbook(sheets=tuple(sheets)), matches=tuple(matches))
    if result.unmatched:
        logger.warning(
            "Names left unmatched",
            count=len(result.unmatched),
            names=",".join(sorted({str(m.resolved) for m in result.unmatched})),
        )
    logger.info(
        "Names resolved",
        staff=len(staff),
        cells=len(matches),
        changed=sum(1 for m in matches if m.changed),
    )
    return result
