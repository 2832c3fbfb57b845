"""End-to-end roster processing: load, analyze, clean, resolve.

Stages run strictly in sequence and each consumes the previous stage's
complete output. Load failures raise; the three "nothing to review"
outcomes are reported through ``PipelineStatus`` instead.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum

from roster_purifier.roster import StaffNameList, Workbook
from roster_purifier.services.month_analyzer import find_majority_month
from roster_purifier.services.name_resolver import (
    ALIASES,
    NameAlias,
    ResolutionResult,
    resolve_names,
)
from roster_purifier.services.roster_cleaner import CleaningResult, clean_roster
from roster_purifier.services.sheet_loader import SheetLoader
from roster_purifier.utils.exceptions import ErrorCode
from roster_purifier.utils.logging import get_logger, timed_operation

logger = get_logger(__name__)


class PipelineStatus(str, Enum):
    """Outcome of a pipeline run."""

    COMPLETED = "completed"
    NO_ROSTER_TABS = "no_roster_tabs"
    NO_MAJORITY_MONTH = "no_majority_month"
    EMPTY_AFTER_CLEANING = "empty_after_cleaning"


STATUS_MESSAGES: dict[PipelineStatus, str] = {
    PipelineStatus.COMPLETED: "Roster cleaned and names matched.",
    PipelineStatus.NO_ROSTER_TABS: (
        "No valid tabs found. Please ensure tabs are named in yyyymmdd format."
    ),
    PipelineStatus.NO_MAJORITY_MONTH: "Could not identify dates in Column C.",
    PipelineStatus.EMPTY_AFTER_CLEANING: (
        "No matching data found. All tabs were empty after filtering."
    ),
}

STATUS_ERROR_CODES: dict[PipelineStatus, ErrorCode] = {
    PipelineStatus.NO_ROSTER_TABS: ErrorCode.NO_ROSTER_TABS,
    PipelineStatus.NO_MAJORITY_MONTH: ErrorCode.NO_MAJORITY_MONTH,
    PipelineStatus.EMPTY_AFTER_CLEANING: ErrorCode.EMPTY_AFTER_CLEANING,
}


@dataclass(frozen=True)
class PipelineResult:
    """Everything a caller needs to review and export a processed roster."""

    status: PipelineStatus
    majority_month: str | None = None
    workbook: Workbook | None = None
    staff: StaffNameList | None = None
    cleaning: CleaningResult | None = None
    resolution: ResolutionResult | None = None

    @property
    def message(self) -> str:
        return STATUS_MESSAGES[self.status]

    @property
    def completed(self) -> bool:
        return self.status is PipelineStatus.COMPLETED


class RosterPipeline:
    """Run the roster transformation over a roster and a staff list."""

    def __init__(
        self,
        loader: SheetLoader | None = None,
        aliases: tuple[NameAlias, ...] = ALIASES,
    ) -> None:
        self.loader = loader or SheetLoader()
        self.aliases = aliases

    def process(
        self,
        roster_content: bytes,
        roster_filename: str,
        staff_content: bytes,
        staff_filename: str,
    ) -> PipelineResult:
        """Load both files and run the pipeline.

        Raises:
            RosterLoadError: If either file cannot be decoded.
        """
        with timed_operation(logger, "load") as metrics:
            roster = self.loader.load(roster_content, roster_filename)
            staff_workbook = self.loader.load(staff_content, staff_filename)
            staff = StaffNameList.from_workbook(staff_workbook)
            metrics.sheets_processed = len(roster)
        return self.run(roster, staff)

    def run(self, roster: Workbook, staff: StaffNameList) -> PipelineResult:
        """Run the pipeline on an already loaded roster and staff list."""
        started = time.perf_counter()
        result = self._run(roster, staff)
        logger.log_pipeline_result(
            status=result.status.value,
            duration_seconds=time.perf_counter() - started,
            majority_month=result.majority_month,
            sheets=len(result.workbook) if result.workbook is not None else 0,
            unmatched_names=(
                len(result.resolution.unmatched) if result.resolution else 0
            ),
        )
        return result

    def _run(self, roster: Workbook, staff: StaffNameList) -> PipelineResult:
        if len(roster) == 0:
            return PipelineResult(status=PipelineStatus.NO_ROSTER_TABS, staff=staff)

        with timed_operation(logger, "analyze") as metrics:
            month = find_majority_month(roster)
            metrics.sheets_processed = len(roster)
        if month is None:
            return PipelineResult(status=PipelineStatus.NO_MAJORITY_MONTH, staff=staff)

        with timed_operation(logger, "clean") as metrics:
            cleaning = clean_roster(roster, month)
            metrics.sheets_processed = len(roster)
            metrics.rows_processed = len(cleaning.diagnostics)
        if cleaning.is_empty:
            return PipelineResult(
                status=PipelineStatus.EMPTY_AFTER_CLEANING,
                majority_month=month,
                staff=staff,
                cleaning=cleaning,
            )

        with timed_operation(logger, "resolve") as metrics:
            resolution = resolve_names(cleaning.workbook, staff, self.aliases)
            metrics.sheets_processed = len(cleaning.workbook)
            metrics.rows_processed = len(resolution.matches)

        return PipelineResult(
            status=PipelineStatus.COMPLETED,
            majority_month=month,
            workbook=resolution.workbook,
            staff=staff,
            cleaning=cleaning,
            resolution=resolution,
        )
