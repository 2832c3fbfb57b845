"""Pydantic models for API requests and responses."""

import datetime as dt
from typing import Any

from pydantic import BaseModel, Field

from roster_purifier.roster import CellValue, Workbook
from roster_purifier.services.name_resolver import MatchRule, NameMatch
from roster_purifier.services.pipeline import PipelineStatus
from roster_purifier.services.roster_cleaner import RowDiagnostic, RowOutcome

JsonCell = str | int | float | None


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: str
    version: str


class SheetModel(BaseModel):
    """One roster tab; dates are rendered as ``yyyy-mm-dd`` strings."""

    name: str = Field(..., description="Tab name, unchanged from the upload")
    rows: list[list[JsonCell]] = Field(..., description="Header row first")


class NameMatchModel(BaseModel):
    """How one name cell was resolved."""

    sheet: str
    row: int
    original: JsonCell
    resolved: JsonCell
    rule: MatchRule


class RowDiagnosticModel(BaseModel):
    """What the cleaner did with one data row of the upload."""

    sheet: str
    row: int
    outcome: RowOutcome
    month: str | None = None


class ProcessResponse(BaseModel):
    """Response model for the roster processing endpoint."""

    session_id: str = Field(..., description="Identifier of the review session")
    status: PipelineStatus = Field(default=PipelineStatus.COMPLETED)
    majority_month: str = Field(..., description="Dominant month as YYYY-MM")
    export_filename: str = Field(..., description="Name the export will use")
    sheets: list[SheetModel]
    name_matches: list[NameMatchModel]
    row_diagnostics: list[RowDiagnosticModel]
    dropped_sheets: list[str] = Field(default_factory=list)


class SessionResponse(BaseModel):
    """Current state of a review session."""

    session_id: str
    majority_month: str
    edits: int
    created_at: dt.datetime
    updated_at: dt.datetime
    expires_at: dt.datetime
    sheets: list[SheetModel]


class CellEditRequest(BaseModel):
    """A single cell edit made during review."""

    sheet: str = Field(..., description="Tab name")
    row: int = Field(..., ge=0, description="Zero-based row index, header is 0")
    column: int = Field(..., ge=0, description="Zero-based column index")
    value: JsonCell = Field(default=None, description="New cell value")


class ErrorDetail(BaseModel):
    """Error detail model for API error responses."""

    detail: str = Field(..., description="Human-readable error message")
    error_code: str | None = Field(
        default=None,
        description="Machine-readable error code (e.g., 'E1001')",
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details for debugging",
    )
    request_id: str | None = Field(
        default=None,
        description="Request ID for error correlation",
    )


def cell_to_json(value: CellValue) -> JsonCell:
    """Render a cell for JSON; dates become ``yyyy-mm-dd``."""
    if isinstance(value, dt.date):
        return value.strftime("%Y-%m-%d")
    return value


def sheets_to_models(workbook: Workbook) -> list[SheetModel]:
    return [
        SheetModel(
            name=sheet.name,
            rows=[[cell_to_json(value) for value in row] for row in sheet.rows],
        )
        for sheet in workbook
    ]


def match_to_model(match: NameMatch) -> NameMatchModel:
    return NameMatchModel(
        sheet=match.sheet or "",
        row=match.row if match.row is not None else 0,
        original=cell_to_json(match.original),
        resolved=cell_to_json(match.resolved),
        rule=match.rule,
    )


def diagnostic_to_model(diagnostic: RowDiagnostic) -> RowDiagnosticModel:
    return RowDiagnosticModel(
        sheet=diagnostic.sheet,
        row=diagnostic.row,
        outcome=diagnostic.outcome,
        month=diagnostic.month,
    )
