"""Services for the roster purifier."""

from roster_purifier.services.pipeline import (
    PipelineResult,
    PipelineStatus,
    RosterPipeline,
)
from roster_purifier.services.sheet_loader import SheetLoader

__all__ = ["PipelineResult", "PipelineStatus", "RosterPipeline", "SheetLoader"]
