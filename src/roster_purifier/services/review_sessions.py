"""In-memory storage for processed rosters awaiting human review.

A session holds the pipeline result and the current, possibly edited,
workbook. Edits never touch the stored workbook in place: each edit
produces a new workbook that replaces the session's current one.
Sessions expire after a TTL and are purged whenever a new one is created.
"""

import threading
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from roster_purifier.config import settings
from roster_purifier.roster import CellValue, Workbook
from roster_purifier.services.pipeline import PipelineResult
from roster_purifier.utils.exceptions import (
    SessionExpiredError,
    SessionNotFoundError,
    ValidationError,
)
from roster_purifier.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ReviewSession:
    """Internal record of one roster under review."""

    session_id: str
    result: PipelineResult
    workbook: Workbook
    majority_month: str
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    edits: int = 0

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(UTC)) >= self.expires_at


@dataclass
class ReviewSessionStore:
    """Thread-safe, TTL-bounded store of review sessions."""

    ttl: timedelta = field(default_factory=lambda: settings.review_session_ttl)
    _sessions: dict[str, ReviewSession] = field(default_factory=dict, init=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False)

    def create(self, result: PipelineResult) -> ReviewSession:
        """Store a completed pipeline result for review.

        Raises:
            ValidationError: If the pipeline did not complete.
        """
        if not result.completed or result.workbook is None or not result.majority_month:
            raise ValidationError(
                "Only completed pipeline results can be reviewed",
                field="status",
            )

        self.cleanup_expired()
        now = datetime.now(UTC)
        session = ReviewSession(
            session_id=str(uuid.uuid4()),
            result=result,
            workbook=result.workbook,
            majority_month=result.majority_month,
            created_at=now,
            updated_at=now,
            expires_at=now + self.ttl,
        )
        with self._lock:
            self._sessions[session.session_id] = session

        logger.info(
            "Review session created",
            session_id=session.session_id,
            month=session.majority_month,
            sheets=len(session.workbook),
        )
        return session

    def get(self, session_id: str) -> ReviewSession:
        """Look up a session.

        Raises:
            SessionNotFoundError: If no session has this id.
            SessionExpiredError: If the session outlived its TTL.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            if session.is_expired():
                del self._sessions[session_id]
                raise SessionExpiredError(
                    session_id, ttl_minutes=int(self.ttl.total_seconds() // 60)
                )
            return session

    def apply_edit(
        self,
        session_id: str,
        sheet: str,
        row: int,
        column: int,
        value: CellValue,
    ) -> Workbook:
        """Replace one cell of the session's workbook and return the new workbook.

        Raises:
            CellEditError: If the sheet, row or column does not exist.
        """
        with self._lock:
            session = self.get(session_id)
            session.workbook = session.workbook.with_cell(sheet, row, column, value)
            session.edits += 1
            session.updated_at = datetime.now(UTC)

        logger.debug(
            "Cell edited",
            session_id=session_id,
            sheet=sheet,
            row=row,
            column=column,
        )
        return session.workbook

    def delete(self, session_id: str) -> None:
        """Remove a session.

        Raises:
            SessionNotFoundError: If no session has this id.
        """
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(session_id)
        logger.info("Review session deleted", session_id=session_id)

    def cleanup_expired(self) -> int:
        """Drop expired sessions and return how many were removed."""
        now = datetime.now(UTC)
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if s.is_expired(now)]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.info("Expired review sessions removed", count=len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
