"""FastAPI application for the roster purifier."""

import uuid
from datetime import UTC, datetime
from typing import Annotated, Any

from fastapi import (
    FastAPI,
    File,
    HTTPException,
    Request,
    Response,
    UploadFile,
    status,
)
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from roster_purifier import __version__
from roster_purifier.config import settings, validate_settings_on_startup
from roster_purifier.models import (
    CellEditRequest,
    ErrorDetail,
    HealthResponse,
    ProcessResponse,
    SessionResponse,
    diagnostic_to_model,
    match_to_model,
    sheets_to_models,
)
from roster_purifier.services.pipeline import STATUS_ERROR_CODES, RosterPipeline
from roster_purifier.services.review_sessions import ReviewSession, ReviewSessionStore
from roster_purifier.services.spreadsheet_exporter import (
    XLSX_MEDIA_TYPE,
    build_output_filename,
    export_workbook,
)
from roster_purifier.utils.exceptions import (
    ErrorCode,
    ProcessingError,
    RosterError,
    ValidationError,
)
from roster_purifier.utils.logging import (
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
    set_session_id,
)

configure_logging(
    level=settings.log_level_int,
    use_structured_formatter=True,
)
logger = get_logger(__name__)


def _session_response(session: ReviewSession) -> dict[str, Any]:
    return SessionResponse(
        session_id=session.session_id,
        majority_month=session.majority_month,
        edits=session.edits,
        created_at=session.created_at,
        updated_at=session.updated_at,
        expires_at=session.expires_at,
        sheets=sheets_to_models(session.workbook),
    ).model_dump(mode="json")


def create_app(
    pipeline: RosterPipeline | None = None,
    store: ReviewSessionStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Roster Purifier API",
        description=(
            "Cleans multi-tab roster workbooks down to their dominant month "
            "and expands roster names to canonical staff names."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.pipeline = pipeline or RosterPipeline()
    app.state.sessions = store or ReviewSessionStore()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    validate_settings_on_startup(settings)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Any:
        """Assign a request ID, expose it in the response and in logs."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        set_request_id(request_id)
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()

    @app.exception_handler(RosterError)
    async def roster_exception_handler(
        request: Request, exc: RosterError
    ) -> JSONResponse:
        """Return structured error responses for application errors."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.error(
            f"Roster Error: {exc.message}",
            error_code=exc.error_code.value,
            http_status=exc.http_status,
        )
        return JSONResponse(
            status_code=exc.http_status,
            content=ErrorDetail(
                detail=exc.message,
                error_code=exc.error_code.value,
                details=exc.details if exc.details else None,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.warning(
            f"HTTP Error: {exc.detail}",
            status_code=exc.status_code,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorDetail(
                detail=str(exc.detail),
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Log unexpected errors and return a generic response."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.exception(
            f"Unexpected error: {type(exc).__name__}",
            error_type=type(exc).__name__,
        )
        if settings.debug:
            detail = f"Internal server error: {type(exc).__name__}: {exc}"
        else:
            detail = "Internal server error. Please try again later."

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorDetail(
                detail=detail,
                error_code=ErrorCode.INTERNAL_ERROR.value,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> dict[str, Any]:
        return {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "version": __version__,
        }

    @app.post(
        "/process",
        response_model=ProcessResponse,
        status_code=status.HTTP_201_CREATED,
        tags=["Roster"],
        responses={
            400: {"model": ErrorDetail, "description": "Unreadable file"},
            413: {"model": ErrorDetail, "description": "File too large"},
            422: {"model": ErrorDetail, "description": "Nothing to review"},
        },
    )
    async def process_roster(
        request: Request,
        roster: Annotated[UploadFile, File(description="Roster workbook")],
        staff: Annotated[UploadFile, File(description="Staff name list")],
    ) -> dict[str, Any]:
        """Clean a roster and match its names against a staff list.

        The cleaned roster is kept in a review session so cells can be
        corrected before export.

        Raises:
            RosterLoadError: 400 if either file cannot be read.
            ProcessingError: 422 if no roster tabs, dates, or rows remain.
        """
        if not roster.filename or not staff.filename:
            raise ValidationError(
                message="Both 'roster' and 'staff' files must be provided",
                field="roster" if not roster.filename else "staff",
            )

        roster_content = await roster.read()
        staff_content = await staff.read()

        pipeline: RosterPipeline = request.app.state.pipeline
        # Parsing is CPU bound; keep it off the event loop.
        result = await run_in_threadpool(
            pipeline.process,
            roster_content,
            roster.filename,
            staff_content,
            staff.filename,
        )
        if not result.completed:
            raise ProcessingError(
                result.message,
                error_code=STATUS_ERROR_CODES[result.status],
                status=result.status.value,
            )

        sessions: ReviewSessionStore = request.app.state.sessions
        session = sessions.create(result)
        set_session_id(session.session_id)

        return ProcessResponse(
            session_id=session.session_id,
            status=result.status,
            majority_month=session.majority_month,
            export_filename=build_output_filename(session.majority_month),
            sheets=sheets_to_models(session.workbook),
            name_matches=[
                match_to_model(m)
                for m in (result.resolution.matches if result.resolution else ())
            ],
            row_diagnostics=[
                diagnostic_to_model(d)
                for d in (result.cleaning.diagnostics if result.cleaning else ())
            ],
            dropped_sheets=(
                list(result.cleaning.dropped_sheets) if result.cleaning else []
            ),
        ).model_dump(mode="json")

    @app.get(
        "/sessions/{session_id}",
        response_model=SessionResponse,
        tags=["Review"],
    )
    async def get_session(request: Request, session_id: str) -> dict[str, Any]:
        sessions: ReviewSessionStore = request.app.state.sessions
        return _session_response(sessions.get(session_id))

    @app.patch(
        "/sessions/{session_id}/cells",
        response_model=SessionResponse,
        tags=["Review"],
    )
    async def edit_cell(
        request: Request, session_id: str, edit: CellEditRequest
    ) -> dict[str, Any]:
        """Apply one reviewer correction to the session's roster."""
        sessions: ReviewSessionStore = request.app.state.sessions
        sessions.apply_edit(session_id, edit.sheet, edit.row, edit.column, edit.value)
        return _session_response(sessions.get(session_id))

    @app.get("/sessions/{session_id}/export", tags=["Review"])
    async def export_session(request: Request, session_id: str) -> Response:
        """Download the reviewed roster as an xlsx workbook."""
        sessions: ReviewSessionStore = request.app.state.sessions
        session = sessions.get(session_id)
        filename = build_output_filename(session.majority_month)
        content = await run_in_threadpool(export_workbook, session.workbook)
        return Response(
            content=content,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.delete(
        "/sessions/{session_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        tags=["Review"],
    )
    async def delete_session(request: Request, session_id: str) -> Response:
        sessions: ReviewSessionStore = request.app.state.sessions
        sessions.delete(session_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app


app = create_app()
