"""Roster Purifier - month-restricted roster cleaning and staff name matching."""

__version__ = "0.1.0"

from roster_purifier.api import app, create_app  # noqa: E402

__all__ = ["app", "create_app"]


def main() -> None:
    """Run the FastAPI server using uvicorn."""
    import uvicorn

    from roster_purifier.config import settings

    uvicorn.run(
        "roster_purifier.api:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
    )
