"""Tests for the FastAPI application."""

import asyncio
import threading
from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest
from fastapi import status

from roster_purifier.api import create_app
from roster_purifier.roster import StaffNameList, Workbook
from roster_purifier.services.pipeline import PipelineResult, RosterPipeline
from roster_purifier.services.review_sessions import ReviewSessionStore
from roster_purifier.services.sheet_loader import SheetLoader

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture
async def client() -> AsyncIterator[httpx.AsyncClient]:
    """Create an async test client backed by a fresh session store."""
    app = create_app(store=ReviewSessionStore())
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


def _upload(roster: bytes, staff: bytes, roster_name: str = "roster.xlsx") -> Any:
    return {
        "roster": (roster_name, roster, XLSX),
        "staff": ("staff.xlsx", staff, XLSX),
    }


async def _process(
    client: httpx.AsyncClient, roster: bytes, staff: bytes
) -> dict[str, Any]:
    response = await client.post("/process", files=_upload(roster, staff))
    assert response.status_code == status.HTTP_201_CREATED, response.text
    body: dict[str, Any] = response.json()
    return body


class TestHealthEndpoint:
    async def test_health(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert "timestamp" in data

    async def test_request_id_echoed(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

    async def test_request_id_generated(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health")
        assert response.headers["X-Request-ID"]


class TestProcessEndpoint:
    """Tests for POST /process."""

    async def test_process_two_tab_roster(
        self,
        client: httpx.AsyncClient,
        two_tab_roster_xlsx: bytes,
        staff_xlsx: bytes,
    ) -> None:
        data = await _process(client, two_tab_roster_xlsx, staff_xlsx)

        assert data["status"] == "completed"
        assert data["majority_month"] == "2024-03"
        assert data["export_filename"] == "Processed_Roster_2024-03.xlsx"
        assert [s["name"] for s in data["sheets"]] == ["20240301", "20240401"]

        first_row = data["sheets"][0]["rows"][1]
        assert first_row[2] == "2024-03-01"
        assert first_row[5] == "Clara Cheung Ka Man"
        assert len(first_row) == 8

        unmatched = [m for m in data["name_matches"] if m["rule"] == "unmatched"]
        assert {m["resolved"] for m in unmatched} == {"J. Smith", "Unknown Locum"}
        outcomes = [d["outcome"] for d in data["row_diagnostics"]]
        assert outcomes.count("kept") == 5
        assert outcomes.count("dropped_other_month") == 2
        assert data["dropped_sheets"] == []

    async def test_no_majority_month(
        self,
        client: httpx.AsyncClient,
        make_xlsx: Any,
        staff_xlsx: bytes,
    ) -> None:
        roster = make_xlsx({"20240301": [["Shift", "Ward", "Date"], ["AM", "W", "TBC"]]})

        response = await client.post("/process", files=_upload(roster, staff_xlsx))

        assert response.status_code == 422
        data = response.json()
        assert data["error_code"] == "E4002"
        assert data["detail"] == "Could not identify dates in Column C."
        assert data["details"]["status"] == "no_majority_month"

    async def test_unsupported_format(
        self, client: httpx.AsyncClient, staff_xlsx: bytes
    ) -> None:
        response = await client.post(
            "/process", files=_upload(b"%PDF-1.4", staff_xlsx, "roster.pdf")
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "E1003"

    async def test_corrupt_workbook(
        self, client: httpx.AsyncClient, staff_xlsx: bytes
    ) -> None:
        response = await client.post("/process", files=_upload(b"junk", staff_xlsx))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["error_code"] == "E1004"
        assert data["details"]["filename"] == "roster.xlsx"
        assert data["request_id"]

    async def test_file_too_large(
        self, two_tab_roster_xlsx: bytes, staff_xlsx: bytes
    ) -> None:
        app = create_app(
            pipeline=RosterPipeline(loader=SheetLoader(max_file_size_bytes=100)),
            store=ReviewSessionStore(),
        )
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        ) as client:
            response = await client.post(
                "/process", files=_upload(two_tab_roster_xlsx, staff_xlsx)
            )

        assert response.status_code == 413
        assert response.json()["error_code"] == "E1002"

    async def test_missing_staff_file(
        self, client: httpx.AsyncClient, two_tab_roster_xlsx: bytes
    ) -> None:
        response = await client.post(
            "/process",
            files={"roster": ("roster.xlsx", two_tab_roster_xlsx, XLSX)},
        )
        assert response.status_code == 422

    async def test_unexpected_error_is_generic(self, staff_xlsx: bytes) -> None:
        class BrokenPipeline(RosterPipeline):
            def run(self, roster: Workbook, staff: StaffNameList) -> PipelineResult:
                raise RuntimeError("boom")

        app = create_app(pipeline=BrokenPipeline(), store=ReviewSessionStore())
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app, raise_app_exceptions=False),
            base_url="http://test",
        ) as client:
            response = await client.post(
                "/process", files=_upload(staff_xlsx, staff_xlsx)
            )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        data = response.json()
        assert data["error_code"] == "E9001"
        assert "boom" not in data["detail"]

    async def test_health_answers_while_processing(
        self, two_tab_roster_xlsx: bytes, staff_xlsx: bytes
    ) -> None:
        """Workbook parsing runs in a worker thread, not on the event loop."""
        started = threading.Event()
        released = threading.Event()

        class HeldLoader(SheetLoader):
            def load(self, content: bytes, filename: str) -> Workbook:
                started.set()
                released.wait(timeout=5)
                return super().load(content, filename)

        app = create_app(
            pipeline=RosterPipeline(loader=HeldLoader()),
            store=ReviewSessionStore(),
        )
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        ) as client:
            processing = asyncio.create_task(
                client.post(
                    "/process", files=_upload(two_tab_roster_xlsx, staff_xlsx)
                )
            )
            while not started.is_set():
                await asyncio.sleep(0.01)

            health = await client.get("/health")

            assert health.status_code == status.HTTP_200_OK
            assert not processing.done()
            released.set()
            response = await processing

        assert response.status_code == status.HTTP_201_CREATED


class TestReviewEndpoints:
    """Tests for the review session endpoints."""

    async def test_get_session(
        self,
        client: httpx.AsyncClient,
        two_tab_roster_xlsx: bytes,
        staff_xlsx: bytes,
    ) -> None:
        created = await _process(client, two_tab_roster_xlsx, staff_xlsx)

        response = await client.get(f"/sessions/{created['session_id']}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["session_id"] == created["session_id"]
        assert data["edits"] == 0
        assert data["sheets"] == created["sheets"]

    async def test_unknown_session(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/sessions/does-not-exist")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error_code"] == "E3001"

    async def test_edit_cell(
        self,
        client: httpx.AsyncClient,
        two_tab_roster_xlsx: bytes,
        staff_xlsx: bytes,
    ) -> None:
        created = await _process(client, two_tab_roster_xlsx, staff_xlsx)
        session_id = created["session_id"]

        response = await client.patch(
            f"/sessions/{session_id}/cells",
            json={"sheet": "20240301", "row": 2, "column": 5, "value": "Jane Smith"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["edits"] == 1
        assert data["sheets"][0]["rows"][2][5] == "Jane Smith"

    async def test_edit_cell_out_of_range(
        self,
        client: httpx.AsyncClient,
        two_tab_roster_xlsx: bytes,
        staff_xlsx: bytes,
    ) -> None:
        created = await _process(client, two_tab_roster_xlsx, staff_xlsx)

        response = await client.patch(
            f"/sessions/{created['session_id']}/cells",
            json={"sheet": "20240301", "row": 50, "column": 0, "value": "x"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["error_code"] == "E2002"
        assert data["details"]["row"] == 50

    async def test_edit_cell_negative_index(
        self,
        client: httpx.AsyncClient,
        two_tab_roster_xlsx: bytes,
        staff_xlsx: bytes,
    ) -> None:
        created = await _process(client, two_tab_roster_xlsx, staff_xlsx)

        response = await client.patch(
            f"/sessions/{created['session_id']}/cells",
            json={"sheet": "20240301", "row": -1, "column": 0, "value": "x"},
        )

        assert response.status_code == 422

    async def test_export(
        self,
        client: httpx.AsyncClient,
        two_tab_roster_xlsx: bytes,
        staff_xlsx: bytes,
    ) -> None:
        """The download reloads to the reviewed roster."""
        created = await _process(client, two_tab_roster_xlsx, staff_xlsx)
        session_id = created["session_id"]
        await client.patch(
            f"/sessions/{session_id}/cells",
            json={"sheet": "20240401", "row": 1, "column": 2, "value": "2024/03/29"},
        )

        response = await client.get(f"/sessions/{session_id}/export")

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"] == XLSX
        assert (
            'filename="Processed_Roster_2024-03.xlsx"'
            in response.headers["content-disposition"]
        )
        reloaded = SheetLoader().load(response.content, "export.xlsx")
        assert reloaded.sheet_names == ["20240301", "20240401"]
        assert reloaded["20240401"].rows[1][2] == "2024-03-29"
        assert reloaded["20240301"].rows[1][5] == "Clara Cheung Ka Man"

    async def test_delete_session(
        self,
        client: httpx.AsyncClient,
        two_tab_roster_xlsx: bytes,
        staff_xlsx: bytes,
    ) -> None:
        created = await _process(client, two_tab_roster_xlsx, staff_xlsx)
        session_id = created["session_id"]

        response = await client.delete(f"/sessions/{session_id}")
        assert response.status_code == status.HTTP_204_NO_CONTENT

        response = await client.get(f"/sessions/{session_id}")
        assert response.status_code == status.HTTP_404_NOT_FOUND
