"""Tests for the /recordings endpoints."""

from pathlib import Path

import httpx
import pytest
from fastapi import FastAPI

from app.api.errors import app_error_handler
from app.api.routers.recordings import router
from app.domain.live.catalog import LocalRecordingCatalog, RecordingCatalog, RecordingLocation
from app.schemas import RecordingEntry
from app.utils.app_errors import AppError, RecordingNotFoundError


class RemoteCatalog(RecordingCatalog):
    """Catalog whose recordings live behind URLs."""

    async def list_recordings(self) -> list[RecordingEntry]:
        return [
            RecordingEntry(
                filename="recording_a_100.webm",
                size=7,
                timestamp=100,
                url="https://recordings.s3.us-east-1.amazonaws.com/live_recordings/recording_a_100.webm",
            )
        ]

    async def resolve(self, name: str) -> RecordingLocation:
        if name != "recording_a_100.webm":
            raise RecordingNotFoundError(name)
        return RecordingLocation(
            filename=name,
            url=f"https://recordings.s3.us-east-1.amazonaws.com/live_recordings/{name}",
        )


def make_app(catalog: RecordingCatalog) -> FastAPI:
    app = FastAPI()
    app.include_router(router)
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore
    app.state.recording_catalog = catalog
    return app


def make_client(catalog: RecordingCatalog) -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=make_app(catalog))
    return httpx.AsyncClient(transport=transport, base_url="http://test")


class TestListRecordings:
    async def test_lists_local_recordings_newest_first(self, recordings_dir: Path):
        """Test that listing returns filename, size, timestamp and url per recording."""
        # Arrange
        (recordings_dir / "recording_a_100.webm").write_bytes(b"x" * 4)
        (recordings_dir / "recording_b_200.webm").write_bytes(b"x" * 8)
        (recordings_dir / "readme.txt").write_text("skip")

        # Act
        async with make_client(LocalRecordingCatalog(recordings_dir)) as client:
            response = await client.get("/recordings")

        # Assert
        assert response.status_code == 200
        assert response.json() == {
            "recordings": [
                {
                    "filename": "recording_b_200.webm",
                    "size": 8,
                    "timestamp": 200,
                    "url": "/recordings/recording_b_200.webm",
                },
                {
                    "filename": "recording_a_100.webm",
                    "size": 4,
                    "timestamp": 100,
                    "url": "/recordings/recording_a_100.webm",
                },
            ]
        }

    async def test_empty_directory_lists_nothing(self, recordings_dir: Path):
        async with make_client(LocalRecordingCatalog(recordings_dir)) as client:
            response = await client.get("/recordings")

        assert response.status_code == 200
        assert response.json() == {"recordings": []}

    async def test_unreadable_directory_returns_500(self, tmp_path: Path):
        """Test that a backend failure surfaces as 'Unable to read recordings'."""
        not_a_dir = tmp_path / "uploads"
        not_a_dir.write_bytes(b"")

        async with make_client(LocalRecordingCatalog(not_a_dir)) as client:
            response = await client.get("/recordings")

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Unable to read recordings"
        assert body["errcode"] == "E_RECORDING_LIST_FAILED"

    async def test_lists_remote_recordings(self):
        async with make_client(RemoteCatalog()) as client:
            response = await client.get("/recordings")

        assert response.status_code == 200
        assert response.json()["recordings"][0]["url"].startswith("https://")


class TestGetRecording:
    async def test_serves_local_file(self, recordings_dir: Path):
        """Test that the recording bytes are streamed with a video content type."""
        (recordings_dir / "recording_a_100.webm").write_bytes(b"webm-bytes")

        async with make_client(LocalRecordingCatalog(recordings_dir)) as client:
            response = await client.get("/recordings/recording_a_100.webm")

        assert response.status_code == 200
        assert response.content == b"webm-bytes"
        assert response.headers["content-type"] == "video/webm"
        assert response.headers["content-disposition"].startswith("inline")

    @pytest.mark.parametrize("name", ["missing.webm", ".hidden.webm"])
    async def test_unknown_recording_returns_404(self, recordings_dir: Path, name: str):
        async with make_client(LocalRecordingCatalog(recordings_dir)) as client:
            response = await client.get(f"/recordings/{name}")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "Recording not found"
        assert body["errcode"] == "E_RECORDING_NOT_FOUND"

    async def test_remote_recording_redirects(self):
        async with make_client(RemoteCatalog()) as client:
            response = await client.get("/recordings/recording_a_100.webm")

        assert response.status_code == 307
        assert response.headers["location"].endswith("/live_recordings/recording_a_100.webm")

    async def test_missing_remote_recording_returns_404(self):
        async with make_client(RemoteCatalog()) as client:
            response = await client.get("/recordings/other.webm")

        assert response.status_code == 404
