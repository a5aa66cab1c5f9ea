from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone

import pytest
from botocore.exceptions import ClientError

from app.services.integrations.s3_storage import S3Service
from app.utils.app_errors import AppError


class _FakeS3Client:
    def __init__(self, pages: list[dict] | None = None, existing: set[str] | None = None) -> None:
        self.pages = pages or []
        self.existing = existing or set()
        self.put_calls: list[dict] = []
        self.list_calls: list[dict] = []

    async def put_object(self, **kwargs) -> dict:
        self.put_calls.append(kwargs)
        return {}

    async def list_objects_v2(self, **kwargs) -> dict:
        self.list_calls.append(kwargs)
        return self.pages[len(self.list_calls) - 1]

    async def head_object(self, Bucket: str, Key: str) -> dict:
        if Key not in self.existing:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        return {}


def _make_service(monkeypatch: pytest.MonkeyPatch, client: _FakeS3Client) -> S3Service:
    service = S3Service()
    service._bucket_name = "recordings"

    @asynccontextmanager
    async def _fake_client():
        yield client

    monkeypatch.setattr(service, "_get_client", _fake_client)
    return service


def _ts(day: int) -> datetime:
    return datetime(2024, 1, day, tzinfo=timezone.utc)


def test_recording_url_uses_bucket_region_and_prefix() -> None:
    service = S3Service()
    service._bucket_name = "recordings"

    url = service.get_recording_url("recording_a_1.webm")

    assert url == "https://recordings.s3.us-east-1.amazonaws.com/live_recordings/recording_a_1.webm"


def test_missing_bucket_raises_app_error(monkeypatch: pytest.MonkeyPatch) -> None:
    from app.app_config import get_app_environ_config

    monkeypatch.setattr(get_app_environ_config(), "S3_RECORDINGS_BUCKET", None)

    with pytest.raises(AppError) as exc_info:
        S3Service().get_recording_url("a.webm")

    assert exc_info.value.errcode == "E_STORAGE_NOT_CONFIGURED"


async def test_upload_recording_puts_object(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _FakeS3Client()
    service = _make_service(monkeypatch, client)

    url = await service.upload_recording(
        filename="recording_a_1.webm",
        content=b"media",
        content_type="video/webm",
        metadata={"connection-id": "a"},
    )

    assert client.put_calls == [
        {
            "Bucket": "recordings",
            "Key": "live_recordings/recording_a_1.webm",
            "Body": b"media",
            "ContentType": "video/webm",
            "Metadata": {"connection-id": "a"},
        }
    ]
    assert url.endswith("/live_recordings/recording_a_1.webm")


async def test_list_recordings_follows_pages_and_sorts(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _FakeS3Client(
        pages=[
            {
                "Contents": [
                    {"Key": "live_recordings/old.webm", "Size": 1, "LastModified": _ts(1)},
                    {"Key": "live_recordings/", "Size": 0, "LastModified": _ts(1)},
                ],
                "IsTruncated": True,
                "NextContinuationToken": "next",
            },
            {
                "Contents": [
                    {"Key": "live_recordings/new.webm", "Size": 2, "LastModified": _ts(3)},
                    {"Key": "live_recordings/mid.webm", "Size": 3, "LastModified": _ts(2)},
                ],
                "IsTruncated": False,
            },
        ]
    )
    service = _make_service(monkeypatch, client)

    objects = await service.list_recordings(limit=2)

    assert [o.filename for o in objects] == ["new.webm", "mid.webm"]
    assert client.list_calls[0] == {"Bucket": "recordings", "Prefix": "live_recordings/"}
    assert client.list_calls[1]["ContinuationToken"] == "next"


async def test_recording_exists(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _FakeS3Client(existing={"live_recordings/a.webm"})
    service = _make_service(monkeypatch, client)

    assert await service.recording_exists("a.webm") is True
    assert await service.recording_exists("b.webm") is False
