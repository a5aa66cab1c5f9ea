"""Read-only catalog of finalized recordings.

One strategy per deployment: a flat local directory, or the S3 recordings
prefix. All listing metadata is derived from the filename and the storage
backend's own object metadata; there are no companion metadata files.
"""

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from app.schemas import RecordingEntry, now_ms, parse_recording_timestamp
from app.services.integrations.s3_storage import S3Service, s3_service
from app.utils.app_errors import AppError, RecordingListError, RecordingNotFoundError


@dataclass(frozen=True)
class RecordingLocation:
    """Where a recording's bytes can be fetched from: a local path or a URL."""

    filename: str
    path: Path | None = None
    url: str | None = None


def is_safe_recording_name(name: str) -> bool:
    """A recording name is a bare file name inside the flat output directory."""
    return bool(name) and not name.startswith(".") and "/" not in name and "\\" not in name


class RecordingCatalog:
    def __init__(self, extension: str = "webm") -> None:
        self.extension = extension.lstrip(".")

    def _matches_extension(self, filename: str) -> bool:
        return filename.endswith(f".{self.extension}")

    async def list_recordings(self) -> list[RecordingEntry]:
        """List recordings, newest first.

        Raises:
            RecordingListError: the backend could not be read
        """
        raise NotImplementedError

    async def resolve(self, name: str) -> RecordingLocation:
        """Locate a recording by file name.

        Raises:
            RecordingNotFoundError: no such recording
        """
        raise NotImplementedError


class LocalRecordingCatalog(RecordingCatalog):
    def __init__(
        self,
        recordings_dir: Path | str,
        extension: str = "webm",
        url_prefix: str = "/recordings",
    ) -> None:
        super().__init__(extension)
        self.recordings_dir = Path(recordings_dir)
        self.url_prefix = url_prefix.rstrip("/")

    def _scan(self) -> list[RecordingEntry]:
        entries = []
        with os.scandir(self.recordings_dir) as it:
            for item in it:
                if not item.is_file() or not self._matches_extension(item.name):
                    continue
                try:
                    size = item.stat().st_size
                except FileNotFoundError:
                    # Deleted between listing and stat
                    continue
                timestamp = parse_recording_timestamp(item.name)
                entries.append(
                    RecordingEntry(
                        filename=item.name,
                        size=size,
                        timestamp=timestamp if timestamp is not None else now_ms(),
                        url=f"{self.url_prefix}/{item.name}",
                    )
                )
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries

    async def list_recordings(self) -> list[RecordingEntry]:
        try:
            return await asyncio.to_thread(self._scan)
        except FileNotFoundError:
            logger.warning(f"Recordings directory {self.recordings_dir} does not exist")
            return []
        except OSError as e:
            logger.error(f"Error reading recordings from {self.recordings_dir}: {e}")
            raise RecordingListError() from e

    async def resolve(self, name: str) -> RecordingLocation:
        path = self.recordings_dir / name
        if not is_safe_recording_name(name) or not await asyncio.to_thread(path.is_file):
            raise RecordingNotFoundError(name)
        return RecordingLocation(filename=name, path=path)


class S3RecordingCatalog(RecordingCatalog):
    def __init__(
        self,
        storage: S3Service = s3_service,
        extension: str = "webm",
        limit: int = 50,
    ) -> None:
        super().__init__(extension)
        self.storage = storage
        self.limit = limit

    async def list_recordings(self) -> list[RecordingEntry]:
        try:
            objects = await self.storage.list_recordings(limit=self.limit)
            entries = []
            for obj in objects:
                if not self._matches_extension(obj.filename):
                    continue
                timestamp = parse_recording_timestamp(obj.filename)
                if timestamp is None:
                    timestamp = (
                        int(obj.last_modified.timestamp() * 1000) if obj.last_modified else now_ms()
                    )
                entries.append(
                    RecordingEntry(
                        filename=obj.filename,
                        size=obj.size,
                        timestamp=timestamp,
                        url=self.storage.get_recording_url(obj.filename),
                    )
                )
            entries.sort(key=lambda e: e.timestamp, reverse=True)
            return entries
        except (ClientError, BotoCoreError, AppError) as e:
            logger.error(f"Error fetching recordings from S3: {e}")
            raise RecordingListError() from e

    async def resolve(self, name: str) -> RecordingLocation:
        if not is_safe_recording_name(name):
            raise RecordingNotFoundError(name)
        try:
            exists = await self.storage.recording_exists(name)
            url = self.storage.get_recording_url(name) if exists else None
        except (BotoCoreError, AppError) as e:
            logger.error(f"Error fetching recording {name}: {e}")
            exists, url = False, None
        if not exists or url is None:
            raise RecordingNotFoundError(name)
        return RecordingLocation(filename=name, url=url)
