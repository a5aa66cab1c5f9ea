"""Recording schemas shared by the finalizer, the relay and the catalog."""

import re
import time

from pydantic import BaseModel, Field

# Trailing `_<digits>` before the extension is the authoritative timestamp
_FILENAME_TIMESTAMP_RE = re.compile(r"_(\d+)\.[^./\\]+$")


def now_ms() -> int:
    return int(time.time() * 1000)


def build_recording_filename(connection_id: str, started_at_ms: int, extension: str) -> str:
    """Build `recording_<connectionId>_<unixMillis>.<ext>`."""
    return f"recording_{connection_id}_{started_at_ms}.{extension.lstrip('.')}"


def parse_recording_timestamp(filename: str) -> int | None:
    """Extract the unix-millis timestamp embedded in a recording filename."""
    match = _FILENAME_TIMESTAMP_RE.search(filename)
    return int(match.group(1)) if match else None


class FinalizedRecording(BaseModel):
    """Result of a successful finalization, reported back to the broadcaster."""

    filename: str
    size: int = Field(description="Size in bytes")
    duration: float = Field(description="Seconds between start and finalization")
    url: str | None = None
    path: str | None = Field(default=None, exclude=True)
    created_at: int = Field(default_factory=now_ms, exclude=True)


class RecordingEntry(BaseModel):
    """Catalog listing item."""

    filename: str
    size: int
    timestamp: int
    url: str


class RecordingsOut(BaseModel):
    recordings: list[RecordingEntry]


_CONTENT_TYPES = {
    "webm": "video/webm",
    "mp4": "video/mp4",
    "mkv": "video/x-matroska",
    "ts": "video/mp2t",
}


def recording_content_type(filename: str) -> str:
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return _CONTENT_TYPES.get(extension, "application/octet-stream")
