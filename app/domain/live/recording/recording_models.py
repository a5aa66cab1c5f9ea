"""In-process recording state and recording errors."""

import time
from dataclasses import dataclass, field

from ._sinks import RecordingSink


class RecordingError(Exception):
    """Base class for finalization failures."""

    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(f"{filename}: {reason}")
        self.filename = filename
        self.reason = reason


class RecordingSinkError(RecordingError):
    """Writing or closing the local sink failed. The client is not notified."""


class RecordingUploadError(RecordingError):
    """Uploading to the object store failed. Reported to the client, never retried."""


@dataclass
class Recording:
    """The active recording of one connection.

    `filename` is fixed at creation. `chunk_count` only ever grows by one per
    accepted chunk. The header (first fragment) is held apart from the body so
    that it always leads the finalized stream.
    """

    connection_id: str
    filename: str
    started_at_ms: int
    sink: RecordingSink
    start_time: float = field(default_factory=time.time)
    chunk_count: int = 0
    header: bytes | None = None
    failed: bool = False
    failure_reason: str | None = None

    def accept(self, data: bytes, is_first: bool = False) -> bool:
        """Count an accepted chunk.

        Returns:
            True when the chunk was captured as the header, False when it
            belongs to the ordered body. Only the first flagged fragment
            becomes the header; later ones are ordinary chunks.
        """
        self.chunk_count += 1
        if is_first and self.header is None:
            self.header = data
            return True
        return False

    def mark_failed(self, reason: str) -> None:
        if not self.failed:
            self.failed = True
            self.failure_reason = reason

    def elapsed_seconds(self) -> float:
        return round(max(time.time() - self.start_time, 0.0), 3)
