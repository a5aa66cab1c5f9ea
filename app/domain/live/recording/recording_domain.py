"""Recording domain service: per-connection recording lifecycle and chunk fan-out."""

import asyncio

from loguru import logger

from app.domain.live.rooms import RoomHub
from app.schemas import (
    FinalizedRecording,
    RecordingState,
    ServerSignal,
    build_recording_filename,
    now_ms,
)
from app.schemas.signals import UploadFailedOut

from ._finalizers import RecordingFinalizer
from .recording_models import Recording, RecordingSinkError, RecordingUploadError
from .recording_state_machine import RecordingStateMachine


class RecordingService:
    """Owns every connection's active recording.

    Active recordings are keyed by connection id and only ever mutated by that
    connection's own signal handlers. Recordings being finalized are keyed by
    filename: stop detaches the recording from its connection before the
    background finalization starts, so a stop/disconnect race finalizes once
    and the connection can start its next recording right away.
    """

    def __init__(
        self,
        hub: RoomHub,
        finalizer: RecordingFinalizer,
        extension: str = "webm",
    ) -> None:
        self._hub = hub
        self._finalizer = finalizer
        self._extension = extension
        self._recordings: dict[str, Recording] = {}
        self._finalizing: dict[str, Recording] = {}  # filename -> recording
        self._last_started_ms: dict[str, int] = {}
        self._tasks: set[asyncio.Task] = set()

    def get_state(self, connection_id: str) -> RecordingState:
        if connection_id in self._recordings:
            return RecordingState.RECORDING
        if any(r.connection_id == connection_id for r in self._finalizing.values()):
            return RecordingState.FINALIZING
        return RecordingState.IDLE

    def get_recording(self, connection_id: str) -> Recording | None:
        return self._recordings.get(connection_id)

    @property
    def pending_finalizations(self) -> int:
        return len(self._tasks)

    async def start(self, connection_id: str) -> Recording | None:
        """Open a new recording for the connection.

        A start received while a recording is active is rejected and the
        existing recording is left as is. A previous recording that is still
        finalizing does not block the new one.

        Returns:
            The new Recording, or None when rejected
        """
        state = self.get_state(connection_id)
        if not RecordingStateMachine.can_transition(state, RecordingState.RECORDING):
            logger.warning(f"Rejecting start-recording from {connection_id}: state is {state}")
            return None

        # Strictly increasing per connection so a quick restart never reuses a filename
        started_at_ms = max(now_ms(), self._last_started_ms.get(connection_id, 0) + 1)
        self._last_started_ms[connection_id] = started_at_ms
        filename = build_recording_filename(connection_id, started_at_ms, self._extension)
        recording = Recording(
            connection_id=connection_id,
            filename=filename,
            started_at_ms=started_at_ms,
            start_time=started_at_ms / 1000,
            sink=self._finalizer.create_sink(filename),
        )
        self._recordings[connection_id] = recording

        try:
            await recording.sink.open()
        except OSError as e:
            # Live viewers keep receiving chunks; only persistence is lost
            logger.error(f"Failed to open sink for {filename}: {e}")
            recording.mark_failed(f"open failed: {e}")

        logger.info(f"Started recording {filename} for {connection_id}")
        return recording

    async def chunk(self, connection_id: str, data: bytes, is_first: bool = False) -> bool:
        """Accept a media fragment: fan it out to the room, then persist it.

        Returns:
            False when there is no active recording (the chunk is ignored)
        """
        recording = self._recordings.get(connection_id)
        if recording is None:
            logger.warning(f"Ignoring video chunk from {connection_id}: no active recording")
            return False

        is_header = recording.accept(data, is_first)
        self._hub.broadcast_bytes(connection_id, data)

        if recording.failed:
            return True

        try:
            if is_header:
                await recording.sink.write_header(data)
            else:
                await recording.sink.write(data)
        except OSError as e:
            logger.error(f"Failed to write chunk {recording.chunk_count} of {recording.filename}: {e}")
            recording.mark_failed(f"write failed: {e}")

        return True

    def stop(self, connection_id: str) -> asyncio.Task | None:
        """Detach the active recording and finalize it in the background.

        Returns:
            The finalization task, or None when nothing was recording
        """
        recording = self._recordings.pop(connection_id, None)
        if recording is None:
            logger.warning(f"Ignoring stop-recording from {connection_id}: no active recording")
            return None

        self._finalizing[recording.filename] = recording
        logger.info(
            f"Stopping recording {recording.filename} after {recording.chunk_count} chunks"
        )

        task = asyncio.create_task(
            self._finalize(recording), name=f"finalize-{recording.filename}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def disconnect(self, connection_id: str) -> asyncio.Task | None:
        """Abrupt stop for a connection that went away."""
        self._last_started_ms.pop(connection_id, None)
        if connection_id not in self._recordings:
            return None
        logger.info(f"Connection {connection_id} disconnected while recording")
        return self.stop(connection_id)

    async def drain(self) -> None:
        """Wait for every pending finalization."""
        if self._tasks:
            logger.info(f"Waiting for {len(self._tasks)} pending finalizations")
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _finalize(self, recording: Recording) -> FinalizedRecording | None:
        connection_id = recording.connection_id
        try:
            result = await self._finalizer.finalize(recording)
        except RecordingUploadError as e:
            logger.error(f"Upload failed for {e.filename}: {e.reason}")
            self._hub.send_event(
                connection_id,
                ServerSignal.UPLOAD_FAILED.value,
                UploadFailedOut(filename=e.filename, reason=e.reason).model_dump(),
            )
            return None
        except RecordingSinkError as e:
            logger.error(f"Recording {e.filename} not saved: {e.reason}")
            return None
        except Exception as exc:
            logger.exception(f"Unexpected error finalizing {recording.filename}: {exc}")
            return None
        finally:
            self._finalizing.pop(recording.filename, None)

        self._hub.send_event(
            connection_id,
            ServerSignal.RECORDING_SAVED.value,
            result.model_dump(exclude_none=True),
        )
        return result
