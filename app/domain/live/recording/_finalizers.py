"""Finalizers hand a stopped recording over to its storage backend."""

from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from app.schemas import FinalizedRecording, recording_content_type
from app.services.integrations.s3_storage import S3Service, s3_service
from app.utils.app_errors import AppError

from ._sinks import FileSink, MemorySink, RecordingSink
from .recording_models import Recording, RecordingSinkError, RecordingUploadError


class RecordingFinalizer:
    """Creates the sink for a new recording and finalizes it on stop."""

    def create_sink(self, filename: str) -> RecordingSink:
        raise NotImplementedError

    async def finalize(self, recording: Recording) -> FinalizedRecording:
        """Flush the recording into storage.

        Raises:
            RecordingSinkError: local write/close failed
            RecordingUploadError: upload to the object store failed
        """
        raise NotImplementedError


class LocalRecordingFinalizer(RecordingFinalizer):
    """Recordings are streamed into one flat directory and closed on stop."""

    def __init__(self, output_dir: Path | str) -> None:
        self.output_dir = Path(output_dir)

    def create_sink(self, filename: str) -> RecordingSink:
        return FileSink(self.output_dir / filename)

    async def finalize(self, recording: Recording) -> FinalizedRecording:
        sink = recording.sink
        try:
            size = await sink.close()
        except OSError as e:
            raise RecordingSinkError(recording.filename, f"close failed: {e}") from e

        if recording.failed:
            raise RecordingSinkError(recording.filename, recording.failure_reason or "write failed")

        duration = recording.elapsed_seconds()
        path = sink.path if isinstance(sink, FileSink) else None
        logger.info(f"Saved {recording.filename} ({size} bytes, {duration}s)")

        return FinalizedRecording(
            filename=recording.filename,
            size=size,
            duration=duration,
            path=str(path) if path else None,
        )


class S3RecordingFinalizer(RecordingFinalizer):
    """Recordings are buffered in memory and uploaded as one object on stop."""

    def __init__(self, storage: S3Service = s3_service) -> None:
        self.storage = storage

    def create_sink(self, filename: str) -> RecordingSink:
        return MemorySink()

    async def finalize(self, recording: Recording) -> FinalizedRecording:
        sink = recording.sink
        if not isinstance(sink, MemorySink):
            raise RecordingUploadError(recording.filename, "recording was not buffered in memory")

        await sink.close()
        content = sink.assemble()
        duration = recording.elapsed_seconds()

        try:
            url = await self.storage.upload_recording(
                filename=recording.filename,
                content=content,
                content_type=recording_content_type(recording.filename),
                metadata={
                    "connection-id": recording.connection_id,
                    "started-at": str(recording.started_at_ms),
                },
            )
        except (ClientError, BotoCoreError, AppError, OSError) as e:
            raise RecordingUploadError(recording.filename, str(e)) from e
        except Exception as e:
            logger.exception(f"Unexpected error uploading {recording.filename}: {e}")
            raise RecordingUploadError(recording.filename, f"{type(e).__name__}: {e}") from e

        return FinalizedRecording(
            filename=recording.filename,
            size=len(content),
            duration=duration,
            url=url,
        )
