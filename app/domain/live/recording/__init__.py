from ._finalizers import LocalRecordingFinalizer, RecordingFinalizer, S3RecordingFinalizer
from ._sinks import FileSink, MemorySink, RecordingSink
from .recording_domain import RecordingService
from .recording_models import (
    Recording,
    RecordingError,
    RecordingSinkError,
    RecordingUploadError,
)
from .recording_state_machine import RecordingStateMachine

__all__ = [
    "FileSink",
    "LocalRecordingFinalizer",
    "MemorySink",
    "Recording",
    "RecordingError",
    "RecordingFinalizer",
    "RecordingService",
    "RecordingSinkError",
    "RecordingStateMachine",
    "RecordingUploadError",
    "RecordingSink",
    "S3RecordingFinalizer",
]
