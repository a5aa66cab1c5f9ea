from .recording_catalog import (
    LocalRecordingCatalog,
    RecordingCatalog,
    RecordingLocation,
    S3RecordingCatalog,
)

__all__ = [
    "LocalRecordingCatalog",
    "RecordingCatalog",
    "RecordingLocation",
    "S3RecordingCatalog",
]
