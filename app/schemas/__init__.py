"""Pydantic schemas for the relay and its HTTP surface."""

from .live_session import LiveSession, LiveStreamsOut
from .recording import (
    FinalizedRecording,
    RecordingEntry,
    RecordingsOut,
    build_recording_filename,
    now_ms,
    parse_recording_timestamp,
    recording_content_type,
)
from .recording_state import RecordingState
from .signals import ClientSignal, ServerSignal

__all__ = [
    "ClientSignal",
    "FinalizedRecording",
    "LiveSession",
    "LiveStreamsOut",
    "RecordingEntry",
    "RecordingState",
    "RecordingsOut",
    "ServerSignal",
    "build_recording_filename",
    "now_ms",
    "parse_recording_timestamp",
    "recording_content_type",
]
