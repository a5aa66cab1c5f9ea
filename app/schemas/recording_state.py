"""Common enums used across schemas."""

from enum import Enum


class RecordingState(str, Enum):
    """Per-connection recording lifecycle states.

    State Transition Flow:

    IDLE → RECORDING → FINALIZING → IDLE (or → RECORDING)

    State Descriptions:
    - IDLE: No recording attached to the connection.
    - RECORDING: start-recording accepted; chunks are persisted and fanned out.
    - FINALIZING: stop-recording (or disconnect) detached the recording; the
      finalizer is closing or uploading it. A new recording may already start.
    """

    IDLE = "idle"
    RECORDING = "recording"
    FINALIZING = "finalizing"

    def __str__(self) -> str:
        return self.value


__all__ = ["RecordingState"]
