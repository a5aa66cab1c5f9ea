"""Relay signal names and payloads exchanged over the WebSocket gateway."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ClientSignal(str, Enum):
    START_RECORDING = "start-recording"
    VIDEO_CHUNK = "video-chunk"
    STOP_RECORDING = "stop-recording"
    JOIN_ROOM = "join-room"
    LEAVE_ROOM = "leave-room"
    CHAT_MESSAGE = "chat-message"

    def __str__(self) -> str:
        return self.value


class ServerSignal(str, Enum):
    CONNECTED = "connected"
    MESSAGE = "message"
    LIVE_STREAM_VIDEO_CHUNK = "live-stream-video-chunk"
    RECORDING_SAVED = "recording-saved"
    UPLOAD_FAILED = "upload-failed"

    def __str__(self) -> str:
        return self.value


# Event names sent by older clients
LEGACY_SIGNAL_ALIASES: dict[str, ClientSignal] = {
    "recording-start": ClientSignal.START_RECORDING,
    "recording-stopped": ClientSignal.STOP_RECORDING,
    "stream-chat": ClientSignal.CHAT_MESSAGE,
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignalEnvelope(BaseModel):
    """JSON text frame: `{"event": ..., "data": ...}`."""

    event: str
    data: Any = None


class VideoChunkIn(_CamelModel):
    chunk: str = Field(description="Base64 encoded media fragment")
    is_first: bool = False


class RoomIn(_CamelModel):
    room_id: str = Field(min_length=1)


class ChatMessageIn(_CamelModel):
    room_id: str = Field(min_length=1)
    text: str


class LegacyChatMessageIn(_CamelModel):
    stream_id: str = Field(min_length=1)
    message: str


class ChatMessageOut(BaseModel):
    text: str


class ConnectedOut(_CamelModel):
    connection_id: str


class UploadFailedOut(BaseModel):
    filename: str
    reason: str
