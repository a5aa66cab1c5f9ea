"""WebSocket gateway for the live relay.

Client -> server frames:
    binary: a video chunk (not flagged as the first fragment)
    text:   {"event": "start-recording"}
            {"event": "video-chunk", "data": {"chunk": "<base64>", "isFirst": true}}
            {"event": "stop-recording"}
            {"event": "join-room", "data": "<roomId>"}
            {"event": "leave-room", "data": "<roomId>"}
            {"event": "chat-message", "data": {"roomId": "...", "text": "..."}}

Server -> client frames:
    binary: live-stream-video-chunk from a room this connection joined
    text:   {"event": "connected", "data": {"connectionId": "..."}}
            {"event": "message", "data": {"text": "..."}}
            {"event": "recording-saved", "data": {"filename", "size", "duration", "url"?}}
            {"event": "upload-failed", "data": {"filename", "reason"}}

Malformed frames are logged and ignored; they never close the connection.
"""

import base64
import binascii
from typing import Any

import orjson
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger
from pydantic import ValidationError

from app.app_config import get_app_environ_config
from app.domain.live.relay_domain import LiveRelay
from app.schemas import ClientSignal
from app.schemas.signals import (
    LEGACY_SIGNAL_ALIASES,
    ChatMessageIn,
    LegacyChatMessageIn,
    RoomIn,
    SignalEnvelope,
    VideoChunkIn,
)

from .connection import WebSocketConnection

router = APIRouter()


def resolve_signal(event: str) -> ClientSignal | None:
    try:
        return ClientSignal(event)
    except ValueError:
        return LEGACY_SIGNAL_ALIASES.get(event)


def parse_room_id(data: Any) -> str:
    if isinstance(data, str):
        return RoomIn(room_id=data).room_id
    return RoomIn.model_validate(data).room_id


async def handle_signal(relay: LiveRelay, connection_id: str, envelope: SignalEnvelope) -> None:
    signal = resolve_signal(envelope.event)
    data = envelope.data

    if signal is None:
        logger.warning(f"Unknown event {envelope.event!r} from {connection_id}")
        return

    if signal is ClientSignal.START_RECORDING:
        await relay.start_recording(connection_id)

    elif signal is ClientSignal.VIDEO_CHUNK:
        chunk_in = VideoChunkIn.model_validate(data)
        try:
            chunk = base64.b64decode(chunk_in.chunk, validate=True)
        except binascii.Error as e:
            logger.warning(f"Invalid base64 video chunk from {connection_id}: {e}")
            return
        await relay.video_chunk(connection_id, chunk, is_first=chunk_in.is_first)

    elif signal is ClientSignal.STOP_RECORDING:
        relay.stop_recording(connection_id)

    elif signal is ClientSignal.JOIN_ROOM:
        relay.join_room(connection_id, parse_room_id(data))

    elif signal is ClientSignal.LEAVE_ROOM:
        relay.leave_room(connection_id, parse_room_id(data))

    elif signal is ClientSignal.CHAT_MESSAGE:
        if envelope.event == "stream-chat":
            legacy = LegacyChatMessageIn.model_validate(data)
            relay.chat_message(legacy.stream_id, legacy.message)
        else:
            chat = ChatMessageIn.model_validate(data)
            relay.chat_message(chat.room_id, chat.text)


async def handle_frame(
    relay: LiveRelay,
    connection_id: str,
    message: dict,
    max_bytes: int,
) -> None:
    """Decode one inbound frame and dispatch it."""
    data = message.get("bytes")
    if data is not None:
        if len(data) > max_bytes:
            logger.warning(f"Dropping {len(data)} byte chunk from {connection_id}: over {max_bytes}")
            return
        await relay.video_chunk(connection_id, data)
        return

    text = message.get("text")
    if text is None:
        return
    if len(text) > max_bytes:
        logger.warning(f"Dropping {len(text)} char frame from {connection_id}: over {max_bytes}")
        return

    try:
        envelope = SignalEnvelope.model_validate(orjson.loads(text))
        await handle_signal(relay, connection_id, envelope)
    except orjson.JSONDecodeError as e:
        logger.warning(f"Invalid JSON frame from {connection_id}: {e}")
    except ValidationError as e:
        logger.warning(f"Invalid payload from {connection_id}: {e.errors()}")


@router.websocket("/ws")
async def relay_socket(websocket: WebSocket) -> None:
    relay: LiveRelay = websocket.app.state.live_relay
    cfg = get_app_environ_config()
    max_bytes = cfg.MAX_MESSAGE_BYTES

    await websocket.accept()
    connection = WebSocketConnection(websocket, max_pending=cfg.WS_MAX_PENDING_FRAMES)
    connection.start()
    relay.connect(connection)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            await handle_frame(relay, connection.connection_id, message, max_bytes)
    except WebSocketDisconnect:
        pass
    finally:
        relay.disconnect(connection.connection_id)
        await connection.close()
