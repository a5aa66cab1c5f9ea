"""Live relay domain service - connection lifecycle and signal handling."""

import asyncio

from loguru import logger

from app.schemas import LiveSession, ServerSignal
from app.schemas.signals import ConnectedOut

from .recording import Recording, RecordingService
from .rooms import ChatRelay, Connection, RoomHub
from .session.session_registry import SessionRegistry


class LiveRelay:
    """Entry point for everything a relay connection can do.

    Lifecycle: connect -> (start/chunk/stop, join/leave, chat)* -> disconnect.
    Each connection joins a room named after its own id on connect; that room
    receives the connection's live video chunks.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        hub: RoomHub,
        recordings: RecordingService,
        chat: ChatRelay,
    ) -> None:
        self.registry = registry
        self.hub = hub
        self.recordings = recordings
        self.chat = chat

    def connect(self, connection: Connection) -> LiveSession:
        connection_id = connection.connection_id
        self.hub.attach(connection)
        session = self.registry.register(connection_id)
        self.hub.join(connection_id, connection_id)
        self.hub.send_event(
            connection_id,
            ServerSignal.CONNECTED.value,
            ConnectedOut(connection_id=connection_id).model_dump(by_alias=True),
        )
        logger.info(f"Connected: {connection_id}")
        return session

    def disconnect(self, connection_id: str) -> asyncio.Task | None:
        """Release everything owned by the connection.

        An active recording is finalized best-effort; its notification becomes
        a no-op since the connection is already detached.
        """
        self.hub.detach(connection_id)
        self.registry.unregister(connection_id)
        task = self.recordings.disconnect(connection_id)
        logger.info(f"Disconnected: {connection_id}")
        return task

    async def start_recording(self, connection_id: str) -> Recording | None:
        return await self.recordings.start(connection_id)

    async def video_chunk(self, connection_id: str, data: bytes, is_first: bool = False) -> bool:
        return await self.recordings.chunk(connection_id, data, is_first=is_first)

    def stop_recording(self, connection_id: str) -> asyncio.Task | None:
        return self.recordings.stop(connection_id)

    def join_room(self, connection_id: str, room_id: str) -> bool:
        return self.hub.join(connection_id, room_id)

    def leave_room(self, connection_id: str, room_id: str) -> bool:
        if room_id == connection_id:
            logger.warning(f"{connection_id} cannot leave its own stream room")
            return False
        return self.hub.leave(connection_id, room_id)

    def chat_message(self, room_id: str, text: str) -> int:
        return self.chat.relay(room_id, text)

    async def shutdown(self) -> None:
        await self.recordings.drain()
