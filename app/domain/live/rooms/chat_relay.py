from loguru import logger

from app.schemas import ServerSignal
from app.schemas.signals import ChatMessageOut

from .room_hub import RoomHub


class ChatRelay:
    """Relays chat text to every current member of a room, sender included."""

    def __init__(self, hub: RoomHub, prefix: str = "AI: ") -> None:
        self._hub = hub
        self._prefix = prefix

    def relay(self, room_id: str, text: str) -> int:
        payload = ChatMessageOut(text=f"{self._prefix}{text}").model_dump()
        delivered = self._hub.broadcast_event(room_id, ServerSignal.MESSAGE.value, payload)
        logger.debug(f"Relayed chat to room {room_id} ({delivered} recipients)")
        return delivered
