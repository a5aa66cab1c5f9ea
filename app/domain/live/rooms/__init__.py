from .chat_relay import ChatRelay
from .room_hub import Connection, RoomHub

__all__ = ["ChatRelay", "Connection", "RoomHub"]
