"""Room membership and broadcast for relay connections."""

from collections import defaultdict
from typing import Any, Protocol

from loguru import logger


class Connection(Protocol):
    """Outbound side of a relay connection.

    Both send methods enqueue and return immediately; they return False when
    the connection is already closed.
    """

    connection_id: str

    def send_event(self, event: str, data: Any = None) -> bool: ...

    def send_bytes(self, data: bytes) -> bool: ...


class RoomHub:
    """Set-valued mapping from room id to member connection ids.

    join/leave/detach are the only mutators. A connection can only change its
    own memberships.
    """

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}
        self._rooms: dict[str, set[str]] = defaultdict(set)
        self._memberships: dict[str, set[str]] = defaultdict(set)

    def attach(self, connection: Connection) -> None:
        self._connections[connection.connection_id] = connection

    def detach(self, connection_id: str) -> None:
        """Forget the connection and drop it from every room it joined."""
        for room_id in list(self._memberships.get(connection_id, ())):
            self.leave(connection_id, room_id)
        self._memberships.pop(connection_id, None)
        self._connections.pop(connection_id, None)

    def join(self, connection_id: str, room_id: str) -> bool:
        if connection_id not in self._connections:
            logger.warning(f"Ignoring join of unknown connection {connection_id} to {room_id}")
            return False
        self._rooms[room_id].add(connection_id)
        self._memberships[connection_id].add(room_id)
        logger.debug(f"{connection_id} joined room {room_id}")
        return True

    def leave(self, connection_id: str, room_id: str) -> bool:
        members = self._rooms.get(room_id)
        if not members or connection_id not in members:
            return False
        members.discard(connection_id)
        if not members:
            self._rooms.pop(room_id, None)
        self._memberships[connection_id].discard(room_id)
        logger.debug(f"{connection_id} left room {room_id}")
        return True

    def members(self, room_id: str) -> set[str]:
        return set(self._rooms.get(room_id, ()))

    def rooms_of(self, connection_id: str) -> set[str]:
        return set(self._memberships.get(connection_id, ()))

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def send_event(self, connection_id: str, event: str, data: Any = None) -> bool:
        """Send to one connection; a connection that has gone away is a no-op."""
        connection = self._connections.get(connection_id)
        if connection is None:
            logger.debug(f"Dropping {event} for disconnected {connection_id}")
            return False
        return connection.send_event(event, data)

    def broadcast_event(self, room_id: str, event: str, data: Any = None) -> int:
        """Send an event to every member of the room. Returns the delivery count."""
        delivered = 0
        for connection in self._room_connections(room_id):
            if connection.send_event(event, data):
                delivered += 1
        return delivered

    def broadcast_bytes(self, room_id: str, data: bytes) -> int:
        delivered = 0
        for connection in self._room_connections(room_id):
            if connection.send_bytes(data):
                delivered += 1
        return delivered

    def _room_connections(self, room_id: str) -> list[Connection]:
        return [
            self._connections[cid]
            for cid in self._rooms.get(room_id, ())
            if cid in self._connections
        ]
