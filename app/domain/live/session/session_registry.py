"""Registry of connections that are currently live on the relay."""

from loguru import logger

from app.schemas import LiveSession, now_ms


class SessionRegistry:
    """Process-local mapping of connection_id -> LiveSession.

    Entries live as long as the connection does; nothing survives a restart.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, LiveSession] = {}

    def register(self, connection_id: str) -> LiveSession:
        """Register a connection, returning the existing entry if already present."""
        session = self._sessions.get(connection_id)
        if session is None:
            session = LiveSession(connection_id=connection_id, started_at=now_ms())
            self._sessions[connection_id] = session
            logger.debug(f"Registered live session {connection_id}")
        return session

    def unregister(self, connection_id: str) -> LiveSession | None:
        session = self._sessions.pop(connection_id, None)
        if session is not None:
            logger.debug(f"Unregistered live session {connection_id}")
        return session

    def get(self, connection_id: str) -> LiveSession | None:
        return self._sessions.get(connection_id)

    def list(self) -> list[LiveSession]:
        return list(self._sessions.values())

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
