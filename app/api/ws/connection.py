"""Outbound side of a relay WebSocket."""

import asyncio
from typing import Any
from uuid import uuid4

import orjson
from fastapi import WebSocket, WebSocketDisconnect
from loguru import logger


class WebSocketConnection:
    """Queues outbound frames and writes them from a single task.

    Producers (fan-out, chat, finalizers) never await the socket, so a slow
    viewer cannot stall the broadcaster. Frames reach the client in the order
    they were queued. At most `max_pending` frames are held; once a stalled
    client has that many outstanding, further frames are dropped until the
    writer catches up. Sends after close are dropped.
    """

    def __init__(
        self,
        websocket: WebSocket,
        connection_id: str | None = None,
        max_pending: int = 256,
    ) -> None:
        self.connection_id = connection_id or uuid4().hex
        self._websocket = websocket
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_pending)
        self._dropped = 0
        self._writer: asyncio.Task | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        self._writer = asyncio.create_task(
            self._write_loop(), name=f"ws-writer-{self.connection_id}"
        )

    def send_event(self, event: str, data: Any = None) -> bool:
        if self._closed:
            return False
        return self._enqueue(orjson.dumps({"event": event, "data": data}).decode())

    def send_bytes(self, data: bytes) -> bool:
        if self._closed:
            return False
        return self._enqueue(bytes(data))

    @property
    def dropped(self) -> int:
        return self._dropped

    def _enqueue(self, frame: str | bytes) -> bool:
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            self._dropped += 1
            logger.warning(
                f"Dropping frame for {self.connection_id}: "
                f"{self._queue.qsize()} frames pending ({self._dropped} dropped)"
            )
            return False
        return True

    async def close(self) -> None:
        """Stop the writer; frames still queued are discarded."""
        self._closed = True
        if self._writer is not None:
            writer, self._writer = self._writer, None
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"Writer for {self.connection_id} failed: {type(e).__name__}: {e}")

    async def _write_loop(self) -> None:
        while True:
            frame = await self._queue.get()
            try:
                if isinstance(frame, bytes):
                    await self._websocket.send_bytes(frame)
                else:
                    await self._websocket.send_text(frame)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.debug(f"Stopped writing to {self.connection_id}: {e}")
                self._closed = True
                return
