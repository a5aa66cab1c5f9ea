"""Sinks that accumulate recording media until finalization."""

import asyncio
import os
from pathlib import Path
from typing import BinaryIO


class RecordingSink:
    """Accumulates a recording's media. Subclasses decide where bytes go."""

    async def open(self) -> None:
        """Prepare the sink. Called once before any write."""

    async def write_header(self, data: bytes) -> None:
        raise NotImplementedError

    async def write(self, data: bytes) -> None:
        raise NotImplementedError

    async def close(self) -> int:
        """Flush and close the sink, returning the final size in bytes."""
        raise NotImplementedError


class MemorySink(RecordingSink):
    """Keeps fragments in memory; used when the recording is uploaded on stop."""

    def __init__(self) -> None:
        self._header: bytes | None = None
        self._chunks: list[bytes] = []
        self._closed = False

    async def write_header(self, data: bytes) -> None:
        self._header = data

    async def write(self, data: bytes) -> None:
        self._chunks.append(data)

    def assemble(self) -> bytes:
        """Header first, then body chunks in arrival order."""
        parts = [self._header] if self._header is not None else []
        return b"".join(parts + self._chunks)

    @property
    def size(self) -> int:
        header_size = len(self._header) if self._header is not None else 0
        return header_size + sum(len(chunk) for chunk in self._chunks)

    async def close(self) -> int:
        self._closed = True
        return self.size


class FileSink(RecordingSink):
    """Streams fragments into a file as they arrive.

    A header that arrives before any body bytes is written in place. A header
    that arrives late is held and prepended when the sink is closed.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._file: BinaryIO | None = None
        self._body_bytes = 0
        self._late_header: bytes | None = None

    async def open(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = await asyncio.to_thread(open, self.path, "wb")

    async def write_header(self, data: bytes) -> None:
        if self._body_bytes == 0:
            await self._write(data)
        else:
            self._late_header = data

    async def write(self, data: bytes) -> None:
        await self._write(data)
        self._body_bytes += len(data)

    async def _write(self, data: bytes) -> None:
        if self._file is None:
            raise OSError(f"Sink for {self.path.name} is not open")
        await asyncio.to_thread(self._file.write, data)

    async def close(self) -> int:
        if self._file is not None:
            file, self._file = self._file, None
            await asyncio.to_thread(file.close)
        if self._late_header is not None:
            await asyncio.to_thread(self._prepend, self._late_header)
            self._late_header = None
        stat = await asyncio.to_thread(os.stat, self.path)
        return stat.st_size

    def _prepend(self, header: bytes) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "wb") as out, open(self.path, "rb") as body:
            out.write(header)
            while block := body.read(1024 * 1024):
                out.write(block)
        os.replace(tmp_path, self.path)
