"""CRLF line framing on top of asyncio streams."""

import asyncio
from typing import Optional

from .errors import MalformedLine, TransportError

ENCODING = "utf-8"
LINE_END = b"\r\n"


class LineReader:
    """Reads LF-terminated lines, dropping the trailing CR."""

    def __init__(self, reader: asyncio.StreamReader):
        self.reader = reader

    async def read_line(self) -> Optional[str]:
        """Return the next line without its terminator, or None at end of stream.

        A line longer than the stream limit is discarded and reported as
        ``MalformedLine``; the stream stays usable.
        """
        try:
            raw = await self.reader.readline()
        except ValueError as e:
            raise MalformedLine(f"line too long: {e}") from e
        except OSError as e:
            raise TransportError(f"read failed: {e}") from e

        if not raw:
            return None
        if raw.endswith(b"\n"):
            raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        return raw.decode(ENCODING, errors="replace")

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        line = await self.read_line()
        if line is None:
            raise StopAsyncIteration
        return line


class LineWriter:
    """Writes CRLF-terminated lines and flushes after each one.

    Concurrent writers are serialized so lines never interleave.
    """

    def __init__(self, writer: asyncio.StreamWriter):
        self.writer = writer
        self._lock = asyncio.Lock()

    async def write_line(self, line: str) -> None:
        data = line.encode(ENCODING) + LINE_END
        async with self._lock:
            if self.writer.is_closing():
                raise TransportError("stream closed")
            try:
                self.writer.write(data)
                await self.writer.drain()
            except OSError as e:
                raise TransportError(f"write failed: {e}") from e

    async def close(self) -> None:
        if self.writer.is_closing():
            return
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except OSError:
            pass
