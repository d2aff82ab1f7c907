"""Frame decoder: newline-delimited `data: ` lines from an arbitrarily chunked byte stream."""

from __future__ import annotations

import codecs
import logging
from typing import AsyncIterable, AsyncIterator

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "


class FrameDecoder:
    """Buffers partial lines across chunks. Yields payloads of complete `data: ` lines only."""

    def __init__(self, prefix: str = DATA_PREFIX) -> None:
        self._prefix = prefix
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        return self._buffer

    def feed(self, chunk: bytes) -> list[str]:
        if not chunk:
            return []
        self._buffer += self._decoder.decode(chunk)
        if "\n" not in self._buffer:
            return []
        *lines, self._buffer = self._buffer.split("\n")
        payloads: list[str] = []
        for line in lines:
            line = line.rstrip("\r")
            if line.startswith(self._prefix):
                payloads.append(line[len(self._prefix) :])
        return payloads

    def close(self) -> None:
        """End of stream. An unterminated trailing line is not a frame and is dropped."""
        rest = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        if rest:
            logger.debug("dropping unterminated frame", extra={"pending_bytes": len(rest)})


async def iter_frames(byte_stream: AsyncIterable[bytes]) -> AsyncIterator[str]:
    decoder = FrameDecoder()
    async for chunk in byte_stream:
        for payload in decoder.feed(chunk):
            yield payload
    decoder.close()
