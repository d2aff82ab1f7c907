"""Helpers for driving StreamingClient over httpx.MockTransport with exact chunk boundaries."""

from __future__ import annotations

import asyncio
import json

import httpx

from chatstream.client.session import StreamingClient


class ChunkStream(httpx.AsyncByteStream):
    """Yields the given chunks one read at a time, then optionally blocks or fails."""

    def __init__(
        self,
        chunks: list[bytes],
        *,
        gate: asyncio.Event | None = None,
        fail_with: Exception | None = None,
    ) -> None:
        self._chunks = chunks
        self._gate = gate
        self._fail_with = fail_with
        self.closed = False

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk
        if self._gate is not None:
            await self._gate.wait()
        if self._fail_with is not None:
            raise self._fail_with

    async def aclose(self) -> None:
        self.closed = True


def frame(payload: dict) -> bytes:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n".encode("utf-8")


def make_client(
    stream: ChunkStream | list[bytes],
    *,
    status: int = 200,
    requests: list[httpx.Request] | None = None,
    **kwargs,
) -> StreamingClient:
    body = stream if isinstance(stream, ChunkStream) else ChunkStream(stream)

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return httpx.Response(status, stream=body)

    return StreamingClient("http://test", transport=httpx.MockTransport(handler), **kwargs)


async def collect(session) -> list:
    return [event async for event in session]
