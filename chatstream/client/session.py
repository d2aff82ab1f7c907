"""Streaming session: POST the chat history, stream lifecycle events back.

A session is an async iterator of lifecycle events. Start is produced before the
request is sent; the response body is read by a background task that decodes
frames, folds them through the lifecycle mapper and buffers events in a local
queue until the consumer pulls them. abort() cancels that task and ends the
sequence without an Error event.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, AsyncIterator, Iterable, Mapping, Optional, Union

import httpx

from chatstream.core.events import (
    ChatMessage,
    ContentDelta,
    End,
    Error,
    Start,
    WireDone,
    WireError,
    WireEvent,
    new_message_id,
)
from chatstream.protocol.frames import FrameDecoder, iter_frames
from chatstream.protocol.lifecycle import MapperState, fail, finish, open_session, step
from chatstream.protocol.wire import parse_wire_event

if TYPE_CHECKING:
    from chatstream.config.loader import Config

logger = logging.getLogger(__name__)

HistoryItem = Union[ChatMessage, Mapping[str, Any]]
SessionEvent = Union[Start, ContentDelta, End, Error]

_CLOSED = object()


class StreamTransportError(RuntimeError):
    """Non-success response status. Surfaced to consumers as a terminal Error event."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class _Failure:
    """Unexpected exception from the producer, re-raised on the consumer's pull."""

    def __init__(self, exc: BaseException) -> None:
        self.exc = exc


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def _serialize_history(history: Iterable[HistoryItem]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for item in history:
        if isinstance(item, ChatMessage):
            out.append(item.to_wire())
        else:
            out.append({"role": item.get("role"), "content": item.get("content", "")})
    return out


class StreamingClient:
    """Opens streaming chat sessions against one endpoint. Each session owns its own connection."""

    def __init__(
        self,
        base_url: str = "http://localhost:4000",
        *,
        api_key: str = "",
        model: str | None = None,
        stream_path: str = "/api/chat/stream",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or "").rstrip("/")
        self._stream_path = "/" + stream_path.lstrip("/") if stream_path else ""
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(
        cls, config: Config, transport: httpx.AsyncBaseTransport | None = None
    ) -> "StreamingClient":
        s = config.stream
        return cls(
            s.base_url,
            api_key=s.api_key,
            model=s.model,
            stream_path=s.stream_path,
            timeout=s.timeout,
            transport=transport,
        )

    @property
    def url(self) -> str:
        return f"{self._base_url}{self._stream_path}"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _body(self, history: Iterable[HistoryItem]) -> dict[str, Any]:
        body: dict[str, Any] = {"messages": _serialize_history(history)}
        if self._model:
            body["model"] = self._model
        return body

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    def open(self, history: Iterable[HistoryItem]) -> "StreamSession":
        """Create a session for this history. Nothing is sent until the first event is pulled."""
        return StreamSession(self, self._body(history))

    async def stream_wire_events(
        self, history: Iterable[HistoryItem]
    ) -> AsyncIterator[WireEvent]:
        """Raw wire events without lifecycle framing. Stops after done or error."""
        async with self._http_client() as http:
            async with http.stream(
                "POST", self.url, json=self._body(history), headers=self._headers()
            ) as resp:
                if not resp.is_success:
                    raise StreamTransportError(
                        f"HTTP error! status: {resp.status_code}", status_code=resp.status_code
                    )
                async for payload in iter_frames(resp.aiter_bytes()):
                    event = parse_wire_event(payload)
                    if event is None:
                        continue
                    yield event
                    if isinstance(event, (WireDone, WireError)):
                        return


class StreamSession:
    """One request/response exchange. Single consumer; pulls must not overlap."""

    def __init__(
        self, client: StreamingClient, body: dict[str, Any], message_id: str | None = None
    ) -> None:
        self._client = client
        self._body = body
        self._message_id = message_id or new_message_id()
        self._state = MapperState()
        self._queue: asyncio.Queue[Any] | None = None
        self._task: asyncio.Task[None] | None = None
        self._aborted = False
        self._exhausted = False

    @property
    def message_id(self) -> str:
        return self._message_id

    @property
    def state(self) -> MapperState:
        return self._state

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def finished(self) -> bool:
        return self._state.terminated

    def __aiter__(self) -> "StreamSession":
        return self

    async def __anext__(self) -> SessionEvent:
        if self._aborted or self._exhausted:
            raise StopAsyncIteration
        queue = self._ensure_started()
        item = await queue.get()
        if self._aborted or item is _CLOSED:
            self._exhausted = True
            raise StopAsyncIteration
        if isinstance(item, _Failure):
            self._exhausted = True
            raise item.exc
        return item

    async def __aenter__(self) -> "StreamSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def abort(self) -> None:
        """Stop the session without an Error event. No-op once terminated or already aborted.

        The producer task is cancelled here; the connection is released when it unwinds
        on the next loop turn. Await aclose() to wait for the release.
        """
        if self._aborted or self._state.terminated:
            return
        self._aborted = True
        logger.debug("stream session aborted", extra={"message_id": self._message_id})
        if self._task is not None and not self._task.done():
            self._task.cancel()
        if self._queue is not None:
            self._queue.put_nowait(_CLOSED)

    async def aclose(self) -> None:
        self.abort()
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    def _ensure_started(self) -> asyncio.Queue[Any]:
        if self._queue is None:
            self._queue = asyncio.Queue()
            self._task = asyncio.create_task(self._produce())
        return self._queue

    def _emit(self, event: SessionEvent) -> None:
        assert self._queue is not None
        self._queue.put_nowait(event)

    async def _produce(self) -> None:
        self._state, start = open_session(self._message_id)
        self._emit(start)
        logger.debug("stream session started", extra={"message_id": self._message_id})
        try:
            await self._read_response()
        except (httpx.HTTPError, StreamTransportError) as e:
            message = _describe(e)
            logger.warning(
                "stream transport failed",
                extra={"message_id": self._message_id, "error": message},
            )
            self._state, error = fail(self._state, message)
            if error is not None:
                self._emit(error)
        except Exception as e:
            logger.exception("stream session failed: %s", e)
            assert self._queue is not None
            self._queue.put_nowait(_Failure(e))
        finally:
            assert self._queue is not None
            self._queue.put_nowait(_CLOSED)

    async def _read_response(self) -> None:
        client = self._client
        async with client._http_client() as http:
            async with http.stream(
                "POST", client.url, json=self._body, headers=client._headers()
            ) as resp:
                if not resp.is_success:
                    raise StreamTransportError(
                        f"HTTP error! status: {resp.status_code}", status_code=resp.status_code
                    )
                decoder = FrameDecoder()
                async for chunk in resp.aiter_bytes():
                    for payload in decoder.feed(chunk):
                        wire = parse_wire_event(payload)
                        if wire is None:
                            continue
                        self._state, event = step(self._state, wire)
                        if event is not None:
                            self._emit(event)
                        if self._state.terminated:
                            logger.debug(
                                "stream session terminated",
                                extra={"message_id": self._message_id, "event": wire.type},
                            )
                            return
                decoder.close()
        self._state, end = finish(self._state)
        if end is not None:
            logger.warning(
                "stream closed without done frame", extra={"message_id": self._message_id}
            )
            self._emit(end)
