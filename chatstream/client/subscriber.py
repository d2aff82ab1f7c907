"""Callback-style consumption of a stream session, for push-style agent runtimes."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

from chatstream.client.session import HistoryItem, StreamingClient, StreamSession
from chatstream.core.events import ContentDelta, End, Error, Start

logger = logging.getLogger(__name__)

Callback = Callable[..., Union[None, Awaitable[None]]]


@dataclass
class StreamSubscriber:
    """Optional callbacks. Each may be a plain function or a coroutine function."""

    on_start: Optional[Callback] = None
    on_delta: Optional[Callback] = None
    on_end: Optional[Callback] = None
    on_error: Optional[Callback] = None
    on_complete: Optional[Callback] = None


@dataclass
class RunResult:
    message_id: str = ""
    text: str = ""
    error: str | None = None
    aborted: bool = False

    @property
    def success(self) -> bool:
        return self.error is None and not self.aborted


async def _call(callback: Optional[Callback], *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


async def run_subscriber(session: StreamSession, subscriber: StreamSubscriber) -> RunResult:
    """Drive a session to completion, invoking callbacks in event order.

    on_end receives the full concatenated text. on_complete is always called last,
    including after abort or when the session raises.
    """
    result = RunResult(message_id=session.message_id)
    parts: list[str] = []
    try:
        async for event in session:
            if isinstance(event, Start):
                result.message_id = event.message_id
                await _call(subscriber.on_start, event.message_id)
            elif isinstance(event, ContentDelta):
                parts.append(event.delta)
                await _call(subscriber.on_delta, event.delta)
            elif isinstance(event, End):
                result.text = "".join(parts)
                await _call(subscriber.on_end, event.message_id, result.text)
            elif isinstance(event, Error):
                result.text = "".join(parts)
                result.error = event.message
                await _call(subscriber.on_error, event.message)
        result.aborted = session.aborted
    finally:
        await _call(subscriber.on_complete)
    return result


class StreamAgent:
    """Runs one session at a time against a StreamingClient and lets the caller abort it."""

    def __init__(self, client: StreamingClient) -> None:
        self._client = client
        self._current: StreamSession | None = None

    @property
    def is_running(self) -> bool:
        return self._current is not None

    async def run(
        self, history: Iterable[HistoryItem], subscriber: StreamSubscriber
    ) -> RunResult:
        session = self._client.open(history)
        self._current = session
        try:
            async with session:
                return await run_subscriber(session, subscriber)
        finally:
            if self._current is session:
                self._current = None

    def abort_run(self) -> None:
        if self._current is None:
            logger.debug("abort_run with no active run")
            return
        self._current.abort()
