"""WebSocket side channel: JSON objects `{"type": <event>, ...}` with per-connection listeners.

Not part of the lifecycle state machine. Handlers are registered per event name on
the channel object and dropped on disconnect().
"""

from __future__ import annotations

import inspect
import json
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Union

import aiohttp

if TYPE_CHECKING:
    from chatstream.config.loader import Config

logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any]], Union[None, Awaitable[None]]]

CLOSE_EVENT = "close"


class WebSocketChannel:
    """Lightweight pub/sub over one WebSocket connection."""

    def __init__(
        self, url: str = "ws://localhost:4000/socket", *, heartbeat: float | None = None
    ) -> None:
        self._url = url
        self._heartbeat = heartbeat
        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._handlers: dict[str, set[Handler]] = {}
        self._running = False

    @classmethod
    def from_config(cls, config: Config) -> "WebSocketChannel":
        return cls(config.websocket.url)

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def connect(self) -> None:
        if self.connected:
            return
        if self._session is None:
            self._session = aiohttp.ClientSession()
        self._ws = await self._session.ws_connect(self._url, heartbeat=self._heartbeat)
        logger.info("WebSocket connected", extra={"url": self._url})

    async def disconnect(self) -> None:
        self._running = False
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
        if self._session is not None:
            await self._session.close()
            self._session = None
        self._handlers.clear()

    async def send(self, event_type: str, **payload: Any) -> bool:
        if not self.connected:
            logger.error("WebSocket is not open", extra={"event": event_type})
            return False
        await self._ws.send_json({"type": event_type, **payload})
        return True

    def on(self, event_type: str, handler: Handler) -> None:
        self._handlers.setdefault(event_type, set()).add(handler)

    def off(self, event_type: str, handler: Handler) -> None:
        handlers = self._handlers.get(event_type)
        if handlers:
            handlers.discard(handler)

    async def _emit(self, event_type: str, data: dict[str, Any]) -> None:
        for handler in list(self._handlers.get(event_type, ())):
            try:
                result = handler(data)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.exception("handler failed for %s: %s", event_type, e)

    async def run_listener(self) -> None:
        """Dispatch incoming messages to handlers until the socket closes or stop() is called."""
        await self.connect()
        self._running = True
        try:
            async for message in self._ws:
                if not self._running:
                    break
                if message.type == aiohttp.WSMsgType.ERROR:
                    logger.warning("WebSocket error", extra={"error": str(self._ws.exception())})
                    break
                if message.type != aiohttp.WSMsgType.TEXT:
                    continue
                try:
                    data = json.loads(message.data)
                except json.JSONDecodeError as e:
                    logger.warning("failed to parse WebSocket message", extra={"error": str(e)})
                    continue
                if not isinstance(data, dict) or not isinstance(data.get("type"), str):
                    logger.warning("WebSocket message without type", extra={"data": str(data)[:200]})
                    continue
                await self._emit(data["type"], data)
        finally:
            self._running = False
            logger.info("WebSocket disconnected", extra={"url": self._url})
            await self._emit(CLOSE_EVENT, {})

    def stop(self) -> None:
        """Ask run_listener() to return. Checked as each message arrives, so an idle
        socket keeps the listener waiting until the next message or disconnect()."""
        self._running = False
