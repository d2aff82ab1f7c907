"""chatstream: client-side streaming protocol engine for chat replies."""

from chatstream.client.session import StreamingClient, StreamSession, StreamTransportError
from chatstream.client.subscriber import RunResult, StreamAgent, StreamSubscriber, run_subscriber
from chatstream.core.events import (
    ChatMessage,
    ContentDelta,
    End,
    Error,
    EventType,
    LifecycleEvent,
    Start,
)

__all__ = [
    "ChatMessage",
    "ContentDelta",
    "End",
    "Error",
    "EventType",
    "LifecycleEvent",
    "RunResult",
    "Start",
    "StreamAgent",
    "StreamSession",
    "StreamSubscriber",
    "StreamTransportError",
    "StreamingClient",
    "run_subscriber",
]
