"""Lifecycle event mapper.

Folds wire events into ``Start ContentDelta* (End | Error)``. Implemented as pure
transition functions over an immutable state so the pull session and the
callback adapter share one state machine:

    idle --open_session--> started --chunk--> started
    started --done | end of stream--> terminated  (End)
    started --error | transport failure--> terminated  (Error)

``terminated`` is absorbing: later input yields no events.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from chatstream.core.events import (
    ContentDelta,
    End,
    Error,
    Start,
    WireChunk,
    WireDone,
    WireError,
    new_message_id,
)

LifecycleResult = Union[ContentDelta, End, Error, None]


class Phase(str, Enum):
    IDLE = "idle"
    STARTED = "started"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class MapperState:
    phase: Phase = Phase.IDLE
    message_id: str = ""

    @property
    def terminated(self) -> bool:
        return self.phase is Phase.TERMINATED


def open_session(message_id: Optional[str] = None) -> tuple[MapperState, Start]:
    state = MapperState(phase=Phase.STARTED, message_id=message_id or new_message_id())
    return state, Start(message_id=state.message_id)


def step(
    state: MapperState, event: Union[WireChunk, WireDone, WireError]
) -> tuple[MapperState, LifecycleResult]:
    if state.phase is Phase.TERMINATED:
        return state, None
    if state.phase is Phase.IDLE:
        raise ValueError("session not opened")
    if isinstance(event, WireChunk):
        if not event.content:
            return state, None
        return state, ContentDelta(message_id=state.message_id, delta=event.content)
    if isinstance(event, WireError):
        return replace(state, phase=Phase.TERMINATED), Error(message=event.error)
    if isinstance(event, WireDone):
        return replace(state, phase=Phase.TERMINATED), End(message_id=state.message_id)
    raise TypeError(f"unknown wire event: {type(event).__name__}")


def finish(state: MapperState) -> tuple[MapperState, Optional[End]]:
    """Byte stream ended without a terminal frame."""
    if state.phase is not Phase.STARTED:
        return state, None
    return (
        replace(state, phase=Phase.TERMINATED),
        End(message_id=state.message_id, done_received=False),
    )


def fail(state: MapperState, message: str) -> tuple[MapperState, Optional[Error]]:
    if state.phase is not Phase.STARTED:
        return state, None
    return replace(state, phase=Phase.TERMINATED), Error(message=message)
