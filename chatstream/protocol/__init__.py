"""Streaming protocol: bytes -> frames -> wire events -> lifecycle events."""

from chatstream.protocol.frames import DATA_PREFIX, FrameDecoder, iter_frames
from chatstream.protocol.lifecycle import MapperState, Phase, fail, finish, open_session, step
from chatstream.protocol.wire import parse_wire_event

__all__ = [
    "DATA_PREFIX",
    "FrameDecoder",
    "MapperState",
    "Phase",
    "fail",
    "finish",
    "iter_frames",
    "open_session",
    "parse_wire_event",
    "step",
]
