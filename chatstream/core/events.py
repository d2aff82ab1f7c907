"""Chat messages, wire events and lifecycle events. All events are Pydantic models."""

from __future__ import annotations

import time
import uuid
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatMessage(BaseModel):
    """One entry of the caller-owned chat history. Only role and content go on the wire."""

    role: Role
    content: str = ""
    timestamp: Optional[datetime] = None

    def to_wire(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


# Wire events: one per `data: ` frame sent by the backend.


class WireChunk(BaseModel):
    type: Literal["chunk"] = "chunk"
    content: str = ""


class WireDone(BaseModel):
    type: Literal["done"] = "done"


class WireError(BaseModel):
    type: Literal["error"] = "error"
    error: str = "Unknown error"

    @field_validator("error", mode="before")
    @classmethod
    def _default_when_blank(cls, v: object) -> object:
        # null or empty text still terminates the session
        if v is None or v == "":
            return "Unknown error"
        return v


WireEvent = Annotated[Union[WireChunk, WireDone, WireError], Field(discriminator="type")]


# Lifecycle events: what consumers of a session observe.


class EventType(str, Enum):
    TEXT_MESSAGE_START = "text_message_start"
    TEXT_MESSAGE_CONTENT = "text_message_content"
    TEXT_MESSAGE_END = "text_message_end"
    ERROR = "error"


class Start(BaseModel):
    """Always first. Emitted before the request outcome is known."""

    type: Literal["text_message_start"] = "text_message_start"
    message_id: str
    role: Literal["assistant"] = "assistant"


class ContentDelta(BaseModel):
    type: Literal["text_message_content"] = "text_message_content"
    message_id: str
    delta: str


class End(BaseModel):
    """Terminal on success."""

    type: Literal["text_message_end"] = "text_message_end"
    message_id: str
    done_received: bool = Field(
        default=True, description="False when the stream closed without a done frame"
    )


class Error(BaseModel):
    """Terminal on failure; replaces End."""

    type: Literal["error"] = "error"
    message: str


LifecycleEvent = Annotated[Union[Start, ContentDelta, End, Error], Field(discriminator="type")]


def new_message_id() -> str:
    """msg_<epoch ms>_<random suffix>; unique per process and never reused."""
    return f"msg_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
