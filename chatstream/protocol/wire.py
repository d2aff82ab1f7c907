"""Wire-event parser. A malformed frame is logged and skipped, never fatal to the stream."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from chatstream.core.events import WireEvent

logger = logging.getLogger(__name__)

_wire_adapter: TypeAdapter[WireEvent] = TypeAdapter(WireEvent)

_PAYLOAD_LOG_LIMIT = 200


def parse_wire_event(payload: str) -> Optional[WireEvent]:
    try:
        return _wire_adapter.validate_json(payload)
    except ValidationError as e:
        logger.warning(
            "failed to parse stream frame",
            extra={"payload": payload[:_PAYLOAD_LOG_LIMIT], "error": str(e)},
        )
        return None
