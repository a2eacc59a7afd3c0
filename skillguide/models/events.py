from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    PHASE = "phase"
    DISCOVERY_COMPLETE = "discovery_complete"
    SOURCE_UPDATE = "source_update"
    SOURCE_COMPLETE = "source_complete"
    SOURCE_ERROR = "source_error"
    GUIDE_CHUNK = "guide_chunk"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class SSEEvent:
    event: EventType
    data: dict[str, Any] = field(default_factory=dict)

    def payload(self) -> dict[str, Any]:
        """Wire shape: the event's fields tagged with a ``type`` discriminator."""
        return {"type": self.event.value, **self.data}
