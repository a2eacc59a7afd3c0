from __future__ import annotations

from typing import Any

from skillguide.models.events import EventType, SSEEvent
from skillguide.models.guide import DiscoveredSource, GenerationStats, PipelinePhase


def phase(current: PipelinePhase, message: str) -> SSEEvent:
    return SSEEvent(
        event=EventType.PHASE,
        data={"phase": current.value, "message": message},
    )


def discovery_complete(sources: list[DiscoveredSource]) -> SSEEvent:
    """Emit the full discovered-source list; sent once, before any source update."""
    return SSEEvent(
        event=EventType.DISCOVERY_COMPLETE,
        data={"sources": [source.to_dict() for source in sources]},
    )


def source_update(
    source_id: str,
    *,
    step: str | None = None,
    streaming_url: str | None = None,
) -> SSEEvent:
    data: dict[str, Any] = {"sourceId": source_id, "status": "scraping"}
    if step:
        data["step"] = step
    if streaming_url:
        data["streamingUrl"] = streaming_url
    return SSEEvent(event=EventType.SOURCE_UPDATE, data=data)


def source_complete(source_id: str, word_count: int) -> SSEEvent:
    return SSEEvent(
        event=EventType.SOURCE_COMPLETE,
        data={"sourceId": source_id, "wordCount": word_count},
    )


def source_error(source_id: str, error: str) -> SSEEvent:
    return SSEEvent(
        event=EventType.SOURCE_ERROR,
        data={"sourceId": source_id, "error": error},
    )


def guide_chunk(chunk: str) -> SSEEvent:
    return SSEEvent(event=EventType.GUIDE_CHUNK, data={"chunk": chunk})


def complete(
    guide: str,
    sources: list[DiscoveredSource],
    stats: GenerationStats,
) -> SSEEvent:
    return SSEEvent(
        event=EventType.COMPLETE,
        data={
            "guide": guide,
            "sources": [source.to_dict() for source in sources],
            "stats": stats.to_dict(),
        },
    )


def error(message: str) -> SSEEvent:
    return SSEEvent(event=EventType.ERROR, data={"message": message})
