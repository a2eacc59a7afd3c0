from __future__ import annotations

import json as _json

from fastapi import APIRouter
from sse_starlette.sse import EventSourceResponse

from skillguide.agents.orchestrator import GuideOrchestrator
from skillguide.models.schemas import GuideRequest
from skillguide.services import logger as log_service

router = APIRouter(prefix="/api/guides", tags=["guides"])


@router.post("/generate")
async def generate_guide(request: GuideRequest):
    """Stream one guide generation run as server-sent events.

    Every ``data:`` line is a JSON object tagged with ``type``. Validation failures
    (empty topic, missing agent credential) arrive as a single ``error`` event.
    """
    orchestrator = GuideOrchestrator()

    async def event_generator():
        log_service.log_event(
            event_type="stream_opened",
            message="Guide stream opened",
            run_id=orchestrator.run_id,
            topic=request.topic[:100],
        )
        events = orchestrator.generate(request.topic, request.max_per_type)
        try:
            async for event in events:
                yield {"data": _json.dumps(event.payload())}
        finally:
            await events.aclose()

    return EventSourceResponse(
        event_generator(),
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
