"""Client for the TinyFish browser-automation agent.

The agent is driven over a single long-lived POST whose response body is a
server-sent event stream. Each ``data:`` line carries one JSON event; the
stream ends with a COMPLETE or ERROR event, or simply closes.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable

import httpx

from skillguide.config import settings
from skillguide.models.guide import SourceType
from skillguide.services.logger import logger
from skillguide.services.prompt_store import render_extraction_goal

StepCallback = Callable[[str], Awaitable[None]]
StreamingUrlCallback = Callable[[str], Awaitable[None]]

STEP_MESSAGE_FIELDS = ("purpose", "action", "message", "step", "description", "text", "content")
RESULT_FIELDS = ("resultJson", "result", "output", "data")
DEFAULT_STEP_MESSAGE = "Processing source..."


@dataclass
class AgentTaskRequest:
    url: str
    goal: str
    browser_profile: str = "lite"


@dataclass
class AgentRunResult:
    success: bool
    result: Any = None
    error: str | None = None
    streaming_url: str | None = None


def parse_sse_line(line: str) -> dict[str, Any] | None:
    """Decode one SSE line into an event object, ignoring everything else."""
    if not line.startswith("data:"):
        return None

    payload = line[5:].strip()
    if not payload or payload == "[DONE]":
        return None

    try:
        event = json.loads(payload)
    except (json.JSONDecodeError, RecursionError):
        return None
    return event if isinstance(event, dict) else None


def _upper(value: Any) -> str:
    return value.upper() if isinstance(value, str) else ""


def read_step_message(event: dict[str, Any]) -> str:
    for key in STEP_MESSAGE_FIELDS:
        value = event.get(key)
        if isinstance(value, str) and value:
            return value
    return DEFAULT_STEP_MESSAGE


def read_streaming_url(event: dict[str, Any]) -> str | None:
    streaming_url = event.get("streamingUrl")
    if isinstance(streaming_url, str) and streaming_url:
        return streaming_url

    maybe_url = event.get("url")
    if isinstance(maybe_url, str) and maybe_url.startswith("http"):
        return maybe_url
    return None


def read_result(event: dict[str, Any]) -> Any:
    for key in RESULT_FIELDS:
        value = event.get(key)
        if value is not None:
            return value
    return None


def is_complete(event: dict[str, Any]) -> bool:
    status = _upper(event.get("status"))
    return _upper(event.get("type")) == "COMPLETE" and (
        not status or status in ("COMPLETED", "DONE")
    )


def is_failure(event: dict[str, Any]) -> bool:
    status = _upper(event.get("status"))
    return _upper(event.get("type")) == "ERROR" or status in ("FAILED", "ERROR")


async def run_task(
    request: AgentTaskRequest,
    api_key: str,
    *,
    on_step: StepCallback | None = None,
    on_streaming_url: StreamingUrlCallback | None = None,
    client: httpx.AsyncClient | None = None,
) -> AgentRunResult:
    """Run one agent task to its terminal event.

    Transport and HTTP failures are reported as an unsuccessful result, never raised.
    """
    streaming_url: str | None = None
    timeout = httpx.Timeout(None, connect=settings.tinyfish_connect_timeout_seconds)
    owns_client = client is None
    active_client = client or httpx.AsyncClient(timeout=timeout)

    try:
        async with active_client.stream(
            "POST",
            settings.tinyfish_sse_url,
            json=asdict(request),
            headers={
                "Content-Type": "application/json",
                "Accept": "text/event-stream",
                "X-API-Key": api_key,
            },
        ) as response:
            if response.status_code >= 400:
                body = (await response.aread()).decode("utf-8", errors="replace")
                logger.warning(
                    f"TinyFish request for {request.url} failed with status {response.status_code}"
                )
                return AgentRunResult(
                    success=False,
                    error=f"TinyFish request failed ({response.status_code}): {body}",
                )

            async for line in response.aiter_lines():
                event = parse_sse_line(line)
                if event is None:
                    continue

                maybe_streaming_url = read_streaming_url(event)
                if maybe_streaming_url:
                    streaming_url = maybe_streaming_url
                    if on_streaming_url:
                        await on_streaming_url(maybe_streaming_url)

                if _upper(event.get("type")) == "STEP" and on_step:
                    await on_step(read_step_message(event))

                if is_complete(event):
                    return AgentRunResult(
                        success=True,
                        result=read_result(event),
                        streaming_url=streaming_url,
                    )

                if is_failure(event):
                    message = event.get("message")
                    if not isinstance(message, str) or not message:
                        message = "TinyFish reported a failure event."
                    return AgentRunResult(
                        success=False,
                        error=message,
                        streaming_url=streaming_url,
                    )

        return AgentRunResult(
            success=False,
            error="TinyFish stream ended before a completion event.",
            streaming_url=streaming_url,
        )
    except Exception as exc:
        logger.warning(f"TinyFish task for {request.url} raised: {exc!r}")
        return AgentRunResult(
            success=False,
            error=str(exc) or exc.__class__.__name__,
            streaming_url=streaming_url,
        )
    finally:
        if owns_client:
            await active_client.aclose()


def build_extraction_goal(topic: str, source_type: SourceType) -> str:
    """Instruction handed to the agent for one source of the given category."""
    return render_extraction_goal(topic, source_type.value)
