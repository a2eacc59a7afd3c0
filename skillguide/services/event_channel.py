"""Single-writer outbound channel for one run's events.

Any number of producer tasks call ``emit``; exactly one consumer drains the
channel with ``async for``. The queue fixes a single total order even though
producers complete in arbitrary order.
"""
from __future__ import annotations

import asyncio
from typing import AsyncIterator

from skillguide.models.events import SSEEvent

_CLOSED = object()


class EventChannel:
    def __init__(self) -> None:
        self._queue: asyncio.Queue[SSEEvent | object] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def emit(self, event: SSEEvent) -> None:
        # events emitted after close are dropped
        if self._closed:
            return
        self._queue.put_nowait(event)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def __aiter__(self) -> AsyncIterator[SSEEvent]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item  # type: ignore[misc]
