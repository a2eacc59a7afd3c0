from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from skillguide.config import settings
from skillguide.models.events import SSEEvent
from skillguide.models.guide import (
    DiscoveredSource,
    ScrapeFailure,
    ScrapeOutcome,
    ScrapeSuccess,
    SourceType,
)
from skillguide.services import streaming
from skillguide.services.extraction_normalizer import normalize_extraction
from skillguide.services.logger import logger
from skillguide.tools import tinyfish, web_utils

EventSink = Callable[[SSEEvent], Awaitable[None]]
GoalBuilder = Callable[[str, SourceType], str]
AgentRunner = Callable[..., Awaitable[tinyfish.AgentRunResult]]

LAUNCH_STEP = "Launching TinyFish browser agent..."
PREVIEW_STEP = "Live browser preview available."
NO_CONTENT_ERROR = "TinyFish did not return extracted content."


class ScraperAgent:
    """Drives one TinyFish task per discovered source and joins the outcomes.

    Every source runs concurrently and owns only its own lifecycle: a failing
    source becomes a ``ScrapeFailure`` and never disturbs its siblings.
    """

    name = "scraper"

    def __init__(
        self,
        api_key: str,
        *,
        emit: EventSink,
        goal_builder: GoalBuilder = tinyfish.build_extraction_goal,
        run_task: AgentRunner = tinyfish.run_task,
        browser_profile: str | None = None,
    ):
        self.api_key = api_key
        self.emit = emit
        self.goal_builder = goal_builder
        self.run_task = run_task
        self.browser_profile = browser_profile or settings.tinyfish_browser_profile

    async def scrape_one(self, topic: str, source: DiscoveredSource) -> ScrapeOutcome:
        await self.emit(streaming.source_update(source.id, step=LAUNCH_STEP))

        async def on_step(message: str) -> None:
            await self.emit(streaming.source_update(source.id, step=message))

        async def on_streaming_url(streaming_url: str) -> None:
            await self.emit(
                streaming.source_update(source.id, step=PREVIEW_STEP, streaming_url=streaming_url)
            )

        try:
            run_result = await self.run_task(
                tinyfish.AgentTaskRequest(
                    url=source.url,
                    goal=self.goal_builder(topic, source.type),
                    browser_profile=self.browser_profile,
                ),
                self.api_key,
                on_step=on_step,
                on_streaming_url=on_streaming_url,
            )
        except Exception as exc:
            run_result = tinyfish.AgentRunResult(
                success=False, error=str(exc) or exc.__class__.__name__
            )

        if not run_result.success or run_result.result is None:
            message = run_result.error or NO_CONTENT_ERROR
            logger.info(f"Source {source.id} failed: {message}")
            await self.emit(streaming.source_error(source.id, message))
            return ScrapeFailure(source=source, error=message)

        extracted = normalize_extraction(run_result.result, source)
        word_count = web_utils.count_words(extracted.raw_text)
        logger.info(f"Source {source.id} complete with {word_count} words")
        await self.emit(streaming.source_complete(source.id, word_count))
        return ScrapeSuccess(source=source, extracted=extracted, word_count=word_count)

    async def scrape_all(
        self, topic: str, sources: list[DiscoveredSource]
    ) -> list[ScrapeOutcome]:
        """Scrape every source concurrently; the result list follows input order."""
        tasks = [
            asyncio.create_task(self.scrape_one(topic, source), name=f"scrape:{source.id}")
            for source in sources
        ]
        try:
            return list(await asyncio.gather(*tasks))
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
