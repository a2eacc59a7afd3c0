from __future__ import annotations

import asyncio
import time
import uuid
from datetime import datetime
from typing import Any, AsyncGenerator, Awaitable, Callable

from skillguide.agents.scraper_agent import AgentRunner, GoalBuilder, ScraperAgent
from skillguide.config import settings
from skillguide.errors import DiscoveryExhaustedError, NoUsableContentError, PipelineError
from skillguide.models.events import SSEEvent
from skillguide.models.guide import (
    DiscoveredSource,
    GenerationStats,
    PipelinePhase,
    ScrapeSuccess,
)
from skillguide.services import logger as log_service
from skillguide.services import streaming
from skillguide.services.event_channel import EventChannel
from skillguide.services.guide_builder import build_guide_markdown
from skillguide.services.logger import logger
from skillguide.services.source_discovery import clamp_quota, discover_sources
from skillguide.tools import tinyfish, web_utils

Discoverer = Callable[[str, int], Awaitable[list[DiscoveredSource]]]

TERMINAL_PHASES = (PipelinePhase.COMPLETE, PipelinePhase.ERROR)


class GuideOrchestrator:
    """Runs one guide generation: discover, scrape, synthesize.

    ``generate`` is an async generator of ``SSEEvent``. The pipeline itself runs in a
    background task that writes into an ``EventChannel``; the generator drains that
    channel, so events from concurrent scrapes reach the consumer in one total order.
    Closing the generator early cancels the run without emitting an error.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        discover: Discoverer = discover_sources,
        run_task: AgentRunner = tinyfish.run_task,
        goal_builder: GoalBuilder = tinyfish.build_extraction_goal,
        now: Callable[[], datetime] | None = None,
        run_id: str | None = None,
    ):
        self.api_key = settings.tinyfish_api_key if api_key is None else api_key
        self.discover = discover
        self.run_task = run_task
        self.goal_builder = goal_builder
        self.now = now
        self.run_id = run_id or uuid.uuid4().hex[:12]
        self.phase = PipelinePhase.IDLE

    def _enter(self, phase: PipelinePhase, **data: Any) -> None:
        if self.phase in TERMINAL_PHASES:
            raise RuntimeError(f"Run {self.run_id} already finished in phase {self.phase.value}")
        self.phase = phase
        status = "error" if phase is PipelinePhase.ERROR else "entered"
        log_service.log_pipeline_step(self.run_id, phase.value, status, data or None)

    async def generate(
        self, topic: str, max_per_type: int | None = None
    ) -> AsyncGenerator[SSEEvent, None]:
        channel = EventChannel()
        runner = asyncio.create_task(
            self._run(topic, max_per_type, channel), name=f"guide-run:{self.run_id}"
        )
        try:
            async for event in channel:
                yield event
            await runner
        finally:
            if not runner.done():
                logger.info(f"Run {self.run_id} cancelled by consumer")
                runner.cancel()

    async def _run(
        self, topic: str, max_per_type: int | None, channel: EventChannel
    ) -> None:
        emit = channel.emit
        try:
            await self._pipeline(topic, max_per_type, emit)
        except asyncio.CancelledError:
            logger.info(f"Run {self.run_id} cancelled in phase {self.phase.value}")
            raise
        except Exception as exc:
            if self.phase in TERMINAL_PHASES:
                logger.exception(f"Run {self.run_id} raised after finishing")
                return
            if not isinstance(exc, PipelineError):
                logger.exception(f"Run {self.run_id} failed unexpectedly")
            message = str(exc) or "Unexpected server error."
            self._enter(PipelinePhase.ERROR, message=message)
            await emit(streaming.phase(PipelinePhase.ERROR, message))
            await emit(streaming.error(message))
        finally:
            channel.close()

    async def _pipeline(
        self,
        topic: str,
        max_per_type: int | None,
        emit: Callable[[SSEEvent], Awaitable[None]],
    ) -> None:
        topic = (topic or "").strip()
        if not topic:
            await emit(streaming.error("Topic is required."))
            return
        if not self.api_key:
            await emit(streaming.error("TINYFISH_API_KEY is not configured on the server."))
            return

        quota = clamp_quota(
            settings.default_max_per_type if max_per_type is None else max_per_type,
            upper=settings.max_per_type_limit,
        )
        started_at = time.monotonic()
        log_service.log_event(
            event_type="guide_started",
            message="Guide generation started",
            run_id=self.run_id,
            topic=topic[:100],
            max_per_type=quota,
        )

        # Discovery
        self._enter(PipelinePhase.DISCOVERING, topic=topic, quota=quota)
        await emit(
            streaming.phase(
                PipelinePhase.DISCOVERING,
                "Discovering relevant docs, GitHub, Stack Overflow, and blog sources...",
            )
        )
        sources = await self.discover(topic, quota)
        if not sources:
            raise DiscoveryExhaustedError()
        await emit(streaming.discovery_complete(sources))

        # Scraping
        self._enter(PipelinePhase.SCRAPING, source_count=len(sources))
        await emit(
            streaming.phase(
                PipelinePhase.SCRAPING,
                f"Scraping {len(sources)} sources in parallel with TinyFish...",
            )
        )
        scraper = ScraperAgent(
            self.api_key,
            emit=emit,
            goal_builder=self.goal_builder,
            run_task=self.run_task,
        )
        outcomes = await scraper.scrape_all(topic, sources)
        successes = [outcome for outcome in outcomes if isinstance(outcome, ScrapeSuccess)]
        if not successes:
            raise NoUsableContentError()

        # Synthesis
        self._enter(PipelinePhase.SYNTHESIZING, success_count=len(successes))
        await emit(
            streaming.phase(
                PipelinePhase.SYNTHESIZING,
                "Synthesizing a single markdown skill guide...",
            )
        )
        guide = build_guide_markdown(
            topic, successes, now=self.now() if self.now else None
        )
        chunks = [f"{section}\n" for section in guide.sections]
        # the concatenated chunks must equal the trimmed guide exactly
        chunks[-1] = chunks[-1].rstrip()
        for chunk in chunks:
            await emit(streaming.guide_chunk(chunk))

        final_guide = "".join(chunks).strip()
        stats = GenerationStats(
            source_count=len(sources),
            success_count=len(successes),
            generated_words=web_utils.count_words(final_guide),
        )
        self._enter(PipelinePhase.COMPLETE, **stats.to_dict())
        await emit(streaming.phase(PipelinePhase.COMPLETE, "Guide generation complete."))
        await emit(streaming.complete(final_guide, sources, stats))
        log_service.log_event(
            event_type="guide_completed",
            message="Guide generation complete",
            run_id=self.run_id,
            runtime_ms=int((time.monotonic() - started_at) * 1000),
            **stats.to_dict(),
        )
