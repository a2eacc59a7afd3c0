from __future__ import annotations

import asyncio

import pytest

from skillguide.agents.scraper_agent import LAUNCH_STEP, NO_CONTENT_ERROR, PREVIEW_STEP, ScraperAgent
from skillguide.models.events import EventType
from skillguide.models.guide import DiscoveredSource, ScrapeFailure, ScrapeSuccess, SourceType
from skillguide.tools.tinyfish import AgentRunResult


def _source(index: int, source_type: SourceType = SourceType.DOCS) -> DiscoveredSource:
    return DiscoveredSource(
        id=f"{source_type.value}-{index}",
        type=source_type,
        title=f"Source {index}",
        url=f"https://example.com/{index}",
        reason="",
        query="q",
    )


class Recorder:
    def __init__(self):
        self.events = []

    async def emit(self, event) -> None:
        self.events.append(event)

    def payloads(self) -> list[dict]:
        return [event.payload() for event in self.events]


def _agent(recorder: Recorder, run_task) -> ScraperAgent:
    return ScraperAgent(
        "key",
        emit=recorder.emit,
        goal_builder=lambda topic, source_type: f"goal:{topic}:{source_type.value}",
        run_task=run_task,
        browser_profile="lite",
    )


@pytest.mark.asyncio
async def test_scrape_one_success_relays_steps_and_counts_words():
    recorder = Recorder()
    seen_requests = []

    async def run_task(request, api_key, *, on_step=None, on_streaming_url=None):
        seen_requests.append((request, api_key))
        await on_streaming_url("https://live.example/1")
        await on_step("Reading the page")
        return AgentRunResult(success=True, result={"overview": "Docker runs containers", "rawText": "one two three"})

    outcome = await _agent(recorder, run_task).scrape_one("Docker", _source(0))

    assert isinstance(outcome, ScrapeSuccess)
    assert outcome.word_count == 3
    assert outcome.extracted.overview == "Docker runs containers"

    request, api_key = seen_requests[0]
    assert api_key == "key"
    assert request.url == "https://example.com/0"
    assert request.goal == "goal:Docker:docs"

    payloads = recorder.payloads()
    assert payloads[0] == {"type": "source_update", "sourceId": "docs-0", "status": "scraping", "step": LAUNCH_STEP}
    assert payloads[1] == {
        "type": "source_update",
        "sourceId": "docs-0",
        "status": "scraping",
        "step": PREVIEW_STEP,
        "streamingUrl": "https://live.example/1",
    }
    assert payloads[2]["step"] == "Reading the page"
    assert payloads[-1] == {"type": "source_complete", "sourceId": "docs-0", "wordCount": 3}


@pytest.mark.asyncio
async def test_scrape_one_reports_agent_failure():
    recorder = Recorder()

    async def run_task(request, api_key, **kwargs):
        return AgentRunResult(success=False, error="Navigation timed out")

    outcome = await _agent(recorder, run_task).scrape_one("Docker", _source(1))

    assert isinstance(outcome, ScrapeFailure)
    assert outcome.error == "Navigation timed out"
    assert recorder.payloads()[-1] == {"type": "source_error", "sourceId": "docs-1", "error": "Navigation timed out"}


@pytest.mark.asyncio
async def test_scrape_one_treats_missing_result_as_failure():
    recorder = Recorder()

    async def run_task(request, api_key, **kwargs):
        return AgentRunResult(success=True, result=None)

    outcome = await _agent(recorder, run_task).scrape_one("Docker", _source(2))

    assert isinstance(outcome, ScrapeFailure)
    assert outcome.error == NO_CONTENT_ERROR


@pytest.mark.asyncio
async def test_scrape_one_converts_raised_errors():
    recorder = Recorder()

    async def run_task(request, api_key, **kwargs):
        raise RuntimeError("socket closed")

    outcome = await _agent(recorder, run_task).scrape_one("Docker", _source(3))

    assert isinstance(outcome, ScrapeFailure)
    assert outcome.error == "socket closed"
    assert recorder.events[-1].event == EventType.SOURCE_ERROR


@pytest.mark.asyncio
async def test_scrape_all_preserves_input_order_and_isolates_failures():
    recorder = Recorder()
    sources = [_source(0), _source(1, SourceType.GITHUB), _source(2, SourceType.BLOG)]
    delays = {"docs-0": 0.03, "github-1": 0.0, "blog-2": 0.01}

    async def run_task(request, api_key, **kwargs):
        source_id = next(s.id for s in sources if s.url == request.url)
        await asyncio.sleep(delays[source_id])
        if source_id == "github-1":
            return AgentRunResult(success=False, error="blocked")
        return AgentRunResult(success=True, result="text from " + source_id)

    outcomes = await _agent(recorder, run_task).scrape_all("Docker", sources)

    assert [outcome.source.id for outcome in outcomes] == ["docs-0", "github-1", "blog-2"]
    assert [outcome.status for outcome in outcomes] == ["complete", "error", "complete"]

    terminal = [
        event.payload()["sourceId"]
        for event in recorder.events
        if event.event in (EventType.SOURCE_COMPLETE, EventType.SOURCE_ERROR)
    ]
    # terminal events arrive in completion order, exactly one per source
    assert terminal == ["github-1", "blog-2", "docs-0"]


@pytest.mark.asyncio
async def test_no_updates_after_terminal_event_per_source():
    recorder = Recorder()
    sources = [_source(i) for i in range(4)]

    async def run_task(request, api_key, *, on_step=None, on_streaming_url=None):
        await on_step("step one")
        await asyncio.sleep(0)
        await on_step("step two")
        return AgentRunResult(success=True, result="some words here")

    await _agent(recorder, run_task).scrape_all("Docker", sources)

    finished: set[str] = set()
    for event in recorder.events:
        source_id = event.payload()["sourceId"]
        assert source_id not in finished
        if event.event in (EventType.SOURCE_COMPLETE, EventType.SOURCE_ERROR):
            finished.add(source_id)
    assert finished == {source.id for source in sources}
