from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from duckduckgo_search import DDGS

from skillguide.config import settings
from skillguide.tools import web_utils


@dataclass
class SearchResult:
    """Normalized organic search result shared by every provider."""
    title: str
    url: str
    hostname: str
    description: str


def _to_result(item: dict[str, Any]) -> SearchResult | None:
    url = item.get("href") or item.get("url") or ""
    if not isinstance(url, str) or not web_utils.is_valid_url(url):
        return None
    return SearchResult(
        title=str(item.get("title") or "").strip(),
        url=url,
        hostname=web_utils.extract_domain(url),
        description=str(item.get("body") or item.get("description") or ""),
    )


def _search_sync(query: str, max_results: int) -> list[dict[str, Any]]:
    with DDGS(timeout=int(settings.search_timeout_seconds)) as ddgs:
        return ddgs.text(
            query,
            region=settings.search_region,
            safesearch=settings.search_safesearch,
            max_results=max_results,
        ) or []


async def search(query: str, *, max_results: int = 10) -> list[SearchResult]:
    """Execute a DuckDuckGo text search in a worker thread and normalize results."""
    raw_results = await asyncio.to_thread(_search_sync, query, max_results)
    mapped: list[SearchResult] = []
    for item in raw_results:
        if not isinstance(item, dict):
            continue
        result = _to_result(item)
        if result is not None:
            mapped.append(result)
    return mapped

