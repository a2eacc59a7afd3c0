from __future__ import annotations

from typing import Any

import httpx

from skillguide.config import settings
from skillguide.tools import web_utils
from skillguide.tools.ddg_search import SearchResult

BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"


async def search(query: str, *, max_results: int = 10) -> list[SearchResult]:
    """Execute a Brave web search and normalize results."""
    if not settings.brave_api_key:
        raise RuntimeError("BRAVE_API_KEY is not configured")

    params: dict[str, Any] = {
        "q": query,
        "count": max_results,
        "safesearch": settings.search_safesearch,
    }

    async with httpx.AsyncClient(timeout=settings.search_timeout_seconds) as client:
        response = await client.get(
            BRAVE_SEARCH_URL,
            params=params,
            headers={
                "Accept": "application/json",
                "X-Subscription-Token": settings.brave_api_key,
            },
        )
        response.raise_for_status()
        payload = response.json()

    raw_results = payload.get("web", {}).get("results", [])
    mapped: list[SearchResult] = []
    for item in raw_results:
        url = item.get("url", "") or ""
        if not web_utils.is_valid_url(url):
            continue
        snippets = item.get("extra_snippets", []) or []
        description = (item.get("description", "") or "").strip() or " ".join(snippets).strip()
        hostname = (item.get("meta_url") or {}).get("hostname") or web_utils.extract_domain(url)
        mapped.append(
            SearchResult(
                title=item.get("title", "") or "",
                url=url,
                hostname=hostname.lower(),
                description=description,
            )
        )
    return mapped
