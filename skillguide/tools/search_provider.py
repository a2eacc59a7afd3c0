from __future__ import annotations

from dataclasses import dataclass

from skillguide.config import settings
from skillguide.tools import brave_search, ddg_search
from skillguide.tools.ddg_search import SearchResult


@dataclass
class SearchResponse:
    results: list[SearchResult]
    provider: str
    fallback_from: str | None = None
    fallback_reason: str | None = None


async def search(query: str, *, max_results: int | None = None) -> SearchResponse:
    provider = settings.search_provider.lower().strip()
    use_fallback = settings.search_fallback_to_duckduckgo
    limit = max_results or settings.search_max_results_per_query

    if provider == "duckduckgo":
        results = await ddg_search.search(query, max_results=limit)
        return SearchResponse(results=results, provider="duckduckgo")

    if provider == "brave":
        try:
            results = await brave_search.search(query, max_results=limit)
            if results or not use_fallback:
                return SearchResponse(results=results, provider="brave")

            fallback_results = await ddg_search.search(query, max_results=limit)
            return SearchResponse(
                results=fallback_results,
                provider="duckduckgo",
                fallback_from="brave",
                fallback_reason="brave returned zero results",
            )
        except Exception as e:
            if not use_fallback:
                raise
            fallback_results = await ddg_search.search(query, max_results=limit)
            return SearchResponse(
                results=fallback_results,
                provider="duckduckgo",
                fallback_from="brave",
                fallback_reason=str(e),
            )

    raise ValueError(f"Unsupported SEARCH_PROVIDER: {settings.search_provider}")

