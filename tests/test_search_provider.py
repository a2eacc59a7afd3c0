from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from skillguide.tools import brave_search, ddg_search, search_provider
from skillguide.tools.ddg_search import SearchResult

DDG_RESULT = SearchResult(
    title="Docker docs",
    url="https://docs.docker.com/",
    hostname="docs.docker.com",
    description="Official documentation",
)


@pytest.mark.asyncio
async def test_search_provider_uses_duckduckgo_when_configured():
    with patch("skillguide.tools.search_provider.settings") as mock_settings, patch(
        "skillguide.tools.search_provider.ddg_search.search",
        new=AsyncMock(return_value=[DDG_RESULT]),
    ) as ddg:
        mock_settings.search_provider = "DuckDuckGo "
        mock_settings.search_max_results_per_query = 7

        result = await search_provider.search("docker docs")

    assert result.provider == "duckduckgo"
    assert result.results == [DDG_RESULT]
    ddg.assert_awaited_once_with("docker docs", max_results=7)


@pytest.mark.asyncio
async def test_search_provider_falls_back_when_brave_errors():
    with patch("skillguide.tools.search_provider.settings") as mock_settings, patch(
        "skillguide.tools.search_provider.brave_search.search",
        new=AsyncMock(side_effect=RuntimeError("BRAVE_API_KEY is not configured")),
    ), patch(
        "skillguide.tools.search_provider.ddg_search.search",
        new=AsyncMock(return_value=[DDG_RESULT]),
    ):
        mock_settings.search_provider = "brave"
        mock_settings.search_fallback_to_duckduckgo = True
        mock_settings.search_max_results_per_query = 5

        result = await search_provider.search("docker")

    assert result.provider == "duckduckgo"
    assert result.fallback_from == "brave"
    assert result.fallback_reason == "BRAVE_API_KEY is not configured"


@pytest.mark.asyncio
async def test_search_provider_falls_back_when_brave_is_empty():
    with patch("skillguide.tools.search_provider.settings") as mock_settings, patch(
        "skillguide.tools.search_provider.brave_search.search",
        new=AsyncMock(return_value=[]),
    ), patch(
        "skillguide.tools.search_provider.ddg_search.search",
        new=AsyncMock(return_value=[DDG_RESULT]),
    ):
        mock_settings.search_provider = "brave"
        mock_settings.search_fallback_to_duckduckgo = True
        mock_settings.search_max_results_per_query = 5

        result = await search_provider.search("docker")

    assert result.results == [DDG_RESULT]
    assert result.fallback_reason == "brave returned zero results"


@pytest.mark.asyncio
async def test_search_provider_propagates_brave_error_without_fallback():
    with patch("skillguide.tools.search_provider.settings") as mock_settings, patch(
        "skillguide.tools.search_provider.brave_search.search",
        new=AsyncMock(side_effect=RuntimeError("rate limited")),
    ):
        mock_settings.search_provider = "brave"
        mock_settings.search_fallback_to_duckduckgo = False
        mock_settings.search_max_results_per_query = 5

        with pytest.raises(RuntimeError):
            await search_provider.search("docker")


@pytest.mark.asyncio
async def test_search_provider_raises_when_provider_unsupported():
    with patch("skillguide.tools.search_provider.settings") as mock_settings:
        mock_settings.search_provider = "unknown-provider"
        mock_settings.search_max_results_per_query = 5

        with pytest.raises(ValueError):
            await search_provider.search("query")


@pytest.mark.asyncio
async def test_ddg_search_maps_and_filters_results():
    raw = [
        {"title": " Get started ", "href": "https://docs.docker.com/get-started/", "body": "Learn Docker"},
        {"title": "No link", "href": "not-a-url", "body": ""},
        "garbage",
    ]
    with patch("skillguide.tools.ddg_search._search_sync", return_value=raw):
        results = await ddg_search.search("docker", max_results=3)

    assert results == [
        SearchResult(
            title="Get started",
            url="https://docs.docker.com/get-started/",
            hostname="docs.docker.com",
            description="Learn Docker",
        )
    ]


@pytest.mark.asyncio
async def test_brave_search_maps_results():
    payload = {
        "web": {
            "results": [
                {
                    "title": "Docker overview",
                    "url": "https://docs.docker.com/get-started/overview/",
                    "description": "",
                    "extra_snippets": ["Docker is", "an open platform"],
                    "meta_url": {"hostname": "Docs.Docker.com"},
                },
                {"title": "Broken", "url": "ftp://example.com"},
            ]
        }
    }
    response = MagicMock()
    response.json.return_value = payload
    client = MagicMock()
    client.get = AsyncMock(return_value=response)
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)

    with patch("skillguide.tools.brave_search.settings") as mock_settings, patch(
        "skillguide.tools.brave_search.httpx.AsyncClient", return_value=client
    ):
        mock_settings.brave_api_key = "brave-key"
        mock_settings.search_safesearch = "moderate"
        mock_settings.search_timeout_seconds = 5

        results = await brave_search.search("docker", max_results=2)

    assert len(results) == 1
    assert results[0].hostname == "docs.docker.com"
    assert results[0].description == "Docker is an open platform"
    headers = client.get.call_args.kwargs["headers"]
    assert headers["X-Subscription-Token"] == "brave-key"


@pytest.mark.asyncio
async def test_brave_search_requires_api_key():
    with patch("skillguide.tools.brave_search.settings") as mock_settings:
        mock_settings.brave_api_key = ""

        with pytest.raises(RuntimeError):
            await brave_search.search("docker")
