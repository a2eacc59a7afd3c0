from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from skillguide.models.guide import SourceType
from skillguide.services import source_discovery
from skillguide.tools.ddg_search import SearchResult
from skillguide.tools.search_provider import SearchResponse


def _result(url: str, title: str = "", description: str = "", hostname: str = "") -> SearchResult:
    from skillguide.tools import web_utils

    return SearchResult(
        title=title,
        url=url,
        hostname=hostname or web_utils.extract_domain(url),
        description=description,
    )


def test_tokenize_topic_drops_short_tokens():
    assert source_discovery.tokenize_topic("React hooks / use-effect in JS") == [
        "react",
        "hooks",
        "use",
        "effect",
    ]


def test_classification_rules():
    docs = _result("https://docs.docker.com/engine/")
    github = _result("https://github.com/moby/moby/issues/1")
    question = _result("https://stackoverflow.com/questions/123/docker")
    so_tag_page = _result("https://stackoverflow.com/tags/docker")
    blog = _result("https://dev.to/someone/docker-tips")
    blog_docs_path = _result("https://medium.com/docs/something")

    assert source_discovery.matches_type(docs, SourceType.DOCS)
    assert not source_discovery.matches_type(github, SourceType.DOCS)
    assert source_discovery.matches_type(github, SourceType.GITHUB)
    assert source_discovery.matches_type(question, SourceType.STACKOVERFLOW)
    assert not source_discovery.matches_type(so_tag_page, SourceType.STACKOVERFLOW)
    assert source_discovery.matches_type(blog, SourceType.BLOG)
    assert not source_discovery.matches_type(docs, SourceType.BLOG)
    assert not source_discovery.matches_type(blog_docs_path, SourceType.DOCS)
    assert source_discovery.matches_type(blog_docs_path, SourceType.BLOG)


def test_score_result_counts_tokens_and_bonuses():
    result = _result(
        "https://www.docker.com/reference/cli",
        title="Docker CLI reference",
        description="The docker command",
    )

    # title +2, description +1, url +1, /reference +2
    assert source_discovery.score_result(result, SourceType.DOCS, ["docker"]) == 6
    assert source_discovery.score_result(result, SourceType.BLOG, ["docker"]) == 4


def test_create_source_id_is_deterministic():
    first = source_discovery.create_source_id(SourceType.DOCS, "https://a.com/x/#frag", 0)
    second = source_discovery.create_source_id(SourceType.DOCS, "https://a.com/x", 0)

    assert first == second
    assert first.startswith("docs-0-")


@pytest.mark.asyncio
async def test_discover_by_type_ranks_dedupes_and_fills_quota():
    responses = {
        "docker github discussions": SearchResponse(
            results=[
                _result("https://github.com/docker/compose", title="compose"),
                _result(
                    "https://github.com/moby/moby/issues/42#top",
                    title="Docker daemon crash",
                    description="docker issue <b>report</b>",
                ),
                _result("https://example.com/docker", title="Docker elsewhere"),
            ],
            provider="duckduckgo",
        ),
        "docker github issues": SearchResponse(
            results=[_result("https://github.com/moby/moby/issues/42/", title="Docker daemon crash")],
            provider="duckduckgo",
        ),
    }

    async def fake_search(query: str, **kwargs):
        return responses[query]

    with patch(
        "skillguide.services.source_discovery.search_provider.search",
        new=AsyncMock(side_effect=fake_search),
    ):
        sources = await source_discovery.discover_by_type("docker", SourceType.GITHUB, 2)

    assert [s.url for s in sources] == [
        "https://github.com/moby/moby/issues/42",
        "https://github.com/docker/compose",
    ]
    assert sources[0].reason == "docker issue report"
    assert sources[0].query == "docker github discussions"
    assert sources[0].id.startswith("github-0-")
    assert sources[1].id.startswith("github-1-")


@pytest.mark.asyncio
async def test_discover_by_type_skips_zero_score_results():
    response = SearchResponse(
        results=[_result("https://github.com/unrelated/repo", title="Something else")],
        provider="duckduckgo",
    )
    with patch(
        "skillguide.services.source_discovery.search_provider.search",
        new=AsyncMock(return_value=response),
    ):
        sources = await source_discovery.discover_by_type("kubernetes", SourceType.GITHUB, 1)

    assert len(sources) == 1
    assert sources[0].url.startswith("https://github.com/search?q=kubernetes")


@pytest.mark.asyncio
async def test_provider_errors_are_swallowed_and_fallbacks_fill_quota():
    with patch(
        "skillguide.services.source_discovery.search_provider.search",
        new=AsyncMock(side_effect=RuntimeError("provider down")),
    ):
        sources = await source_discovery.discover_sources("Docker", 2)

    assert len(sources) == 8
    assert {s.type for s in sources} == set(SourceType)
    assert len({s.url for s in sources}) == 8
    assert len({s.id for s in sources}) == 8
    assert all("#" not in s.url and not s.url.endswith("/") for s in sources)


@pytest.mark.asyncio
async def test_discover_sources_clamps_quota_and_bounds_count():
    with patch(
        "skillguide.services.source_discovery.search_provider.search",
        new=AsyncMock(return_value=SearchResponse(results=[], provider="duckduckgo")),
    ):
        many = await source_discovery.discover_sources("Docker", 10)
        few = await source_discovery.discover_sources("Docker", 0)

    assert len(many) == 4 * 3
    assert len({s.url for s in many}) == 12
    assert len(few) == 4


@pytest.mark.asyncio
async def test_discover_sources_empty_topic_returns_nothing():
    with patch(
        "skillguide.services.source_discovery.search_provider.search",
        new=AsyncMock(),
    ) as search:
        assert await source_discovery.discover_sources("   ", 2) == []
    search.assert_not_awaited()


@pytest.mark.asyncio
async def test_discover_sources_dedupes_across_categories():
    shared = _result(
        "https://docs.example.com/blog/docker-tutorial",
        title="Docker tutorial",
        description="docker",
    )

    with patch(
        "skillguide.services.source_discovery.search_provider.search",
        new=AsyncMock(return_value=SearchResponse(results=[shared], provider="duckduckgo")),
    ):
        sources = await source_discovery.discover_sources("docker", 1)

    urls = [s.url for s in sources]
    assert len(urls) == len(set(urls))
    assert urls.count(shared.url) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("source_type", list(SourceType))
async def test_fallbacks_fill_the_largest_quota_per_category(source_type):
    with patch(
        "skillguide.services.source_discovery.search_provider.search",
        new=AsyncMock(return_value=SearchResponse(results=[], provider="duckduckgo")),
    ):
        sources = await source_discovery.discover_by_type("Docker Compose", source_type, 3)

    assert len(sources) == 3
    assert {s.type for s in sources} == {source_type}
    assert len({s.url for s in sources}) == 3


def test_stackoverflow_tag_fallback_slugifies_topic():
    urls = [s.url for s in source_discovery.fallback_sources("Docker Compose", SourceType.STACKOVERFLOW)]

    assert "https://stackoverflow.com/questions/tagged/docker-compose" in urls
