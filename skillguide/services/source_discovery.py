"""Find candidate pages per source category for a topic.

Each category runs its query templates in order against the configured search
provider, keeps only results that classify into the category, ranks them by a
keyword/path heuristic and fills the per-category quota. Categories that come
up short are topped up with synthetic search-page URLs so a non-empty topic
always yields sources.
"""
from __future__ import annotations

import asyncio
import hashlib
import re
from dataclasses import dataclass
from urllib.parse import quote, quote_plus

from skillguide.models.guide import DiscoveredSource, SourceType
from skillguide.services.logger import logger
from skillguide.tools import search_provider, web_utils
from skillguide.tools.ddg_search import SearchResult

SOURCE_TYPES: tuple[SourceType, ...] = (
    SourceType.DOCS,
    SourceType.GITHUB,
    SourceType.STACKOVERFLOW,
    SourceType.BLOG,
)

SOURCE_QUERIES: dict[SourceType, tuple[str, ...]] = {
    SourceType.DOCS: ("{topic} official documentation", "{topic} api reference"),
    SourceType.GITHUB: ("{topic} github discussions", "{topic} github issues"),
    SourceType.STACKOVERFLOW: ("{topic} stack overflow", "{topic} stackoverflow common error"),
    SourceType.BLOG: ("{topic} tutorial blog", "{topic} best practices guide"),
}

KNOWN_BLOG_DOMAINS = (
    "dev.to",
    "medium.com",
    "hashnode.com",
    "freecodecamp.org",
    "digitalocean.com",
    "smashingmagazine.com",
    "css-tricks.com",
    "martinfowler.com",
    "substack.com",
)

DOCS_HINTS = ("docs.", "developer.", "readthedocs", "/docs", "/api", "/reference")
CODE_HOST = "github.com"
QA_HOST = "stackoverflow.com"

CATEGORY_BONUSES: dict[SourceType, tuple[tuple[str, int], ...]] = {
    SourceType.DOCS: (("/docs", 2), ("/reference", 2)),
    SourceType.GITHUB: (("/discussions", 2), ("/issues", 2), ("/wiki", 1)),
    SourceType.STACKOVERFLOW: (("/questions/", 3),),
    SourceType.BLOG: (("/tutorial", 2), ("/guide", 1)),
}


@dataclass(frozen=True, slots=True)
class _Fallback:
    url: str
    title: str
    reason: str
    query: str


def clamp_quota(max_per_type: int, *, upper: int = 3) -> int:
    return max(1, min(int(max_per_type), upper))


def tokenize_topic(topic: str) -> list[str]:
    return [
        token
        for token in (part.strip() for part in re.split(r"[\s/-]+", topic.lower()))
        if len(token) > 2
    ]


def create_source_id(source_type: SourceType, url: str, index: int) -> str:
    """Deterministic id: category, position and a short digest of the normalized URL."""
    digest = hashlib.sha1(web_utils.normalize_url(url).encode("utf-8")).hexdigest()[:10]
    return f"{source_type.value}-{index}-{digest}"


def _has_any(value: str, needles: tuple[str, ...]) -> bool:
    return any(needle in value for needle in needles)


def _host_and_url(result: SearchResult) -> tuple[str, str]:
    hostname = (result.hostname or web_utils.extract_domain(result.url)).lower()
    return hostname, result.url.lower()


def is_docs_result(result: SearchResult) -> bool:
    hostname, url = _host_and_url(result)
    if CODE_HOST in hostname or QA_HOST in hostname:
        return False
    if _has_any(hostname, KNOWN_BLOG_DOMAINS):
        return False
    return _has_any(hostname, DOCS_HINTS) or _has_any(url, DOCS_HINTS)


def is_github_result(result: SearchResult) -> bool:
    hostname, _ = _host_and_url(result)
    return CODE_HOST in hostname


def is_stackoverflow_result(result: SearchResult) -> bool:
    hostname, url = _host_and_url(result)
    return QA_HOST in hostname and "/questions/" in url


def is_blog_result(result: SearchResult) -> bool:
    hostname, url = _host_and_url(result)
    if CODE_HOST in hostname or QA_HOST in hostname:
        return False
    if is_docs_result(result):
        return False
    return (
        _has_any(hostname, KNOWN_BLOG_DOMAINS)
        or "blog." in hostname
        or "/blog/" in url
        or "/tutorial" in url
    )


_MATCHERS = {
    SourceType.DOCS: is_docs_result,
    SourceType.GITHUB: is_github_result,
    SourceType.STACKOVERFLOW: is_stackoverflow_result,
    SourceType.BLOG: is_blog_result,
}


def matches_type(result: SearchResult, source_type: SourceType) -> bool:
    return _MATCHERS[source_type](result)


def score_result(result: SearchResult, source_type: SourceType, topic_tokens: list[str]) -> int:
    title = result.title.lower()
    description = result.description.lower()
    url = result.url.lower()
    score = 0

    for token in topic_tokens:
        if token in title:
            score += 2
        if token in description:
            score += 1
        if token in url:
            score += 1

    for fragment, bonus in CATEGORY_BONUSES[source_type]:
        if fragment in url:
            score += bonus
    return score


def fallback_sources(topic: str, source_type: SourceType) -> list[DiscoveredSource]:
    """Synthetic search pages used when organic results under-deliver."""
    encoded = quote_plus(topic)
    tag = quote(re.sub(r"\s+", "-", topic.lower()), safe="")
    candidates: dict[SourceType, tuple[_Fallback, ...]] = {
        SourceType.DOCS: (
            _Fallback(
                url=f"https://duckduckgo.com/?q={encoded}+official+docs",
                title=f"{topic} documentation search",
                reason="Fallback search page for official documentation.",
                query=f"{topic} official docs",
            ),
            _Fallback(
                url=f"https://duckduckgo.com/?q={encoded}+api+reference",
                title=f"{topic} API reference search",
                reason="Fallback search page for API reference material.",
                query=f"{topic} api reference",
            ),
            _Fallback(
                url=f"https://duckduckgo.com/?q={encoded}+reference",
                title=f"{topic} reference search",
                reason="Fallback search page for reference manuals.",
                query=f"{topic} reference",
            ),
        ),
        SourceType.GITHUB: (
            _Fallback(
                url=f"https://github.com/search?q={encoded}&type=discussions",
                title=f"{topic} GitHub discussions",
                reason="Fallback GitHub discovery page.",
                query=f"{topic} github discussions",
            ),
            _Fallback(
                url=f"https://github.com/search?q={encoded}&type=issues",
                title=f"{topic} GitHub issues",
                reason="Fallback GitHub issue search.",
                query=f"{topic} github issues",
            ),
            _Fallback(
                url=f"https://github.com/search?q={encoded}&type=repositories",
                title=f"{topic} GitHub repositories",
                reason="Fallback GitHub repository search.",
                query=f"{topic} github repositories",
            ),
        ),
        SourceType.STACKOVERFLOW: (
            _Fallback(
                url=f"https://stackoverflow.com/search?q={encoded}",
                title=f"{topic} Stack Overflow search",
                reason="Fallback Stack Overflow discovery page.",
                query=f"{topic} stack overflow",
            ),
            _Fallback(
                url=f"https://stackoverflow.com/search?tab=votes&q={encoded}",
                title=f"{topic} top-voted Stack Overflow answers",
                reason="Fallback Stack Overflow search sorted by votes.",
                query=f"{topic} stackoverflow common error",
            ),
            _Fallback(
                url=f"https://stackoverflow.com/questions/tagged/{tag}",
                title=f"{topic} tagged Stack Overflow questions",
                reason="Fallback Stack Overflow tag page.",
                query=f"{topic} stackoverflow tag",
            ),
        ),
        SourceType.BLOG: (
            _Fallback(
                url=f"https://duckduckgo.com/?q={encoded}+blog+tutorial",
                title=f"{topic} technical blog search",
                reason="Fallback search page for blog tutorials.",
                query=f"{topic} tutorial blog",
            ),
            _Fallback(
                url=f"https://dev.to/search?q={encoded}",
                title=f"{topic} articles on DEV",
                reason="Fallback DEV community article search.",
                query=f"{topic} best practices guide",
            ),
            _Fallback(
                url=f"https://medium.com/search?q={encoded}",
                title=f"{topic} articles on Medium",
                reason="Fallback Medium article search.",
                query=f"{topic} medium articles",
            ),
        ),
    }
    return [
        DiscoveredSource(
            id=create_source_id(source_type, fallback.url, 0),
            type=source_type,
            title=fallback.title,
            url=web_utils.normalize_url(fallback.url),
            reason=fallback.reason,
            query=fallback.query,
        )
        for fallback in candidates[source_type]
    ]


async def discover_by_type(
    topic: str,
    source_type: SourceType,
    max_per_type: int,
) -> list[DiscoveredSource]:
    topic_tokens = tokenize_topic(topic)
    selected: list[DiscoveredSource] = []
    seen: set[str] = set()

    for template in SOURCE_QUERIES[source_type]:
        query = template.replace("{topic}", topic)
        try:
            response = await search_provider.search(query)
        except Exception as exc:
            logger.warning(f"Search for '{query}' failed, continuing discovery: {exc!r}")
            continue

        ranked = sorted(
            (
                (score_result(result, source_type, topic_tokens), result)
                for result in response.results
                if matches_type(result, source_type)
            ),
            key=lambda entry: entry[0],
            reverse=True,
        )
        for score, result in ranked:
            if score <= 0:
                continue
            normalized_url = web_utils.normalize_url(result.url)
            if normalized_url in seen:
                continue
            seen.add(normalized_url)
            selected.append(
                DiscoveredSource(
                    id=create_source_id(source_type, normalized_url, len(selected)),
                    type=source_type,
                    title=result.title.strip() or web_utils.extract_domain(normalized_url),
                    url=normalized_url,
                    reason=web_utils.clean_snippet(result.description),
                    query=query,
                )
            )
            if len(selected) >= max_per_type:
                return selected

    for fallback in fallback_sources(topic, source_type):
        if len(selected) >= max_per_type:
            break
        if fallback.url in seen:
            continue
        seen.add(fallback.url)
        selected.append(
            DiscoveredSource(
                id=create_source_id(source_type, fallback.url, len(selected)),
                type=fallback.type,
                title=fallback.title,
                url=fallback.url,
                reason=fallback.reason,
                query=fallback.query,
            )
        )

    if len(selected) < max_per_type:
        logger.info(
            f"Discovery for {source_type.value} filled {len(selected)}/{max_per_type} slots"
        )
    return selected


async def discover_sources(topic: str, max_per_type: int = 2) -> list[DiscoveredSource]:
    """Discover sources for every category concurrently, deduplicated by URL."""
    topic = topic.strip()
    if not topic:
        return []
    limit = clamp_quota(max_per_type)
    per_type = await asyncio.gather(
        *(discover_by_type(topic, source_type, limit) for source_type in SOURCE_TYPES)
    )

    deduped: dict[str, DiscoveredSource] = {}
    for sources in per_type:
        for source in sources:
            deduped.setdefault(source.url, source)

    discovered = list(deduped.values())
    logger.info(f"Discovered {len(discovered)} sources for topic '{topic}' (quota {limit})")
    return discovered
