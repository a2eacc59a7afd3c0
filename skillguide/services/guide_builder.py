from __future__ import annotations

from datetime import datetime, timezone

from skillguide.models.guide import GuideBuildResult, ScrapeSuccess
from skillguide.services.extraction_normalizer import unique_resources, unique_strings

MAX_OVERVIEWS = 4
MAX_CONCEPTS = 14
MAX_APIS = 14
MAX_BEST_PRACTICES = 10
MAX_EXAMPLES = 8
MAX_ISSUES = 12
MAX_RESOURCES = 40


def _bullets(lines: list[str]) -> str:
    return "\n".join(f"- {line}" for line in lines)


def render_overview(results: list[ScrapeSuccess]) -> str:
    overviews = unique_strings(
        (item.extracted.overview for item in results if item.extracted.overview),
        MAX_OVERVIEWS,
    )
    if not overviews:
        return "No reliable overview was extracted from the selected sources."
    return _bullets(overviews)


def render_core_concepts(results: list[ScrapeSuccess]) -> str:
    concepts = unique_strings(
        (concept for item in results for concept in item.extracted.core_concepts),
        MAX_CONCEPTS,
    )
    best_practices = unique_strings(
        (tip for item in results for tip in item.extracted.best_practices),
        MAX_BEST_PRACTICES,
    )
    apis = [(api, item.source.title) for item in results for api in item.extracted.apis]

    if concepts:
        section = _bullets(concepts)
    else:
        section = "- No explicit concept list found; review examples and resources for details."

    if apis:
        rows: list[str] = []
        for api, source_title in apis[:MAX_APIS]:
            signature = f"`{api.signature}`" if api.signature else "n/a"
            rows.append(
                f"| {api.name} | {api.description} _(from {source_title})_ | {signature} |"
            )
        section += "\n\n### API Surface\n\n| API | Description | Signature |\n| --- | --- | --- |\n"
        section += "\n".join(rows) + "\n"

    if best_practices:
        section += "\n\n### Best Practices\n\n" + _bullets(best_practices)

    return section


def render_examples(results: list[ScrapeSuccess]) -> str:
    examples = [(example, item.source.title) for item in results for example in item.extracted.examples]
    if not examples:
        return (
            "No standalone code examples were extracted. "
            "Use the resources section to inspect original examples."
        )

    blocks: list[str] = []
    for index, (example, source_title) in enumerate(examples[:MAX_EXAMPLES], start=1):
        explanation = example.explanation or "Source included code without additional explanation."
        blocks.append(
            f"### Example {index}: {example.title}\n\n"
            f"```{example.language or 'text'}\n{example.code}\n```\n\n"
            f"{explanation}\n\n"
            f"_Source: {source_title}_"
        )
    return "\n\n".join(blocks)


def render_gotchas(results: list[ScrapeSuccess]) -> str:
    issues = [issue for item in results for issue in item.extracted.common_issues]
    if not issues:
        return (
            "- No explicit gotchas were extracted; check linked GitHub and "
            "Stack Overflow sources for troubleshooting context."
        )
    return "\n".join(
        f"- **{item.issue}**\n  - Fix: {item.fix}" for item in issues[:MAX_ISSUES]
    )


def render_resources(results: list[ScrapeSuccess]) -> str:
    resources = unique_resources(
        (resource for item in results for resource in item.extracted.resources),
        MAX_RESOURCES,
    )
    return "\n".join(
        f"- [{resource.label}]({resource.url})"
        + (f" - {resource.note}" if resource.note else "")
        for resource in resources
    )


def format_timestamp(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def build_guide_markdown(
    topic: str,
    results: list[ScrapeSuccess],
    *,
    now: datetime | None = None,
) -> GuideBuildResult:
    """Merge successful extractions into the fixed sequence of guide sections.

    Output depends only on ``topic``, ``results`` and ``now``; every list is capped so
    the guide stays bounded no matter how many sources succeeded.
    """
    generated_at = now or datetime.now(timezone.utc)
    header = (
        f"# {topic} Skill Guide\n\n"
        f"Generated: {format_timestamp(generated_at)}\n"
        f"Sources scraped successfully: {len(results)}\n"
    )

    sections = [
        f"{header}\n",
        f"## Overview\n\n{render_overview(results)}\n",
        f"## Core Concepts\n\n{render_core_concepts(results)}\n",
        f"## Practical Examples\n\n{render_examples(results)}\n",
        f"## Common Gotchas\n\n{render_gotchas(results)}\n",
        f"## Resources\n\n{render_resources(results)}\n",
    ]
    return GuideBuildResult(sections=sections)
