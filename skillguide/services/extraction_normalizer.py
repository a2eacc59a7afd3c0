"""Coerce whatever the scrape agent returned into a ``StructuredExtraction``.

The agent is asked for a fixed JSON schema but nothing guarantees it complies:
fields go missing, keys get renamed, entries arrive as bare strings, or the
whole payload is prose. Every logical field therefore resolves through an
ordered list of accepted aliases, and ``normalize_extraction`` never raises.
"""
from __future__ import annotations

import json
from typing import Any, Callable, Iterable, TypeVar

from skillguide.models.guide import (
    ApiReference,
    CommonIssue,
    DiscoveredSource,
    PracticalExample,
    ResourceLink,
    StructuredExtraction,
)
from skillguide.tools import web_utils

T = TypeVar("T")

OVERVIEW_CHARS = 360
MAX_STRING_ITEMS = 20
MAX_RESOURCES = 20
NO_OVERVIEW = "No high-level overview could be extracted from this source."

RAW_TEXT_KEYS = ("rawText", "content", "body", "markdown", "notes")
OVERVIEW_KEYS = ("overview", "summary", "intro")
STRING_ITEM_KEYS = ("title", "name", "value", "text", "description")

API_NAME_KEYS = ("name", "method", "api", "function")
API_DESCRIPTION_KEYS = ("description", "explanation", "purpose", "detail")
API_SIGNATURE_KEYS = ("signature", "syntax", "example")

EXAMPLE_CODE_KEYS = ("code", "snippet", "example", "content")
EXAMPLE_TITLE_KEYS = ("title", "name")
EXAMPLE_EXPLANATION_KEYS = ("explanation", "why", "context", "description")
EXAMPLE_LANGUAGE_KEYS = ("language", "lang")

ISSUE_KEYS = ("issue", "problem", "title", "error", "mistake")
FIX_KEYS = ("fix", "solution", "resolution", "answer")

RESOURCE_URL_KEYS = ("url", "link", "href")
RESOURCE_LABEL_KEYS = ("label", "title", "name")
RESOURCE_NOTE_KEYS = ("note", "reason", "description")


def first_string(*values: Any) -> str:
    """First non-blank string among ``values``, stripped; ``""`` if none."""
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def pick(obj: dict[str, Any], keys: Iterable[str]) -> str:
    return first_string(*(obj.get(key) for key in keys))


def pick_present(obj: dict[str, Any], keys: Iterable[str]) -> Any:
    """First alias whose value is truthy, mirroring ``a || b || c`` lookups."""
    for key in keys:
        value = obj.get(key)
        if value:
            return value
    return None


def unique_by(values: Iterable[T], key: Callable[[T], str], limit: int) -> list[T]:
    """Keep the first occurrence per key, preserving order, up to ``limit`` items."""
    seen: set[str] = set()
    out: list[T] = []
    for value in values:
        if len(out) >= limit:
            break
        marker = key(value)
        if marker in seen:
            continue
        seen.add(marker)
        out.append(value)
    return out


def unique_strings(values: Iterable[str], limit: int) -> list[str]:
    return unique_by(values, str.lower, limit)


def unique_resources(values: Iterable[ResourceLink], limit: int) -> list[ResourceLink]:
    return unique_by(values, lambda resource: resource.url.lower(), limit)


def strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_maybe_object(raw: Any) -> dict[str, Any] | None:
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str):
        try:
            parsed = json.loads(strip_code_fence(raw))
        except (json.JSONDecodeError, RecursionError):
            return None
        if isinstance(parsed, dict):
            return parsed
    return None


def _dicts_and_strings(raw: Any) -> Iterable[str | dict[str, Any]]:
    if not isinstance(raw, list):
        return []
    return [entry for entry in raw if isinstance(entry, (str, dict))]


def to_string_list(raw: Any) -> list[str]:
    values: list[str] = []
    for entry in _dicts_and_strings(raw):
        candidate = entry.strip() if isinstance(entry, str) else pick(entry, STRING_ITEM_KEYS)
        if candidate:
            values.append(candidate)
    return values


def to_api_list(raw: Any) -> list[ApiReference]:
    apis: list[ApiReference] = []
    for entry in _dicts_and_strings(raw):
        if isinstance(entry, str):
            if entry.strip():
                apis.append(
                    ApiReference(
                        name=entry.strip(),
                        description="Referenced API from source content.",
                    )
                )
            continue
        name = pick(entry, API_NAME_KEYS)
        if not name:
            continue
        apis.append(
            ApiReference(
                name=name,
                description=pick(entry, API_DESCRIPTION_KEYS)
                or "No description provided in source.",
                signature=pick(entry, API_SIGNATURE_KEYS),
            )
        )
    return apis


def to_example_list(raw: Any) -> list[PracticalExample]:
    examples: list[PracticalExample] = []
    for entry in _dicts_and_strings(raw):
        if isinstance(entry, str):
            if entry.strip():
                examples.append(PracticalExample(title="Example", code=entry.strip()))
            continue
        code = pick(entry, EXAMPLE_CODE_KEYS)
        if not code:
            continue
        examples.append(
            PracticalExample(
                title=pick(entry, EXAMPLE_TITLE_KEYS) or "Example",
                code=code,
                explanation=pick(entry, EXAMPLE_EXPLANATION_KEYS),
                language=pick(entry, EXAMPLE_LANGUAGE_KEYS),
            )
        )
    return examples


def to_issue_list(raw: Any) -> list[CommonIssue]:
    issues: list[CommonIssue] = []
    for entry in _dicts_and_strings(raw):
        if isinstance(entry, str):
            if entry.strip():
                issues.append(
                    CommonIssue(
                        issue=entry.strip(),
                        fix="Validate context and use the accepted solution from source discussions.",
                    )
                )
            continue
        issue = pick(entry, ISSUE_KEYS)
        if not issue:
            continue
        issues.append(
            CommonIssue(
                issue=issue,
                fix=pick(entry, FIX_KEYS)
                or "Review the thread for the accepted fix and adjust implementation details.",
            )
        )
    return issues


def to_resource_list(raw: Any) -> list[ResourceLink]:
    resources: list[ResourceLink] = []
    for entry in _dicts_and_strings(raw):
        if isinstance(entry, str):
            if entry.startswith("http"):
                resources.append(ResourceLink(label=entry, url=entry))
            continue
        url = pick(entry, RESOURCE_URL_KEYS)
        if not url.startswith("http"):
            continue
        resources.append(
            ResourceLink(
                label=pick(entry, RESOURCE_LABEL_KEYS) or url,
                url=url,
                note=pick(entry, RESOURCE_NOTE_KEYS),
            )
        )
    return resources


def derive_overview(raw_text: str) -> str:
    text = web_utils.collapse_whitespace(raw_text)
    if not text:
        return NO_OVERVIEW
    return text[:OVERVIEW_CHARS]


def _dump(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    try:
        return json.dumps(raw, indent=2, default=str)
    except (TypeError, ValueError, RecursionError):
        pass
    try:
        return str(raw)
    except RecursionError:
        return f"<{type(raw).__name__} payload too deeply nested to render>"


def _source_link(source: DiscoveredSource) -> ResourceLink:
    return ResourceLink(label=source.title, url=source.url, note=source.reason)


def _resources_with_source(
    explicit: list[ResourceLink], source: DiscoveredSource
) -> list[ResourceLink]:
    own = _source_link(source)
    combined = unique_resources(explicit + [own], len(explicit) + 1)
    if len(combined) <= MAX_RESOURCES:
        return combined
    own_key = own.url.lower()
    head = combined[:MAX_RESOURCES]
    if any(resource.url.lower() == own_key for resource in head):
        return head
    # the source link survives the cap at the cost of the last explicit entry
    return head[: MAX_RESOURCES - 1] + [own]


def normalize_extraction(raw: Any, source: DiscoveredSource) -> StructuredExtraction:
    parsed = parse_maybe_object(raw)
    if parsed is None:
        text = _dump(raw)
        return StructuredExtraction(
            overview=derive_overview(text),
            resources=[_source_link(source)],
            raw_text=text,
        )

    raw_text = first_string(
        *(parsed.get(key) for key in RAW_TEXT_KEYS),
        raw if isinstance(raw, str) else "",
    )
    overview = pick(parsed, OVERVIEW_KEYS) or derive_overview(raw_text)

    return StructuredExtraction(
        overview=overview,
        core_concepts=unique_strings(
            to_string_list(parsed.get("coreConcepts")) + to_string_list(parsed.get("keyPoints")),
            MAX_STRING_ITEMS,
        ),
        apis=to_api_list(pick_present(parsed, ("apis", "apiMethods", "methods"))),
        examples=to_example_list(pick_present(parsed, ("examples", "codeExamples"))),
        common_issues=to_issue_list(
            pick_present(parsed, ("commonIssues", "issues", "gotchas", "commonMistakes"))
        ),
        best_practices=unique_strings(
            to_string_list(parsed.get("bestPractices")) + to_string_list(parsed.get("tips")),
            MAX_STRING_ITEMS,
        ),
        resources=_resources_with_source(
            to_resource_list(pick_present(parsed, ("resources", "links"))), source
        ),
        raw_text=raw_text,
    )
