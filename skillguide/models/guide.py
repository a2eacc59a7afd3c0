from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal


class SourceType(str, Enum):
    DOCS = "docs"
    GITHUB = "github"
    STACKOVERFLOW = "stackoverflow"
    BLOG = "blog"


class PipelinePhase(str, Enum):
    IDLE = "idle"
    DISCOVERING = "discovering"
    SCRAPING = "scraping"
    SYNTHESIZING = "synthesizing"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class DiscoveredSource:
    id: str
    type: SourceType
    title: str
    url: str
    reason: str
    query: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "url": self.url,
            "reason": self.reason,
            "query": self.query,
        }


@dataclass(frozen=True, slots=True)
class ApiReference:
    name: str
    description: str
    signature: str = ""


@dataclass(frozen=True, slots=True)
class PracticalExample:
    title: str
    code: str
    explanation: str = ""
    language: str = ""


@dataclass(frozen=True, slots=True)
class CommonIssue:
    issue: str
    fix: str


@dataclass(frozen=True, slots=True)
class ResourceLink:
    label: str
    url: str
    note: str = ""


@dataclass(frozen=True, slots=True)
class StructuredExtraction:
    """Fixed-shape knowledge record derived from one scraped source."""

    overview: str
    core_concepts: list[str] = field(default_factory=list)
    apis: list[ApiReference] = field(default_factory=list)
    examples: list[PracticalExample] = field(default_factory=list)
    common_issues: list[CommonIssue] = field(default_factory=list)
    best_practices: list[str] = field(default_factory=list)
    resources: list[ResourceLink] = field(default_factory=list)
    raw_text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "overview": self.overview,
            "coreConcepts": list(self.core_concepts),
            "apis": [
                {"name": a.name, "description": a.description, "signature": a.signature}
                for a in self.apis
            ],
            "examples": [
                {
                    "title": e.title,
                    "code": e.code,
                    "explanation": e.explanation,
                    "language": e.language,
                }
                for e in self.examples
            ],
            "commonIssues": [{"issue": i.issue, "fix": i.fix} for i in self.common_issues],
            "bestPractices": list(self.best_practices),
            "resources": [
                {"label": r.label, "url": r.url, "note": r.note} for r in self.resources
            ],
            "rawText": self.raw_text,
        }


@dataclass(frozen=True, slots=True)
class ScrapeSuccess:
    source: DiscoveredSource
    extracted: StructuredExtraction
    word_count: int
    status: Literal["complete"] = "complete"


@dataclass(frozen=True, slots=True)
class ScrapeFailure:
    source: DiscoveredSource
    error: str
    status: Literal["error"] = "error"


ScrapeOutcome = ScrapeSuccess | ScrapeFailure


@dataclass(frozen=True, slots=True)
class GuideBuildResult:
    sections: list[str]

    @property
    def markdown(self) -> str:
        return "\n".join(self.sections)


@dataclass(frozen=True, slots=True)
class GenerationStats:
    source_count: int
    success_count: int
    generated_words: int

    def to_dict(self) -> dict[str, int]:
        return {
            "sourceCount": self.source_count,
            "successCount": self.success_count,
            "generatedWords": self.generated_words,
        }
