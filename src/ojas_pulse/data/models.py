"""Core data models for Ojas Pulse."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class HealthCategory(StrEnum):
    """The 13 health categories articles are filed under."""

    MENTAL_HEALTH = "mental-health"
    FITNESS = "fitness"
    NUTRITION = "nutrition"
    CHRONIC_DISEASE = "chronic-disease"
    MEDICATION = "medication"
    ENVIRONMENTAL_HEALTH = "environmental-health"
    PANDEMIC = "pandemic"
    PREVENTIVE_CARE = "preventive-care"
    WOMEN_HEALTH = "women-health"
    CHILD_HEALTH = "child-health"
    AGING = "aging"
    SLEEP = "sleep"
    STRESS = "stress"

    @property
    def display_name(self) -> str:
        return _CATEGORY_NAMES[self]


_CATEGORY_NAMES: dict[HealthCategory, str] = {
    HealthCategory.MENTAL_HEALTH: "Mental Health",
    HealthCategory.FITNESS: "Fitness & Exercise",
    HealthCategory.NUTRITION: "Nutrition & Diet",
    HealthCategory.CHRONIC_DISEASE: "Chronic Diseases",
    HealthCategory.MEDICATION: "Medications & Treatments",
    HealthCategory.ENVIRONMENTAL_HEALTH: "Environmental Health",
    HealthCategory.PANDEMIC: "Pandemic & Infectious Diseases",
    HealthCategory.PREVENTIVE_CARE: "Preventive Care",
    HealthCategory.WOMEN_HEALTH: "Women's Health",
    HealthCategory.CHILD_HEALTH: "Child Health",
    HealthCategory.AGING: "Aging & Elderly Care",
    HealthCategory.SLEEP: "Sleep Health",
    HealthCategory.STRESS: "Stress Management",
}


class TopicCategory(StrEnum):
    """Broad news categories used during topic discovery."""

    HEALTH = "health"
    TECHNOLOGY = "technology"
    SCIENCE = "science"
    ENTERTAINMENT = "entertainment"
    BUSINESS = "business"
    SPORTS = "sports"
    POLITICS = "politics"
    OTHER = "other"


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Urgency(StrEnum):
    """How pressing an article is for readers.

    - ``low``: general information.
    - ``medium``: important to know.
    - ``high``: urgent health issue.
    - ``critical``: immediate public health concern.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Query:
    """A search query produced by the templating engine."""

    text: str
    category: str
    region: str | None = None
    priority: Priority = Priority.MEDIUM


@dataclass(frozen=True)
class DiscoveredTopic:
    """A specific, current topic proposed by the discovery model."""

    topic: str
    category: str
    priority: int
    reasoning: str = ""


@dataclass(frozen=True)
class PlannedSearch:
    """One search the planner wants executed."""

    query: str
    max_results: int = 10
    region: str = "IN"
    language: str = "en"


@dataclass(frozen=True)
class RawSourceItem:
    """A normalized web search result. ``url`` is the deduplication key."""

    title: str
    url: str
    domain: str
    snippet: str | None = None
    published_at: str | None = None

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "title": self.title,
            "url": self.url,
            "snippet": self.snippet or "",
            "domain": self.domain,
        }
        if self.published_at:
            doc["publishedAt"] = self.published_at
        return doc


@dataclass(frozen=True)
class SourceCluster:
    """Sources that corroborate one concrete claim.

    ``expire_at`` is advisory: eviction is left to whoever reads the store.
    """

    id: str
    claim: str
    category: str
    region: str
    items: tuple[RawSourceItem, ...]
    created_at: str
    expire_at: str
    queries: tuple[str, ...] = ()

    def to_document(self) -> dict[str, Any]:
        return {
            "claim": self.claim,
            "category": self.category,
            "region": self.region,
            "items": [item.to_document() for item in self.items],
            "createdAt": self.created_at,
            "expireAt": self.expire_at,
            "queries": list(self.queries),
        }


@dataclass(frozen=True)
class SourceInfo:
    """A source cited by a synthesized article."""

    name: str
    url: str
    domain: str


@dataclass(frozen=True)
class SynthesizedArticle:
    """A validated, write-once article produced by the synthesizer."""

    title: str
    summary: str
    key_insights: tuple[str, ...]
    category: HealthCategory
    tags: tuple[str, ...]
    urgency: Urgency
    location_relevance: str
    sources: tuple[SourceInfo, ...]
    query: str
    generated_at: str
    quality_flags: tuple[str, ...] = ()

    @property
    def word_count(self) -> int:
        return len(self.summary.split())

    def to_document(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "summary": self.summary,
            "keyInsights": list(self.key_insights),
            "category": str(self.category),
            "tags": list(self.tags),
            "urgency": str(self.urgency),
            "locationRelevance": self.location_relevance,
            "sources": [
                {"name": s.name, "url": s.url, "domain": s.domain} for s in self.sources
            ],
            "query": self.query,
            "generatedAt": self.generated_at,
            "qualityFlags": list(self.quality_flags),
        }


@dataclass(frozen=True)
class QueryWithSources:
    """A query and the sources collected for it."""

    query: str
    category: str
    priority: str
    sources: tuple[RawSourceItem, ...]
    collected_at: str

    def to_document(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "category": self.category,
            "priority": self.priority,
            "sources": [s.to_document() for s in self.sources],
            "sourceCount": len(self.sources),
            "collectedAt": self.collected_at,
            "synthesized": False,
        }


@dataclass(frozen=True)
class APICallUsage:
    """Usage from a single API call, carrying model info for price lookup."""

    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0
    web_searches: int = 0


@dataclass
class Usage:
    """Accumulated API usage across pipeline components."""

    api_calls: list[APICallUsage] = field(default_factory=list)
    search_requests: int = 0
    estimated_cost: float = 0.0

    @property
    def input_tokens(self) -> int:
        return sum(c.input_tokens for c in self.api_calls)

    @property
    def output_tokens(self) -> int:
        return sum(c.output_tokens for c in self.api_calls)

    @property
    def cache_creation_input_tokens(self) -> int:
        return sum(c.cache_creation_input_tokens for c in self.api_calls)

    @property
    def cache_read_input_tokens(self) -> int:
        return sum(c.cache_read_input_tokens for c in self.api_calls)

    @property
    def web_searches(self) -> int:
        return sum(c.web_searches for c in self.api_calls)

    def __add__(self, other: "Usage") -> "Usage":
        return Usage(
            api_calls=self.api_calls + other.api_calls,
            search_requests=self.search_requests + other.search_requests,
            estimated_cost=self.estimated_cost + other.estimated_cost,
        )

    def __iadd__(self, other: "Usage") -> "Usage":
        self.api_calls.extend(other.api_calls)
        self.search_requests += other.search_requests
        self.estimated_cost += other.estimated_cost
        return self
