from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol

from ojas_pulse.data import PlannedSearch, Usage


class PlanKind(StrEnum):
    """Where a plan's searches came from."""

    LLM = "llm"
    FALLBACK = "fallback"
    MIXED = "mixed"


@dataclass(frozen=True)
class PlanResult:
    """Planned searches for a topic, tagged with their provenance."""

    searches: list[PlannedSearch]
    kind: PlanKind
    usage: Usage = field(default_factory=Usage)

    @property
    def queries(self) -> list[str]:
        return [s.query for s in self.searches]


class SubqueryPlanner(Protocol):
    """Interface for expanding a topic into a handful of search queries."""

    async def plan(
        self, topic: str, region: str = "IN", category: str = "health"
    ) -> PlanResult: ...

    async def plan_with_tools(
        self,
        topic: str,
        region: str = "IN",
        category: str = "health",
        *,
        max_queries: int | None = None,
        per_query: int | None = None,
    ) -> PlanResult: ...
