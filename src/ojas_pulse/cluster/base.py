from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol

from ojas_pulse.data import RawSourceItem, SourceCluster, Usage


class ClusterKind(StrEnum):
    LLM = "llm"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ClusterResult:
    """Clusters for a topic, tagged with whether the model produced them."""

    clusters: list[SourceCluster]
    kind: ClusterKind
    usage: Usage = field(default_factory=Usage)


class SourceClusterer(Protocol):
    """Interface for grouping sources into claim-centric clusters."""

    async def cluster(
        self,
        sources: list[RawSourceItem],
        topic: str,
        region: str,
        category: str,
    ) -> ClusterResult: ...
