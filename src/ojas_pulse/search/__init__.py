from ojas_pulse.search.base import SourceSearcher
from ojas_pulse.search.collector import (
    CollectionResult,
    SearchOutcome,
    SearchStatus,
    SourceCollector,
)
from ojas_pulse.search.exa import ExaSearcher
from ojas_pulse.search.google import GoogleSearcher

__all__ = [
    "CollectionResult",
    "ExaSearcher",
    "GoogleSearcher",
    "SearchOutcome",
    "SearchStatus",
    "SourceCollector",
    "SourceSearcher",
]
