"""Run planned searches and merge their results."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import StrEnum

from ojas_pulse.data import PlannedSearch, RawSourceItem, Usage
from ojas_pulse.search.base import SourceSearcher

logger = logging.getLogger(__name__)


class SearchStatus(StrEnum):
    OK = "ok"
    EMPTY = "empty"
    ERROR = "error"


@dataclass(frozen=True)
class SearchOutcome:
    """What happened to one planned search."""

    query: str
    status: SearchStatus
    result_count: int = 0
    error: str | None = None


@dataclass(frozen=True)
class CollectionResult:
    """Deduplicated sources plus a per-query account of how they were found."""

    sources: list[RawSourceItem]
    outcomes: list[SearchOutcome]
    usage: Usage = field(default_factory=Usage)

    @property
    def succeeded(self) -> list[str]:
        return [o.query for o in self.outcomes if o.status == SearchStatus.OK]

    @property
    def empty(self) -> list[str]:
        return [o.query for o in self.outcomes if o.status == SearchStatus.EMPTY]

    @property
    def errored(self) -> list[str]:
        return [o.query for o in self.outcomes if o.status == SearchStatus.ERROR]


class SourceCollector:
    """Execute searches against a ``SourceSearcher`` without letting errors escape.

    Args:
        searcher: Search backend.
    """

    def __init__(self, searcher: SourceSearcher) -> None:
        self._searcher = searcher

    async def collect(
        self,
        query: str,
        max_results: int = 10,
        region: str = "IN",
        language: str = "en",
    ) -> list[RawSourceItem]:
        """Run one search; any failure is logged and becomes an empty list."""
        try:
            return await self._searcher.search(
                query, max_results=max_results, region=region, language=language
            )
        except Exception as e:
            logger.warning("[source_collection] Search failed for %r. Error: %s", query, e)
            return []

    async def collect_all(self, searches: list[PlannedSearch]) -> CollectionResult:
        """Run all searches concurrently and merge the results.

        Results keep planning order: every item from the first search comes
        before any item of the second, and so on. Within that order the first
        item seen for a URL wins.

        Args:
            searches: Planned searches to execute.

        Returns:
            ``CollectionResult`` with deduplicated sources and one outcome per
            search.
        """
        tasks = [
            self._searcher.search(
                s.query,
                max_results=s.max_results,
                region=s.region,
                language=s.language,
            )
            for s in searches
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        seen_urls: set[str] = set()
        sources: list[RawSourceItem] = []
        outcomes: list[SearchOutcome] = []
        successful_requests = 0

        for search, result in zip(searches, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning(
                    "[source_collection] Search failed for %r. Error: %s", search.query, result
                )
                outcomes.append(
                    SearchOutcome(query=search.query, status=SearchStatus.ERROR, error=str(result))
                )
                continue
            successful_requests += 1
            status = SearchStatus.OK if result else SearchStatus.EMPTY
            outcomes.append(
                SearchOutcome(query=search.query, status=status, result_count=len(result))
            )
            for item in result:
                if item.url not in seen_urls:
                    seen_urls.add(item.url)
                    sources.append(item)

        return CollectionResult(
            sources=sources,
            outcomes=outcomes,
            usage=Usage(search_requests=successful_requests),
        )
