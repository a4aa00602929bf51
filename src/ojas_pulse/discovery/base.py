from typing import Protocol

from ojas_pulse.data import DiscoveredTopic, Usage


class TopicDiscovery(Protocol):
    """Interface for proposing specific, currently trending topics."""

    async def discover(
        self, region: str = "IN", max_topics: int = 10
    ) -> tuple[list[DiscoveredTopic], Usage]:
        """Discover trending topics across all categories.

        Args:
            region: Region code to focus on.
            max_topics: Maximum number of topics to return.

        Returns:
            Tuple of (topics sorted by priority descending, usage). Failures
            yield an empty list rather than an exception.
        """
        ...

    async def discover_for_category(
        self, category: str, region: str = "IN", max_topics: int = 5
    ) -> tuple[list[DiscoveredTopic], Usage]: ...
