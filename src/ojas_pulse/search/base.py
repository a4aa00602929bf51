from typing import Protocol

from ojas_pulse.data import RawSourceItem


class SourceSearcher(Protocol):
    """Interface for a web search backend."""

    async def search(
        self,
        query: str,
        *,
        max_results: int = 10,
        region: str = "IN",
        language: str = "en",
    ) -> list[RawSourceItem]:
        """Run one search.

        Args:
            query: Search query text.
            max_results: Maximum results to return (backends cap this at 10).
            region: Region code used to bias results, e.g. "IN".
            language: Language code, e.g. "en".

        Returns:
            Normalized results in backend order. Empty when the backend has
            no credentials configured.

        Raises:
            Exception: Transport and HTTP errors propagate to the caller.
        """
        ...
