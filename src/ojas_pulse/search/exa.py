"""Exa search using the official exa-py SDK."""

import logging
import os

from exa_py import AsyncExa

from ojas_pulse.data import RawSourceItem
from ojas_pulse.url import extract_domain

logger = logging.getLogger(__name__)


class ExaSearcher:
    """Search for content using the Exa API.

    Exa has no region or language filter, so those arguments are accepted
    for interface compatibility and ignored.

    Args:
        api_key: Exa API key (defaults to EXA_API_KEY env var).
    """

    def __init__(self, *, api_key: str | None = None) -> None:
        self._api_key = api_key or os.environ.get("EXA_API_KEY")
        self._client = AsyncExa(api_key=self._api_key) if self._api_key else None

    async def search(
        self,
        query: str,
        *,
        max_results: int = 10,
        region: str = "IN",
        language: str = "en",
    ) -> list[RawSourceItem]:
        if self._client is None:
            logger.warning("Exa API key missing; skipping %r", query)
            return []

        response = await self._client.search(query, num_results=max(1, min(max_results, 10)))

        return [
            RawSourceItem(
                title=result.title or "",
                url=result.url,
                domain=extract_domain(result.url),
                snippet=None,
                published_at=result.published_date,
            )
            for result in response.results
        ]
