"""Google Custom Search JSON API backend."""

import logging
import os
from typing import Any

import httpx

from ojas_pulse.data import RawSourceItem
from ojas_pulse.url import extract_domain

logger = logging.getLogger(__name__)

GOOGLE_CSE_URL = "https://www.googleapis.com/customsearch/v1"
GOOGLE_MAX_RESULTS = 10


class GoogleSearcher:
    """Search the web using the Google Custom Search JSON API.

    Args:
        api_key: API key (defaults to GOOGLE_SEARCH_API_KEY env var).
        engine_id: Programmable search engine ID (defaults to
            GOOGLE_SEARCH_ENGINE_ID env var).
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        engine_id: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key or os.environ.get("GOOGLE_SEARCH_API_KEY")
        self._engine_id = engine_id or os.environ.get("GOOGLE_SEARCH_ENGINE_ID")
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self._api_key and self._engine_id)

    async def search(
        self,
        query: str,
        *,
        max_results: int = 10,
        region: str = "IN",
        language: str = "en",
    ) -> list[RawSourceItem]:
        if not self.configured:
            logger.warning("Google search API key or engine ID missing; skipping %r", query)
            return []

        params: dict[str, str | int] = {
            "key": self._api_key,  # type: ignore[dict-item]
            "cx": self._engine_id,  # type: ignore[dict-item]
            "q": query,
            "num": max(1, min(max_results, GOOGLE_MAX_RESULTS)),
            "gl": region.lower(),
            "lr": f"lang_{language}",
            "safe": "active",
        }

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(GOOGLE_CSE_URL, params=params)
            response.raise_for_status()
            data = response.json()

        items = [item for item in data.get("items") or [] if item.get("link")]
        logger.info("Google search %r returned %d results", query, len(items))
        return [_to_source_item(item) for item in items]


def _to_source_item(item: dict[str, Any]) -> RawSourceItem:
    url = item["link"]
    return RawSourceItem(
        title=item.get("title") or "",
        url=url,
        domain=extract_domain(url),
        snippet=item.get("snippet") or "",
        published_at=_published_at(item),
    )


def _published_at(item: dict[str, Any]) -> str | None:
    metatags = (item.get("pagemap") or {}).get("metatags") or []
    if not metatags or not isinstance(metatags[0], dict):
        return None
    tags = metatags[0]
    return tags.get("article:published_time") or tags.get("date") or None
