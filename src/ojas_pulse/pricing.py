"""Cost estimation for Claude calls and search requests.

Model prices are scraped from the Anthropic pricing page when possible and
fall back to a built-in table when offline.
"""

import logging
import re
from dataclasses import dataclass

import httpx

from ojas_pulse.data import Usage

logger = logging.getLogger(__name__)

PRICING_URL = "https://docs.anthropic.com/en/docs/about-claude/pricing"
WEB_SEARCH_PRICE_PER_SEARCH = 10.0 / 1000  # $10 per 1,000 searches
GOOGLE_SEARCH_REQUEST_PRICE = 5.0 / 1000  # $5 per 1,000 queries past the free tier


@dataclass(frozen=True)
class ModelPricing:
    """Per-model pricing in USD per million tokens."""

    input_per_mtok: float
    output_per_mtok: float
    cache_write_per_mtok: float
    cache_read_per_mtok: float


_FALLBACK_PRICES: dict[str, ModelPricing] = {
    "claude-haiku-4-5": ModelPricing(1.0, 5.0, 1.25, 0.10),
    "claude-haiku-3-5": ModelPricing(0.80, 4.0, 1.0, 0.08),
    "claude-sonnet-4-5": ModelPricing(3.0, 15.0, 3.75, 0.30),
    "claude-sonnet-4": ModelPricing(3.0, 15.0, 3.75, 0.30),
    "claude-opus-4-5": ModelPricing(5.0, 25.0, 6.25, 0.50),
    "claude-opus-4-1": ModelPricing(15.0, 75.0, 18.75, 1.50),
}

_DEFAULT_PRICING = _FALLBACK_PRICES["claude-haiku-4-5"]


def _display_name_to_model_prefix(name: str) -> str:
    """Convert a display name like 'Claude Haiku 4.5' to 'claude-haiku-4-5'."""
    name = re.sub(r"\s*\(.*\)", "", name).strip()
    return "-".join(p.replace(".", "-") for p in name.lower().split())


def _parse_price(cell: str) -> float:
    """Parse a price cell like '$1.25 / MTok' into a float (0.0 if absent)."""
    match = re.search(r"\$([0-9]+(?:\.[0-9]+)?)", cell)
    return float(match.group(1)) if match else 0.0


def _parse_pricing_table(markdown: str) -> dict[str, ModelPricing]:
    """Parse the "Model pricing" markdown table.

    Columns: Model | Base Input | 5m Cache Writes | 1h Cache Writes |
    Cache Hits | Output. The 1h cache-write column is ignored.
    """
    section = re.search(r"## Model pricing\s*\n(.*?)(?=\n## |\Z)", markdown, re.DOTALL)
    if not section:
        return {}

    prices: dict[str, ModelPricing] = {}
    for line in section.group(1).splitlines():
        line = line.strip()
        if not line.startswith("|") or line.startswith("| Model"):
            continue
        if re.match(r"\|[-\s|:]+\|$", line):
            continue
        cells = [c.strip() for c in line.split("|") if c.strip()]
        if len(cells) < 6:
            continue

        pricing = ModelPricing(
            input_per_mtok=_parse_price(cells[1]),
            output_per_mtok=_parse_price(cells[5]),
            cache_write_per_mtok=_parse_price(cells[2]),
            cache_read_per_mtok=_parse_price(cells[4]),
        )
        if pricing.input_per_mtok > 0 or pricing.output_per_mtok > 0:
            prices[_display_name_to_model_prefix(cells[0])] = pricing
    return prices


async def fetch_model_prices() -> dict[str, ModelPricing]:
    """Fetch live pricing, falling back to the built-in table on any failure."""
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(PRICING_URL)
            response.raise_for_status()
        parsed = _parse_pricing_table(response.text)
        if parsed:
            logger.info("Fetched live pricing for %d models", len(parsed))
            return parsed
        logger.warning("Could not parse pricing table, using fallback prices")
    except Exception:
        logger.warning("Failed to fetch pricing, using fallback prices", exc_info=True)

    return dict(_FALLBACK_PRICES)


def get_model_pricing(model_id: str, prices: dict[str, ModelPricing]) -> ModelPricing:
    """Look up pricing by model ID, preferring the longest matching prefix.

    E.g. ``'claude-haiku-4-5-20251001'`` matches ``'claude-haiku-4-5'``.
    Unknown models are priced as Haiku 4.5.
    """
    if model_id in prices:
        return prices[model_id]

    matching = [key for key in prices if model_id.startswith(key)]
    if matching:
        return prices[max(matching, key=len)]

    logger.warning("No pricing found for model '%s', using Haiku 4.5 fallback", model_id)
    return _DEFAULT_PRICING


def estimate_api_call_cost(
    model: str,
    input_tokens: int,
    output_tokens: int,
    cache_creation_input_tokens: int,
    cache_read_input_tokens: int,
    web_searches: int,
    prices: dict[str, ModelPricing],
) -> float:
    """Estimate cost in USD for a single API call."""
    pricing = get_model_pricing(model, prices)
    return (
        (input_tokens / 1_000_000) * pricing.input_per_mtok
        + (output_tokens / 1_000_000) * pricing.output_per_mtok
        + (cache_creation_input_tokens / 1_000_000) * pricing.cache_write_per_mtok
        + (cache_read_input_tokens / 1_000_000) * pricing.cache_read_per_mtok
        + web_searches * WEB_SEARCH_PRICE_PER_SEARCH
    )


def estimate_usage_cost(usage: Usage, prices: dict[str, ModelPricing]) -> float:
    """Estimate total cost in USD for accumulated usage, search requests included."""
    total = sum(
        estimate_api_call_cost(
            model=call.model,
            input_tokens=call.input_tokens,
            output_tokens=call.output_tokens,
            cache_creation_input_tokens=call.cache_creation_input_tokens,
            cache_read_input_tokens=call.cache_read_input_tokens,
            web_searches=call.web_searches,
            prices=prices,
        )
        for call in usage.api_calls
    )
    return total + usage.search_requests * GOOGLE_SEARCH_REQUEST_PRICE


class PriceCache:
    """Fetch prices once per process and stamp costs onto ``Usage`` objects.

    Args:
        live: Fetch live prices; when False the built-in table is used.
    """

    def __init__(self, *, live: bool = True) -> None:
        self._live = live
        self._prices: dict[str, ModelPricing] | None = None

    async def get(self) -> dict[str, ModelPricing]:
        if self._prices is None:
            self._prices = await fetch_model_prices() if self._live else dict(_FALLBACK_PRICES)
        return self._prices

    def get_sync(self) -> dict[str, ModelPricing]:
        if self._prices is None:
            raise RuntimeError("Prices not yet fetched; await PriceCache.get() first")
        return self._prices

    def stamp_usage(self, usage: object) -> None:
        """Set ``usage.estimated_cost``; anything that is not a ``Usage`` is ignored."""
        if not isinstance(usage, Usage):
            return
        usage.estimated_cost = estimate_usage_cost(usage, self.get_sync())
