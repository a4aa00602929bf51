from typing import Protocol

from ojas_pulse.data import SynthesizedArticle, Usage
from ojas_pulse.ratelimit import RateLimiter


class ArticleSynthesizer(Protocol):
    """Interface for writing a cited article about a query."""

    async def synthesize(
        self,
        query: str,
        category: str | None = None,
        *,
        sources: list[str] | None = None,
        raise_errors: bool = False,
    ) -> tuple[SynthesizedArticle | None, Usage]:
        """Research ``query`` and write an article.

        Args:
            query: What the article should be about.
            category: Expected health category, used when the model gives none.
            sources: Known source URLs to use as starting points.
            raise_errors: Propagate transport errors instead of returning None.

        Returns:
            Tuple of (article, usage). The article is None when the model
            output fails validation or the call fails.
        """
        ...

    async def synthesize_batch(
        self,
        queries: list[str],
        *,
        concurrency: int = 5,
        rate_limiter: RateLimiter | None = None,
    ) -> tuple[list[SynthesizedArticle], Usage]: ...
