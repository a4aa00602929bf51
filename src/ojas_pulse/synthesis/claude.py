"""Grounded article synthesis using Claude with web search."""

import logging
import re
from collections.abc import Callable
from datetime import datetime
from typing import Any

from ojas_pulse.data import HealthCategory, SourceInfo, SynthesizedArticle, Urgency, Usage
from ojas_pulse.extraction import ExtractionError, extract_json
from ojas_pulse.llm import (
    DEFAULT_MODEL,
    make_client,
    resolve_api_key,
    response_text,
    usage_from_response,
    utc_now,
    web_search_tool,
)
from ojas_pulse.pipeline.batching import run_windowed
from ojas_pulse.ratelimit import FixedDelayLimiter, RateLimiter
from ojas_pulse.url import extract_domain

logger = logging.getLogger(__name__)

MIN_SUMMARY_WORDS = 150
MIN_SOURCES = 3
MAX_KEY_INSIGHTS = 7
MAX_TAGS = 5
MAX_SOURCES = 15
DEFAULT_CATEGORY = HealthCategory.PREVENTIVE_CARE

FLAG_SUMMARY_TOO_SHORT = "summary_too_short"
FLAG_INSUFFICIENT_SOURCES = "insufficient_sources"
FLAG_INVALID_LOCATION = "invalid_location_relevance"

_LOCATION_RELEVANCE = re.compile(r"^(global|country:[A-Z]{2}|city:\S.*)$")

SYNTHESIS_SYSTEM_PROMPT = """\
You are an expert health journalist writing for Ojas Pulse, a trusted health \
news platform.

Your task is to research and write a comprehensive, well-structured health \
news article.

Requirements:

1. **Deep Research**: Use web search extensively to find 5-15 authoritative sources
   - Prioritize medical journals, health organizations, government health sites
   - Include recent studies, expert opinions, and current statistics
   - Verify information across multiple sources

2. **Article Structure**:
   - Create an engaging, informative headline (10-15 words)
   - Write 3-4 well-structured paragraphs (250-350 words total)
   - Start with context and why this matters
   - Present key findings and evidence
   - Discuss implications and expert perspectives
   - Conclude with future outlook or practical takeaways

3. **Writing Style**:
   - Professional but accessible to general audience
   - Avoid medical jargon, explain technical terms
   - Include specific data, statistics, names when available

4. **Key Insights**: Extract 5-7 most important takeaways
   - Specific, actionable information
   - Each insight should be concise (1-2 sentences)

5. **Categorization**:
   - Assign ONE primary category from: {categories}
   - Add 3-5 relevant tags from the same list
   - Assess urgency: low (general info), medium (important to know), \
high (urgent health issue), critical (immediate public health concern)
   - Determine location relevance: "global" or "country:XX" (e.g., \
"country:IN") or "city:Name"

6. **Source Attribution**:
   - List all sources you consulted, with source name and URL
   - Ensure sources are reputable and recent

OUTPUT FORMAT (strict JSON, no markdown):
{{
  "title": "Engaging headline here",
  "summary": "Multi-paragraph comprehensive summary (250-350 words)...",
  "keyInsights": ["First key insight with specific details", "..."],
  "category": "primary-category",
  "tags": ["tag1", "tag2", "tag3"],
  "urgency": "medium",
  "locationRelevance": "global",
  "sources": [
    {{"name": "Source Name", "url": "https://...", "domain": "example.com"}}
  ]
}}\
"""


def _non_empty_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _coerce_category(value: Any, hint: str | None) -> HealthCategory:
    for candidate in (value, hint):
        if isinstance(candidate, str):
            try:
                return HealthCategory(candidate.strip().lower())
            except ValueError:
                continue
    return DEFAULT_CATEGORY


def _coerce_urgency(value: Any) -> Urgency:
    if isinstance(value, str):
        try:
            return Urgency(value.strip().lower())
        except ValueError:
            pass
    return Urgency.MEDIUM


def _parse_sources(raw: list[Any]) -> list[SourceInfo]:
    sources: list[SourceInfo] = []
    for src in raw:
        if not isinstance(src, dict):
            continue
        url = str(src.get("url") or "").strip()
        domain = extract_domain(url)
        if not domain:
            continue
        sources.append(
            SourceInfo(
                name=str(src.get("name") or "Unknown Source"),
                url=url,
                domain=str(src.get("domain") or domain),
            )
        )
    return sources


def build_article(
    data: dict[str, Any],
    *,
    query: str,
    category_hint: str | None,
    generated_at: str,
) -> SynthesizedArticle | None:
    """Validate parsed model output and turn it into an article.

    ``title`` and ``summary`` must be non-empty strings and ``keyInsights``
    and ``sources`` non-empty lists, with at least one source carrying an
    absolute URL; anything else returns None. Softer
    problems are recorded in ``quality_flags`` instead of rejecting.
    """
    title = _non_empty_str(data.get("title"))
    summary = _non_empty_str(data.get("summary"))
    raw_insights = data.get("keyInsights")
    raw_sources = data.get("sources")
    if title is None or summary is None:
        return None
    if not isinstance(raw_insights, list) or not isinstance(raw_sources, list):
        return None

    insights = [s for s in (_non_empty_str(i) for i in raw_insights) if s]
    sources = _parse_sources(raw_sources)
    if not insights or not sources:
        return None

    raw_tags = data.get("tags")
    tags: list[str] = []
    if isinstance(raw_tags, list):
        tags = [t for t in (_non_empty_str(t) for t in raw_tags) if t]
    location = _non_empty_str(data.get("locationRelevance")) or "global"

    flags: list[str] = []
    word_count = len(summary.split())
    if word_count < MIN_SUMMARY_WORDS:
        flags.append(FLAG_SUMMARY_TOO_SHORT)
    if len(sources) < MIN_SOURCES:
        flags.append(FLAG_INSUFFICIENT_SOURCES)
    if not _LOCATION_RELEVANCE.match(location):
        flags.append(FLAG_INVALID_LOCATION)

    return SynthesizedArticle(
        title=title,
        summary=summary,
        key_insights=tuple(insights[:MAX_KEY_INSIGHTS]),
        category=_coerce_category(data.get("category"), category_hint),
        tags=tuple(tags[:MAX_TAGS]),
        urgency=_coerce_urgency(data.get("urgency")),
        location_relevance=location,
        sources=tuple(sources[:MAX_SOURCES]),
        query=query,
        generated_at=generated_at,
        quality_flags=tuple(flags),
    )


class ClaudeArticleSynthesizer:
    """Write cited health articles using Claude grounded with web search.

    Only articles that pass ``build_article``'s validation are returned;
    there is no partially-filled fallback article.

    Args:
        model: Anthropic model ID to use.
        api_key: API key (defaults to CLAUDE_API_KEY env var).
        max_searches: Max web searches per article.
        clock: Returns the current time, used for ``generated_at``.
    """

    def __init__(
        self,
        *,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        max_searches: int = 5,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._model = model
        resolved_key = resolve_api_key(api_key)
        self._client = make_client(resolved_key) if resolved_key else None
        self._max_searches = max_searches
        self._clock = clock

    async def synthesize(
        self,
        query: str,
        category: str | None = None,
        *,
        sources: list[str] | None = None,
        raise_errors: bool = False,
    ) -> tuple[SynthesizedArticle | None, Usage]:
        """Write one article.

        Invalid model output always yields ``(None, usage)``. Transport errors
        are logged and yield ``(None, Usage())`` unless ``raise_errors`` is
        set, in which case they propagate so a rate limiter can react.
        """
        try:
            return await self._synthesize_once(query, category, sources)
        except Exception as e:
            if raise_errors:
                raise
            logger.warning("[synthesis] Failed for %r. Error: %s", query, e)
            return (None, Usage())

    async def synthesize_batch(
        self,
        queries: list[str],
        *,
        concurrency: int = 5,
        rate_limiter: RateLimiter | None = None,
    ) -> tuple[list[SynthesizedArticle], Usage]:
        """Synthesize many queries in windows of ``concurrency``.

        Args:
            queries: Queries to write articles about.
            concurrency: Window size.
            rate_limiter: Pacing between windows (default: fixed 2 s pause).

        Returns:
            Tuple of (valid articles in query order, usage).
        """
        limiter = rate_limiter or FixedDelayLimiter(2.0)

        async def worker(query: str) -> tuple[SynthesizedArticle | None, Usage]:
            return await self.synthesize(query, raise_errors=True)

        results = await run_windowed(queries, worker, window_size=concurrency, limiter=limiter)

        articles: list[SynthesizedArticle] = []
        total_usage = Usage()
        for query, result in zip(queries, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning("[synthesis] Failed for %r. Error: %s", query, result)
                continue
            article, usage = result
            total_usage += usage
            if article is not None:
                articles.append(article)

        logger.info("[synthesis] %d/%d articles generated", len(articles), len(queries))
        return (articles, total_usage)

    async def _synthesize_once(
        self,
        query: str,
        category: str | None,
        sources: list[str] | None,
    ) -> tuple[SynthesizedArticle | None, Usage]:
        """Single attempt; transport errors propagate so callers can see throttling."""
        if self._client is None:
            logger.warning("No Claude API key configured; cannot synthesize %r", query)
            return (None, Usage())

        response = await self._client.messages.create(
            model=self._model,
            max_tokens=4096,
            temperature=0.4,
            system=SYNTHESIS_SYSTEM_PROMPT.format(
                categories=", ".join(str(c) for c in HealthCategory)
            ),
            messages=[{"role": "user", "content": _user_prompt(query, category, sources)}],
            tools=[web_search_tool(self._max_searches)],
        )
        usage = usage_from_response(response, self._model)

        try:
            data = extract_json(response_text(response))
        except ExtractionError as e:
            logger.warning("[synthesis] Unparseable output for %r: %s", query, e)
            return (None, usage)

        article = build_article(
            data,
            query=query,
            category_hint=category,
            generated_at=self._clock().isoformat(),
        )
        if article is None:
            logger.warning("[synthesis] Missing required fields in response for %r", query)
            return (None, usage)

        if FLAG_SUMMARY_TOO_SHORT in article.quality_flags:
            logger.warning(
                "[synthesis] Summary too short (%d words) for %r", article.word_count, query
            )
        if FLAG_INSUFFICIENT_SOURCES in article.quality_flags:
            logger.warning(
                "[synthesis] Insufficient sources (%d) for %r", len(article.sources), query
            )
        logger.info(
            "[synthesis] Generated %r (%d words, %d sources)",
            article.title,
            article.word_count,
            len(article.sources),
        )
        return (article, usage)


def _user_prompt(query: str, category: str | None, sources: list[str] | None) -> str:
    lines = [f'Research and write a comprehensive health news article about: "{query}"']
    if category:
        lines.append(f"Expected category: {category}")
    if sources:
        lines.append("Start from these sources, then search for more:")
        lines.extend(f"- {url}" for url in sources)
    lines.append(
        "Use web search to gather information from multiple authoritative sources and "
        "synthesize them into a well-structured article following all the guidelines."
    )
    return "\n\n".join(lines)
