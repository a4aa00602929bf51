"""Expand a topic into 3-5 human-style search queries using Claude."""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from ojas_pulse.data import PlannedSearch, Usage
from ojas_pulse.extraction import ExtractionError, extract_json
from ojas_pulse.llm import (
    DEFAULT_MODEL,
    make_client,
    resolve_api_key,
    response_text,
    usage_from_response,
    utc_now,
)
from ojas_pulse.query.base import PlanKind, PlanResult

logger = logging.getLogger(__name__)

MAX_QUERIES = 5
MAX_RESULTS_PER_QUERY = 10

PLANNER_SYSTEM_PROMPT = """\
You are a research planner. Generate 3-5 HUMAN-STYLE, trending discovery \
queries for a topic.

GOAL: Mimic how people search to find the latest updates and official \
announcements.

STRICT RULES:
- Use natural phrases like: latest, updates, policy changes, government \
guidelines, reports, advisories, top stories, today/this week
- Prefer broad, aggregator-style queries that surface many credible sources \
(not hyper-specific entities)
- Include the current year ({year}) and the region ({region}) where relevant
- Keep queries concise and readable

EXAMPLES (illustrative pattern, DO NOT copy words):
- "latest {category} updates {region} {year}"
- "{category} policy changes {region} {year}"
- "top {category} news today {region}"
- "government {category} guidelines {region} {year}"
- "{category} research reports {year}"

Respond with a JSON object of the form {{"queries": ["q1", "q2", ...]}} with \
3-5 items. Return ONLY the JSON object, no other text.\
"""

TOOL_SYSTEM_PROMPT = """\
You are an expert research assistant for {category} in {region}.

Task: Generate 3-5 HUMAN-STYLE discovery queries for the topic that surface \
trending coverage and official updates.

GUIDELINES:
1) Use natural aggregator-style phrasing: latest, updates, policy changes, \
government guidelines, reports, advisories, top stories, today/this week
2) Use the current year ({year}) and the region ({region}) where suitable
3) Keep queries broad enough to return multiple credible sources (avoid naming \
specific organizations unless the topic itself names them)
4) Ensure queries are meaningfully different (no word reordering)

For each query you propose, call the web_search tool once.\
"""

WEB_SEARCH_FUNCTION = {
    "name": "web_search",
    "description": (
        "Execute a web search. Returns credible news articles and sources. "
        "Use this to find recent, authoritative information."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": (
                    "Precise search query optimized for news. Focus on recent "
                    "developments, credible sources, region-specific content."
                ),
            },
            "maxResults": {
                "type": "integer",
                "description": "Number of results (1-10, default 10)",
            },
            "region": {"type": "string", "description": "Region code (IN, US, etc.)"},
            "language": {"type": "string", "description": "Language (en)"},
        },
        "required": ["query"],
    },
}


def fallback_queries(topic: str, region: str, year: int) -> list[str]:
    """Deterministic queries used when the model cannot be consulted."""
    return [
        f"latest {topic} updates {region} {year}",
        f"{topic} policy changes {region} {year}",
        f"top {topic} news today {region}",
        f"government {topic} guidelines {region} {year}",
        f"{topic} research reports {year}",
    ]


def _clamp_results(value: Any, default: int) -> int:
    try:
        n = int(value) if value is not None else default
    except (TypeError, ValueError):
        n = default
    return max(1, min(MAX_RESULTS_PER_QUERY, n))


class ClaudeSubqueryPlanner:
    """Plan search queries for a topic using Anthropic's Claude API.

    Every path ends in at least one query: when the key is missing, the call
    fails, or the reply cannot be parsed, the planner returns
    ``fallback_queries`` and tags the result ``PlanKind.FALLBACK``.

    Args:
        model: Anthropic model ID to use.
        api_key: API key (defaults to CLAUDE_API_KEY env var).
        max_queries: Default cap for ``plan_with_tools``.
        per_query: Default result count for ``plan_with_tools``.
        clock: Returns the current time; the year is taken from it.
    """

    def __init__(
        self,
        *,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        max_queries: int = MAX_QUERIES,
        per_query: int = MAX_RESULTS_PER_QUERY,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._model = model
        self._max_queries = max_queries
        self._per_query = per_query
        resolved_key = resolve_api_key(api_key)
        self._client = make_client(resolved_key) if resolved_key else None
        self._clock = clock

    def _fallback(self, topic: str, region: str, usage: Usage | None = None) -> PlanResult:
        year = self._clock().year
        return PlanResult(
            searches=[
                PlannedSearch(query=q, region=region)
                for q in fallback_queries(topic, region, year)
            ],
            kind=PlanKind.FALLBACK,
            usage=usage or Usage(),
        )

    async def plan(self, topic: str, region: str = "IN", category: str = "health") -> PlanResult:
        """Ask the model for 3-5 queries, falling back to templates on any failure."""
        if self._client is None:
            logger.warning("No Claude API key configured; using fallback queries for %r", topic)
            return self._fallback(topic, region)

        year = self._clock().year
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=512,
                temperature=0.5,
                system=PLANNER_SYSTEM_PROMPT.format(year=year, region=region, category=category),
                messages=[{"role": "user", "content": f"TOPIC: {topic}"}],
            )
        except Exception as e:
            logger.warning("Query planning failed for %r. Error: %s", topic, e)
            return self._fallback(topic, region)

        usage = usage_from_response(response, self._model)
        try:
            data = extract_json(response_text(response))
        except ExtractionError as e:
            logger.warning("Could not parse planned queries for %r: %s", topic, e)
            return self._fallback(topic, region, usage)

        raw = data.get("queries")
        items = raw if isinstance(raw, list) else []
        queries = [q.strip() for q in items if isinstance(q, str) and q.strip()][:MAX_QUERIES]
        if not queries:
            logger.warning("Planner returned no queries for %r", topic)
            return self._fallback(topic, region, usage)

        return PlanResult(
            searches=[PlannedSearch(query=q, region=region) for q in queries],
            kind=PlanKind.LLM,
            usage=usage,
        )

    async def plan_with_tools(
        self,
        topic: str,
        region: str = "IN",
        category: str = "health",
        *,
        max_queries: int | None = None,
        per_query: int | None = None,
    ) -> PlanResult:
        """Plan searches by letting the model call a ``web_search`` function.

        The calls are collected, not executed. Short plans are topped up
        from ``plan`` with exact-string deduplication.

        Args:
            topic: Topic to research.
            region: Region code used as the default for every search.
            category: Category the topic belongs to.
            max_queries: Upper bound on planned searches (never above 5);
                defaults to the constructor value.
            per_query: Default result count when the model omits one.

        Returns:
            A ``PlanResult`` with between 1 and ``min(max_queries, 5)`` searches.
        """
        max_queries = max_queries if max_queries is not None else self._max_queries
        per_query = per_query if per_query is not None else self._per_query
        cap = max(1, min(max_queries, MAX_QUERIES))
        needed = min(3, cap)
        default_n = _clamp_results(per_query, MAX_RESULTS_PER_QUERY)

        planned: list[PlannedSearch] = []
        usage = Usage()
        if self._client is None:
            logger.warning("No Claude API key configured; skipping tool planning for %r", topic)
        else:
            year = self._clock().year
            try:
                response = await self._client.messages.create(
                    model=self._model,
                    max_tokens=1024,
                    temperature=0.2,
                    system=TOOL_SYSTEM_PROMPT.format(year=year, region=region, category=category),
                    messages=[{"role": "user", "content": f"TOPIC: {topic}"}],
                    tools=[WEB_SEARCH_FUNCTION],
                    tool_choice={"type": "any"},
                )
                usage += usage_from_response(response, self._model)
                planned = self._collect_calls(response, region=region, default_n=default_n)
            except Exception as e:
                logger.warning("Tool planning failed for %r. Error: %s", topic, e)

        if len(planned) >= needed:
            return PlanResult(searches=planned[:cap], kind=PlanKind.LLM, usage=usage)

        topped_up = await self.plan(topic, region, category)
        usage += topped_up.usage
        existing = {p.query for p in planned}
        from_tools = len(planned)
        for search in topped_up.searches:
            if len(planned) >= cap:
                break
            if search.query in existing:
                continue
            existing.add(search.query)
            planned.append(PlannedSearch(query=search.query, max_results=default_n, region=region))

        if not from_tools:
            kind = topped_up.kind
        elif len(planned) > from_tools:
            kind = PlanKind.MIXED
        else:
            kind = PlanKind.LLM
        return PlanResult(searches=planned[:cap], kind=kind, usage=usage)

    def _collect_calls(self, response: Any, *, region: str, default_n: int) -> list[PlannedSearch]:
        planned: list[PlannedSearch] = []
        seen: set[str] = set()
        for block in response.content:
            if getattr(block, "type", None) != "tool_use" or block.name != "web_search":
                continue
            args = block.input if isinstance(block.input, dict) else {}
            query = str(args.get("query") or "").strip()
            if not query or query in seen:
                continue
            seen.add(query)
            planned.append(
                PlannedSearch(
                    query=query,
                    max_results=_clamp_results(args.get("maxResults"), default_n),
                    region=str(args.get("region") or region),
                    language=str(args.get("language") or "en"),
                )
            )
        return planned
