"""Autonomous topic discovery using Claude, optionally grounded with web search."""

import logging
import math
from collections.abc import Callable
from datetime import datetime
from typing import Any

from ojas_pulse.data import DiscoveredTopic, TopicCategory, Usage
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

logger = logging.getLogger(__name__)

DISCOVERY_SYSTEM_PROMPT = """\
You are a news discovery AI. Your job is to identify the MOST TRENDING topics \
RIGHT NOW that people are searching for.

CURRENT DATE: {date}
REGION: {region}

TASK: Discover {max_topics} trending topics across these categories:
- health (medical breakthroughs, disease outbreaks, health policies)
- technology (AI launches, tech company news, gadgets, software)
- science (research, space, climate, discoveries)
- entertainment (movies, music, celebrities, events)
- business (stocks, markets, economy, companies)
- sports (matches, tournaments, player news)
- politics (elections, policies, international relations)
- other (anything else trending)

CRITICAL RULES:
1. DO NOT use generic topics like "diabetes" or "mental health"
2. Find SPECIFIC, CURRENT events happening NOW or in the past week
3. Think like a news editor: What are people actively searching for TODAY?
4. Examples of GOOD topics:
   - "New malaria vaccine approval WHO"
   - "Dengue outbreak Mumbai"
   - "India vs Australia cricket final"
   - "Central bank rate cut announcement"
5. Examples of BAD topics (too generic):
   - "diabetes"
   - "mental health"
   - "technology news"
   - "sports updates"
6. Prioritize:
   - Breaking news (priority 9-10)
   - Major announcements (priority 7-8)
   - Ongoing important stories (priority 5-6)
   - General interest (priority 3-4)

Respond with a JSON object:
{{
  "topics": [
    {{
      "topic": "specific event or announcement",
      "category": "health|technology|science|entertainment|business|sports|politics|other",
      "priority": 1-10,
      "reasoning": "brief explanation why this is trending"
    }}
  ]
}}

Return ONLY the JSON object, no other text.\
"""

CATEGORY_SYSTEM_PROMPT = """\
You are a {category} news discovery AI.

CURRENT DATE: {date}
REGION: {region}
CATEGORY: {category}

TASK: Discover {max_topics} SPECIFIC, TRENDING {category} topics happening \
RIGHT NOW.

CRITICAL RULES:
1. NO generic topics - find SPECIFIC events, announcements, or developments
2. Focus on the past 7 days or current/upcoming events
3. Think: What are people actively searching for in {category} TODAY?

GOOD examples for {category}:
{examples}

BAD examples (too generic):
- "{category}"
- "{category} news"
- "{category} updates"

Respond with a JSON object:
{{
  "topics": [
    {{
      "topic": "specific event",
      "category": "{category}",
      "priority": 1-10,
      "reasoning": "why trending"
    }}
  ]
}}

Return ONLY the JSON object, no other text.\
"""

CATEGORY_EXAMPLES: dict[str, list[str]] = {
    "health": [
        "New Alzheimer's drug approval FDA",
        "Dengue outbreak Mumbai",
        "ICMR diabetes screening program launch",
        "WHO declares mpox emergency",
    ],
    "technology": [
        "New flagship AI model launch",
        "Smartphone maker unveils foldable lineup",
        "Major cloud outage disrupts services",
        "Electric vehicle maker India launch",
    ],
    "business": [
        "Nifty 50 crosses record milestone",
        "Reliance AGM announcements",
        "US Fed rate cut decision",
        "Stock crash triggers regulator investigation",
    ],
}

GENERIC_EXAMPLES = [
    "Specific current events in {category}",
    "Recent announcements or launches",
    "Breaking news or developments",
    "Major ongoing stories",
]


def _parse_priority(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return max(1, min(10, int(number)))


def _normalize_category(value: str) -> str:
    category = value.strip().lower()
    try:
        return str(TopicCategory(category))
    except ValueError:
        return str(TopicCategory.OTHER)


def parse_topics(
    data: dict[str, Any], *, max_topics: int, category: str | None = None
) -> list[DiscoveredTopic]:
    """Validate raw topic entries, clamp priorities and sort by priority.

    Entries without a topic, without a category (unless ``category`` forces
    one), or with a non-numeric priority are dropped.
    """
    raw = data.get("topics")
    if not isinstance(raw, list):
        return []

    topics: list[DiscoveredTopic] = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        topic = str(entry.get("topic") or "").strip()
        raw_category = category or str(entry.get("category") or "")
        priority = _parse_priority(entry.get("priority"))
        if not topic or not raw_category.strip() or priority is None:
            continue
        topics.append(
            DiscoveredTopic(
                topic=topic,
                category=category or _normalize_category(raw_category),
                priority=priority,
                reasoning=str(entry.get("reasoning") or "").strip(),
            )
        )

    topics.sort(key=lambda t: t.priority, reverse=True)
    return topics[:max_topics]


class ClaudeTopicDiscovery:
    """Discover trending topics using Anthropic's Claude API.

    With ``grounded=True`` the server-side web search tool is attached so the
    model can look at today's news before answering.

    Args:
        model: Anthropic model ID to use.
        api_key: API key (defaults to CLAUDE_API_KEY env var).
        grounded: Attach the web search tool.
        max_searches: Max web searches per discovery call.
        clock: Returns the current time, used for the date in the prompt.
    """

    def __init__(
        self,
        *,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        grounded: bool = True,
        max_searches: int = 3,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._model = model
        resolved_key = resolve_api_key(api_key)
        self._client = make_client(resolved_key) if resolved_key else None
        self._grounded = grounded
        self._max_searches = max_searches
        self._clock = clock

    async def discover(
        self, region: str = "IN", max_topics: int = 10
    ) -> tuple[list[DiscoveredTopic], Usage]:
        system = DISCOVERY_SYSTEM_PROMPT.format(
            date=self._clock().date().isoformat(),
            region=region,
            max_topics=max_topics,
        )
        user = f"Generate {max_topics} diverse topics across different categories."
        return await self._discover(
            system, user, max_topics=max_topics, max_tokens=2048, label="all"
        )

    async def discover_for_category(
        self, category: str, region: str = "IN", max_topics: int = 5
    ) -> tuple[list[DiscoveredTopic], Usage]:
        category = category.strip().lower()
        examples = CATEGORY_EXAMPLES.get(category) or [
            e.format(category=category) for e in GENERIC_EXAMPLES
        ]
        system = CATEGORY_SYSTEM_PROMPT.format(
            category=category,
            date=self._clock().date().isoformat(),
            region=region,
            max_topics=max_topics,
            examples="\n".join(f'- "{e}"' for e in examples),
        )
        user = f"Discover {max_topics} trending {category} topics for {region}."
        return await self._discover(
            system,
            user,
            max_topics=max_topics,
            max_tokens=1536,
            label=category,
            category=category,
        )

    async def _discover(
        self,
        system: str,
        user: str,
        *,
        max_topics: int,
        max_tokens: int,
        label: str,
        category: str | None = None,
    ) -> tuple[list[DiscoveredTopic], Usage]:
        if self._client is None:
            logger.warning("No Claude API key configured; skipping discovery (%s)", label)
            return ([], Usage())

        kwargs: dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_tokens,
            "temperature": 0.7,
            "system": system,
            "messages": [{"role": "user", "content": user}],
        }
        if self._grounded:
            kwargs["tools"] = [web_search_tool(self._max_searches)]

        try:
            response = await self._client.messages.create(**kwargs)
        except Exception as e:
            logger.warning("Topic discovery failed (%s). Error: %s", label, e)
            return ([], Usage())

        usage = usage_from_response(response, self._model)
        try:
            data = extract_json(response_text(response))
        except ExtractionError as e:
            logger.warning("Could not parse discovered topics (%s): %s", label, e)
            return ([], usage)

        topics = parse_topics(data, max_topics=max_topics, category=category)
        logger.info("Discovered %d topics (%s)", len(topics), label)
        return (topics, usage)
