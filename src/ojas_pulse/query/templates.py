"""Template-based health query generation.

No I/O: queries are built by filling templates with a category name and, where
the template asks for one, a region or timeframe. Each generator stops after
``3 * count`` attempts so a request larger than the template space can produce
still terminates.
"""

import logging
import random

from ojas_pulse.data import HealthCategory, Priority, Query

logger = logging.getLogger(__name__)

REGIONS = ["India", "global", "Asia", "United States", "Europe", "Africa"]

TIMEFRAMES = ["today", "this week", "recent", "latest", "2025", "current"]

QUERY_TEMPLATES = [
    # Research & studies
    "latest {category} research",
    "new {category} study findings",
    "breakthrough in {category}",
    "{category} clinical trials {timeframe}",
    "recent discoveries in {category}",
    # Regional focus
    "{category} in {region}",
    "{region} {category} initiatives",
    "{category} policies in {region}",
    "{region} health ministry {category} guidelines",
    # Trends & statistics
    "{category} trends {timeframe}",
    "{category} statistics {timeframe}",
    "rising cases of {category}",
    "{category} prevalence in {region}",
    # Treatments & medications
    "new treatments for {category}",
    "{category} medication updates",
    "alternative therapies for {category}",
    "{category} prevention methods",
    # Technology & innovation
    "AI in {category}",
    "technology for {category}",
    "digital health {category}",
    "wearable devices for {category}",
    # Public health
    "{category} awareness campaign",
    "{category} public health crisis",
    "government action on {category}",
    "{category} healthcare access",
    # Lifestyle & prevention
    "lifestyle changes for {category}",
    "diet and {category}",
    "exercise for {category}",
    "{category} prevention tips",
    # Demographics
    "{category} in children",
    "{category} in elderly",
    "{category} in women",
    "{category} in adolescents",
    # Current events
    "{category} outbreak {timeframe}",
    "{category} vaccine news",
    "{category} guidelines updated",
    "WHO recommendations {category}",
]

TRENDING_TOPICS = [
    "COVID-19 variants",
    "mental health crisis",
    "obesity epidemic",
    "diabetes prevention",
    "vaccine development",
    "antibiotic resistance",
    "cancer immunotherapy",
    "alzheimer disease research",
    "heart disease prevention",
    "climate change health impact",
    "air pollution health effects",
    "telemedicine adoption",
    "health insurance reforms",
    "pharmaceutical pricing",
    "hospital capacity",
]


def _normalize(text: str) -> str:
    return " ".join(text.split())


class QueryTemplateEngine:
    """Generate synthetic health search queries from templates.

    Args:
        rng: Random source. Pass a seeded ``random.Random`` for reproducible
            output; defaults to a fresh unseeded instance.
        templates: Template vocabulary (``{category}``, ``{region}`` and
            ``{timeframe}`` placeholders).
        regions: Region fillers.
        timeframes: Timeframe fillers.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        *,
        templates: list[str] | None = None,
        regions: list[str] | None = None,
        timeframes: list[str] | None = None,
    ) -> None:
        self._rng = rng or random.Random()
        self._templates = templates or QUERY_TEMPLATES
        self._regions = regions or REGIONS
        self._timeframes = timeframes or TIMEFRAMES

    def _fill(self, template: str, category: HealthCategory) -> tuple[str, str | None]:
        region: str | None = None
        text = template.replace("{category}", category.display_name.lower())
        if "{timeframe}" in text:
            text = text.replace("{timeframe}", self._rng.choice(self._timeframes))
        if "{region}" in text:
            region = self._rng.choice(self._regions)
            text = text.replace("{region}", region)
        return _normalize(text), region

    def _random_priority(self) -> Priority:
        if self._rng.random() > 0.7:
            return Priority.HIGH
        if self._rng.random() > 0.4:
            return Priority.MEDIUM
        return Priority.LOW

    def generate(
        self,
        count: int = 1000,
        categories: list[HealthCategory] | None = None,
    ) -> list[Query]:
        """Generate up to ``count`` distinct queries across categories.

        Args:
            count: Number of queries wanted.
            categories: Categories to sample from (all 13 by default).

        Returns:
            Distinct queries; fewer than ``count`` when the template space is
            exhausted before ``3 * count`` attempts.
        """
        pool = categories or list(HealthCategory)
        queries: list[Query] = []
        seen: set[str] = set()
        attempts = 0
        max_attempts = count * 3

        while len(queries) < count and attempts < max_attempts:
            attempts += 1
            category = self._rng.choice(pool)
            text, region = self._fill(self._rng.choice(self._templates), category)
            if text in seen:
                continue
            seen.add(text)
            queries.append(
                Query(
                    text=text,
                    category=str(category),
                    region=region,
                    priority=self._random_priority(),
                )
            )

        return queries

    def generate_category_queries(self, category: str, count: int = 50) -> list[Query]:
        """Generate up to ``count`` distinct medium-priority queries for one category."""
        try:
            health_category = HealthCategory(category)
        except ValueError:
            logger.warning("Unknown category: %s", category)
            return []

        queries: list[Query] = []
        seen: set[str] = set()
        attempts = 0
        max_attempts = count * 3

        while len(queries) < count and attempts < max_attempts:
            attempts += 1
            text, region = self._fill(self._rng.choice(self._templates), health_category)
            if text in seen:
                continue
            seen.add(text)
            queries.append(
                Query(
                    text=text,
                    category=str(health_category),
                    region=region,
                    priority=Priority.MEDIUM,
                )
            )

        return queries

    def generate_trending_queries(self, count: int = 100) -> list[Query]:
        """Generate ``count`` high-priority queries about trending topics.

        Topics and phrasing patterns rotate deterministically; only the
        timeframe and the optional region are random. Duplicates are possible
        for large counts.
        """
        queries: list[Query] = []
        for i in range(count):
            topic = TRENDING_TOPICS[i % len(TRENDING_TOPICS)]
            timeframe = self._rng.choice(self._timeframes)
            region = self._rng.choice(self._regions) if self._rng.random() > 0.5 else None
            patterns = [
                f"{topic} {timeframe}",
                f"latest news on {topic}",
                f"{topic} updates {timeframe}",
                f"{topic} in {region}" if region else f"{topic} global impact",
            ]
            queries.append(
                Query(
                    text=_normalize(patterns[i % len(patterns)]),
                    category=str(HealthCategory.PANDEMIC),
                    region=region,
                    priority=Priority.HIGH,
                )
            )
        return queries

    def generate_balanced_queries(self, total: int = 1000) -> list[Query]:
        """Spread ``total`` queries evenly over categories, topped up with trending ones.

        The combined list is shuffled in place (Fisher-Yates) before
        truncation to ``total``.
        """
        categories = list(HealthCategory)
        per_category = total // len(categories)
        queries: list[Query] = []

        for category in categories:
            queries.extend(self.generate_category_queries(str(category), per_category))

        remaining = total - len(queries)
        if remaining > 0:
            queries.extend(self.generate_trending_queries(remaining))

        self._rng.shuffle(queries)
        return queries[:total]
