"""Batch orchestration of the topic-to-article pipeline."""

import asyncio
import dataclasses
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from ojas_pulse.cluster.base import ClusterResult, SourceClusterer
from ojas_pulse.data import (
    DiscoveredTopic,
    PlannedSearch,
    Query,
    QueryWithSources,
    SourceCluster,
    SynthesizedArticle,
    Usage,
)
from ojas_pulse.discovery.base import TopicDiscovery
from ojas_pulse.llm import utc_now
from ojas_pulse.meta import PageMeta
from ojas_pulse.pipeline.batching import run_windowed
from ojas_pulse.pricing import PriceCache
from ojas_pulse.query.base import PlanResult, SubqueryPlanner
from ojas_pulse.ratelimit import FixedDelayLimiter, RateLimiter
from ojas_pulse.run_logger import RunLogger
from ojas_pulse.search.collector import CollectionResult, SourceCollector
from ojas_pulse.store.base import ARTICLES, QUERIES_WITH_SOURCES, SOURCE_CLUSTERS, DocumentStore
from ojas_pulse.synthesis.base import ArticleSynthesizer
from ojas_pulse.url import content_hash

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryOutcome:
    """Discovery result for one category."""

    category: str
    topics: list[DiscoveredTopic]
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class DiscoveryReport:
    topics: list[DiscoveredTopic]
    outcomes: list[CategoryOutcome]
    usage: Usage = field(default_factory=Usage)


@dataclass(frozen=True)
class CollectionReport:
    """Per-query account of a collection pass.

    ``saved`` queries had sources and were persisted, ``empty`` ones ran but
    found nothing, ``errored`` ones failed.
    """

    saved: list[str]
    empty: list[str]
    errored: list[str]
    usage: Usage = field(default_factory=Usage)


@dataclass(frozen=True)
class TopicResearch:
    """Everything produced while researching one topic."""

    topic: DiscoveredTopic
    plan: PlanResult
    collection: CollectionResult
    clustering: ClusterResult

    @property
    def clusters(self) -> list[SourceCluster]:
        return self.clustering.clusters

    @property
    def usage(self) -> Usage:
        return self.plan.usage + self.collection.usage + self.clustering.usage


@dataclass
class RunReport:
    """Summary of a full discover-research-synthesize run."""

    topics: list[DiscoveredTopic]
    category_outcomes: list[CategoryOutcome]
    research: list[TopicResearch]
    failed_topics: list[str]
    articles: list[SynthesizedArticle]
    usage: Usage
    log_path: Path | None = None


class PulseOrchestrator:
    """Drive discovery, research, collection and synthesis with bounded concurrency.

    Every fan-out is an all-settled join: a failing category, query, topic or
    article is logged and left out, and never stops its siblings. Writes use
    deterministic keys so rerunning a stage upserts instead of duplicating.

    Args:
        discovery: Topic discovery component.
        planner: Subquery planner.
        collector: Source collector.
        clusterer: Source clusterer.
        synthesizer: Article synthesizer.
        store: Document store for queries, clusters and articles.
        topic_window: Topics researched concurrently.
        collect_batch_size: Queries searched concurrently in ``collect_queries``.
        collect_delay: Pause between collection batches, in seconds.
        synthesis_concurrency: Articles synthesized concurrently.
        rate_limiter: Pacing between synthesis windows (default: fixed 2 s).
        run_logger: Optional RunLogger for intermediate result logging.
        price_cache: Optional PriceCache for cost estimation.
        meta_extractor: Optional async callable mapping source URLs to the
            article's lead image and publish date.
        clock: Returns the current time, used for ``collected_at`` and
            ``synthesizedAt``.
    """

    def __init__(
        self,
        *,
        discovery: TopicDiscovery,
        planner: SubqueryPlanner,
        collector: SourceCollector,
        clusterer: SourceClusterer,
        synthesizer: ArticleSynthesizer,
        store: DocumentStore,
        topic_window: int = 3,
        collect_batch_size: int = 10,
        collect_delay: float = 0.5,
        synthesis_concurrency: int = 5,
        rate_limiter: RateLimiter | None = None,
        run_logger: RunLogger | None = None,
        price_cache: PriceCache | None = None,
        meta_extractor: Callable[[list[str]], Awaitable[PageMeta]] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._discovery = discovery
        self._planner = planner
        self._collector = collector
        self._clusterer = clusterer
        self._synthesizer = synthesizer
        self._store = store
        self._topic_window = topic_window
        self._collect_batch_size = collect_batch_size
        self._collect_delay = collect_delay
        self._synthesis_concurrency = synthesis_concurrency
        self._rate_limiter = rate_limiter or FixedDelayLimiter(2.0)
        self._run_logger = run_logger
        self._price_cache = price_cache
        self._meta_extractor = meta_extractor
        self._clock = clock

    async def _ensure_prices(self) -> None:
        if self._price_cache:
            await self._price_cache.get()

    def _stamp(self, usage: Usage) -> None:
        if self._price_cache:
            self._price_cache.stamp_usage(usage)

    def _start_log(self, command: str, params: dict[str, Any]) -> None:
        if self._run_logger:
            self._run_logger.start_run(command, params)

    def _finish_log(self, articles: list[SynthesizedArticle], usage: Usage) -> Path | None:
        self._stamp(usage)
        if not self._run_logger:
            return None
        return self._run_logger.finish_run(articles, usage)

    def _log_stage(
        self,
        stage: str,
        component: object,
        input_data: Any,
        output_data: Any,
        usage: Usage | None,
        started: float,
    ) -> None:
        if not self._run_logger:
            return
        if usage is not None:
            self._stamp(usage)
        self._run_logger.log_stage(
            stage=stage,
            component=type(component).__name__,
            input_data=input_data,
            output_data=output_data,
            usage=usage,
            duration_seconds=time.monotonic() - started,
        )

    # -- Discovery --

    async def discover_topics(
        self,
        region: str = "IN",
        categories: list[str] | None = None,
        max_topics: int = 10,
    ) -> DiscoveryReport:
        """Discover topics, optionally one discovery call per category.

        Args:
            region: Region code.
            categories: Categories to fan out over; None runs a single
                cross-category discovery.
            max_topics: Maximum topics overall (and per category).

        Returns:
            ``DiscoveryReport`` with the merged topics sorted by priority and
            one outcome per category.
        """
        self._start_log(
            "discover", {"region": region, "categories": categories, "max_topics": max_topics}
        )
        report = await self._discover_topics(region, categories, max_topics)
        self._finish_log([], report.usage)
        return report

    async def _discover_topics(
        self,
        region: str,
        categories: list[str] | None,
        max_topics: int,
    ) -> DiscoveryReport:
        await self._ensure_prices()
        t0 = time.monotonic()
        if not categories:
            topics, usage = await self._discovery.discover(region=region, max_topics=max_topics)
            self._log_stage("discovery", self._discovery, {"region": region}, topics, usage, t0)
            return DiscoveryReport(
                topics=topics,
                outcomes=[CategoryOutcome(category="all", topics=topics)],
                usage=usage,
            )

        results = await asyncio.gather(
            *(
                self._discovery.discover_for_category(c, region=region, max_topics=max_topics)
                for c in categories
            ),
            return_exceptions=True,
        )

        outcomes: list[CategoryOutcome] = []
        merged: list[DiscoveredTopic] = []
        usage = Usage()
        for category, result in zip(categories, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning("[discovery] Category %s failed. Error: %s", category, result)
                outcomes.append(CategoryOutcome(category=category, topics=[], error=str(result)))
                continue
            topics, category_usage = result
            usage += category_usage
            logger.info("[discovery] Category %s: %d topics", category, len(topics))
            outcomes.append(CategoryOutcome(category=category, topics=topics))
            merged.extend(topics)

        seen: set[str] = set()
        unique: list[DiscoveredTopic] = []
        for topic in sorted(merged, key=lambda t: t.priority, reverse=True):
            key = topic.topic.lower()
            if key not in seen:
                seen.add(key)
                unique.append(topic)

        topics = unique[:max_topics]
        self._log_stage(
            "discovery",
            self._discovery,
            {"region": region, "categories": categories},
            topics,
            usage,
            t0,
        )
        return DiscoveryReport(topics=topics, outcomes=outcomes, usage=usage)

    # -- Query collection --

    async def collect_queries(
        self,
        queries: list[Query],
        *,
        region: str = "IN",
        max_results: int = 10,
    ) -> CollectionReport:
        """Search each query once and persist those that found sources.

        Queries run in batches of ``collect_batch_size`` with
        ``collect_delay`` seconds between batches. Results are written to
        ``pulse_queries_with_sources/{sha1(query)[:20]}``.
        """
        self._start_log(
            "collect",
            {"queries": len(queries), "region": region, "max_results": max_results},
        )
        await self._ensure_prices()
        t0 = time.monotonic()

        async def worker(query: Query) -> CollectionResult:
            collected = await self._collector.collect_all(
                [PlannedSearch(query=query.text, max_results=max_results, region=region)]
            )
            if collected.errored:
                raise RuntimeError(collected.outcomes[0].error or "search failed")
            if collected.sources:
                record = QueryWithSources(
                    query=query.text,
                    category=query.category,
                    priority=str(query.priority),
                    sources=tuple(collected.sources),
                    collected_at=self._clock().isoformat(),
                )
                await self._store.set(
                    QUERIES_WITH_SOURCES, content_hash(query.text), record.to_document()
                )
            return collected

        results = await run_windowed(
            queries,
            worker,
            window_size=self._collect_batch_size,
            limiter=FixedDelayLimiter(self._collect_delay),
        )

        saved: list[str] = []
        empty: list[str] = []
        errored: list[str] = []
        usage = Usage()
        for query, result in zip(queries, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning("[collection] Query %r failed. Error: %s", query.text, result)
                errored.append(query.text)
                continue
            usage += result.usage
            (saved if result.sources else empty).append(query.text)

        logger.info(
            "[collection] %d saved, %d empty, %d errored", len(saved), len(empty), len(errored)
        )
        report = CollectionReport(saved=saved, empty=empty, errored=errored, usage=usage)
        self._log_stage(
            "collection",
            self._collector,
            [q.text for q in queries],
            {"saved": saved, "empty": empty, "errored": errored},
            usage,
            t0,
        )
        self._finish_log([], usage)
        return report

    # -- Topic research --

    async def research_topic(
        self,
        topic: DiscoveredTopic | str,
        region: str = "IN",
        *,
        category: str = "health",
    ) -> TopicResearch:
        """Plan, search and cluster one topic, then upsert its clusters.

        Args:
            topic: Discovered topic, or bare topic text.
            region: Region code.
            category: Category used when ``topic`` is bare text.

        Returns:
            ``TopicResearch``; every cluster carries the planned queries.
        """
        if isinstance(topic, str):
            topic = DiscoveredTopic(topic=topic, category=category, priority=5)

        self._start_log("research", {"topic": topic, "region": region})
        research = await self._research_topic(topic, region)
        self._finish_log([], research.usage)
        return research

    async def _research_topic(self, topic: DiscoveredTopic, region: str) -> TopicResearch:
        await self._ensure_prices()
        t0 = time.monotonic()
        plan = await self._planner.plan_with_tools(topic.topic, region, topic.category)
        self._log_stage("planning", self._planner, topic, plan.searches, plan.usage, t0)
        logger.info("[research] %r: %d queries (%s)", topic.topic, len(plan.searches), plan.kind)

        t0 = time.monotonic()
        collection = await self._collector.collect_all(plan.searches)
        self._log_stage(
            "search", self._collector, plan.queries, collection.sources, collection.usage, t0
        )

        t0 = time.monotonic()
        clustering = await self._clusterer.cluster(
            collection.sources, topic.topic, region, topic.category
        )
        queries = tuple(plan.queries)
        clusters = [dataclasses.replace(c, queries=queries) for c in clustering.clusters]
        clustering = dataclasses.replace(clustering, clusters=clusters)
        self._log_stage(
            "clustering", self._clusterer, collection.sources, clusters, clustering.usage, t0
        )

        for cluster in clusters:
            await self._store.set(SOURCE_CLUSTERS, cluster.id, cluster.to_document(), merge=True)

        logger.info(
            "[research] %r: %d sources, %d clusters (%s)",
            topic.topic,
            len(collection.sources),
            len(clusters),
            clustering.kind,
        )
        return TopicResearch(
            topic=topic, plan=plan, collection=collection, clustering=clustering
        )

    # -- Synthesis --

    async def _synthesize_and_store(
        self,
        query: str,
        category: str | None,
        sources: list[str] | None,
        extra: dict[str, Any] | None = None,
    ) -> tuple[SynthesizedArticle | None, Usage]:
        article, usage = await self._synthesizer.synthesize(
            query, category, sources=sources, raise_errors=True
        )
        if article is not None:
            document = {**article.to_document(), **(extra or {})}
            if self._meta_extractor is not None:
                meta = await self._meta_extractor(sources or [s.url for s in article.sources])
                document["publishedAt"] = meta.published_at or article.generated_at
                if meta.image_url:
                    document["imageUrl"] = meta.image_url
            await self._store.set(ARTICLES, content_hash(article.title), document)
        return (article, usage)

    async def synthesize_pending(self, limit: int = 10) -> tuple[list[SynthesizedArticle], Usage]:
        """Write articles for stored queries not yet synthesized.

        Each successful article is stored under ``pulse_articles`` before its
        query is flagged ``synthesized``; failed queries stay pending.
        """
        self._start_log("synthesize", {"limit": limit})
        await self._ensure_prices()
        t0 = time.monotonic()
        pending = await self._store.query(
            QUERIES_WITH_SOURCES, where={"synthesized": False}, limit=limit
        )

        async def worker(
            entry: tuple[str, dict[str, Any]],
        ) -> tuple[SynthesizedArticle | None, Usage]:
            doc_id, document = entry
            urls = [s["url"] for s in document.get("sources", []) if s.get("url")]
            article, usage = await self._synthesize_and_store(
                document["query"], document.get("category"), urls
            )
            if article is not None:
                await self._store.set(
                    QUERIES_WITH_SOURCES,
                    doc_id,
                    {
                        "synthesized": True,
                        "synthesizedAt": self._clock().isoformat(),
                        "articleId": content_hash(article.title),
                    },
                    merge=True,
                )
            return (article, usage)

        results = await run_windowed(
            pending,
            worker,
            window_size=self._synthesis_concurrency,
            limiter=self._rate_limiter,
        )

        articles: list[SynthesizedArticle] = []
        usage = Usage()
        for (doc_id, _), result in zip(pending, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning("[synthesis] Pending query %s failed. Error: %s", doc_id, result)
                continue
            article, article_usage = result
            usage += article_usage
            if article is not None:
                articles.append(article)

        logger.info("[synthesis] %d/%d pending queries synthesized", len(articles), len(pending))
        self._log_stage("synthesis", self._synthesizer, len(pending), articles, usage, t0)
        self._finish_log(articles, usage)
        return (articles, usage)

    # -- Full run --

    async def run(
        self,
        region: str = "IN",
        categories: list[str] | None = None,
        max_topics: int = 10,
    ) -> RunReport:
        """Discover topics, research them and write one article per cluster.

        Args:
            region: Region code.
            categories: Categories to discover in (None for all at once).
            max_topics: Maximum topics to research.

        Returns:
            ``RunReport``. Failed topics and articles are listed or simply
            absent; nothing is partially written.
        """
        self._start_log(
            "run", {"region": region, "categories": categories, "max_topics": max_topics}
        )
        await self._ensure_prices()

        total_usage = Usage()

        discovery = await self._discover_topics(region, categories, max_topics)
        total_usage += discovery.usage

        research_results = await run_windowed(
            discovery.topics,
            lambda t: self._research_topic(t, region),
            window_size=self._topic_window,
        )

        research: list[TopicResearch] = []
        failed_topics: list[str] = []
        for topic, result in zip(discovery.topics, research_results, strict=True):
            if isinstance(result, BaseException):
                logger.warning("[research] Topic %r failed. Error: %s", topic.topic, result)
                failed_topics.append(topic.topic)
                continue
            research.append(result)
            total_usage += result.usage

        jobs = [
            (cluster, item.topic)
            for item in research
            for cluster in item.clusters
            if cluster.items
        ]

        t0 = time.monotonic()
        synthesis_results = await run_windowed(
            jobs,
            lambda job: self._synthesize_and_store(
                job[0].claim,
                job[1].category,
                [i.url for i in job[0].items],
                {"clusterId": job[0].id},
            ),
            window_size=self._synthesis_concurrency,
            limiter=self._rate_limiter,
        )

        articles: list[SynthesizedArticle] = []
        synthesis_usage = Usage()
        for (cluster, _), result in zip(jobs, synthesis_results, strict=True):
            if isinstance(result, BaseException):
                logger.warning("[synthesis] Cluster %s failed. Error: %s", cluster.id, result)
                continue
            article, usage = result
            synthesis_usage += usage
            if article is not None:
                articles.append(article)
        total_usage += synthesis_usage
        self._log_stage(
            "synthesis",
            self._synthesizer,
            [c.claim for c, _ in jobs],
            articles,
            synthesis_usage,
            t0,
        )

        log_path = self._finish_log(articles, total_usage)

        logger.info(
            "[run] %d topics, %d researched, %d articles",
            len(discovery.topics),
            len(research),
            len(articles),
        )
        return RunReport(
            topics=discovery.topics,
            category_outcomes=discovery.outcomes,
            research=research,
            failed_topics=failed_topics,
            articles=articles,
            usage=total_usage,
            log_path=log_path,
        )
