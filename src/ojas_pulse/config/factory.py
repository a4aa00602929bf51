"""Factory functions to create components from configuration."""

from pathlib import Path

from ojas_pulse.cluster.claude import ClaudeSourceClusterer
from ojas_pulse.config.models import (
    AdaptiveBackoffConfig,
    ExaSearcherConfig,
    FixedDelayConfig,
    GoogleSearcherConfig,
    JsonFileStoreConfig,
    MemoryStoreConfig,
    PulseConfig,
    RateLimiterConfig,
    SearcherConfig,
    StoreConfig,
)
from ojas_pulse.discovery.claude import ClaudeTopicDiscovery
from ojas_pulse.meta import collect_page_meta
from ojas_pulse.pipeline.orchestrator import PulseOrchestrator
from ojas_pulse.pricing import PriceCache
from ojas_pulse.query.planner import ClaudeSubqueryPlanner
from ojas_pulse.ratelimit import AdaptiveBackoffLimiter, FixedDelayLimiter, RateLimiter
from ojas_pulse.run_logger import RunLogger
from ojas_pulse.search.base import SourceSearcher
from ojas_pulse.search.collector import SourceCollector
from ojas_pulse.search.exa import ExaSearcher
from ojas_pulse.search.google import GoogleSearcher
from ojas_pulse.store.base import DocumentStore
from ojas_pulse.store.json_file import JsonFileDocumentStore
from ojas_pulse.store.memory import InMemoryDocumentStore
from ojas_pulse.synthesis.claude import ClaudeArticleSynthesizer


def create_searcher(config: SearcherConfig) -> SourceSearcher:
    """Create a search backend from config."""
    if isinstance(config, GoogleSearcherConfig):
        return GoogleSearcher(timeout=config.timeout)
    if isinstance(config, ExaSearcherConfig):
        return ExaSearcher()
    msg = f"Unknown searcher config type: {type(config)}"
    raise ValueError(msg)


def create_rate_limiter(config: RateLimiterConfig) -> RateLimiter:
    """Create a rate limiter from config."""
    if isinstance(config, FixedDelayConfig):
        return FixedDelayLimiter(config.delay)
    if isinstance(config, AdaptiveBackoffConfig):
        return AdaptiveBackoffLimiter(
            base=config.base, max_delay=config.max_delay, factor=config.factor
        )
    msg = f"Unknown rate limiter config type: {type(config)}"
    raise ValueError(msg)


def create_store(config: StoreConfig) -> DocumentStore:
    """Create a document store from config."""
    if isinstance(config, MemoryStoreConfig):
        return InMemoryDocumentStore()
    if isinstance(config, JsonFileStoreConfig):
        return JsonFileDocumentStore(Path(config.root))
    msg = f"Unknown store config type: {type(config)}"
    raise ValueError(msg)


def create_orchestrator(
    config: PulseConfig,
    run_logger: RunLogger | None = None,
    price_cache: PriceCache | None = None,
) -> PulseOrchestrator:
    """Wire every component named in ``config`` into an orchestrator."""
    pipeline = config.pipeline
    return PulseOrchestrator(
        discovery=ClaudeTopicDiscovery(
            model=config.discovery.model,
            grounded=config.discovery.grounded,
            max_searches=config.discovery.max_searches,
        ),
        planner=ClaudeSubqueryPlanner(
            model=config.planner.model,
            max_queries=config.planner.max_queries,
            per_query=config.planner.per_query,
        ),
        collector=SourceCollector(create_searcher(config.searcher)),
        clusterer=ClaudeSourceClusterer(model=config.clusterer.model),
        synthesizer=ClaudeArticleSynthesizer(
            model=config.synthesizer.model,
            max_searches=config.synthesizer.max_searches,
        ),
        store=create_store(config.store),
        topic_window=pipeline.topic_window,
        collect_batch_size=pipeline.collect_batch_size,
        collect_delay=pipeline.collect_delay,
        synthesis_concurrency=pipeline.synthesis_concurrency,
        rate_limiter=create_rate_limiter(config.rate_limiter),
        run_logger=run_logger,
        price_cache=price_cache,
        meta_extractor=collect_page_meta if pipeline.extract_images else None,
    )


def create_from_config(
    config: PulseConfig,
    *,
    log_override: bool | None = None,
    log_dir_override: str | None = None,
) -> tuple[PulseOrchestrator, RunLogger | None, PriceCache]:
    """Create a complete orchestrator from root config.

    Args:
        config: Root configuration.
        log_override: Override the config's logging.enabled setting.
        log_dir_override: Override the config's logging.log_dir setting.

    Returns:
        Tuple of (orchestrator, run_logger, price_cache).
        run_logger is None if logging is disabled.
    """
    log_enabled = log_override if log_override is not None else config.logging.enabled
    log_dir = Path(log_dir_override if log_dir_override is not None else config.logging.log_dir)

    run_logger: RunLogger | None = None
    if log_enabled:
        run_logger = RunLogger(log_dir=log_dir, enabled=True)

    price_cache = PriceCache(live=config.live_pricing)
    orchestrator = create_orchestrator(config, run_logger=run_logger, price_cache=price_cache)
    return (orchestrator, run_logger, price_cache)
