"""Ojas Pulse: trending health topics turned into cited, structured articles."""

from ojas_pulse.cluster import ClaudeSourceClusterer, ClusterKind, ClusterResult, SourceClusterer
from ojas_pulse.config import PulseConfig, create_from_config, load_config
from ojas_pulse.data import (
    APICallUsage,
    DiscoveredTopic,
    HealthCategory,
    PlannedSearch,
    Priority,
    Query,
    QueryWithSources,
    RawSourceItem,
    SourceCluster,
    SourceInfo,
    SynthesizedArticle,
    TopicCategory,
    Urgency,
    Usage,
)
from ojas_pulse.discovery import ClaudeTopicDiscovery, TopicDiscovery
from ojas_pulse.extraction import ExtractionError, extract_json
from ojas_pulse.meta import PageMeta, collect_page_meta
from ojas_pulse.pipeline import (
    CategoryOutcome,
    CollectionReport,
    DiscoveryReport,
    PulseOrchestrator,
    RunReport,
    TopicResearch,
    run_windowed,
)
from ojas_pulse.pricing import (
    ModelPricing,
    PriceCache,
    estimate_api_call_cost,
    estimate_usage_cost,
    fetch_model_prices,
    get_model_pricing,
)
from ojas_pulse.query import (
    ClaudeSubqueryPlanner,
    PlanKind,
    PlanResult,
    QueryTemplateEngine,
    SubqueryPlanner,
)
from ojas_pulse.ratelimit import (
    AdaptiveBackoffLimiter,
    FixedDelayLimiter,
    RateLimiter,
    is_throttle_error,
)
from ojas_pulse.run_logger import RunLogger
from ojas_pulse.search import (
    CollectionResult,
    ExaSearcher,
    GoogleSearcher,
    SourceCollector,
    SourceSearcher,
)
from ojas_pulse.session import ConversationSession, SessionStore
from ojas_pulse.store import DocumentStore, InMemoryDocumentStore, JsonFileDocumentStore
from ojas_pulse.synthesis import ArticleSynthesizer, ClaudeArticleSynthesizer
from ojas_pulse.url import content_hash, extract_domain

__all__ = [
    # Models
    "APICallUsage",
    "DiscoveredTopic",
    "HealthCategory",
    "PlannedSearch",
    "Priority",
    "Query",
    "QueryWithSources",
    "RawSourceItem",
    "SourceCluster",
    "SourceInfo",
    "SynthesizedArticle",
    "TopicCategory",
    "Urgency",
    "Usage",
    # Pricing
    "ModelPricing",
    "PriceCache",
    "estimate_api_call_cost",
    "estimate_usage_cost",
    "fetch_model_prices",
    "get_model_pricing",
    # Functions
    "collect_page_meta",
    "content_hash",
    "extract_domain",
    "extract_json",
    "is_throttle_error",
    "run_windowed",
    "ExtractionError",
    # Protocols
    "ArticleSynthesizer",
    "DocumentStore",
    "RateLimiter",
    "SourceClusterer",
    "SourceSearcher",
    "SubqueryPlanner",
    "TopicDiscovery",
    # Components
    "ClaudeArticleSynthesizer",
    "ClaudeSourceClusterer",
    "ClaudeSubqueryPlanner",
    "ClaudeTopicDiscovery",
    "ExaSearcher",
    "GoogleSearcher",
    "QueryTemplateEngine",
    "SourceCollector",
    # Results
    "CategoryOutcome",
    "ClusterKind",
    "ClusterResult",
    "CollectionReport",
    "CollectionResult",
    "DiscoveryReport",
    "PageMeta",
    "PlanKind",
    "PlanResult",
    "RunReport",
    "TopicResearch",
    # Rate limiting
    "AdaptiveBackoffLimiter",
    "FixedDelayLimiter",
    # Storage and sessions
    "ConversationSession",
    "InMemoryDocumentStore",
    "JsonFileDocumentStore",
    "SessionStore",
    # Pipeline
    "PulseOrchestrator",
    # Logging
    "RunLogger",
    # Config
    "PulseConfig",
    "create_from_config",
    "load_config",
]
