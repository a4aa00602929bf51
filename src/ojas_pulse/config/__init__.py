"""Configuration module for Ojas Pulse."""

from ojas_pulse.config.factory import (
    create_from_config,
    create_orchestrator,
    create_rate_limiter,
    create_searcher,
    create_store,
)
from ojas_pulse.config.loader import get_default_config_path, load_config
from ojas_pulse.config.models import (
    AdaptiveBackoffConfig,
    ClaudeClustererConfig,
    ClaudeDiscoveryConfig,
    ClaudePlannerConfig,
    ClaudeSynthesizerConfig,
    ExaSearcherConfig,
    FixedDelayConfig,
    GoogleSearcherConfig,
    JsonFileStoreConfig,
    LoggingConfig,
    MemoryStoreConfig,
    PipelineConfig,
    PulseConfig,
    RateLimiterConfig,
    SearcherConfig,
    StoreConfig,
)

__all__ = [
    "AdaptiveBackoffConfig",
    "ClaudeClustererConfig",
    "ClaudeDiscoveryConfig",
    "ClaudePlannerConfig",
    "ClaudeSynthesizerConfig",
    "ExaSearcherConfig",
    "FixedDelayConfig",
    "GoogleSearcherConfig",
    "JsonFileStoreConfig",
    "LoggingConfig",
    "MemoryStoreConfig",
    "PipelineConfig",
    "PulseConfig",
    "RateLimiterConfig",
    "SearcherConfig",
    "StoreConfig",
    "create_from_config",
    "create_orchestrator",
    "create_rate_limiter",
    "create_searcher",
    "create_store",
    "get_default_config_path",
    "load_config",
]
