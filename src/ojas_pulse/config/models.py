"""Pydantic configuration models for Ojas Pulse components."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from ojas_pulse.llm import DEFAULT_MODEL

# ============================================================
# LLM component configs
# ============================================================


class ClaudeDiscoveryConfig(BaseModel):
    """Configuration for ClaudeTopicDiscovery."""

    type: Literal["claude"] = "claude"
    model: str = DEFAULT_MODEL
    grounded: bool = True
    max_searches: int = Field(default=3, ge=1)

    model_config = {"frozen": True}


class ClaudePlannerConfig(BaseModel):
    """Configuration for ClaudeSubqueryPlanner."""

    type: Literal["claude"] = "claude"
    model: str = DEFAULT_MODEL
    max_queries: int = Field(default=5, ge=1, le=5)
    per_query: int = Field(default=10, ge=1, le=10)

    model_config = {"frozen": True}


class ClaudeClustererConfig(BaseModel):
    """Configuration for ClaudeSourceClusterer."""

    type: Literal["claude"] = "claude"
    model: str = DEFAULT_MODEL

    model_config = {"frozen": True}


class ClaudeSynthesizerConfig(BaseModel):
    """Configuration for ClaudeArticleSynthesizer."""

    type: Literal["claude"] = "claude"
    model: str = DEFAULT_MODEL
    max_searches: int = Field(default=5, ge=1)

    model_config = {"frozen": True}


# ============================================================
# Searcher Configs
# ============================================================


class GoogleSearcherConfig(BaseModel):
    """Configuration for GoogleSearcher. Credentials come from the environment."""

    type: Literal["google"] = "google"
    timeout: float = Field(default=10.0, gt=0)

    model_config = {"frozen": True}


class ExaSearcherConfig(BaseModel):
    """Configuration for ExaSearcher. The key comes from EXA_API_KEY."""

    type: Literal["exa"] = "exa"

    model_config = {"frozen": True}


SearcherConfig = Annotated[
    GoogleSearcherConfig | ExaSearcherConfig,
    Field(discriminator="type"),
]


# ============================================================
# Rate limiter Configs
# ============================================================


class FixedDelayConfig(BaseModel):
    """Constant pause between synthesis windows."""

    type: Literal["fixed"] = "fixed"
    delay: float = Field(default=2.0, ge=0)

    model_config = {"frozen": True}


class AdaptiveBackoffConfig(BaseModel):
    """Pause that grows on 429/503 responses and decays on success."""

    type: Literal["adaptive"] = "adaptive"
    base: float = Field(default=2.0, gt=0)
    max_delay: float = Field(default=60.0, gt=0)
    factor: float = Field(default=2.0, gt=1)

    model_config = {"frozen": True}


RateLimiterConfig = Annotated[
    FixedDelayConfig | AdaptiveBackoffConfig,
    Field(discriminator="type"),
]


# ============================================================
# Store Configs
# ============================================================


class MemoryStoreConfig(BaseModel):
    """Process-local store; nothing survives the run."""

    type: Literal["memory"] = "memory"

    model_config = {"frozen": True}


class JsonFileStoreConfig(BaseModel):
    """One JSON file per document under ``root``."""

    type: Literal["json_file"] = "json_file"
    root: str = "data/store"

    model_config = {"frozen": True}


StoreConfig = Annotated[
    MemoryStoreConfig | JsonFileStoreConfig,
    Field(discriminator="type"),
]


# ============================================================
# Pipeline Config
# ============================================================


class PipelineConfig(BaseModel):
    """Orchestrator settings and run defaults."""

    region: str = "IN"
    categories: list[str] | None = None
    max_topics: int = Field(default=10, ge=1)
    topic_window: int = Field(default=3, ge=1)
    collect_batch_size: int = Field(default=10, ge=1)
    collect_delay: float = Field(default=0.5, ge=0)
    synthesis_concurrency: int = Field(default=5, ge=1)
    extract_images: bool = True

    model_config = {"frozen": True}


# ============================================================
# Logging Config
# ============================================================


class LoggingConfig(BaseModel):
    """Configuration for intermediate pipeline logging."""

    enabled: bool = False
    log_dir: str = "logs"

    model_config = {"frozen": True}


# ============================================================
# Root Config
# ============================================================


class PulseConfig(BaseModel):
    """Root configuration for Ojas Pulse."""

    discovery: ClaudeDiscoveryConfig = Field(default_factory=ClaudeDiscoveryConfig)
    planner: ClaudePlannerConfig = Field(default_factory=ClaudePlannerConfig)
    searcher: SearcherConfig = Field(default_factory=GoogleSearcherConfig)
    clusterer: ClaudeClustererConfig = Field(default_factory=ClaudeClustererConfig)
    synthesizer: ClaudeSynthesizerConfig = Field(default_factory=ClaudeSynthesizerConfig)
    rate_limiter: RateLimiterConfig = Field(default_factory=FixedDelayConfig)
    store: StoreConfig = Field(default_factory=JsonFileStoreConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    live_pricing: bool = True

    model_config = {"frozen": True}
