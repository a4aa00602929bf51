"""Data models for Ojas Pulse."""

from ojas_pulse.data.models import (
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

__all__ = [
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
]
