"""Pipeline module: batch orchestration of the Pulse stages."""

from ojas_pulse.pipeline.batching import run_windowed
from ojas_pulse.pipeline.orchestrator import (
    CategoryOutcome,
    CollectionReport,
    DiscoveryReport,
    PulseOrchestrator,
    RunReport,
    TopicResearch,
)

__all__ = [
    "CategoryOutcome",
    "CollectionReport",
    "DiscoveryReport",
    "PulseOrchestrator",
    "RunReport",
    "TopicResearch",
    "run_windowed",
]
