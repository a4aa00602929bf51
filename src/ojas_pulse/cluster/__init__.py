from ojas_pulse.cluster.base import ClusterKind, ClusterResult, SourceClusterer
from ojas_pulse.cluster.claude import (
    ClaudeSourceClusterer,
    cluster_id,
    fallback_cluster_id,
)

__all__ = [
    "ClaudeSourceClusterer",
    "ClusterKind",
    "ClusterResult",
    "SourceClusterer",
    "cluster_id",
    "fallback_cluster_id",
]
