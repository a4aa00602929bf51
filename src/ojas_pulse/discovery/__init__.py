from ojas_pulse.discovery.base import TopicDiscovery
from ojas_pulse.discovery.claude import ClaudeTopicDiscovery, parse_topics

__all__ = [
    "ClaudeTopicDiscovery",
    "TopicDiscovery",
    "parse_topics",
]
