from ojas_pulse.store.base import (
    ARTICLES,
    QUERIES_WITH_SOURCES,
    SOURCE_CLUSTERS,
    Document,
    DocumentStore,
)
from ojas_pulse.store.json_file import JsonFileDocumentStore
from ojas_pulse.store.memory import InMemoryDocumentStore

__all__ = [
    "ARTICLES",
    "QUERIES_WITH_SOURCES",
    "SOURCE_CLUSTERS",
    "Document",
    "DocumentStore",
    "InMemoryDocumentStore",
    "JsonFileDocumentStore",
]
