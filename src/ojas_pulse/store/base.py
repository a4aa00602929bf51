from typing import Any, Protocol

QUERIES_WITH_SOURCES = "pulse_queries_with_sources"
SOURCE_CLUSTERS = "pulse_sources"
ARTICLES = "pulse_articles"

Document = dict[str, Any]


class DocumentStore(Protocol):
    """Minimal keyed document store (collection / id / JSON-like body)."""

    async def get(self, collection: str, doc_id: str) -> Document | None: ...

    async def set(
        self, collection: str, doc_id: str, data: Document, *, merge: bool = False
    ) -> None:
        """Write a document.

        Args:
            collection: Collection name.
            doc_id: Document key.
            data: Document body.
            merge: Update only the given top-level fields of an existing
                document instead of replacing it.
        """
        ...

    async def query(
        self,
        collection: str,
        where: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> list[tuple[str, Document]]:
        """Return ``(doc_id, document)`` pairs whose fields equal ``where``.

        Results are ordered by document id.
        """
        ...


def matches(document: Document, where: dict[str, Any] | None) -> bool:
    if not where:
        return True
    return all(field in document and document[field] == value for field, value in where.items())
