import copy
from typing import Any

from ojas_pulse.store.base import Document, matches


class InMemoryDocumentStore:
    """Process-local document store, mainly for tests and dry runs.

    Documents are deep-copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Document]] = {}

    async def get(self, collection: str, doc_id: str) -> Document | None:
        document = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    async def set(
        self, collection: str, doc_id: str, data: Document, *, merge: bool = False
    ) -> None:
        documents = self._collections.setdefault(collection, {})
        if merge and doc_id in documents:
            documents[doc_id].update(copy.deepcopy(data))
        else:
            documents[doc_id] = copy.deepcopy(data)

    async def query(
        self,
        collection: str,
        where: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> list[tuple[str, Document]]:
        documents = self._collections.get(collection, {})
        found = [
            (doc_id, copy.deepcopy(documents[doc_id]))
            for doc_id in sorted(documents)
            if matches(documents[doc_id], where)
        ]
        return found[:limit] if limit is not None else found
