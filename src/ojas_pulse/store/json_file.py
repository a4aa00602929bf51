"""Document store backed by one JSON file per document."""

import json
import logging
import re
from pathlib import Path
from typing import Any

from ojas_pulse.store.base import Document, matches

logger = logging.getLogger(__name__)

_SAFE_NAME = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")


def _check_name(name: str) -> str:
    if not _SAFE_NAME.match(name):
        raise ValueError(f"Invalid collection or document name: {name!r}")
    return name


class JsonFileDocumentStore:
    """Store documents as ``<root>/<collection>/<doc_id>.json``.

    Args:
        root: Directory holding one subdirectory per collection.
    """

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, collection: str, doc_id: str) -> Path:
        return self._root / _check_name(collection) / f"{_check_name(doc_id)}.json"

    async def get(self, collection: str, doc_id: str) -> Document | None:
        path = self._path(collection, doc_id)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    async def set(
        self, collection: str, doc_id: str, data: Document, *, merge: bool = False
    ) -> None:
        path = self._path(collection, doc_id)
        document = dict(data)
        if merge and path.exists():
            document = {**json.loads(path.read_text(encoding="utf-8")), **data}
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)

    async def query(
        self,
        collection: str,
        where: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> list[tuple[str, Document]]:
        directory = self._root / _check_name(collection)
        if not directory.is_dir():
            return []

        found: list[tuple[str, Document]] = []
        for path in sorted(directory.glob("*.json")):
            try:
                document = json.loads(path.read_text(encoding="utf-8"))
            except json.JSONDecodeError:
                logger.warning("Skipping unreadable document %s", path)
                continue
            if matches(document, where):
                found.append((path.stem, document))
                if limit is not None and len(found) >= limit:
                    break
        return found
