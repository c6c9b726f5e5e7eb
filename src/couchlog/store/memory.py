"""In-process document store with optional file persistence and emulated views."""

from __future__ import annotations

import copy
import json
import logging
import threading
from pathlib import Path
from typing import Any

from couchlog.errors import ViewNotFoundError
from couchlog.models import ViewDefinition, ViewQuery

logger = logging.getLogger(__name__)

_DOCUMENTS_FILE = "documents.json"


class MemoryStore:
    """
    Keeps documents in a dict keyed by document key.

    If data_dir is set, documents are loaded on init and saved after each
    write. Views are emulated from ViewDefinition.key_field and must be
    ensured before they can be queried, as on a real cluster.
    """

    def __init__(self, data_dir: str | None = None) -> None:
        self._data_dir = Path(data_dir) if data_dir else None
        self._documents: dict[str, dict[str, Any]] = {}
        self._cas: dict[str, int] = {}
        self._views: dict[tuple[str, str], ViewDefinition] = {}
        self._lock = threading.Lock()
        self._next_cas = 1
        if self._data_dir and self._data_dir.is_dir():
            self._load()

    def _load(self) -> None:
        path = self._data_dir / _DOCUMENTS_FILE
        if not path.is_file():
            return
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load %s: %s", path, e)
            return
        if isinstance(data, dict):
            for key, document in data.items():
                self._documents[key] = document
                self._cas[key] = self._bump_cas()

    def _save(self, documents: dict[str, dict[str, Any]]) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        path = self._data_dir / _DOCUMENTS_FILE
        path.write_text(json.dumps(documents, indent=0), encoding="utf-8")

    def _bump_cas(self) -> int:
        cas = self._next_cas
        self._next_cas += 1
        return cas

    def set(self, key: str, document: dict[str, Any]) -> int:
        """
        Store a copy of document under key. Returns the new cas value.

        With a data_dir the file is written first; if that fails the store
        is left unchanged and the error propagates.
        """
        with self._lock:
            stored = copy.deepcopy(document)
            if self._data_dir:
                self._save({**self._documents, key: stored})
            self._documents[key] = stored
            cas = self._cas[key] = self._bump_cas()
        return cas

    def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            document = self._documents.get(key)
            return copy.deepcopy(document) if document is not None else None

    def ensure_view(self, view: ViewDefinition) -> None:
        with self._lock:
            self._views.setdefault((view.design_doc, view.name), view)

    def view_query(self, view: ViewDefinition, query: ViewQuery) -> list[dict[str, Any]]:
        """Scan the emulated view. Keys are compared as strings, ties broken by document key."""
        with self._lock:
            defined = self._views.get((view.design_doc, view.name))
            if defined is None:
                raise ViewNotFoundError(view.design_doc, view.name)
            emitted = []
            for doc_id, document in self._documents.items():
                key = document.get(defined.key_field)
                if key:
                    emitted.append((str(key), doc_id))
            emitted.sort(reverse=query.descending)

            # In a descending scan startkey is the upper bound
            low, high = query.startkey, query.endkey
            if query.descending:
                low, high = high, low
            matched = [
                (key, doc_id)
                for key, doc_id in emitted
                if (low is None or key >= low) and (high is None or key <= high)
            ]
            matched = matched[query.skip:]
            if query.limit:
                matched = matched[: query.limit]

            rows = []
            for key, doc_id in matched:
                row: dict[str, Any] = {"id": doc_id, "key": key, "value": None}
                if query.include_docs:
                    row["doc"] = {
                        "meta": {"id": doc_id, "cas": self._cas[doc_id]},
                        "json": copy.deepcopy(self._documents[doc_id]),
                    }
                rows.append(row)
            return rows

    def close(self) -> None:
        logger.debug("Memory store closed", extra={"documents": len(self._documents)})
