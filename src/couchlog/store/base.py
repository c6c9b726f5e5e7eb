"""Storage contract used by transports.

A store is anything with this shape; no inheritance needed. View rows are
envelopes of the form

    {"id": <doc key>, "key": <view key>, "value": <view value>,
     "doc": {"meta": {"id": <doc key>, "cas": <cas>}, "json": <document>}}

where "doc" is present only when the query asked for documents.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from couchlog.models import ViewDefinition, ViewQuery


@runtime_checkable
class DocumentStore(Protocol):
    def set(self, key: str, document: dict[str, Any]) -> Any:
        """Write document under key, replacing any existing value."""
        ...

    def ensure_view(self, view: ViewDefinition) -> None:
        """Provision view if it does not exist yet. Idempotent."""
        ...

    def view_query(self, view: ViewDefinition, query: ViewQuery) -> list[dict[str, Any]]:
        """Range scan over view; returns row envelopes in scan order."""
        ...

    def close(self) -> None:
        """Release connections held by the store."""
        ...
