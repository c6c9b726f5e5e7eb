"""
Couchbase transport.

Writes each log event as one document keyed by write time + uuid and
queries documents back by time range through the Logs/byTimestamp view.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from couchlog.config import TransportConfig
from couchlog.models import LOGS_BY_TIMESTAMP, LogLevel, QueryOptions, SortOrder, ViewQuery
from couchlog.store import DocumentStore, open_store
from couchlog.transports.base import Callback, Transport, notify
from couchlog.transports.registry import register_transport
from couchlog.util import decycle, isoformat, utcnow

logger = logging.getLogger(__name__)

# Appended to the "until" bound so every key sharing that instant prefix is included
MAX_KEY_SUFFIX = "\u0fff"


def build_document(
    level: LogLevel | str,
    message: str,
    meta: Any = None,
    timestamp: datetime | None = None,
) -> dict[str, Any]:
    """
    Flatten decycled metadata into a log document.

    timestamp, message and level overwrite metadata keys of the same name.
    Metadata that is not a mapping is kept under "meta".
    """
    cleaned = decycle(meta) if meta is not None else {}
    document = cleaned if isinstance(cleaned, dict) else {"meta": cleaned}
    document["timestamp"] = isoformat(timestamp or utcnow())
    document["message"] = message
    document["level"] = level.value if isinstance(level, LogLevel) else str(level)
    return document


def build_view_query(options: QueryOptions) -> ViewQuery:
    """Translate query options into a range scan over the timestamp view."""
    startkey = isoformat(options.from_) if options.from_ else None
    endkey = isoformat(options.until) + MAX_KEY_SUFFIX if options.until else None
    descending = options.order == SortOrder.DESC
    if descending:
        # Views always scan from startkey towards endkey
        startkey, endkey = endkey, startkey
    return ViewQuery(
        include_docs=True,
        stale=options.stale,
        limit=options.rows or None,
        skip=options.skip,
        startkey=startkey,
        endkey=endkey,
        descending=descending,
    )


def _project(rows: list[dict[str, Any]], options: QueryOptions) -> list[dict[str, Any]]:
    """Unwrap store envelopes (unless include_meta) and drop fields outside the allow-list."""
    results = []
    for row in rows:
        envelope = row.get("doc")
        if not envelope:
            continue
        doc = envelope if options.include_meta else envelope.get("json")
        if doc is not None:
            results.append(doc)
    if options.fields is not None:
        allowed = set(options.fields)
        for doc in results:
            for key in [k for k in doc if k not in allowed]:
                del doc[key]
    return results


def _resolve_config(
    config: TransportConfig | Mapping[str, Any] | None, options: dict[str, Any]
) -> TransportConfig:
    if isinstance(config, TransportConfig):
        if not options:
            return config
        return TransportConfig(**{**config.model_dump(), **options})
    return TransportConfig.model_validate({**(config or {}), **options})


@register_transport
class CouchbaseTransport(Transport):
    """
    Logging sink that persists events to a Couchbase bucket.

    The store connection is opened lazily on first log or query and cached
    for the life of the instance. The supporting view is provisioned by the
    first query; a failed provisioning is retried by the next query.
    """

    name = "couchbase"

    def __init__(
        self,
        config: TransportConfig | Mapping[str, Any] | None = None,
        **options: Any,
    ) -> None:
        self.config = _resolve_config(config, options)
        super().__init__(level=self.config.level)
        self._client: DocumentStore | None = None
        self._client_lock = threading.Lock()
        self._view_ready = False
        self._view_lock = threading.Lock()

    @property
    def client(self) -> DocumentStore:
        """Store handle, connected on first access. Concurrent first callers share one connection."""
        client = self._client
        if client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = open_store(self.config)
                client = self._client
        return client

    @property
    def view_ready(self) -> bool:
        return self._view_ready

    def _ensure_view(self, client: DocumentStore) -> None:
        if self._view_ready:
            return
        with self._view_lock:
            if not self._view_ready:
                client.ensure_view(LOGS_BY_TIMESTAMP)
                # close() may have swapped the client while this one was provisioning
                self._view_ready = client is self._client

    def log(
        self,
        level: LogLevel | str,
        message: str,
        meta: Any = None,
        callback: Callback | None = None,
    ) -> None:
        """
        Write one event. On success emits "logged" and calls callback(None, True);
        on failure emits "error" and calls callback("error", exc). Never raises
        store errors.
        """
        try:
            document = build_document(level, message, meta)
            doc_id = self.config.key_fun()
            self.client.set(doc_id, document)
        except Exception as e:
            logger.warning(
                "Couchbase write failed: %s",
                e,
                extra={"bucket": self.config.bucket, "level": str(level)},
            )
            self.emit("error", e)
            notify(callback, "error", e)
            return
        self.emit("logged")
        notify(callback, None, True)

    def query(
        self,
        options: QueryOptions | Mapping[str, Any] | Callback | None = None,
        callback: Callback | None = None,
    ) -> list[dict[str, Any]] | None:
        """
        Return logged documents in a time range.

        Results go to callback(None, results) and are also returned; errors go
        to callback(exc, None) and None is returned. Accepts query(callback)
        as shorthand for query(None, callback).
        """
        if callable(options) and callback is None:
            callback, options = options, None
        try:
            normalized = self.normalize_query(options)
        except (TypeError, ValueError) as e:
            return _deliver(callback, e, None)

        try:
            client = self.client
            self._ensure_view(client)
        except Exception as e:
            logger.warning(
                "View provisioning failed: %s",
                e,
                extra={"design_doc": LOGS_BY_TIMESTAMP.design_doc, "view": LOGS_BY_TIMESTAMP.name},
            )
            self.emit("error", e)
            return _deliver(callback, e, None)

        view_query = build_view_query(normalized)
        try:
            rows = client.view_query(LOGS_BY_TIMESTAMP, view_query)
        except Exception as e:
            logger.warning("View query failed: %s", e, extra={"bucket": self.config.bucket})
            return _deliver(callback, e, None)
        return _deliver(callback, None, _project(rows, normalized))

    def close(self) -> None:
        """Close the cached store connection; the next operation reconnects."""
        with self._view_lock, self._client_lock:
            client, self._client = self._client, None
            self._view_ready = False
        if client is not None:
            client.close()


def _deliver(
    callback: Callback | None, error: Exception | None, results: list[dict[str, Any]] | None
) -> list[dict[str, Any]] | None:
    notify(callback, error, results)
    return results
