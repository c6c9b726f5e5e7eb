"""Couchbase store adapter: keyed upserts and view queries via the Couchbase Python SDK."""

from __future__ import annotations

import logging
from typing import Any

from couchlog.models import ViewDefinition, ViewQuery

logger = logging.getLogger(__name__)


def _connection_string(host: str) -> str:
    """Accept a bare host ("localhost", "db1,db2") or a full couchbase:// connection string."""
    host = host.strip()
    if "://" in host:
        return host
    return f"couchbase://{host}"


def _connect_cluster(host: str, username: str, password: str):
    """Open a cluster connection. Raises the SDK's exception on bad parameters or network failure."""
    from couchbase.auth import PasswordAuthenticator
    from couchbase.cluster import Cluster
    from couchbase.options import ClusterOptions

    auth = PasswordAuthenticator(username, password)
    return Cluster(_connection_string(host), ClusterOptions(auth))


class CouchbaseStore:
    """
    Document store backed by a Couchbase bucket.

    Connects on construction and opens the bucket's default collection.
    Without credentials the bucket name is used as the user name with an
    empty password (the legacy per-bucket user).
    """

    def __init__(
        self,
        host: str,
        bucket: str,
        username: str | None = None,
        password: str | None = None,
    ) -> None:
        self._cluster = _connect_cluster(host, username or bucket, password or "")
        self._bucket = self._cluster.bucket(bucket)
        self._collection = self._bucket.default_collection()
        logger.info("Connected to Couchbase", extra={"host": host, "bucket": bucket})

    def set(self, key: str, document: dict[str, Any]) -> Any:
        return self._collection.upsert(key, document)

    def ensure_view(self, view: ViewDefinition) -> None:
        """Add view to its production design document unless it is already there."""
        from couchbase.exceptions import DesignDocumentNotFoundException
        from couchbase.management.views import (
            DesignDocument,
            DesignDocumentNamespace,
            View,
        )

        manager = self._bucket.view_indexes()
        try:
            design = manager.get_design_document(view.design_doc, DesignDocumentNamespace.PRODUCTION)
        except DesignDocumentNotFoundException:
            design = DesignDocument(view.design_doc, {})
        if view.name in design.views:
            return
        views = dict(design.views)
        views[view.name] = View(map=view.map_function)
        manager.upsert_design_document(
            DesignDocument(view.design_doc, views), DesignDocumentNamespace.PRODUCTION
        )
        logger.info(
            "Provisioned view",
            extra={"design_doc": view.design_doc, "view": view.name},
        )

    def view_query(self, view: ViewDefinition, query: ViewQuery) -> list[dict[str, Any]]:
        from couchbase.exceptions import DocumentNotFoundException
        from couchbase.management.views import DesignDocumentNamespace
        from couchbase.options import ViewOptions
        from couchbase.views import ViewOrdering, ViewScanConsistency

        kwargs: dict[str, Any] = {
            "namespace": DesignDocumentNamespace.PRODUCTION,
            "scan_consistency": (
                ViewScanConsistency.NOT_BOUNDED if query.stale else ViewScanConsistency.REQUEST_PLUS
            ),
            "skip": query.skip,
        }
        if query.limit:
            kwargs["limit"] = query.limit
        if query.startkey is not None:
            kwargs["startkey"] = query.startkey
        if query.endkey is not None:
            kwargs["endkey"] = query.endkey
        if query.descending:
            kwargs["order"] = ViewOrdering.DESCENDING

        result = self._bucket.view_query(view.design_doc, view.name, ViewOptions(**kwargs))
        rows: list[dict[str, Any]] = []
        for row in result.rows():
            envelope: dict[str, Any] = {"id": row.id, "key": row.key, "value": row.value}
            if query.include_docs:
                try:
                    fetched = self._collection.get(row.id)
                except DocumentNotFoundException:
                    # Indexed but removed before we could fetch it
                    logger.debug("View row without document", extra={"doc_id": row.id})
                    continue
                envelope["doc"] = {
                    "meta": {"id": row.id, "cas": fetched.cas},
                    "json": fetched.content_as[dict],
                }
            rows.append(envelope)
        return rows

    def close(self) -> None:
        self._cluster.close()
