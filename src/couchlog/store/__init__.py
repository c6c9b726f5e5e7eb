"""
Document store adapters.

Couchbase for production, an in-memory store (optionally file-backed) for
development and tests.
"""

from couchlog.config import TransportConfig
from couchlog.store.base import DocumentStore
from couchlog.store.couchbase import CouchbaseStore
from couchlog.store.memory import MemoryStore


def open_store(config: TransportConfig) -> DocumentStore:
    """Connect to the store selected by config.backend."""
    if config.backend == "memory":
        return MemoryStore(data_dir=config.data_dir)
    return CouchbaseStore(
        host=config.host,
        bucket=config.bucket,
        username=config.username,
        password=config.password,
    )


__all__ = ["CouchbaseStore", "DocumentStore", "MemoryStore", "open_store"]
