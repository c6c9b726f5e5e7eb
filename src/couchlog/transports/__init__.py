"""
Log transports.

Transports are looked up by name so that logging configuration can select
one by string, e.g. create_transport("couchbase", bucket="logs").
"""

from couchlog.transports.base import Transport
from couchlog.transports.registry import (
    available_transports,
    create_transport,
    get_transport,
    register_transport,
)

# Built-in transports register themselves on import
from couchlog.transports.couchbase import CouchbaseTransport  # noqa: E402

__all__ = [
    "CouchbaseTransport",
    "Transport",
    "available_transports",
    "create_transport",
    "get_transport",
    "register_transport",
]
