"""
couchlog — a logging transport for Couchbase.

Persists structured log events as documents keyed by write time and
queries them back by time range through a view index.
"""

__version__ = "0.1.0"

from couchlog.config import TransportConfig
from couchlog.handler import TransportHandler
from couchlog.models import LogLevel, QueryOptions
from couchlog.transports import create_transport, get_transport, register_transport
from couchlog.transports.couchbase import CouchbaseTransport

__all__ = [
    "CouchbaseTransport",
    "LogLevel",
    "QueryOptions",
    "TransportConfig",
    "TransportHandler",
    "create_transport",
    "get_transport",
    "register_transport",
]
