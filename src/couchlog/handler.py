"""Bridge from the standard library logging module to a couchlog transport."""

from __future__ import annotations

import logging
from typing import Any

from couchlog.models import LogLevel
from couchlog.transports import Transport, create_transport

# Records from our own loggers would otherwise be written back through the transport
_OWN_LOGGER_PREFIX = "couchlog"

# Attributes every LogRecord has; anything else on a record came from `extra=`
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

_TO_PYTHON_LEVEL = {
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARN: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.HTTP: logging.INFO,
    LogLevel.VERBOSE: logging.DEBUG,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.SILLY: logging.NOTSET,
}


def transport_level(levelno: int) -> LogLevel:
    """Map a logging level number to the closest transport level."""
    if levelno >= logging.ERROR:
        return LogLevel.ERROR
    if levelno >= logging.WARNING:
        return LogLevel.WARN
    if levelno >= logging.INFO:
        return LogLevel.INFO
    if levelno >= logging.DEBUG:
        return LogLevel.DEBUG
    return LogLevel.SILLY


def record_metadata(record: logging.LogRecord, formatter: logging.Formatter | None = None) -> dict[str, Any]:
    """Collect `extra=` attributes, the logger name and any exception text from a record."""
    meta = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
    meta["logger"] = record.name
    if record.exc_info:
        meta["exception"] = (formatter or logging.Formatter()).formatException(record.exc_info)
    return meta


class TransportHandler(logging.Handler):
    """
    logging.Handler that forwards records to a transport.

    transport is a registered transport name (remaining keyword options are
    passed to it) or a Transport instance. Works with dictConfig:

        "handlers": {"couchbase": {"class": "couchlog.TransportHandler",
                                   "bucket": "logs"}}
    """

    def __init__(
        self,
        transport: str | Transport = "couchbase",
        level: int | str = logging.NOTSET,
        **options: Any,
    ) -> None:
        super().__init__(level)
        if isinstance(transport, Transport):
            self.transport = transport
        else:
            self.transport = create_transport(transport, **options)
        if self.level == logging.NOTSET:
            self.setLevel(_TO_PYTHON_LEVEL[self.transport.level])

    def emit(self, record: logging.LogRecord) -> None:
        if record.name.split(".", 1)[0] == _OWN_LOGGER_PREFIX:
            return
        level = transport_level(record.levelno)
        if not self.transport.accepts(level):
            return
        try:
            self.transport.log(level, record.getMessage(), record_metadata(record, self.formatter))
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        try:
            self.transport.close()
        finally:
            super().close()
