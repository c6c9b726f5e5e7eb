"""Base class for log transports (sinks)."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Callable, ClassVar

from couchlog.events import EventEmitter
from couchlog.models import LogLevel, QueryOptions

logger = logging.getLogger(__name__)

Callback = Callable[[Any, Any], Any]


def notify(callback: Callback | None, error: Any, result: Any) -> None:
    """Call callback(error, result) if given. A callback that raises is logged, like an event listener."""
    if not callback:
        return
    try:
        callback(error, result)
    except Exception as e:
        logger.warning("Callback failed: %s", e, exc_info=True)


class Transport(EventEmitter, ABC):
    """
    A log sink: something with a name and a log(level, message, meta, callback).

    Transports report through two independent channels: the optional
    per-call callback and the instance's "logged" / "error" events.
    """

    name: ClassVar[str] = ""

    def __init__(self, level: LogLevel | str = LogLevel.INFO) -> None:
        super().__init__()
        self.level = LogLevel(level)

    def accepts(self, level: LogLevel | str) -> bool:
        """True if an event at level passes this transport's minimum level. Unknown levels pass."""
        try:
            return LogLevel(level).priority <= self.level.priority
        except ValueError:
            return True

    @abstractmethod
    def log(
        self,
        level: str,
        message: str,
        meta: Any = None,
        callback: Callback | None = None,
    ) -> None:
        """Persist one log event. Completion is reported via callback and events, never raised."""

    @staticmethod
    def normalize_query(options: QueryOptions | Mapping[str, Any] | None) -> QueryOptions:
        if options is None:
            return QueryOptions()
        if isinstance(options, QueryOptions):
            return options
        return QueryOptions.model_validate(dict(options))

    def query(self, options: Any = None, callback: Callback | None = None) -> list[dict] | None:
        """Query persisted events. Transports without a query path report NotImplementedError."""
        if callable(options) and callback is None:
            callback, options = options, None
        notify(callback, NotImplementedError(f"{self.name} transport cannot be queried"), None)
        return None

    def stream(self, options: Any = None, stream: Any = None) -> Any:
        """Tailing is not implemented: emits "error" and hands back the given stream."""
        self.emit("error", NotImplementedError("not implemented"))
        return stream

    def close(self) -> None:
        """Release resources held by the transport."""
