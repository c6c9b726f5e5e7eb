"""Name -> transport class registry, so configuration can select a transport by string."""

from __future__ import annotations

from typing import Any, TypeVar

from couchlog.errors import UnknownTransportError
from couchlog.transports.base import Transport

T = TypeVar("T", bound=type[Transport])

_TRANSPORTS: dict[str, type[Transport]] = {}


def register_transport(cls: T) -> T:
    """Class decorator: make cls available under cls.name."""
    if not cls.name:
        raise ValueError(f"{cls.__name__} has no name to register under")
    _TRANSPORTS[cls.name.lower()] = cls
    return cls


def get_transport(name: str) -> type[Transport]:
    try:
        return _TRANSPORTS[name.lower()]
    except KeyError:
        raise UnknownTransportError(name) from None


def create_transport(name: str, **options: Any) -> Transport:
    """Instantiate the transport registered under name with the given options."""
    return get_transport(name)(**options)


def available_transports() -> list[str]:
    return sorted(_TRANSPORTS)
