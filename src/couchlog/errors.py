"""Exceptions raised by couchlog itself.

Errors coming from the Couchbase SDK are never wrapped; they reach callbacks
and `error` listeners as raised by the client.
"""


class CouchlogError(Exception):
    """Base class for couchlog errors."""


class UnknownTransportError(CouchlogError, KeyError):
    """No transport is registered under the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"unknown transport: {self.name!r}"


class StoreError(CouchlogError):
    """A store adapter could not complete an operation."""


class ViewNotFoundError(StoreError):
    """The requested view was never provisioned on the store."""

    def __init__(self, design_doc: str, view_name: str) -> None:
        super().__init__(f"view {design_doc}/{view_name} not found")
        self.design_doc = design_doc
        self.view_name = view_name
