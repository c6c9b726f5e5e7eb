"""Shared data models for the transport and its query engine."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class LogLevel(str, Enum):
    """npm-style severities, most severe first."""

    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    HTTP = "http"
    VERBOSE = "verbose"
    DEBUG = "debug"
    SILLY = "silly"

    @property
    def priority(self) -> int:
        return _PRIORITIES[self]


_PRIORITIES = {level: i for i, level in enumerate(LogLevel)}


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class QueryOptions(BaseModel):
    """
    Normalized query request.

    `from` is a keyword in Python, so the field is `from_` and the wire name
    "from" is accepted as an alias. `limit` and `start` are accepted as
    alternative names for `rows` and `skip`.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    from_: datetime | None = Field(default=None, alias="from")
    until: datetime | None = None
    order: SortOrder = SortOrder.DESC
    rows: int = Field(default=0, ge=0, validation_alias=AliasChoices("rows", "limit"))
    skip: int = Field(default=0, ge=0, validation_alias=AliasChoices("skip", "start"))
    fields: list[str] | None = None
    include_meta: bool = Field(
        default=False, validation_alias=AliasChoices("include_meta", "includeMeta")
    )
    stale: bool = False

    @field_validator("rows", "skip", mode="before")
    @classmethod
    def _none_is_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("fields", mode="before")
    @classmethod
    def _single_field(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return v


class ViewDefinition(BaseModel):
    """A secondary index over documents, keyed by a single document field."""

    model_config = ConfigDict(frozen=True)

    design_doc: str
    name: str
    key_field: str

    @property
    def map_function(self) -> str:
        return (
            "function (doc, meta) {\n"
            f"  if (doc.{self.key_field}) {{\n"
            f"    emit(doc.{self.key_field}, null);\n"
            "  }\n"
            "}"
        )


class ViewQuery(BaseModel):
    """Range scan request passed to a store's view query."""

    include_docs: bool = True
    stale: bool = False
    limit: int | None = None
    skip: int = 0
    startkey: str | None = None
    endkey: str | None = None
    descending: bool = False


LOGS_BY_TIMESTAMP = ViewDefinition(design_doc="Logs", name="byTimestamp", key_field="timestamp")
