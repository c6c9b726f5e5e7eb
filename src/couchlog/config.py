"""Transport configuration: immutable per-instance config and env-loaded settings."""

from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from couchlog.models import LogLevel
from couchlog.util import key_fun as default_key_fun

Backend = Literal["couchbase", "memory"]

DEFAULT_HOST = "localhost"
DEFAULT_BUCKET = "default"
DEFAULT_LEVEL = LogLevel.INFO


class TransportConfig(BaseModel):
    """
    Connection and behavior parameters for a transport instance.

    Resolved once at construction. Missing, None or empty values fall back to
    the defaults below.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    host: str = DEFAULT_HOST
    bucket: str = DEFAULT_BUCKET
    username: str | None = None
    password: str | None = None
    level: LogLevel = DEFAULT_LEVEL
    key_fun: Callable[[], str] = Field(default=default_key_fun, alias="keyFun")
    # Store backend; "memory" keeps documents in-process (optionally persisted to data_dir)
    backend: Backend = "couchbase"
    data_dir: str | None = None

    @field_validator("host", "bucket", "level", "key_fun", "backend", mode="before")
    @classmethod
    def _fallback_to_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None or v == "":
            return cls.model_fields[info.field_name].default
        return v

    @field_validator("username", "password", "data_dir", mode="before")
    @classmethod
    def _empty_is_none(cls, v: Any) -> Any:
        return v or None


class Settings(BaseSettings):
    """couchlog settings from env vars (COUCHLOG_*)."""

    model_config = SettingsConfigDict(
        env_prefix="COUCHLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Couchbase cluster host or connection string (couchbase://...)
    host: str = DEFAULT_HOST
    bucket: str = DEFAULT_BUCKET
    # Optional RBAC credentials; without them the bucket name is used as user
    username: str = ""
    password: str = ""
    # Minimum level accepted by the transport
    level: LogLevel = DEFAULT_LEVEL

    # "memory" runs without a cluster (development, demos, tests)
    backend: Backend = "couchbase"
    # Memory backend persistence directory (empty = in-process only)
    data_dir: str = ""

    def transport_config(self, **overrides: Any) -> TransportConfig:
        values = self.model_dump()
        values.update(overrides)
        return TransportConfig(**values)


def get_settings() -> Settings:
    """Return loaded settings from environment (and .env if present)."""
    return Settings()
