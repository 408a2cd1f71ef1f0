"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
StoreBackend = Literal["memory", "redis"]
RelayMode = Literal["direct", "indirection"]


class StoreConfig(BaseSettings):
    """Token store configuration (backend-agnostic)."""

    backend: StoreBackend = Field(
        default="memory",
        description="Token store backend: 'memory' (per process) or 'redis' (shared)",
    )

    # Shared settings
    ttl_seconds: int = Field(
        default=3600,
        description="Lifetime of each token (seconds)",
    )
    max_entries: int = Field(
        default=10_000,
        description="Upper bound on resident tokens; LRU eviction beyond it",
    )

    # Redis settings
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (only when backend=redis)",
    )
    redis_key_prefix: str = Field(
        default="hlsrelay:",
        description="Namespace for every Redis key written by the relay",
    )
    redis_timeout_seconds: float = Field(
        default=5.0,
        description="Socket timeout for Redis calls (seconds)",
    )
    max_concurrent: int = Field(
        default=50,
        description="Max parallel store ops (semaphore limit)",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_",  # Env vars: STORE_BACKEND, STORE_REDIS_URL, ...
        case_sensitive=False,
    )

    @field_validator("ttl_seconds", "max_entries", "max_concurrent")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("redis_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("redis_timeout_seconds must be > 0")
        return v


class RelayConfig(BaseModel):
    """How rewritten manifests point back at the relay."""

    mode: RelayMode = Field(
        default="direct",
        description=(
            "'direct': origin URL + referer as query parameters. "
            "'indirection': opaque tokens resolved via the token store."
        ),
    )
    public_base_url: str = Field(
        default="",
        description="Absolute prefix for rewritten URLs. Empty = root-relative.",
    )
    forward_origin: bool = Field(
        default=True,
        description="Send an Origin header derived from the referer upstream.",
    )

    @field_validator("public_base_url")
    @classmethod
    def _validate_public_base_url(cls, v: str) -> str:
        v = v.strip()
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("public_base_url must be empty or an http(s) URL")
        return v.rstrip("/")


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/store/relay).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="hlsrelay", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # Upstream HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Upstream fetch timeout in seconds.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether upstream redirects are followed.",
    )
    http_user_agent: str = Field(
        default="hlsrelay/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing upstream requests.",
    )
    http_max_concurrent: int = Field(
        default=50,
        validation_alias=AliasChoices(
            "http_max_concurrent",
            AliasPath("http", "max_concurrent"),
        ),
        description="Max parallel upstream fetches.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Token store (YAML section: store.*)
    store: StoreConfig = Field(default_factory=StoreConfig)

    # Rewriting mode (YAML section: relay.*)
    relay: RelayConfig = Field(default_factory=RelayConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @field_validator("http_max_concurrent")
    @classmethod
    def _validate_http_max_concurrent(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("http_max_concurrent must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
                "max_concurrent": self.http_max_concurrent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "store": self.store.model_dump(),
            "relay": self.relay.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read HLSRELAY_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - HLSRELAY_HTTP_TIMEOUT_SECONDS
    - HLSRELAY_LOG_LEVEL
    - HLSRELAY_STORE_BACKEND
    - HLSRELAY_RELAY_MODE
    """

    model_config = SettingsConfigDict(
        env_prefix="HLSRELAY_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None
    http_max_concurrent: Optional[int] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    store_backend: Optional[StoreBackend] = None
    store_ttl_seconds: Optional[int] = None
    store_max_entries: Optional[int] = None
    store_redis_url: Optional[str] = None

    relay_mode: Optional[RelayMode] = None
    relay_public_base_url: Optional[str] = None
    relay_forward_origin: Optional[bool] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
