"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    create_model,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class EngineConfig(BaseModel):
    """Timeouts, TTL buckets and concurrency bounds for the addon engine.

    All values configurable via YAML (engine section).
    """

    addon_timeout_seconds: float = Field(
        default=5.0,
        description="Per-addon deadline for a stream request.",
    )
    subtitle_timeout_seconds: float = Field(
        default=3.0,
        description="Per-addon deadline for a subtitle request.",
    )
    anime_lookup_timeout_seconds: float = Field(
        default=0.6,
        description="Deadline for the anime id mapping call.",
    )
    playback_timeout_seconds: float = Field(
        default=3.5,
        description="Outer deadline for resolving one stream for playback.",
    )
    reachability_timeout_seconds: float = Field(
        default=4.5,
        description="Default deadline for the ranged reachability probe.",
    )
    max_concurrent_addons: int = Field(
        default=16,
        description="Max addon requests in flight per fan-out (semaphore).",
    )
    vod_lookup_timeout_seconds: float = Field(
        default=2.5,
        description="VOD fallback deadline when addons returned nothing.",
    )
    vod_append_timeout_seconds: float = Field(
        default=1.0,
        description="VOD fallback deadline when addon streams already exist.",
    )

    ttl_empty_seconds: int = Field(
        default=120,
        description="Cache TTL for an empty stream result.",
    )
    ttl_p2p_seconds: int = Field(
        default=120,
        description="Cache TTL when no stream carries an http(s) URL.",
    )
    ttl_http_seconds: int = Field(
        default=30,
        description="Cache TTL for stable-looking http(s) results.",
    )
    ttl_http_ephemeral_seconds: int = Field(
        default=10,
        description="Cache TTL when any http(s) URL looks tokenized or proxied.",
    )

    single_flight: bool = Field(
        default=True,
        description="Share one in-flight fan-out between identical requests.",
    )
    torrent_helper_ports: list[int] = Field(
        default=[8090],
        description="Loopback ports probed for a local torrent helper daemon.",
    )

    @field_validator(
        "addon_timeout_seconds",
        "subtitle_timeout_seconds",
        "anime_lookup_timeout_seconds",
        "playback_timeout_seconds",
        "reachability_timeout_seconds",
        "vod_lookup_timeout_seconds",
        "vod_append_timeout_seconds",
    )
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @field_validator(
        "ttl_empty_seconds",
        "ttl_p2p_seconds",
        "ttl_http_seconds",
        "ttl_http_ephemeral_seconds",
    )
    @classmethod
    def _validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("cache TTLs must be >= 0")
        return v

    @field_validator("max_concurrent_addons")
    @classmethod
    def _validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_concurrent_addons must be >= 1")
        return v


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/store/profile/engine).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="addonmux", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=10.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Default HTTP timeout in seconds.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether HTTP client follows redirects.",
    )
    http_user_agent: str = Field(
        default="addonmux/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing addon requests.",
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

    # Preference store (YAML section: store.*)
    store_dir: Path = Field(
        default=Path("./.cache/addonmux"),
        validation_alias=AliasChoices(
            "store_dir",
            AliasPath("store", "dir"),
        ),
        description="Directory of the durable preference store.",
    )

    # Profiles (YAML section: profile.*)
    default_profile_id: str = Field(
        default="default",
        validation_alias=AliasChoices(
            "default_profile_id",
            AliasPath("profile", "default_profile_id"),
        ),
        description="Profile that is active at startup.",
    )

    # Engine tuning (YAML section: engine.*)
    engine: EngineConfig = Field(default_factory=EngineConfig)

    @field_validator("store_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @field_validator("default_profile_id")
    @classmethod
    def _validate_profile(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("default_profile_id must not be blank")
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
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "store": {"dir": str(self.store_dir)},
            "profile": {"default_profile_id": self.default_profile_id},
            "engine": self.engine.model_dump(),
        }


class _EnvOverridesBase(BaseSettings):
    """
    Environment-variable overrides (all optional).

    load.py creates EnvOverrides() to read ADDONMUX_* variables and merges
    the set values over YAML/defaults before AppConfig validates them.

    Every field is flat: ADDONMUX_LOG_LEVEL, ADDONMUX_STORE_DIR,
    ADDONMUX_TTL_HTTP_SECONDS, ADDONMUX_TORRENT_HELPER_PORTS='[8090, 9000]'.
    """

    model_config = SettingsConfigDict(
        env_prefix="ADDONMUX_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    store_dir: Optional[Path] = None
    default_profile_id: Optional[str] = None

    @field_validator("store_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)


# One optional override per EngineConfig field, named like the field.
EnvOverrides = create_model(
    "EnvOverrides",
    __base__=_EnvOverridesBase,
    **{
        name: (Optional[field.annotation], None)
        for name, field in EngineConfig.model_fields.items()
    },
)
