# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.settings",
#   "purpose": "Typed, environment-aware configuration for the BioPortal lookup facade",
#   "sections": [
#     {"id": "constants", "name": "Constants & Patterns", "anchor": "CON", "kind": "constants"},
#     {"id": "domain-models", "name": "Domain Settings Models", "anchor": "DOM", "kind": "models"},
#     {"id": "root", "name": "Root Settings", "anchor": "ROOT", "kind": "models"},
#     {"id": "singleton", "name": "Settings Singleton", "anchor": "SNG", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Configuration for the BioPortal lookup facade.

Settings are grouped into frozen Pydantic sections (HTTP, cache, rate limit,
statistics, logging) hung off a single :class:`LookupSettings` root that reads
``BIOPORTAL_``-prefixed environment variables through ``pydantic-settings``.
Nested fields use ``__`` as delimiter::

    BIOPORTAL_API_KEY=...                       # API key
    BIOPORTAL_HTTP__BASE_URL=http://localhost:8080
    BIOPORTAL_CACHE__TTL_MINUTES=10
    BIOPORTAL_RATE_LIMIT__RATE=5/second
    BIOPORTAL_STATISTICS__REPORT_INTERVAL_MS=60000

:func:`get_settings` memoises the environment-derived settings for the
process; :func:`reset_settings` drops the memo (tests).
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
import threading
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

__all__ = [
    "DEFAULT_BASE_URL",
    "HttpSettings",
    "CacheSettings",
    "RateLimitSettings",
    "StatisticsSettings",
    "LoggingSettings",
    "LookupSettings",
    "load_settings",
    "get_settings",
    "reset_settings",
]

# ============================================================================
# Constants & Patterns
# ============================================================================

DEFAULT_BASE_URL = "https://data.bioontology.org"

_RATE_LIMIT_PATTERN = re.compile(
    r"^\s*(\d+)\s*/\s*(second|sec|s|minute|min|m|hour|hr|h)\s*$", re.IGNORECASE
)

# ============================================================================
# Domain Settings Models
# ============================================================================


class HttpSettings(BaseModel):
    """HTTP client settings for the shared HTTPX client."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Root URL of the BioPortal REST API (override for mock servers)",
    )
    http2: bool = Field(default=True, description="Enable HTTP/2 support")
    timeout_connect: float = Field(default=5.0, gt=0.0, le=60.0, description="Connect timeout in seconds")
    timeout_read: float = Field(default=30.0, gt=0.0, le=300.0, description="Read timeout in seconds")
    timeout_write: float = Field(default=15.0, gt=0.0, le=300.0, description="Write timeout in seconds")
    timeout_pool: float = Field(default=5.0, gt=0.0, le=60.0, description="Acquire-from-pool timeout in seconds")
    pool_max_connections: int = Field(default=64, ge=1, le=1024, description="Max concurrent connections")
    pool_keepalive_max: int = Field(default=20, ge=0, le=1024, description="Keepalive pool size")
    keepalive_expiry: float = Field(default=30.0, ge=0.0, le=600.0, description="Idle connection expiry in seconds")
    trust_env: bool = Field(
        default=True,
        description="Honor HTTP(S)_PROXY and NO_PROXY environment variables",
    )
    user_agent: str = Field(
        default="BioPortalLookup/0.3 (+https://data.bioontology.org)",
        description="User-Agent header value",
    )

    @field_validator("base_url", mode="before")
    @classmethod
    def normalize_base_url(cls, v: Any) -> str:
        """Strip whitespace and any trailing slash; require an http(s) scheme."""
        value = str(v).strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"base_url must start with http:// or https://, got '{v}'")
        return value


class CacheSettings(BaseModel):
    """Memo cache settings, applied to each of the three facade caches."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    ttl_minutes: float = Field(
        default=240.0,
        gt=0.0,
        description="Entries expire this many minutes after insertion",
    )
    max_size: int = Field(
        default=300_000,
        ge=1,
        description="Maximum number of entries per cache",
    )

    @property
    def ttl(self) -> timedelta:
        return timedelta(minutes=self.ttl_minutes)


class RateLimitSettings(BaseModel):
    """Outbound call rate limiting."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    rate: str = Field(
        default="15/second",
        description="Maximum call rate shared by the whole process (e.g. '15/second')",
    )
    mode: str = Field(
        default="block",
        description="'block' waits for a slot, 'fail-fast' refuses calls over the limit",
    )
    smooth: bool = Field(
        default=True,
        description="Pace calls evenly across the window instead of allowing bursts",
    )

    @field_validator("rate", mode="before")
    @classmethod
    def validate_rate_string(cls, v: Any) -> str:
        """Validate rate limit string format."""
        value = str(v).strip()
        if not _RATE_LIMIT_PATTERN.match(value):
            raise ValueError(
                f"Invalid rate limit format '{v}'; expected 'N/(second|minute|hour)'"
            )
        if int(value.split("/", 1)[0]) <= 0:
            raise ValueError(f"Rate limit must be positive, got '{v}'")
        return value

    @field_validator("mode", mode="before")
    @classmethod
    def validate_mode(cls, v: Any) -> str:
        value = str(v).strip().lower()
        if value not in {"block", "fail-fast"}:
            raise ValueError(f"mode must be 'block' or 'fail-fast', got '{v}'")
        return value


class StatisticsSettings(BaseModel):
    """Throughput statistics reporting."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    enabled: bool = Field(default=True, description="Collect and report call statistics")
    report_interval_ms: int = Field(
        default=5 * 60 * 1000,
        ge=1,
        description="Emit a throughput summary every this many milliseconds",
    )


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    emit_json_logs: bool = Field(default=True, description="Write JSON lines to the log directory")
    log_dir: Optional[Path] = Field(default=None, description="Directory for JSON log files")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Normalize and validate logging level."""
        upper = str(v).upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if upper not in valid_levels:
            raise ValueError(f"level must be one of {sorted(valid_levels)}, got '{v}'")
        return upper

    def level_int(self) -> int:
        """Convert level string to logging module integer."""
        return getattr(logging, self.level)


# ============================================================================
# Root Settings
# ============================================================================


class LookupSettings(BaseSettings):
    """Root settings object for the lookup facade."""

    model_config = SettingsConfigDict(
        env_prefix="BIOPORTAL_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    api_key: Optional[SecretStr] = Field(default=None, description="BioPortal API key")
    http: HttpSettings = Field(default_factory=HttpSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    statistics: StatisticsSettings = Field(default_factory=StatisticsSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def api_key_value(self) -> Optional[str]:
        """Return the plain API key, or ``None`` when unset."""
        if self.api_key is None:
            return None
        return self.api_key.get_secret_value() or None

    def config_hash(self) -> str:
        """Compute a deterministic hash of the configuration (API key excluded)."""
        config_dict = self.model_dump(mode="json", exclude={"api_key"})
        config_str = json.dumps(config_dict, sort_keys=True, default=str)
        return hashlib.sha256(config_str.encode("utf-8")).hexdigest()[:16]


# ============================================================================
# Settings Singleton
# ============================================================================

_SETTINGS_LOCK = threading.RLock()
_SETTINGS_CACHE: Optional[LookupSettings] = None


def load_settings(**overrides: Any) -> LookupSettings:
    """Build :class:`LookupSettings` from the environment plus ``overrides``.

    Raises:
        ConfigurationError: If any value fails validation.
    """

    try:
        return LookupSettings(**overrides)
    except PydanticValidationError as exc:
        raise ConfigurationError(f"Invalid BioPortal lookup settings: {exc}") from exc


def get_settings() -> LookupSettings:
    """Return the memoised process-wide :class:`LookupSettings`."""

    global _SETTINGS_CACHE  # noqa: PLW0603

    cached = _SETTINGS_CACHE
    if cached is not None:
        return cached
    with _SETTINGS_LOCK:
        if _SETTINGS_CACHE is None:
            _SETTINGS_CACHE = load_settings()
        return _SETTINGS_CACHE


def reset_settings() -> None:
    """Drop the memoised settings so the next access re-reads the environment."""

    global _SETTINGS_CACHE  # noqa: PLW0603

    with _SETTINGS_LOCK:
        _SETTINGS_CACHE = None
