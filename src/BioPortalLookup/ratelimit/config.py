# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.ratelimit.config",
#   "purpose": "RateSpec parsing and pacing helpers for pyrate-limiter",
#   "sections": [
#     {"id": "constants", "name": "Constants", "anchor": "CON", "kind": "constants"},
#     {"id": "ratespec", "name": "RateSpec", "anchor": "class-ratespec", "kind": "class"},
#     {"id": "parse-rate-string", "name": "parse_rate_string", "anchor": "function-parse-rate-string", "kind": "function"},
#     {"id": "rate-specs-from-settings", "name": "rate_specs_from_settings", "anchor": "function-rate-specs-from-settings", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""RateSpec parsing for rate-limiting configuration.

Parses human-readable rate strings (e.g., "15/second") into structured
RateSpec objects compatible with pyrate-limiter.

Example:
    >>> spec = parse_rate_string("15/second")
    >>> print(spec.limit, spec.interval_ms)
    15 1000
    >>> spec.smoothed()
    RateSpec(limit=1, interval_ms=67)
"""

import math
import re
from dataclasses import dataclass
from typing import Dict, List

# ============================================================================
# Constants
# ============================================================================

DURATION_MS = {
    "second": 1_000,
    "minute": 60_000,
    "hour": 3_600_000,
}

DURATION_ALIASES = {
    "s": "second",
    "sec": "second",
    "m": "minute",
    "min": "minute",
    "h": "hour",
    "hr": "hour",
}

SERVICE_NAME = "bioportal"
DEFAULT_SERVICE_KEY = "_default"


@dataclass(frozen=True)
class RateSpec:
    """Normalized rate specification: ``limit`` events per ``interval_ms``."""

    limit: int
    interval_ms: int

    @property
    def rps(self) -> float:
        """Requests per second."""
        return (self.limit * 1000) / self.interval_ms

    def smoothed(self) -> "RateSpec":
        """Return an equivalent spec admitting one call per evenly spaced slot.

        ``15/second`` becomes one call every 67 ms, so a burst of 30 calls
        takes about two seconds instead of completing in two bursts.
        """
        if self.limit == 1:
            return self
        return RateSpec(limit=1, interval_ms=math.ceil(self.interval_ms / self.limit))

    def __str__(self) -> str:
        if self.interval_ms == 1_000:
            return f"{self.limit}/second"
        elif self.interval_ms == 60_000:
            return f"{self.limit}/minute"
        elif self.interval_ms == 3_600_000:
            return f"{self.limit}/hour"
        else:
            return f"{self.limit}/{self.interval_ms}ms"

    def __repr__(self) -> str:
        return f"RateSpec(limit={self.limit}, interval_ms={self.interval_ms})"


def parse_rate_string(spec: str) -> RateSpec:
    """Parse human-readable rate string into RateSpec.

    Format: "{limit}/{duration}" where duration is second/minute/hour
    (or one of the short aliases).

    Raises:
        ValueError: If spec format is invalid or unparseable
    """
    spec = spec.strip()

    match = re.match(r"^(\d+)\s*/\s*(\w+)$", spec)
    if not match:
        raise ValueError(
            f"Invalid rate spec: {spec!r}. Expected format: '15/second', '300/minute', etc."
        )

    limit_str, duration_str = match.groups()
    limit = int(limit_str)

    duration_str = duration_str.lower()
    duration_str = DURATION_ALIASES.get(duration_str, duration_str)
    if duration_str not in DURATION_MS:
        raise ValueError(
            f"Unknown duration: {duration_str!r}. Supported: {list(DURATION_MS.keys())}"
        )

    if limit <= 0:
        raise ValueError(f"Limit must be positive, got: {limit}")

    return RateSpec(limit=limit, interval_ms=DURATION_MS[duration_str])


def rate_specs_from_settings(rate: str, *, smooth: bool = True) -> Dict[str, List[RateSpec]]:
    """Build the service → specs table used by :class:`RateLimitManager`."""

    spec = parse_rate_string(rate)
    if smooth:
        spec = spec.smoothed()
    return {SERVICE_NAME: [spec], DEFAULT_SERVICE_KEY: [spec]}


__all__ = [
    "DURATION_MS",
    "SERVICE_NAME",
    "DEFAULT_SERVICE_KEY",
    "RateSpec",
    "parse_rate_string",
    "rate_specs_from_settings",
]
