# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.ratelimit.__init__",
#   "purpose": "Rate-limiting subsystem: process-wide call pacing with pyrate-limiter.",
#   "sections": []
# }
# === /NAVMAP ===

"""Rate-limiting subsystem: process-wide call pacing with pyrate-limiter.

Modules:
- config: RateSpec parsing and pacing
- manager: RateLimitManager façade with acquire() semantics
"""

from BioPortalLookup.ratelimit.config import (
    RateSpec,
    parse_rate_string,
    rate_specs_from_settings,
)
from BioPortalLookup.ratelimit.manager import (
    RateLimitManager,
    close_rate_limiter,
    get_rate_limiter,
    reset_rate_limiter,
)

__all__ = [
    # Config
    "RateSpec",
    "parse_rate_string",
    "rate_specs_from_settings",
    # Manager
    "RateLimitManager",
    "get_rate_limiter",
    "close_rate_limiter",
    "reset_rate_limiter",
]
