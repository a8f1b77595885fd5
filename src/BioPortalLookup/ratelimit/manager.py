# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.ratelimit.manager",
#   "purpose": "Shared BioPortal call pacing on top of pyrate-limiter",
#   "sections": [
#     {"id": "ratelimitmanager", "name": "RateLimitManager", "anchor": "class-ratelimitmanager", "kind": "class"},
#     {"id": "get-rate-limiter", "name": "get_rate_limiter", "anchor": "function-get-rate-limiter", "kind": "function"},
#     {"id": "close-rate-limiter", "name": "close_rate_limiter", "anchor": "function-close-rate-limiter", "kind": "function"},
#     {"id": "reset-rate-limiter", "name": "reset_rate_limiter", "anchor": "function-reset-rate-limiter", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Process-wide pacing of BioPortal calls.

BioPortal enforces a per-key quota, so every façade, dispatcher and survey in
the process draws from the same :class:`RateLimitManager`. In ``block`` mode a
caller over the limit sleeps until its slot comes up and no call is ever
dropped; in ``fail-fast`` mode :meth:`RateLimitManager.acquire` answers
``False`` and the dispatcher turns that into a
:class:`~BioPortalLookup.errors.ServiceError`.

Buckets are keyed by service name. ``bioportal`` is the only service the
package calls; ``_default`` covers anything else a caller passes in.

Example:
    >>> from BioPortalLookup.ratelimit import get_rate_limiter
    >>> get_rate_limiter().acquire("bioportal")
    True
"""

import logging
import os
import threading
from typing import Any, Dict, List, Optional

from pyrate_limiter import BucketFullException, Duration, Limiter, Rate

from BioPortalLookup.ratelimit.config import (
    DEFAULT_SERVICE_KEY,
    RateSpec,
    rate_specs_from_settings,
)

logger = logging.getLogger(__name__)

_MODES = frozenset({"block", "fail-fast"})

# Upper bound on a blocking wait; effectively "wait as long as it takes".
_MAX_WAIT_MS = int(Duration.DAY) * 365

# Slack pyrate-limiter sleeps on top of each computed delay.
_BUFFER_MS = 5

# Used when neither the service nor ``_default`` has specs: 15 calls/second, paced.
_FALLBACK_SPECS = [RateSpec(limit=1, interval_ms=67)]

_shared: Optional["RateLimitManager"] = None
_shared_pid: Optional[int] = None
_shared_lock = threading.Lock()


# ============================================================================
# RateLimitManager
# ============================================================================


class RateLimitManager:
    """Per-service pyrate-limiter buckets behind a single ``acquire`` call.

    Args:
        rate_specs: Service name to the rates enforced for it, e.g.
            ``{"bioportal": [RateSpec(1, 67)]}``.
        mode: ``"block"`` waits for a slot, ``"fail-fast"`` refuses.
    """

    def __init__(self, rate_specs: Dict[str, List[RateSpec]], mode: str = "block"):
        if mode not in _MODES:
            raise ValueError(f"Unknown rate limit mode: {mode!r}")
        self._specs = dict(rate_specs)
        self._mode = mode
        self._limiters: Dict[str, Limiter] = {}
        self._lock = threading.Lock()
        logger.debug("rate limiter configured", extra={"mode": mode, "services": sorted(self._specs)})

    @property
    def mode(self) -> str:
        return self._mode

    def acquire(self, service: str, weight: int = 1) -> bool:
        """Take ``weight`` slots for ``service``.

        Blocks in ``block`` mode. Returns ``False`` only in ``fail-fast`` mode
        when the bucket is full.
        """
        if weight <= 0:
            raise ValueError(f"Weight must be positive, got: {weight}")
        name = service.strip().lower()
        limiter = self._limiter(name)
        try:
            granted = bool(limiter.try_acquire(name, weight=weight))
        except BucketFullException as exc:
            if self._mode != "fail-fast":
                raise
            logger.debug(
                "rate limit reached; call refused",
                extra={"service": name, "weight": weight, "detail": str(getattr(exc, "meta_info", exc))},
            )
            return False
        if not granted:
            logger.warning("rate limiter gave up waiting", extra={"service": name, "mode": self._mode})
        return granted

    def _limiter(self, name: str) -> Limiter:
        limiter = self._limiters.get(name)
        if limiter is None:
            with self._lock:
                limiter = self._limiters.get(name)
                if limiter is None:
                    limiter = self._limiters[name] = self._build(name)
        return limiter

    def _build(self, name: str) -> Limiter:
        specs = self._specs.get(name) or self._specs.get(DEFAULT_SERVICE_KEY) or _FALLBACK_SPECS
        blocking = self._mode == "block"
        logger.debug(
            "creating bucket",
            extra={"service": name, "rates": [str(spec) for spec in specs], "mode": self._mode},
        )
        return Limiter(
            [Rate(spec.limit, spec.interval_ms) for spec in specs],
            raise_when_fail=not blocking,
            max_delay=_MAX_WAIT_MS if blocking else None,
            retry_until_max_delay=blocking,
            buffer_ms=_BUFFER_MS,
        )

    def get_stats(self) -> Dict[str, Any]:
        """Mode, services with a live bucket, and configured rates."""
        return {
            "mode": self._mode,
            "services": sorted(self._limiters),
            "rates": {name: [str(spec) for spec in specs] for name, specs in self._specs.items()},
        }

    def close(self) -> None:
        with self._lock:
            self._limiters.clear()


# ============================================================================
# Shared instance
# ============================================================================


def get_rate_limiter() -> RateLimitManager:
    """Return the process-wide manager, building it from settings on first use.

    A forked child gets a fresh manager rather than the parent's buckets.
    """
    global _shared, _shared_pid

    pid = os.getpid()
    manager = _shared
    if manager is not None and _shared_pid == pid:
        return manager

    with _shared_lock:
        if _shared is not None and _shared_pid == pid:
            return _shared
        if _shared is not None:
            logger.debug("process forked; discarding inherited rate limiter")
            _shared.close()

        from BioPortalLookup.settings import get_settings

        config = get_settings().rate_limit
        _shared = RateLimitManager(
            rate_specs_from_settings(config.rate, smooth=config.smooth),
            mode=config.mode,
        )
        _shared_pid = pid
        logger.debug("shared rate limiter created", extra={"rate": config.rate, "pid": pid})
        return _shared


def close_rate_limiter() -> None:
    """Discard the shared manager; the next :func:`get_rate_limiter` rebuilds it."""
    global _shared

    with _shared_lock:
        if _shared is not None:
            _shared.close()
            _shared = None


def reset_rate_limiter() -> None:
    """Forget the shared manager and its owning PID (tests)."""
    global _shared_pid

    close_rate_limiter()
    _shared_pid = None


__all__ = [
    "RateLimitManager",
    "get_rate_limiter",
    "close_rate_limiter",
    "reset_rate_limiter",
]
