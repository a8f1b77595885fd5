# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.network.client",
#   "purpose": "HTTPX client construction and the PID-aware shared BioPortal client",
#   "sections": [
#     {"id": "create-http-client", "name": "create_http_client", "anchor": "function-create-http-client", "kind": "function"},
#     {"id": "get-http-client", "name": "get_http_client", "anchor": "function-get-http-client", "kind": "function"},
#     {"id": "close-http-client", "name": "close_http_client", "anchor": "function-close-http-client", "kind": "function"},
#     {"id": "reset-http-client", "name": "reset_http_client", "anchor": "function-reset-http-client", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""HTTP transport for BioPortal calls.

:func:`create_http_client` turns :class:`~BioPortalLookup.settings.HttpSettings`
into an :class:`httpx.Client`: per-phase timeouts, a bounded connection pool,
HTTP/2 and TLS verified against the certifi bundle. Dispatchers that are not
handed a client share the one returned by :func:`get_http_client`, created on
first use and rebuilt in a forked child.

Example:
    >>> from BioPortalLookup.network import get_http_client, close_http_client
    >>> response = get_http_client().get("https://data.bioontology.org/ontologies/EFO")
    >>> close_http_client()
"""

import logging
import os
import ssl
import threading
from typing import Optional

import certifi
import httpx

from BioPortalLookup.settings import HttpSettings

logger = logging.getLogger(__name__)

_shared: httpx.Client | None = None
_shared_pid: int | None = None
_shared_lock = threading.Lock()


# ============================================================================
# Construction
# ============================================================================


def _tls_context() -> ssl.SSLContext:
    context = ssl.create_default_context(cafile=certifi.where())
    context.check_hostname = True
    context.verify_mode = ssl.CERT_REQUIRED
    return context


def create_http_client(
    http: Optional[HttpSettings] = None,
    *,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Build an :class:`httpx.Client` for BioPortal from ``http`` (defaults if omitted).

    ``transport`` replaces the network layer, e.g. with ``httpx.MockTransport``.
    """
    http = http or HttpSettings()
    timeout = httpx.Timeout(
        connect=http.timeout_connect,
        read=http.timeout_read,
        write=http.timeout_write,
        pool=http.timeout_pool,
    )
    limits = httpx.Limits(
        max_connections=http.pool_max_connections,
        max_keepalive_connections=http.pool_keepalive_max,
        keepalive_expiry=http.keepalive_expiry,
    )
    logger.debug(
        "building HTTP client",
        extra={"base_url": http.base_url, "http2": http.http2, "max_connections": http.pool_max_connections},
    )
    return httpx.Client(
        transport=transport,
        timeout=timeout,
        limits=limits,
        headers={"User-Agent": http.user_agent},
        http2=http.http2,
        follow_redirects=True,
        trust_env=http.trust_env,
        verify=_tls_context(),
    )


# ============================================================================
# Shared client
# ============================================================================


def get_http_client() -> httpx.Client:
    """Return the process-wide client, creating it from settings when needed."""
    global _shared, _shared_pid

    pid = os.getpid()
    client = _shared
    if client is not None and _shared_pid == pid:
        return client

    with _shared_lock:
        if _shared is not None and _shared_pid == pid:
            return _shared
        if _shared is not None:
            # Sockets inherited across fork belong to the parent.
            logger.debug("process forked; dropping inherited HTTP client")
            _shared = None

        from BioPortalLookup.settings import get_settings

        _shared = create_http_client(get_settings().http)
        _shared_pid = pid
        return _shared


def close_http_client() -> None:
    """Close the shared client, if any. Safe to call repeatedly."""
    global _shared

    with _shared_lock:
        client, _shared = _shared, None
    if client is not None:
        client.close()
        logger.debug("shared HTTP client closed")


def reset_http_client() -> None:
    """Close the shared client and forget its owning PID (tests)."""
    global _shared_pid

    close_http_client()
    _shared_pid = None


__all__ = [
    "create_http_client",
    "get_http_client",
    "close_http_client",
    "reset_http_client",
]
