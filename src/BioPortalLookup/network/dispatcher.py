# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.network.dispatcher",
#   "purpose": "Rate-limited, instrumented GET dispatcher for the BioPortal REST API",
#   "sections": [
#     {"id": "rate-limited", "name": "rate_limited", "anchor": "function-rate-limited", "kind": "function"},
#     {"id": "calldispatcher", "name": "CallDispatcher", "anchor": "class-calldispatcher", "kind": "class"},
#     {"id": "quote-segment", "name": "quote_segment", "anchor": "function-quote-segment", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Call dispatcher: every BioPortal request goes through here.

The transport call (one HTTP GET returning decoded JSON) is wrapped twice:

1. :func:`rate_limited` acquires a slot from the process-wide
   :class:`~BioPortalLookup.ratelimit.RateLimitManager` before sending.
2. :func:`~BioPortalLookup.network.instrumentation.instrumented` counts the
   call and any failure for the periodic throughput report.

A 404 answer comes back as :data:`~BioPortalLookup.results.NOT_FOUND`; it is
counted as a call but not as a failure. Everything else that goes wrong
(transport error, other non-2xx status, undecodable body) raises
:class:`~BioPortalLookup.errors.ServiceError`.

Example:
    >>> dispatcher = CallDispatcher(api_key="...")
    >>> dispatcher.invoke("/ontologies/EFO")["name"]
    'Experimental Factor Ontology'
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar, Union
from urllib.parse import quote

import httpx

from BioPortalLookup.errors import ServiceError
from BioPortalLookup.network.instrumentation import CallStatistics, instrumented
from BioPortalLookup.ratelimit import RateLimitManager, get_rate_limiter
from BioPortalLookup.ratelimit.config import SERVICE_NAME
from BioPortalLookup.results import NOT_FOUND, NotFound
from BioPortalLookup.settings import DEFAULT_BASE_URL

logger = logging.getLogger(__name__)

T = TypeVar("T")

Document = Union[Dict[str, Any], List[Any]]
Params = Optional[Mapping[str, Any]]


def quote_segment(value: str) -> str:
    """Percent-encode ``value`` for use as a single URL path segment."""

    return quote(value, safe="")


def rate_limited(
    call: Callable[..., T],
    *,
    limiter: RateLimitManager,
    service: str = SERVICE_NAME,
) -> Callable[..., T]:
    """Wrap ``call`` so each invocation first acquires a rate-limit slot.

    In ``block`` mode the acquisition sleeps until a slot frees up. In
    ``fail-fast`` mode a refused slot raises :class:`ServiceError` and the
    wrapped call is not made.
    """

    @functools.wraps(call)
    def _wrapped(*args, **kwargs) -> T:
        if not limiter.acquire(service):
            raise ServiceError(f"Rate limit exceeded for service '{service}'")
        return call(*args, **kwargs)

    return _wrapped


class CallDispatcher:
    """Send authenticated GET requests to BioPortal and decode the JSON answer.

    Args:
        api_key: BioPortal API key, sent as ``Authorization: apikey token=<key>``.
        base_url: API root; paths passed to :meth:`invoke` are appended to it.
        http_client: Client to send through. Defaults to the shared client
            from :func:`BioPortalLookup.network.get_http_client`.
        rate_limiter: Defaults to the process-wide limiter.
        statistics: Call counters; ``None`` disables reporting.
        service: Rate-limit bucket name.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        http_client: Optional[httpx.Client] = None,
        rate_limiter: Optional[RateLimitManager] = None,
        statistics: Optional[CallStatistics] = None,
        service: str = SERVICE_NAME,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ValueError("api_key must be a non-empty string")
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"apikey token={api_key.strip()}",
            "Accept": "application/json",
        }
        self._http_client = http_client
        self._statistics = statistics
        self._service = service
        self._rate_limiter = rate_limiter or get_rate_limiter()

        call: Callable[[str, Params], Union[Document, NotFound]] = self._send
        call = rate_limited(call, limiter=self._rate_limiter, service=service)
        if statistics is not None:
            call = instrumented(call, statistics)
        self._call = call

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def rate_limiter(self) -> RateLimitManager:
        return self._rate_limiter

    @property
    def statistics(self) -> Optional[CallStatistics]:
        return self._statistics

    def url_for(self, path: str) -> str:
        """Absolute URL for an API ``path`` (already percent-encoded)."""
        if path.startswith(("http://", "https://")):
            return path
        if not path.startswith("/"):
            path = "/" + path
        return self._base_url + path

    def invoke(self, path: str, params: Params = None) -> Union[Document, NotFound]:
        """GET ``path`` and return the decoded JSON, or ``NOT_FOUND`` on 404.

        Raises:
            ServiceError: transport failure, non-404 error status, or a body
                that is not valid JSON.
        """
        return self._call(path, params)

    def _client(self) -> httpx.Client:
        if self._http_client is not None:
            return self._http_client
        from BioPortalLookup.network.client import get_http_client

        return get_http_client()

    def _send(self, path: str, params: Params = None) -> Union[Document, NotFound]:
        url = self.url_for(path)
        try:
            response = self._client().get(url, params=params, headers=self._headers)
        except httpx.HTTPError as exc:
            logger.debug("BioPortal request failed", extra={"url": url, "error": str(exc)})
            raise ServiceError(f"Error while accessing BioPortal at {url}: {exc}", url=url) from exc

        if response.status_code == 404:
            logger.debug("BioPortal resource not found", extra={"url": url})
            return NOT_FOUND

        if response.status_code >= 400:
            raise ServiceError(
                f"BioPortal returned HTTP {response.status_code} for {url}",
                status_code=response.status_code,
                url=url,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ServiceError(
                f"BioPortal returned an invalid JSON body for {url}: {exc}",
                status_code=response.status_code,
                url=url,
            ) from exc

    def close(self) -> None:
        """Close an injected HTTP client. The shared client is left open."""
        if self._http_client is not None:
            self._http_client.close()


__all__ = [
    "Document",
    "CallDispatcher",
    "rate_limited",
    "quote_segment",
]
