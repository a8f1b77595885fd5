# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.errors",
#   "purpose": "Define the exception hierarchy used by the BioPortal lookup facade",
#   "sections": [
#     {"id": "base", "name": "Base Exceptions", "anchor": "BAS", "kind": "api"},
#     {"id": "service", "name": "Service Errors", "anchor": "SVC", "kind": "api"},
#     {"id": "arguments", "name": "Argument & Configuration Errors", "anchor": "ARG", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Exception hierarchy shared across term resolution, caching, and dispatch.

Only genuine faults are raised. A term that does not exist upstream, or an
accession that cannot be mapped onto an owning ontology, is ordinary control
flow and surfaces as ``None`` (or an empty collection) rather than as one of
the exceptions below.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "BioPortalLookupError",
    "ServiceError",
    "InvalidArgumentError",
    "ConfigurationError",
]


class BioPortalLookupError(RuntimeError):
    """Base exception for BioPortal lookup failures."""


class ServiceError(BioPortalLookupError):
    """Raised when the remote service fails for any reason other than 404.

    Covers transport faults, unexpected HTTP statuses, and undecodable
    payloads. These errors are never cached and never retried here.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class InvalidArgumentError(BioPortalLookupError, ValueError):
    """Raised for malformed caller input, before any network call."""


class ConfigurationError(BioPortalLookupError):
    """Raised when settings or environment overrides are invalid."""
