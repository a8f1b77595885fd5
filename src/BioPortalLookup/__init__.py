# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup",
#   "purpose": "Package initialization for BioPortalLookup",
#   "sections": [
#     {"id": "getattr", "name": "__getattr__", "anchor": "function-getattr", "kind": "function"},
#     {"id": "dir", "name": "__dir__", "anchor": "function-dir", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Public API for the BioPortal term lookup façade.

The façade resolves accessions and class URIs to BioPortal classes, walks
class hierarchies, fetches cross-ontology mappings and runs the text
annotator, memoising results and pacing calls under a shared rate limit.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any, Dict, Tuple

__version__ = "0.3.0"

_EXPORT_MAP: Dict[str, Tuple[str, str]] = {
    "BioPortalClient": (".client", "BioPortalClient"),
    "BioPortalTermDiscoverer": (".discovery", "BioPortalTermDiscoverer"),
    "DiscoveredTerm": (".discovery", "DiscoveredTerm"),
    "MemoCache": (".caching", "MemoCache"),
    "CallDispatcher": (".network.dispatcher", "CallDispatcher"),
    "ResolutionEngine": (".resolution", "ResolutionEngine"),
    "ResolvedRef": (".resolution", "ResolvedRef"),
    "PaginationAggregator": (".pagination", "PaginationAggregator"),
    "OntologyRef": (".models", "OntologyRef"),
    "OntologyClassRef": (".models", "OntologyClassRef"),
    "ClassRef": (".models", "ClassRef"),
    "ClassMapping": (".models", "ClassMapping"),
    "TextAnnotation": (".models", "TextAnnotation"),
    "NOT_FOUND": (".results", "NOT_FOUND"),
    "BioPortalLookupError": (".errors", "BioPortalLookupError"),
    "ServiceError": (".errors", "ServiceError"),
    "InvalidArgumentError": (".errors", "InvalidArgumentError"),
    "ConfigurationError": (".errors", "ConfigurationError"),
    "LookupSettings": (".settings", "LookupSettings"),
    "get_settings": (".settings", "get_settings"),
    "setup_logging": (".logging_utils", "setup_logging"),
}

__all__ = [*_EXPORT_MAP, "__version__"]

if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .caching import MemoCache
    from .client import BioPortalClient
    from .discovery import BioPortalTermDiscoverer, DiscoveredTerm
    from .errors import (
        BioPortalLookupError,
        ConfigurationError,
        InvalidArgumentError,
        ServiceError,
    )
    from .logging_utils import setup_logging
    from .models import ClassMapping, ClassRef, OntologyClassRef, OntologyRef, TextAnnotation
    from .network.dispatcher import CallDispatcher
    from .pagination import PaginationAggregator
    from .resolution import ResolutionEngine, ResolvedRef
    from .results import NOT_FOUND
    from .settings import LookupSettings, get_settings


def __getattr__(name: str) -> Any:
    """Lazily import public names so ``import BioPortalLookup`` stays cheap."""

    target = _EXPORT_MAP.get(name)
    if target is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
    module = import_module(target[0], __name__)
    value = getattr(module, target[1])
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    """Expose lazily-populated attributes in ``dir()`` results."""

    return sorted(set(globals()) | set(__all__))
