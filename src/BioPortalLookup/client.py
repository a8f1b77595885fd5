# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.client",
#   "purpose": "Caching, rate-limited facade over the BioPortal REST API",
#   "sections": [
#     {"id": "bioportalclient", "name": "BioPortalClient", "anchor": "class-bioportalclient", "kind": "class"},
#     {"id": "ontology", "name": "Ontology Lookups", "anchor": "ONT", "kind": "api"},
#     {"id": "classes", "name": "Class Lookups", "anchor": "CLS", "kind": "api"},
#     {"id": "annotator", "name": "Text Annotator", "anchor": "ANN", "kind": "api"},
#     {"id": "mappings", "name": "Class Mappings", "anchor": "MAP", "kind": "api"},
#     {"id": "helpers", "name": "Helpers", "anchor": "HLP", "kind": "helpers"}
#   ]
# }
# === /NAVMAP ===

"""BioPortal lookup façade.

:class:`BioPortalClient` answers ontology, class, hierarchy, mapping and
annotation queries. Ontology records, classes and mapping lists are memoised
in three :class:`~BioPortalLookup.caching.MemoCache` instances, including
negative answers, so a missing term costs at most one call per cache lifetime.
Every request goes through a :class:`~BioPortalLookup.network.CallDispatcher`
that shares the process-wide rate limit.

Example:
    >>> from BioPortalLookup import BioPortalClient
    >>> with BioPortalClient.from_settings() as client:
    ...     term = client.get_ontology_class("EFO", "EFO_0000270")
    ...     term.preferred_label
    'asthma'

A term that cannot be resolved or does not exist yields ``None``; an
unreachable or misbehaving service raises
:class:`~BioPortalLookup.errors.ServiceError`.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

import httpx

from .caching import CacheStats, MemoCache
from .errors import ConfigurationError, InvalidArgumentError, ServiceError
from .models import (
    ClassMapping,
    ClassRef,
    OntologyClassRef,
    OntologyRef,
    TextAnnotation,
    build_class_mapping,
    build_ontology_class,
    build_text_annotation,
)
from .network.client import create_http_client
from .network.dispatcher import CallDispatcher, quote_segment
from .network.instrumentation import CallStatistics
from .pagination import PaginationAggregator
from .ratelimit import RateLimitManager, rate_specs_from_settings
from .registry import lookup_prefix_by_acronym, normalize_acronym
from .resolution import ResolutionEngine, ResolvedRef
from .results import NOT_FOUND, NotFound
from .settings import DEFAULT_BASE_URL, CacheSettings, LookupSettings, get_settings

__all__ = [
    "BioPortalClient",
    "RELATIONS",
    "class_uri_prefix",
    "parse_acronym_list",
    "format_query_value",
]

logger = logging.getLogger(__name__)

# Number of sample classes requested when guessing an ontology's URI prefix.
_PREFIX_PROBE_PAGE_SIZE = 2

_PAGED_RELATIONS = frozenset({"children", "descendants"})
_FLAT_RELATIONS = frozenset({"ancestors", "parents"})
RELATIONS = tuple(sorted(_PAGED_RELATIONS | _FLAT_RELATIONS))

ClassLike = Union[OntologyClassRef, ClassRef]


class BioPortalClient:
    """Façade over the BioPortal REST API with memoisation and rate limiting.

    Args:
        api_key: BioPortal API key.
        base_url: API root, e.g. a local mirror.
        http_client: HTTP client to send through; the shared client otherwise.
            An injected client is closed by :meth:`close`.
        rate_limiter: Defaults to the process-wide limiter.
        statistics: Call statistics collector; ``None`` disables reporting.
        cache: TTL and size bound applied to each of the three caches.
        clock: Monotonic clock for cache expiry.
        dispatcher: Pre-built dispatcher; overrides the transport arguments.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        http_client: Optional[httpx.Client] = None,
        rate_limiter: Optional[RateLimitManager] = None,
        statistics: Optional[CallStatistics] = None,
        cache: Optional[CacheSettings] = None,
        clock: Callable[[], float] = time.monotonic,
        dispatcher: Optional[CallDispatcher] = None,
    ) -> None:
        if dispatcher is None:
            if not api_key:
                raise ConfigurationError("A BioPortal API key is required")
            dispatcher = CallDispatcher(
                api_key,
                base_url=base_url,
                http_client=http_client,
                rate_limiter=rate_limiter,
                statistics=statistics,
            )
        self._dispatcher = dispatcher
        self._pages = PaginationAggregator(dispatcher)
        self._resolver = ResolutionEngine(self.get_ontology)

        cache = cache or CacheSettings()
        self._ontologies: MemoCache[str, OntologyRef] = MemoCache(
            "ontologies", max_size=cache.max_size, ttl=cache.ttl, clock=clock
        )
        self._terms: MemoCache[str, OntologyClassRef] = MemoCache(
            "terms", max_size=cache.max_size, ttl=cache.ttl, clock=clock
        )
        self._mappings: MemoCache[str, Tuple[ClassMapping, ...]] = MemoCache(
            "mappings", max_size=cache.max_size, ttl=cache.ttl, clock=clock
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[LookupSettings] = None,
        *,
        http_client: Optional[httpx.Client] = None,
        rate_limiter: Optional[RateLimitManager] = None,
    ) -> "BioPortalClient":
        """Build a client from :class:`LookupSettings` (environment by default).

        Without ``settings`` the client shares the process-wide rate limiter
        and HTTP client. Explicit ``settings`` get their own limiter and HTTP
        client built from ``settings.rate_limit`` and ``settings.http``, unless
        ``rate_limiter`` or ``http_client`` are passed in.

        Raises:
            ConfigurationError: No API key is configured.
        """
        shared_transport = settings is None
        settings = settings or get_settings()
        api_key = settings.api_key_value()
        if not api_key:
            raise ConfigurationError(
                "No BioPortal API key configured; set BIOPORTAL_API_KEY"
            )
        if not shared_transport:
            if rate_limiter is None:
                rate_limiter = RateLimitManager(
                    rate_specs_from_settings(settings.rate_limit.rate, smooth=settings.rate_limit.smooth),
                    mode=settings.rate_limit.mode,
                )
            if http_client is None:
                http_client = create_http_client(settings.http)
        statistics = None
        if settings.statistics.enabled:
            statistics = CallStatistics(settings.statistics.report_interval_ms)
        return cls(
            api_key,
            base_url=settings.http.base_url,
            http_client=http_client,
            rate_limiter=rate_limiter,
            statistics=statistics,
            cache=settings.cache,
        )

    @property
    def dispatcher(self) -> CallDispatcher:
        return self._dispatcher

    # ------------------------------------------------------------------
    # Ontology Lookups
    # ------------------------------------------------------------------

    def get_ontology(self, acronym: str) -> Optional[OntologyRef]:
        """Return the ontology registered under ``acronym``, or ``None``.

        The class-URI prefix comes from the curated registry when listed there,
        otherwise it is guessed from the URI of a sample class. The guess can
        fail, in which case the record carries no prefix.
        """
        if acronym is None or not acronym.strip():
            raise InvalidArgumentError("Ontology acronym must be a non-empty string")
        key = normalize_acronym(acronym)
        result = self._ontologies.get_or_fetch(key, lambda: self._fetch_ontology(key))
        return None if result is NOT_FOUND else result

    def _fetch_ontology(self, acronym: str) -> Union[OntologyRef, NotFound]:
        document = self._dispatcher.invoke(f"/ontologies/{quote_segment(acronym)}")
        if document is NOT_FOUND:
            logger.debug("ontology not found", extra={"ontology": acronym})
            return NOT_FOUND
        name = document.get("name") if isinstance(document, Mapping) else None
        prefix = lookup_prefix_by_acronym(acronym) or self._probe_class_uri_prefix(acronym)
        return OntologyRef(
            acronym=acronym,
            display_name=str(name) if name is not None else acronym,
            class_uri_prefix=prefix,
        )

    def _probe_class_uri_prefix(self, acronym: str) -> Optional[str]:
        path = f"/ontologies/{quote_segment(acronym)}/classes"
        try:
            document = self._dispatcher.invoke(path, {"pagesize": _PREFIX_PROBE_PAGE_SIZE})
        except ServiceError as exc:
            logger.warning(
                "could not sample classes to guess the class URI prefix",
                extra={"ontology": acronym, "error": str(exc)},
            )
            return None
        if document is NOT_FOUND or not isinstance(document, Mapping):
            return None
        collection = document.get("collection") or []
        if not collection or not isinstance(collection[0], Mapping):
            return None
        return class_uri_prefix(collection[0].get("@id"))

    # ------------------------------------------------------------------
    # Class Lookups
    # ------------------------------------------------------------------

    def resolve(self, ontology_acronym: Optional[str], accession: str) -> Optional[ResolvedRef]:
        """Resolve ``accession`` to a class URI; see :class:`ResolutionEngine`."""
        return self._resolver.resolve(ontology_acronym, accession)

    def get_ontology_class(
        self, ontology_acronym: Optional[str], accession: str
    ) -> Optional[OntologyClassRef]:
        """Return the class identified by ``accession``, or ``None``.

        ``accession`` may be a bare code (``EFO_0000270``) or a full class URI;
        both forms share one cache entry.
        """
        resolved = self._resolver.resolve(ontology_acronym, accession)
        if resolved is None:
            return None
        result = self._terms.get_or_fetch(resolved.class_uri, lambda: self._fetch_class(resolved))
        return None if result is NOT_FOUND else result

    def _fetch_class(self, resolved: ResolvedRef) -> Union[OntologyClassRef, NotFound]:
        document = self._dispatcher.invoke(_class_path(resolved.ontology_acronym, resolved.class_uri))
        if document is NOT_FOUND:
            return NOT_FOUND
        return build_ontology_class(resolved.ontology_acronym, document)

    def get_class_children(self, ontology_acronym: Optional[str], accession: str) -> Optional[Set[OntologyClassRef]]:
        """Direct subclasses of the class."""
        return self.get_related_classes("children", ontology_acronym, accession)

    def get_class_descendants(self, ontology_acronym: Optional[str], accession: str) -> Optional[Set[OntologyClassRef]]:
        """Transitive subclasses of the class."""
        return self.get_related_classes("descendants", ontology_acronym, accession)

    def get_class_ancestors(self, ontology_acronym: Optional[str], accession: str) -> Optional[Set[OntologyClassRef]]:
        """Transitive superclasses of the class."""
        return self.get_related_classes("ancestors", ontology_acronym, accession)

    def get_class_parents(self, ontology_acronym: Optional[str], accession: str) -> Optional[Set[OntologyClassRef]]:
        """Direct superclasses of the class."""
        return self.get_related_classes("parents", ontology_acronym, accession)

    def get_related_classes(
        self, relation: str, ontology_acronym: Optional[str], accession: str
    ) -> Optional[Set[OntologyClassRef]]:
        """Classes reached from the class through ``relation``.

        Returns ``None`` when the class cannot be resolved. These listings are
        not cached.
        """
        if relation not in _PAGED_RELATIONS and relation not in _FLAT_RELATIONS:
            raise InvalidArgumentError(
                f"Unknown class relation {relation!r}; expected one of {', '.join(RELATIONS)}"
            )
        resolved = self._resolver.resolve(ontology_acronym, accession)
        if resolved is None:
            return None
        path = f"{_class_path(resolved.ontology_acronym, resolved.class_uri)}/{relation}"
        if relation in _PAGED_RELATIONS:
            return self._pages.collect_paged(path, resolved.ontology_acronym)
        return self._pages.collect_unpaged(path, resolved.ontology_acronym)

    # ------------------------------------------------------------------
    # Text Annotator
    # ------------------------------------------------------------------

    def get_text_annotations(self, text: str, **params: Any) -> List[TextAnnotation]:
        """Run the BioPortal annotator over ``text``.

        Extra keyword arguments are passed as annotator parameters, for
        instance ``ontologies=["EFO", "GO"]`` or ``longest_only=True``. Results
        are not cached.
        """
        if text is None or not text.strip():
            raise InvalidArgumentError("Cannot annotate an empty text")
        query: Dict[str, str] = {"text": text}
        for name, value in params.items():
            if value is None:
                continue
            query[name] = format_query_value(value)

        document = self._dispatcher.invoke("/annotator", query)
        if document is NOT_FOUND:
            return []
        if not isinstance(document, list):
            raise ServiceError("Unexpected annotator payload: expected a JSON array")
        return [build_text_annotation(item) for item in document]

    # ------------------------------------------------------------------
    # Class Mappings
    # ------------------------------------------------------------------

    def get_ontology_class_mappings(
        self,
        ontology_class: ClassLike,
        preferred_ontologies: Union[str, Iterable[str], None] = None,
        strict_preferred: bool = False,
    ) -> Optional[List[ClassMapping]]:
        """Mappings from ``ontology_class`` to classes in other ontologies.

        Args:
            ontology_class: The source class.
            preferred_ontologies: Comma-separated acronyms (or an iterable of
                them); keeps only mappings whose target lies in one of them.
            strict_preferred: When no mapping targets a preferred ontology,
                return ``None`` instead of the unfiltered list.

        Returns:
            The mappings, or ``None`` when there are none.
        """
        iri = ontology_class.iri
        mappings = self._mappings.get_or_fetch(iri, lambda: self._fetch_mappings(ontology_class))
        if mappings is NOT_FOUND:
            return None

        preferred = parse_acronym_list(preferred_ontologies)
        if not preferred:
            return list(mappings)

        filtered = [
            mapping
            for mapping in mappings
            if normalize_acronym(mapping.target_class.ontology_acronym) in preferred
        ]
        if filtered:
            return filtered
        return None if strict_preferred else list(mappings)

    def _fetch_mappings(self, ontology_class: ClassLike) -> Union[Tuple[ClassMapping, ...], NotFound]:
        path = f"{_class_path(ontology_class.ontology_acronym, ontology_class.iri)}/mappings"
        document = self._dispatcher.invoke(path)
        if document is NOT_FOUND:
            return NOT_FOUND
        items = document if isinstance(document, list) else document.get("collection") or []
        mappings = tuple(build_class_mapping(item) for item in items)
        if not mappings:
            return NOT_FOUND
        return mappings

    # ------------------------------------------------------------------
    # Diagnostics & lifecycle
    # ------------------------------------------------------------------

    def cache_stats(self) -> Dict[str, CacheStats]:
        """Counters for the ``ontologies``, ``terms`` and ``mappings`` caches."""
        return {cache.name: cache.stats() for cache in (self._ontologies, self._terms, self._mappings)}

    def clear_caches(self) -> None:
        for cache in (self._ontologies, self._terms, self._mappings):
            cache.clear()

    def close(self) -> None:
        self._dispatcher.close()

    def __enter__(self) -> "BioPortalClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------


def _class_path(ontology_acronym: str, class_uri: str) -> str:
    # Class endpoints are addressed by the upper-cased acronym.
    return f"/ontologies/{quote_segment(ontology_acronym.upper())}/classes/{quote_segment(class_uri)}"


def class_uri_prefix(class_uri: Optional[str]) -> Optional[str]:
    """Namespace part of ``class_uri``: up to the last ``#``, else the last ``/``."""

    if not class_uri:
        return None
    index = class_uri.rfind("#")
    if index == -1:
        index = class_uri.rfind("/")
    if index == -1:
        return None
    return class_uri[: index + 1]


def parse_acronym_list(value: Union[str, Iterable[str], None]) -> Set[str]:
    """Normalised acronyms from ``"EFO, GO"`` or ``["EFO", "GO"]``."""

    if value is None:
        return set()
    items = value.split(",") if isinstance(value, str) else value
    return {normalize_acronym(item) for item in items if item and item.strip()}


def format_query_value(value: Any) -> str:
    """Render an annotator parameter the way the REST API expects it."""

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, Iterable):
        return ",".join(format_query_value(item) for item in value)
    return str(value)
