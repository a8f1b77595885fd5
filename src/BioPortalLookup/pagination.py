# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.pagination",
#   "purpose": "Collect ontology classes from paged and flat BioPortal listings",
#   "sections": [
#     {"id": "paginationaggregator", "name": "PaginationAggregator", "anchor": "class-paginationaggregator", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Aggregation of BioPortal class listings.

Paged endpoints (``children``, ``descendants``) answer with a page envelope::

    {"page": 1, "pageCount": 3, "collection": [{...}, ...]}

The first response is page 1; pages 2 through ``pageCount`` are requested
with ``page=<n>``. A missing ``pageCount`` means one page. A page without a
``collection``, or one reported missing, contributes nothing. Flat endpoints
(``ancestors``, ``parents``) answer with a plain JSON array.

Classes are gathered into a set, so duplicates across pages collapse by IRI.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Set

from .models import OntologyClassRef, build_ontology_class
from .network.dispatcher import CallDispatcher, Document
from .results import NOT_FOUND

__all__ = ["PaginationAggregator"]

logger = logging.getLogger(__name__)


class PaginationAggregator:
    """Walk class listings through a :class:`CallDispatcher`."""

    def __init__(self, dispatcher: CallDispatcher) -> None:
        self._dispatcher = dispatcher

    def collect_paged(
        self,
        path: str,
        ontology_acronym: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Set[OntologyClassRef]:
        """Fetch every page of ``path`` and return the union of their classes."""

        first = self._dispatcher.invoke(path, params)
        if first is NOT_FOUND:
            return set()

        classes: Set[OntologyClassRef] = set()
        classes.update(build_ontology_class(ontology_acronym, item) for item in _as_items(first))

        page_count = _page_count(first)
        for page in range(2, page_count + 1):
            page_params = dict(params or {})
            page_params["page"] = page
            document = self._dispatcher.invoke(path, page_params)
            if document is NOT_FOUND:
                logger.debug(
                    "page reported missing",
                    extra={"path": path, "page": page, "page_count": page_count},
                )
                continue
            classes.update(build_ontology_class(ontology_acronym, item) for item in _as_items(document))

        logger.debug(
            "collected paged classes",
            extra={"path": path, "pages": page_count, "classes": len(classes)},
        )
        return classes

    def collect_unpaged(
        self,
        path: str,
        ontology_acronym: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Set[OntologyClassRef]:
        """Fetch a flat class array from ``path``."""

        document = self._dispatcher.invoke(path, params)
        if document is NOT_FOUND:
            return set()
        return {build_ontology_class(ontology_acronym, item) for item in _as_items(document)}


def _page_count(document: Document) -> int:
    if not isinstance(document, Mapping):
        return 1
    value = document.get("pageCount")
    if value is None:
        return 1
    try:
        return max(int(value), 1)
    except (TypeError, ValueError):
        logger.debug("unparseable pageCount", extra={"page_count": repr(value)})
        return 1


def _as_items(document: Document) -> Iterable[Mapping[str, Any]]:
    if isinstance(document, list):
        return document
    return document.get("collection") or []
