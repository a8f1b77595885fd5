# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.resolution",
#   "purpose": "Map accessions and class URIs onto a class URI plus owning ontology",
#   "sections": [
#     {"id": "resolvedref", "name": "ResolvedRef", "anchor": "class-resolvedref", "kind": "class"},
#     {"id": "resolutionengine", "name": "ResolutionEngine", "anchor": "class-resolutionengine", "kind": "class"},
#     {"id": "split-index", "name": "class_uri_split_index", "anchor": "function-class-uri-split-index", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Accession → class URI resolution.

BioPortal addresses a class by its owning ontology and its full URI, while
callers usually hold one of:

- a full class URI with no ontology (``http://purl.obolibrary.org/obo/GO_0008150``);
  the ontology is guessed from the URI prefix through the registry's reverse
  index;
- an ontology plus a bare code (``EFO`` + ``EFO_0000270``); the ontology's
  class-URI prefix is prepended;
- an OMIM code, which BioPortal wants verbatim rather than as a URI.

Failing to resolve is not an error: :meth:`ResolutionEngine.resolve` answers
``None`` and no network call follows. Only unusable input raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import InvalidArgumentError
from .models import OntologyRef
from .registry import (
    OBO_PREFIX,
    lookup_acronym_by_prefix,
    lookup_prefix_by_acronym,
    normalize_acronym,
    uses_bare_codes,
)

__all__ = ["ResolvedRef", "ResolutionEngine", "class_uri_split_index", "is_absolute_uri"]

logger = logging.getLogger(__name__)

OntologyLookup = Callable[[str], Optional[OntologyRef]]


@dataclass(frozen=True)
class ResolvedRef:
    """A class URI (or OMIM code) together with the ontology that defines it."""

    class_uri: str
    ontology_acronym: str


def is_absolute_uri(value: str) -> bool:
    return value.startswith(("http://", "https://"))


def class_uri_split_index(class_uri: str) -> int:
    """Index of the character ending the namespace part of ``class_uri``.

    OBO URIs split at the last ``_`` (``.../obo/GO_`` + ``0008150``); others at
    the last ``#``, falling back to the last ``/``. Returns ``-1`` when no
    separator is present.
    """

    index = -1
    if class_uri.startswith(OBO_PREFIX):
        index = class_uri.rfind("_")
    if index == -1:
        index = class_uri.rfind("#")
    if index == -1:
        index = class_uri.rfind("/")
    return index


class ResolutionEngine:
    """Resolve ``(ontology acronym, accession)`` pairs.

    Args:
        ontology_lookup: Returns the :class:`OntologyRef` for a normalised
            acronym, or ``None`` when the ontology does not exist. Usually the
            façade's memoised ``get_ontology``.
    """

    def __init__(self, ontology_lookup: OntologyLookup) -> None:
        self._ontology_lookup = ontology_lookup

    def resolve(self, ontology_acronym: Optional[str], accession: Optional[str]) -> Optional[ResolvedRef]:
        """Resolve ``accession`` to a class URI and owning ontology.

        Returns:
            The resolved reference, or ``None`` when the owning ontology or its
            URI prefix cannot be determined.

        Raises:
            InvalidArgumentError: ``accession`` is missing or blank, or the
                resolved identifier is empty.
        """
        if accession is None or not accession.strip():
            raise InvalidArgumentError("Cannot query BioPortal without a term accession or URI")

        acronym = normalize_acronym(ontology_acronym) if ontology_acronym and ontology_acronym.strip() else None
        class_uri = accession.strip()

        if is_absolute_uri(class_uri):
            if acronym is None:
                acronym = self._acronym_for_uri(class_uri)
                if acronym is None:
                    return None
            if uses_bare_codes(acronym):
                omim_prefix = lookup_prefix_by_acronym(acronym)
                if omim_prefix and class_uri.startswith(omim_prefix):
                    class_uri = class_uri[len(omim_prefix):]
        elif not uses_bare_codes(acronym):
            if acronym is None:
                logger.debug(
                    "cannot resolve a bare accession without an ontology",
                    extra={"accession": accession},
                )
                return None
            ontology = self._ontology_lookup(acronym)
            if ontology is None or not ontology.class_uri_prefix:
                logger.debug(
                    "no class URI prefix for ontology",
                    extra={"ontology": acronym, "accession": accession},
                )
                return None
            class_uri = ontology.class_uri_prefix + class_uri

        class_uri = class_uri.strip()
        if not class_uri:
            logger.error(
                "empty class identifier after resolution",
                extra={"accession": accession, "ontology": ontology_acronym},
            )
            raise InvalidArgumentError(
                f"Cannot invoke BioPortal with <{ontology_acronym}/{accession}>"
            )
        return ResolvedRef(class_uri=class_uri, ontology_acronym=acronym)

    def _acronym_for_uri(self, class_uri: str) -> Optional[str]:
        index = class_uri_split_index(class_uri)
        if index == -1:
            return None
        acronym = lookup_acronym_by_prefix(class_uri[: index + 1])
        if acronym is None:
            logger.debug(
                "cannot infer the ontology of a class URI; specify the ontology",
                extra={"class_uri": class_uri},
            )
            return None
        return normalize_acronym(acronym)
