# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.survey",
#   "purpose": "Survey class-URI prefixes across every BioPortal ontology",
#   "sections": [
#     {"id": "prefixsurveyresult", "name": "PrefixSurveyResult", "anchor": "class-prefixsurveyresult", "kind": "class"},
#     {"id": "survey-class-uri-prefixes", "name": "survey_class_uri_prefixes", "anchor": "function-survey-class-uri-prefixes", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Curation helper for :mod:`BioPortalLookup.registry`.

For each ontology listed by ``/ontologies`` the first few classes are sampled
and the namespace of their URIs compared. A single shared namespace is a good
candidate for the registry table; disagreeing samples are reported as
ambiguous. Per-ontology failures are reported and the survey moves on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Mapping, Optional

from .client import class_uri_prefix
from .errors import ServiceError
from .network.dispatcher import CallDispatcher, quote_segment
from .registry import lookup_prefix_by_acronym
from .results import NOT_FOUND

__all__ = ["PrefixSurveyResult", "survey_class_uri_prefixes", "SOURCES"]

logger = logging.getLogger(__name__)

SOURCES = ("registry", "sampled", "ambiguous", "error")


@dataclass(frozen=True)
class PrefixSurveyResult:
    acronym: str
    prefix: Optional[str]
    source: str
    detail: Optional[str] = None


def survey_class_uri_prefixes(
    dispatcher: CallDispatcher,
    *,
    sample: int = 5,
    skip_known: bool = True,
) -> Iterator[PrefixSurveyResult]:
    """Yield one :class:`PrefixSurveyResult` per ontology.

    Args:
        dispatcher: Dispatcher used for every call.
        sample: Number of classes sampled per ontology.
        skip_known: Report registry prefixes without sampling.

    Raises:
        ServiceError: The ontology listing cannot be fetched or is not a JSON array.
    """
    if sample <= 0:
        raise ValueError(f"sample must be positive, got: {sample}")

    ontologies = dispatcher.invoke("/ontologies")
    if ontologies is NOT_FOUND:
        return
    if not isinstance(ontologies, list):
        raise ServiceError("Unexpected ontology listing: expected a JSON array")
    for ontology in ontologies:
        acronym = ontology.get("acronym") if isinstance(ontology, Mapping) else None
        if not acronym:
            continue

        known = lookup_prefix_by_acronym(acronym)
        if skip_known and known is not None:
            yield PrefixSurveyResult(acronym, known, "registry")
            continue

        try:
            yield _sample_prefix(dispatcher, acronym, sample)
        except ServiceError as exc:
            logger.warning(
                "skipping ontology after error",
                extra={"ontology": acronym, "error": str(exc)},
            )
            yield PrefixSurveyResult(acronym, None, "error", detail=str(exc))


def _sample_prefix(dispatcher: CallDispatcher, acronym: str, sample: int) -> PrefixSurveyResult:
    document = dispatcher.invoke(
        f"/ontologies/{quote_segment(acronym)}/classes", {"pagesize": sample}
    )
    if document is NOT_FOUND:
        return PrefixSurveyResult(acronym, None, "error", detail="ontology classes not found")
    if not isinstance(document, Mapping):
        raise ServiceError(f"Unexpected class listing for {acronym}: expected a JSON object")

    prefix = None
    for item in document.get("collection") or []:
        if not isinstance(item, Mapping):
            continue
        candidate = class_uri_prefix(item.get("@id"))
        if candidate is None:
            continue
        if prefix is None:
            prefix = candidate
        elif prefix != candidate:
            logger.warning(
                "multiple class URI prefixes found",
                extra={"ontology": acronym, "prefixes": [prefix, candidate]},
            )
            return PrefixSurveyResult(acronym, None, "ambiguous")
    return PrefixSurveyResult(acronym, prefix, "sampled")
