# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.discovery",
#   "purpose": "Discover ontology terms for free-text labels through the BioPortal annotator",
#   "sections": [
#     {"id": "discoveredterm", "name": "DiscoveredTerm", "anchor": "class-discoveredterm", "kind": "class"},
#     {"id": "bioportaltermdiscoverer", "name": "BioPortalTermDiscoverer", "anchor": "class-bioportaltermdiscoverer", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Term discovery for sample annotation.

Given a value label (``"homo sapiens"``) and optionally the label of its type
(``"organism"``), find ontology classes naming it. The annotator is queried
with ``longest_only=true``; preferred ontologies are tried first, then all
ontologies unless restricted. When the value matches nothing the type label
is tried instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from .client import BioPortalClient
from .errors import BioPortalLookupError

__all__ = ["DiscoveredTerm", "BioPortalTermDiscoverer", "ANNOTATOR_PROVENANCE"]

logger = logging.getLogger(__name__)

ANNOTATOR_PROVENANCE = "BioPortal Annotator"


@dataclass(frozen=True)
class DiscoveredTerm:
    iri: str
    score: Optional[float] = None
    label: Optional[str] = None
    provenance: str = ANNOTATOR_PROVENANCE


class BioPortalTermDiscoverer:
    """Map free-text labels onto ontology terms.

    Args:
        client: Façade used for annotator calls and label lookups.
        preferred_ontologies: Acronyms to search first (comma-separated or iterable).
        use_preferred_ontologies_only: Do not fall back to all ontologies.
        fetch_labels: Look up each term's preferred label. Terms whose class
            cannot be fetched are dropped.
    """

    def __init__(
        self,
        client: BioPortalClient,
        *,
        preferred_ontologies: Union[str, Iterable[str], None] = None,
        use_preferred_ontologies_only: bool = False,
        fetch_labels: bool = False,
    ) -> None:
        self.client = client
        if preferred_ontologies is not None and not isinstance(preferred_ontologies, str):
            preferred_ontologies = ",".join(preferred_ontologies)
        self.preferred_ontologies = (preferred_ontologies or "").strip() or None
        self.use_preferred_ontologies_only = use_preferred_ontologies_only
        self.fetch_labels = fetch_labels

    def get_ontology_terms(self, value_label: Optional[str], type_label: Optional[str] = None) -> List[DiscoveredTerm]:
        """Terms matching ``value_label``, else ``type_label``; ``[]`` when none."""
        value_label = (value_label or "").strip()
        if not value_label:
            return []
        terms = self._discover(value_label)
        if terms or not type_label or not type_label.strip():
            return terms
        logger.debug(
            "no terms for value label, trying type label",
            extra={"value_label": value_label, "type_label": type_label},
        )
        return self._discover(type_label.strip())

    def _discover(self, text: str) -> List[DiscoveredTerm]:
        try:
            if self.preferred_ontologies is None:
                annotations = self.client.get_text_annotations(text, longest_only=True)
            else:
                annotations = self.client.get_text_annotations(
                    text, longest_only=True, ontologies=self.preferred_ontologies
                )
                if not annotations and not self.use_preferred_ontologies_only:
                    annotations = self.client.get_text_annotations(text, longest_only=True)

            seen = set()
            terms: List[DiscoveredTerm] = []
            for annotation in annotations:
                class_ref = annotation.annotated_class
                if class_ref.iri in seen:
                    continue
                seen.add(class_ref.iri)

                label = None
                if self.fetch_labels:
                    ontology_class = self.client.get_ontology_class(
                        class_ref.ontology_acronym, class_ref.iri
                    )
                    if ontology_class is None:
                        continue
                    label = ontology_class.preferred_label
                terms.append(DiscoveredTerm(iri=class_ref.iri, label=label))
            return terms
        except BioPortalLookupError as exc:
            logger.error(
                "error while discovering terms; returning no terms",
                extra={"text": text, "error": str(exc)},
            )
            logger.debug("discovery failure details", exc_info=True)
            return []
