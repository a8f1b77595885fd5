# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.registry",
#   "purpose": "Curated ontology acronym to class-URI prefix table and its reverse index",
#   "sections": [
#     {"id": "constants", "name": "Constants", "anchor": "CON", "kind": "constants"},
#     {"id": "tables", "name": "Prefix Tables", "anchor": "TAB", "kind": "constants"},
#     {"id": "lookups", "name": "Lookup Helpers", "anchor": "LKP", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Prefix Registry: known class-URI prefixes for BioPortal ontologies.

Since most ontologies moved to OWL/RDF it is no longer obvious which URI
prefix an ontology uses to mint its class IRIs, and for ontologies spanning
several namespaces the question has no single answer. The table below records
the known cases. It is curated by hand (see
:func:`BioPortalLookup.survey.survey_class_uri_prefixes`) and never changes at
runtime; gaps are covered by the heuristic probe in
:meth:`BioPortalLookup.client.BioPortalClient.get_ontology`.

Many OBO Foundry ontologies share ``http://purl.obolibrary.org/obo/``. For
those the reverse index is keyed on ``<prefix><ACRONYM>_`` so that the
accession's own acronym segment (``GO_0005623``) picks the owning ontology.

Example:
    >>> lookup_prefix_by_acronym("EFO")
    'http://www.ebi.ac.uk/efo/'
    >>> lookup_acronym_by_prefix("http://purl.obolibrary.org/obo/GO_")
    'GO'
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping, Optional

__all__ = [
    "OBO_PREFIX",
    "OMIM_ACRONYM",
    "CASE_SENSITIVE_ACRONYMS",
    "KNOWN_ONTOLOGY_CLASS_URI_PREFIXES",
    "URI_PREFIX_TO_ACRONYM",
    "normalize_acronym",
    "lookup_prefix_by_acronym",
    "lookup_acronym_by_prefix",
    "uses_bare_codes",
]

# ============================================================================
# Constants
# ============================================================================

OBO_PREFIX = "http://purl.obolibrary.org/obo/"

# OMIM is addressed by its terminal code, not by the class URI.
OMIM_ACRONYM = "OMIM"

# Acronyms whose correct form is mixed case; upper-casing them breaks lookups.
CASE_SENSITIVE_ACRONYMS = frozenset({"NCBITaxon"})

# ============================================================================
# Prefix Tables
# ============================================================================

_PREFIXES: Dict[str, str] = {
    "EFO": "http://www.ebi.ac.uk/efo/",
    "TEO": "http://informatics.mayo.edu/TEO.owl#",
    "HIVO0004": "http://bioportal/bioontology.org/ontologies/HIVO0004#",
    "BP-METADATA": "http://protege.stanford.edu/ontologies/metadata/BioPortalMetadata.owl#",
    "PEO": "http://knoesis.wright.edu/ParasiteExperiment.owl#",
    "CCON": "http://cerrado.linkeddata.es/ecology/ccon#",
    "IDODEN": "http://purl.bioontology.org/ontology/",
    "BRIDG": "http://www.bridgmodel.org/owl#",
    "ICD11-BODYSYSTEM": "http://who.int/bodysystem.owl#",
    "AERO": OBO_PREFIX,
    "ONLIRA": "http://vavlab.ee.boun.edu.tr/carera/onlira.owl#",
    "OGI": "http://purl.obolibrary.org/obo/OGI.owl#",
    "PROVO": "http://www.w3.org/ns/prov#",
    "NEOMARK3": "http://www.neomark.eu/ontologies/neomark.owl#",
    "NEOMARK4": "http://neomark.owl#",
    "MIXS": "http://gensc.org/ns/mixs/",
    "CTONT": "http://epoch.stanford.edu/ClinicalTrialOntology.owl#OperationalPlan",
    "BAO": "http://www.bioassayontology.org/bao#",
    "SIO": "http://semanticscience.org/resource/",
    "NCBITAXON": "http://purl.bioontology.org/ontology/NCBITAXON/",
    "UO": OBO_PREFIX,
    "UBERON": OBO_PREFIX,
    "MA": OBO_PREFIX,
    "IAO": OBO_PREFIX,
    "OBI": OBO_PREFIX,
    "BFO": OBO_PREFIX,
    "GO": OBO_PREFIX,
    "HP": OBO_PREFIX,
    "PO": OBO_PREFIX,
    "BTO": OBO_PREFIX,
    "CL": OBO_PREFIX,
    "CLO": OBO_PREFIX,
    "NCBITaxon": OBO_PREFIX,
    "IDO": OBO_PREFIX,
    "CHEBI": OBO_PREFIX,
    "ORDO": "http://www.orpha.net/ORDO/",
    OMIM_ACRONYM: "http://omim.org/entry/",
    "MESH": "http://purl.bioontology.org/ontology/MESH/",
    "LNC": "http://purl.bioontology.org/ontology/LNC/",
}


def _build_reverse_index(prefixes: Mapping[str, str]) -> Dict[str, str]:
    """Derive the URI prefix → acronym index from ``prefixes``."""

    reverse: Dict[str, str] = {}
    for acronym, prefix in prefixes.items():
        if prefix == OBO_PREFIX:
            reverse[f"{OBO_PREFIX}{acronym}_"] = acronym
        else:
            reverse[prefix] = acronym
    return reverse


KNOWN_ONTOLOGY_CLASS_URI_PREFIXES: Mapping[str, str] = MappingProxyType(dict(_PREFIXES))
URI_PREFIX_TO_ACRONYM: Mapping[str, str] = MappingProxyType(_build_reverse_index(_PREFIXES))

# ============================================================================
# Lookup Helpers
# ============================================================================


def normalize_acronym(acronym: str) -> str:
    """Return the canonical form of ``acronym`` (upper case, bar documented exceptions)."""

    acronym = acronym.strip()
    if acronym in CASE_SENSITIVE_ACRONYMS:
        return acronym
    return acronym.upper()


def lookup_prefix_by_acronym(acronym: Optional[str]) -> Optional[str]:
    """Return the curated class-URI prefix for ``acronym``, if any."""

    if not acronym:
        return None
    return KNOWN_ONTOLOGY_CLASS_URI_PREFIXES.get(acronym)


def lookup_acronym_by_prefix(uri_prefix: Optional[str]) -> Optional[str]:
    """Return the acronym registered for ``uri_prefix``, if any."""

    if not uri_prefix:
        return None
    return URI_PREFIX_TO_ACRONYM.get(uri_prefix)


def uses_bare_codes(acronym: Optional[str]) -> bool:
    """Whether the service expects ``acronym``'s terminal code instead of a URI."""

    return acronym is not None and acronym.upper() == OMIM_ACRONYM
