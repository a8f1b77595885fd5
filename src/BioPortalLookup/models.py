# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.models",
#   "purpose": "Domain records for ontologies, classes, mappings and annotations plus JSON builders",
#   "sections": [
#     {"id": "records", "name": "Domain Records", "anchor": "REC", "kind": "api"},
#     {"id": "builders", "name": "JSON Builders", "anchor": "BLD", "kind": "helpers"}
#   ]
# }
# === /NAVMAP ===

"""Domain records returned by :class:`BioPortalLookup.client.BioPortalClient`.

The records are frozen dataclasses. The ``build_*`` helpers turn the JSON
documents returned by BioPortal (plain dicts and lists) into records; they
read only the fields they need and tolerate missing optional ones.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from .errors import ServiceError

__all__ = [
    "OntologyRef",
    "ClassRef",
    "OntologyClassRef",
    "ClassMapping",
    "HierarchyEntry",
    "AnnotationSpan",
    "TextAnnotation",
    "ontology_acronym_from_link",
    "build_ontology_class",
    "build_class_ref",
    "build_class_mapping",
    "build_text_annotation",
]

_ONTOLOGY_LINK_MARKER = "/ontologies/"

# ============================================================================
# Domain Records
# ============================================================================


@dataclass(frozen=True)
class OntologyRef:
    """Metadata about one ontology.

    Attributes:
        acronym: Canonical acronym (see :func:`BioPortalLookup.registry.normalize_acronym`).
        display_name: Human-readable ontology name reported by the service.
        class_uri_prefix: Prefix used to mint class IRIs, when known or guessed.
    """

    acronym: str
    display_name: str
    class_uri_prefix: Optional[str] = None


@dataclass(frozen=True)
class ClassRef:
    """A pointer to a class: its IRI and the ontology it was reported under."""

    iri: str
    ontology_acronym: str


@dataclass(frozen=True)
class OntologyClassRef:
    """An ontology class (term). Identity is the IRI alone."""

    iri: str
    ontology_acronym: str = field(compare=False)
    preferred_label: Optional[str] = field(default=None, compare=False)
    synonyms: frozenset = field(default_factory=frozenset, compare=False)
    definitions: frozenset = field(default_factory=frozenset, compare=False)
    obsolete: bool = field(default=False, compare=False)

    def as_class_ref(self) -> ClassRef:
        return ClassRef(iri=self.iri, ontology_acronym=self.ontology_acronym)


@dataclass(frozen=True)
class ClassMapping:
    """One cross-ontology equivalence asserted by the service."""

    id: str
    source: str
    process: str
    target_class: ClassRef


@dataclass(frozen=True)
class HierarchyEntry:
    class_ref: ClassRef
    distance: int


@dataclass(frozen=True)
class AnnotationSpan:
    """A matched span of the annotated text (1-based, inclusive positions)."""

    start: int
    end: int
    match_type: str
    matched_text: str


@dataclass(frozen=True)
class TextAnnotation:
    """One annotator hit: the class, its ancestors, and the matched spans."""

    annotated_class: ClassRef
    hierarchy: Tuple[HierarchyEntry, ...] = ()
    spans: Tuple[AnnotationSpan, ...] = ()


# ============================================================================
# JSON Builders
# ============================================================================


def _require(document: Mapping[str, Any], key: str, context: str) -> Any:
    try:
        return document[key]
    except (KeyError, TypeError) as exc:
        raise ServiceError(f"Malformed {context} document: missing '{key}'") from exc


def _as_text_set(value: Any) -> frozenset:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset({value})
    return frozenset(str(item) for item in value if item is not None)


def _as_flag(value: Any) -> bool:
    # Some ontologies serialise booleans as strings.
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def ontology_acronym_from_link(link: str) -> str:
    """Extract the acronym from an ontology link such as ``.../ontologies/EFO``."""

    link = link.rstrip("/")
    marker = link.rfind(_ONTOLOGY_LINK_MARKER)
    if marker != -1:
        return link[marker + len(_ONTOLOGY_LINK_MARKER):]
    return link.rsplit("/", 1)[-1]


def build_ontology_class(ontology_acronym: str, document: Mapping[str, Any]) -> OntologyClassRef:
    """Build an :class:`OntologyClassRef` from a BioPortal class document."""

    label = document.get("prefLabel")
    return OntologyClassRef(
        iri=str(_require(document, "@id", "class")),
        ontology_acronym=ontology_acronym,
        preferred_label=str(label) if label is not None else None,
        synonyms=_as_text_set(document.get("synonym")),
        definitions=_as_text_set(document.get("definition")),
        obsolete=_as_flag(document.get("obsolete")),
    )


def build_class_ref(document: Mapping[str, Any]) -> ClassRef:
    """Build a :class:`ClassRef` from an item carrying ``@id`` and ``links.ontology``."""

    links = document.get("links") or {}
    ontology_link = links.get("ontology")
    if not ontology_link:
        raise ServiceError("Malformed class reference: missing 'links.ontology'")
    return ClassRef(
        iri=str(_require(document, "@id", "class reference")),
        ontology_acronym=ontology_acronym_from_link(str(ontology_link)),
    )


def build_class_mapping(document: Mapping[str, Any]) -> ClassMapping:
    """Build a :class:`ClassMapping`.

    The ``classes`` pair always lists the queried class first; the second item
    is the target class in the other ontology.
    """

    classes = _require(document, "classes", "mapping")
    if not isinstance(classes, list) or len(classes) < 2:
        raise ServiceError("Malformed mapping document: expected two classes")
    return ClassMapping(
        id=str(document.get("id") or document.get("@id") or ""),
        source=str(document.get("source") or ""),
        process=str(document.get("process") or ""),
        target_class=build_class_ref(classes[1]),
    )


def _iter_items(value: Any) -> Iterable[Mapping[str, Any]]:
    if not value:
        return ()
    return value


def build_text_annotation(document: Mapping[str, Any]) -> TextAnnotation:
    """Build a :class:`TextAnnotation` from one annotator result item."""

    annotated = build_class_ref(_require(document, "annotatedClass", "annotation"))
    hierarchy: List[HierarchyEntry] = [
        HierarchyEntry(
            class_ref=build_class_ref(_require(item, "annotatedClass", "hierarchy")),
            distance=int(item.get("distance", 0)),
        )
        for item in _iter_items(document.get("hierarchy"))
    ]
    spans: List[AnnotationSpan] = [
        AnnotationSpan(
            start=int(_require(item, "from", "annotation span")),
            end=int(_require(item, "to", "annotation span")),
            match_type=str(item.get("matchType") or ""),
            matched_text=str(item.get("text") or ""),
        )
        for item in _iter_items(document.get("annotations"))
    ]
    return TextAnnotation(
        annotated_class=annotated,
        hierarchy=tuple(hierarchy),
        spans=tuple(spans),
    )
