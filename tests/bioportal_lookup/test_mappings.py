"""Tests for BioPortalClient.get_ontology_class_mappings.

Tests cover:
- Unfiltered mapping lists
- Preferred-ontology filtering, strict and lenient
- Negative caching of classes without mappings
"""

import pytest

from BioPortalLookup.errors import ServiceError
from BioPortalLookup.models import ClassRef, OntologyClassRef

from bioportal_fakes import class_path, ontology_link

ASTHMA = "http://www.ebi.ac.uk/efo/EFO_0000270"
MAPPINGS_PATH = class_path("EFO", ASTHMA, "mappings")


def _mapping(target_iri, target_acronym, source="LOOM"):
    return {
        "id": f"mapping-{target_acronym}",
        "source": source,
        "process": "lexical",
        "classes": [
            {"@id": ASTHMA, "links": {"ontology": ontology_link("EFO")}},
            {"@id": target_iri, "links": {"ontology": ontology_link(target_acronym)}},
        ],
    }


@pytest.fixture
def asthma():
    return OntologyClassRef(iri=ASTHMA, ontology_acronym="EFO", preferred_label="asthma")


@pytest.fixture
def mapped(fake_bioportal):
    fake_bioportal.add(
        MAPPINGS_PATH,
        [
            _mapping("http://purl.bioontology.org/ontology/MESH/D001249", "MESH"),
            _mapping("http://purl.obolibrary.org/obo/DOID_2841", "DOID", source="CUI"),
        ],
    )
    return fake_bioportal


class TestUnfiltered:
    def test_all_mappings(self, mapped, make_client, asthma):
        mappings = make_client().get_ontology_class_mappings(asthma)
        assert [m.target_class.ontology_acronym for m in mappings] == ["MESH", "DOID"]
        assert mappings[0].source == "LOOM"
        assert mappings[0].process == "lexical"
        assert mappings[1].target_class == ClassRef("http://purl.obolibrary.org/obo/DOID_2841", "DOID")

    def test_cached_by_iri(self, mapped, make_client, asthma):
        """A ClassRef and a full class with the same IRI share one entry."""
        client = make_client()
        client.get_ontology_class_mappings(asthma)
        client.get_ontology_class_mappings(asthma.as_class_ref(), "MESH")
        assert mapped.count(MAPPINGS_PATH) == 1

    def test_collection_payload(self, fake_bioportal, make_client, asthma):
        fake_bioportal.add(MAPPINGS_PATH, {"collection": [_mapping("http://x/M1", "MESH")]})
        assert len(make_client().get_ontology_class_mappings(asthma)) == 1


class TestPreferredFilter:
    """Filtering by the target's ontology."""

    def test_keeps_preferred(self, mapped, make_client, asthma):
        mappings = make_client().get_ontology_class_mappings(asthma, "mesh")
        assert [m.target_class.ontology_acronym for m in mappings] == ["MESH"]

    def test_iterable_of_acronyms(self, mapped, make_client, asthma):
        mappings = make_client().get_ontology_class_mappings(asthma, ["DOID", "GO"])
        assert [m.target_class.ontology_acronym for m in mappings] == ["DOID"]

    def test_lenient_falls_back_to_all(self, mapped, make_client, asthma):
        mappings = make_client().get_ontology_class_mappings(asthma, "GO, HP")
        assert len(mappings) == 2

    def test_strict_returns_none(self, mapped, make_client, asthma):
        assert make_client().get_ontology_class_mappings(asthma, "GO", strict_preferred=True) is None

    def test_acronyms_matched_exactly(self, mapped, make_client, asthma):
        """'MES' does not select MESH."""
        assert make_client().get_ontology_class_mappings(asthma, "MES", strict_preferred=True) is None


class TestNoMappings:
    def test_empty_list_is_none_and_cached(self, fake_bioportal, make_client, asthma):
        fake_bioportal.add(MAPPINGS_PATH, [])
        client = make_client()
        assert client.get_ontology_class_mappings(asthma) is None
        assert client.get_ontology_class_mappings(asthma) is None
        assert fake_bioportal.count(MAPPINGS_PATH) == 1

    def test_not_found_is_none(self, fake_bioportal, make_client, asthma):
        assert make_client().get_ontology_class_mappings(asthma) is None

    def test_malformed_mapping_raises(self, fake_bioportal, make_client, asthma):
        fake_bioportal.add(MAPPINGS_PATH, [{"classes": [{"@id": ASTHMA}]}])
        with pytest.raises(ServiceError):
            make_client().get_ontology_class_mappings(asthma)
