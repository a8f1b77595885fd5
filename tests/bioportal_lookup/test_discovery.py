"""Tests for BioPortalTermDiscoverer."""

import logging

import httpx
import pytest

from BioPortalLookup.discovery import ANNOTATOR_PROVENANCE, BioPortalTermDiscoverer, DiscoveredTerm

from bioportal_fakes import class_path, ontology_link

HUMAN = "http://purl.obolibrary.org/obo/NCBITaxon_9606"
ORGANISM = "http://www.ebi.ac.uk/efo/EFO_0000635"


def _hit(iri, acronym):
    return {
        "annotatedClass": {"@id": iri, "links": {"ontology": ontology_link(acronym)}},
        "hierarchy": [],
        "annotations": [],
    }


def _annotator(answers):
    """Route answering by ``(text, ontologies)``; unknown pairs get ``[]``."""

    def _handler(request: httpx.Request) -> httpx.Response:
        params = request.url.params
        key = (params.get("text"), params.get("ontologies"))
        return httpx.Response(200, json=answers.get(key, []))

    return _handler


class TestGetOntologyTerms:
    def test_preferred_ontologies_first(self, fake_bioportal, make_client):
        fake_bioportal.add(
            "/annotator", _annotator({("homo sapiens", "NCBITaxon,EFO"): [_hit(HUMAN, "NCBITaxon")]})
        )
        discoverer = BioPortalTermDiscoverer(make_client(), preferred_ontologies=["NCBITaxon", "EFO"])
        terms = discoverer.get_ontology_terms("homo sapiens")
        assert terms == [DiscoveredTerm(iri=HUMAN)]
        assert terms[0].provenance == ANNOTATOR_PROVENANCE
        ((_, params),) = fake_bioportal.calls("/annotator")
        assert params["longest_only"] == "true"
        assert params["ontologies"] == "NCBITaxon,EFO"

    def test_falls_back_to_all_ontologies(self, fake_bioportal, make_client):
        fake_bioportal.add("/annotator", _annotator({("homo sapiens", None): [_hit(HUMAN, "NCBITaxon")]}))
        discoverer = BioPortalTermDiscoverer(make_client(), preferred_ontologies="EFO")
        assert [t.iri for t in discoverer.get_ontology_terms("homo sapiens")] == [HUMAN]
        assert fake_bioportal.count("/annotator") == 2

    def test_preferred_only_does_not_fall_back(self, fake_bioportal, make_client):
        fake_bioportal.add("/annotator", _annotator({("homo sapiens", None): [_hit(HUMAN, "NCBITaxon")]}))
        discoverer = BioPortalTermDiscoverer(
            make_client(), preferred_ontologies="EFO", use_preferred_ontologies_only=True
        )
        assert discoverer.get_ontology_terms("homo sapiens") == []
        assert fake_bioportal.count("/annotator") == 1

    def test_type_label_fallback(self, fake_bioportal, make_client):
        fake_bioportal.add("/annotator", _annotator({("organism", None): [_hit(ORGANISM, "EFO")]}))
        discoverer = BioPortalTermDiscoverer(make_client())
        assert [t.iri for t in discoverer.get_ontology_terms("xyzzy", "organism")] == [ORGANISM]

    def test_duplicates_collapse(self, fake_bioportal, make_client):
        fake_bioportal.add(
            "/annotator",
            _annotator({("human", None): [_hit(HUMAN, "NCBITaxon"), _hit(HUMAN, "NCBITaxon")]}),
        )
        assert len(BioPortalTermDiscoverer(make_client()).get_ontology_terms("human")) == 1

    @pytest.mark.parametrize("label", [None, "", "  "])
    def test_blank_label(self, fake_bioportal, make_client, label):
        assert BioPortalTermDiscoverer(make_client()).get_ontology_terms(label) == []
        assert fake_bioportal.count() == 0


class TestFetchLabels:
    def test_labels_looked_up(self, efo_routes, make_client):
        asthma = "http://www.ebi.ac.uk/efo/EFO_0000270"
        efo_routes.add("/annotator", _annotator({("asthma", None): [_hit(asthma, "EFO")]}))
        discoverer = BioPortalTermDiscoverer(make_client(), fetch_labels=True)
        assert discoverer.get_ontology_terms("asthma") == [DiscoveredTerm(iri=asthma, label="asthma")]

    def test_missing_class_dropped(self, fake_bioportal, make_client):
        fake_bioportal.add("/annotator", _annotator({("organism", None): [_hit(ORGANISM, "EFO")]}))
        fake_bioportal.add("/ontologies/EFO", {"name": "Experimental Factor Ontology"})
        discoverer = BioPortalTermDiscoverer(make_client(), fetch_labels=True)
        assert discoverer.get_ontology_terms("organism") == []
        assert fake_bioportal.count(class_path("EFO", ORGANISM)) == 1


class TestFailures:
    def test_service_error_logged_and_empty(self, fake_bioportal, make_client, caplog):
        fake_bioportal.add("/annotator", (500, {"errors": ["down"]}))
        discoverer = BioPortalTermDiscoverer(make_client())
        with caplog.at_level(logging.ERROR, logger="BioPortalLookup.discovery"):
            assert discoverer.get_ontology_terms("asthma") == []
        assert any("discovering terms" in record.getMessage() for record in caplog.records)
