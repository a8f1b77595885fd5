"""Tests for the class-URI prefix survey."""

import pytest

from BioPortalLookup.errors import ServiceError
from BioPortalLookup.network import CallDispatcher
from BioPortalLookup.survey import PrefixSurveyResult, survey_class_uri_prefixes

from bioportal_fakes import API_KEY, BASE_URL, class_doc


@pytest.fixture
def dispatcher(fake_bioportal, fast_limiter):
    return CallDispatcher(
        API_KEY, base_url=BASE_URL, http_client=fake_bioportal.http_client(), rate_limiter=fast_limiter
    )


@pytest.fixture
def listing(fake_bioportal):
    fake_bioportal.add(
        "/ontologies",
        [{"acronym": "EFO"}, {"acronym": "ONE"}, {"acronym": "MIXED"}, {"acronym": "BROKEN"}, {"name": "no acronym"}],
    )
    fake_bioportal.add(
        "/ontologies/ONE/classes",
        {"collection": [class_doc("http://one.org/o#A"), class_doc("http://one.org/o#B")]},
    )
    fake_bioportal.add(
        "/ontologies/MIXED/classes",
        {"collection": [class_doc("http://a.org/x/A"), class_doc("http://b.org/y/B")]},
    )
    fake_bioportal.add("/ontologies/BROKEN/classes", (500, {}))
    return fake_bioportal


class TestSurvey:
    def test_results_per_ontology(self, listing, dispatcher):
        results = {r.acronym: r for r in survey_class_uri_prefixes(dispatcher, sample=3)}
        assert results["EFO"] == PrefixSurveyResult("EFO", "http://www.ebi.ac.uk/efo/", "registry")
        assert results["ONE"] == PrefixSurveyResult("ONE", "http://one.org/o#", "sampled")
        assert results["MIXED"].source == "ambiguous"
        assert results["BROKEN"].source == "error"
        assert results["BROKEN"].detail
        assert len(results) == 4
        ((_, params),) = listing.calls("/ontologies/ONE/classes")
        assert params == {"pagesize": "3"}

    def test_include_known_samples_registry_entries(self, listing, dispatcher):
        results = {r.acronym: r for r in survey_class_uri_prefixes(dispatcher, skip_known=False)}
        assert results["EFO"].source == "error"
        assert listing.count("/ontologies/EFO/classes") == 1

    def test_listing_failure_raises(self, fake_bioportal, dispatcher):
        fake_bioportal.add("/ontologies", (503, {}))
        with pytest.raises(ServiceError):
            list(survey_class_uri_prefixes(dispatcher))

    def test_missing_listing_yields_nothing(self, dispatcher):
        assert list(survey_class_uri_prefixes(dispatcher)) == []

    def test_sample_must_be_positive(self, dispatcher):
        with pytest.raises(ValueError):
            list(survey_class_uri_prefixes(dispatcher, sample=0))

    def test_listing_must_be_an_array(self, fake_bioportal, dispatcher):
        fake_bioportal.add("/ontologies", {"acronym": "EFO"})
        with pytest.raises(ServiceError, match="JSON array"):
            list(survey_class_uri_prefixes(dispatcher))

    def test_class_listing_array_reported_as_error(self, fake_bioportal, dispatcher):
        """A class listing that is not an object is reported; the survey moves on."""
        fake_bioportal.add("/ontologies", [{"acronym": "ODD"}, {"acronym": "ONE"}, "junk"])
        fake_bioportal.add("/ontologies/ODD/classes", [class_doc("http://odd.org/o#A")])
        fake_bioportal.add("/ontologies/ONE/classes", {"collection": [class_doc("http://one.org/o#A")]})
        results = {r.acronym: r for r in survey_class_uri_prefixes(dispatcher)}
        assert results["ODD"].source == "error"
        assert "JSON object" in results["ODD"].detail
        assert results["ONE"].prefix == "http://one.org/o#"
