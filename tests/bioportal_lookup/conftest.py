# === NAVMAP v1 ===
# {
#   "module": "tests.bioportal_lookup.conftest",
#   "purpose": "Shared fixtures: fake BioPortal client factory, fast limiter, singleton resets",
#   "sections": [
#     {"id": "fixtures", "name": "Fixtures", "anchor": "FIX", "kind": "fixtures"}
#   ]
# }
# === /NAVMAP ===

"""Shared fixtures for the BioPortalLookup test suite."""

from __future__ import annotations

import logging
import os
from typing import Any, List

import pytest

from BioPortalLookup.client import BioPortalClient
from BioPortalLookup.logging_utils import LOGGER_NAME
from BioPortalLookup.network.client import reset_http_client
from BioPortalLookup.ratelimit import RateLimitManager, RateSpec, reset_rate_limiter
from BioPortalLookup.settings import reset_settings

from bioportal_fakes import API_KEY, BASE_URL, FakeBioPortal, class_doc, class_path

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch):
    """Clear BIOPORTAL_* variables and process-wide singletons around each test."""

    for name in list(os.environ):
        if name.startswith("BIOPORTAL_"):
            monkeypatch.delenv(name, raising=False)
    reset_settings()
    reset_rate_limiter()
    reset_http_client()

    package_logger = logging.getLogger(LOGGER_NAME)
    saved_handlers = list(package_logger.handlers)
    saved_level = package_logger.level
    saved_propagate = package_logger.propagate

    yield

    for handler in list(package_logger.handlers):
        if handler not in saved_handlers:
            package_logger.removeHandler(handler)
            handler.close()
    package_logger.setLevel(saved_level)
    package_logger.propagate = saved_propagate

    reset_settings()
    reset_rate_limiter()
    reset_http_client()


@pytest.fixture
def fast_limiter() -> RateLimitManager:
    """A limiter generous enough to never delay a test."""

    spec = [RateSpec(limit=10_000, interval_ms=1000)]
    return RateLimitManager({"bioportal": spec, "_default": spec}, mode="block")


@pytest.fixture
def fake_bioportal() -> FakeBioPortal:
    return FakeBioPortal()


@pytest.fixture
def make_client(fake_bioportal, fast_limiter):
    """Factory building a :class:`BioPortalClient` wired to ``fake_bioportal``."""

    created: List[BioPortalClient] = []

    def _factory(**kwargs: Any) -> BioPortalClient:
        kwargs.setdefault("base_url", BASE_URL)
        kwargs.setdefault("http_client", fake_bioportal.http_client())
        kwargs.setdefault("rate_limiter", fast_limiter)
        client = BioPortalClient(API_KEY, **kwargs)
        created.append(client)
        return client

    yield _factory

    for client in created:
        client.close()


@pytest.fixture
def efo_routes(fake_bioportal) -> FakeBioPortal:
    """EFO ontology plus the asthma class."""

    fake_bioportal.add("/ontologies/EFO", {"acronym": "EFO", "name": "Experimental Factor Ontology"})
    fake_bioportal.add(
        class_path("EFO", "http://www.ebi.ac.uk/efo/EFO_0000270"),
        class_doc(
            "http://www.ebi.ac.uk/efo/EFO_0000270",
            "asthma",
            synonym=["asthmatic"],
            definition=["A bronchial disease."],
        ),
    )
    return fake_bioportal
