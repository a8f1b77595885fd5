"""Fake BioPortal server and document builders shared by the test suite."""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from urllib.parse import parse_qsl

import httpx

from BioPortalLookup.network.dispatcher import quote_segment

BASE_URL = "https://bioportal.test"
API_KEY = "test-api-key"

Route = Union[
    Dict[str, Any],
    List[Any],
    Tuple[int, Any],
    Callable[[httpx.Request], httpx.Response],
]


def ontology_link(acronym: str) -> str:
    return f"http://data.bioontology.org/ontologies/{acronym}"


def class_path(acronym: str, class_uri: str, relation: Optional[str] = None) -> str:
    path = f"/ontologies/{quote_segment(acronym)}/classes/{quote_segment(class_uri)}"
    return f"{path}/{relation}" if relation else path


def class_doc(iri: str, label: Optional[str] = None, acronym: str = "EFO", **extra: Any) -> Dict[str, Any]:
    doc: Dict[str, Any] = {
        "@id": iri,
        "prefLabel": label,
        "synonym": extra.pop("synonym", []),
        "definition": extra.pop("definition", []),
        "obsolete": extra.pop("obsolete", False),
        "links": {"ontology": ontology_link(acronym)},
    }
    doc.update(extra)
    return doc


class FakeBioPortal:
    """Route table behind an :class:`httpx.MockTransport`.

    Routes are keyed by the percent-encoded request path (no query string). A
    route is a JSON document (200), a ``(status, json)`` pair, or a callable
    receiving the request. Unrouted paths answer 404.
    """

    def __init__(self) -> None:
        self.routes: Dict[str, Route] = {}
        self.requests: List[httpx.Request] = []
        self._lock = threading.Lock()

    def add(self, path: str, route: Route) -> None:
        self.routes[path] = route

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.raw_path.decode("ascii").split("?", 1)[0]
        with self._lock:
            self.requests.append(request)
        route = self.routes.get(path)
        if route is None:
            return httpx.Response(404, json={"errors": ["Resource not found"]})
        if callable(route):
            return route(request)
        if isinstance(route, tuple):
            status, body = route
            return httpx.Response(status, json=body)
        return httpx.Response(200, json=route)

    def calls(self, path: Optional[str] = None) -> List[Tuple[str, Dict[str, str]]]:
        with self._lock:
            recorded = list(self.requests)
        result = []
        for request in recorded:
            raw = request.url.raw_path.decode("ascii")
            req_path, _, query = raw.partition("?")
            if path is None or req_path == path:
                result.append((req_path, dict(parse_qsl(query))))
        return result

    def count(self, path: Optional[str] = None) -> int:
        return len(self.calls(path))

    def http_client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

