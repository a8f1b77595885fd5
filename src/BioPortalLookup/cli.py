# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.cli",
#   "purpose": "bioportal-lookup command line: ontology, term, related, mappings, annotate, survey-prefixes",
#   "sections": [
#     {"id": "helpers", "name": "Helper Functions", "anchor": "HLP", "kind": "helpers"},
#     {"id": "main", "name": "main", "anchor": "function-main", "kind": "function"},
#     {"id": "ontology", "name": "ontology_cmd", "anchor": "function-ontology-cmd", "kind": "function"},
#     {"id": "term", "name": "term_cmd", "anchor": "function-term-cmd", "kind": "function"},
#     {"id": "related", "name": "related_cmd", "anchor": "function-related-cmd", "kind": "function"},
#     {"id": "mappings", "name": "mappings_cmd", "anchor": "function-mappings-cmd", "kind": "function"},
#     {"id": "annotate", "name": "annotate_cmd", "anchor": "function-annotate-cmd", "kind": "function"},
#     {"id": "survey-prefixes", "name": "survey_prefixes_cmd", "anchor": "function-survey-prefixes-cmd", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Command line access to the BioPortal lookup façade.

Every command prints JSON on stdout. Missing terms print ``null``; errors go
to stderr with exit code 1. The API key and other settings come from the
``BIOPORTAL_*`` environment (see :mod:`BioPortalLookup.settings`).

Provides:
- ontology - Ontology metadata and class-URI prefix
- term - One ontology class
- related - Children, descendants, parents or ancestors of a class
- mappings - Cross-ontology mappings of a class
- annotate - Run the text annotator
- survey-prefixes - Class-URI prefixes of every ontology (registry curation)
"""

import dataclasses
import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import typer

from BioPortalLookup.client import RELATIONS, BioPortalClient
from BioPortalLookup.errors import BioPortalLookupError
from BioPortalLookup.logging_utils import setup_logging
from BioPortalLookup.network.client import close_http_client
from BioPortalLookup.settings import get_settings
from BioPortalLookup.survey import survey_class_uri_prefixes

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="bioportal-lookup",
    help="Resolve ontology terms, hierarchies, mappings and annotations against BioPortal",
    no_args_is_help=True,
)


# ============================================================================
# Helper Functions
# ============================================================================


def _build_client() -> BioPortalClient:
    return BioPortalClient.from_settings()


@contextmanager
def _open_client() -> Iterator[BioPortalClient]:
    client = _build_client()
    try:
        yield client
    finally:
        client.close()
        close_http_client()


def _jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, (set, frozenset)):
        items = [_jsonable(item) for item in value]
        return sorted(items, key=lambda item: json.dumps(item, sort_keys=True))
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return value


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(_jsonable(payload), indent=2, sort_keys=True))


def _fail(exc: Exception) -> None:
    logger.debug("command failed", exc_info=exc)
    typer.echo(f"❌ Error: {exc}", err=True)
    raise typer.Exit(code=1)


def _parse_params(pairs: List[str]) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"expected NAME=VALUE, got {pair!r}", param_hint="--param")
        params[name.strip()] = value
    return params


# ============================================================================
# Commands
# ============================================================================


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR); defaults to settings",
    ),
    json_logs: Optional[bool] = typer.Option(
        None,
        "--json-logs/--no-json-logs",
        help="Write JSON log lines to the log directory; defaults to settings",
    ),
) -> None:
    """Configure logging before any command runs."""
    try:
        logging_settings = get_settings().logging
    except BioPortalLookupError as exc:
        _fail(exc)
    setup_logging(
        level=log_level or logging_settings.level,
        emit_json_logs=logging_settings.emit_json_logs if json_logs is None else json_logs,
        log_dir=logging_settings.log_dir,
    )


@app.command(name="ontology")
def ontology_cmd(acronym: str = typer.Argument(..., help="Ontology acronym, e.g. EFO")) -> None:
    """Show an ontology's name and class-URI prefix."""
    try:
        with _open_client() as client:
            _echo_json(client.get_ontology(acronym))
    except BioPortalLookupError as exc:
        _fail(exc)


@app.command(name="term")
def term_cmd(
    accession: str = typer.Argument(..., help="Accession (EFO_0000270) or class URI"),
    ontology: Optional[str] = typer.Option(None, "--ontology", "-o", help="Owning ontology acronym"),
) -> None:
    """Show one ontology class."""
    try:
        with _open_client() as client:
            _echo_json(client.get_ontology_class(ontology, accession))
    except BioPortalLookupError as exc:
        _fail(exc)


@app.command(name="related")
def related_cmd(
    relation: str = typer.Argument(..., help=f"One of: {', '.join(RELATIONS)}"),
    accession: str = typer.Argument(..., help="Accession or class URI"),
    ontology: Optional[str] = typer.Option(None, "--ontology", "-o", help="Owning ontology acronym"),
) -> None:
    """List the classes related to a class."""
    try:
        with _open_client() as client:
            _echo_json(client.get_related_classes(relation.lower(), ontology, accession))
    except BioPortalLookupError as exc:
        _fail(exc)


@app.command(name="mappings")
def mappings_cmd(
    accession: str = typer.Argument(..., help="Accession or class URI"),
    ontology: Optional[str] = typer.Option(None, "--ontology", "-o", help="Owning ontology acronym"),
    prefer: Optional[str] = typer.Option(
        None, "--prefer", help="Comma-separated acronyms of preferred target ontologies"
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Print null when no mapping targets a preferred ontology"
    ),
) -> None:
    """List cross-ontology mappings of a class."""
    try:
        with _open_client() as client:
            ontology_class = client.get_ontology_class(ontology, accession)
            if ontology_class is None:
                _echo_json(None)
                return
            _echo_json(
                client.get_ontology_class_mappings(
                    ontology_class, preferred_ontologies=prefer, strict_preferred=strict
                )
            )
    except BioPortalLookupError as exc:
        _fail(exc)


@app.command(name="annotate")
def annotate_cmd(
    text: str = typer.Argument(..., help="Text to annotate"),
    param: List[str] = typer.Option(
        [], "--param", "-p", help="Annotator parameter as NAME=VALUE (repeatable)"
    ),
) -> None:
    """Run the BioPortal annotator over a text."""
    params = _parse_params(param)
    try:
        with _open_client() as client:
            _echo_json(client.get_text_annotations(text, **params))
    except BioPortalLookupError as exc:
        _fail(exc)


@app.command(name="survey-prefixes")
def survey_prefixes_cmd(
    sample: int = typer.Option(5, "--sample", "-n", min=1, help="Classes sampled per ontology"),
    include_known: bool = typer.Option(
        False, "--include-known", help="Also sample ontologies already in the registry"
    ),
) -> None:
    """Print one JSON line per ontology with its class-URI prefix."""
    try:
        with _open_client() as client:
            for result in survey_class_uri_prefixes(
                client.dispatcher, sample=sample, skip_known=not include_known
            ):
                typer.echo(json.dumps(_jsonable(result), sort_keys=True))
    except BioPortalLookupError as exc:
        _fail(exc)


if __name__ == "__main__":  # pragma: no cover
    app()
