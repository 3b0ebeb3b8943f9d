"""CLI interface."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session

from flowcatalog.db import make_engine
from flowcatalog.extraction.assembler import discover_sources, extract_corpus
from flowcatalog.extraction.templates import collect_template_base_classes, enrich_base_classes, load_templates
from flowcatalog.normalizer import corpus_stats, write_corpus
from flowcatalog.store import CatalogStore, StoreUnavailableError, require_store_file
from flowcatalog.tools.catalog_tools import build_context
from flowcatalog.utils.config import settings
from flowcatalog.utils.file_utils import ensure_dir

app = typer.Typer(add_completion=False)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level.")):
    """Build and query the component definition catalog."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _echo(payload) -> None:
    typer.echo(json.dumps(payload, indent=2))


def _open_store(database_url: str) -> CatalogStore:
    try:
        return CatalogStore.open(database_url)
    except StoreUnavailableError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)


@app.command()
def extract(
    source_dir: str = typer.Option(settings.nodes_source_dir, "--source-dir", help="Component source tree."),
    marketplace_dir: Optional[str] = typer.Option(
        settings.marketplace_dir, "--marketplace-dir", help="Marketplace templates directory."
    ),
    database_url: str = typer.Option(settings.database_url, "--database-url"),
    pattern: str = typer.Option(settings.source_glob, "--pattern", help="Glob for source files."),
):
    """Extract definitions from a source tree and replace the catalog store."""
    try:
        paths = discover_sources(source_dir, pattern)
    except FileNotFoundError as exc:
        raise typer.BadParameter(str(exc), param_hint="--source-dir")
    report = extract_corpus(paths, root=source_dir)

    templates = []
    enriched = 0
    if marketplace_dir and Path(marketplace_dir).is_dir():
        templates = load_templates(marketplace_dir)
        enriched = enrich_base_classes(report.definitions, collect_template_base_classes(templates))

    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        ensure_dir(Path(url.database).parent)
    engine = make_engine(database_url)
    try:
        with Session(engine) as session:
            written = write_corpus(session, report.definitions, templates)
    finally:
        engine.dispose()

    _echo(
        {
            "files_scanned": report.scanned,
            "definitions_extracted": len(report.definitions),
            "files_skipped": report.skipped,
            "files_failed": report.failed,
            "definitions_written": len(written.written),
            "definitions_failed": written.failed,
            "categories": written.categories,
            "templates": written.templates,
            "enriched_from_templates": enriched,
        }
    )


@app.command()
def stats(database_url: str = typer.Option(settings.database_url, "--database-url")):
    """Print row counts for the catalog store."""
    try:
        require_store_file(database_url)
    except StoreUnavailableError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    engine = make_engine(database_url)
    try:
        with Session(engine) as session:
            _echo(corpus_stats(session))
    finally:
        engine.dispose()


@app.command()
def schema(name: str, database_url: str = typer.Option(settings.database_url, "--database-url")):
    """Print the full nested schema of one definition."""
    definition = _open_store(database_url).get(name)
    if definition is None:
        typer.echo(f'Node "{name}" not found', err=True)
        raise typer.Exit(code=1)
    _echo(definition.to_dict())


@app.command()
def validate(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with nodes and edges."),
    database_url: str = typer.Option(settings.database_url, "--database-url"),
):
    """Validate a flow file against the catalog; exits 1 when it has errors."""
    try:
        payload = json.loads(file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"Invalid JSON: {exc}", param_hint="FILE")
    if not isinstance(payload, dict):
        raise typer.BadParameter("Expected an object with nodes and edges", param_hint="FILE")
    context = build_context(_open_store(database_url))
    try:
        result = context.validator.validate(payload.get("nodes") or [], payload.get("edges") or [])
    except TypeError as exc:
        raise typer.BadParameter(str(exc), param_hint="FILE")
    _echo(result.model_dump())
    if not result.valid:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
