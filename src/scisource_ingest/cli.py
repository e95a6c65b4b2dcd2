"""
Command Line Entry Point

Wires the run together in a fixed order:

1. load and deduplicate the feed
2. load dictionaries (fatal on error)
3. resolve the Wikibase schema labels (fatal on error)
4. run every article pipeline through the bounded worker pool

The process exits non-zero if any load step fails or any article failed.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from . import __version__
from .config import settings
from .core.errors import IngestReport
from .dictionaries import load_dictionaries_from_directory
from .feed import load_feed
from .graph import GraphPublisher, resolve_schema
from .pipeline import PaperProcessor, deduplicate, run_pipelines
from .sources import EuropePMCSource
from .transform import MarkupTransformer
from .wiki import MediaWikiClient, WikibaseClient

logger = logging.getLogger("ingest.app")

app = typer.Typer(help="Annotate papers with dictionary terms and publish them to Wikibase.")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def ingest(
    feed_path: Path,
    output_dir: Path,
    dictionaries_dir: Path,
    concurrency: int,
    limit: Optional[int] = None,
) -> IngestReport:
    feed = load_feed(feed_path)
    library = deduplicate(feed.entries)
    entries = list(library.values())
    if limit is not None:
        entries = entries[:limit]
    logger.info("We have %d papers to process", len(entries))

    dictionaries = load_dictionaries_from_directory(dictionaries_dir)
    logger.info("We have loaded %d dictionaries", len(dictionaries))

    wikibase = WikibaseClient(MediaWikiClient())
    schema = await resolve_schema(wikibase)

    publisher = GraphPublisher(wikibase, schema)
    source = EuropePMCSource()
    transformer = MarkupTransformer()

    async def _process(entry):
        processor = PaperProcessor(
            entry=entry,
            target_directory=output_dir,
            dictionaries=dictionaries,
            source=source,
            transformer=transformer,
            publisher=publisher,
        )
        return await processor.process()

    return await run_pipelines(entries, _process, concurrency)


@app.command()
def run(
    feed: Path = typer.Option(..., exists=True, dir_okay=False, help="SPARQL JSON feed of papers."),
    output: Path = typer.Option(settings.output_dir, help="Directory to store per-paper results."),
    dictionaries: Path = typer.Option(settings.dictionaries_dir, help="Directory of dictionaries to load."),
    urlbase: Optional[str] = typer.Option(None, help="Base URL of the Wikibase instance."),
    concurrency: int = typer.Option(settings.concurrency_limit, min=1, help="Papers processed at once."),
    limit: Optional[int] = typer.Option(None, min=1, help="Only process the first N papers."),
) -> None:
    """Process every paper in FEED and publish its annotations."""
    configure_logging(settings.log_level)
    if urlbase:
        settings.wikibase_url = urlbase
    logger.info("scisource-ingest %s, feed %s", __version__, feed)

    try:
        report = asyncio.run(ingest(feed, output, dictionaries, concurrency, limit))
    except Exception as exc:
        logger.exception("Ingestion aborted: %s", exc)
        raise typer.Exit(code=2) from exc

    typer.echo(f"succeeded: {len(report.succeeded)}")
    typer.echo(f"failed:    {len(report.failed)}")
    for article_id, error in report.failed.items():
        typer.echo(f"  {article_id}: {error}")

    if not report.all_succeeded:
        raise typer.Exit(code=1)


@app.command()
def version() -> None:
    typer.echo(__version__)


if __name__ == "__main__":
    app()
