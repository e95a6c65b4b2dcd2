"""
Ingestion Orchestrator

Runs the per-article pipelines for a whole feed.

- Feed entries sharing a PMCID are collapsed (first one wins, collision
  logged)
- At most ``concurrency_limit`` pipelines are in flight at once, gated by
  an ``asyncio.Semaphore``; the limit is about politeness towards
  EuropePMC and the Wikibase instance, not throughput
- A failing pipeline is logged and recorded; it never cancels or affects
  any other pipeline
- ``run_pipelines`` returns only once every pipeline has finished
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Iterable, List

from ..config import settings
from ..core.errors import ArticleOutcome, IngestReport, run_guarded
from ..feed import FeedEntry

logger = logging.getLogger("ingest.orchestrator")

Worker = Callable[[FeedEntry], Awaitable[object]]


def deduplicate(entries: Iterable[FeedEntry]) -> Dict[str, FeedEntry]:
    """Collapse entries sharing an identifier, keeping the first occurrence."""
    library: Dict[str, FeedEntry] = {}
    for entry in entries:
        if entry.id in library:
            logger.warning("Found a duplicate paper: %s", entry.id)
            continue
        library[entry.id] = entry
    return library


async def run_pipelines(
    entries: Iterable[FeedEntry],
    worker: Worker,
    concurrency_limit: int | None = None,
) -> IngestReport:
    """
    Run ``worker`` for every entry with bounded concurrency.

    Parameters
    ----------
    entries : Iterable[FeedEntry]
        Entries to process; expected to be deduplicated already.

    worker : Worker
        Coroutine function running one article's pipeline.

    concurrency_limit : int | None
        Maximum pipelines in flight. Defaults to settings.concurrency_limit.

    Returns
    -------
    IngestReport
        One outcome per entry, in input order.
    """
    limit = settings.concurrency_limit if concurrency_limit is None else concurrency_limit
    if limit < 1:
        raise ValueError(f"concurrency_limit must be at least 1; got {limit}")

    gate = asyncio.Semaphore(limit)

    async def _run_one(entry: FeedEntry) -> ArticleOutcome:
        async with gate:
            logger.info("Process paper %s", entry.id)
            return await run_guarded(entry.id, lambda: worker(entry))

    entry_list: List[FeedEntry] = list(entries)
    outcomes = await asyncio.gather(*(_run_one(entry) for entry in entry_list))

    report = IngestReport(outcomes=list(outcomes))
    logger.info(
        "Processed %d papers: %d succeeded, %d failed",
        len(report.outcomes),
        len(report.succeeded),
        len(report.failed),
    )
    return report
