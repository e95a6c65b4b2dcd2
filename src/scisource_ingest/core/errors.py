"""
Pipeline Boundary Error Handling

Every per-article pipeline runs behind this boundary. Whatever goes wrong
inside one article (fetch, transform, matching, publication) is logged
here, once, against the article's identifier, and turned into a recorded
outcome. Nothing raised inside a pipeline reaches the orchestrator or the
pipelines running beside it.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar

from pydantic import BaseModel, Field

logger = logging.getLogger("ingest.errors")

T = TypeVar("T")


class ArticleOutcome(BaseModel):
    article_id: str
    ok: bool
    error: Optional[str] = None
    error_type: Optional[str] = None


class IngestReport(BaseModel):
    """Aggregate result of one ingestion run."""

    outcomes: List[ArticleOutcome] = Field(default_factory=list)

    @property
    def succeeded(self) -> List[str]:
        return [o.article_id for o in self.outcomes if o.ok]

    @property
    def failed(self) -> Dict[str, str]:
        return {o.article_id: o.error or "" for o in self.outcomes if not o.ok}

    @property
    def all_succeeded(self) -> bool:
        return all(o.ok for o in self.outcomes)


async def run_guarded(
    article_id: str,
    pipeline: Callable[[], Awaitable[T]],
) -> ArticleOutcome:
    """
    Run one article's pipeline, converting any exception into an outcome.

    ``asyncio.CancelledError`` is not an ``Exception`` and still propagates.
    """
    try:
        await pipeline()
    except Exception as exc:
        logger.exception(
            "Failed to process paper %s: %s",
            article_id,
            exc,
        )
        return ArticleOutcome(
            article_id=article_id,
            ok=False,
            error=str(exc),
            error_type=type(exc).__name__,
        )
    return ArticleOutcome(article_id=article_id, ok=True)
