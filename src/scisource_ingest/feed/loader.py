from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from .models import Feed

logger = logging.getLogger("ingest.feed")


class FeedLoadError(RuntimeError):
    """Raised when the feed file cannot be read or does not match the schema."""


def load_feed(path: Path | str) -> Feed:
    """
    Load a SPARQL JSON feed of papers from disk.

    Raises
    ------
    FeedLoadError
        If the file is unreadable, not JSON, or not a SPARQL result set.
    """
    feed_path = Path(path)
    try:
        raw = feed_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FeedLoadError(f"Failed to read feed {feed_path}: {exc}") from exc

    try:
        feed = Feed.model_validate_json(raw)
    except ValidationError as exc:
        raise FeedLoadError(
            f"Feed {feed_path} is malformed: {exc.error_count()} validation error(s)"
        ) from exc

    logger.info("Loaded feed %s with %d entries", feed_path, len(feed.entries))
    return feed
