"""
Article Snapshot Persistence

The per-article state file is the only resumption mechanism: it holds the
full record tree, including remote identifiers and the publication phase,
and is rewritten after every phase whether the phase succeeded or not.

- Writes go to a sibling temp file and are then renamed over the target,
  so a crash mid-write never leaves a truncated snapshot behind.
- Loading never raises: a missing or unreadable snapshot yields ``None``
  and the caller builds a fresh tree.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .models import Article

logger = logging.getLogger("ingest.snapshot")


class SnapshotPersistenceError(RuntimeError):
    """Raised when an article snapshot cannot be written."""


class ArticleSnapshot:
    """Load/save an :class:`Article` tree at a fixed path."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def save(self, article: Article) -> None:
        """
        Persist ``article`` atomically.

        Raises
        ------
        SnapshotPersistenceError
            If the snapshot cannot be written.
        """
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                f.write(article.model_dump_json(indent=2))
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise SnapshotPersistenceError(
                f"Failed to write snapshot {self._path}: {exc}"
            ) from exc

    def load(self) -> Optional[Article]:
        if not self._path.exists():
            return None

        try:
            raw = self._path.read_text(encoding="utf-8")
            return Article.model_validate_json(raw)
        except (OSError, UnicodeDecodeError, ValidationError) as exc:
            logger.warning(
                "Ignoring unreadable snapshot %s (%s); rebuilding",
                self._path,
                type(exc).__name__,
            )
            return None
