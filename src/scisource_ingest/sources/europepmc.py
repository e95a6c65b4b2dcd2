"""
EuropePMC Document Source

Fetches an article's full-text JATS XML and its supplementary-files archive
into the article's working folder.

Fetches are idempotent: a file already on disk is never fetched again.
Downloads stream into a temporary sibling file which is renamed into place
only once complete, so an interrupted download is never mistaken for a
cached copy.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import httpx

from ..config import settings
from ..feed import FeedEntry

logger = logging.getLogger("ingest.europepmc")


class DocumentFetchError(RuntimeError):
    """Raised when a document cannot be downloaded."""


class EuropePMCSource:
    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout or settings.http_timeout
        self._transport = transport

    async def fetch_resource(self, url: str, target: Path) -> bool:
        """
        Download ``url`` to ``target`` unless it already exists.

        Returns True if a download took place.

        Raises
        ------
        DocumentFetchError
            On transport failure or a non-2xx response.
        """
        if target.exists():
            return False

        tmp_path = target.with_name(target.name + ".part")
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                async with client.stream("GET", url) as resp:
                    resp.raise_for_status()
                    with tmp_path.open("wb") as f:
                        async for chunk in resp.aiter_bytes():
                            f.write(chunk)
            os.replace(tmp_path, target)
        except httpx.HTTPStatusError as exc:
            tmp_path.unlink(missing_ok=True)
            raise DocumentFetchError(
                f"Fetching {url} returned HTTP {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, OSError) as exc:
            tmp_path.unlink(missing_ok=True)
            raise DocumentFetchError(
                f"Fetching {url} failed: {type(exc).__name__}: {exc}"
            ) from exc

        logger.debug("Fetched %s to %s", url, target)
        return True

    async def fetch_full_text(self, entry: FeedEntry, target: Path) -> bool:
        return await self.fetch_resource(entry.full_text_url, target)

    async def fetch_supplementary_files(self, entry: FeedEntry, target: Path) -> bool:
        """
        Fetch the supplementary archive. Many papers have none, so a 404 is
        logged and ignored rather than failing the article.
        """
        try:
            return await self.fetch_resource(entry.supplementary_files_url, target)
        except DocumentFetchError as exc:
            cause = exc.__cause__
            if isinstance(cause, httpx.HTTPStatusError) and cause.response.status_code == 404:
                logger.info("No supplementary files for paper %s", entry.id)
                return False
            raise
