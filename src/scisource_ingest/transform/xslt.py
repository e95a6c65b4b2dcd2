"""
Markup Transformer

Renders JATS full-text XML through named XSLT stylesheets:

- ``display`` -- HTML uploaded as the article's wiki page
- ``text``    -- plain text the dictionaries are matched against

Stylesheets are compiled lazily, once per transformer. The transform itself
is CPU-bound, so async callers run it on a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

from lxml import etree

from ..config import settings

logger = logging.getLogger("ingest.transform")

STYLESHEETS: Dict[str, str] = {
    "display": "jats-html.xsl",
    "text": "jats-text.xsl",
}

DOCTYPE_PREFIX = b"<!DOCTYPE html>"


class TransformError(RuntimeError):
    """Raised when a document cannot be transformed."""


class MarkupTransformer:
    def __init__(self, stylesheet_dir: Optional[Path] = None) -> None:
        self._stylesheet_dir = Path(stylesheet_dir or settings.stylesheet_dir)
        self._compiled: Dict[str, etree.XSLT] = {}
        self._lock = Lock()

    def _stylesheet(self, name: str) -> etree.XSLT:
        if name not in STYLESHEETS:
            raise TransformError(f"Unknown transform {name!r}")

        with self._lock:
            if name not in self._compiled:
                path = self._stylesheet_dir / STYLESHEETS[name]
                try:
                    self._compiled[name] = etree.XSLT(etree.parse(str(path)))
                except (OSError, etree.XMLSyntaxError, etree.XSLTParseError) as exc:
                    raise TransformError(f"Failed to load stylesheet {path}: {exc}") from exc
            return self._compiled[name]

    def transform(self, source: Path, name: str) -> bytes:
        """Apply the named stylesheet to ``source`` and return the rendered bytes."""
        stylesheet = self._stylesheet(name)
        try:
            document = etree.parse(
                str(source),
                etree.XMLParser(resolve_entities=False, no_network=True),
            )
            result = bytes(stylesheet(document))
        except (OSError, etree.XMLSyntaxError, etree.XSLTApplyError) as exc:
            raise TransformError(f"Failed to apply {name!r} to {source}: {exc}") from exc

        result = result.lstrip()
        if result.startswith(DOCTYPE_PREFIX):
            result = result[len(DOCTYPE_PREFIX):].lstrip()
        return result

    def render(self, source: Path, name: str, target: Path) -> None:
        rendered = self.transform(source, name)
        try:
            target.write_bytes(rendered)
        except OSError as exc:
            raise TransformError(f"Failed to write {target}: {exc}") from exc

    async def render_async(self, source: Path, name: str, target: Path) -> None:
        await asyncio.to_thread(self.render, source, name, target)
