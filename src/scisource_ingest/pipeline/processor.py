"""
Per-Article Pipeline

Processes one feed entry end to end:

    fetch -> transform -> match -> build -> publish

Each article owns a working folder ``<output>/<pmcid>/``:

    paper.xml           full-text JATS from EuropePMC
    supplementary.zip   supplementary files archive (if the paper has one)
    paper.html          display rendering, uploaded as the wiki page
    paper.txt           plain-text rendering, matched against dictionaries
    scisource.json      snapshot of the record tree (resumption state)

If a snapshot exists the tree is resumed from it and nothing is re-fetched
or re-matched; otherwise a fresh tree is built and saved before any remote
write happens.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Callable, Optional, Sequence

from ..annotations import build_anchor_points
from ..dictionaries import Dictionary, find_all_matches
from ..feed import FeedEntry
from ..graph import Article, ArticleSnapshot, GraphPublisher
from ..sources import EuropePMCSource, parse_front_matter
from ..transform import MarkupTransformer

logger = logging.getLogger("ingest.pipeline")


class PaperProcessor:
    def __init__(
        self,
        entry: FeedEntry,
        target_directory: Path,
        dictionaries: Sequence[Dictionary],
        source: EuropePMCSource,
        transformer: MarkupTransformer,
        publisher: GraphPublisher,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self.entry = entry
        self.target_directory = Path(target_directory)
        self._dictionaries = dictionaries
        self._source = source
        self._transformer = transformer
        self._publisher = publisher
        self._today = today or date.today

        self.snapshot = ArticleSnapshot(self.state_path)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def folder(self) -> Path:
        return self.target_directory / self.entry.id

    @property
    def xml_path(self) -> Path:
        return self.folder / "paper.xml"

    @property
    def html_path(self) -> Path:
        return self.folder / "paper.html"

    @property
    def text_path(self) -> Path:
        return self.folder / "paper.txt"

    @property
    def state_path(self) -> Path:
        return self.folder / "scisource.json"

    @property
    def supplementary_path(self) -> Path:
        return self.folder / "supplementary.zip"

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _fetch(self) -> None:
        await self._source.fetch_full_text(self.entry, self.xml_path)
        await self._source.fetch_supplementary_files(self.entry, self.supplementary_path)

    def _new_article(self) -> Article:
        title = self.entry.title.value
        if not title:
            title = parse_front_matter(self.xml_path).title
        return Article(
            science_source_title=f"{title} ({self.entry.id})",
            wikidata_code=self.entry.wikidata_id,
            article_text_title=title,
            publication_date=self.entry.publication_date,
            time_code=self._today(),
        )

    async def materialize(self) -> Article:
        """Build a fresh record tree from the article text."""
        await self._fetch()
        await self._transformer.render_async(self.xml_path, "display", self.html_path)
        await self._transformer.render_async(self.xml_path, "text", self.text_path)

        article = self._new_article()
        text = self.text_path.read_text(encoding="utf-8")
        matches = find_all_matches(self._dictionaries, text)
        article.anchor_points = build_anchor_points(
            matches,
            text,
            article.science_source_title,
            article.time_code,
        )
        return article

    async def load_or_materialize(self) -> Article:
        article = self.snapshot.load()
        if article is not None:
            logger.info(
                "Resuming paper %s from %s (phase %s)",
                self.entry.id,
                self.state_path,
                article.phase.value,
            )
            return article

        article = await self.materialize()
        self.snapshot.save(article)
        return article

    async def _publish_page(self, article: Article) -> None:
        if article.page_id is not None:
            return

        if not self.html_path.exists():
            await self._source.fetch_full_text(self.entry, self.xml_path)
            await self._transformer.render_async(self.xml_path, "display", self.html_path)

        logger.info("Uploading paper %s", self.entry.id)
        await self._publisher.publish_page(article, self.html_path.read_text(encoding="utf-8"))
        self.snapshot.save(article)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def process(self) -> Article:
        self.folder.mkdir(parents=True, exist_ok=True)

        article = await self.load_or_materialize()
        logger.info("Paper %s has %d anchor points", self.entry.id, len(article.anchor_points))

        await self._publish_page(article)
        await self._publisher.publish(article, self.snapshot)

        logger.info("Completed paper %s", self.entry.id)
        return article
