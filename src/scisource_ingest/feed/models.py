"""
Feed Data Models

This module defines the schema of the paper feed: a SPARQL JSON result
document listing the articles to ingest, one binding per article.

Each binding maps a SPARQL variable name to a typed literal. Only the
variables the pipeline consumes are modelled; anything else is ignored.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config import settings


class DataValue(BaseModel):
    """A single SPARQL result literal."""

    type: str = "literal"
    value: str = ""
    datatype: Optional[str] = None
    language: Optional[str] = Field(default=None, alias="xml:lang")

    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )


class FeedEntry(BaseModel):
    """
    One article in the feed.

    The PMCID is the stable identifier used for deduplication, for the
    on-disk working folder and for every log line about the article.
    """

    date: DataValue = Field(default_factory=DataValue)
    item: DataValue = Field(default_factory=DataValue)
    item_label: DataValue = Field(default_factory=DataValue, alias="itemLabel")
    journal_label: DataValue = Field(default_factory=DataValue, alias="journalLabel")
    license_label: DataValue = Field(default_factory=DataValue, alias="licenseLabel")
    main_subject_label: DataValue = Field(
        default_factory=DataValue,
        alias="mainsubjectLabel",
    )
    pmcid: DataValue
    title: DataValue = Field(default_factory=DataValue)

    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # ------------------------------------------------------------------
    # Derived properties
    # ------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self.pmcid.value

    @property
    def wikidata_id(self) -> str:
        """Wikidata Q-number taken from the tail of the item URI."""
        return self.item.value.rstrip("/").split("/")[-1]

    @property
    def publication_date(self) -> Optional[date]:
        raw = self.date.value
        if not raw:
            return None
        # fromisoformat only understands a trailing "Z" from Python 3.11
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()

    @property
    def science_source_title(self) -> str:
        return f"{self.title.value} ({self.id})"

    @property
    def full_text_url(self) -> str:
        return f"{_api_base()}/PMC{self.id}/fullTextXML"

    @property
    def supplementary_files_url(self) -> str:
        return f"{_api_base()}/PMC{self.id}/supplementaryFiles"

    def __str__(self) -> str:
        return f"<Paper {self.id}: {self.title.value}>"


class FeedHeader(BaseModel):
    vars: List[str] = Field(default_factory=list)


class FeedResults(BaseModel):
    bindings: List[FeedEntry] = Field(default_factory=list)


class Feed(BaseModel):
    head: FeedHeader = Field(default_factory=FeedHeader)
    results: FeedResults = Field(default_factory=FeedResults)

    @property
    def entries(self) -> List[FeedEntry]:
        return self.results.bindings


def _api_base() -> str:
    return str(settings.europepmc_api_url).rstrip("/")
