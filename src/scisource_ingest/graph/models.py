"""
Graph Record Model

In-memory representation of the records we publish for one article:

    Article ──owns──> AnchorPoint[0..n] ──owns──> Annotation

Ownership is structural (nested models). Cross references between records
(preceding/following anchor, anchor point in, anchors, based on) are
*relations*: they hold remote item identifiers, never Python references,
and may point outside the owned subtree (to the terminus item or to a
sibling anchor point).

The whole tree is what gets checkpointed to disk after every publication
phase, so every field here round-trips through JSON.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class IdentifierAlreadyAssignedError(RuntimeError):
    """Raised when a record that already has a remote id is given another."""


# ---------------------------------------------------------------------
# Publication phase
# ---------------------------------------------------------------------

class PublicationPhase(str, Enum):
    """
    Explicit progress tag for one article tree.

    Phases only move forward; resumption starts at the first phase the
    persisted tree has not reached.
    """

    MATERIALIZED = "materialized"
    NODES_CREATED = "nodes_created"
    RECONCILED = "reconciled"
    CLAIMS_UPLOADED = "claims_uploaded"

    @property
    def rank(self) -> int:
        return _PHASE_ORDER.index(self)

    def reached(self, other: "PublicationPhase") -> bool:
        return self.rank >= other.rank


_PHASE_ORDER = list(PublicationPhase)


# ---------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------

class GraphRecord(BaseModel):
    """Common behaviour of records that become Wikibase items."""

    item_id: Optional[str] = Field(
        default=None,
        description="Remote item identifier, e.g. 'Q42'. Assigned once.",
    )

    model_config = ConfigDict(extra="forbid")

    @property
    def has_item(self) -> bool:
        return bool(self.item_id)

    def assign_item(self, item_id: str) -> None:
        if self.item_id:
            raise IdentifierAlreadyAssignedError(
                f"{type(self).__name__} already has item {self.item_id}; refusing {item_id}"
            )
        self.item_id = item_id


class Annotation(GraphRecord):
    term: str
    length: int
    dictionary_name: str
    wikidata_code: str = ""
    time_code: date
    science_source_title: str = ""

    instance_of: Optional[str] = None
    based_on: Optional[str] = None


class AnchorPoint(GraphRecord):
    preceding_phrase: str = ""
    following_phrase: str = ""
    distance_to_preceding: Optional[int] = None
    distance_to_following: Optional[int] = None
    character_number: int
    time_code: date
    science_source_title: str = ""

    instance_of: Optional[str] = None
    anchor_point_in: Optional[str] = None
    preceding_anchor: Optional[str] = None
    following_anchor: Optional[str] = None
    anchors: Optional[str] = None

    annotation: Annotation


class Article(GraphRecord):
    """Root of the tree; ``anchor_points`` is offset-ascending and never re-sorted."""

    science_source_title: str
    wikidata_code: str = ""
    article_text_title: str = ""
    publication_date: Optional[date] = None
    time_code: date

    instance_of: Optional[str] = None
    page_id: Optional[int] = None
    following_anchor: Optional[str] = None

    phase: PublicationPhase = PublicationPhase.MATERIALIZED
    anchor_points: List[AnchorPoint] = Field(default_factory=list)

    def records(self) -> Iterator[GraphRecord]:
        """Article first, then each anchor point followed by its annotation."""
        yield self
        for anchor in self.anchor_points:
            yield anchor
            yield anchor.annotation

    def fully_identified(self) -> bool:
        return all(record.has_item for record in self.records())

    def advance(self, phase: PublicationPhase) -> None:
        if not self.phase.reached(phase):
            self.phase = phase
