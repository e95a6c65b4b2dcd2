"""
Graph Publisher

Publishes one article's record tree to Wikibase.

The records reference each other in both directions (an anchor point refers
to its neighbours and to its annotation, the annotation refers back to the
anchor point, the article refers to its first anchor point), and Wikibase
has no transactions. Publication is therefore split into phases that can
each be re-run safely:

1. CreateNodes   -- create an empty item for every record lacking an id
2. Reconcile     -- fill in every cross reference, purely in memory
3. UploadClaims  -- upload each record's fields as claims, overwriting
                    per property

The tree is checkpointed after every phase, successful or not, and carries
an explicit :class:`PublicationPhase` tag, so a restarted run resumes at the
first phase the persisted tree has not reached.

Publishing the rendered article page is a separate step, gated only on the
article's page id being unset.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from .models import AnchorPoint, Annotation, Article, GraphRecord, PublicationPhase
from .schema import ResolvedSchema, build_claims
from .snapshot import ArticleSnapshot

logger = logging.getLogger("ingest.publisher")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class PublicationError(RuntimeError):
    """Raised when a remote call fails during one of the publication phases."""


class ReconciliationError(PublicationError):
    """Raised when Reconcile runs on a tree with records still lacking ids."""


class CompositePublicationError(PublicationError):
    """
    A phase failed *and* the checkpoint after it could not be written.

    Both causes are kept so the save failure never masks the phase failure.
    """

    def __init__(self, phase_error: BaseException, checkpoint_error: BaseException) -> None:
        super().__init__(
            f"Phase failed ({phase_error}) and saving state also failed ({checkpoint_error})"
        )
        self.phase_error = phase_error
        self.checkpoint_error = checkpoint_error


# ---------------------------------------------------------------------
# Remote store contract
# ---------------------------------------------------------------------

class KnowledgeBase(Protocol):
    async def create_item(self, label: str) -> str: ...

    async def create_page(self, title: str, text: str) -> int: ...

    async def upload_claims(self, entity_id: str, claims: Dict[str, Dict[str, Any]]) -> None: ...


# ---------------------------------------------------------------------
# Publisher
# ---------------------------------------------------------------------

def _item_label(record: GraphRecord, article: Article) -> str:
    """Human readable label for a newly created item."""
    if isinstance(record, Article):
        return f"article {article.science_source_title}"
    if isinstance(record, AnchorPoint):
        return f"anchor point {record.character_number} in {article.science_source_title}"
    if isinstance(record, Annotation):
        return f"annotation {record.term!r} ({record.dictionary_name}) in {article.science_source_title}"
    raise TypeError(f"Unsupported record type {type(record).__name__}")


class GraphPublisher:
    """
    Drives the publication phases for article trees.

    The publisher holds no per-article state; one instance is shared by all
    concurrently processed articles. ``schema`` is resolved before any
    article is processed and never modified afterwards.
    """

    def __init__(self, knowledge_base: KnowledgeBase, schema: ResolvedSchema) -> None:
        self._kb = knowledge_base
        self._schema = schema

    # ------------------------------------------------------------------
    # Page
    # ------------------------------------------------------------------

    async def publish_page(self, article: Article, content: str) -> bool:
        """
        Upload the rendered article page if the article has no page id yet.

        Returns True if an upload was performed.
        """
        if article.page_id is not None:
            return False

        try:
            article.page_id = await self._kb.create_page(article.science_source_title, content)
        except Exception as exc:
            raise PublicationError(
                f"Failed to upload page {article.science_source_title!r}: {exc}"
            ) from exc

        logger.info("Page ID for %s is %d", article.science_source_title, article.page_id)
        return True

    # ------------------------------------------------------------------
    # Phase 1: CreateNodes
    # ------------------------------------------------------------------

    async def create_nodes(self, article: Article) -> int:
        """
        Create an item for every record without one.

        Records that already have an id are skipped, so re-running after a
        partial failure only creates what is still missing. The first
        failure stops the phase; ids assigned before it are kept on the tree.

        Returns the number of items created.
        """
        created = 0
        for record in article.records():
            if record.has_item:
                continue
            try:
                item_id = await self._kb.create_item(_item_label(record, article))
            except Exception as exc:
                raise PublicationError(
                    f"Failed to create item for {type(record).__name__} "
                    f"({created} created before failure): {exc}"
                ) from exc
            record.assign_item(item_id)
            created += 1

        article.advance(PublicationPhase.NODES_CREATED)
        return created

    # ------------------------------------------------------------------
    # Phase 2: Reconcile
    # ------------------------------------------------------------------

    def reconcile(self, article: Article) -> None:
        """
        Populate every cross reference in the tree. No network calls.

        Raises
        ------
        ReconciliationError
            If any record in the tree has no item id yet.
        """
        if not article.fully_identified():
            raise ReconciliationError(
                f"Cannot reconcile {article.science_source_title!r}: items missing"
            )

        schema = self._schema
        terminus = schema.terminus
        anchors = article.anchor_points

        article.instance_of = schema.class_item_for(article)
        article.following_anchor = anchors[0].item_id if anchors else terminus

        for i, anchor in enumerate(anchors):
            anchor.instance_of = schema.class_item_for(anchor)
            anchor.science_source_title = article.science_source_title
            anchor.preceding_anchor = anchors[i - 1].item_id if i > 0 else terminus
            anchor.following_anchor = (
                anchors[i + 1].item_id if i < len(anchors) - 1 else terminus
            )
            anchor.anchor_point_in = article.item_id
            anchor.anchors = anchor.annotation.item_id

            annotation = anchor.annotation
            annotation.instance_of = schema.class_item_for(annotation)
            annotation.science_source_title = article.science_source_title
            annotation.based_on = anchor.item_id

        article.advance(PublicationPhase.RECONCILED)

    # ------------------------------------------------------------------
    # Phase 3: UploadClaims
    # ------------------------------------------------------------------

    async def upload_claims(self, article: Article) -> int:
        """
        Upload every record's fields as claims. Safe to re-run.

        Returns the number of records uploaded.
        """
        uploaded = 0
        for record in article.records():
            claims = build_claims(record, self._schema)
            try:
                await self._kb.upload_claims(record.item_id, claims)
            except Exception as exc:
                raise PublicationError(
                    f"Failed to upload claims for {type(record).__name__} {record.item_id}: {exc}"
                ) from exc
            uploaded += 1

        article.advance(PublicationPhase.CLAIMS_UPLOADED)
        return uploaded

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    async def publish(self, article: Article, snapshot: ArticleSnapshot) -> None:
        """
        Run every phase the tree has not completed, checkpointing after each.

        Raises
        ------
        PublicationError
            If a phase fails; ``CompositePublicationError`` if the checkpoint
            after the failing phase could not be written either.
        SnapshotPersistenceError
            If a phase succeeded but its checkpoint could not be written.
        """
        title = article.science_source_title

        if not article.phase.reached(PublicationPhase.NODES_CREATED) or not article.fully_identified():
            logger.info("Creating items for %s", title)
            await self._checkpointed(self.create_nodes(article), article, snapshot)

        if not article.phase.reached(PublicationPhase.RECONCILED):
            logger.info("Reconciling %s", title)
            self.reconcile(article)
            self._checkpoint(article, snapshot, None)

        if not article.phase.reached(PublicationPhase.CLAIMS_UPLOADED):
            logger.info("Uploading claims for %s", title)
            await self._checkpointed(self.upload_claims(article), article, snapshot)

        logger.info("Completed %s", title)

    async def _checkpointed(self, phase, article: Article, snapshot: ArticleSnapshot) -> None:
        error: Optional[BaseException] = None
        try:
            await phase
        except PublicationError as exc:
            error = exc
        self._checkpoint(article, snapshot, error)

    @staticmethod
    def _checkpoint(
        article: Article,
        snapshot: ArticleSnapshot,
        phase_error: Optional[BaseException],
    ) -> None:
        try:
            snapshot.save(article)
        except Exception as save_error:
            if phase_error is not None:
                raise CompositePublicationError(phase_error, save_error) from phase_error
            raise
        if phase_error is not None:
            raise phase_error
