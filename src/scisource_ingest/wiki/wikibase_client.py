"""
Wikibase API Client

This module wraps :class:`MediaWikiClient` with the handful of Wikibase and
page operations the publisher consumes:

- label → entity id resolution
- item creation
- page creation (an already existing page is adopted, not an error)
- claim upload with overwrite-by-property semantics

Every method raises :class:`WikibaseError` on failure so callers only need
to handle one exception family.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from ..config import settings
from .api_client import MediaWikiClient, MediaWikiRequestError, MediaWikiResponseError

logger = logging.getLogger("ingest.wikibase")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class WikibaseError(RuntimeError):
    """Base exception for Wikibase operations; ``code`` is the API error code if any."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


PAGE_EXISTS_CODE = "articleexists"


# ---------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------

class WikibaseClient:
    def __init__(
        self,
        mw_client: MediaWikiClient,
        language: Optional[str] = None,
    ) -> None:
        """
        Parameters
        ----------
        mw_client : MediaWikiClient
            An initialized MediaWiki API client for the Wikibase instance.

        language : Optional[str]
            Language used for labels and label search.
        """
        self._mw = mw_client
        self._language = language or settings.wikibase_language

    async def _call(
        self,
        operation: str,
        params: Dict[str, Any],
        data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            if data is None:
                return await self._mw.get(params)
            return await self._mw.post_with_token(params, data)
        except MediaWikiResponseError as exc:
            raise WikibaseError(f"{operation} failed: {exc}", code=exc.code) from exc
        except MediaWikiRequestError as exc:
            logger.error("%s failed (%s)", operation, type(exc).__name__)
            raise WikibaseError(f"{operation} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    async def find_entity_ids(self, kind: str, label: str) -> List[str]:
        """
        Return the ids of every ``kind`` ("item" or "property") whose label
        is exactly ``label`` (case-insensitive).
        """
        data = await self._call(
            f"search for {kind} {label!r}",
            {
                "action": "wbsearchentities",
                "search": label,
                "type": kind,
                "language": self._language,
                "limit": 50,
            },
        )
        wanted = label.casefold()
        return [
            hit["id"]
            for hit in data.get("search", [])
            if str(hit.get("label", "")).casefold() == wanted
        ]

    async def get_page_id(self, title: str) -> int:
        data = await self._call(
            f"page lookup {title!r}",
            {"action": "query", "titles": title},
        )
        pages = data.get("query", {}).get("pages", [])
        if not pages or pages[0].get("missing") or "pageid" not in pages[0]:
            raise WikibaseError(f"Page {title!r} does not exist", code="missingtitle")
        return int(pages[0]["pageid"])

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_item(self, label: str) -> str:
        """Create a new, empty item with an English label and return its id."""
        entity = {"labels": {self._language: {"language": self._language, "value": label}}}
        data = await self._call(
            "item creation",
            {"action": "wbeditentity"},
            {"new": "item", "data": json.dumps(entity)},
        )
        try:
            return data["entity"]["id"]
        except (KeyError, TypeError) as exc:
            raise WikibaseError("item creation returned no entity id") from exc

    async def create_page(self, title: str, text: str) -> int:
        """
        Create a wiki page and return its page id.

        If the page already exists the existing page id is returned; titles
        are unique per article so the existing page is ours.
        """
        try:
            data = await self._call(
                f"page creation {title!r}",
                {"action": "edit"},
                {"title": title, "text": text, "createonly": 1},
            )
        except WikibaseError as exc:
            if exc.code != PAGE_EXISTS_CODE:
                raise
            logger.info("Page %r already exists, adopting it", title)
            return await self.get_page_id(title)

        edit = data.get("edit", {})
        if edit.get("result") != "Success" or "pageid" not in edit:
            raise WikibaseError(f"page creation {title!r} was not successful: {edit}")
        return int(edit["pageid"])

    async def get_claim_ids(self, entity_id: str) -> Dict[str, List[str]]:
        data = await self._call(
            f"claim lookup {entity_id}",
            {"action": "wbgetclaims", "entity": entity_id},
        )
        return {
            prop: [statement["id"] for statement in statements if "id" in statement]
            for prop, statements in data.get("claims", {}).items()
        }

    async def upload_claims(
        self,
        entity_id: str,
        claims: Dict[str, Dict[str, Any]],
    ) -> None:
        """
        Set ``claims`` (``{property_id: datavalue}``) on ``entity_id``.

        Existing statements for each uploaded property are removed in the
        same edit, so uploading the same record twice leaves one statement
        per property.
        """
        if not claims:
            return

        existing = await self.get_claim_ids(entity_id)

        payload: List[Dict[str, Any]] = []
        for prop in claims:
            payload.extend({"id": claim_id, "remove": ""} for claim_id in existing.get(prop, []))
        for prop, datavalue in claims.items():
            payload.append(
                {
                    "mainsnak": {
                        "snaktype": "value",
                        "property": prop,
                        "datavalue": datavalue,
                    },
                    "type": "statement",
                    "rank": "normal",
                }
            )

        await self._call(
            f"claim upload {entity_id}",
            {"action": "wbeditentity"},
            {"id": entity_id, "data": json.dumps({"claims": payload})},
        )
