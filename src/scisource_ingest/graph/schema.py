"""
Wikibase Data Schema

Static mapping from record fields to the Wikibase property labels they are
published under, and from record types to the item classes they are
instances of.

The label set the publisher needs from the server is derived from these
tables, resolved once at startup (sequentially, before any article is
processed) and then treated as read-only for the rest of the run.
"""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Protocol, Tuple, Type

from pydantic import BaseModel, ConfigDict

from .models import AnchorPoint, Annotation, Article, GraphRecord

logger = logging.getLogger("ingest.schema")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class SchemaResolutionError(RuntimeError):
    """Raised when a label does not resolve to exactly one Wikibase entity."""


# ---------------------------------------------------------------------
# Static tables
# ---------------------------------------------------------------------

class ValueKind(str, Enum):
    ITEM = "item"
    STRING = "string"
    QUANTITY = "quantity"
    TIME = "time"


class ClaimField(NamedTuple):
    attribute: str
    label: str
    kind: ValueKind


TIME_CODE = ClaimField("time_code", "time code1", ValueKind.TIME)
INSTANCE_OF = ClaimField("instance_of", "instance of", ValueKind.ITEM)
ARTICLE_TITLE = ClaimField(
    "science_source_title", "ScienceSource article title", ValueKind.STRING
)
WIKIDATA_CODE = ClaimField("wikidata_code", "Wikidata item code", ValueKind.STRING)
FOLLOWING_ANCHOR = ClaimField(
    "following_anchor", "following anchor point", ValueKind.ITEM
)

CLAIM_FIELDS: Dict[Type[GraphRecord], Tuple[ClaimField, ...]] = {
    Article: (
        ARTICLE_TITLE,
        WIKIDATA_CODE,
        ClaimField("article_text_title", "article text title", ValueKind.STRING),
        ClaimField("publication_date", "publication date", ValueKind.TIME),
        TIME_CODE,
        INSTANCE_OF,
        ClaimField("page_id", "page ID", ValueKind.QUANTITY),
        FOLLOWING_ANCHOR,
    ),
    AnchorPoint: (
        ClaimField("preceding_phrase", "preceding phrase", ValueKind.STRING),
        ClaimField("following_phrase", "following phrase", ValueKind.STRING),
        ClaimField("distance_to_preceding", "distance to preceding", ValueKind.QUANTITY),
        ClaimField("distance_to_following", "distance to following", ValueKind.QUANTITY),
        ClaimField("character_number", "character number", ValueKind.QUANTITY),
        TIME_CODE,
        INSTANCE_OF,
        ARTICLE_TITLE,
        ClaimField("anchor_point_in", "anchor point in", ValueKind.ITEM),
        ClaimField("preceding_anchor", "preceding anchor point", ValueKind.ITEM),
        FOLLOWING_ANCHOR,
        ClaimField("anchors", "anchors", ValueKind.ITEM),
    ),
    Annotation: (
        ClaimField("term", "term found", ValueKind.STRING),
        ClaimField("length", "length of term found", ValueKind.QUANTITY),
        WIKIDATA_CODE,
        ClaimField("dictionary_name", "dictionary name", ValueKind.STRING),
        TIME_CODE,
        ARTICLE_TITLE,
        ClaimField("based_on", "based on", ValueKind.ITEM),
        INSTANCE_OF,
    ),
}

# Class each record type is an "instance of"
ITEM_CLASS_LABELS: Dict[Type[GraphRecord], str] = {
    Article: "article",
    AnchorPoint: "anchor point",
    Annotation: "annotation",
}

TERMINUS_LABEL = "terminus"

TIME_PRECISION_DAY = 11
GREGORIAN_CALENDAR = "http://www.wikidata.org/entity/Q1985727"


def required_property_labels() -> List[str]:
    return sorted({f.label for fields in CLAIM_FIELDS.values() for f in fields})


def required_item_labels() -> List[str]:
    return sorted(set(ITEM_CLASS_LABELS.values()) | {TERMINUS_LABEL})


# ---------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------

class EntityLookup(Protocol):
    async def find_entity_ids(self, kind: str, label: str) -> List[str]: ...


class ResolvedSchema(BaseModel):
    """Label → entity id maps for one Wikibase instance. Immutable."""

    properties: Dict[str, str]
    items: Dict[str, str]

    model_config = ConfigDict(frozen=True)

    @property
    def terminus(self) -> str:
        return self.items[TERMINUS_LABEL]

    def property_id(self, label: str) -> str:
        return self.properties[label]

    def class_item_for(self, record: GraphRecord) -> str:
        return self.items[ITEM_CLASS_LABELS[type(record)]]


async def _resolve_one(lookup: EntityLookup, kind: str, label: str) -> str:
    ids = await lookup.find_entity_ids(kind, label)
    if not ids:
        raise SchemaResolutionError(f"No {kind} ID was found for {label!r}")
    if len(ids) > 1:
        raise SchemaResolutionError(
            f"Multiple {kind} IDs found for {label!r}: {', '.join(ids)}"
        )
    return ids[0]


async def resolve_schema(lookup: EntityLookup) -> ResolvedSchema:
    """
    Resolve every property and item label the publisher needs.

    Labels are resolved one at a time; any label that is missing or
    ambiguous on the server aborts the whole resolution.
    """
    properties = {
        label: await _resolve_one(lookup, "property", label)
        for label in required_property_labels()
    }
    items = {
        label: await _resolve_one(lookup, "item", label)
        for label in required_item_labels()
    }
    logger.info(
        "Resolved %d properties and %d items from Wikibase",
        len(properties),
        len(items),
    )
    return ResolvedSchema(properties=properties, items=items)


# ---------------------------------------------------------------------
# Claim construction
# ---------------------------------------------------------------------

def to_datavalue(kind: ValueKind, value: Any) -> Dict[str, Any]:
    """Encode ``value`` as a Wikibase datavalue of the given kind."""
    if kind is ValueKind.ITEM:
        return {
            "type": "wikibase-entityid",
            "value": {
                "entity-type": "item",
                "numeric-id": int(str(value).lstrip("Q")),
                "id": str(value),
            },
        }
    if kind is ValueKind.QUANTITY:
        return {
            "type": "quantity",
            "value": {"amount": f"{int(value):+d}", "unit": "1"},
        }
    if kind is ValueKind.TIME:
        if not isinstance(value, date):
            raise TypeError(f"Time claims need a date, got {type(value).__name__}")
        return {
            "type": "time",
            "value": {
                "time": f"+{value.isoformat()}T00:00:00Z",
                "timezone": 0,
                "before": 0,
                "after": 0,
                "precision": TIME_PRECISION_DAY,
                "calendarmodel": GREGORIAN_CALENDAR,
            },
        }
    return {"type": "string", "value": str(value)}


def build_claims(record: GraphRecord, schema: ResolvedSchema) -> Dict[str, Dict[str, Any]]:
    """
    Map a record's populated fields to ``{property_id: datavalue}``.

    Unset fields (``None`` or empty string) are omitted rather than sent as
    zero or blank values.
    """
    claims: Dict[str, Dict[str, Any]] = {}
    for claim_field in CLAIM_FIELDS[type(record)]:
        value = getattr(record, claim_field.attribute)
        if value is None or value == "":
            continue
        claims[schema.property_id(claim_field.label)] = to_datavalue(
            claim_field.kind, value
        )
    return claims
