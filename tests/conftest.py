from datetime import date
from itertools import count
from unittest.mock import AsyncMock

import pytest

from scisource_ingest.dictionaries import Dictionary
from scisource_ingest.graph import AnchorPoint, Annotation, Article
from scisource_ingest.graph.schema import (
    ResolvedSchema,
    required_item_labels,
    required_property_labels,
)

TODAY = date(2018, 6, 1)


def make_dictionary(identifier, *terms):
    return Dictionary.model_validate(
        {
            "id": identifier,
            "entries": [
                {"name": t, "term": t, "identifiers": {"wikidata": f"Q{100 + i}"}}
                for i, t in enumerate(terms)
            ],
        }
    )


def make_article(anchor_count=0):
    anchors = [
        AnchorPoint(
            character_number=10 * i,
            time_code=TODAY,
            annotation=Annotation(
                term=f"term{i}",
                length=5,
                dictionary_name="drugs",
                time_code=TODAY,
            ),
        )
        for i in range(anchor_count)
    ]
    return Article(
        science_source_title="A paper (123)",
        wikidata_code="Q5",
        article_text_title="A paper",
        publication_date=date(2017, 1, 2),
        time_code=TODAY,
        anchor_points=anchors,
    )


@pytest.fixture
def schema():
    properties = {label: f"P{i}" for i, label in enumerate(required_property_labels(), start=1)}
    items = {label: f"Q{9000 + i}" for i, label in enumerate(required_item_labels())}
    return ResolvedSchema(properties=properties, items=items)


@pytest.fixture
def knowledge_base():
    """Remote store double handing out sequential item ids."""
    ids = count(1)
    kb = AsyncMock()
    kb.create_item.side_effect = lambda label: f"Q{next(ids)}"
    kb.create_page.return_value = 77
    kb.upload_claims.return_value = None
    return kb
