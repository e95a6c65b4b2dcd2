"""Front-matter extraction from JATS full-text XML."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from lxml import etree
from pydantic import BaseModel, ConfigDict


class MarkupParseError(RuntimeError):
    """Raised when a JATS document cannot be parsed."""


class FrontMatter(BaseModel):
    title: str = ""

    model_config = ConfigDict(frozen=True)


def _text(element: Optional[etree._Element]) -> str:
    if element is None:
        return ""
    return " ".join("".join(element.itertext()).split())


def parse_front_matter(path: Path | str) -> FrontMatter:
    try:
        tree = etree.parse(str(path), etree.XMLParser(resolve_entities=False, no_network=True))
    except (OSError, etree.XMLSyntaxError) as exc:
        raise MarkupParseError(f"Failed to parse JATS document {path}: {exc}") from exc

    title = tree.getroot().find("./front/article-meta/title-group/article-title")
    return FrontMatter(title=_text(title))
