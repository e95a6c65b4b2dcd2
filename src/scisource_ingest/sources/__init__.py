from .europepmc import DocumentFetchError, EuropePMCSource
from .jats import FrontMatter, MarkupParseError, parse_front_matter

__all__ = [
    "DocumentFetchError",
    "EuropePMCSource",
    "FrontMatter",
    "MarkupParseError",
    "parse_front_matter",
]
