"""Annotate scholarly articles with dictionary terms and publish them to Wikibase."""

__version__ = "0.1.0"
