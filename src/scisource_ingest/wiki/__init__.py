from .api_client import MediaWikiClient, MediaWikiRequestError, MediaWikiResponseError
from .wikibase_client import WikibaseClient, WikibaseError

__all__ = [
    "MediaWikiClient",
    "MediaWikiRequestError",
    "MediaWikiResponseError",
    "WikibaseClient",
    "WikibaseError",
]
