from .models import DataValue, Feed, FeedEntry
from .loader import FeedLoadError, load_feed

__all__ = [
    "DataValue",
    "Feed",
    "FeedEntry",
    "FeedLoadError",
    "load_feed",
]
