from .builder import SearchDirection, build_anchor_points, find_phrase, sort_matches

__all__ = [
    "SearchDirection",
    "build_anchor_points",
    "find_phrase",
    "sort_matches",
]
