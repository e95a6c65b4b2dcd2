"""
Annotation Builder

Turns the unordered dictionary matches for one article into the ordered
chain of anchor points (each owning one annotation) that gets published.

Ordering
--------
Matches are stable-sorted by offset. Ties keep the order the matches were
supplied in: dictionaries in load order, then the order each dictionary's
automaton reported them (for two terms starting at the same offset, the
shorter one first).

Distances
---------
Distances are measured to the adjacent match in the merged sequence only.
The first anchor has no preceding distance and the last has no following
distance; these are ``None``, never ``0``.
"""

from __future__ import annotations

from datetime import date
from enum import IntEnum
from typing import List, Sequence

from ..config import settings
from ..dictionaries import DictionaryMatch
from ..graph.models import AnchorPoint, Annotation


class SearchDirection(IntEnum):
    BACKWARD = -1
    FORWARD = 1


def find_phrase(
    text: str,
    start_offset: int,
    direction: SearchDirection,
    target_size: int | None = None,
) -> str:
    """
    Return the context phrase next to ``start_offset``.

    The scan jumps ``target_size`` characters in ``direction`` and then keeps
    walking one character at a time until it lands on whitespace or runs off
    the buffer, so the phrase never ends mid-word. The whitespace character
    itself is not part of the phrase, and the result is stripped.

    Offsets outside the buffer are clamped; this function never raises on
    boundary arithmetic.
    """
    if target_size is None:
        target_size = settings.phrase_target_size

    length = len(text)
    start = min(max(start_offset, 0), length)
    target = start + target_size * int(direction)

    if direction is SearchDirection.BACKWARD:
        target = min(max(target, -1), length - 1)
        while target >= 0 and not text[target].isspace():
            target -= 1
        # target is either the whitespace index or -1 (buffer start)
        lower, upper = target + 1, start
    else:
        while target < length and not text[target].isspace():
            target += 1
        lower, upper = start, min(target, length)

    if lower > upper:
        lower, upper = upper, lower
    return text[lower:upper].strip()


def sort_matches(matches: Sequence[DictionaryMatch]) -> List[DictionaryMatch]:
    # sorted() is stable, which gives the documented tie-break
    return sorted(matches, key=lambda match: match.offset)


def build_anchor_points(
    matches: Sequence[DictionaryMatch],
    text: str,
    science_source_title: str,
    today: date,
    target_size: int | None = None,
) -> List[AnchorPoint]:
    """
    Build one anchor point and child annotation per match, in offset order.

    An article with no matches yields an empty list.
    """
    ordered = sort_matches(matches)
    last = len(ordered) - 1

    anchors: List[AnchorPoint] = []
    for i, match in enumerate(ordered):
        term = match.entry.term

        annotation = Annotation(
            term=term,
            length=len(term),
            dictionary_name=match.dictionary.identifier,
            wikidata_code=match.entry.identifiers.wikidata,
            time_code=today,
            science_source_title=science_source_title,
        )

        anchors.append(
            AnchorPoint(
                preceding_phrase=find_phrase(
                    text, match.offset, SearchDirection.BACKWARD, target_size
                ),
                following_phrase=find_phrase(
                    text, match.offset + len(term), SearchDirection.FORWARD, target_size
                ),
                distance_to_preceding=(
                    match.offset - ordered[i - 1].offset if i > 0 else None
                ),
                distance_to_following=(
                    ordered[i + 1].offset - match.offset if i < last else None
                ),
                character_number=match.offset,
                time_code=today,
                science_source_title=science_source_title,
                annotation=annotation,
            )
        )

    return anchors
