"""
Annotation Builder Tests

- Context phrase extraction, including buffer boundaries
- Merge ordering and tie-breaks
- Adjacent-match distances (absent at the ends, never zero)
"""

from scisource_ingest.annotations import (
    SearchDirection,
    build_anchor_points,
    find_phrase,
    sort_matches,
)
from scisource_ingest.dictionaries import find_all_matches

from conftest import TODAY, make_dictionary


class TestFindPhrase:
    def test_backward_runs_to_buffer_start_when_no_whitespace(self):
        text = "aaa bbbbbbbbbb ccc"

        assert find_phrase(text, 4, SearchDirection.BACKWARD, target_size=2) == "aaa"

    def test_forward_runs_to_buffer_end(self):
        text = "aaa bbbbbbbbbb ccc"

        assert find_phrase(text, 14, SearchDirection.FORWARD, target_size=2) == "ccc"

    def test_backward_stops_on_whitespace_without_splitting_words(self):
        text = "one two three four"

        assert find_phrase(text, 14, SearchDirection.BACKWARD, target_size=2) == "three"

    def test_forward_stops_on_whitespace_without_splitting_words(self):
        text = "one two three four"

        assert find_phrase(text, 3, SearchDirection.FORWARD, target_size=2) == "two"

    def test_offsets_at_and_beyond_the_ends_clamp(self):
        text = "short text"

        assert find_phrase(text, 0, SearchDirection.BACKWARD, target_size=100) == ""
        assert find_phrase(text, len(text), SearchDirection.FORWARD, target_size=100) == ""
        assert find_phrase(text, 500, SearchDirection.BACKWARD, target_size=3) == "text"
        assert find_phrase(text, -5, SearchDirection.FORWARD, target_size=3) == "short"

    def test_empty_text(self):
        assert find_phrase("", 0, SearchDirection.BACKWARD, target_size=5) == ""
        assert find_phrase("", 0, SearchDirection.FORWARD, target_size=5) == ""

    def test_window_larger_than_text(self):
        text = "alpha beta gamma"

        assert find_phrase(text, 6, SearchDirection.BACKWARD, target_size=100) == "alpha"
        assert find_phrase(text, 10, SearchDirection.FORWARD, target_size=100) == "gamma"


class TestBuildAnchorPoints:
    def test_no_matches_yields_empty_chain(self):
        assert build_anchor_points([], "some text", "T (1)", TODAY) == []

    def test_anchors_are_offset_ordered_with_adjacent_distances(self):
        text = "zika then aspirin then zika then ibuprofen"
        dictionaries = [
            make_dictionary("viruses", "zika"),
            make_dictionary("drugs", "aspirin", "ibuprofen"),
        ]
        matches = find_all_matches(dictionaries, text)

        anchors = build_anchor_points(matches, text, "T (1)", TODAY, target_size=5)

        offsets = [a.character_number for a in anchors]
        assert offsets == sorted(offsets) == [0, 10, 23, 33]
        assert [a.annotation.term for a in anchors] == ["zika", "aspirin", "zika", "ibuprofen"]

        assert anchors[0].distance_to_preceding is None
        assert anchors[-1].distance_to_following is None
        for prev, cur in zip(anchors, anchors[1:]):
            assert cur.distance_to_preceding == cur.character_number - prev.character_number
            assert prev.distance_to_following == cur.distance_to_preceding

    def test_single_match_has_no_distances(self):
        text = "only zika here"
        matches = make_dictionary("viruses", "zika").find_matches(text)

        (anchor,) = build_anchor_points(matches, text, "T (1)", TODAY)

        assert anchor.distance_to_preceding is None
        assert anchor.distance_to_following is None

    def test_annotation_fields(self):
        text = "we gave aspirin daily"
        matches = make_dictionary("drugs", "aspirin").find_matches(text)

        (anchor,) = build_anchor_points(matches, text, "T (1)", TODAY, target_size=3)

        assert anchor.preceding_phrase == "gave"
        assert anchor.following_phrase == "daily"
        assert anchor.science_source_title == "T (1)"
        assert anchor.time_code == TODAY
        assert anchor.annotation.term == "aspirin"
        assert anchor.annotation.length == 7
        assert anchor.annotation.dictionary_name == "drugs"
        assert anchor.annotation.wikidata_code == "Q100"
        assert anchor.item_id is None
        assert anchor.annotation.item_id is None

    def test_equal_offsets_keep_dictionary_order(self):
        text = "zika"
        first = make_dictionary("first", "zika")
        second = make_dictionary("second", "zika")

        ordered = sort_matches(find_all_matches([second, first], text))

        assert [m.dictionary.identifier for m in ordered] == ["second", "first"]

        anchors = build_anchor_points(ordered, text, "T (1)", TODAY)
        assert anchors[0].distance_to_following == 0
        assert anchors[1].distance_to_preceding == 0
