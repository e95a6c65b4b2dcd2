"""
Dictionary Matcher Tests

- Loading from JSON files and directories
- Exhaustive term matching within one dictionary
- Independent matches across dictionaries
- Fatal errors for malformed dictionaries
"""

import json

import pytest

from scisource_ingest.dictionaries import (
    DictionaryLoadError,
    find_all_matches,
    load_dictionaries_from_directory,
    load_dictionary,
    summarize,
)

from conftest import make_dictionary


def write_dictionary(path, identifier, terms):
    path.write_text(
        json.dumps(
            {
                "id": identifier,
                "log": [],
                "entries": [
                    {
                        "name": t.title(),
                        "term": t,
                        "identifiers": {"contentmine": f"CM.{t}", "wikidata": f"Q{i}"},
                    }
                    for i, t in enumerate(terms, start=1)
                ],
            }
        ),
        encoding="utf-8",
    )


class TestLoading:
    def test_load_dictionary_from_file(self, tmp_path):
        path = tmp_path / "drugs.json"
        write_dictionary(path, "drugs", ["aspirin", "ibuprofen"])

        dictionary = load_dictionary(path)

        assert dictionary.identifier == "drugs"
        assert [e.term for e in dictionary.entries] == ["aspirin", "ibuprofen"]
        assert dictionary.entries[1].identifiers.wikidata == "Q2"

    def test_directory_loads_json_files_in_name_order(self, tmp_path):
        write_dictionary(tmp_path / "b.json", "zika", ["virus"])
        write_dictionary(tmp_path / "a.json", "drugs", ["aspirin"])
        (tmp_path / "notes.txt").write_text("not a dictionary")

        dictionaries = load_dictionaries_from_directory(tmp_path)

        assert [d.identifier for d in dictionaries] == ["drugs", "zika"]

    def test_empty_directory_is_not_an_error(self, tmp_path):
        assert load_dictionaries_from_directory(tmp_path) == []

    def test_missing_directory_is_fatal(self, tmp_path):
        with pytest.raises(DictionaryLoadError):
            load_dictionaries_from_directory(tmp_path / "nope")

    def test_invalid_json_is_fatal(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(DictionaryLoadError):
            load_dictionary(path)

    def test_undecodable_file_is_fatal(self, tmp_path):
        path = tmp_path / "latin1.json"
        path.write_bytes(b'{"id": "x\xff", "entries": []}')

        with pytest.raises(DictionaryLoadError):
            load_dictionary(path)

    def test_summary_counts_entries_per_dictionary(self, tmp_path):
        write_dictionary(tmp_path / "a.json", "drugs", ["aspirin", "ibuprofen"])
        write_dictionary(tmp_path / "b.json", "zika", ["virus"])

        assert summarize(load_dictionaries_from_directory(tmp_path)) == {"drugs": 2, "zika": 1}

    def test_entry_without_term_is_fatal(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"id": "bad", "entries": [{"name": "x", "term": ""}]}))

        with pytest.raises(DictionaryLoadError):
            load_dictionary(path)


class TestMatching:
    def test_finds_every_occurrence_with_offsets(self):
        dictionary = make_dictionary("drugs", "aspirin", "ibuprofen")
        text = "aspirin or ibuprofen, then aspirin again"

        matches = dictionary.find_matches(text)

        found = sorted((m.offset, m.entry.term) for m in matches)
        assert found == [(0, "aspirin"), (11, "ibuprofen"), (27, "aspirin")]
        for offset, term in found:
            assert text[offset:offset + len(term)] == term

    def test_overlapping_terms_are_all_reported(self):
        dictionary = make_dictionary("cells", "cell", "cell line")

        matches = dictionary.find_matches("a cell line")

        assert sorted((m.offset, m.entry.term) for m in matches) == [
            (2, "cell"),
            (2, "cell line"),
        ]

    def test_duplicate_term_in_one_dictionary_counts_once(self):
        dictionary = make_dictionary("dupes", "zika", "zika")

        matches = dictionary.find_matches("zika zika")

        assert [m.offset for m in matches] == [0, 5]
        assert all(m.entry is dictionary.entries[0] for m in matches)

    def test_same_term_in_two_dictionaries_matches_independently(self):
        first = make_dictionary("first", "zika")
        second = make_dictionary("second", "zika")

        matches = find_all_matches([first, second], "the zika virus")

        assert [(m.offset, m.dictionary.identifier) for m in matches] == [
            (4, "first"),
            (4, "second"),
        ]

    def test_no_dictionaries_no_matches(self):
        assert find_all_matches([], "anything at all") == []

    def test_empty_dictionary_no_matches(self):
        assert make_dictionary("empty").find_matches("anything") == []

    def test_unicode_offsets_are_character_offsets(self):
        dictionary = make_dictionary("greek", "β-lactam")

        matches = dictionary.find_matches("αβγ β-lactam")

        assert [m.offset for m in matches] == [4]
