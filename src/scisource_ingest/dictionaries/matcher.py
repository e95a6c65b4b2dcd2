"""
Term Dictionaries

This module loads the term dictionaries we annotate articles with and
performs multi-pattern search over article text.

Key Properties
--------------
- Each dictionary is immutable once loaded
- An Aho-Corasick automaton is compiled once per dictionary at load time,
  so one linear scan of the text finds every term of that dictionary
- Offsets are character offsets into the decoded article text
- No de-duplication across dictionaries: the same term in two dictionaries
  yields two independent matches
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

import ahocorasick
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

logger = logging.getLogger("ingest.dictionary")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class DictionaryLoadError(RuntimeError):
    """Raised when a dictionary file is missing, unreadable or malformed."""


# ---------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------

class DictionaryEntryIdentifiers(BaseModel):
    contentmine: str = ""
    wikidata: str = ""

    model_config = ConfigDict(extra="ignore", frozen=True)


class DictionaryEntry(BaseModel):
    name: str = ""
    term: str = Field(..., min_length=1)
    identifiers: DictionaryEntryIdentifiers = Field(
        default_factory=DictionaryEntryIdentifiers
    )

    model_config = ConfigDict(extra="ignore", frozen=True)


class DictionaryMatch(BaseModel):
    """A single hit of a dictionary term in a text buffer."""

    offset: int
    entry: DictionaryEntry
    dictionary: "Dictionary"

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class Dictionary(BaseModel):
    """
    A named list of terms plus the compiled matcher for them.

    The automaton is built in ``model_post_init`` and never rebuilt; the
    entries are frozen so the two can never drift apart.
    """

    identifier: str = Field(..., alias="id", min_length=1)
    entries: Tuple[DictionaryEntry, ...] = ()

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    _automaton: Any = PrivateAttr(default=None)

    def model_post_init(self, __context: Any) -> None:
        automaton = ahocorasick.Automaton()
        for index, entry in enumerate(self.entries):
            # First entry wins for a term listed twice in the same dictionary
            if not automaton.exists(entry.term):
                automaton.add_word(entry.term, (index, entry.term))
        if len(automaton) > 0:
            automaton.make_automaton()
        self._automaton = automaton

    def find_matches(self, text: str) -> List[DictionaryMatch]:
        """
        Return every occurrence of every term of this dictionary in ``text``.

        Matches are reported in the order the automaton finds them, which
        is by ascending end position.
        """
        if not text or len(self._automaton) == 0:
            return []

        matches: List[DictionaryMatch] = []
        for end_index, (entry_index, term) in self._automaton.iter(text):
            matches.append(
                DictionaryMatch(
                    offset=end_index - len(term) + 1,
                    entry=self.entries[entry_index],
                    dictionary=self,
                )
            )
        return matches

    def __str__(self) -> str:
        return f"<Dictionary {self.identifier}: {len(self.entries)} entries>"


DictionaryMatch.model_rebuild()


# ---------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------

def load_dictionary(path: Path | str) -> Dictionary:
    """
    Load a single dictionary JSON file.

    Raises
    ------
    DictionaryLoadError
        If the file cannot be read or is not a valid dictionary.
    """
    dict_path = Path(path)
    try:
        with dict_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DictionaryLoadError(
            f"Failed to read dictionary {dict_path}: {exc}"
        ) from exc

    try:
        return Dictionary.model_validate(data)
    except ValidationError as exc:
        raise DictionaryLoadError(
            f"Dictionary {dict_path} is malformed: {exc.error_count()} validation error(s)"
        ) from exc


def load_dictionaries_from_directory(directory: Path | str) -> List[Dictionary]:
    """
    Load every ``*.json`` dictionary in ``directory``, in filename order.

    A directory with no dictionaries is not an error.
    """
    dir_path = Path(directory)
    if not dir_path.is_dir():
        raise DictionaryLoadError(f"Dictionary directory {dir_path} does not exist")

    dictionaries = [load_dictionary(p) for p in sorted(dir_path.glob("*.json"))]

    for identifier, count in summarize(dictionaries).items():
        logger.info("Dictionary %s has %d entries", identifier, count)
    return dictionaries


# ---------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------

def find_all_matches(
    dictionaries: Iterable[Dictionary],
    text: str,
) -> List[DictionaryMatch]:
    """
    Scan ``text`` with every dictionary.

    The result is the concatenation of each dictionary's matches in the
    order the dictionaries were supplied; it is not sorted by offset.
    """
    matches: List[DictionaryMatch] = []
    for dictionary in dictionaries:
        matches.extend(dictionary.find_matches(text))
    return matches


def summarize(dictionaries: Iterable[Dictionary]) -> Dict[str, int]:
    """Entry counts keyed by dictionary identifier, for run summaries."""
    return {d.identifier: len(d.entries) for d in dictionaries}
