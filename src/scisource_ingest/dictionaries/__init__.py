from .matcher import (
    Dictionary,
    DictionaryEntry,
    DictionaryEntryIdentifiers,
    DictionaryLoadError,
    DictionaryMatch,
    find_all_matches,
    load_dictionaries_from_directory,
    load_dictionary,
    summarize,
)

__all__ = [
    "Dictionary",
    "DictionaryEntry",
    "DictionaryEntryIdentifiers",
    "DictionaryLoadError",
    "DictionaryMatch",
    "find_all_matches",
    "load_dictionaries_from_directory",
    "load_dictionary",
    "summarize",
]
