"""Dictionary term mediation.

This package provides:
- TermIndex / build_term_index: immutable per-scope snapshot of terms
- DictionaryCacheManager: lazily built, TTL-bound, invalidatable indexes
- find_matches: whole-word, longest-first term matching
- apply_markers / resolve_markers: marker round-trip around translation
- SQLiteDictionaryStore: read boundary to the dictionary tables
"""

from termshield.services.dictionary.cache_manager import (
    DictionaryCacheManager,
    invalidate_on_success,
)
from termshield.services.dictionary.markers import apply_markers, resolve_markers
from termshield.services.dictionary.matcher import (
    extract_dictionary_terms,
    find_matches,
)
from termshield.services.dictionary.store import DictionaryStore, SQLiteDictionaryStore
from termshield.services.dictionary.term_index import TermIndex, build_term_index

__all__ = [
    "DictionaryCacheManager",
    "DictionaryStore",
    "SQLiteDictionaryStore",
    "TermIndex",
    "apply_markers",
    "build_term_index",
    "extract_dictionary_terms",
    "find_matches",
    "invalidate_on_success",
    "resolve_markers",
]
