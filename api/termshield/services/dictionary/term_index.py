"""Immutable per-scope snapshot of dictionary terms.

The index answers three questions for the matcher and marker resolver:
which group owns a lowercased term, what a group's text is in a given
language, and in what order terms should be tried (longest first).
"""

import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from termshield.models.dictionary import DictionaryRow


@dataclass(frozen=True)
class TermIndex:
    """Point-in-time view of a scope's dictionary.

    Attributes:
        dictionary_translations: dictionary_id -> language_code -> text
        term_owner: lowercased term text -> owning dictionary_id
        terms_by_length_desc: keys of ``term_owner``, longest first, ties in
            encounter order
        built_at: wall-clock timestamp (seconds) of construction
    """

    dictionary_translations: Mapping[str, Mapping[str, str]]
    term_owner: Mapping[str, str]
    terms_by_length_desc: Tuple[str, ...]
    built_at: float = field(default=0.0)

    @property
    def is_empty(self) -> bool:
        return not self.terms_by_length_desc

    @property
    def term_count(self) -> int:
        return len(self.terms_by_length_desc)

    def translation_for(self, dictionary_id: str, language_code: str) -> Optional[str]:
        """Return the group's text in ``language_code``, or None."""
        translations = self.dictionary_translations.get(dictionary_id)
        if translations is None:
            return None
        return translations.get(language_code)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to plain dicts for debug output."""
        return {
            "text_map": dict(self.term_owner),
            "dictionary_map": {
                dictionary_id: dict(translations)
                for dictionary_id, translations in self.dictionary_translations.items()
            },
        }


def build_term_index(
    rows: Iterable[DictionaryRow], built_at: Optional[float] = None
) -> TermIndex:
    """Build a TermIndex from a scope's dictionary rows.

    Every language of every group is indexed, so a term is detected whichever
    language it is written in. When two groups share a lowercased term, the
    row encountered first wins.

    Args:
        rows: Flat (dictionary_id, language_code, text) rows for one scope
        built_at: Construction timestamp; defaults to ``time.time()``

    Returns:
        A new, immutable TermIndex
    """
    translations: Dict[str, Dict[str, str]] = {}
    owners: Dict[str, str] = {}

    for row in rows:
        translations.setdefault(row.dictionary_id, {})[row.language_code] = row.text

        lowered = row.text.lower()
        if lowered and lowered not in owners:
            owners[lowered] = row.dictionary_id

    # sorted() is stable, so equal lengths keep encounter order
    terms = tuple(sorted(owners, key=len, reverse=True))

    return TermIndex(
        dictionary_translations=MappingProxyType(
            {
                dictionary_id: MappingProxyType(by_language)
                for dictionary_id, by_language in translations.items()
            }
        ),
        term_owner=MappingProxyType(owners),
        terms_by_length_desc=terms,
        built_at=time.time() if built_at is None else built_at,
    )
