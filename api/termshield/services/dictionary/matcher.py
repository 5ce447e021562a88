"""Whole-word, case-insensitive, longest-first dictionary term matching."""

import logging
import re
from typing import Iterable, List, Pattern

from termshield.models.dictionary import TermMatch
from termshield.services.dictionary.term_index import TermIndex

logger = logging.getLogger(__name__)


def _term_pattern(term: str) -> Pattern[str]:
    # Lookarounds instead of \b so terms starting or ending with a
    # non-word character ("C++", ".NET") still get whole-word semantics.
    return re.compile(r"(?<!\w)" + re.escape(term) + r"(?!\w)", re.IGNORECASE)


def find_matches(text: str, index: TermIndex) -> List[TermMatch]:
    """Find all dictionary terms in ``text``.

    Terms are tried longest first; an occurrence overlapping a range already
    claimed by an earlier (longer or earlier-ordered) term is discarded, so
    "New York City" wins over "York". Matching is case-insensitive and only
    fires on whole words.

    Args:
        text: Input string (any Unicode, may be empty)
        index: Term index for the request's scope

    Returns:
        Non-overlapping matches sorted by start offset
    """
    if index.is_empty or not text:
        return []

    matches: List[TermMatch] = []

    for term in index.terms_by_length_desc:
        dictionary_id = index.term_owner[term]
        for found in _term_pattern(term).finditer(text):
            start, end = found.span()
            if any(claimed.overlaps(start, end) for claimed in matches):
                continue
            matches.append(
                TermMatch(
                    term=found.group(0),
                    start=start,
                    end=end,
                    dictionary_id=dictionary_id,
                )
            )

    matches.sort(key=lambda match: match.start)
    return matches


def extract_dictionary_terms(strings: Iterable[str], terms: Iterable[str]) -> List[str]:
    """Report which dictionary texts occur anywhere in ``strings``.

    Informational only: a case-insensitive substring check over all strings
    joined together, with no word boundaries and no wrapping. Used when a
    request opts out of dictionary substitution.

    Returns:
        Distinct terms found, in the order given
    """
    combined = " ".join(strings).lower()
    found: List[str] = []
    seen = set()
    for term in terms:
        if not term or term in seen:
            continue
        if term.lower() in combined:
            seen.add(term)
            found.append(term)
    return found
