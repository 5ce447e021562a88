"""Marker envelope round-trip around the external translation call.

Matched terms are wrapped as ``{{term}}`` before translation and the markers
are replaced with the dictionary's target-language text afterwards. The
external service may alter or drop markers, so resolution is best-effort.
"""

import logging
import re
from typing import Sequence

from termshield.metrics.dictionary_metrics import (
    dictionary_markers_lost_total,
    dictionary_markers_resolved_total,
)
from termshield.models.dictionary import TermMatch
from termshield.services.dictionary.term_index import TermIndex

logger = logging.getLogger(__name__)

MARKER_OPEN = "{{"
MARKER_CLOSE = "}}"


def make_marker(term: str) -> str:
    return f"{MARKER_OPEN}{term}{MARKER_CLOSE}"


def apply_markers(text: str, matches: Sequence[TermMatch]) -> str:
    """Wrap each matched span of ``text`` in a marker.

    Spans are replaced from the highest offset down so earlier offsets stay
    valid while the string grows.
    """
    result = text
    for match in sorted(matches, key=lambda m: m.start, reverse=True):
        result = result[: match.start] + make_marker(match.term) + result[match.end :]
    return result


def resolve_markers(
    translated_text: str,
    matches: Sequence[TermMatch],
    target_language: str,
    index: TermIndex,
) -> str:
    """Replace markers in translated text with dictionary translations.

    Matches are processed in source order; each one consumes the first
    remaining case-insensitive occurrence of its marker. A marker resolves to
    the group's ``target_language`` text, or to the original matched term
    when the group has no text in that language. Markers that did not survive
    translation are skipped.

    Args:
        translated_text: Output of the external translation service
        matches: Matches produced for the corresponding source string
        target_language: Language code the text was translated into
        index: The same term index the matches were produced against

    Returns:
        Text with every surviving marker resolved
    """
    result = translated_text

    for match in matches:
        marker = make_marker(match.term)
        found = re.search(re.escape(marker), result, re.IGNORECASE)
        if found is None:
            dictionary_markers_lost_total.inc()
            logger.debug(
                f"Marker for term '{match.term}' (dictionary {match.dictionary_id}) "
                f"not preserved in '{target_language}' translation"
            )
            continue

        replacement = index.translation_for(match.dictionary_id, target_language)
        if replacement is None:
            replacement = match.term
            dictionary_markers_resolved_total.labels(source="original").inc()
        else:
            dictionary_markers_resolved_total.labels(source="dictionary").inc()

        result = result[: found.start()] + replacement + result[found.end() :]

    return result
