"""Dictionary-aware translation pipeline.

Flow:
1. Fetch the scope's term index from the cache manager
2. Find dictionary terms in every input string and wrap them in markers
3. Send the marked-up strings to the external translation service
4. Replace surviving markers with the dictionary text for each target language
"""

import asyncio
import logging
import time
import uuid
from typing import Any, Dict, List, Optional, Protocol

from termshield.core.exceptions import TranslationServiceError
from termshield.metrics.dictionary_metrics import (
    dictionary_terms_matched_total,
    translation_request_duration_seconds,
    translation_requests_total,
)
from termshield.models.dictionary import DictionaryScope, TermMatch
from termshield.models.translation import (
    TranslationResult,
    TranslationServiceResponse,
)
from termshield.services.dictionary.cache_manager import DictionaryCacheManager
from termshield.services.dictionary.markers import apply_markers, resolve_markers
from termshield.services.dictionary.matcher import (
    extract_dictionary_terms,
    find_matches,
)
from termshield.services.dictionary.store import DictionaryStore
from termshield.services.dictionary.term_index import TermIndex

logger = logging.getLogger(__name__)


class TranslationBackend(Protocol):
    async def translate(
        self, texts: List[str], target_language_codes: List[str]
    ) -> TranslationServiceResponse: ...


class DictionaryTranslationPipeline:
    """Shields dictionary terms from the external translator and substitutes
    the dictionary's own translations afterwards."""

    def __init__(
        self,
        cache_manager: DictionaryCacheManager,
        store: DictionaryStore,
        translator: TranslationBackend,
    ):
        self.cache_manager = cache_manager
        self.store = store
        self.translator = translator

    async def _mark_strings(
        self, strings: List[str], index: TermIndex
    ) -> tuple[List[str], Dict[int, List[TermMatch]]]:
        processed: List[str] = []
        matches_by_index: Dict[int, List[TermMatch]] = {}

        for idx, text in enumerate(strings):
            matches = find_matches(text, index)
            if matches:
                matches_by_index[idx] = matches
                dictionary_terms_matched_total.inc(len(matches))
                processed.append(apply_markers(text, matches))
            else:
                processed.append(text)
            # Let a cancelled request stop between strings
            await asyncio.sleep(0)

        return processed, matches_by_index

    async def _resolve_strings(
        self,
        translations_by_language: Dict[str, List[str]],
        matches_by_index: Dict[int, List[TermMatch]],
        index: TermIndex,
    ) -> Dict[str, List[str]]:
        resolved: Dict[str, List[str]] = {}
        for language, translations in translations_by_language.items():
            texts: List[str] = []
            for idx, text in enumerate(translations):
                matches = matches_by_index.get(idx)
                if matches:
                    text = resolve_markers(text, matches, language, index)
                texts.append(text)
            resolved[language] = texts
            await asyncio.sleep(0)
        return resolved

    async def translate(
        self,
        scope: DictionaryScope,
        strings: List[str],
        target_languages: List[str],
        skip_dictionaries: bool = False,
        debug: bool = False,
    ) -> TranslationResult:
        """Translate ``strings`` into every target language.

        Args:
            scope: Tenant scope whose dictionary applies
            strings: Input strings
            target_languages: Language codes to translate into
            skip_dictionaries: Translate without term shielding; dictionary
                terms found in the input are still reported
            debug: Attach processed strings, matches and the index to the result

        Returns:
            TranslationResult with translations keyed by language

        Raises:
            StoreUnavailableError: If the dictionary store cannot be read
            TranslationServiceError: If the external service fails
        """
        start_time = time.perf_counter()
        request_id = str(uuid.uuid4())

        index: Optional[TermIndex] = None
        processed_strings = list(strings)
        matches_by_index: Dict[int, List[TermMatch]] = {}
        terms_used: List[str] = []

        try:
            if skip_dictionaries:
                rows = await self.store.fetch_rows(scope)
                terms_used = extract_dictionary_terms(
                    strings, [row.text for row in rows]
                )
            else:
                index = await self.cache_manager.get(scope)
                if not index.is_empty:
                    processed_strings, matches_by_index = await self._mark_strings(
                        strings, index
                    )
                    for matches in matches_by_index.values():
                        for match in matches:
                            if match.term not in terms_used:
                                terms_used.append(match.term)

            service_response = await self.translator.translate(
                processed_strings, target_languages
            )
            if not service_response.success or service_response.data is None:
                raise TranslationServiceError(
                    service_response.error or "Unknown error"
                )

            translations_by_language: Dict[str, List[str]] = {}
            for lang_idx, language in enumerate(target_languages):
                per_language = service_response.data.translations
                translations_by_language[language] = (
                    list(per_language[lang_idx]) if lang_idx < len(per_language) else []
                )

            if index is not None and matches_by_index:
                translations_by_language = await self._resolve_strings(
                    translations_by_language, matches_by_index, index
                )
        except Exception:
            translation_requests_total.labels(outcome="error").inc()
            raise
        finally:
            translation_request_duration_seconds.observe(
                max(0.0, time.perf_counter() - start_time)
            )

        translation_requests_total.labels(outcome="success").inc()
        logger.info(
            f"Translated {len(strings)} strings into {len(target_languages)} "
            f"languages for scope {scope.key} "
            f"({len(terms_used)} dictionary terms, request {request_id})"
        )

        debug_info: Optional[Dict[str, Any]] = None
        if debug:
            debug_info = {
                **(service_response.debug or {}),
                "processed_strings": processed_strings,
                "term_matches": {
                    idx: [match.to_dict() for match in matches]
                    for idx, matches in matches_by_index.items()
                },
            }
            if index is not None:
                debug_info.update(index.to_dict())

        return TranslationResult(
            translations=translations_by_language,
            dictionary_terms_used=terms_used,
            request_id=request_id,
            debug=debug_info,
        )
