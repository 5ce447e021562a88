from termshield.models.dictionary import DictionaryRow, DictionaryScope, TermMatch
from termshield.models.translation import (
    TranslationResult,
    TranslationServiceData,
    TranslationServicePayload,
    TranslationServiceResponse,
)

__all__ = [
    "DictionaryRow",
    "DictionaryScope",
    "TermMatch",
    "TranslationResult",
    "TranslationServiceData",
    "TranslationServicePayload",
    "TranslationServiceResponse",
]
