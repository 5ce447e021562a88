"""Translation package.

- TranslationServiceClient: HTTP client for the external translation service
- DictionaryTranslationPipeline: dictionary-aware translation orchestration
"""

from termshield.services.translation.client import TranslationServiceClient
from termshield.services.translation.pipeline import DictionaryTranslationPipeline

__all__ = ["DictionaryTranslationPipeline", "TranslationServiceClient"]
