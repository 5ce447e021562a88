"""
Wiring for the dictionary translation pipeline.
Builds the store, cache manager and translation client from settings.
"""

import logging
import sys
from typing import Optional

import httpx

from termshield.core.config import Settings, get_settings
from termshield.services.dictionary.cache_manager import DictionaryCacheManager
from termshield.services.dictionary.store import SQLiteDictionaryStore
from termshield.services.translation.client import TranslationServiceClient
from termshield.services.translation.pipeline import DictionaryTranslationPipeline

logger = logging.getLogger("termshield.main")


def configure_logging(settings: Settings) -> None:
    """Configure root logging; DEBUG also surfaces lost-marker diagnostics."""
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def create_pipeline(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> DictionaryTranslationPipeline:
    """Create a pipeline with its collaborators from settings.

    Args:
        settings: Application settings (defaults to the cached instance)
        transport: Optional httpx transport for the translation client

    Returns:
        A ready DictionaryTranslationPipeline
    """
    settings = settings or get_settings()
    settings.ensure_data_dirs()
    logger.info(
        f"Starting {settings.PROJECT_NAME} pipeline "
        f"(environment={settings.ENVIRONMENT}, data_dir={settings.DATA_DIR})"
    )

    logger.info("Initializing SQLiteDictionaryStore...")
    store = SQLiteDictionaryStore(settings.DICTIONARY_DB_PATH)

    logger.info("Initializing DictionaryCacheManager...")
    cache_manager = DictionaryCacheManager(
        store, ttl_seconds=settings.DICTIONARY_CACHE_TTL_SECONDS
    )

    logger.info("Initializing TranslationServiceClient...")
    client = TranslationServiceClient(settings, transport=transport)

    return DictionaryTranslationPipeline(
        cache_manager=cache_manager, store=store, translator=client
    )
