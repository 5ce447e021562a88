"""
Pytest configuration and fixtures for the termshield test suite.

This module provides:
- Test settings with an isolated data directory
- An in-memory dictionary store double and a controllable clock
- A temporary SQLite dictionary store
"""

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from termshield.core.config import Settings, reset_settings
from termshield.models.dictionary import DictionaryScope
from termshield.services.dictionary.store import SQLiteDictionaryStore

from tests.dictionary_helpers import FakeClock, FakeDictionaryStore


@pytest.fixture
def scope() -> DictionaryScope:
    return DictionaryScope(entity_id="entity-1", project_id="project-1")


@pytest.fixture
def other_scope() -> DictionaryScope:
    return DictionaryScope(entity_id="entity-1", project_id="project-2")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_store() -> FakeDictionaryStore:
    return FakeDictionaryStore()


@pytest.fixture
def test_data_dir() -> Generator[str, None, None]:
    """Create an isolated data directory, removed after the test.

    Yields:
        str: Path to the temporary data directory
    """
    temp_dir = tempfile.mkdtemp(prefix="termshield_test_")
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def test_settings(test_data_dir: str) -> Generator[Settings, None, None]:
    """Settings pointing at the temporary data directory and a fake service URL."""
    yield Settings(
        DEBUG=True,
        DATA_DIR=test_data_dir,
        ENVIRONMENT="testing",
        TRANSLATION_SERVICE_URL="http://translator.test/translate",
        TRANSLATION_SERVICE_TIMEOUT=5.0,
        DICTIONARY_CACHE_TTL_SECONDS=300.0,
    )
    reset_settings()


@pytest.fixture
def sqlite_db_path(test_data_dir: str) -> str:
    return str(Path(test_data_dir) / "dictionary.db")


@pytest.fixture
def sqlite_store(sqlite_db_path: str) -> SQLiteDictionaryStore:
    return SQLiteDictionaryStore(sqlite_db_path)
