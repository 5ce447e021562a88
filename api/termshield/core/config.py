import logging
import os
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    DEBUG: bool = False
    PROJECT_NAME: str = "Termshield"

    # Directory settings
    DATA_DIR: str = "api/data"
    DICTIONARY_DB_FILENAME: str = "dictionary.db"

    # Dictionary cache: lifetime of a scope's term index, measured from build time.
    # Guards against store changes made outside the mutation/invalidation path.
    DICTIONARY_CACHE_TTL_SECONDS: float = 300.0

    # External translation service
    TRANSLATION_SERVICE_URL: str = ""
    TRANSLATION_SERVICE_TIMEOUT: float = 120.0  # seconds
    TRANSLATION_SERVICE_MAX_ATTEMPTS: int = 3

    # Environment settings
    ENVIRONMENT: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="allow",
    )

    @property
    def DICTIONARY_DB_PATH(self) -> str:
        """Complete path to the SQLite dictionary database file"""
        return os.path.join(self.DATA_DIR, self.DICTIONARY_DB_FILENAME)

    @field_validator("DICTIONARY_CACHE_TTL_SECONDS")
    @classmethod
    def validate_cache_ttl(cls, v: float) -> float:
        """Validate the dictionary cache TTL.

        Raises:
            ValueError: If the TTL is not strictly positive
        """
        if v <= 0:
            raise ValueError(
                f"DICTIONARY_CACHE_TTL_SECONDS must be greater than 0, got {v}"
            )
        return v

    @field_validator("TRANSLATION_SERVICE_TIMEOUT")
    @classmethod
    def validate_service_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(
                f"TRANSLATION_SERVICE_TIMEOUT must be greater than 0, got {v}"
            )
        return v

    @field_validator("TRANSLATION_SERVICE_MAX_ATTEMPTS")
    @classmethod
    def validate_max_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError(
                f"TRANSLATION_SERVICE_MAX_ATTEMPTS must be at least 1, got {v}"
            )
        return v

    @field_validator("TRANSLATION_SERVICE_URL")
    @classmethod
    def normalize_service_url(cls, v: str) -> str:
        """Strip whitespace and trailing slashes; an empty URL is allowed
        until the translation client is actually constructed."""
        return v.strip().rstrip("/")

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Make paths absolute
        self.DATA_DIR = os.path.abspath(self.DATA_DIR)

    def ensure_data_dirs(self) -> None:
        """Create required data directories if they don't exist.

        Called from the entry point to avoid import-time side effects.
        """
        Path(self.DATA_DIR).mkdir(parents=True, exist_ok=True)


# Thread-safe lazy initialization using lru_cache
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings instance with lazy initialization.

    Settings are only created once on first access, then cached for subsequent calls.
    This prevents module-level side effects and allows testing without environment variables.

    Returns:
        Settings: Application settings object
    """
    return Settings()


def reset_settings() -> None:
    """Reset the cached settings instance.

    Useful for testing when you need to reload settings with different values.
    """
    get_settings.cache_clear()
