"""
Custom exception hierarchy for the Termshield dictionary mediation layer.

Errors carry an HTTP status and a stable error code so the hosting request
pipeline can surface them without re-mapping.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class BaseAppException(HTTPException):
    """Base exception for all application errors."""

    def __init__(
        self,
        detail: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        headers: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code or self.__class__.__name__


# Configuration Exceptions


class ConfigurationError(BaseAppException):
    """Raised when a required setting is missing or invalid."""

    def __init__(self, setting: str, detail: Optional[str] = None):
        self.setting = setting
        super().__init__(
            detail or f"Required setting '{setting}' is not configured",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="CONFIGURATION_ERROR",
        )


# Dictionary Store Exceptions


class StoreUnavailableError(BaseAppException):
    """Raised when the dictionary store cannot be read.

    Never masked by serving a previously cached term index.
    """

    def __init__(self, scope_key: str, reason: str):
        self.scope_key = scope_key
        super().__init__(
            f"Dictionary store read failed for scope '{scope_key}': {reason}",
            status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code="DICTIONARY_STORE_UNAVAILABLE",
        )


# External Translation Service Exceptions


class TranslationServiceError(BaseAppException):
    """Raised when the external translation service rejects or fails a request."""

    def __init__(
        self,
        detail: str,
        upstream_status: Optional[int] = None,
        error_code: Optional[str] = None,
        status_code: int = status.HTTP_502_BAD_GATEWAY,
    ):
        self.upstream_status = upstream_status
        super().__init__(
            f"Translation service error: {detail}",
            status_code,
            error_code=error_code or "TRANSLATION_SERVICE_ERROR",
        )


class TranslationServiceTimeoutError(TranslationServiceError):
    """Raised when the external translation service does not answer in time."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(
            f"request timed out after {timeout}s",
            error_code="TRANSLATION_SERVICE_TIMEOUT",
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        )
