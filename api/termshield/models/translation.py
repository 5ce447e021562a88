"""Wire models for the external translation service and pipeline results."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class TranslationServicePayload(BaseModel):
    texts: List[str]
    target_language_codes: List[str] = Field(..., min_length=1)


class TranslationServiceData(BaseModel):
    # translations[language_index][string_index]
    translations: List[List[str]] = Field(default_factory=list)


class TranslationServiceResponse(BaseModel):
    success: bool
    data: Optional[TranslationServiceData] = None
    error: Optional[str] = None
    debug: Optional[Dict[str, Any]] = None

    model_config = {"extra": "allow"}


class TranslationResult(BaseModel):
    """Outcome of one dictionary-aware translation request."""

    translations: Dict[str, List[str]]
    dictionary_terms_used: List[str]
    request_id: str
    debug: Optional[Dict[str, Any]] = None
