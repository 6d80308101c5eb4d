"""
Parsed results handed back to callers.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class TranslationResult(BaseModel):
    """A successfully decoded single-operation envelope."""

    original: Optional[str] = Field(default=None, description="Echo of the source text, if the model returned one")
    translated: str = Field(..., description="Translated or summarized payload")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="The envelope's metadata object")

    @field_validator("translated")
    @classmethod
    def non_empty(cls, v: str) -> str:
        if v == "":
            raise ValueError("translated must not be empty")
        return v


class BulkTranslationItem(BaseModel):
    """One entry of a bulk translation answer, tagged with its 1-based index."""

    index: int = Field(..., description="1-based position in the request")
    original: Optional[str] = Field(default=None, description="Echo of the source text")
    translated: Optional[str] = Field(default=None, description="Translated text")


class QualityCheckResult(BaseModel):
    """Translation plus the model's self-assessment."""

    translation: str = Field(..., description="Translated text")
    quality_check: Dict[str, Any] = Field(default_factory=dict, description="Self-assessment object")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="The envelope's metadata object")


class TieredSummary(BaseModel):
    short: str
    medium: str
    long: str
