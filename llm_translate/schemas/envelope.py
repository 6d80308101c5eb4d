"""
Request envelope: everything a single call needs to render its prompt.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..prompts.builder import PromptBuilder


class Operation(str, Enum):
    TRANSLATION = "translation"
    BULK_TRANSLATION = "bulk_translation"
    SUMMARIZATION = "summarization"
    SUMMARIZATION_AND_TRANSLATION = "summarization_and_translation"
    TIERED_SUMMARIZATION = "tiered_summarization"
    LANGUAGE_DETECTION = "language_detection"


class RequestEnvelope(BaseModel):
    """Per-call request description. Built fresh for every call, never persisted."""

    model_config = ConfigDict(frozen=True)

    operation: Operation = Field(..., description="Kind of request")
    source_locale: Optional[str] = Field(default=None, description="Normalized source locale, if known")
    target_locale: Optional[str] = Field(default=None, description="Normalized target locale")
    text: Union[str, List[str]] = Field(..., description="Input text, or texts for bulk translation")
    max_words: Optional[int] = Field(default=None, description="Summary length cap")
    context: Optional[str] = Field(default=None, description="Free-form context for the model")
    glossary: Optional[Union[Dict[str, str], str]] = Field(default=None, description="Mandatory term translations")
    style: Optional[str] = Field(default=None, description="Style name or free-form style instruction")
    preserve_html: bool = Field(default=False, description="Keep HTML markup untouched")

    @field_validator("max_words")
    @classmethod
    def positive_max_words(cls, v):
        if v is not None and v <= 0:
            raise ValueError("max_words must be a positive integer")
        return v

    @property
    def text_length(self) -> int:
        if isinstance(self.text, list):
            return sum(len(item) for item in self.text)
        return len(self.text)

    def render(self) -> str:
        """Render the prompt for this envelope."""
        if self.operation == Operation.TRANSLATION:
            return PromptBuilder.translation_prompt(
                self.text, self.source_locale, self.target_locale,
                context=self.context, glossary=self.glossary,
                style=self.style, preserve_html=self.preserve_html,
            )
        if self.operation == Operation.BULK_TRANSLATION:
            texts = self.text if isinstance(self.text, list) else [self.text]
            return PromptBuilder.bulk_translation_prompt(
                texts, self.source_locale, self.target_locale,
                context=self.context, glossary=self.glossary,
            )
        if self.operation in (Operation.SUMMARIZATION, Operation.TIERED_SUMMARIZATION):
            return PromptBuilder.summary_prompt(
                self.text, self.max_words, self.target_locale,
                context=self.context, style=self.style,
            )
        if self.operation == Operation.SUMMARIZATION_AND_TRANSLATION:
            return PromptBuilder.summary_translation_prompt(
                self.text, self.source_locale, self.target_locale, self.max_words,
            )
        return PromptBuilder.language_detection_prompt(self.text)
