"""
Transport-level batch items and their outcomes.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class BatchRequest(BaseModel):
    """A rendered prompt queued for ``send_batch``."""

    prompt: str = Field(..., description="Rendered prompt")
    source_locale: Optional[str] = Field(default=None, description="Source locale, for hooks and logs")
    target_locale: Optional[str] = Field(default=None, description="Target locale, used to reassemble results")
    original_text: Optional[str] = Field(default=None, description="Input text the prompt was built from")
    index: Optional[int] = Field(default=None, description="Caller-defined position")


class BatchOutcome(BaseModel):
    """Result of one batch item. Failures are captured, never raised."""

    success: bool
    result: Optional[str] = None
    error: Optional[str] = None
    request: BatchRequest
