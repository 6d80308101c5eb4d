"""
Input validation boundary.

Blank text is a legitimate input and short-circuits to an empty result.
Oversized text and malformed batches are rejected before any prompt is built.
"""

from typing import Any, List, Optional

from shared.errors import InputValidationError

MAX_TEXT_LENGTH = 50_000
MAX_BATCH_SIZE = 20


def validate_text(text: Optional[Any]) -> str:
    """
    Return ``text`` as a string, or ``""`` when it is None or blank.
    
    Raises:
        InputValidationError: If the text exceeds MAX_TEXT_LENGTH characters
    """
    if text is None:
        return ""
    text = str(text)
    if not text.strip():
        return ""
    if len(text) > MAX_TEXT_LENGTH:
        raise InputValidationError(f"Text too long (max {MAX_TEXT_LENGTH} chars)", length=len(text))
    return text


def validate_batch(texts: Any) -> List[str]:
    if texts is None:
        raise InputValidationError("Batch cannot be None")
    if not isinstance(texts, (list, tuple)):
        raise InputValidationError("Batch must be a list")
    if len(texts) == 0:
        raise InputValidationError("Batch cannot be empty")
    if len(texts) > MAX_BATCH_SIZE:
        raise InputValidationError(f"Batch too large (max {MAX_BATCH_SIZE} items)", size=len(texts))
    return [validate_text(text) for text in texts]


def validate_max_words(max_words: Any, name: str = "max_words") -> int:
    if isinstance(max_words, bool) or not isinstance(max_words, int) or max_words <= 0:
        raise InputValidationError(f"{name} must be a positive integer")
    return max_words


def require_locale(value: Optional[str], name: str) -> str:
    if value is None or not str(value).strip():
        raise InputValidationError(f"{name} cannot be empty")
    return value
