from .inputs import (
    MAX_TEXT_LENGTH,
    MAX_BATCH_SIZE,
    validate_text,
    validate_batch,
    validate_max_words,
    require_locale,
)

__all__ = [
    "MAX_TEXT_LENGTH",
    "MAX_BATCH_SIZE",
    "validate_text",
    "validate_batch",
    "validate_max_words",
    "require_locale",
]
