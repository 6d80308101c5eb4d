"""
llm-translate errors and exceptions.

This module contains all custom exceptions used throughout the library.
"""

from .base import TranslationError
from .api_errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    EmptyTranslationError,
    InputValidationError,
    InvalidResponseError,
    RateLimitError,
    UnsupportedLanguageError,
)

__all__ = [
    'TranslationError',
    'ApiError',
    'AuthenticationError',
    'ConfigurationError',
    'EmptyTranslationError',
    'InputValidationError',
    'InvalidResponseError',
    'RateLimitError',
    'UnsupportedLanguageError',
]
