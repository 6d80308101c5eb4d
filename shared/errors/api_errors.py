"""
API and response-contract exceptions for the llm-translate client library.
"""

from typing import Optional, Any
from .base import TranslationError


# Attached raw responses are truncated so error objects stay small.
RAW_RESPONSE_PREVIEW = 500


def _preview(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    text = str(raw)
    if len(text) <= RAW_RESPONSE_PREVIEW:
        return text
    return text[:RAW_RESPONSE_PREVIEW] + f"... [truncated {len(text) - RAW_RESPONSE_PREVIEW} chars]"


class ConfigurationError(TranslationError):
    """Raised when the client is missing required configuration (e.g. the API key)."""


class ApiError(TranslationError):
    """
    Generic failure talking to the remote model service.

    Covers non-success HTTP statuses as well as timeouts and low-level
    transport errors, which are always wrapped into this type.
    """

    def __init__(self,
                 message: str,
                 response: Optional[Any] = None,
                 status_code: Optional[int] = None,
                 **kwargs):
        super().__init__(message, status_code=status_code, **kwargs)
        self.response = response
        self.status_code = status_code

    def to_dict(self):
        data = super().to_dict()
        data['status_code'] = self.status_code
        return data


class AuthenticationError(ApiError):
    """Raised on HTTP 401. Never retried."""

    def __init__(self, message: str = "Invalid API key", response: Optional[Any] = None, status_code: int = 401):
        super().__init__(message, response, status_code)


class RateLimitError(ApiError):
    """Raised when the transport exhausted its rate-limit retry schedule."""

    def __init__(self,
                 message: str = "API rate limit exceeded",
                 response: Optional[Any] = None,
                 status_code: int = 429,
                 retries: Optional[int] = None):
        super().__init__(message, response, status_code, retries=retries)
        self.retries = retries


class InvalidResponseError(TranslationError):
    """
    Raised when a response is malformed, oversized, unparseable or has the wrong shape.
    
    The raw response is kept (truncated) for diagnostics only. It must go
    through the redacting logger before being written anywhere.
    """

    retryable = True

    def __init__(self, message: str, raw_response: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_response = _preview(raw_response)

    def to_dict(self):
        data = super().to_dict()
        data['raw_response'] = self.raw_response
        return data


class EmptyTranslationError(TranslationError):
    """Raised when a well-formed envelope carries an empty payload."""

    retryable = True

    def __init__(self, message: str = "Empty translation received from API", **kwargs):
        super().__init__(message, **kwargs)


class UnsupportedLanguageError(TranslationError):
    """Raised when a locale is not part of the supported set."""

    def __init__(self, language: str):
        super().__init__(f"Unsupported language: {language}", language=language)
        self.language = language


class InputValidationError(TranslationError, ValueError):
    """Raised for invalid caller input (too long, empty batch, bad parameters)."""
