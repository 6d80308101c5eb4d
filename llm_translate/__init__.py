"""
llm-translate: translation and summarization through an LLM chat completions API.

The module-level functions use a default Translator/Summarizer built lazily
from the current settings. ``configure`` replaces the settings and drops the
cached instances.
"""

import threading
from typing import Any, Dict, List, Optional, Sequence

from shared.errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    EmptyTranslationError,
    InputValidationError,
    InvalidResponseError,
    RateLimitError,
    TranslationError,
    UnsupportedLanguageError,
)
from shared.utils.logging import get_logger
from .client import ChatCompletionsClient, SlidingWindowRateLimiter
from .config import Settings, TranslationHooks, TranslationMetrics, get_settings, logging_hooks, reload_settings
from .config import locales
from .parsing import ResponseParser
from .prompts import PromptBuilder
from .schemas import TieredSummary
from .translation import Summarizer, Translator
from .version import __version__

_lock = threading.Lock()
_client: Optional[ChatCompletionsClient] = None
_translator: Optional[Translator] = None
_summarizer: Optional[Summarizer] = None
_hooks: Optional[TranslationHooks] = None


def configure(hooks: Optional[TranslationHooks] = None, **overrides) -> Settings:
    """
    Replace the default settings and hooks.

    Example:
        llm_translate.configure(api_key="...", model="mistral-large-latest")
    """
    global _hooks
    settings = reload_settings(**overrides)
    get_logger().set_level(settings.log_level)
    with _lock:
        _hooks = hooks
        _drop_defaults()
    return settings


def reset() -> None:
    """Forget the default client, translator, summarizer and hooks."""
    global _hooks
    with _lock:
        _hooks = None
        _drop_defaults()


def _drop_defaults() -> None:
    global _client, _translator, _summarizer
    _client = None
    _translator = None
    _summarizer = None


def _default_hooks(settings: Settings) -> TranslationHooks:
    if _hooks is not None:
        return _hooks
    return TranslationHooks.with_metrics() if settings.enable_metrics else TranslationHooks()


def get_client() -> ChatCompletionsClient:
    global _client, _hooks
    with _lock:
        if _client is None:
            settings = get_settings()
            get_logger().set_level(settings.log_level)
            _hooks = _default_hooks(settings)
            _client = ChatCompletionsClient(settings, hooks=_hooks)
        return _client


def get_translator() -> Translator:
    global _translator
    client = get_client()
    with _lock:
        if _translator is None:
            _translator = Translator(client=client, settings=client.settings)
        return _translator


def get_summarizer() -> Summarizer:
    global _summarizer
    client = get_client()
    with _lock:
        if _summarizer is None:
            _summarizer = Summarizer(client=client, settings=client.settings)
        return _summarizer


def metrics() -> Dict[str, Any]:
    """Snapshot of the default hooks' metrics (empty when metrics are disabled)."""
    return _hooks.metrics_snapshot() if _hooks else {}


def reset_metrics() -> None:
    """Zero the default hooks' metrics, if any."""
    if _hooks and _hooks.metrics:
        _hooks.metrics.reset()


# --- Translation ---
def translate(text: Optional[str], from_: str, to: str, **options) -> str:
    return get_translator().translate(text, from_, to, **options)


def translate_to_multiple(text: Optional[str], from_: str, to: Sequence[str], **options) -> Dict[str, str]:
    return get_translator().translate_to_multiple(text, from_, to, **options)


def translate_batch(texts: List[Optional[str]], from_: str, to: str, **options) -> Dict[int, str]:
    return get_translator().translate_batch(texts, from_, to, **options)


def translate_auto(text: Optional[str], to: str, **options) -> str:
    return get_translator().translate_auto(text, to, **options)


# --- Summarization ---
def summarize(text: Optional[str], language: str = "fr", max_words: int = 250, **options) -> str:
    return get_summarizer().summarize(text, language=language, max_words=max_words, **options)


def summarize_and_translate(text: Optional[str], from_: str, to: str, max_words: int = 250) -> str:
    return get_summarizer().summarize_and_translate(text, from_, to, max_words=max_words)


def summarize_to_multiple(text: Optional[str], languages: Sequence[str], max_words: int = 250) -> Dict[str, str]:
    return get_summarizer().summarize_to_multiple(text, languages, max_words=max_words)


def summarize_tiered(text: Optional[str], language: str = "fr",
                     short: int = 50, medium: int = 150, long: int = 300) -> TieredSummary:
    return get_summarizer().summarize_tiered(text, language=language, short=short, medium=medium, long=long)


# --- Locales ---
def supported_languages() -> str:
    return locales.supported_languages_list()


def supported_locales() -> List[str]:
    return locales.supported_locales()


def locale_supported(locale: Optional[str]) -> bool:
    return locales.is_supported(locale)


def version() -> str:
    return __version__


def health_check() -> Dict[str, str]:
    """Send a tiny request and report whether the API answered."""
    try:
        get_client().complete("Hello", max_tokens=10)
        return {"status": "ok", "message": "API connection successful"}
    except ConfigurationError as e:
        return {"status": "error", "message": str(e)}
    except AuthenticationError:
        return {"status": "error", "message": "Authentication failed - check your API key"}
    except ApiError as e:
        return {"status": "error", "message": f"API error: {e}"}
    except TranslationError as e:
        return {"status": "error", "message": f"Unexpected error: {e}"}


__all__ = [
    "__version__",
    "configure",
    "reset",
    "get_client",
    "get_translator",
    "get_summarizer",
    "metrics",
    "reset_metrics",
    "translate",
    "translate_to_multiple",
    "translate_batch",
    "translate_auto",
    "summarize",
    "summarize_and_translate",
    "summarize_to_multiple",
    "summarize_tiered",
    "supported_languages",
    "supported_locales",
    "locale_supported",
    "version",
    "health_check",
    "Settings",
    "TranslationHooks",
    "TranslationMetrics",
    "logging_hooks",
    "ChatCompletionsClient",
    "SlidingWindowRateLimiter",
    "ResponseParser",
    "PromptBuilder",
    "Translator",
    "Summarizer",
    "TieredSummary",
    "TranslationError",
    "ConfigurationError",
    "ApiError",
    "AuthenticationError",
    "RateLimitError",
    "InvalidResponseError",
    "EmptyTranslationError",
    "UnsupportedLanguageError",
    "InputValidationError",
]
