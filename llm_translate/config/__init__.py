from .settings import Settings, get_settings, reload_settings
from .hooks import TranslationHooks, TranslationMetrics, logging_hooks
from . import locales

__all__ = [
    "Settings",
    "get_settings",
    "reload_settings",
    "TranslationHooks",
    "TranslationMetrics",
    "logging_hooks",
    "locales",
]
