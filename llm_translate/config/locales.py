"""
Locale table for supported translation languages.

Maps short locale codes to native display names and back, and validates
user-supplied locale identifiers such as ``fr-FR`` or ``pt_BR``.
"""

from typing import Dict, List, Optional

from shared.errors import UnsupportedLanguageError
from ..utils.text import levenshtein_distance

SUPPORTED_LANGUAGES: Dict[str, str] = {
    "fr": "français",
    "en": "english",
    "es": "español",
    "pt": "português",
    "de": "deutsch",
    "it": "italiano",
    "nl": "nederlands",
    "ru": "русский",
    "mg": "malagasy",
    "ja": "日本語",
    "ko": "한국어",
    "zh": "中文",
    "ar": "العربية",
}


def normalize_locale(locale: Optional[str]) -> str:
    """Lower-case a locale and drop region/script subtags (``pt_BR`` -> ``pt``)."""
    if not locale:
        return ""
    return str(locale).strip().lower().split("-")[0].split("_")[0]


def is_supported(locale: Optional[str]) -> bool:
    return normalize_locale(locale) in SUPPORTED_LANGUAGES


def validate_locale(locale: Optional[str]) -> str:
    """
    Normalize a locale and make sure it is supported.

    Raises:
        UnsupportedLanguageError: carrying the normalized code
    """
    normalized = normalize_locale(locale)
    if normalized not in SUPPORTED_LANGUAGES:
        raise UnsupportedLanguageError(normalized)
    return normalized


def locale_to_language(locale: Optional[str]) -> str:
    code = normalize_locale(locale)
    return SUPPORTED_LANGUAGES.get(code, code)


def language_to_locale(language: Optional[str]) -> str:
    """
    Resolve a display name to its locale code.

    Exact (case-insensitive) match first, then substring containment in
    either direction. Unknown names are echoed back normalized; this
    function never raises.
    """
    wanted = str(language or "").strip().lower()
    if not wanted:
        return wanted

    for code, name in SUPPORTED_LANGUAGES.items():
        if name.lower() == wanted:
            return code

    for code, name in SUPPORTED_LANGUAGES.items():
        lowered = name.lower()
        if wanted in lowered or lowered in wanted:
            return code

    return wanted


def supported_locales() -> List[str]:
    return list(SUPPORTED_LANGUAGES.keys())


def supported_languages() -> List[str]:
    return list(SUPPORTED_LANGUAGES.values())


def supported_languages_list() -> str:
    return ", ".join(f"{code} ({name})" for code, name in SUPPORTED_LANGUAGES.items())


def suggest_locales(invalid_locale, limit: int = 3) -> List[str]:
    """Suggest supported locales close to an invalid one (prefix, then edit distance <= 2)."""
    if not isinstance(invalid_locale, str) or not invalid_locale.strip():
        return []

    wanted = invalid_locale.strip().lower()
    candidates = supported_locales()

    suggestions = [code for code in candidates if code.startswith(wanted) or wanted.startswith(code)]
    if not suggestions:
        suggestions = [code for code in candidates if levenshtein_distance(wanted, code) <= 2]

    return suggestions[:limit]
