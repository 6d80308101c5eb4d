import time
from typing import Dict, Optional, Sequence

from shared.errors import InputValidationError
from ..config.locales import validate_locale
from ..parsing.response_parser import ResponseParser
from ..schemas.envelope import Operation, RequestEnvelope
from ..schemas.results import TieredSummary
from ..utils.text import clean_document_content
from ..validation.inputs import require_locale, validate_max_words, validate_text
from .base import INTER_REQUEST_DELAY, BaseOrchestrator

DEFAULT_MAX_WORDS = 250


class Summarizer(BaseOrchestrator):
    """
    Summarizes documents, optionally translating the summary.

    Input text is normalized with ``clean_document_content`` before it is
    sent, so separators and runs of blank lines do not eat the word budget.
    """

    def summarize(self,
                  text: Optional[str],
                  language: str = "fr",
                  max_words: int = DEFAULT_MAX_WORDS,
                  context: Optional[str] = None,
                  style: Optional[str] = None) -> str:
        """
        Summarize ``text`` in ``language`` in at most ``max_words`` words.

        Raises:
            UnsupportedLanguageError: If the language is not supported.
            InputValidationError: If the text is too long or max_words is not positive.
            EmptyTranslationError, InvalidResponseError: Once retries are exhausted.
        """
        target = validate_locale(require_locale(language, "Language"))
        validate_max_words(max_words)
        cleaned = self._prepare(text)
        if not cleaned:
            return ""
        return self._summarize_cleaned(cleaned, target, max_words, Operation.SUMMARIZATION, context, style)

    def summarize_and_translate(self,
                                text: Optional[str],
                                from_: str,
                                to: str,
                                max_words: int = DEFAULT_MAX_WORDS) -> str:
        """Summarize and translate in one call; same locales fall back to ``summarize``."""
        source = validate_locale(require_locale(from_, "Source language"))
        target = validate_locale(require_locale(to, "Target language"))
        validate_max_words(max_words)
        cleaned = self._prepare(text)
        if not cleaned:
            return ""
        if source == target:
            return self._summarize_cleaned(cleaned, target, max_words, Operation.SUMMARIZATION)

        envelope = RequestEnvelope(
            operation=Operation.SUMMARIZATION_AND_TRANSLATION,
            source_locale=source,
            target_locale=target,
            text=cleaned,
            max_words=max_words,
        )
        return self._call_model(envelope, self._parse_summary, "Empty summary received from summarize_and_translate")

    def summarize_to_multiple(self,
                              text: Optional[str],
                              languages: Sequence[str],
                              max_words: int = DEFAULT_MAX_WORDS) -> Dict[str, str]:
        targets = [languages] if isinstance(languages, str) else list(languages or [])
        if not targets:
            raise InputValidationError("Languages cannot be empty")
        locales = [validate_locale(require_locale(language, "Language")) for language in targets]
        validate_max_words(max_words)
        cleaned = self._prepare(text)

        results: Dict[str, str] = {}
        for position, locale in enumerate(locales):
            if not cleaned:
                results[locale] = ""
                continue
            if position > 0:
                time.sleep(INTER_REQUEST_DELAY)
            results[locale] = self._summarize_cleaned(cleaned, locale, max_words, Operation.SUMMARIZATION)
        return results

    def summarize_tiered(self,
                         text: Optional[str],
                         language: str = "fr",
                         short: int = 50,
                         medium: int = 150,
                         long: int = 300) -> TieredSummary:
        """Three summaries of increasing length. Requires short < medium < long."""
        target = validate_locale(require_locale(language, "Language"))
        validate_max_words(short, "short")
        validate_max_words(medium, "medium")
        validate_max_words(long, "long")
        if not medium > short:
            raise InputValidationError("Medium length must be greater than short")
        if not long > medium:
            raise InputValidationError("Long length must be greater than medium")

        cleaned = self._prepare(text)
        if not cleaned:
            return TieredSummary(short="", medium="", long="")

        return TieredSummary(**{
            tier: self._summarize_cleaned(cleaned, target, words, Operation.TIERED_SUMMARIZATION)
            for tier, words in (("short", short), ("medium", medium), ("long", long))
        })

    # --------------------
    # Internals
    # --------------------
    def _prepare(self, text: Optional[str]) -> str:
        text = validate_text(text)
        if not text:
            return ""
        cleaned = clean_document_content(text)
        self.logger.debug_if_verbose(f"Text cleaned: {len(text)} -> {len(cleaned)} chars")
        return cleaned

    def _summarize_cleaned(self, cleaned, target, max_words, operation, context=None, style=None) -> str:
        envelope = RequestEnvelope(
            operation=operation,
            target_locale=target,
            text=cleaned,
            max_words=max_words,
            context=context,
            style=style,
        )
        return self._call_model(envelope, self._parse_summary, "Empty summary received")

    @staticmethod
    def _parse_summary(raw: Optional[str]) -> Optional[str]:
        result = ResponseParser.parse_summary(raw)
        return result.translated if result else None
