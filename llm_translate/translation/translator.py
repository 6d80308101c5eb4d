import time
from typing import Dict, List, Optional, Sequence, Tuple, Union

from shared.errors import EmptyTranslationError, InputValidationError, InvalidResponseError
from ..config.locales import is_supported, validate_locale
from ..parsing.response_parser import ResponseParser
from ..schemas.batch import BatchRequest
from ..schemas.envelope import Operation, RequestEnvelope
from ..validation.inputs import require_locale, validate_batch, validate_text
from .base import INTER_REQUEST_DELAY, BaseOrchestrator

Glossary = Union[Dict[str, str], str, None]

# Above this many texts, translate_batch sends several bulk prompts.
BULK_SLICE_SIZE = 10
# Above this many targets, translate_to_multiple switches to the batch transport.
MULTI_TARGET_BATCH_THRESHOLD = 3
FALLBACK_LOCALE = "en"

# Expected translated/original length ratios per language pair.
EXPECTED_LENGTH_RATIOS = {
    ("fr", "en"): (0.8, 1.2),
    ("en", "fr"): (1.0, 1.3),
    ("es", "en"): (0.7, 1.1),
    ("en", "es"): (1.0, 1.4),
}
DEFAULT_LENGTH_RATIO = (0.5, 2.0)


class Translator(BaseOrchestrator):
    """
    Translates text between supported locales.

    Every public method validates and normalizes its locales first; a source
    equal to the target returns the input unchanged without calling the model.
    """

    def translate(self,
                  text: Optional[str],
                  from_: str,
                  to: str,
                  context: Optional[str] = None,
                  glossary: Glossary = None,
                  style: Optional[str] = None,
                  preserve_html: bool = False) -> str:
        """
        Translate a single text.

        Args:
            text: Text to translate. None or blank returns "".
            from_: Source locale (``fr``, ``pt-BR``...).
            to: Target locale.
            context: Free-form hint about the text's domain or audience.
            glossary: Mandatory term translations, as a mapping or a string.
            style: formal, casual, technical, marketing, academic, or any
                free-form style description.
            preserve_html: Keep HTML markup untouched.

        Raises:
            UnsupportedLanguageError: If a locale is not supported.
            InputValidationError: If the text is too long.
            EmptyTranslationError, InvalidResponseError: Once retries are exhausted.
        """
        text = validate_text(text)
        source, target = self._locales(from_, to)
        if not text:
            return ""
        if source == target:
            return text

        envelope = RequestEnvelope(
            operation=Operation.TRANSLATION,
            source_locale=source,
            target_locale=target,
            text=text,
            context=context,
            glossary=glossary,
            style=style,
            preserve_html=preserve_html,
        )
        return self._call_model(envelope, self._parse_translated, "Empty translation received from API")

    def translate_to_multiple(self,
                              text: Optional[str],
                              from_: str,
                              to: Sequence[str],
                              context: Optional[str] = None,
                              glossary: Glossary = None,
                              style: Optional[str] = None,
                              preserve_html: bool = False,
                              use_batch: Optional[bool] = None) -> Dict[str, str]:
        """
        Translate one text into several locales.

        Targets are processed one after another with a pause between calls.
        Batch mode (``use_batch=True``, or automatically for more than three
        targets) sends all prompts through the transport's batch primitive and
        falls back to single calls for targets whose answer was unusable.
        """
        targets = [to] if isinstance(to, str) else list(to or [])
        if not targets:
            raise InputValidationError("Target languages cannot be empty")
        text = validate_text(text)
        source = validate_locale(require_locale(from_, "Source language"))
        target_locales = [validate_locale(require_locale(locale, "Target language")) for locale in targets]
        if not text:
            return {locale: "" for locale in target_locales}

        if use_batch is None:
            use_batch = len(target_locales) > MULTI_TARGET_BATCH_THRESHOLD
        options = dict(context=context, glossary=glossary, style=style, preserve_html=preserve_html)
        if use_batch:
            return self._translate_to_multiple_batch(text, source, target_locales, **options)
        return self._translate_to_multiple_sequential(text, source, target_locales, **options)

    def translate_batch(self,
                        texts: List[Optional[str]],
                        from_: str,
                        to: str,
                        context: Optional[str] = None,
                        glossary: Glossary = None) -> Dict[int, str]:
        """
        Translate several texts into one locale.

        Returns a mapping from the 0-based input position to the translation.
        Positions the model did not answer for are missing from the mapping.
        """
        texts = validate_batch(texts)
        source, target = self._locales(from_, to)

        results: Dict[int, str] = {index: "" for index, text in enumerate(texts) if not text}
        pending = [(index, text) for index, text in enumerate(texts) if text]
        if source == target:
            results.update(pending)
            return results

        slices = [pending[offset:offset + BULK_SLICE_SIZE] for offset in range(0, len(pending), BULK_SLICE_SIZE)]
        for number, chunk in enumerate(slices):
            if number > 0:
                time.sleep(INTER_REQUEST_DELAY)
            results.update(self._translate_bulk_slice(chunk, source, target, context, glossary))
        return results

    def translate_auto(self,
                       text: Optional[str],
                       to: str,
                       context: Optional[str] = None,
                       glossary: Glossary = None) -> str:
        """Detect the source language with one call, then translate. Unusable detection means English."""
        target = validate_locale(require_locale(to, "Target language"))
        text = validate_text(text)
        if not text:
            return ""
        source = self.detect_language(text)
        return self.translate(text, source, target, context=context, glossary=glossary)

    def detect_language(self, text: str) -> str:
        envelope = RequestEnvelope(operation=Operation.LANGUAGE_DETECTION, text=text)
        try:
            raw = self.client.complete(envelope.render())
            detected = ResponseParser.parse_language_detection(raw)
        except (EmptyTranslationError, InvalidResponseError) as e:
            self.logger.debug_if_verbose(f"Language detection failed: {e}", sensitive=True)
            detected = None
        if not detected or not is_supported(detected):
            return FALLBACK_LOCALE
        return detected

    def translate_with_confidence(self,
                                  text: Optional[str],
                                  from_: str,
                                  to: str,
                                  context: Optional[str] = None,
                                  glossary: Glossary = None) -> Dict[str, object]:
        """Translate and attach a length-ratio based confidence score (0.0 to 0.95)."""
        source, target = self._locales(from_, to)
        original = validate_text(text)
        translated = self.translate(original, source, target, context=context, glossary=glossary)
        return {
            "translation": translated,
            "confidence": confidence_score(original, translated, source, target),
            "source_locale": source,
            "target_locale": target,
        }

    # --------------------
    # Internals
    # --------------------
    @staticmethod
    def _locales(from_: str, to: str) -> Tuple[str, str]:
        source = validate_locale(require_locale(from_, "Source language"))
        target = validate_locale(require_locale(to, "Target language"))
        return source, target

    @staticmethod
    def _parse_translated(raw: Optional[str]) -> Optional[str]:
        result = ResponseParser.parse_translation(raw)
        return result.translated if result else None

    def _translate_to_multiple_sequential(self, text, source, targets, **options) -> Dict[str, str]:
        results: Dict[str, str] = {}
        for position, target in enumerate(targets):
            if position > 0:
                time.sleep(INTER_REQUEST_DELAY)
            results[target] = self.translate(text, source, target, **options)
        return results

    def _translate_to_multiple_batch(self, text, source, targets, **options) -> Dict[str, str]:
        results: Dict[str, str] = {target: text for target in targets if target == source}
        requests = [
            BatchRequest(
                prompt=RequestEnvelope(
                    operation=Operation.TRANSLATION,
                    source_locale=source,
                    target_locale=target,
                    text=text,
                    **options,
                ).render(),
                source_locale=source,
                target_locale=target,
                original_text=text,
                index=position,
            )
            for position, target in enumerate(targets)
            if target != source
        ]

        for outcome in self.client.send_batch(requests):
            if not outcome.success:
                continue
            try:
                parsed = ResponseParser.parse_translation(outcome.result)
            except (EmptyTranslationError, InvalidResponseError) as e:
                self.logger.debug_if_verbose(f"Unusable batch answer for {outcome.request.target_locale}: {e}")
                continue
            if parsed:
                results[outcome.request.target_locale] = parsed.translated

        missing = [target for target in targets if target not in results]
        for position, target in enumerate(missing):
            if position > 0:
                time.sleep(INTER_REQUEST_DELAY)
            results[target] = self.translate(text, source, target, **options)
        return {target: results[target] for target in targets}

    def _translate_bulk_slice(self, chunk, source, target, context, glossary) -> Dict[int, str]:
        envelope = RequestEnvelope(
            operation=Operation.BULK_TRANSLATION,
            source_locale=source,
            target_locale=target,
            text=[text for _, text in chunk],
            context=context,
            glossary=glossary,
        )

        def parse(raw: Optional[str]):
            items = ResponseParser.parse_bulk(raw)
            return items or None

        items = self._call_model(envelope, parse, "Empty bulk translation received from API")

        translated: Dict[int, str] = {}
        for item in items:
            local_index = item.index - 1
            if 0 <= local_index < len(chunk) and item.translated:
                translated[chunk[local_index][0]] = item.translated
        return translated


def confidence_score(original: str, translated: str, source: str, target: str) -> float:
    """Heuristic confidence from the translated/original length ratio."""
    if not translated or not translated.strip():
        return 0.0
    if not original:
        return 0.1
    low, high = EXPECTED_LENGTH_RATIOS.get((source, target), DEFAULT_LENGTH_RATIO)
    ratio = len(translated) / len(original)
    base = 0.8 if low <= ratio <= high else 0.6
    if len(original) < 10:
        return round(max(base - 0.2, 0.1), 2)
    return min(base, 0.95)
