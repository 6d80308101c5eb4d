"""
Response parser: turns raw model output into typed results.

Outcomes at the public boundary:

- ``None`` (``[]`` for bulk) when there is nothing to parse
- a result object when the envelope is found and carries a payload
- ``EmptyTranslationError`` when the envelope is fine but the payload is empty
- ``InvalidResponseError`` for anything oversized, broken or wrongly shaped
"""

from typing import List, Optional

from shared.errors import EmptyTranslationError, InvalidResponseError, TranslationError
from shared.utils.logging import get_logger, sanitize_log_data
from ..config.locales import normalize_locale
from ..schemas.results import BulkTranslationItem, QualityCheckResult, TranslationResult
from .extraction import (
    ParseOutcome,
    ParseStatus,
    dig,
    extract_envelope,
    extract_source,
    extract_target,
)

SNIPPET_LENGTH = 120
NO_TRANSLATIONS_ARRAY = "No translations array in response"


class ResponseParser:
    """
    Stateless parser for the JSON envelopes mandated by the prompt builder.
    """

    @staticmethod
    def parse_translation(raw: Optional[str]) -> Optional[TranslationResult]:
        return ResponseParser._parse_single(raw, "Empty translation received from API", "response")

    @staticmethod
    def parse_summary(raw: Optional[str]) -> Optional[TranslationResult]:
        return ResponseParser._parse_single(raw, "Empty summary received", "summary response")

    @staticmethod
    def parse_bulk(raw: Optional[str]) -> List[BulkTranslationItem]:
        """
        Parse a ``translations`` array answer.
        
        Items keep the 1-based ``index`` the model echoed back; reordering
        is the caller's job.
        """
        if not raw:
            return []
        try:
            outcome = extract_envelope(raw)
            if not outcome.ok:
                raise ResponseParser._malformed(outcome, raw, "bulk response")

            translations = outcome.value.get("translations") if isinstance(outcome.value, dict) else None
            if not isinstance(translations, list):
                raise InvalidResponseError(NO_TRANSLATIONS_ARRAY, raw_response=raw)

            return [
                BulkTranslationItem(
                    index=item["index"],
                    original=item.get("source"),
                    translated=item.get("target"),
                )
                for item in translations
            ]
        except TranslationError:
            raise
        except Exception as e:
            raise InvalidResponseError(f"Error processing bulk response: {e}", raw_response=raw) from e

    @staticmethod
    def parse_quality_check(raw: Optional[str]) -> Optional[QualityCheckResult]:
        """Parse a translation answer that also carries a ``quality_check`` object."""
        if not raw:
            return None
        try:
            outcome = extract_envelope(raw)
            if not outcome.ok:
                raise ResponseParser._malformed(outcome, raw, "quality check response")

            data = outcome.value
            translation = extract_target(data)
            if translation is None or translation == "":
                raise EmptyTranslationError()

            quality = data.get("quality_check") or dig(data, ("metadata", "quality_check")) or {}
            return QualityCheckResult(
                translation=translation,
                quality_check=quality if isinstance(quality, dict) else {"value": quality},
                metadata=ResponseParser._metadata(data),
            )
        except TranslationError:
            raise
        except Exception as e:
            raise InvalidResponseError(f"Error processing quality check response: {e}", raw_response=raw) from e

    @staticmethod
    def parse_language_detection(raw: Optional[str]) -> Optional[str]:
        """Return the detected locale code, or None when the answer carries none."""
        if not raw:
            return None
        outcome = extract_envelope(raw)
        if outcome.status in (ParseStatus.NOT_FOUND, ParseStatus.EMPTY):
            return None
        if not outcome.ok:
            raise ResponseParser._malformed(outcome, raw, "language detection response")

        detected = dig(outcome.value, ("metadata", "detected_language")) or extract_target(outcome.value)
        if not isinstance(detected, str):
            return None
        return normalize_locale(detected) or None

    # --------------------
    # Internals
    # --------------------
    @staticmethod
    def _parse_single(raw: Optional[str], empty_message: str, label: str) -> Optional[TranslationResult]:
        if not raw:
            return None
        try:
            outcome = extract_envelope(raw)
            if outcome.status is ParseStatus.NOT_FOUND:
                return None
            if not outcome.ok:
                raise ResponseParser._malformed(outcome, raw, label)

            data = outcome.value
            payload = extract_target(data)
            if payload is None or payload == "":
                raise EmptyTranslationError(empty_message)

            return TranslationResult(
                original=extract_source(data),
                translated=payload,
                metadata=ResponseParser._metadata(data),
            )
        except TranslationError:
            raise
        except Exception as e:
            raise InvalidResponseError(f"Error processing {label}: {e}", raw_response=raw) from e

    @staticmethod
    def _metadata(data) -> dict:
        metadata = data.get("metadata") if isinstance(data, dict) else None
        return metadata if isinstance(metadata, dict) else {}

    @staticmethod
    def _malformed(outcome: ParseOutcome, raw: str, label: str) -> InvalidResponseError:
        if outcome.status is ParseStatus.NOT_FOUND:
            return InvalidResponseError(f"No JSON object in {label}", raw_response=raw)

        extracted_length = len(outcome.extracted) if outcome.extracted is not None else None
        snippet = sanitize_log_data(raw[:SNIPPET_LENGTH])
        get_logger().debug_if_verbose(
            f"JSON parse failed: {outcome.error} raw_len={len(raw)} json_len={extracted_length} snippet={snippet}",
            sensitive=True,
        )
        return InvalidResponseError(
            f"Invalid JSON in {label}: {outcome.error}",
            raw_response=raw,
            raw_length=len(raw),
            extracted_length=extracted_length,
            snippet=snippet,
        )
