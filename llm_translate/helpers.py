"""
Higher-level helpers built on the Translator and the Summarizer.

Unlike the core API, most helpers here report per-item failures in their
result instead of raising, which suits bulk jobs that must keep going.
"""

import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from shared.errors import TranslationError, UnsupportedLanguageError
from .config.locales import supported_locales, suggest_locales, validate_locale
from .parsing.response_parser import ResponseParser
from .schemas.results import QualityCheckResult
from .translation.summarizer import Summarizer
from .translation.translator import Glossary, Translator
from .prompts.builder import PromptBuilder
from .utils.text import (
    calculate_optimal_summary_length,
    looks_like_html,
    strip_html_for_analysis,
    word_count,
)
from .validation.inputs import validate_text

ProgressCallback = Callable[[int, int, Any, Dict[str, Any]], None]


def translate_batch_with_fallback(translator: Translator,
                                  texts: List[str],
                                  from_: str,
                                  to: str,
                                  context: Optional[str] = None,
                                  glossary: Glossary = None,
                                  fallback: Optional[str] = "individual") -> Dict[int, Union[str, Dict[str, str]]]:
    """
    Batch-translate, then translate missing positions one by one.

    With ``fallback="individual"`` a failing bulk call degrades to single
    calls, and positions that still fail map to ``{"error": message}``.
    Any other ``fallback`` value lets bulk failures propagate.
    """
    try:
        results: Dict[int, Union[str, Dict[str, str]]] = dict(
            translator.translate_batch(texts, from_, to, context=context, glossary=glossary)
        )
    except TranslationError as e:
        if fallback != "individual":
            raise
        translator.logger.warn(f"Bulk translation failed, translating individually: {e}", sensitive=True)
        results = {}

    if fallback != "individual":
        return results

    for index, text in enumerate(texts):
        if index in results:
            continue
        try:
            results[index] = translator.translate(text, from_, to, context=context, glossary=glossary)
        except TranslationError as e:
            results[index] = {"error": str(e)}
    return dict(sorted(results.items()))


def translate_with_progress(translator: Translator,
                            items: Mapping[Any, str],
                            from_: str,
                            to: str,
                            context: Optional[str] = None,
                            glossary: Glossary = None,
                            progress_callback: Optional[ProgressCallback] = None) -> Dict[Any, Dict[str, Any]]:
    """
    Translate a mapping of texts, reporting progress after each item.

    ``progress_callback`` receives (done, total, key, item_result).
    """
    results: Dict[Any, Dict[str, Any]] = {}
    total = len(items)
    for done, (key, text) in enumerate(items.items(), start=1):
        try:
            translation = translator.translate(text, from_, to, context=context, glossary=glossary)
            results[key] = {"success": True, "translation": translation}
        except TranslationError as e:
            results[key] = {"success": False, "error": str(e)}
        if progress_callback:
            progress_callback(done, total, key, results[key])
    return results


def translate_multi_style(translator: Translator,
                          text: str,
                          from_: str,
                          to: str,
                          styles: Sequence[str] = ("formal", "casual"),
                          context: Optional[str] = None,
                          glossary: Glossary = None) -> Dict[str, Union[str, Dict[str, str]]]:
    results: Dict[str, Union[str, Dict[str, str]]] = {}
    for style in styles:
        try:
            results[style] = translator.translate(text, from_, to, context=context, glossary=glossary, style=style)
        except TranslationError as e:
            results[style] = {"error": str(e)}
    return results


def translate_with_quality_check(translator: Translator,
                                 text: str,
                                 from_: str,
                                 to: str,
                                 context: Optional[str] = None,
                                 glossary: Glossary = None) -> QualityCheckResult:
    """Translate and ask the model for a self-assessment in the same call."""
    source = validate_locale(from_)
    target = validate_locale(to)
    text = validate_text(text)
    if not text:
        return QualityCheckResult(translation="")

    prompt = PromptBuilder.translation_with_validation_prompt(text, source, target, context=context, glossary=glossary)
    raw = translator.client.complete(prompt, context={"source_locale": source, "target_locale": target})
    return ResponseParser.parse_quality_check(raw)


def translate_rich_text(translator: Translator,
                        text: str,
                        from_: str,
                        to: str,
                        context: Optional[str] = None,
                        glossary: Glossary = None) -> str:
    return translator.translate(text, from_, to, context=context, glossary=glossary, preserve_html=True)


def smart_summarize(summarizer: Summarizer,
                    text: str,
                    max_words: int = 250,
                    target_language: str = "fr",
                    style: Optional[str] = None,
                    context: Optional[str] = None) -> Dict[str, Any]:
    """
    Summarize with a length adapted to the document.

    HTML input is stripped for word counting only; the model still gets the
    original markup.
    """
    analysis_text = strip_html_for_analysis(text) if looks_like_html(text) else text
    original_length = word_count(analysis_text)
    optimal_words = max(calculate_optimal_summary_length(analysis_text, max_words), 1)

    summary = summarizer.summarize(text, language=target_language, max_words=optimal_words,
                                   context=context, style=style)
    return {
        "summary": summary,
        "original_length": original_length,
        "summary_length": optimal_words,
        "compression_ratio": round(optimal_words / original_length * 100, 1) if original_length else 0.0,
    }


def estimate_translation_cost(text: str, rate_per_1k_chars: float = 0.02) -> Dict[str, Any]:
    """Rough cost estimate from the character count. Real costs depend on the model."""
    characters = len(text or "")
    return {
        "character_count": characters,
        "estimated_cost": round(characters / 1000.0 * rate_per_1k_chars, 4),
        "rate_per_1k_chars": rate_per_1k_chars,
        "currency": "USD",
        "supported_locales": supported_locales(),
    }


def analyze_text_complexity(text: str) -> Dict[str, Any]:
    words = text.split()
    sentences = [part for part in re.split(r"[.!?]+", text) if part.strip()]
    paragraphs = [part for part in re.split(r"\n\s*\n", text) if part.strip()]
    sentence_count = max(len(sentences), 1)
    paragraph_count = max(len(paragraphs), 1)

    average_word_length = sum(len(word) for word in words) / len(words) if words else 0.0
    average_sentence_length = len(words) / sentence_count
    complexity = min(average_word_length * 10, 50) + min(average_sentence_length * 2, 50)

    return {
        "word_count": len(words),
        "sentence_count": len(sentences),
        "paragraph_count": len(paragraphs),
        "average_words_per_sentence": round(average_sentence_length, 2),
        "average_sentences_per_paragraph": round(len(sentences) / paragraph_count, 2),
        "complexity_score": round(complexity, 1),
    }


def validate_locale_with_suggestions(locale: Optional[str]) -> Dict[str, Any]:
    try:
        return {"valid": True, "locale": validate_locale(locale)}
    except UnsupportedLanguageError as e:
        return {
            "valid": False,
            "error": str(e),
            "suggestions": suggest_locales(locale),
            "supported_locales": supported_locales(),
        }

