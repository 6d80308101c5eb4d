"""
Prompt rendering.

Every function here is a pure string construction: the same inputs always
produce the same prompt and nothing outside the return value is touched
(apart from a verbose-only debug log line).
"""

from typing import Dict, List, Optional, Union

from shared.utils.logging import get_logger
from ..config.locales import locale_to_language
from .manager import PromptManager

Glossary = Union[Dict[str, str], str, None]


def _is_blank(value) -> bool:
    return value is None or not str(value).strip()


class PromptBuilder:
    """
    Builds prompts that mandate a strict JSON response envelope.
    """

    @staticmethod
    def format_glossary(glossary: Glossary) -> str:
        """Render a glossary mapping as ``k → v`` pairs; strings pass through verbatim."""
        if isinstance(glossary, dict):
            return ", ".join(f"{source} → {target}" for source, target in glossary.items())
        return "" if glossary is None else str(glossary)

    @staticmethod
    def _has_glossary(glossary: Glossary) -> bool:
        if isinstance(glossary, dict):
            return len(glossary) > 0
        return not _is_blank(glossary)

    @staticmethod
    def context_block(context: Optional[str] = None, glossary: Glossary = None) -> str:
        """Context and glossary lines, or an empty string when both are empty."""
        sections = []
        if not _is_blank(context):
            sections.append(PromptManager.CONTEXT_SECTION.format(context=context))
        if PromptBuilder._has_glossary(glossary):
            sections.append(PromptManager.GLOSSARY_SECTION.format(glossary=PromptBuilder.format_glossary(glossary)))
        if not sections:
            return ""
        return "\n\n" + "\n".join(sections)

    @staticmethod
    def style_instruction(style: Optional[str]) -> str:
        if _is_blank(style):
            return ""
        known = PromptManager.STYLES.get(str(style).strip().lower())
        text = known if known else PromptManager.CUSTOM_STYLE.format(style=style)
        return "\n\n" + text

    @staticmethod
    def html_instruction(preserve_html: bool) -> str:
        return "\n\n" + PromptManager.HTML_SECTION if preserve_html else ""

    @staticmethod
    def metadata_hints(context: Optional[str] = None,
                       glossary: Glossary = None,
                       preserve_html: bool = False,
                       style: Optional[str] = None) -> str:
        """Extra ``metadata`` members announcing which enrichments were requested."""
        hints = []
        if not _is_blank(context):
            hints.append('"has_context": true')
        if PromptBuilder._has_glossary(glossary):
            hints.append('"has_glossary": true')
        if preserve_html:
            hints.append('"preserve_html": true')
        if not _is_blank(style):
            hints.append(f'"style": "{style}"')
        if not hints:
            return ""
        separator = ",\n    "
        return separator + separator.join(hints)

    @staticmethod
    def translation_prompt(text: str,
                           source: str,
                           target: str,
                           context: Optional[str] = None,
                           glossary: Glossary = None,
                           style: Optional[str] = None,
                           preserve_html: bool = False) -> str:
        PromptBuilder._log_creation("translation", source, target)
        return PromptManager.TRANSLATION.format(
            source=source,
            target=target,
            source_name=locale_to_language(source),
            target_name=locale_to_language(target),
            context_block=PromptBuilder.context_block(context, glossary),
            style_instruction=PromptBuilder.style_instruction(style),
            html_instruction=PromptBuilder.html_instruction(preserve_html),
            metadata_hints=PromptBuilder.metadata_hints(context, glossary, preserve_html, style),
            text=text,
        )

    @staticmethod
    def bulk_translation_prompt(texts: List[str],
                                source: str,
                                target: str,
                                context: Optional[str] = None,
                                glossary: Glossary = None) -> str:
        """Number each input ``"{n}. {text}"`` (1-based) and mandate a ``translations`` array."""
        PromptBuilder._log_creation("bulk_translation", source, target)
        numbered = "\n".join(f"{index}. {text}" for index, text in enumerate(texts, start=1))
        return PromptManager.BULK_TRANSLATION.format(
            source=source,
            target=target,
            source_name=locale_to_language(source),
            target_name=locale_to_language(target),
            context_block=PromptBuilder.context_block(context, glossary),
            metadata_hints=PromptBuilder.metadata_hints(context, glossary),
            count=len(texts),
            numbered_texts=numbered,
        )

    @staticmethod
    def summary_prompt(text: str,
                       max_words: int,
                       target: str = "fr",
                       context: Optional[str] = None,
                       style: Optional[str] = None) -> str:
        PromptBuilder._log_creation("summary", None, target)
        return PromptManager.SUMMARY.format(
            target=target,
            language_name=locale_to_language(target),
            max_words=max_words,
            context_block=PromptBuilder.context_block(context),
            style_instruction=PromptBuilder.style_instruction(style),
            metadata_hints=PromptBuilder.metadata_hints(context=context, style=style),
            text=text,
        )

    @staticmethod
    def summary_translation_prompt(text: str, source: str, target: str, max_words: int) -> str:
        PromptBuilder._log_creation("summary_translation", source, target)
        return PromptManager.SUMMARY_TRANSLATION.format(
            source=source,
            target=target,
            source_name=locale_to_language(source),
            target_name=locale_to_language(target),
            max_words=max_words,
            text=text,
        )

    @staticmethod
    def language_detection_prompt(text: str) -> str:
        PromptBuilder._log_creation("language_detection", None, None)
        return PromptManager.LANGUAGE_DETECTION.format(text=text)

    @staticmethod
    def translation_with_validation_prompt(text: str,
                                           source: str,
                                           target: str,
                                           context: Optional[str] = None,
                                           glossary: Glossary = None) -> str:
        PromptBuilder._log_creation("translation_with_validation", source, target)
        return PromptManager.TRANSLATION_WITH_VALIDATION.format(
            source=source,
            target=target,
            source_name=locale_to_language(source),
            target_name=locale_to_language(target),
            context_block=PromptBuilder.context_block(context, glossary),
            metadata_hints=PromptBuilder.metadata_hints(context, glossary),
            text=text,
        )

    @staticmethod
    def _log_creation(prompt_type: str, source: Optional[str], target: Optional[str]):
        get_logger().debug_if_verbose(f"Generated {prompt_type} prompt for {source} -> {target}")
