"""
Text utilities shared by the summarizer and the helpers.
"""

import re
from typing import Optional


def levenshtein_distance(source: str, target: str) -> int:
    """Edit distance between two strings (insertions, deletions, substitutions)."""
    if not source:
        return len(target)
    if not target:
        return len(source)

    previous = list(range(len(target) + 1))
    for i, source_char in enumerate(source, start=1):
        current = [i]
        for j, target_char in enumerate(target, start=1):
            cost = 0 if source_char == target_char else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current
    return previous[-1]


def clean_document_content(content: Optional[str]) -> Optional[str]:
    """
    Normalize document text before summarization.
    
    Collapses runs of spaces and tabs, removes ``---`` style separators,
    squeezes blank lines and trims every line.
    """
    if content is None:
        return None

    result = re.sub(r"[ \t]+", " ", content)
    result = re.sub(r"-{3,}", "", result)
    result = re.sub(r"\n\s*\n+", "\n", result)
    result = re.sub(r"^[ \t]+|[ \t]+$", "", result, flags=re.MULTILINE)
    result = re.sub(r"[ \t]+", " ", result)
    return result.strip()


def looks_like_html(text: str) -> bool:
    return "<" in text and ">" in text


def strip_html_for_analysis(html_text: str) -> str:
    """Drop tags and collapse whitespace. Only meant for word counting."""
    return re.sub(r"\s+", " ", re.sub(r"<[^>]*>", " ", html_text)).strip()


def word_count(text: str) -> int:
    return len(text.split())


def calculate_optimal_summary_length(text: str, max_words: int) -> int:
    """Pick a summary length proportional to the text, capped at ``max_words``."""
    words = word_count(text)
    if words <= 100:
        return min(max_words, words // 2)
    if words <= 500:
        return min(max_words, words // 3)
    if words <= 2000:
        return min(max_words, words // 4)
    return min(max_words, words // 5)
