from .text import (
    levenshtein_distance,
    clean_document_content,
    strip_html_for_analysis,
    calculate_optimal_summary_length,
)
from .retry import retry_unusable_content

__all__ = [
    "levenshtein_distance",
    "clean_document_content",
    "strip_html_for_analysis",
    "calculate_optimal_summary_length",
    "retry_unusable_content",
]
