from .envelope import Operation, RequestEnvelope
from .results import TranslationResult, BulkTranslationItem, QualityCheckResult, TieredSummary
from .batch import BatchRequest, BatchOutcome

__all__ = [
    "Operation",
    "RequestEnvelope",
    "TranslationResult",
    "BulkTranslationItem",
    "QualityCheckResult",
    "TieredSummary",
    "BatchRequest",
    "BatchOutcome",
]
