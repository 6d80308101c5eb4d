"""
Root exception for the llm-translate client library.
"""

from typing import Any, Dict


class TranslationError(Exception):
    """
    Base class for every failure raised by the client, the response parser
    and the orchestrators.

    ``context`` holds structured details (status code, lengths, locale...)
    that are safe to log. ``retryable`` marks errors the orchestrator may
    answer with another attempt of the same request.
    """

    retryable = False

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self):
        return self.message

    def __repr__(self):
        return f"{type(self).__name__}({self.message!r})"

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view, without the ``None`` context entries."""
        return {
            'error_type': type(self).__name__,
            'message': self.message,
            'retryable': self.retryable,
            'context': {key: value for key, value in self.context.items() if value is not None},
        }
