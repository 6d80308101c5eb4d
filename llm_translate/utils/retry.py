"""
Retry loop for model responses that are unusable (empty or unparseable).

This is the orchestrator-level retry axis. Rate limiting that escapes the
transport is handled here too, but with its own flat delay and no upper
bound, so it never consumes the content-retry budget.
"""

import time
from typing import Callable, Optional, TypeVar

from shared.errors import RateLimitError, TranslationError

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 2.0
DEFAULT_RATE_LIMIT_DELAY = 2.0


def retry_unusable_content(operation: Callable[[], T],
                           max_retries: int = DEFAULT_MAX_RETRIES,
                           base_delay: float = DEFAULT_BASE_DELAY,
                           rate_limit_delay: float = DEFAULT_RATE_LIMIT_DELAY,
                           on_retry: Optional[Callable[[Exception, int, float], None]] = None,
                           on_rate_limit: Optional[Callable[[RateLimitError], None]] = None) -> T:
    """
    Call ``operation`` until it returns, retrying unusable content with backoff.
    
    Args:
        operation: Zero-argument callable performing one complete attempt
        max_retries: Retries allowed after the first attempt for empty/invalid content
        base_delay: Backoff base; the n-th retry waits ``base_delay * 2**n``
        rate_limit_delay: Flat wait after a RateLimitError
        on_retry: Called with (error, retry_number, wait) before each content retry
        on_rate_limit: Called with the error before each rate-limit wait
        
    Returns:
        Whatever ``operation`` returns
        
    Raises:
        The last retryable error (EmptyTranslationError, InvalidResponseError)
        once retries are exhausted; any other exception immediately.
    """
    attempt = 0
    while True:
        try:
            return operation()
        except RateLimitError as e:
            if on_rate_limit:
                on_rate_limit(e)
            time.sleep(rate_limit_delay)
        except TranslationError as e:
            if not e.retryable or attempt >= max_retries:
                raise
            wait_time = base_delay * (2 ** attempt)
            attempt += 1
            if on_retry:
                on_retry(e, attempt, wait_time)
            time.sleep(wait_time)
