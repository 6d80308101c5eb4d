"""
Shared plumbing for the Translator and the Summarizer: collaborator wiring,
hook notifications and the content-retry loop around one model call.
"""

import time
from typing import Callable, Optional, TypeVar

from shared.errors import EmptyTranslationError, RateLimitError, TranslationError
from shared.utils.logging import get_logger
from ..client.transport import ChatCompletionsClient
from ..config.hooks import TranslationHooks, elapsed_since
from ..config.settings import Settings, get_settings
from ..schemas.envelope import RequestEnvelope
from ..utils.retry import (
    DEFAULT_BASE_DELAY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RATE_LIMIT_DELAY,
    retry_unusable_content,
)

T = TypeVar("T")

# Pause between consecutive target locales or batch slices.
INTER_REQUEST_DELAY = 2.0


class BaseOrchestrator:
    """
    Composes a transport client with the content-retry policy.

    Two retry axes are stacked here. The client retries rate limiting on its
    own schedule; on top of that, empty or unparseable answers are retried
    ``max_retries`` times with exponential backoff, and a RateLimitError that
    escapes the client is waited out with a flat delay and no upper bound.
    """

    def __init__(self,
                 client: Optional[ChatCompletionsClient] = None,
                 settings: Optional[Settings] = None,
                 hooks: Optional[TranslationHooks] = None,
                 max_retries: int = DEFAULT_MAX_RETRIES,
                 retry_delay: float = DEFAULT_BASE_DELAY,
                 rate_limit_delay: float = DEFAULT_RATE_LIMIT_DELAY):
        self.settings = settings or get_settings()
        if hooks is None:
            hooks = getattr(client, "hooks", None) or TranslationHooks()
        elif client is not None:
            # Rate-limit and batch notifications come from the client.
            client.hooks = hooks
        self.hooks = hooks
        self.client = client or ChatCompletionsClient(self.settings, hooks=self.hooks)
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.rate_limit_delay = rate_limit_delay
        self.logger = get_logger()

    def _call_model(self,
                    envelope: RequestEnvelope,
                    parse: Callable[[Optional[str]], Optional[T]],
                    empty_message: str,
                    measure: Callable[[T], int] = len) -> T:
        """
        Render ``envelope``, send it and parse the answer, with retries.

        ``parse`` returning None counts as an empty answer.
        """
        prompt = envelope.render()
        source = envelope.source_locale
        target = envelope.target_locale
        request_context = {"source_locale": source, "target_locale": target}
        attempt = 0

        def single_attempt() -> T:
            nonlocal attempt
            attempt += 1
            started = time.monotonic()
            self.hooks.call_start(source, target, envelope.text_length)
            try:
                raw = self.client.complete(prompt, context=dict(request_context, attempt=attempt))
                result = parse(raw)
                if result is None:
                    raise EmptyTranslationError(empty_message)
            except TranslationError as e:
                self.hooks.call_error(source, target, e, attempt)
                raise
            self.hooks.call_complete(source, target, envelope.text_length, measure(result), elapsed_since(started))
            return result

        return retry_unusable_content(
            single_attempt,
            max_retries=self.max_retries,
            base_delay=self.retry_delay,
            rate_limit_delay=self.rate_limit_delay,
            on_retry=lambda error, number, wait: self._log_retry(envelope, error, number, wait),
            on_rate_limit=lambda error: self._log_rate_limit(envelope, error),
        )

    def _log_retry(self, envelope: RequestEnvelope, error: Exception, number: int, wait: float) -> None:
        self.logger.warn_once(
            f"{type(error).__name__}: {error}. Retry {number}/{self.max_retries} "
            f"for {envelope.operation.value} {envelope.source_locale} -> {envelope.target_locale} in {wait}s",
            key=f"retry_{envelope.operation.value}_{envelope.target_locale}_{type(error).__name__}",
            sensitive=True,
            ttl=120,
        )

    def _log_rate_limit(self, envelope: RequestEnvelope, error: RateLimitError) -> None:
        self.logger.warn_once(
            f"Rate limit hit for {envelope.operation.value} "
            f"{envelope.source_locale} -> {envelope.target_locale}, retrying in {self.rate_limit_delay}s",
            key=f"rate_limit_{envelope.operation.value}_{envelope.source_locale}_{envelope.target_locale}",
            ttl=300,
        )
