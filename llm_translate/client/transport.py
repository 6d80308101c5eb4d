import json
import re
import time
from typing import Any, Dict, List, Optional

import requests

from shared.errors import (
    ApiError,
    AuthenticationError,
    InvalidResponseError,
    RateLimitError,
    TranslationError,
)
from shared.utils.logging import get_logger
from ..config.hooks import TranslationHooks
from ..config.settings import Settings, get_settings
from ..schemas.batch import BatchOutcome, BatchRequest
from ..version import CLIENT_NAME, __version__
from .rate_limiter import SlidingWindowRateLimiter

# A 200 whose short body talks about rate limits or quotas is treated like a 429.
RATE_LIMIT_BODY_PATTERN = re.compile(r"rate.?limit|quota.?exceeded", re.IGNORECASE)
RATE_LIMIT_BODY_MAX_LENGTH = 1000

DEFAULT_BATCH_SIZE = 5
DEFAULT_INTER_BATCH_DELAY = 2.0


class ChatCompletionsClient:
    """
    Synchronous client for an OpenAI-compatible chat completions endpoint.

    Rate limiting (HTTP 429, or a short 200 body announcing one) is retried
    following ``settings.retry_delays``; every other failure is raised as a
    typed error straight away.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        hooks: Optional[TranslationHooks] = None,
    ):
        """
        Initializes the client.

        Args:
            settings: Configuration value (defaults to the process-wide settings).
            api_key: Overrides ``settings.api_key``.
            session: ``requests.Session`` used for every call.
            rate_limiter: Optional gate consulted before every HTTP attempt.
            hooks: Observer callbacks (``on_rate_limit``, ``on_batch_complete``).

        Raises:
            ConfigurationError: If no API key is available.
        """
        self.settings = settings or get_settings()
        self.api_key = api_key or self.settings.require_api_key()
        self.session = session or requests.Session()
        self.hooks = hooks or TranslationHooks()
        if rate_limiter is None and self.settings.rate_limit_max_requests:
            rate_limiter = SlidingWindowRateLimiter(
                max_requests=self.settings.rate_limit_max_requests,
                window_seconds=self.settings.rate_limit_window_seconds,
            )
        self.rate_limiter = rate_limiter
        self.logger = get_logger()

    @property
    def endpoint(self) -> str:
        return f"{self.settings.base_url}/v1/chat/completions"

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "User-Agent": f"{CLIENT_NAME}/{__version__}",
        }

    # --------------------
    # Public API
    # --------------------
    def complete(
        self,
        prompt: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Send ``prompt`` and return the model's reply text.

        Raises:
            AuthenticationError: On HTTP 401.
            ApiError: On other error statuses, timeouts and connection failures.
            RateLimitError: When the retry schedule is exhausted.
            InvalidResponseError: When the body is not JSON or carries no content.
        """
        content = self._request_content(prompt, max_tokens, temperature, context)
        if content is None or content == "":
            raise InvalidResponseError("No content in API response")
        return content

    def chat(
        self,
        prompt: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> Optional[str]:
        """Like ``complete`` but returns the content as-is, possibly None."""
        return self._request_content(prompt, max_tokens, temperature, context)

    def send_batch(
        self,
        batch: List[BatchRequest],
        batch_size: int = DEFAULT_BATCH_SIZE,
        inter_batch_delay: float = DEFAULT_INTER_BATCH_DELAY,
    ) -> List[BatchOutcome]:
        """
        Send prompts in sequential slices of ``batch_size``.

        A failing item is captured in its ``BatchOutcome`` and never aborts the
        rest. The delay applies between slices only.
        """
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")

        started = time.monotonic()
        outcomes: List[BatchOutcome] = []
        for offset in range(0, len(batch), batch_size):
            if offset > 0:
                time.sleep(inter_batch_delay)
            for request in batch[offset:offset + batch_size]:
                outcomes.append(self._send_one(request))

        success_count = sum(1 for outcome in outcomes if outcome.success)
        self.hooks.batch_complete(
            len(batch),
            time.monotonic() - started,
            success_count,
            len(outcomes) - success_count,
        )
        return outcomes

    # --------------------
    # Internals
    # --------------------
    def _send_one(self, request: BatchRequest) -> BatchOutcome:
        context = {"source_locale": request.source_locale, "target_locale": request.target_locale}
        try:
            result = self.complete(request.prompt, context=context)
            return BatchOutcome(success=True, result=result, request=request)
        except TranslationError as e:
            self.logger.debug_if_verbose(f"Batch item failed: {e}", sensitive=True)
            return BatchOutcome(success=False, error=str(e), request=request)

    def _build_body(self, prompt: str, max_tokens: Optional[int], temperature: Optional[float]) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "model": self.settings.model,
            "messages": [
                {"role": "user", "content": prompt}
            ],
        }
        if max_tokens is None:
            max_tokens = self.settings.default_max_tokens
        if temperature is None:
            temperature = self.settings.default_temperature
        if max_tokens is not None:
            body["max_tokens"] = max_tokens
        if temperature is not None:
            body["temperature"] = temperature
        return body

    def _request_content(self, prompt, max_tokens, temperature, context) -> Optional[str]:
        response = self._post_with_retry(self._build_body(prompt, max_tokens, temperature), context or {})
        try:
            payload = response.json()
        except ValueError as e:
            raise InvalidResponseError(f"Invalid JSON in API response: {e}", raw_response=response.text) from e

        try:
            return payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return None

    def _post_with_retry(self, body: Dict[str, Any], context: Dict[str, Any]) -> requests.Response:
        delays = self.settings.delay_schedule
        attempt = 0
        while True:
            response = self._post(body)
            self._raise_for_status(response)
            if not self._is_rate_limited(response):
                return response

            if attempt >= len(delays):
                raise RateLimitError(
                    f"API rate limit exceeded after {len(delays)} retries",
                    response=response,
                    retries=len(delays),
                )

            wait_time = delays[attempt]
            self.hooks.rate_limit(
                context.get("source_locale"),
                context.get("target_locale"),
                wait_time,
                attempt + 1,
            )
            self.logger.warn_once(
                f"Rate limit exceeded, retrying in {wait_time} seconds (attempt {attempt + 1})",
                key="rate_limit_retry",
                ttl=60,
            )
            time.sleep(wait_time)
            attempt += 1

    def _post(self, body: Dict[str, Any]) -> requests.Response:
        if self.rate_limiter is not None:
            self.rate_limiter.wait_and_record()
        try:
            response = self.session.post(
                self.endpoint,
                headers=self.headers,
                data=json.dumps(body),
                timeout=self.settings.request_timeout,
            )
        except requests.exceptions.Timeout as e:
            raise ApiError(f"Request timeout: {e}") from e
        except requests.exceptions.RequestException as e:
            raise ApiError(f"HTTP error: {e}") from e

        self.logger.debug_if_verbose(f"Request sent to {self.endpoint} with Bearer {self.api_key}", sensitive=True)
        self.logger.debug_if_verbose(f"Response received: {response.status_code}")
        return response

    @staticmethod
    def _raise_for_status(response: requests.Response) -> None:
        status = response.status_code
        if status == 401:
            raise AuthenticationError("Invalid API key", response=response)
        if status == 429:
            return
        if 400 <= status < 500:
            raise ApiError(f"Client error ({status})", response=response, status_code=status)
        if status >= 500:
            raise ApiError(f"Server error ({status})", response=response, status_code=status)

    @staticmethod
    def _is_rate_limited(response: requests.Response) -> bool:
        if response.status_code == 429:
            return True
        if response.status_code != 200:
            return False
        body = response.text or ""
        if len(body) > RATE_LIMIT_BODY_MAX_LENGTH:
            return False
        return bool(RATE_LIMIT_BODY_PATTERN.search(body))
