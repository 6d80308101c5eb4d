from .transport import ChatCompletionsClient
from .rate_limiter import SlidingWindowRateLimiter

__all__ = ["ChatCompletionsClient", "SlidingWindowRateLimiter"]
