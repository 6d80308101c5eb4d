"""
Centralized Logging Utilities

This module provides the library-wide logger. It wraps a standard
``logging.Logger`` and adds the two behaviours every component relies on:

- redaction of credentials in messages flagged as sensitive, applied before
  any handler sees the record
- ``warn_once`` deduplication so sustained rate limiting does not flood logs
"""

import logging
import os
import re
import threading
import time
from typing import Dict, Optional

LOGGER_NAME = "llm_translate"
VERBOSE_ENV_VAR = "LLM_TRANSLATE_VERBOSE"

# (pattern, replacement) pairs, applied in order.
_REDACTION_RULES = [
    (re.compile(r"Bearer\s+[A-Za-z0-9_\-\.]+"), "Bearer [REDACTED]"),
    (re.compile(r"([?&])api_key=[A-Za-z0-9_\-]+"), r"\1api_key=[REDACTED]"),
    (re.compile(r"token=\s*[A-Za-z0-9_\-]+"), "token=[REDACTED]"),
    (re.compile(r"token:\s*[A-Za-z0-9_\-]+"), "token: [REDACTED]"),
    (re.compile(r"password=\s*[^\s&]+"), "password=[REDACTED]"),
    (re.compile(r"password:\s*[^\s&]+"), "password: [REDACTED]"),
    (re.compile(r"secret[=:]\s*[A-Za-z0-9_\-]+"), "secret=[REDACTED]"),
]


def sanitize_log_data(data):
    """
    Mask credentials in a log message.
    
    Non-string values are returned untouched.
    
    Args:
        data: The message to sanitize
        
    Returns:
        The message with Bearer tokens, api keys, tokens, passwords and
        secrets replaced by ``[REDACTED]``
    """
    if not isinstance(data, str):
        return data
    for pattern, replacement in _REDACTION_RULES:
        data = pattern.sub(replacement, data)
    return data


class RedactingLogger:
    """
    Library logger with redaction and warning deduplication.
    
    All messages are prefixed with ``[llm-translate]`` and routed to the
    wrapped standard logger, so applications configure handlers and levels
    the usual way.
    """
    
    def __init__(self, logger: Optional[logging.Logger] = None, clock=time.monotonic):
        """
        Initialize the logger.
        
        Args:
            logger: Standard logger to write to (defaults to ``llm_translate``)
            clock: Monotonic clock used for ``warn_once`` TTLs
        """
        self._logger = logger or logging.getLogger(LOGGER_NAME)
        self._clock = clock
        self._warn_cache: Dict[str, float] = {}
        self._cache_lock = threading.Lock()
    
    @property
    def logger(self) -> logging.Logger:
        return self._logger
    
    def info(self, message: str, sensitive: bool = False):
        self._log(logging.INFO, message, sensitive)
    
    def warn(self, message: str, sensitive: bool = False):
        self._log(logging.WARNING, message, sensitive)
    
    def debug(self, message: str, sensitive: bool = False):
        self._log(logging.DEBUG, message, sensitive)
    
    def error(self, message: str, sensitive: bool = False):
        self._log(logging.ERROR, message, sensitive)
    
    def warn_once(self, message: str, key: Optional[str] = None, sensitive: bool = False, ttl: float = 300) -> bool:
        """
        Log a warning unless the same key was logged within ``ttl`` seconds.
        
        Args:
            message: The warning text
            key: Deduplication key (defaults to the message itself)
            sensitive: Whether the message must be redacted
            ttl: Suppression window in seconds
            
        Returns:
            True if the warning was emitted, False if it was suppressed
        """
        cache_key = key or message
        with self._cache_lock:
            now = self._clock()
            last = self._warn_cache.get(cache_key)
            if last is not None and now - last <= ttl:
                return False
            self._warn_cache[cache_key] = now
        
        self._log(logging.WARNING, message, sensitive)
        return True
    
    def debug_if_verbose(self, message: str, sensitive: bool = False):
        """Log at debug level only when LLM_TRANSLATE_VERBOSE=true."""
        if os.getenv(VERBOSE_ENV_VAR, "").lower() != "true":
            return
        self._log(logging.DEBUG, message, sensitive)
    
    def set_level(self, level: Optional[str]):
        """Apply a level name to the wrapped logger. None leaves it unchanged."""
        if level:
            self._logger.setLevel(level)
    
    def reset_warnings(self):
        """Forget every deduplication key."""
        with self._cache_lock:
            self._warn_cache.clear()
    
    def _log(self, level: int, message: str, sensitive: bool):
        text = sanitize_log_data(message) if sensitive else message
        self._logger.log(level, "[llm-translate] %s", text)


_default_logger: Optional[RedactingLogger] = None
_default_lock = threading.Lock()


def get_logger() -> RedactingLogger:
    """
    Get the shared library logger instance.
    
    Returns:
        The process-wide RedactingLogger
    """
    global _default_logger
    with _default_lock:
        if _default_logger is None:
            _default_logger = RedactingLogger()
        return _default_logger
