"""
Centralized configuration management using Pydantic Settings.

Settings values are immutable. Use ``with_overrides`` to derive a new value
and ``reload_settings`` to replace the process-wide default wholesale.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, SecretStr, field_validator
from typing import Optional, List, Tuple, Union

from shared.errors import ConfigurationError


DEFAULT_RETRY_DELAYS: List[float] = [2, 4, 8, 16, 32, 64, 128, 256, 512, 1024]


class Settings(BaseSettings):
    """Client settings with environment variable support (``LLM_TRANSLATE_*``)."""
    
    # API
    api_key: Optional[SecretStr] = None
    base_url: str = "https://api.mistral.ai"
    model: str = "mistral-small"
    request_timeout: float = 60.0
    default_max_tokens: Optional[int] = None
    default_temperature: Optional[float] = None
    
    # Rate-limit backoff schedule, consulted by retry attempt index
    retry_delays: Union[str, List[float]] = Field(default_factory=lambda: list(DEFAULT_RETRY_DELAYS))
    
    # Optional client-side rate gate
    rate_limit_max_requests: Optional[int] = None
    rate_limit_window_seconds: float = 60.0
    
    # Monitoring
    enable_metrics: bool = False
    # Level applied to the "llm_translate" logger; None leaves it to the application
    log_level: Optional[str] = None
    
    @field_validator("retry_delays", mode='before')
    @classmethod
    def parse_retry_delays(cls, v):
        if v is None:
            return list(DEFAULT_RETRY_DELAYS)
        if isinstance(v, str):
            if not v.strip():
                return []
            return [float(part.strip()) for part in v.strip("[]").split(",") if part.strip()]
        return [float(item) for item in v]
    
    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, v):
        if v is None:
            return v
        level = str(v).strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return level
    
    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")
    
    @field_validator("request_timeout", "rate_limit_window_seconds")
    @classmethod
    def ensure_positive(cls, v):
        if v <= 0:
            raise ValueError("must be positive")
        return v
    
    @property
    def delay_schedule(self) -> Tuple[float, ...]:
        return tuple(self.retry_delays)
    
    @property
    def has_api_key(self) -> bool:
        return self.api_key is not None and bool(self.api_key.get_secret_value())
    
    def require_api_key(self) -> str:
        """Return the API key or raise ConfigurationError when it is missing."""
        if not self.has_api_key:
            raise ConfigurationError(
                "API key is required. Set LLM_TRANSLATE_API_KEY or call "
                "llm_translate.configure(api_key='your_key')"
            )
        return self.api_key.get_secret_value()
    
    def with_overrides(self, **changes) -> "Settings":
        """Build a new, validated Settings value with some fields replaced."""
        values = self.model_dump()
        values.update(changes)
        return type(self)(**values)
    
    model_config = SettingsConfigDict(
        env_prefix="LLM_TRANSLATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the settings singleton instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings(**overrides) -> Settings:
    """Replace the settings singleton (re-reads the environment, then applies overrides)."""
    global _settings
    _settings = Settings(**overrides)
    return _settings
