from .logging import RedactingLogger, get_logger, sanitize_log_data

__all__ = ["RedactingLogger", "get_logger", "sanitize_log_data"]
