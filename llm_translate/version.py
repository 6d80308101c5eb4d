"""Version information for llm-translate."""

import platform

__version__ = "0.3.0"

API_VERSION = "v1"
SUPPORTED_MODEL = "mistral-small"
CLIENT_NAME = "llm-translate"


def version_info() -> dict:
    return {
        "version": __version__,
        "api_version": API_VERSION,
        "supported_model": SUPPORTED_MODEL,
        "python_version": platform.python_version(),
        "platform": platform.platform(),
    }
