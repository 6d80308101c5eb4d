from .manager import PromptManager
from .builder import PromptBuilder

__all__ = ["PromptManager", "PromptBuilder"]
