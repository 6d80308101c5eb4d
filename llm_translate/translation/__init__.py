from .translator import Translator
from .summarizer import Summarizer

__all__ = ["Translator", "Summarizer"]
