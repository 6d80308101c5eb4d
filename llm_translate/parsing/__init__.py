from .response_parser import ResponseParser
from .extraction import ParseOutcome, ParseStatus, extract_envelope

__all__ = ["ResponseParser", "ParseOutcome", "ParseStatus", "extract_envelope"]
