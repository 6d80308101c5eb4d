"""
Locating and decoding the JSON envelope inside raw model output.

Model output may wrap the mandated JSON object in prose, or break long
strings with backslash-newline continuations. Exactly that shape is
recovered; anything else is reported as malformed.

Results are returned as a ``ParseOutcome`` with one of four states rather
than raised, so callers can tell "nothing there" apart from "something
broken there". Only the response-size guard and the scan iteration cap
raise directly.
"""

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Tuple

from shared.errors import InvalidResponseError

MAX_CONTENT_SIZE = 1_000_000
MAX_SCAN_ITERATIONS = 100_000

# "first part" \<newline> "second part"  ->  "first partsecond part"
_SPLIT_STRING_SEGMENTS = re.compile(r'"\s*\\\r?\n\s*"')
_LINE_CONTINUATIONS = re.compile(r"\\\s*\r?\n\s*")


class ParseStatus(Enum):
    NOT_FOUND = "not_found"
    EMPTY = "empty"
    MALFORMED = "malformed"
    OK = "ok"


@dataclass
class ParseOutcome:
    status: ParseStatus
    value: Any = None
    extracted: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is ParseStatus.OK


def check_size(content: str) -> None:
    if len(content) > MAX_CONTENT_SIZE:
        raise InvalidResponseError(
            f"Response content too large ({len(content)} chars, max: {MAX_CONTENT_SIZE})"
        )


def scan_json_object(text: str) -> ParseOutcome:
    """
    Find the first balanced ``{...}`` object in ``text``.
    
    Braces inside string literals are ignored and a backslash always
    consumes the next character.
    """
    start = text.find("{")
    if start == -1:
        return ParseOutcome(ParseStatus.NOT_FOUND)

    depth = 0
    in_string = False
    escape_next = False
    iterations = 0
    for position in range(start, len(text)):
        iterations += 1
        if iterations > MAX_SCAN_ITERATIONS:
            raise InvalidResponseError("JSON parsing exceeded maximum iterations")

        char = text[position]
        if escape_next:
            escape_next = False
            continue
        if char == "\\":
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return ParseOutcome(ParseStatus.OK, extracted=text[start:position + 1])

    return ParseOutcome(
        ParseStatus.MALFORMED,
        extracted=text[start:],
        error="Unterminated JSON object in response",
    )


def decode_with_repair(candidate: str) -> Any:
    """
    Decode ``candidate``, retrying after each continuation-repair pass.
    
    Raises the first ``json.JSONDecodeError`` if every pass fails.
    """
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as original_error:
        joined = _SPLIT_STRING_SEGMENTS.sub("", candidate)
        try:
            return json.loads(joined)
        except json.JSONDecodeError:
            pass
        try:
            return json.loads(_LINE_CONTINUATIONS.sub("", joined))
        except json.JSONDecodeError:
            raise original_error


def extract_envelope(content: Optional[str]) -> ParseOutcome:
    """Locate and decode the JSON object carried by ``content``."""
    if content is None or content == "":
        return ParseOutcome(ParseStatus.EMPTY)

    check_size(content)

    try:
        whole = json.loads(content)
    except json.JSONDecodeError:
        whole = None
    if isinstance(whole, dict):
        return ParseOutcome(ParseStatus.OK, value=whole, extracted=content)

    located = scan_json_object(content)
    if not located.ok:
        return located

    try:
        value = decode_with_repair(located.extracted)
    except json.JSONDecodeError as e:
        return ParseOutcome(ParseStatus.MALFORMED, extracted=located.extracted, error=str(e))
    return ParseOutcome(ParseStatus.OK, value=value, extracted=located.extracted)


# --------------------
# Payload navigation
# --------------------
Path = Tuple[str, ...]


def dig(data: Any, path: Sequence[str]) -> Any:
    """Follow ``path`` through nested mappings; None as soon as a step is missing."""
    current = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _usable_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (bool, dict, list)):
        return None
    text = value if isinstance(value, str) else str(value)
    return text if text != "" else None


def _accessor(path: Path) -> Callable[[Any], Optional[str]]:
    return lambda data: _usable_text(dig(data, path))


# Ordered by priority; the first usable value wins.
TARGET_PATHS: List[Tuple[Path, Callable[[Any], Optional[str]]]] = [
    (path, _accessor(path)) for path in (
        ("content", "target"),
        ("translation", "target"),
        ("target",),
        ("content", "translated"),
        ("translated",),
        ("content", "summary"),
        ("summary",),
    )
]

SOURCE_PATHS: List[Tuple[Path, Callable[[Any], Optional[str]]]] = [
    (path, _accessor(path)) for path in (
        ("content", "source"),
        ("translation", "source"),
        ("source",),
        ("content", "original"),
        ("original",),
    )
]


def first_match(data: Any, candidates) -> Optional[str]:
    for _path, accessor in candidates:
        value = accessor(data)
        if value is not None:
            return value
    return None


def extract_target(data: Any) -> Optional[str]:
    return first_match(data, TARGET_PATHS)


def extract_source(data: Any) -> Optional[str]:
    return first_match(data, SOURCE_PATHS)
