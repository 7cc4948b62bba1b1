"""Text-to-JSON adapter for free-form model output.

Models wrap JSON in prose, code fences and reasoning preambles. The
extractor removes those artifacts and then walks the text with a small
state machine (brace depth + quote awareness) to cut out the first
balanced top-level object.
"""

import json
import re
from typing import Any

REASONING_TAGS = ("think", "thinking", "reasoning", "thought", "analysis")

_FENCE_RE = re.compile(r"```[ \t]*[A-Za-z0-9_+-]*[ \t]*\r?\n?")
_REASONING_BLOCK_RE = re.compile(
    r"<(" + "|".join(REASONING_TAGS) + r")>.*?</\1>",
    re.IGNORECASE | re.DOTALL,
)
_REASONING_LINE_RE = re.compile(
    r"^\s*</?(" + "|".join(REASONING_TAGS) + r")>",
    re.IGNORECASE,
)


class JsonExtractionError(ValueError):
    """No JSON object could be recovered from model output."""

    reason = "no_json_found"


def strip_code_fences(text: str) -> str:
    """Remove triple-backtick fence markers, keeping the fenced content."""
    return _FENCE_RE.sub("", text)


def strip_reasoning(text: str) -> str:
    """Remove reasoning blocks and any line starting with a reasoning tag."""
    text = _REASONING_BLOCK_RE.sub("", text)
    kept = [line for line in text.splitlines() if not _REASONING_LINE_RE.match(line)]
    return "\n".join(kept)


def sanitize(text: str) -> str:
    """Apply all artifact filters."""
    return strip_reasoning(strip_code_fences(text)).strip()


def extract_json_object(text: str) -> str:
    """Return the first balanced top-level JSON object in text.

    Braces inside quoted strings (single or double quotes, with backslash
    escapes) do not count toward depth.

    Raises:
        JsonExtractionError: If no `{` exists or the object never closes
    """
    start = text.find("{")
    if start == -1:
        raise JsonExtractionError("no_json_found: no opening brace")

    depth = 0
    quote: str | None = None
    escaped = False

    for index in range(start, len(text)):
        char = text[index]

        if quote is not None:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue

        if char in ('"', "'"):
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]

    raise JsonExtractionError("no_json_found: unbalanced braces")


def parse_json_object(raw: str) -> dict[str, Any]:
    """Sanitize model output and decode the embedded JSON object.

    Raises:
        JsonExtractionError: If no object is found or it does not decode
    """
    if not raw or not raw.strip():
        raise JsonExtractionError("no_json_found: empty response")

    candidate = extract_json_object(sanitize(raw))

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise JsonExtractionError(f"no_json_found: {e.msg}") from e

    if not isinstance(data, dict):
        raise JsonExtractionError("no_json_found: top-level value is not an object")

    return data
