"""Pull a JSON object out of free-form LLM output.

Models are asked for bare JSON but regularly wrap it in Markdown fences,
prepend a sentence of prose, or leave invisible control characters behind.
``extract_json`` handles those cases in one place:

1. Empty or whitespace-only text is rejected.
2. If the text contains a fenced block (```json ... ``` or ``` ... ```), only
   the body of the first block is kept. A lone unterminated opening fence is
   dropped.
3. Control characters (U+0000-U+001F, U+007F-U+009F) are removed. Literal
   newlines are never valid inside JSON strings, so this only loses
   insignificant whitespace.
4. The text is parsed as-is; if that fails, the span from the first ``{`` to
   the last ``}`` is parsed instead.
5. The parsed value must be a JSON object.

Any failure raises ``ExtractionError``.
"""

import json
import re
from typing import Any

_FENCED_BLOCK = re.compile(r"```[a-zA-Z]*[ \t]*\n?(.*?)```", re.DOTALL)
_OPENING_FENCE = re.compile(r"^```[a-zA-Z]*[ \t]*\n?")
_CONTROL_CHARS = re.compile(r"[\u0000-\u001f\u007f-\u009f]")


class ExtractionError(ValueError):
    """Raised when no JSON object can be recovered from model output."""


def strip_fences(text: str) -> str:
    """Return the body of the first fenced code block, or ``text`` unfenced."""
    cleaned = text.strip()
    match = _FENCED_BLOCK.search(cleaned)
    if match:
        return match.group(1).strip()
    return _OPENING_FENCE.sub("", cleaned).strip()


def strip_control_chars(text: str) -> str:
    return _CONTROL_CHARS.sub("", text)


def extract_json(text: str | None) -> dict[str, Any]:
    """Extract a JSON object from possibly-decorated model output.

    Args:
        text: Raw model text.

    Returns:
        The parsed JSON object.

    Raises:
        ExtractionError: If the text is empty, holds no parseable object, or
            parses to something other than an object.
    """
    if not text or not text.strip():
        raise ExtractionError("empty model output")

    cleaned = strip_control_chars(strip_fences(text))

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        start = cleaned.find("{")
        end = cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ExtractionError("no JSON object found in model output") from None
        try:
            parsed = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as e:
            raise ExtractionError(f"invalid JSON in model output: {e}") from e

    if not isinstance(parsed, dict):
        raise ExtractionError(f"expected a JSON object, got {type(parsed).__name__}")
    return parsed
