"""Pull a JSON value out of free-text model output."""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from moonphase.errors import ParseError
from moonphase.llm import ModelReply

logger = logging.getLogger(__name__)

# First ```json ... ``` or bare ``` ... ``` block. Tag match is case-insensitive.
_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


@dataclass(frozen=True)
class Extraction:
    """Outcome of one extraction attempt. ``ok`` tells which fields apply."""

    candidate: str  # Text that was handed to the JSON parser
    value: Any = None
    reason: str | None = None  # Parser message when extraction failed

    @property
    def ok(self) -> bool:
        return self.reason is None


def strip_fence(text: str) -> str:
    """Return the inside of the first code fence, or the text itself when there is none."""
    match = _FENCE.search(text)
    return match.group(1) if match else text.strip()


def try_extract_json(text: str) -> Extraction:
    """Extract and parse JSON from model text without raising.

    Args:
        text: Raw response text, possibly wrapped in prose and a code fence.

    Returns:
        Extraction with ``value`` set on success, ``reason`` set on failure.
    """
    candidate = strip_fence(text or "")
    try:
        return Extraction(candidate=candidate, value=json.loads(candidate))
    except json.JSONDecodeError as e:
        return Extraction(candidate=candidate, reason=str(e))


def extract_json(text: str) -> Any:
    """Like :func:`try_extract_json` but raises ParseError on failure."""
    result = try_extract_json(text)
    if not result.ok:
        logger.error("Failed to parse JSON response: %r", result.candidate)
        raise ParseError(
            f"Invalid JSON format from model: {result.reason}", text=result.candidate
        )
    return result.value


def parse_json_body(text: str) -> Any:
    """Parse a body that is expected to already be bare JSON (schema-constrained replies)."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse structured response: %r", text)
        raise ParseError(f"Invalid JSON format from model: {e}", text=text) from e


def reply_json(reply: ModelReply) -> Any:
    """Decode a model reply: bare JSON when it was schema-constrained, fenced text otherwise."""
    return parse_json_body(reply.text) if reply.structured else extract_json(reply.text)
