"""Extraction of JSON payloads from free-form model replies."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Literal, Optional

Container = Literal["object", "array"]

_LEADING_FENCE = re.compile(r"^\s*```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```\s*$")

_BRACKETS = {
    "object": ("{", "}"),
    "array": ("[", "]"),
}


class MalformedResponse(ValueError):
    """Raised when a model reply holds no extractable JSON value."""

    def __init__(self, message: str, *, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


def strip_fences(text: str) -> str:
    """Remove a leading ```json / ``` marker and a trailing ``` marker."""

    cleaned = _LEADING_FENCE.sub("", text, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def extract_json(text: Optional[str], *, container: Container = "object") -> Any:
    """Locate and parse exactly one JSON object (or array) inside ``text``.

    Prose before the opening bracket and commentary after the closing
    bracket are ignored. The slice runs from the first opening bracket to
    the last closing bracket, inclusive.
    """

    if not text:
        raise MalformedResponse("Model reply was empty", raw=text or "")

    opening, closing = _BRACKETS[container]
    cleaned = strip_fences(text)
    start = cleaned.find(opening)
    end = cleaned.rfind(closing)
    if start == -1 or end == -1 or start >= end:
        raise MalformedResponse(
            f"No JSON {container} found in model reply", raw=text
        )

    try:
        return json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError as exc:
        raise MalformedResponse(f"Invalid JSON in model reply: {exc.msg}", raw=text) from exc


@dataclass(frozen=True)
class ParseResult:
    """Outcome of :func:`parse_response`; ``error`` is set on failure."""

    value: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_response(text: Optional[str], *, container: Container = "object") -> ParseResult:
    """Non-raising wrapper around :func:`extract_json`."""

    try:
        return ParseResult(value=extract_json(text, container=container))
    except MalformedResponse as exc:
        return ParseResult(error=exc)


__all__ = [
    "MalformedResponse",
    "ParseResult",
    "extract_json",
    "parse_response",
    "strip_fences",
]
