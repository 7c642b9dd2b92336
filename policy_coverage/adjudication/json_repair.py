"""
Tolerant JSON extraction for oracle responses.

Layers, tried in order:
  1. strict    — slice from the first "{" to the last "}" and parse
  2. item cut  — truncate at the last complete list item ("},") and close
                 every bracket still open
  3. object cut — truncate at the last "}" and close every bracket still open
Anything else raises JSONExtractionError.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


class JSONExtractionError(ValueError):
    """No parseable JSON object could be recovered from the text."""


def _open_brackets(fragment: str) -> list[str] | None:
    """
    Stack of unclosed "{" / "[" in the fragment, ignoring string contents.
    None when the fragment ends inside a string or brackets are mismatched.
    """
    stack: list[str] = []
    in_string = False
    escaped = False
    for ch in fragment:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "{[":
            stack.append(ch)
        elif ch in "}]":
            if not stack or (ch == "}") != (stack[-1] == "{"):
                return None
            stack.pop()
    if in_string:
        return None
    return stack


def close_brackets(fragment: str) -> str | None:
    """Append the closers needed to balance the fragment, or None if impossible."""
    fragment = fragment.rstrip().rstrip(",")
    stack = _open_brackets(fragment)
    if stack is None:
        return None
    closers = "".join("}" if b == "{" else "]" for b in reversed(stack))
    return fragment + closers


def _loads_object(text: str) -> dict[str, Any]:
    data = json.loads(text)
    if not isinstance(data, dict):
        raise JSONExtractionError(f"Top-level JSON is {type(data).__name__}, expected object")
    return data


def parse_strict(text: str) -> dict[str, Any]:
    start = text.find("{")
    end = text.rfind("}")
    if start < 0:
        raise JSONExtractionError("No JSON found in response")
    if end < start:
        raise JSONExtractionError("No closing brace in response")
    try:
        return _loads_object(text[start : end + 1])
    except json.JSONDecodeError as exc:
        raise JSONExtractionError(f"Could not parse response JSON: {exc}") from exc


def repair_truncated(text: str) -> dict[str, Any]:
    """Recover the longest parseable prefix of a truncated object."""
    start = text.find("{")
    if start < 0:
        raise JSONExtractionError("No JSON found in response")
    body = text[start:]

    cut_points = []
    last_item = body.rfind("},")
    if last_item > 0:
        cut_points.append(("last list item", last_item))
    last_obj = body.rfind("}")
    if last_obj > 0:
        cut_points.append(("last object", last_obj))

    for label, idx in cut_points:
        candidate = close_brackets(body[: idx + 1])
        if candidate is None:
            continue
        try:
            data = _loads_object(candidate)
        except (json.JSONDecodeError, JSONExtractionError):
            continue
        logger.debug(f"[JSON] Repaired truncated response at {label} (offset {idx})")
        return data

    raise JSONExtractionError("Could not repair truncated response JSON")


def extract_json_object(raw: str) -> dict[str, Any]:
    """Parse the single JSON object embedded in an oracle response."""
    text = _FENCE.sub("", raw or "").strip()
    try:
        return parse_strict(text)
    except JSONExtractionError as strict_error:
        if "{" not in text:
            raise
        try:
            return repair_truncated(text)
        except JSONExtractionError:
            raise strict_error from None
