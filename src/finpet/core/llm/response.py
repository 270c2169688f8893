"""Response shape parsing for text-service output.

A provider payload is classified into exactly one of three shapes:

* ``NormalizedResponse``: an object that already carries a known state, a
  numeric health and some text;
* ``LegacyCandidateResponse``: a JSON object recovered from free text (a
  candidate document, or bare text from a chat provider);
* ``Unparseable``: anything else.

The parser never raises; callers dispatch on the returned type.
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedResponse:
    data: dict[str, Any]


@dataclass(frozen=True)
class LegacyCandidateResponse:
    data: dict[str, Any]
    text: str = ""


@dataclass(frozen=True)
class Unparseable:
    reason: str
    text: str = field(default="", repr=False)


ParsedCompletion = Union[NormalizedResponse, LegacyCandidateResponse, Unparseable]

_FENCE_RE = re.compile(r"```[\w-]*[ \t]*\n?(.*?)```", re.DOTALL)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def is_number(value: Any) -> bool:
    """True for finite ints and floats (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # Integers too large for a float.
        return False


def _has_text(data: dict[str, Any], keys: Iterable[str]) -> bool:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return True
        if key == "advice" and isinstance(value, list):
            if any(isinstance(v, str) and v.strip() for v in value):
                return True
    return False


def extract_candidate_text(payload: Any) -> str:
    """Pull the generated text out of a payload.

    Handles ``candidates[].content.parts[].text`` documents and bare strings.
    Returns an empty string when no text is present.
    """
    if isinstance(payload, str):
        return payload
    if not isinstance(payload, dict):
        return ""
    candidates = payload.get("candidates")
    if not isinstance(candidates, list):
        return ""
    for candidate in candidates:
        if not isinstance(candidate, dict):
            continue
        content = candidate.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            continue
        texts = [
            part["text"]
            for part in parts
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        ]
        text = "".join(texts)
        if text.strip():
            return text
    return ""


def strip_code_fences(text: str) -> str:
    """Return the body of the first fenced block, or the text with stray fences removed."""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.replace("```", "").strip()


def find_first_json_object(text: str) -> str | None:
    """Locate the first balanced ``{...}`` span.

    Braces inside JSON string literals (including escaped quotes) are ignored.
    Returns None when no balanced object exists.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            ch = text[index]
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
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]
        # Unbalanced from this brace; nothing later can close it either.
        return None
    return None


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def _is_normalized(data: dict[str, Any], allowed_states: set[str] | None) -> bool:
    state = data.get("state")
    if not isinstance(state, str) or not state.strip():
        return False
    if allowed_states is not None and state.strip().upper() not in allowed_states:
        return False
    return is_number(data.get("health")) and _has_text(data, ("headline", "message"))


def _is_legacy_object(data: dict[str, Any]) -> bool:
    return is_number(data.get("health")) and _has_text(data, ("headline", "message", "advice"))


def parse_completion(
    payload: Any,
    allowed_states: Iterable[str] | None = None,
) -> ParsedCompletion:
    """Classify a provider payload into one of the three response shapes.

    Args:
        payload: Whatever the provider returned.
        allowed_states: State names accepted in a normalized response
            (case-insensitive). None accepts any non-empty state.
    """
    allowed = {s.upper() for s in allowed_states} if allowed_states is not None else None

    if isinstance(payload, dict):
        if "error" in payload and "candidates" not in payload:
            return Unparseable(reason=f"service error: {payload.get('error')}")
        if _is_normalized(payload, allowed):
            return NormalizedResponse(data=payload)
        if "candidates" not in payload:
            # A flat object that missed the normalized shape (e.g. an unknown
            # state) is still usable as a legacy object.
            if _is_legacy_object(payload):
                return LegacyCandidateResponse(data=payload)
            return Unparseable(reason="object lacks numeric health or text")

    text = extract_candidate_text(payload)
    if not text.strip():
        return Unparseable(reason="no candidate text")

    body = find_first_json_object(strip_code_fences(text))
    if body is None:
        return Unparseable(reason="no JSON object in text", text=text)
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        logger.debug("Candidate JSON did not decode: %s", exc)
        return Unparseable(reason=f"invalid JSON: {exc.msg}", text=text)
    except (ValueError, RecursionError) as exc:
        # Over-long integer literals or nesting deeper than the decoder allows.
        logger.debug("Candidate JSON rejected by decoder: %s", exc)
        return Unparseable(reason=f"invalid JSON: {type(exc).__name__}", text=text)
    if not isinstance(data, dict):
        return Unparseable(reason="JSON is not an object", text=text)
    if not _is_legacy_object(data):
        return Unparseable(reason="object lacks numeric health or text", text=text)
    return LegacyCandidateResponse(data=data, text=text)
