"""Advice text normalization for the kid-simple style contract.

Every headline and advice line passes through ``sanitize_line`` whatever its
origin (text service or local generator). The output:

* has no emoji, zero-width or other format characters;
* has no ``% / ( ) : < > ~`` (operators are spelled out as words);
* uses plain words instead of finance jargon (DTI, runway, ratio);
* starts with a capital letter and ends with sentence punctuation.

``sanitize_line`` is idempotent: lines may be re-sanitized by several
fallback layers without drifting.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable

# Pictographs, dingbats, arrows, variation selectors, keycaps, tag characters.
_EMOJI_RE = re.compile(
    "["
    "\U0001F000-\U0001FAFF"
    "\U00002600-\U000027BF"
    "\U00002B00-\U00002BFF"
    "\U00002190-\U000021FF"
    "\U00002300-\U000023FF"
    "\U0000FE00-\U0000FE0F"
    "\U000E0000-\U000E007F"
    "⃣〰〽㊗㊙©®™"
    "]"
)

_LEADING_LABEL_RE = re.compile(
    r"^\s*(?:[•*\-–—]\s*|\d+[.)]\s+)?"
    r"(?:good|great|fix|goal|tip|win|note|next(?:\s+step)?|step\s*\d*|headline|advice\s*\d*)"
    r"\s*(?:\([^)]*\))?\s*:\s*",
    re.IGNORECASE,
)
_LEADING_BULLET_RE = re.compile(r"^\s*(?:[•*\-–—]\s+|\d+[.)]\s+)+")

_UNIT_WORDS = {
    "wk": "week", "week": "week",
    "mo": "month", "mon": "month", "month": "month",
    "yr": "year", "year": "year",
    "day": "day",
}
_PER_UNIT_RE = re.compile(
    r"(\$?\d[\d,]*(?:\.\d+)?)\s*/\s*(wk|week|mo|mon|month|yr|year|day)\b", re.IGNORECASE
)

# Order matters: two-character operators before their one-character prefixes.
_SYMBOL_WORDS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\s*(?:->|=>)\s*"), " to "),
    (re.compile(r"\s*(?:<=|=<|≤)\s*"), " at or below "),
    (re.compile(r"\s*(?:>=|≥)\s*"), " at or above "),
    (re.compile(r"\s*<\s*"), " below "),
    (re.compile(r"\s*>\s*"), " above "),
    (re.compile(r"\s*~\s*"), " about "),
    (re.compile(r"\s*%\s*"), " percent "),
    (re.compile(r"\s*&\s*"), " and "),
    (re.compile(r"\band/or\b", re.IGNORECASE), "or"),
    (re.compile(r"\s*/\s*"), " per "),
]

_PUNCT_TO_SPACE_RE = re.compile(r"[()\[\]{}:]")

_JARGON: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\bdebt[\s-]+to[\s-]+income(?:\s+ratio)?\b", re.IGNORECASE), "debt compared to income"),
    (re.compile(r"\bDTI\b", re.IGNORECASE), "debt compared to income"),
    (re.compile(r"\bmonths?\s+of\s+runway\b", re.IGNORECASE), "months of savings"),
    (re.compile(r"\brunway\b", re.IGNORECASE), "savings cushion"),
    (re.compile(r"\bratios?\b", re.IGNORECASE), "share"),
]

_NUMBER = r"(\$?\d[\d,]*(?:\.\d+)?)"
_LINK = r"\s+(?:is\s+|of\s+|at\s+)?"

# Known awkward phrasings produced by literal jargon swaps.
_GRAMMAR_FIXES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\b(?:your\s+)?(?:spend(?:ing)?|budget)\s+share" + _LINK + _NUMBER + r"\s+percent\b", re.IGNORECASE),
     r"you spend \1 percent of your money"),
    (re.compile(r"\b(?:your\s+)?savings\s+cushion" + _LINK + _NUMBER + r"\s+months?\b", re.IGNORECASE),
     r"your savings last \1 months"),
    (re.compile(r"\b(?:your\s+)?debt\s+compared\s+to\s+income" + _LINK + _NUMBER + r"\s+percent\b", re.IGNORECASE),
     r"your debt is \1 percent of your income"),
    (re.compile(r"\b(?:your\s+)?invest(?:ing|ment)?\s+(?:rate|share)" + _LINK + _NUMBER + r"\s+percent\b", re.IGNORECASE),
     r"you invest \1 percent of your income"),
    (re.compile(r"\b(per|about|and|to)(?:\s+\1\b)+", re.IGNORECASE), r"\1"),
]

_TRAILING_JUNK = " ,;-–—"
_TERMINAL = ".!?"
_MAX_PASSES = 4


def _strip_invisible(text: str) -> str:
    text = _EMOJI_RE.sub(" ", text)
    return "".join(ch for ch in text if unicodedata.category(ch) != "Cf")


def _strip_labels(text: str) -> str:
    previous = None
    while previous != text:
        previous = text
        text = _LEADING_LABEL_RE.sub("", text, count=1)
        text = _LEADING_BULLET_RE.sub("", text, count=1)
    return text


def _expand_symbols(text: str) -> str:
    text = _PER_UNIT_RE.sub(lambda m: f"{m.group(1)} per {_UNIT_WORDS[m.group(2).lower()]}", text)
    for pattern, words in _SYMBOL_WORDS:
        text = pattern.sub(words, text)
    return text


def _collapse(text: str) -> str:
    text = re.sub(r"\s+", " ", text).strip()
    text = re.sub(r"\s+([.,!?;])", r"\1", text)
    text = re.sub(r"\bpercent(?:\s+percent\b)+", "percent", text, flags=re.IGNORECASE)
    return text


def _finish(text: str) -> str:
    text = text.rstrip(_TRAILING_JUNK)
    if not text:
        return ""
    for i, ch in enumerate(text):
        if ch.isalpha():
            text = text[:i] + ch.upper() + text[i + 1:]
            break
        if ch.isdigit():
            break
    if text[-1] not in _TERMINAL:
        text += "."
    return text


def _sanitize_once(text: str) -> str:
    text = _strip_invisible(text)
    text = _strip_labels(text)
    text = _expand_symbols(text)
    text = _PUNCT_TO_SPACE_RE.sub(" ", text)
    for pattern, words in _JARGON:
        text = pattern.sub(words, text)
    text = _collapse(text)
    for pattern, words in _GRAMMAR_FIXES:
        text = pattern.sub(words, text)
    text = _collapse(_strip_labels(text))
    return _finish(text)


def sanitize_line(raw: object) -> str:
    """Clean one headline or advice line. Non-strings yield an empty string."""
    if not isinstance(raw, str):
        return ""
    text = raw
    for _ in range(_MAX_PASSES):
        cleaned = _sanitize_once(text)
        if cleaned == text:
            break
        text = cleaned
    return text


def shorten(text: str, max_len: int) -> str:
    """Truncate at the last whole word so the result (with period) fits max_len."""
    text = text.strip()
    if len(text) <= max_len:
        return text
    if max_len <= 1:
        return "." if max_len == 1 else ""

    cut = text[:max_len]
    if not text[max_len].isspace():
        head, sep, _ = cut.rpartition(" ")
        if sep:
            cut = head
    cut = cut.rstrip(_TRAILING_JUNK + _TERMINAL)
    while cut and len(cut) + 1 > max_len:
        head, sep, _ = cut.rpartition(" ")
        cut = (head if sep else cut[: max_len - 1]).rstrip(_TRAILING_JUNK + _TERMINAL)
    if not cut:
        cut = text[: max_len - 1]
    return cut + "."


def unique_list(items: Iterable[object]) -> list[str]:
    """Deduplicate case-insensitively, keeping first-seen order and casing.

    Blank and non-string entries are dropped.
    """
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        if not isinstance(item, str):
            continue
        text = item.strip()
        if not text:
            continue
        key = " ".join(text.split()).casefold()
        if key in seen:
            continue
        seen.add(key)
        result.append(text)
    return result
