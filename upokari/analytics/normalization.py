"""
Normalization helpers for grade labels and institute names.

Every function here is total: bad input degrades to a usable string
instead of raising.
"""

import re
import unicodedata
from typing import Any

UNKNOWN_GRADE = "Unknown"
UNKNOWN_INSTITUTE_KEY = "unknown"

LOWER_BAND_GRADES = frozenset({"3", "4", "5"})

_NUMBER_WORDS = {
    "one": "1", "two": "2", "three": "3", "four": "4", "five": "5",
    "six": "6", "seven": "7", "eight": "8", "nine": "9", "ten": "10",
    "eleven": "11", "twelve": "12", "thirteen": "13", "fourteen": "14",
    "fifteen": "15", "sixteen": "16", "seventeen": "17", "eighteen": "18",
    "nineteen": "19", "twenty": "20",
}

# Generic words that say nothing about which institute it is
_GENERIC_INSTITUTE_WORDS = (
    "school", "college", "institute", "academy",
    "madrasah", "madrasha", "madrasa",
    "বিদ্যালয়", "কলেজ", "মাদ্রাসা", "একাডেমি",
)

# \b does not fire around Bengali combining marks, so boundaries are spelled out
_GENERIC_WORDS_RE = re.compile(
    r"(?<![\w\u0980-\u09FF])(?:"
    + "|".join(
        re.escape(unicodedata.normalize("NFC", w)) for w in _GENERIC_INSTITUTE_WORDS
    )
    + r")(?![\w\u0980-\u09FF])",
    re.IGNORECASE,
)
_DISALLOWED_CHARS_RE = re.compile(r"[^\w\s\u0980-\u09FF]")
_TRAILING_DIGITS_RE = re.compile(r"\d+$")
_WHITESPACE_RE = re.compile(r"\s+")
_INTEGER_RE = re.compile(r"^([+-]?\d+)(?:\.0*)?$")


def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_grade(raw: Any) -> str:
    """
    Canonicalize a grade/class label.

    ``"04"``, ``4``, ``"4.0"`` and ``"Four"`` all become ``"4"``. Unrecognised labels
    are returned lowercased so they still group consistently.

    Args:
        raw: Grade as entered; digit string, number, English word or None.

    Returns:
        Digit string, the lowercased label, or ``"Unknown"`` when empty.
    """
    if raw is None or isinstance(raw, bool):
        return UNKNOWN_GRADE
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)

    text = str(raw).strip()
    if not text:
        return UNKNOWN_GRADE

    match = _INTEGER_RE.match(text)
    if match:
        return str(int(match.group(1)))

    lowered = text.lower()
    return _NUMBER_WORDS.get(lowered, lowered)


def is_lower_band(raw: Any) -> bool:
    """True when the grade normalizes to 3, 4 or 5."""
    return normalize_grade(raw) in LOWER_BAND_GRADES


def normalize_institute_name(raw: Any) -> str:
    """
    Reduce an institute name to a comparable form.

    Lowercases, drops generic words such as "school" or "কলেজ",
    strips punctuation and a trailing numeric suffix.

    Args:
        raw: Free-text institute name.

    Returns:
        Normalized name, possibly empty.
    """
    if raw is None:
        return ""
    text = _collapse(unicodedata.normalize("NFC", str(raw)).lower())
    if not text:
        return ""

    text = _GENERIC_WORDS_RE.sub(" ", text)
    text = _DISALLOWED_CHARS_RE.sub("", text)
    text = text.strip()
    text = _TRAILING_DIGITS_RE.sub("", text)
    return _collapse(text)


def institute_group_key(normalized: str) -> str:
    """First two tokens of a normalized name; ``"unknown"`` if there are none."""
    tokens = (normalized or "").split()
    if not tokens:
        return UNKNOWN_INSTITUTE_KEY
    return " ".join(tokens[:2])
