"""
Script-based language classification.

The classifier labels audit input with a tag from a closed set. Every
text field produced for a finding must match that tag, with one
exception: a single trailing translation annotation of the exact form
``(English translation: ...)`` is allowed when the tag is not the
default.

IMPORTANT:
- Classification is a counting heuristic, not a model call.
- No confidence score is produced.
- This module never raises.
"""

from __future__ import annotations

import re
from typing import List, NamedTuple


DEFAULT_LANGUAGE = "en"
HINDI = "hi"

SUPPORTED_LANGUAGES = {
    DEFAULT_LANGUAGE: "English",
    HINDI: "Hindi",
}

# Minimum Devanagari characters before input is considered Hindi
HINDI_MIN_SCRIPT_CHARS = 20

# Minimum Devanagari characters a Hindi guidance/fix body must carry
HINDI_MIN_FIELD_SCRIPT_CHARS = 10

TRANSLATION_PREFIX = "(English translation:"

_DEVANAGARI = re.compile(r"[\u0900-\u097F]")
_LATIN = re.compile(r"[A-Za-z]")
_TRANSLATION_LINE = re.compile(r"^\(English translation:\s*\S.*\)$")


class ScriptCounts(NamedTuple):
    devanagari: int
    latin: int


def script_counts(text: str) -> ScriptCounts:
    text = text or ""
    return ScriptCounts(
        devanagari=len(_DEVANAGARI.findall(text)),
        latin=len(_LATIN.findall(text)),
    )


def detect_language(text: str) -> str:
    """
    Return ``"hi"`` when Devanagari dominates the text, else ``"en"``.

    Hindi requires at least HINDI_MIN_SCRIPT_CHARS Devanagari characters
    and at least as many Devanagari characters as Latin letters.
    """
    counts = script_counts(text)
    if (
        counts.devanagari >= HINDI_MIN_SCRIPT_CHARS
        and counts.devanagari >= counts.latin
    ):
        return HINDI
    return DEFAULT_LANGUAGE


def language_name(language: str) -> str:
    return SUPPORTED_LANGUAGES.get(language, SUPPORTED_LANGUAGES[DEFAULT_LANGUAGE])


# ----------------------------------------------------------------------
# Translation annotation helpers
# ----------------------------------------------------------------------


def is_translation_line(line: str) -> bool:
    return (line or "").strip().startswith(TRANSLATION_PREFIX)


def translation_lines(text: str) -> List[str]:
    return [
        line.strip()
        for line in (text or "").splitlines()
        if is_translation_line(line)
    ]


def has_translation_line(text: str) -> bool:
    return bool(translation_lines(text))


def has_trailing_translation(text: str) -> bool:
    """
    True when exactly one well-formed translation line exists and it is
    the last non-empty line of the text.
    """
    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
    if not lines:
        return False
    found = translation_lines(text)
    return (
        len(found) == 1
        and lines[-1] == found[0]
        and bool(_TRANSLATION_LINE.match(found[0]))
    )


def strip_translation_lines(text: str) -> str:
    kept = [
        line
        for line in (text or "").splitlines()
        if not is_translation_line(line)
    ]
    return "\n".join(kept).strip()


def format_translation_line(translation: str) -> str:
    return f"{TRANSLATION_PREFIX} {translation.strip()})"


def matches_language(text: str, language: str) -> bool:
    """
    Check that a field body (translation line already removed) is
    written in the declared language.
    """
    counts = script_counts(text)
    if language == HINDI:
        return counts.devanagari >= HINDI_MIN_FIELD_SCRIPT_CHARS
    return counts.devanagari == 0
