"""
Recommended-fix option parsing and canonical rendering.

A fix is replacement copy offered as two labelled options:

    RECOMMENDED FIX
    Option A:
    "<replacement line>"

    Option B:
    "<alternative line>"
    (English translation: ...)      # non-default languages only

Labels ``Option 1`` / ``Option 2`` are accepted on input. Rendering
always uses the canonical A/B form.
"""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auditcore.app.synthesis.language import (
    format_translation_line,
    is_translation_line,
    strip_translation_lines,
    translation_lines,
)
from auditcore.app.synthesis.similarity import normalize_for_compare


FIX_HEADING = "RECOMMENDED FIX"

_OPTION_A = re.compile(r"Option\s*(?:A|1)\s*[:\-]", re.IGNORECASE)
_OPTION_B = re.compile(r"Option\s*(?:B|2)\s*[:\-]", re.IGNORECASE)

_WRAPPING_QUOTES = "\"'“”‘’`"


def strip_wrapping_quotes(text: str) -> str:
    text = (text or "").strip()
    while len(text) >= 2 and text[0] in _WRAPPING_QUOTES and text[-1] in _WRAPPING_QUOTES:
        text = text[1:-1].strip()
    return text


class FixOptions(BaseModel):
    """
    Two replacement options plus an optional translation annotation.
    """

    option_a: str = Field(..., description="Primary replacement line")
    option_b: str = Field(..., description="Alternative replacement line")
    translation: Optional[str] = Field(
        None,
        description="Full '(English translation: ...)' line, if any",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def comparison_text(self) -> str:
        """
        Option texts only. Headings and labels never take part in
        similarity checks.
        """
        return f"{self.option_a}\n{self.option_b}"

    @property
    def vocabulary_text(self) -> str:
        if self.translation:
            return f"{self.comparison_text}\n{self.translation}"
        return self.comparison_text

    def render(self) -> str:
        text = (
            f"{FIX_HEADING}\n"
            f"Option A:\n\"{self.option_a}\"\n\n"
            f"Option B:\n\"{self.option_b}\""
        )
        if self.translation:
            text += f"\n{self.translation}"
        return text

    @classmethod
    def build(
        cls,
        option_a: str,
        option_b: str,
        translation: Optional[str] = None,
    ) -> "FixOptions":
        return cls(
            option_a=option_a.strip(),
            option_b=option_b.strip(),
            translation=format_translation_line(translation) if translation else None,
        )


def _clean_option(text: str) -> Optional[str]:
    cleaned = strip_wrapping_quotes(text)
    if not cleaned or "\n" in cleaned:
        return None
    return cleaned


def parse_fix_options(text: str) -> Optional[FixOptions]:
    """
    Parse a fix into its two options.

    Returns None when the text is not exactly two labelled, single-line,
    non-empty options. Only the fix heading may precede Option A.
    """
    body = strip_translation_lines(text)

    a_match = _OPTION_A.search(body)
    b_match = _OPTION_B.search(body)
    if a_match is None or b_match is None or b_match.start() < a_match.end():
        return None

    # A third label means the model produced more than two options
    if _OPTION_A.search(body, a_match.end()) or _OPTION_B.search(body, b_match.end()):
        return None

    preamble = normalize_for_compare(body[: a_match.start()])
    if preamble and preamble != normalize_for_compare(FIX_HEADING):
        return None

    option_a = _clean_option(body[a_match.end(): b_match.start()])
    option_b = _clean_option(body[b_match.end():])
    if option_a is None or option_b is None:
        return None

    found = translation_lines(text)
    return FixOptions(
        option_a=option_a,
        option_b=option_b,
        translation=found[-1] if found else None,
    )


def fix_text_from_parts(
    recommended_fix: str,
    fixed_line: str = "",
    fixed_line_b: str = "",
) -> str:
    """
    Pick the raw fix text from the model's candidate fields.

    A labelled ``recommended_fix`` wins. Otherwise separate
    ``fixed_line``/``fixed_line_b`` values are rendered in canonical form.
    """
    if recommended_fix.strip():
        return recommended_fix.strip()
    if not fixed_line.strip():
        return ""

    lines = [line for line in fixed_line.splitlines() if not is_translation_line(line)]
    option_a = strip_wrapping_quotes(" ".join(lines))
    option_b = strip_wrapping_quotes(fixed_line_b)
    text = (
        f"{FIX_HEADING}\n"
        f"Option A:\n\"{option_a}\"\n\n"
        f"Option B:\n\"{option_b}\""
    )
    found = translation_lines(fixed_line) or translation_lines(fixed_line_b)
    if found:
        text += f"\n{found[-1]}"
    return text
