"""
Evidence resolution.

Produces one short, single-sentence, verbatim-or-near-verbatim quote
from the source text to ground a finding. The model's own evidence is
treated as a hint: it may be missing, paraphrased, or a placeholder.

Resolution order:
1. exact substring match of the model candidate against source lines
2. normalized match (case-folded, punctuation stripped)
3. best keyword overlap with the finding description
4. the first source line

IMPORTANT:
- The result is never empty and never a placeholder value.
- The result never exceeds the configured character limit.
- This module never raises.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence

from auditcore.app.synthesis.fix_options import strip_wrapping_quotes
from auditcore.app.synthesis.similarity import normalize_for_compare
from auditcore.app.synthesis.vocabulary import PLACEHOLDER_VALUES

logger = logging.getLogger(__name__)


DEFAULT_MAX_EVIDENCE_CHARS = 250
KEYWORD_MIN_LENGTH = 4
MAX_KEYWORDS = 8
DESCRIPTION_EXCERPT_CHARS = 140

_LINE_BREAK = re.compile(r"\r?\n")
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?।])\s+")


def is_placeholder(text: str) -> bool:
    value = strip_wrapping_quotes(text).strip().casefold()
    return not value or value in PLACEHOLDER_VALUES


def split_sentences(text: str) -> List[str]:
    return [
        sentence.strip()
        for sentence in _SENTENCE_BOUNDARY.split(text or "")
        if sentence.strip()
    ]


def split_candidate_lines(text: str) -> List[str]:
    """
    Newline-based lines. Single-line sources fall back to sentence
    segmentation, which includes the Devanagari danda.
    """
    lines = [line.strip() for line in _LINE_BREAK.split(text or "") if line.strip()]
    if len(lines) <= 1:
        sentences = split_sentences(lines[0] if lines else "")
        if sentences:
            return sentences
    return lines


def extract_keywords(
    description: str,
    *,
    min_length: int = KEYWORD_MIN_LENGTH,
    limit: int = MAX_KEYWORDS,
) -> List[str]:
    keywords: List[str] = []
    for token in normalize_for_compare(description).split():
        if len(token) >= min_length and token not in keywords:
            keywords.append(token)
        if len(keywords) >= limit:
            break
    return keywords


def truncate_on_word_boundary(text: str, limit: int) -> str:
    text = " ".join((text or "").split())
    if len(text) <= limit:
        return text
    cut = text[:limit]
    space = cut.rfind(" ")
    if space > 0:
        cut = cut[:space]
    return cut.rstrip(" ,;:-")


def _overlap(text: str, tokens: Sequence[str]) -> int:
    words = set(normalize_for_compare(text).split())
    return sum(1 for token in tokens if token in words)


def _best_by_overlap(candidates: Sequence[str], tokens: Sequence[str]) -> Optional[str]:
    best: Optional[str] = None
    best_score = 0
    for candidate in candidates:
        score = _overlap(candidate, tokens)
        if score > best_score:
            best, best_score = candidate, score
    return best


class EvidenceResolver:
    """
    Deterministic grounding of a finding in its source text.
    """

    def __init__(self, *, max_chars: int = DEFAULT_MAX_EVIDENCE_CHARS) -> None:
        self._max_chars = max_chars

    def resolve(
        self,
        *,
        source_text: str,
        candidate: str = "",
        description: str = "",
    ) -> str:
        lines = [line for line in split_candidate_lines(source_text) if not is_placeholder(line)]
        if not lines:
            return self.describe(description)

        anchor = strip_wrapping_quotes(candidate)
        if anchor and not is_placeholder(anchor):
            for line in lines:
                if anchor in line:
                    return self._finalize(line, anchor=anchor, description=description)

            normalized_anchor = normalize_for_compare(anchor)
            if normalized_anchor:
                for line in lines:
                    if normalized_anchor in normalize_for_compare(line):
                        return self._finalize(line, anchor=anchor, description=description)

                # Candidate spans several lines: keep the line it overlaps most
                if normalized_anchor in normalize_for_compare(" ".join(lines)):
                    line = _best_by_overlap(lines, normalized_anchor.split()) or lines[0]
                    return self._finalize(line, anchor=anchor, description=description)

            logger.debug("Evidence candidate not found verbatim; using keywords")

        keywords = extract_keywords(description)
        line = _best_by_overlap(lines, keywords) or lines[0]
        return self._finalize(line, keywords=keywords, description=description)

    def describe(self, description: str) -> str:
        """
        Description-derived phrase used when no source line can be quoted.
        """
        excerpt = truncate_on_word_boundary(description, DESCRIPTION_EXCERPT_CHARS)
        if excerpt and not is_placeholder(excerpt):
            text = f'Content related to: "{excerpt}" (exact quote not available)'
        else:
            text = "Flagged content (exact quote not available)"
        return truncate_on_word_boundary(text, self._max_chars)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _finalize(
        self,
        line: str,
        *,
        anchor: str = "",
        keywords: Sequence[str] = (),
        description: str = "",
    ) -> str:
        sentences = split_sentences(line) or [line]
        chosen = sentences[0]

        if len(sentences) > 1:
            if anchor:
                normalized_anchor = normalize_for_compare(anchor)
                containing = [
                    s for s in sentences
                    if normalized_anchor and normalized_anchor in normalize_for_compare(s)
                ]
                chosen = (
                    containing[0]
                    if containing
                    else _best_by_overlap(sentences, normalized_anchor.split()) or chosen
                )
            elif keywords:
                chosen = _best_by_overlap(sentences, keywords) or chosen

        evidence = truncate_on_word_boundary(chosen, self._max_chars)
        if not evidence or is_placeholder(evidence):
            return self.describe(description)
        return evidence
