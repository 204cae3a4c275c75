"""
Token-set similarity.

Jaccard similarity over the token sets of two normalized texts. Used for
role separation inside a finding and for deduplication across findings.

Normalization:
- case-folded
- Unicode punctuation and symbols replaced by whitespace
- whitespace collapsed
- tokens shorter than the minimum length discarded

Combining marks are kept, so Devanagari words stay whole.
"""

from __future__ import annotations

import unicodedata
from typing import FrozenSet


DEFAULT_MIN_TOKEN_LENGTH = 3


def normalize_for_compare(text: str) -> str:
    chars = []
    for char in (text or "").casefold():
        category = unicodedata.category(char)
        if category[0] in ("P", "S"):
            chars.append(" ")
        else:
            chars.append(char)
    return " ".join("".join(chars).split())


def tokenize(text: str, *, min_token_length: int = DEFAULT_MIN_TOKEN_LENGTH) -> FrozenSet[str]:
    return frozenset(
        token
        for token in normalize_for_compare(text).split()
        if len(token) >= min_token_length
    )


def jaccard_similarity(
    left: str,
    right: str,
    *,
    min_token_length: int = DEFAULT_MIN_TOKEN_LENGTH,
) -> float:
    """
    Jaccard similarity in [0, 1]. Two empty token sets score 0.
    """
    a = tokenize(left, min_token_length=min_token_length)
    b = tokenize(right, min_token_length=min_token_length)

    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def max_similarity(
    text: str,
    others,
    *,
    min_token_length: int = DEFAULT_MIN_TOKEN_LENGTH,
) -> float:
    best = 0.0
    for other in others:
        score = jaccard_similarity(text, other, min_token_length=min_token_length)
        if score > best:
            best = score
    return best
