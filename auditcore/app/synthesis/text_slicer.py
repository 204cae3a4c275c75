"""
Deterministic text slicing before model ingestion.

IMPORTANT:
- This module contains NO probabilistic logic.
- All slicing MUST be deterministic and reproducible.
- Slicing bounds only what the model sees. Hashing and evidence
  resolution always use the full source text.
"""

from __future__ import annotations

from typing import List, Optional

SLICE_SEPARATOR = "\n\n---\n\n"


class DeterministicTextSlicer:
    """
    Deterministically slice source text to a bounded window suitable
    for LLM ingestion.
    """

    def __init__(
        self,
        *,
        max_chars: int,
        head_chars: Optional[int] = None,
        tail_chars: Optional[int] = None,
    ) -> None:
        if head_chars is None and tail_chars is None:
            raise ValueError("Either head_chars or tail_chars must be specified.")

        self._max_chars = max_chars
        self._head_chars = head_chars
        self._tail_chars = tail_chars

    @classmethod
    def for_budget(cls, max_chars: int) -> "DeterministicTextSlicer":
        """
        Head-heavy split: four fifths head, one fifth tail.
        """
        head = (max_chars * 4) // 5
        return cls(max_chars=max_chars, head_chars=head, tail_chars=max_chars - head)

    def slice(self, text: str) -> str:
        """
        Return a deterministic slice of the input text.

        Strategy:
        - Text within budget is returned unchanged
        - Otherwise a head slice, then a tail slice
        - Never exceed max_chars (separator excluded)
        """

        if not text:
            return ""
        if len(text) <= self._max_chars:
            return text

        slices: List[str] = []
        remaining = self._max_chars

        if self._head_chars:
            head = text[: min(self._head_chars, remaining)]
            slices.append(head)
            remaining -= len(head)

        if remaining > 0 and self._tail_chars:
            tail = text[-self._tail_chars :]
            tail = tail[-remaining:]
            slices.append(tail)

        return SLICE_SEPARATOR.join(slices)
