"""
Evidence resolution guarantees:
- the result is one sentence quoted from the source where possible
- the result is never empty and never a placeholder
- the result never exceeds the character limit
"""

from auditcore.app.synthesis.evidence import (
    EvidenceResolver,
    is_placeholder,
    split_candidate_lines,
    split_sentences,
)

from auditcore.tests.synthesis.helpers import AADHAAR_LINE, CURE_LINE, TWO_LINE_SOURCE


def test_exact_candidate_resolves_to_its_line():
    resolver = EvidenceResolver()
    evidence = resolver.resolve(
        source_text=TWO_LINE_SOURCE,
        candidate="Aadhaar number and phone",
        description="Collection of identity numbers",
    )
    assert evidence == AADHAAR_LINE


def test_normalized_candidate_match():
    resolver = EvidenceResolver()
    evidence = resolver.resolve(
        source_text=TWO_LINE_SOURCE,
        candidate="“guarantees 100% CURE”",
        description="",
    )
    assert evidence == CURE_LINE


def test_placeholder_candidate_falls_back_to_keywords():
    resolver = EvidenceResolver()
    evidence = resolver.resolve(
        source_text=TWO_LINE_SOURCE,
        candidate="N/A",
        description="Absolute cure claim for a medicine",
    )
    assert evidence == CURE_LINE


def test_no_keyword_overlap_defaults_to_first_line():
    resolver = EvidenceResolver()
    evidence = resolver.resolve(
        source_text=TWO_LINE_SOURCE,
        candidate="",
        description="zzzz qqqq",
    )
    assert evidence == CURE_LINE


def test_single_line_source_is_split_into_sentences():
    source = f"Welcome to our clinic. {CURE_LINE} Call now."
    resolver = EvidenceResolver()

    evidence = resolver.resolve(
        source_text=source,
        candidate="guarantees 100% cure",
        description="",
    )
    assert evidence == CURE_LINE


def test_devanagari_danda_ends_a_sentence():
    assert split_sentences("पहला वाक्य। दूसरा वाक्य।") == ["पहला वाक्य।", "दूसरा वाक्य।"]
    assert split_candidate_lines("line one\nline two") == ["line one", "line two"]


def test_long_line_is_truncated_on_word_boundary():
    source = "guaranteed " * 60
    evidence = EvidenceResolver(max_chars=250).resolve(
        source_text=source,
        candidate="",
        description="guaranteed results",
    )
    assert 0 < len(evidence) <= 250
    assert evidence.split()[-1] == "guaranteed"


def test_empty_source_yields_description_phrase():
    evidence = EvidenceResolver().resolve(
        source_text="",
        candidate="",
        description="Absolute cure claim",
    )
    assert evidence == 'Content related to: "Absolute cure claim" (exact quote not available)'


def test_placeholder_only_source_never_returns_placeholder():
    evidence = EvidenceResolver().resolve(
        source_text="N/A\nnone",
        candidate="N/A",
        description="",
    )
    assert evidence
    assert not is_placeholder(evidence)
