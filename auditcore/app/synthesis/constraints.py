"""
Constraint validation for candidate findings.

Each predicate is independent and returns a ConstraintCheck carrying a
reason code. FindingValidator runs every predicate over one candidate,
including similarity gates against previously accepted findings, and
reports which fields failed.

IMPORTANT:
- The validator has no side effects.
- The validator never regenerates or rewrites text.
- A failing report names the fields to regenerate; evidence is never one
  of them because it is locked once resolved.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from auditcore.app.config import AuditCoreConfig
from auditcore.app.schemas.findings import FindingDraft, NormalizedFinding
from auditcore.app.synthesis.evidence import is_placeholder
from auditcore.app.synthesis.fix_options import FixOptions, parse_fix_options
from auditcore.app.synthesis.language import (
    DEFAULT_LANGUAGE,
    has_translation_line,
    has_trailing_translation,
    matches_language,
    strip_translation_lines,
)
from auditcore.app.synthesis.similarity import jaccard_similarity, normalize_for_compare
from auditcore.app.synthesis import vocabulary


# ----------------------------------------------------------------------
# Check results
# ----------------------------------------------------------------------


class ConstraintReason(str, Enum):
    """
    Reason codes. Also sent back to the model on regeneration.
    """

    EVIDENCE_EMPTY = "evidence_empty"
    EVIDENCE_PLACEHOLDER = "evidence_placeholder"

    TOO_SHORT = "too_short"
    ACTION_VERB = "action_verb"
    IMPERATIVE_MARKER = "imperative_marker"
    GENERIC_PHRASE = "generic_phrase"
    PARAPHRASES_EVIDENCE = "paraphrases_evidence"
    LANGUAGE_MISMATCH = "language_mismatch"
    TRANSLATION_MISSING = "translation_missing"
    TRANSLATION_UNEXPECTED = "translation_unexpected"

    MALFORMED_OPTIONS = "malformed_options"
    CAUSAL_LANGUAGE = "causal_language"
    INSTRUCTIONAL_VERB = "instructional_verb"
    ABSOLUTE_CLAIM = "absolute_claim"
    NOT_GROUNDED = "not_grounded"
    COPIES_EVIDENCE = "copies_evidence"

    ROLE_COLLAPSE = "role_collapse"
    DUPLICATE_ACROSS_FINDINGS = "duplicate_across_findings"


class ConstraintCheck(BaseModel):
    passed: bool
    reason: Optional[ConstraintReason] = None
    detail: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def ok(cls) -> "ConstraintCheck":
        return cls(passed=True)

    @classmethod
    def fail(cls, reason: ConstraintReason, detail: Optional[str] = None) -> "ConstraintCheck":
        return cls(passed=False, reason=reason, detail=detail)


# ----------------------------------------------------------------------
# Vocabulary matching
# ----------------------------------------------------------------------


def _tokens(text: str) -> List[str]:
    return normalize_for_compare(text).split()


def find_words(text: str, words: Iterable[str]) -> List[str]:
    bank = set(words)
    hits: List[str] = []
    for token in _tokens(text):
        if token in bank and token not in hits:
            hits.append(token)
    return hits


def find_phrases(text: str, phrases: Iterable[str]) -> List[str]:
    padded = f" {normalize_for_compare(text)} "
    return sorted(
        phrase for phrase in phrases
        if f" {normalize_for_compare(phrase)} " in padded
    )


def find_absolute_terms(text: str) -> List[str]:
    lowered = (text or "").casefold()
    hits = []
    for term in sorted(vocabulary.ABSOLUTE_CLAIM_TERMS_EN):
        if re.search(rf"(?<!\w){re.escape(term)}(?!\w)", lowered):
            hits.append(term)
    for term in sorted(vocabulary.ABSOLUTE_CLAIM_TERMS_HI):
        if term in text:
            hits.append(term)
    return hits


# ----------------------------------------------------------------------
# Evidence predicates
# ----------------------------------------------------------------------


def check_evidence(evidence: str) -> ConstraintCheck:
    if not (evidence or "").strip():
        return ConstraintCheck.fail(ConstraintReason.EVIDENCE_EMPTY)
    if is_placeholder(evidence):
        return ConstraintCheck.fail(ConstraintReason.EVIDENCE_PLACEHOLDER, evidence.strip())
    return ConstraintCheck.ok()


# ----------------------------------------------------------------------
# Shared predicates
# ----------------------------------------------------------------------


def check_translation_rule(text: str, language: str) -> ConstraintCheck:
    """
    Default language: no translation line at all.
    Other languages: exactly one, trailing.
    """
    if language == DEFAULT_LANGUAGE:
        if has_translation_line(text):
            return ConstraintCheck.fail(ConstraintReason.TRANSLATION_UNEXPECTED)
        return ConstraintCheck.ok()
    if not has_trailing_translation(text):
        return ConstraintCheck.fail(ConstraintReason.TRANSLATION_MISSING)
    return ConstraintCheck.ok()


def check_language(body: str, language: str) -> ConstraintCheck:
    if not matches_language(body, language):
        return ConstraintCheck.fail(ConstraintReason.LANGUAGE_MISMATCH, language)
    return ConstraintCheck.ok()


# ----------------------------------------------------------------------
# Guidance predicates
# ----------------------------------------------------------------------


def check_guidance_length(guidance: str, min_chars: int) -> ConstraintCheck:
    if len((guidance or "").strip()) < min_chars:
        return ConstraintCheck.fail(ConstraintReason.TOO_SHORT)
    return ConstraintCheck.ok()


def check_guidance_verbs(guidance: str) -> ConstraintCheck:
    hits = find_words(guidance, vocabulary.ACTION_VERBS)
    if hits:
        return ConstraintCheck.fail(ConstraintReason.ACTION_VERB, ", ".join(hits))
    return ConstraintCheck.ok()


def check_guidance_imperatives(guidance: str) -> ConstraintCheck:
    hits = find_words(guidance, vocabulary.IMPERATIVE_MARKER_WORDS)
    hits += find_phrases(guidance, vocabulary.IMPERATIVE_MARKER_PHRASES)
    if hits:
        return ConstraintCheck.fail(ConstraintReason.IMPERATIVE_MARKER, ", ".join(hits))
    return ConstraintCheck.ok()


def check_guidance_generic(guidance: str) -> ConstraintCheck:
    hits = find_phrases(guidance, vocabulary.GENERIC_GUIDANCE_PHRASES)
    if hits:
        return ConstraintCheck.fail(ConstraintReason.GENERIC_PHRASE, ", ".join(hits))
    return ConstraintCheck.ok()


def check_guidance_paraphrase(
    guidance_body: str,
    evidence: str,
    threshold: float,
    *,
    min_token_length: int,
) -> ConstraintCheck:
    score = jaccard_similarity(guidance_body, evidence, min_token_length=min_token_length)
    if score >= threshold:
        return ConstraintCheck.fail(ConstraintReason.PARAPHRASES_EVIDENCE, f"{score:.2f}")
    return ConstraintCheck.ok()


# ----------------------------------------------------------------------
# Fix predicates
# ----------------------------------------------------------------------


def check_fix_vocabulary(options: FixOptions) -> List[ConstraintCheck]:
    text = options.vocabulary_text
    failures: List[ConstraintCheck] = []

    causal = find_words(text, vocabulary.FIX_CAUSAL_WORDS)
    causal += find_phrases(text, vocabulary.FIX_CAUSAL_PHRASES)
    if causal:
        failures.append(ConstraintCheck.fail(ConstraintReason.CAUSAL_LANGUAGE, ", ".join(causal)))

    instructions = find_words(text, vocabulary.FIX_INSTRUCTION_VERBS)
    if instructions:
        failures.append(
            ConstraintCheck.fail(ConstraintReason.INSTRUCTIONAL_VERB, ", ".join(instructions))
        )

    absolutes = find_absolute_terms(text)
    if absolutes:
        failures.append(ConstraintCheck.fail(ConstraintReason.ABSOLUTE_CLAIM, ", ".join(absolutes)))

    generic = find_phrases(text, vocabulary.GENERIC_ADVICE_PHRASES)
    if generic:
        failures.append(ConstraintCheck.fail(ConstraintReason.GENERIC_PHRASE, ", ".join(generic)))

    return failures


def check_fix_grounding(
    options: FixOptions,
    evidence: str,
    lower: float,
    upper: float,
    *,
    min_token_length: int,
) -> ConstraintCheck:
    """
    Each option must overlap the evidence inside the open interval
    (lower, upper): related to the flagged line, never a copy of it.
    """
    for option in (options.option_a, options.option_b):
        score = jaccard_similarity(option, evidence, min_token_length=min_token_length)
        if score <= lower:
            return ConstraintCheck.fail(ConstraintReason.NOT_GROUNDED, f"{score:.2f}")
        if score >= upper:
            return ConstraintCheck.fail(ConstraintReason.COPIES_EVIDENCE, f"{score:.2f}")
    return ConstraintCheck.ok()


def check_role_separation(
    guidance_body: str,
    options: FixOptions,
    threshold: float,
    *,
    min_token_length: int,
) -> ConstraintCheck:
    score = jaccard_similarity(
        guidance_body, options.comparison_text, min_token_length=min_token_length
    )
    if score >= threshold:
        return ConstraintCheck.fail(ConstraintReason.ROLE_COLLAPSE, f"{score:.2f}")
    return ConstraintCheck.ok()


def check_cross_finding(
    text: str,
    previous: Sequence[str],
    threshold: float,
    *,
    min_token_length: int,
) -> ConstraintCheck:
    for index, other in enumerate(previous, start=1):
        score = jaccard_similarity(text, other, min_token_length=min_token_length)
        if score >= threshold:
            return ConstraintCheck.fail(
                ConstraintReason.DUPLICATE_ACROSS_FINDINGS,
                f"finding {index}: {score:.2f}",
            )
    return ConstraintCheck.ok()


# ----------------------------------------------------------------------
# Aggregate report
# ----------------------------------------------------------------------


class ValidationReport(BaseModel):
    """
    Result of validating one candidate finding.
    """

    evidence: Tuple[ConstraintCheck, ...] = ()
    guidance: Tuple[ConstraintCheck, ...] = ()
    fix: Tuple[ConstraintCheck, ...] = ()

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def passed(self) -> bool:
        return not (self.evidence or self.guidance or self.fix)

    @property
    def failing_fields(self) -> Tuple[str, ...]:
        fields = []
        if self.evidence:
            fields.append("evidence")
        if self.guidance:
            fields.append("guidance")
        if self.fix:
            fields.append("fix")
        return tuple(fields)

    @property
    def reasons(self) -> Tuple[ConstraintReason, ...]:
        return tuple(
            check.reason
            for check in self.evidence + self.guidance + self.fix
            if check.reason is not None
        )

    def describe(self) -> List[str]:
        lines = []
        for field, checks in (("evidence", self.evidence), ("guidance", self.guidance), ("fix", self.fix)):
            for check in checks:
                detail = f" ({check.detail})" if check.detail else ""
                lines.append(f"{field}: {check.reason.value}{detail}")
        return lines


def _failures(checks: Iterable[ConstraintCheck]) -> Tuple[ConstraintCheck, ...]:
    return tuple(check for check in checks if not check.passed)


class FindingValidator:
    """
    Runs every predicate over a candidate finding.
    """

    def __init__(self, config: Optional[AuditCoreConfig] = None) -> None:
        self._config = config or AuditCoreConfig()

    def evaluate(
        self,
        candidate: FindingDraft,
        accepted: Sequence[NormalizedFinding] = (),
        *,
        language: str = DEFAULT_LANGUAGE,
    ) -> ValidationReport:
        cfg = self._config
        min_len = cfg.SIMILARITY_MIN_TOKEN_LENGTH

        guidance_body = strip_translation_lines(candidate.guidance)
        guidance_checks = [
            check_guidance_length(guidance_body, cfg.MIN_GUIDANCE_CHARS),
            check_guidance_verbs(candidate.guidance),
            check_guidance_imperatives(candidate.guidance),
            check_guidance_generic(candidate.guidance),
            check_language(guidance_body, language),
            check_translation_rule(candidate.guidance, language),
            check_guidance_paraphrase(
                guidance_body,
                candidate.evidence,
                cfg.GUIDANCE_EVIDENCE_SIMILARITY_MAX,
                min_token_length=min_len,
            ),
            check_cross_finding(
                guidance_body,
                [strip_translation_lines(f.guidance) for f in accepted],
                cfg.CROSS_FINDING_SIMILARITY_MAX,
                min_token_length=min_len,
            ),
        ]

        return ValidationReport(
            evidence=_failures([check_evidence(candidate.evidence)]),
            guidance=_failures(guidance_checks),
            fix=_failures(self._fix_checks(candidate, guidance_body, accepted, language)),
        )

    def _fix_checks(
        self,
        candidate: FindingDraft,
        guidance_body: str,
        accepted: Sequence[NormalizedFinding],
        language: str,
    ) -> List[ConstraintCheck]:
        cfg = self._config
        min_len = cfg.SIMILARITY_MIN_TOKEN_LENGTH

        options = parse_fix_options(candidate.fix)
        if options is None:
            return [ConstraintCheck.fail(ConstraintReason.MALFORMED_OPTIONS)]

        checks = [
            check_language(options.comparison_text, language),
            check_translation_rule(candidate.fix, language),
        ]
        if len(options.option_a) + len(options.option_b) < cfg.MIN_FIX_CHARS:
            checks.append(ConstraintCheck.fail(ConstraintReason.TOO_SHORT))

        checks.extend(check_fix_vocabulary(options))
        checks.append(
            check_fix_grounding(
                options,
                candidate.evidence,
                cfg.FIX_EVIDENCE_OVERLAP_MIN,
                cfg.FIX_EVIDENCE_OVERLAP_MAX,
                min_token_length=min_len,
            )
        )
        checks.append(
            check_role_separation(
                guidance_body,
                options,
                cfg.GUIDANCE_FIX_SIMILARITY_MAX,
                min_token_length=min_len,
            )
        )

        previous = []
        for finding in accepted:
            parsed = parse_fix_options(finding.fix)
            if parsed is not None:
                previous.append(parsed.comparison_text)
        checks.append(
            check_cross_finding(
                options.comparison_text,
                previous,
                cfg.CROSS_FINDING_SIMILARITY_MAX,
                min_token_length=min_len,
            )
        )
        return checks
