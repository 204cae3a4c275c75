"""
Finding schemas.

Defines the three shapes a finding passes through during synthesis:

- RawFinding: untrusted, as received from the generative model
- FindingDraft: a working candidate inside the regeneration loop
- NormalizedFinding: validated, policy-compliant and immutable

Only NormalizedFinding leaves the synthesis layer, and only after
conversion to the wire format (see schemas/audit.py).
"""

from enum import Enum
from typing import Any, List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Enumerations (FROZEN CONTRACTS)
# ---------------------------------------------------------------------------


class Severity(str, Enum):
    """
    Severity level of a finding.

    Unknown or missing labels normalize to MEDIUM.
    """

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @classmethod
    def parse(cls, label: Any) -> "Severity":
        if isinstance(label, Severity):
            return label
        value = str(label or "").strip().lower()
        for member in cls:
            if member.value.lower() == value:
                return member
        return cls.MEDIUM


class FindingResolution(str, Enum):
    """
    How a finding reached its final form.
    """

    VALIDATED = "validated"
    FALLBACK = "fallback"


# ---------------------------------------------------------------------------
# Untrusted model shape
# ---------------------------------------------------------------------------


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (list, tuple)):
        return "\n".join(str(item).strip() for item in value if item is not None)
    return str(value).strip()


class RawFinding(BaseModel):
    """
    A finding exactly as the model returned it.

    Never exposed. Every field is coerced to text, unknown keys are
    ignored, and missing fields default to empty.
    """

    severity: str = ""
    rule_pack: str = ""
    law_reference: str = Field(
        "",
        validation_alias=AliasChoices("law_reference", "regulation"),
    )
    violation: str = Field(
        "",
        validation_alias=AliasChoices("violation", "description"),
    )
    evidence: str = Field(
        "",
        validation_alias=AliasChoices("evidence", "evidence_line"),
    )
    guidance: str = ""
    recommended_fix: str = Field(
        "",
        validation_alias=AliasChoices("recommended_fix", "recommendation"),
    )
    fixed_line: str = ""
    fixed_line_b: str = ""

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _coerce_text(value)


class RawAuditResponse(BaseModel):
    """
    Top-level model payload. ``issues`` is required and must be a list.
    """

    issues: List[RawFinding]
    summary: str = ""
    explanation: str = ""
    compliance_flags: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("summary", "explanation", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _coerce_text(value)

    @field_validator("compliance_flags", mode="before")
    @classmethod
    def coerce_flags(cls, value: Any) -> List[str]:
        if not isinstance(value, (list, tuple)):
            return []
        return [str(flag).strip() for flag in value if str(flag or "").strip()]


# ---------------------------------------------------------------------------
# Working and final shapes
# ---------------------------------------------------------------------------


class FindingDraft(BaseModel):
    """
    Candidate finding inside the regeneration loop.

    Evidence is resolved before the draft exists and stays locked.
    Guidance and fix are replaced via ``model_copy(update=...)``.
    """

    severity: Severity
    rule_pack: str
    law_reference: str
    description: str
    evidence: str
    guidance: str = ""
    fix: str = ""

    model_config = ConfigDict(frozen=True, extra="forbid")


class NormalizedFinding(BaseModel):
    """
    Validated, policy-compliant finding.

    ``fix`` is the canonical RECOMMENDED FIX block with two options.
    """

    severity: Severity = Field(..., description="Normalized severity")
    rule_pack: str = Field(..., description="Canonical rule-pack label")
    law_reference: str = Field(..., description="Statutory reference text")
    description: str = Field(..., description="What the violation is")
    evidence: str = Field(
        ...,
        min_length=1,
        description="One grounded sentence quoted from the source",
    )
    guidance: str = Field(..., description="Why the evidence is a problem")
    fix: str = Field(..., description="Canonical two-option replacement block")
    resolution: FindingResolution = Field(
        ...,
        description="Whether the finding validated or needed a fallback",
    )
    attempts: int = Field(..., ge=1, description="Validation attempts used")

    model_config = ConfigDict(frozen=True, extra="forbid")
