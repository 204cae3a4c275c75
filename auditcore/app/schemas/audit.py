"""
Audit input and wire-format result schemas.

The AuditResult field names and order are a FROZEN external contract
consumed by existing clients. Renaming or reordering any field is a
breaking change.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auditcore.app.synthesis.source_text import (
    EmailAttachment,
    build_email_audit_text,
    build_email_evidence_text,
)


# ---------------------------------------------------------------------------
# Enumerations (FROZEN CONTRACTS)
# ---------------------------------------------------------------------------


class SourceType(str, Enum):
    TEXT = "text"
    URL = "url"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    EMAIL = "email"


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ComplianceStatus(str, Enum):
    COMPLIANT = "COMPLIANT"
    NON_COMPLIANT = "NON_COMPLIANT"


class CacheEntryStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class AuditInput(BaseModel):
    """
    Normalized audit input.

    Owned by the calling request and immutable once constructed.
    """

    text: str = Field(..., description="Normalized source text to audit")
    source_type: SourceType = Field(
        SourceType.TEXT,
        description="Origin of the text; also the audit-type cache tag",
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Free-form context (sender, filename, url, ...)",
    )
    evidence_text: Optional[str] = Field(
        None,
        description="Quotable content when the audit text carries scaffolding",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("text")
    @classmethod
    def text_must_not_be_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Audit input text must not be empty")
        return value

    @property
    def audit_type(self) -> str:
        return self.source_type.value

    @property
    def evidence_source(self) -> str:
        if self.evidence_text is None:
            return self.text
        return self.evidence_text

    @classmethod
    def from_email(
        cls,
        *,
        body: str,
        subject: str = "",
        sender: str = "",
        recipient: str = "",
        date: str = "",
        attachments: Sequence[EmailAttachment] = (),
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "AuditInput":
        text = build_email_audit_text(
            body=body,
            subject=subject,
            sender=sender,
            recipient=recipient,
            date=date,
            attachments=attachments,
        )
        context = {"subject": subject, "from": sender, "to": recipient}
        context.update(metadata or {})
        return cls(
            text=text,
            source_type=SourceType.EMAIL,
            metadata=context,
            evidence_text=build_email_evidence_text(
                body=body,
                subject=subject,
                attachments=attachments,
            ),
        )


# ---------------------------------------------------------------------------
# Wire format (PUBLIC, FROZEN)
# ---------------------------------------------------------------------------


class WireFinding(BaseModel):
    """
    One finding as delivered to clients.
    """

    severity: str
    regulation: str
    description: str
    evidence: str
    recommended_fix: str
    problematic_content: str = Field(..., alias="problematicContent")
    suggestion: str
    solution: str
    index: int = Field(..., ge=1)

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class AuditResult(BaseModel):
    """
    Final audit verdict.

    ``risk_score`` is a pure function of finding severities and is never
    taken from the model.
    """

    risk_level: RiskLevel
    risk_score: int = Field(..., ge=0, le=100)
    compliance_flags: List[str] = Field(default_factory=list)
    summary: str
    recommended_actions: List[str] = Field(default_factory=list)
    detected_content_types: List[str] = Field(default_factory=list)
    violations: List[WireFinding] = Field(default_factory=list)
    status: ComplianceStatus
    explanation: str
    recommended_fix: str
    content_hash: str

    model_config = ConfigDict(frozen=True, extra="forbid")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class CacheEntry(BaseModel):
    """
    Stored result for one (normalized content, audit type, rule-pack
    version) key. Never mutated after creation.
    """

    content_hash: str
    audit_type: str
    rule_pack_version: str
    status: CacheEntryStatus = CacheEntryStatus.COMPLETED
    result: AuditResult
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    model_config = ConfigDict(frozen=True, extra="forbid")
