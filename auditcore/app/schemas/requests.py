"""
HTTP request payloads.

These are boundary shapes only. Each converts into an AuditInput before
anything in the synthesis layer sees it.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from auditcore.app.schemas.audit import AuditInput, SourceType
from auditcore.app.synthesis.source_text import EmailAttachment


class EmailAuditPayload(BaseModel):
    subject: str = ""
    sender: str = Field("", alias="from")
    recipient: str = Field("", alias="to")
    date: str = ""
    body: str = ""
    attachments: List[EmailAttachment] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class AuditRequest(BaseModel):
    """
    Body of ``POST /audit`` and ``POST /audit/stream``.

    Either ``text`` (any source type) or ``email`` must be supplied.
    """

    source_type: SourceType = SourceType.TEXT
    text: Optional[str] = None
    email: Optional[EmailAuditPayload] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid")

    def to_audit_input(self) -> AuditInput:
        """
        Raises ValueError when no auditable text is present.
        """
        if self.email is not None:
            if not (self.email.body.strip() or self.email.attachments):
                raise ValueError("Email payload has no body or attachments")
            return AuditInput.from_email(
                body=self.email.body,
                subject=self.email.subject,
                sender=self.email.sender,
                recipient=self.email.recipient,
                date=self.email.date,
                attachments=self.email.attachments,
                metadata=self.metadata,
            )

        if not self.text or not self.text.strip():
            raise ValueError("Request has no text to audit")
        return AuditInput(
            text=self.text,
            source_type=self.source_type,
            metadata=self.metadata,
        )
