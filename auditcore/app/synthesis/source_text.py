"""
Canonical audit text for composite inputs.

Inbound email is flattened into a single deterministic text block so
that identical emails hash to the same cache key and the model sees
headers, body, attachments and links in a fixed order. Evidence is
quoted from a separate block that carries the content without labels.
"""

from __future__ import annotations

import re
from typing import List, Sequence

from pydantic import BaseModel, ConfigDict, Field


URL_PATTERN = re.compile(r"https?://[^\s<>\"{}|\\^`\[\]]+", re.IGNORECASE)


class EmailAttachment(BaseModel):
    filename: str = Field(..., description="Attachment file name")
    content_type: str = Field("", description="Declared MIME type")
    text: str = Field("", description="Extracted text, if any")

    model_config = ConfigDict(frozen=True, extra="forbid")


def extract_urls(text: str) -> List[str]:
    seen: List[str] = []
    for url in URL_PATTERN.findall(text or ""):
        url = url.rstrip(".,;:)")
        if url not in seen:
            seen.append(url)
    return seen


def build_email_audit_text(
    *,
    body: str,
    subject: str = "",
    sender: str = "",
    recipient: str = "",
    date: str = "",
    attachments: Sequence[EmailAttachment] = (),
) -> str:
    parts = [
        "EMAIL TO AUDIT:",
        f"Subject: {subject}",
        f"From: {sender}",
        f"To: {recipient}",
        f"Date: {date}",
        "",
        "EMAIL BODY:",
        (body or "").strip(),
    ]

    if attachments:
        parts.extend(["", f"ATTACHMENTS ({len(attachments)}):"])
        for attachment in attachments:
            parts.append(f"Attachment: {attachment.filename}")
            parts.append(f"Type: {attachment.content_type or 'unknown'}")
            if attachment.text.strip():
                parts.append(attachment.text.strip())
            parts.append("")

    urls = extract_urls("\n".join([body or ""] + [a.text for a in attachments]))
    if urls:
        parts.extend(["", "URLS FOUND IN EMAIL:"])
        parts.extend(urls)

    return "\n".join(parts).strip()


def build_email_evidence_text(
    *,
    body: str,
    subject: str = "",
    attachments: Sequence[EmailAttachment] = (),
) -> str:
    """
    Quotable email content only: subject, body and attachment text.

    Section markers and header labels from the audit text are left out
    so they can never be cited as evidence.
    """
    parts = [(subject or "").strip(), (body or "").strip()]
    parts.extend(attachment.text.strip() for attachment in attachments)
    return "\n".join(part for part in parts if part)
