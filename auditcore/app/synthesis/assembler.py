"""
Wire-format result assembly.

Turns normalized findings and a risk assessment into the frozen
AuditResult contract. Every top-level field is derived
deterministically; model text is used only for summary, explanation
and compliance flags, each with a fixed default.
"""

from __future__ import annotations

from typing import List, Sequence

from auditcore.app.schemas.audit import AuditInput, AuditResult, WireFinding
from auditcore.app.schemas.findings import NormalizedFinding, RawAuditResponse
from auditcore.app.synthesis.fix_options import FIX_HEADING
from auditcore.app.synthesis.scoring import RiskAssessment
from auditcore.app.synthesis.source_text import extract_urls

EVIDENCE_HEADING = "EVIDENCE / URL"
GUIDANCE_HEADING = "GUIDANCE"

MAX_RECOMMENDED_ACTIONS = 5
DEFAULT_SUMMARY = "Audit completed"
DEFAULT_LAW_REFERENCE = "Regulatory reference required"
DEFAULT_DESCRIPTION = "Compliance issue detected"
DEFAULT_RECOMMENDED_FIX = "No replacement text required."


def with_heading(heading: str, body: str) -> str:
    body = (body or "").strip()
    if body.upper().startswith(heading):
        return body
    return f"{heading}\n{body}"


def to_wire_finding(finding: NormalizedFinding, index: int) -> WireFinding:
    law_reference = finding.law_reference or DEFAULT_LAW_REFERENCE
    return WireFinding(
        severity=finding.severity.value,
        regulation=f"{finding.rule_pack} / {law_reference}",
        description=finding.description or DEFAULT_DESCRIPTION,
        evidence=finding.evidence,
        recommended_fix=finding.fix,
        problematicContent=with_heading(EVIDENCE_HEADING, finding.evidence),
        suggestion=with_heading(GUIDANCE_HEADING, finding.guidance),
        solution=with_heading(FIX_HEADING, finding.fix),
        index=index,
    )


def detect_content_types(audit_input: AuditInput) -> List[str]:
    types = [audit_input.source_type.value]
    if extract_urls(audit_input.text) and "links" not in types:
        types.append("links")
    return types


def _distinct(items: Sequence[str]) -> List[str]:
    seen: List[str] = []
    for item in items:
        if item and item not in seen:
            seen.append(item)
    return seen


class ResultAssembler:
    def assemble(
        self,
        *,
        findings: Sequence[NormalizedFinding],
        assessment: RiskAssessment,
        audit_input: AuditInput,
        content_hash: str,
        response: RawAuditResponse,
    ) -> AuditResult:
        violations = [
            to_wire_finding(finding, index)
            for index, finding in enumerate(findings, start=1)
        ]
        actions = _distinct([v.solution for v in violations])[:MAX_RECOMMENDED_ACTIONS]
        flags = _distinct(response.compliance_flags) or _distinct([f.rule_pack for f in findings])

        summary = response.summary or response.explanation or DEFAULT_SUMMARY
        explanation = response.explanation or response.summary or DEFAULT_SUMMARY

        return AuditResult(
            risk_level=assessment.risk_level,
            risk_score=assessment.risk_score,
            compliance_flags=flags,
            summary=summary,
            recommended_actions=actions,
            detected_content_types=detect_content_types(audit_input),
            violations=violations,
            status=assessment.status,
            explanation=explanation,
            recommended_fix=actions[0] if actions else DEFAULT_RECOMMENDED_FIX,
            content_hash=content_hash,
        )
