import json
from typing import Any, Dict, Optional

from auditcore.app.schemas.findings import FindingDraft, Severity
from auditcore.app.synthesis.fallbacks import RULE_PACK_DPDP, RULE_PACK_MAGIC_REMEDIES


# ----------------------------------------------------------------------
# Source content
# ----------------------------------------------------------------------

CURE_LINE = "This medicine guarantees 100% cure, no side effects ever."
AADHAAR_LINE = (
    "Share your Aadhaar number and phone with us on WhatsApp for a free consultation."
)
TWO_LINE_SOURCE = f"{CURE_LINE}\n{AADHAAR_LINE}"

HINDI_CLAIM = "यह दवा 100% इलाज की गारंटी देती है।"
HINDI_SOURCE = f"{HINDI_CLAIM} कोई साइड इफेक्ट नहीं।"


# ----------------------------------------------------------------------
# Known-good finding text
# ----------------------------------------------------------------------

CURE_GUIDANCE = (
    "Absolute cure assurances for a medicine exploit patient hope and can delay "
    "proper medical care, which the Drugs and Magic Remedies Act treats as a "
    "serious public health concern."
)

CURE_FIX = (
    "RECOMMENDED FIX\n"
    "Option A:\n"
    "\"This medicine may support relief, and individual results vary.\"\n\n"
    "Option B:\n"
    "\"This medicine supports wellbeing; results differ from person to person.\""
)

AADHAAR_GUIDANCE = (
    "The DPDP Act 2023 treats identity numbers as sensitive personal data, and "
    "casual collection over messaging apps exposes people to fraud and profiling."
)

AADHAAR_FIX = (
    "RECOMMENDED FIX\n"
    "Option A:\n"
    "\"Book your free consultation with us through our official helpline.\"\n\n"
    "Option B:\n"
    "\"Your free consultation is one call away on our official helpline.\""
)

HINDI_GUIDANCE = (
    "यह पंक्ति निश्चित इलाज का दावा करती है, जिससे गंभीर रोग से जूझ रहे लोग सही "
    "चिकित्सा में देरी कर सकते हैं। औषधि और जादुई उपचार अधिनियम ऐसे विज्ञापनों को "
    "प्रतिबंधित करता है।\n"
    "(English translation: This line suggests a certain cure, which can lead people with "
    "serious illness to delay proper medical care. The Drugs and Magic Remedies Act "
    "prohibits such advertisements.)"
)

HINDI_FIX = (
    "RECOMMENDED FIX\n"
    "Option A:\n"
    "\"यह दवा इलाज में सहायक हो सकती है, साइड इफेक्ट संभव हैं।\"\n\n"
    "Option B:\n"
    "\"यह दवा कुछ लोगों के इलाज में सहायक है। साइड इफेक्ट व्यक्ति के अनुसार अलग हो सकते हैं।\"\n"
    "(English translation: Option A: This medicine may support treatment, and side "
    "effects are possible. Option B: This medicine supports treatment for some people; "
    "side effects can differ by individual.)"
)

# Fix options that restate the guidance instead of rewriting the claim
COLLAPSED_FIX = (
    "RECOMMENDED FIX\n"
    "Option A:\n"
    "\"Absolute cure assurances for a medicine exploit patient hope and can delay "
    "proper medical care.\"\n\n"
    "Option B:\n"
    "\"The Drugs and Magic Remedies Act treats this as a serious public health "
    "concern.\""
)


# ----------------------------------------------------------------------
# Builders
# ----------------------------------------------------------------------


def make_draft(
    *,
    evidence: str = CURE_LINE,
    guidance: str = CURE_GUIDANCE,
    fix: str = CURE_FIX,
    rule_pack: str = RULE_PACK_MAGIC_REMEDIES,
    severity: Severity = Severity.HIGH,
) -> FindingDraft:
    return FindingDraft(
        severity=severity,
        rule_pack=rule_pack,
        law_reference="Drugs and Magic Remedies Act, 1954",
        description="Absolute cure claim for a medicine",
        evidence=evidence,
        guidance=guidance,
        fix=fix,
    )


def cure_issue(**overrides: Any) -> Dict[str, Any]:
    issue = {
        "severity": "high",
        "rule_pack": RULE_PACK_MAGIC_REMEDIES,
        "violation": "Absolute cure claim for a medicine",
        "law_reference": "Drugs and Magic Remedies Act, 1954",
        "evidence": CURE_LINE,
        "guidance": CURE_GUIDANCE,
        "recommended_fix": CURE_FIX,
    }
    issue.update(overrides)
    return issue


def aadhaar_issue(**overrides: Any) -> Dict[str, Any]:
    issue = {
        "severity": "medium",
        "rule_pack": RULE_PACK_DPDP,
        "violation": "Collection of Aadhaar and phone numbers over WhatsApp",
        "law_reference": "DPDP Act 2023, Section 6",
        "evidence": AADHAAR_LINE,
        "guidance": AADHAAR_GUIDANCE,
        "recommended_fix": AADHAAR_FIX,
    }
    issue.update(overrides)
    return issue


def audit_response(*issues: Dict[str, Any], summary: Optional[str] = None) -> str:
    payload: Dict[str, Any] = {"issues": list(issues)}
    if summary is not None:
        payload["summary"] = summary
        payload["explanation"] = summary
    return json.dumps(payload, ensure_ascii=False)


def regeneration_response(**fields: str) -> str:
    return json.dumps(fields, ensure_ascii=False)
