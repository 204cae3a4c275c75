"""
Prompt construction for audit and scoped regeneration calls.

Prompts are plain text wrapped in versioned PromptFragments. The model
is asked for JSON only; nothing it returns is trusted until the
synthesis layer has validated it.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from auditcore.app.schemas.findings import FindingDraft
from auditcore.app.synthesis.fallbacks import RULE_PACKS
from auditcore.app.synthesis.language import DEFAULT_LANGUAGE, TRANSLATION_PREFIX, language_name
from auditcore.app.synthesis.prompt_fragment import PromptFragment

PRIOR_CONTEXT_LIMIT = 6

REGENERATION_KEYS = {
    "guidance": "guidance",
    "fix": "recommended_fix",
}


# ----------------------------------------------------------------------
# Static prompt blocks
# ----------------------------------------------------------------------

_ROLE_SEPARATION = """\
OUTPUT ROLES (each field has exactly one job):
- evidence: WHAT triggered the issue. A verbatim quote of one sentence from the content.
- guidance: WHY it breaches the rule pack. Regulatory intent and the harm to consumers,
  patients or data principals. It never recommends an action and never uses action
  verbs (remove, add, ensure, include, change, provide, update, review, consult, ...).
  It never quotes or paraphrases the evidence.
- recommended_fix: the replacement copy. Exactly two single-line alternatives that
  rewrite the evidence, in this format:
  RECOMMENDED FIX
  Option A:
  "<replacement line>"

  Option B:
  "<alternative replacement line>"
  No instructions, no reasons, no mention of rules, risk, harm, regulators or
  compliance, and no absolute claims (100%, guaranteed, cure, permanent, ...).

UNIQUENESS:
- Every issue has its own guidance and its own fix. Never reuse sentence templates
  across issues."""

_FRAMEWORK = """\
COMPLIANCE FRAMEWORK:
1. Healthcare advertising
   - Drugs and Magic Remedies (Objectionable Advertisements) Act, 1954
   - Drugs and Cosmetics Act, 1940 and Rules (Rule 106, Schedule J)
   - ASCI healthcare guidelines
   - National Medical Commission regulations
2. Data protection
   - Digital Personal Data Protection Act, 2023 (consent, purpose limitation,
     data minimisation, security safeguards)
   - Information Technology Act, 2000"""

_RESPONSE_FORMAT = """\
RESPONSE FORMAT (one JSON object, nothing else):
{
  "summary": "short summary of the findings",
  "explanation": "longer explanation of the findings",
  "compliance_flags": ["flag", "..."],
  "issues": [
    {
      "severity": "low" | "medium" | "high" | "critical",
      "rule_pack": %s,
      "violation": "what the violation is, in one or two sentences",
      "law_reference": "the specific statute, rule or guideline",
      "evidence": "verbatim sentence from the content",
      "guidance": "why this breaches the rule pack",
      "recommended_fix": "RECOMMENDED FIX\\nOption A:\\n\\"...\\"\\n\\nOption B:\\n\\"...\\""
    }
  ]
}
Do not return a risk score; scoring is computed from severities.
An empty "issues" list means no violations were found."""

STRICT_JSON_SUFFIX = """

STRICT OUTPUT REMINDER:
The previous reply could not be parsed. Return exactly one JSON object that
matches RESPONSE FORMAT, with an "issues" array. No markdown, no code fences,
no commentary before or after the object."""


def build_system_text(language: str) -> str:
    name = language_name(language)
    lines = [
        "You are a senior compliance auditor for Indian healthcare advertising and "
        "data protection law.",
        "You reply with a single JSON object and nothing else.",
        f"LANGUAGE POLICY: the content is in {name}. Every guidance and "
        f"recommended_fix value is written in {name}.",
    ]
    if language != DEFAULT_LANGUAGE:
        lines.append(
            "Guidance and recommended_fix each end with exactly one line of the form "
            f"'{TRANSLATION_PREFIX} ...)'. No other English appears in those fields."
        )
    else:
        lines.append(f"Never add a '{TRANSLATION_PREFIX} ...)' line.")
    return "\n".join(lines)


def _rule_pack_choices() -> str:
    return " | ".join(f'"{pack}"' for pack in RULE_PACKS)


def build_audit_prompt(
    *,
    source_text: str,
    source_type: str,
    language: str,
    rule_pack_version: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> PromptFragment:
    context_lines = [f"Source type: {source_type}", f"Language: {language_name(language)}"]
    for key in sorted(metadata or {}):
        value = (metadata or {})[key]
        if value not in (None, ""):
            context_lines.append(f"{key}: {value}")

    text = "\n\n".join(
        [
            "AUDIT THE FOLLOWING CONTENT FOR COMPLIANCE VIOLATIONS.",
            "CONTEXT:\n" + "\n".join(context_lines),
            "--- BEGIN CONTENT ---\n" + source_text + "\n--- END CONTENT ---",
            _FRAMEWORK,
            _ROLE_SEPARATION,
            _RESPONSE_FORMAT % _rule_pack_choices(),
        ]
    )
    return PromptFragment(purpose="audit", rule_pack_version=rule_pack_version, text=text)


def build_strict_retry_prompt(prompt: PromptFragment) -> PromptFragment:
    return PromptFragment(
        purpose=f"{prompt.purpose}_retry",
        rule_pack_version=prompt.rule_pack_version,
        text=prompt.text + STRICT_JSON_SUFFIX,
    )


def _numbered(items: Sequence[str]) -> str:
    recent = [item for item in items if item][-PRIOR_CONTEXT_LIMIT:]
    if not recent:
        return "- (none)"
    return "\n".join(f"- {index}. {item}" for index, item in enumerate(recent, start=1))


def build_regeneration_prompt(
    *,
    draft: FindingDraft,
    fields: Sequence[str],
    language: str,
    rule_pack_version: str,
    problems: Sequence[str] = (),
    prior_guidance: Sequence[str] = (),
    prior_fixes: Sequence[str] = (),
) -> PromptFragment:
    """
    Ask for the failing fields only. Evidence and every field that
    already passed are sent as locked context.
    """
    requested = [REGENERATION_KEYS[field] for field in fields if field in REGENERATION_KEYS]
    name = language_name(language)

    locked = [f"EVIDENCE (LOCKED): {draft.evidence}"]
    if "guidance" not in fields:
        locked.append(f"GUIDANCE (LOCKED, DO NOT CHANGE): {draft.guidance}")

    reply = ",\n".join(f'  "{key}": "..."' for key in requested)

    sections = [
        f"Rewrite ONLY {' and '.join(requested)} for ONE compliance issue. "
        f"Write in {name}.",
        f"Rule pack: {draft.rule_pack}\nLaw reference: {draft.law_reference}\n"
        f"Severity: {draft.severity.value}\nViolation: {draft.description}",
        "\n".join(locked),
        _ROLE_SEPARATION,
        "PROBLEMS WITH THE PREVIOUS ATTEMPT:\n" + ("\n".join(f"- {p}" for p in problems) or "- (none)"),
        "PRIOR GUIDANCE (do NOT reuse wording or structure):\n" + _numbered(prior_guidance),
        "PRIOR FIXES (do NOT reuse wording or structure):\n" + _numbered(prior_fixes),
        "Return STRICT JSON ONLY:\n{\n" + reply + "\n}",
    ]
    return PromptFragment(
        purpose="regenerate_" + "_".join(requested),
        rule_pack_version=rule_pack_version,
        text="\n\n".join(sections),
    )
