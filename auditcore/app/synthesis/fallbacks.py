"""
Deterministic fallback text and rule-pack labels.

When a finding exhausts its regeneration attempts, only the failing
field(s) are replaced with locally derived text:

- guidance: a per-rule-pack explanation variant that does not collide
  with guidance already accepted in the same response
- fix: a two-option rewrite grounded in the evidence line, chosen
  from several variants so it passes the same checks as model output

Fallback guidance is written to pass the guidance vocabulary checks;
the test suite holds every variant to that.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, Optional, Sequence, Tuple

from auditcore.app.config import AuditCoreConfig
from auditcore.app.schemas.findings import FindingDraft, NormalizedFinding
from auditcore.app.synthesis import vocabulary
from auditcore.app.synthesis.constraints import FindingValidator
from auditcore.app.synthesis.evidence import EvidenceResolver
from auditcore.app.synthesis.fix_options import FixOptions
from auditcore.app.synthesis.language import (
    DEFAULT_LANGUAGE,
    HINDI,
    format_translation_line,
    script_counts,
    strip_translation_lines,
)
from auditcore.app.synthesis.similarity import jaccard_similarity, normalize_for_compare

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Rule packs
# ----------------------------------------------------------------------

RULE_PACK_DPDP = "DPDP Act 2023"
RULE_PACK_IT_ACT = "IT Act 2000"
RULE_PACK_ASCI = "ASCI Healthcare"
RULE_PACK_MAGIC_REMEDIES = "Drugs & Magic Remedies Act"
RULE_PACK_DRUGS_COSMETICS = "Drugs & Cosmetics Act"
RULE_PACK_NMC = "NMC Regulations"
RULE_PACK_GENERAL = "General"

RULE_PACKS: Tuple[str, ...] = (
    RULE_PACK_DPDP,
    RULE_PACK_IT_ACT,
    RULE_PACK_ASCI,
    RULE_PACK_MAGIC_REMEDIES,
    RULE_PACK_DRUGS_COSMETICS,
    RULE_PACK_NMC,
    RULE_PACK_GENERAL,
)

# Checked in order; first keyword hit wins
_RULE_PACK_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (RULE_PACK_DPDP, ("dpdp", "data protection", "personal data")),
    (RULE_PACK_IT_ACT, ("it act", "information technology act")),
    (RULE_PACK_ASCI, ("asci",)),
    (RULE_PACK_MAGIC_REMEDIES, ("magic remedies",)),
    (RULE_PACK_DRUGS_COSMETICS, ("schedule j", "drugs and cosmetics", "rule 106")),
    (RULE_PACK_NMC, ("national medical commission", "nmc")),
)


def derive_rule_pack(*labels: str) -> str:
    """
    Map free-text rule-pack or law-reference labels onto a canonical
    rule pack. Unrecognized labels map to General.
    """
    for label in labels:
        value = normalize_for_compare(label)
        for pack in RULE_PACKS:
            if value and value == normalize_for_compare(pack):
                return pack

    haystack = " " + " ".join(normalize_for_compare(label) for label in labels) + " "
    for pack, keywords in _RULE_PACK_KEYWORDS:
        for keyword in keywords:
            if f" {keyword} " in haystack:
                return pack
    return RULE_PACK_GENERAL


# ----------------------------------------------------------------------
# Guidance fallbacks
# ----------------------------------------------------------------------

GUIDANCE_FALLBACKS_EN: Dict[str, Tuple[str, ...]] = {
    RULE_PACK_DPDP: (
        "Under the DPDP Act 2023, personal data is lawful to hold only with a clear "
        "purpose and valid consent from the individual. Patient or contact details "
        "that circulate without notice or consent expose people to privacy harm and "
        "identity misuse.",
        "Data protection law in India rests on consent, purpose limitation and data "
        "minimisation. Personal details exposed beyond their original purpose leave "
        "data principals exposed to profiling, fraud and loss of control over their "
        "own information.",
    ),
    RULE_PACK_IT_ACT: (
        "The IT Act 2000 expects reasonable security practices wherever electronic "
        "records and sensitive personal information are involved. Weak safeguards "
        "around identity details, medical records or credentials invite unauthorised "
        "intrusion, fraud and lasting harm to the people concerned.",
        "Electronic records that carry personal or medical details fall under "
        "statutory security expectations. A lapse here exposes individuals to "
        "impersonation and financial loss, and erodes trust in digital healthcare "
        "channels.",
    ),
    RULE_PACK_ASCI: (
        "ASCI healthcare standards demand that advertising be truthful, capable of "
        "substantiation and free of exaggeration or omission. Absolute outcome "
        "language can lead patients into unsafe choices, delayed medical care and "
        "misplaced trust in the product.",
        "Healthcare advertising in India is held to a standard of honesty and "
        "evidence, since exaggerated assurances exploit the hopes of people facing "
        "illness. Such wording distorts expectations about treatment outcomes and "
        "weakens public confidence in medical communication.",
    ),
    RULE_PACK_MAGIC_REMEDIES: (
        "The Drugs and Magic Remedies Act prohibits advertisements that suggest "
        "magical cures or assured results for scheduled conditions. Such messaging "
        "can push vulnerable patients toward self-medication and away from proper "
        "diagnosis, which is a serious public health concern.",
        "Assured-cure advertising for listed diseases is an offence under the Drugs "
        "and Magic Remedies Act. The law exists because patients with chronic or "
        "serious illness are especially susceptible to miracle narratives and may "
        "forgo effective care.",
    ),
    RULE_PACK_DRUGS_COSMETICS: (
        "The Drugs and Cosmetics Rules, with Schedule J and Rule 106, bar "
        "disease-cure advertising and demand a lawful basis for therapeutic "
        "statements. Therapeutic assurances without that basis mislead patients "
        "about what a product can achieve and breach statutory boundaries on "
        "medical advertising.",
        "Schedule J names conditions for which drug advertising may not suggest "
        "prevention or cure. Statements of this kind sit outside what the Drugs and "
        "Cosmetics framework tolerates and can steer patients away from qualified "
        "treatment.",
    ),
    RULE_PACK_NMC: (
        "NMC ethical standards call for responsible medical communication with no "
        "inducement and no misleading therapeutic assurance. Overstated outcomes "
        "exert unfair influence on patient decisions and fall short of professional "
        "obligations.",
        "Medical professionals in India carry a duty of restraint in public "
        "messaging about outcomes. Promotional certainty about recovery blurs the "
        "line between clinical advice and advertising, which the NMC code treats as "
        "unethical.",
    ),
    RULE_PACK_GENERAL: (
        "Regulators expect healthcare communication to be accurate and free of "
        "exaggeration, particularly where patient outcomes or personal data are at "
        "stake. Misleading or unsupported wording can cause real consumer harm and "
        "attract enforcement action.",
        "Consumer protection law in India treats unverifiable health or privacy "
        "assurances as unfair trade practice. Audiences who rely on such wording can "
        "suffer financial loss, physical harm or exposure of sensitive information.",
    ),
}

_GUIDANCE_FALLBACK_HI_DPDP = (
    "यह पंक्ति बिना स्पष्ट उद्देश्य या सहमति के व्यक्तिगत डेटा के उपयोग का संकेत देती है, "
    "जिससे गोपनीयता और दुरुपयोग का जोखिम बढ़ता है। नियामक ढांचा डेटा-सुरक्षा और "
    "उपयोगकर्ता-संरक्षण पर केंद्रित है।\n"
    + format_translation_line(
        "This line points to personal data in circulation without a clear purpose or "
        "consent, which raises privacy and misuse exposure. The regulatory framework "
        "centres on data security and user protection."
    )
)

_GUIDANCE_FALLBACK_HI_GENERAL = (
    "यह पंक्ति अतिरंजित या निश्चित परिणाम का संकेत देती है, जिससे मरीज भ्रामक अपेक्षाएँ "
    "बना सकते हैं। स्वास्थ्य विज्ञापन मानक उपभोक्ता सुरक्षा और गैर-भ्रामक संचार पर "
    "आधारित हैं।\n"
    + format_translation_line(
        "This line suggests an exaggerated or certain outcome, which can give patients "
        "misleading expectations. Health advertising standards rest on consumer safety "
        "and honest communication."
    )
)


def guidance_variants(rule_pack: str, language: str) -> Tuple[str, ...]:
    if language == HINDI:
        if rule_pack in (RULE_PACK_DPDP, RULE_PACK_IT_ACT):
            return (_GUIDANCE_FALLBACK_HI_DPDP, _GUIDANCE_FALLBACK_HI_GENERAL)
        return (_GUIDANCE_FALLBACK_HI_GENERAL, _GUIDANCE_FALLBACK_HI_DPDP)

    primary = GUIDANCE_FALLBACKS_EN.get(rule_pack, GUIDANCE_FALLBACKS_EN[RULE_PACK_GENERAL])
    if rule_pack == RULE_PACK_GENERAL:
        return primary
    return primary + GUIDANCE_FALLBACKS_EN[RULE_PACK_GENERAL]


# ----------------------------------------------------------------------
# Fix fallbacks
# ----------------------------------------------------------------------

# Ordered: phrase-level rewrites before single words
_SOFTENING_RULES: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r"\bno side effects(?:\s+ever)?\b", re.IGNORECASE), "individual results may vary"),
    (re.compile(r"\b100\s*(?:%|percent\b)\s*", re.IGNORECASE), ""),
    (re.compile(r"\bguarantee(?:s|d)?\b", re.IGNORECASE), "may support"),
    (re.compile(r"\bsure shot\b", re.IGNORECASE), "possible"),
    (re.compile(r"\binstant(?:ly)?\b", re.IGNORECASE), "gradual"),
    (re.compile(r"\bpermanent(?:ly)?\b", re.IGNORECASE), "lasting"),
    (re.compile(r"\b(?:cures|cured|cure)\b", re.IGNORECASE), "relief"),
    (re.compile(r"\btreatment for\b", re.IGNORECASE), "support for"),
    (re.compile(r"\btreats\b", re.IGNORECASE), "supports"),
    (re.compile(r"\balways\b", re.IGNORECASE), "often"),
    (re.compile(r"\bnever\b", re.IGNORECASE), "rarely"),
)

_SOFTENING_RULES_HI: Tuple[Tuple[str, str], ...] = (
    ("कोई साइड इफेक्ट नहीं", "साइड इफेक्ट व्यक्ति के अनुसार अलग हो सकते हैं"),
    ("साइड इफेक्ट नहीं", "साइड इफेक्ट संभव हैं"),
    ("की गारंटी देती है", "में सहायक हो सकती है"),
    ("की गारंटी देता है", "में सहायक हो सकता है"),
    ("गारंटी", "संभावना"),
    ("गारण्टी", "संभावना"),
    ("पूरी तरह", "काफ़ी हद तक"),
    ("कभी नहीं", "शायद ही कभी"),
    ("हमेशा", "अक्सर"),
    ("स्थायी", "लंबे समय तक"),
    ("तुरंत", "धीरे-धीरे"),
    ("अचूक", "उपयोगी"),
    ("पक्का", "संभावित"),
)

# Identity and contact details requested by data-protection findings
_PERSONAL_DATA_EN = re.compile(
    r"(?:\b(?:your|their|our|the|my)\s+)?"
    r"\b(?:aadhaar|aadhar|pan|phone|mobile|e-?mail|otp|password|bank|address)"
    r"(?:\s+(?:card|number|numbers|details|id|account))*\b",
    re.IGNORECASE,
)
_PERSONAL_DATA_HI: Tuple[str, ...] = (
    "आधार", "पैन", "फोन", "फ़ोन", "मोबाइल", "नंबर", "ईमेल", "पासवर्ड", "ओटीपी",
)

_DANGLING_CONNECTOR = re.compile(
    r"\b(?:and|or)\s+(?=(?:and|or|with|to|on|for|via)\b|[,.;:!?]|$)",
    re.IGNORECASE,
)

_BANNED_FIX_PHRASES: Tuple[str, ...] = tuple(
    sorted(
        vocabulary.FIX_CAUSAL_PHRASES
        | vocabulary.GENERIC_ADVICE_PHRASES
        | frozenset(t for t in vocabulary.ABSOLUTE_CLAIM_TERMS_EN if " " in t),
        key=len,
        reverse=True,
    )
)
_BANNED_FIX_WORDS = (
    vocabulary.FIX_CAUSAL_WORDS
    | vocabulary.FIX_INSTRUCTION_VERBS
    | frozenset(t for t in vocabulary.ABSOLUTE_CLAIM_TERMS_EN if " " not in t)
)

# Windows are cut from at most this many leading words
MAX_CLAUSE_WORDS = 14

FIX_FALLBACK_QUALIFIER = "as advised by a qualified healthcare professional"
FIX_FALLBACK_NEUTRAL = (
    "Results may vary by individual. This information is not a substitute for "
    "professional medical advice."
)

# (Option A qualifier, Option B sentence[, English translation])
_QUALIFIERS_EN: Tuple[Tuple[str, str], ...] = (
    (FIX_FALLBACK_QUALIFIER, FIX_FALLBACK_NEUTRAL),
    (
        "with outcomes that differ from person to person",
        "Details are available from a registered medical practitioner.",
    ),
    (
        "subject to an individual health assessment",
        "Individual experiences can vary widely.",
    ),
)

_QUALIFIERS_EN_DATA: Tuple[Tuple[str, str], ...] = (
    (
        "with no personal identifiers requested",
        "Personal details are not collected through this channel.",
    ),
    (
        "through our official helpline",
        "Identity papers stay private and are not requested here.",
    ),
    (
        "via a verified support channel",
        "Contact details remain optional at every step.",
    ),
)

_QUALIFIERS_HI: Tuple[Tuple[str, str, str], ...] = (
    (
        "परिणाम व्यक्ति के अनुसार अलग हो सकते हैं",
        "यह जानकारी सामान्य है और चिकित्सकीय सलाह का विकल्प नहीं है",
        "Option A: the original line, noting that results may vary by individual. "
        "Option B: the original line, noting that this is general information and "
        "not a substitute for medical advice.",
    ),
    (
        "अनुभव हर व्यक्ति में भिन्न हो सकता है",
        "विस्तृत जानकारी पंजीकृत चिकित्सक से उपलब्ध है",
        "Option A: the original line, noting that experiences can differ for each "
        "person. Option B: the original line, noting that details are available "
        "from a registered doctor.",
    ),
    (
        "व्यक्तिगत स्वास्थ्य आकलन के अधीन",
        "नतीजे समय और स्वास्थ्य पर निर्भर करते हैं",
        "Option A: the original line, subject to an individual health assessment. "
        "Option B: the original line, noting that outcomes depend on time and health.",
    ),
)

_QUALIFIERS_HI_DATA: Tuple[Tuple[str, str, str], ...] = (
    (
        "बिना किसी व्यक्तिगत पहचान विवरण के",
        "व्यक्तिगत जानकारी इस माध्यम से नहीं ली जाती",
        "Option A: the original line, with no personal identification details. "
        "Option B: the original line, noting that personal information is not taken "
        "through this channel.",
    ),
    (
        "हमारी आधिकारिक हेल्पलाइन पर",
        "पहचान दस्तावेज़ यहाँ नहीं माँगे जाते",
        "Option A: the original line, through our official helpline. "
        "Option B: the original line, noting that identity papers are not asked for here.",
    ),
    (
        "सत्यापित सहायता चैनल द्वारा",
        "संपर्क विवरण देना वैकल्पिक है",
        "Option A: the original line, via a verified support channel. "
        "Option B: the original line, noting that contact details are optional.",
    ),
)


def soften_claim(text: str, language: str = DEFAULT_LANGUAGE) -> str:
    """
    Rewrite absolute marketing language into a qualified statement.
    """
    softened = text or ""
    for pattern, replacement in _SOFTENING_RULES:
        softened = pattern.sub(replacement, softened)
    if language == HINDI:
        for term, replacement in _SOFTENING_RULES_HI:
            softened = softened.replace(term, replacement)
    return _tidy(softened)


def _tidy(text: str) -> str:
    text = " ".join(text.split())
    text = _DANGLING_CONNECTOR.sub("", text)
    text = re.sub(r"\s+([,.;:!?।])", r"\1", text)
    text = re.sub(r"([,;:])(?:\s*[,;:])+", r"\1", text)
    return " ".join(text.split()).strip(" ,;:")


def _strip_personal_data(text: str) -> str:
    text = _PERSONAL_DATA_EN.sub(" ", text)
    return " ".join(
        word for word in text.split()
        if not any(term in word for term in _PERSONAL_DATA_HI)
    )


def _keep_word(word: str, language: str) -> bool:
    if language == DEFAULT_LANGUAGE and script_counts(word).devanagari:
        return False
    if any(term in word for term in vocabulary.ABSOLUTE_CLAIM_TERMS_HI):
        return False
    return not any(token in _BANNED_FIX_WORDS for token in normalize_for_compare(word).split())


def fix_clause(evidence: str, rule_pack: str, language: str = DEFAULT_LANGUAGE) -> str:
    """
    The evidence line with absolute, causal and instructional wording
    taken out. Data-protection findings also lose the identifiers they
    were flagged for. Every fallback option is built on this clause.
    """
    text = soften_claim(strip_translation_lines(evidence), language)
    if rule_pack in (RULE_PACK_DPDP, RULE_PACK_IT_ACT):
        text = _strip_personal_data(text)

    for phrase in _BANNED_FIX_PHRASES:
        text = re.sub(rf"(?<!\w){re.escape(phrase)}(?!\w)", " ", text, flags=re.IGNORECASE)
    for term in vocabulary.ABSOLUTE_CLAIM_TERMS_HI:
        text = text.replace(term, " ")

    text = " ".join(word for word in text.split() if _keep_word(word, language))
    return _trim_window(_tidy(text))


def _trim_window(text: str) -> str:
    return text.strip().rstrip(".!?।").strip(" ,;:")


def _windows(clause: str) -> Tuple[str, ...]:
    words = clause.split()[:MAX_CLAUSE_WORDS]
    full = _trim_window(" ".join(words))
    if len(words) < 4:
        return (full,)
    half = (len(words) + 1) // 2
    return (
        full,
        _trim_window(" ".join(words[:half])),
        _trim_window(" ".join(words[len(words) // 2:])),
    )


def _lead(text: str) -> str:
    return text[:1].upper() + text[1:]


def fallback_fix_variants(
    evidence: str,
    rule_pack: str,
    language: str = DEFAULT_LANGUAGE,
) -> Tuple[FixOptions, ...]:
    """
    Candidate fallback fixes, most natural first.

    Each variant pairs a window of the cleaned evidence clause with its
    own qualifier wording, so two findings on the same line can still
    receive distinct fixes.
    """
    clause = fix_clause(evidence, rule_pack, language)
    data_pack = rule_pack in (RULE_PACK_DPDP, RULE_PACK_IT_ACT)

    if language == HINDI:
        qualifiers_hi = _QUALIFIERS_HI_DATA if data_pack else _QUALIFIERS_HI
        if not clause:
            qa, qb, translation = qualifiers_hi[0]
            return (FixOptions.build(f"{qa}।", f"{qb}।", translation),)
        return tuple(
            FixOptions.build(f"{window}, {qa}।", f"{window}। {qb}।", translation)
            for window, (qa, qb, translation) in _combinations(_windows(clause), qualifiers_hi)
        )

    if not clause:
        return (FixOptions.build(FIX_FALLBACK_NEUTRAL, FIX_FALLBACK_QUALIFIER.capitalize() + "."),)

    variants = []
    softened = _trim_window(soften_claim(strip_translation_lines(evidence)))
    if not data_pack and clause == softened and normalize_for_compare(clause) != normalize_for_compare(evidence):
        variants.append(
            FixOptions.build(f"{_lead(clause)}.", f"{_lead(clause)}, {FIX_FALLBACK_QUALIFIER}.")
        )

    qualifiers = _QUALIFIERS_EN_DATA if data_pack else _QUALIFIERS_EN
    for window, (qa, qb) in _combinations(_windows(clause), qualifiers):
        variants.append(FixOptions.build(f"{_lead(window)}, {qa}.", f"{_lead(window)}. {qb}"))
    return tuple(variants)


def _combinations(windows: Sequence[str], qualifiers: Sequence[tuple]) -> list:
    # Window i with qualifier i first, then every other pairing
    ordered = [
        (window, qualifiers[index % len(qualifiers)])
        for index, window in enumerate(windows)
    ]
    for window in windows:
        for qualifier in qualifiers:
            if (window, qualifier) not in ordered:
                ordered.append((window, qualifier))
    return [(window, qualifier) for window, qualifier in ordered if window]


def fallback_fix(evidence: str, rule_pack: str, language: str = DEFAULT_LANGUAGE) -> FixOptions:
    return fallback_fix_variants(evidence, rule_pack, language)[0]


# ----------------------------------------------------------------------
# Writer
# ----------------------------------------------------------------------


class FallbackWriter:
    """
    Replaces failing fields of a draft with deterministic text.

    A fallback fix is held to the same fix checks as model output,
    including uniqueness against accepted findings. The first variant
    that passes wins; if none does, the one with the fewest failures
    is used.
    """

    def __init__(
        self,
        *,
        config: Optional[AuditCoreConfig] = None,
        validator: Optional[FindingValidator] = None,
        evidence_resolver: Optional[EvidenceResolver] = None,
    ) -> None:
        self._config = config or AuditCoreConfig()
        self._validator = validator or FindingValidator(self._config)
        self._evidence_resolver = evidence_resolver or EvidenceResolver(
            max_chars=self._config.MAX_EVIDENCE_CHARS
        )

    def guidance_for(
        self,
        rule_pack: str,
        language: str,
        accepted_guidance: Iterable[str] = (),
    ) -> str:
        variants = guidance_variants(rule_pack, language)
        previous = [strip_translation_lines(g) for g in accepted_guidance]
        for variant in variants:
            body = strip_translation_lines(variant)
            if all(
                jaccard_similarity(
                    body, other, min_token_length=self._config.SIMILARITY_MIN_TOKEN_LENGTH
                )
                < self._config.CROSS_FINDING_SIMILARITY_MAX
                for other in previous
            ):
                return variant
        logger.debug("All guidance variants collide for %s; using the first", rule_pack)
        return variants[0]

    def fix_for(
        self,
        draft: FindingDraft,
        *,
        language: str = DEFAULT_LANGUAGE,
        accepted: Sequence[NormalizedFinding] = (),
    ) -> str:
        best: Optional[str] = None
        best_failures = 0
        for options in fallback_fix_variants(draft.evidence, draft.rule_pack, language):
            rendered = options.render()
            report = self._validator.evaluate(
                draft.model_copy(update={"fix": rendered}),
                accepted,
                language=language,
            )
            if not report.fix:
                return rendered
            if best is None or len(report.fix) < best_failures:
                best, best_failures = rendered, len(report.fix)

        logger.warning(
            "No fallback fix for %s passes every check; using the closest variant",
            draft.rule_pack,
        )
        return best

    def apply(
        self,
        draft: FindingDraft,
        fields: Sequence[str],
        *,
        language: str = DEFAULT_LANGUAGE,
        accepted: Sequence[NormalizedFinding] = (),
    ) -> FindingDraft:
        update: Dict[str, str] = {}
        if "evidence" in fields:
            update["evidence"] = self._evidence_resolver.describe(draft.description)
        if "guidance" in fields:
            update["guidance"] = self.guidance_for(
                draft.rule_pack, language, [f.guidance for f in accepted]
            )
        if update:
            draft = draft.model_copy(update=update)
        if "fix" in fields:
            draft = draft.model_copy(
                update={"fix": self.fix_for(draft, language=language, accepted=accepted)}
            )
        return draft
