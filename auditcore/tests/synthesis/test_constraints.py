from auditcore.app.config import AuditCoreConfig
from auditcore.app.schemas.findings import FindingResolution, NormalizedFinding, Severity
from auditcore.app.synthesis.constraints import (
    ConstraintReason,
    FindingValidator,
    check_cross_finding,
    check_evidence,
    check_fix_grounding,
)
from auditcore.app.synthesis.fallbacks import guidance_variants, RULE_PACK_GENERAL
from auditcore.app.synthesis.fix_options import FixOptions
from auditcore.app.synthesis.language import HINDI, format_translation_line, strip_translation_lines

from auditcore.tests.synthesis.helpers import (
    AADHAAR_LINE,
    COLLAPSED_FIX,
    CURE_FIX,
    CURE_GUIDANCE,
    CURE_LINE,
    make_draft,
)


def _fix(option_a: str, option_b: str = "This medicine supports wellbeing for many people.") -> str:
    return FixOptions.build(option_a, option_b).render()


def _accepted(draft) -> NormalizedFinding:
    return NormalizedFinding(
        **draft.model_dump(),
        resolution=FindingResolution.VALIDATED,
        attempts=1,
    )


# ----------------------------------------------------------------------
# Whole-candidate validation
# ----------------------------------------------------------------------


def test_well_formed_finding_passes():
    report = FindingValidator().evaluate(make_draft())
    assert report.passed, report.describe()
    assert report.failing_fields == ()


def test_guidance_with_action_verb_fails():
    report = FindingValidator().evaluate(
        make_draft(guidance="Remove the claim because it misleads patients about outcomes.")
    )
    assert ConstraintReason.ACTION_VERB in report.reasons
    assert report.failing_fields == ("guidance",)


def test_guidance_with_imperative_marker_fails():
    report = FindingValidator().evaluate(
        make_draft(
            guidance="The advertiser should understand that absolute wording breaches the Magic Remedies Act."
        )
    )
    assert ConstraintReason.IMPERATIVE_MARKER in report.reasons


def test_generic_guidance_fails():
    report = FindingValidator().evaluate(
        make_draft(guidance="This wording is non-compliant with healthcare advertising law in India.")
    )
    assert ConstraintReason.GENERIC_PHRASE in report.reasons


def test_guidance_paraphrasing_evidence_fails():
    report = FindingValidator().evaluate(
        make_draft(guidance="This medicine guarantees a cure with no side effects ever, which is a problem.")
    )
    assert ConstraintReason.PARAPHRASES_EVIDENCE in report.reasons


def test_short_guidance_fails():
    report = FindingValidator().evaluate(make_draft(guidance="Misleading."))
    assert ConstraintReason.TOO_SHORT in report.reasons


def test_translation_line_in_default_language_fails():
    guidance = CURE_GUIDANCE + "\n" + format_translation_line("Absolute claims harm patients.")
    report = FindingValidator().evaluate(make_draft(guidance=guidance))
    assert ConstraintReason.TRANSLATION_UNEXPECTED in report.reasons


def test_unlabelled_fix_is_malformed():
    report = FindingValidator().evaluate(make_draft(fix="Just say it differently."))
    assert report.reasons == (ConstraintReason.MALFORMED_OPTIONS,)
    assert report.failing_fields == ("fix",)


def test_fix_copying_evidence_fails():
    report = FindingValidator().evaluate(make_draft(fix=_fix(CURE_LINE)))
    assert ConstraintReason.COPIES_EVIDENCE in report.reasons
    assert ConstraintReason.ABSOLUTE_CLAIM in report.reasons


def test_fix_unrelated_to_evidence_fails():
    report = FindingValidator().evaluate(
        make_draft(fix=_fix("Book your free consultation with us through our official helpline."))
    )
    assert ConstraintReason.NOT_GROUNDED in report.reasons


def test_fix_with_causal_language_fails():
    report = FindingValidator().evaluate(
        make_draft(fix=_fix("This medicine may support relief so that patients feel better."))
    )
    assert ConstraintReason.CAUSAL_LANGUAGE in report.reasons


def test_fix_with_instruction_fails():
    report = FindingValidator().evaluate(
        make_draft(fix=_fix("Remove the claim about this medicine."))
    )
    assert ConstraintReason.INSTRUCTIONAL_VERB in report.reasons


def test_fix_restating_guidance_is_role_collapse():
    report = FindingValidator().evaluate(make_draft(fix=COLLAPSED_FIX))
    assert ConstraintReason.ROLE_COLLAPSE in report.reasons
    # Only the fix is blamed; guidance itself is fine
    assert report.failing_fields == ("fix",)


def test_duplicate_of_accepted_finding_fails_both_fields():
    accepted = [_accepted(make_draft())]
    report = FindingValidator().evaluate(
        make_draft(evidence=AADHAAR_LINE),
        accepted,
    )
    assert ConstraintReason.DUPLICATE_ACROSS_FINDINGS in report.reasons
    assert report.failing_fields == ("guidance", "fix")


# ----------------------------------------------------------------------
# Non-default language
# ----------------------------------------------------------------------


def test_hindi_guidance_requires_translation_line():
    guidance = strip_translation_lines(guidance_variants(RULE_PACK_GENERAL, HINDI)[0])
    report = FindingValidator().evaluate(make_draft(guidance=guidance), language=HINDI)
    assert ConstraintReason.TRANSLATION_MISSING in report.reasons


def test_english_guidance_for_hindi_input_is_language_mismatch():
    report = FindingValidator().evaluate(make_draft(), language=HINDI)
    assert ConstraintReason.LANGUAGE_MISMATCH in report.reasons


# ----------------------------------------------------------------------
# Individual predicates and threshold boundaries
# ----------------------------------------------------------------------


def test_placeholder_evidence_fails():
    assert check_evidence("").reason == ConstraintReason.EVIDENCE_EMPTY
    assert check_evidence("N/A").reason == ConstraintReason.EVIDENCE_PLACEHOLDER
    assert check_evidence(CURE_LINE).passed


def test_similarity_thresholds_are_inclusive():
    # jaccard = 0.6
    text, other = "alpha beta gamma delta", "alpha beta gamma epsilon"
    assert not check_cross_finding(text, [other], 0.6, min_token_length=3).passed
    assert check_cross_finding(text, [other], 0.61, min_token_length=3).passed


def test_fix_grounding_interval_is_open():
    # Each option overlaps CURE_LINE at 2/8 = 0.25
    options = FixOptions.build("This medicine.", "This medicine.")

    at_lower = check_fix_grounding(options, CURE_LINE, 0.25, 0.90, min_token_length=3)
    assert at_lower.reason == ConstraintReason.NOT_GROUNDED

    at_upper = check_fix_grounding(options, CURE_LINE, 0.10, 0.25, min_token_length=3)
    assert at_upper.reason == ConstraintReason.COPIES_EVIDENCE

    assert check_fix_grounding(options, CURE_LINE, 0.10, 0.90, min_token_length=3).passed


def test_validator_honours_configured_thresholds():
    strict = AuditCoreConfig(GUIDANCE_EVIDENCE_SIMILARITY_MAX=0.05)
    report = FindingValidator(strict).evaluate(make_draft())
    assert ConstraintReason.PARAPHRASES_EVIDENCE in report.reasons


def test_report_describe_lists_field_and_reason():
    report = FindingValidator().evaluate(make_draft(fix="Just say it differently."))
    assert report.describe() == ["fix: malformed_options"]


def test_severity_is_not_validated_by_constraints():
    report = FindingValidator().evaluate(make_draft(severity=Severity.LOW, fix=CURE_FIX))
    assert report.passed
