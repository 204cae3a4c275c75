from auditcore.app.synthesis.fix_options import (
    FixOptions,
    fix_text_from_parts,
    parse_fix_options,
)
from auditcore.app.synthesis.language import format_translation_line

from auditcore.tests.synthesis.helpers import CURE_FIX


def test_canonical_fix_parses():
    options = parse_fix_options(CURE_FIX)
    assert options is not None
    assert options.option_a == "This medicine may support relief, and individual results vary."
    assert options.option_b == "This medicine supports wellbeing; results differ from person to person."
    assert options.translation is None


def test_numbered_labels_are_accepted_and_rendered_canonically():
    text = 'Option 1: "Results may vary by individual."\nOption 2: "Talk to a doctor first."'
    options = parse_fix_options(text)
    assert options is not None
    assert options.render() == (
        "RECOMMENDED FIX\n"
        "Option A:\n\"Results may vary by individual.\"\n\n"
        "Option B:\n\"Talk to a doctor first.\""
    )


def test_translation_line_is_kept_apart_from_options():
    translation = format_translation_line("Results may vary by individual.")
    text = 'Option A:\n"परिणाम अलग हो सकते हैं।"\nOption B:\n"सलाह लें।"\n' + translation
    options = parse_fix_options(text)
    assert options is not None
    assert options.option_b == "सलाह लें।"
    assert options.translation == translation
    assert translation not in options.comparison_text
    assert translation in options.vocabulary_text


def test_rejects_anything_but_exactly_two_options():
    assert parse_fix_options("") is None
    assert parse_fix_options("Rewrite the line so it is accurate.") is None
    assert parse_fix_options('Option A: "Only one option."') is None
    assert parse_fix_options('Option A: "one"\nOption B: "two"\nOption B: "three"') is None
    assert parse_fix_options('Option A: ""\nOption B: "two"') is None


def test_rejects_prose_before_first_option():
    text = 'Here is a better version.\nOption A: "one line"\nOption B: "another line"'
    assert parse_fix_options(text) is None


def test_rejects_multi_line_option():
    text = 'Option A:\n"first line\nsecond line"\nOption B:\n"another line"'
    assert parse_fix_options(text) is None


def test_separate_fixed_lines_are_combined():
    text = fix_text_from_parts("", "Results may vary.", "Talk to a doctor first.")
    assert parse_fix_options(text) == FixOptions(
        option_a="Results may vary.",
        option_b="Talk to a doctor first.",
    )


def test_labelled_recommended_fix_wins_over_fixed_lines():
    assert fix_text_from_parts(CURE_FIX, "ignored", "ignored") == CURE_FIX
    assert fix_text_from_parts("", "", "") == ""
