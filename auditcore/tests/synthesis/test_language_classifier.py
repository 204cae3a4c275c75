from auditcore.app.synthesis.language import (
    DEFAULT_LANGUAGE,
    HINDI,
    detect_language,
    format_translation_line,
    has_trailing_translation,
    matches_language,
    strip_translation_lines,
)

from auditcore.tests.synthesis.helpers import CURE_LINE, HINDI_SOURCE


def test_english_text_is_default_language():
    assert detect_language(CURE_LINE) == DEFAULT_LANGUAGE


def test_devanagari_dominated_text_is_hindi():
    assert detect_language(HINDI_SOURCE) == HINDI


def test_short_devanagari_fragment_stays_default():
    # Below the minimum script count
    assert detect_language("Call now! नमस्ते") == DEFAULT_LANGUAGE


def test_latin_heavy_mixed_text_stays_default():
    text = HINDI_SOURCE + " " + "This advertisement is mostly written in English words " * 3
    assert detect_language(text) == DEFAULT_LANGUAGE


def test_empty_text_never_raises():
    assert detect_language("") == DEFAULT_LANGUAGE
    assert detect_language(None) == DEFAULT_LANGUAGE


def test_single_trailing_translation_line_is_accepted():
    text = "परिणाम व्यक्ति के अनुसार अलग हो सकते हैं।\n" + format_translation_line(
        "Results may vary by individual."
    )
    assert has_trailing_translation(text)
    assert strip_translation_lines(text) == "परिणाम व्यक्ति के अनुसार अलग हो सकते हैं।"


def test_translation_line_must_be_last_and_unique():
    line = format_translation_line("Results may vary.")
    assert not has_trailing_translation(f"{line}\nपरिणाम अलग हो सकते हैं।")
    assert not has_trailing_translation(f"परिणाम अलग हो सकते हैं।\n{line}\n{line}")
    assert not has_trailing_translation("परिणाम अलग हो सकते हैं।")


def test_malformed_translation_line_is_rejected():
    assert not has_trailing_translation("परिणाम अलग हो सकते हैं।\n(English translation:)")


def test_field_language_match():
    assert matches_language("This medicine may support relief.", DEFAULT_LANGUAGE)
    assert not matches_language("यह दवा राहत दे सकती है", DEFAULT_LANGUAGE)
    assert matches_language("यह दवा राहत दे सकती है", HINDI)
    assert not matches_language("This medicine may support relief.", HINDI)
