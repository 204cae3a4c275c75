from auditcore.app.synthesis.similarity import (
    jaccard_similarity,
    max_similarity,
    normalize_for_compare,
    tokenize,
)


def test_identical_text_scores_one():
    assert jaccard_similarity("absolute cure claim", "absolute cure claim") == 1.0


def test_case_and_punctuation_are_ignored():
    assert jaccard_similarity("Cure, GUARANTEED!", "cure guaranteed") == 1.0


def test_empty_token_sets_score_zero():
    assert jaccard_similarity("", "") == 0.0
    # Every token is below the minimum length
    assert jaccard_similarity("a an to", "a an to") == 0.0


def test_partial_overlap():
    # 3 shared tokens out of 5 distinct
    assert jaccard_similarity("alpha beta gamma delta", "alpha beta gamma epsilon") == 0.6


def test_min_token_length_is_configurable():
    assert tokenize("an ox is big", min_token_length=2) == frozenset({"an", "ox", "is", "big"})
    assert tokenize("an ox is big") == frozenset({"big"})


def test_devanagari_words_stay_whole():
    assert normalize_for_compare("इलाज।") == "इलाज"
    assert tokenize("यह दवा इलाज") == frozenset({"दवा", "इलाज"})


def test_max_similarity_over_collection():
    others = ["unrelated words here", "alpha beta gamma epsilon"]
    assert max_similarity("alpha beta gamma delta", others) == 0.6
    assert max_similarity("alpha beta gamma delta", []) == 0.0
