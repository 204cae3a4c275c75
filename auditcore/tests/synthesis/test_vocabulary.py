"""
Closed vocabularies and the fallback text written against them.

Every deterministic fallback guidance variant must itself satisfy the
guidance checks, otherwise a fallback could reintroduce the violation
it replaces.
"""

import pytest

from auditcore.app.synthesis.constraints import (
    check_guidance_generic,
    check_guidance_imperatives,
    check_guidance_length,
    check_guidance_verbs,
    check_language,
    check_translation_rule,
)
from auditcore.app.synthesis.fallbacks import RULE_PACKS, guidance_variants
from auditcore.app.synthesis.language import DEFAULT_LANGUAGE, HINDI, strip_translation_lines
from auditcore.app.synthesis.vocabulary import ACTION_VERBS, FIX_INSTRUCTION_VERBS, inflect


def test_regular_inflections():
    assert {"remove", "removes", "removing", "removed"} <= inflect("remove")
    assert {"add", "adds", "adding", "added"} <= inflect("add")
    assert {"fix", "fixes", "fixing", "fixed"} <= inflect("fix")


def test_y_and_doubled_consonant_inflections():
    assert {"apply", "applies", "applying", "applied"} <= inflect("apply")
    assert {"stop", "stops", "stopping", "stopped"} <= inflect("stop")
    assert {"guarantee", "guarantees", "guaranteeing", "guaranteed"} <= inflect("guarantee")


def test_irregular_inflections():
    assert {"wrote", "written", "rewriting"} <= inflect("write") | inflect("rewrite")
    assert "sought" in inflect("seek")


def test_banned_verb_lists():
    assert {"ensures", "updated", "providing", "consult", "reviewed"} <= ACTION_VERBS
    assert "contact" not in ACTION_VERBS
    assert {"remove", "rewritten", "including"} <= FIX_INSTRUCTION_VERBS


@pytest.mark.parametrize("rule_pack", RULE_PACKS)
@pytest.mark.parametrize("language", [DEFAULT_LANGUAGE, HINDI])
def test_fallback_guidance_satisfies_guidance_checks(rule_pack, language):
    for variant in guidance_variants(rule_pack, language):
        body = strip_translation_lines(variant)
        checks = [
            check_guidance_length(body, 25),
            check_guidance_verbs(variant),
            check_guidance_imperatives(variant),
            check_guidance_generic(variant),
            check_language(body, language),
            check_translation_rule(variant, language),
        ]
        failures = [c for c in checks if not c.passed]
        assert failures == [], (rule_pack, language, failures)
