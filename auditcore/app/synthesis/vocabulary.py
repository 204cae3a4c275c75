"""
Closed vocabularies used by the constraint validator.

Every list here is configuration data, exposed as a named frozenset.
Single words are matched against normalized tokens. Multi-word phrases
are matched against the normalized text with word boundaries.

IMPORTANT:
- Guidance explains WHY a line is a problem, so action verbs are banned.
- A fix is replacement copy, so causal, instructional and absolute
  wording is banned.
"""

from __future__ import annotations

from typing import FrozenSet, Iterable


# ----------------------------------------------------------------------
# Inflection
# ----------------------------------------------------------------------

_IRREGULAR_FORMS = {
    "begin": ("began", "begun"),
    "build": ("built",),
    "do": ("did", "done"),
    "find": ("found",),
    "make": ("made",),
    "run": ("ran",),
    "send": ("sent",),
    "show": ("shown",),
    "seek": ("sought",),
    "write": ("wrote", "written"),
    "rewrite": ("rewrote", "rewritten"),
    "withdraw": ("withdrew", "withdrawn"),
}

_DOUBLED_FINAL_CONSONANT = frozenset(
    {
        "begin", "cut", "omit", "permit", "run", "set",
        "split", "stop", "submit", "transfer",
    }
)


def inflect(verb: str) -> FrozenSet[str]:
    """
    Base form plus third-person, progressive and past forms.

    Over-generation is harmless since only banned lists are built this way.
    """
    forms = {verb}

    if verb.endswith(("s", "sh", "ch", "x", "z", "o")):
        forms.add(verb + "es")
    elif verb.endswith("y") and len(verb) > 1 and verb[-2] not in "aeiou":
        forms.add(verb[:-1] + "ies")
    else:
        forms.add(verb + "s")

    if verb in _DOUBLED_FINAL_CONSONANT:
        stem = verb + verb[-1]
        forms.update({stem + "ing", stem + "ed"})
    elif verb.endswith("ee"):
        forms.update({verb + "ing", verb + "d"})
    elif verb.endswith("ie"):
        forms.update({verb[:-2] + "ying", verb + "d"})
    elif verb.endswith("e"):
        forms.update({verb[:-1] + "ing", verb + "d"})
    elif verb.endswith("y") and len(verb) > 1 and verb[-2] not in "aeiou":
        forms.update({verb + "ing", verb[:-1] + "ied"})
    else:
        forms.update({verb + "ing", verb + "ed"})

    forms.update(_IRREGULAR_FORMS.get(verb, ()))
    return frozenset(forms)


def inflect_all(verbs: Iterable[str]) -> FrozenSet[str]:
    forms = set()
    for verb in verbs:
        forms.update(inflect(verb))
    return frozenset(forms)


# ----------------------------------------------------------------------
# Guidance vocabulary
# ----------------------------------------------------------------------

ACTION_VERB_BASES: FrozenSet[str] = frozenset(
    """
    remove add ensure include change provide submit implement modify apply
    create delete replace insert document obtain restrict verify check
    validate approve request send receive process handle manage maintain
    store secure protect access share disclose notify inform communicate
    publish distribute display show present indicate specify state declare
    claim assert guarantee promise offer deliver perform execute complete
    finish start begin initiate launch establish set configure adjust adapt
    customize personalize optimize improve enhance upgrade update fix repair
    correct resolve address solve prevent avoid eliminate reduce minimize
    maximize increase decrease expand extend limit allow permit enable
    disable activate deactivate turn switch toggle open close lock unlock
    save load export import upload download copy paste cut move transfer
    assign allocate spread divide split merge combine join connect link
    attach detach separate isolate integrate synchronize coordinate align
    match compare contrast analyze evaluate assess measure calculate compute
    determine identify recognize detect discover find locate search filter
    sort organize arrange structure format style design develop build
    construct generate produce manufacture make do run
    collect stop rewrite revise review consult train use
    adopt amend append cease cite clarify consider discontinue edit follow
    highlight incorporate label mention omit rectify refrain remediate
    rephrase retract reword seek withdraw
    """.split()
)

ACTION_VERBS: FrozenSet[str] = inflect_all(ACTION_VERB_BASES)

IMPERATIVE_MARKER_WORDS: FrozenSet[str] = frozenset(
    {"please", "should", "must"}
)

IMPERATIVE_MARKER_PHRASES: FrozenSet[str] = frozenset(
    {"you should", "you must", "need to", "needs to", "make sure"}
)

# Shared by guidance and fix checks
GENERIC_ADVICE_PHRASES: FrozenSet[str] = frozenset(
    {
        "review the policy",
        "review policy",
        "be careful",
        "follow guidelines",
        "follow the guidelines",
        "ensure compliance",
        "consult a lawyer",
        "consult lawyer",
        "seek legal advice",
        "please review",
    }
)

GENERIC_GUIDANCE_PHRASES: FrozenSet[str] = GENERIC_ADVICE_PHRASES | frozenset(
    {"non compliant", "noncompliant"}
)

PLACEHOLDER_VALUES: FrozenSet[str] = frozenset(
    {"n/a", "na", "none", "null", "not available", "unknown"}
)


# ----------------------------------------------------------------------
# Fix vocabulary
# ----------------------------------------------------------------------

FIX_CAUSAL_WORDS: FrozenSet[str] = frozenset(
    """
    because benefit benefits compliance consumer consumers enforcement
    guideline guidelines harm harms helpful helps intent mislead misleading
    patient patients penalties penalty public regulator regulators
    regulatory risk risks rule rules unsafe
    """.split()
)

FIX_CAUSAL_PHRASES: FrozenSet[str] = frozenset(
    {
        "so that",
        "in order to",
        "to avoid",
        "to prevent",
        "to reduce",
        "this will",
        "this helps",
        "so you",
        "so users",
        "this violates",
    }
)

FIX_INSTRUCTION_VERB_BASES: FrozenSet[str] = frozenset(
    """
    remove delete ensure add include revise rewrite insert limit restrict
    verify document obtain disable update configure avoid prevent disclose
    """.split()
)

FIX_INSTRUCTION_VERBS: FrozenSet[str] = inflect_all(FIX_INSTRUCTION_VERB_BASES)

ABSOLUTE_CLAIM_TERMS_EN: FrozenSet[str] = frozenset(
    {
        "100%",
        "100 percent",
        "guarantee",
        "guarantees",
        "guaranteed",
        "sure shot",
        "instant",
        "permanent",
        "always",
        "never",
        "no side effects",
        "cure",
        "cures",
        "cured",
    }
)

ABSOLUTE_CLAIM_TERMS_HI: FrozenSet[str] = frozenset(
    {
        "गारंटी",
        "गारण्टी",
        "पूर्णतः",
        "पूरी तरह",
        "हमेशा",
        "कभी नहीं",
        "स्थायी",
        "तुरंत",
        "अचूक",
        "पक्का",
        "जड़ से",
        "साइड इफेक्ट नहीं",
    }
)
