"""
Content-hash cache guarantees:
- cosmetically different but identical inputs share a key
- audit type and rule-pack version are part of the key
- stored scores are never trusted verbatim
- store failures are non-fatal
"""

from __future__ import annotations

from typing import Optional

import pytest

from auditcore.app.schemas.audit import (
    AuditInput,
    AuditResult,
    CacheEntry,
    CacheEntryStatus,
    ComplianceStatus,
    RiskLevel,
    SourceType,
    WireFinding,
)
from auditcore.app.synthesis.cache import (
    CacheManager,
    InMemoryAuditCacheStore,
    compute_content_hash,
    normalize_for_hash,
)

pytestmark = pytest.mark.anyio


# ----------------------------------------------------------------------
# Test doubles
# ----------------------------------------------------------------------
class BrokenStore:
    """Store whose every operation fails."""

    async def find_by_hash(self, content_hash: str) -> Optional[CacheEntry]:
        raise ConnectionError("store unavailable")

    async def store(self, entry: CacheEntry) -> None:
        raise ConnectionError("store unavailable")


def _result(severity: str = "High", risk_score: int = 3) -> AuditResult:
    finding = WireFinding(
        severity=severity,
        regulation="General / Regulatory reference required",
        description="Compliance issue detected",
        evidence="Flagged line.",
        recommended_fix="RECOMMENDED FIX",
        problematic_content="EVIDENCE / URL\nFlagged line.",
        suggestion="GUIDANCE\nWhy it matters.",
        solution="RECOMMENDED FIX",
        index=1,
    )
    return AuditResult(
        risk_level=RiskLevel.LOW,
        risk_score=risk_score,
        summary="Audit completed",
        violations=[finding],
        status=ComplianceStatus.COMPLIANT,
        explanation="Audit completed",
        recommended_fix="RECOMMENDED FIX",
        content_hash="stale",
    )


# ----------------------------------------------------------------------
# Key derivation
# ----------------------------------------------------------------------
def test_normalization_canonicalizes_cosmetic_variants():
    assert normalize_for_hash("  “Guaranteed”  cure —   now… ") == '"guaranteed" cure - now...'


def test_cosmetic_variants_share_a_key():
    a = compute_content_hash("It’s a 100% cure — guaranteed.", "text", "v1.0.0")
    b = compute_content_hash("it's a 100%  cure - GUARANTEED.", "text", "v1.0.0")
    assert a == b
    assert len(a) == 64


def test_quote_kinds_stay_distinct():
    assert normalize_for_hash("Don’t") == "don't"
    assert normalize_for_hash("„Cure‟") == '"cure"'
    assert compute_content_hash("Don't", "text", "v1.0.0") != compute_content_hash(
        'Don"t', "text", "v1.0.0"
    )
    assert compute_content_hash("say 'cure'", "text", "v1.0.0") != compute_content_hash(
        'say "cure"', "text", "v1.0.0"
    )


def test_audit_type_and_version_change_the_key():
    base = compute_content_hash("same text", "text", "v1.0.0")
    assert compute_content_hash("same text", "email", "v1.0.0") != base
    assert compute_content_hash("same text", "text", "v1.1.0") != base


def test_key_for_uses_source_type_as_audit_type():
    manager = CacheManager(store=None, rule_pack_version="v1.0.0")
    audit_input = AuditInput(text="same text", source_type=SourceType.URL)
    assert manager.key_for(audit_input) == compute_content_hash("same text", "url", "v1.0.0")


# ----------------------------------------------------------------------
# Lookup / store
# ----------------------------------------------------------------------
async def test_hit_is_rescored_from_stored_severities():
    store = InMemoryAuditCacheStore()
    manager = CacheManager(store=store, rule_pack_version="v1.0.0")

    assert await manager.store("abc", "text", _result(severity="High", risk_score=3))
    cached = await manager.lookup("abc")

    assert cached is not None
    assert cached.risk_score == 80
    assert cached.risk_level == RiskLevel.HIGH
    assert cached.status == ComplianceStatus.NON_COMPLIANT
    assert cached.content_hash == "abc"


async def test_non_completed_entries_are_misses():
    store = InMemoryAuditCacheStore()
    await store.store(
        CacheEntry(
            content_hash="abc",
            audit_type="text",
            rule_pack_version="v1.0.0",
            status=CacheEntryStatus.FAILED,
            result=_result(),
        )
    )
    manager = CacheManager(store=store, rule_pack_version="v1.0.0")
    assert await manager.lookup("abc") is None


async def test_store_failures_are_non_fatal():
    manager = CacheManager(store=BrokenStore(), rule_pack_version="v1.0.0")

    assert await manager.lookup("abc") is None
    assert await manager.store("abc", "text", _result()) is False


async def test_disabled_cache_is_a_permanent_miss():
    manager = CacheManager(store=None, rule_pack_version="v1.0.0")

    assert not manager.enabled
    assert await manager.lookup("abc") is None
    assert await manager.store("abc", "text", _result()) is False
