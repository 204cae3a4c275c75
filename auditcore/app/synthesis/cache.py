"""
Content-hash result cache.

The cache key is the SHA-256 digest of

    normalize(content) | audit type | rule-pack version

so identical normalized input under the same rule set resolves to the
same stored result. A rule-pack version bump changes the key, and old
entries simply stop matching.

IMPORTANT:
- Lookup and store failures are non-fatal. They are logged and the
  audit proceeds as a miss or an unstored result.
- Stored results are re-scored on every hit.
- Concurrent identical misses may both store (at-least-once caching).
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Optional, Protocol

from auditcore.app.schemas.audit import AuditInput, AuditResult, CacheEntry, CacheEntryStatus
from auditcore.app.synthesis.scoring import RiskScorer
from auditcore.app.utils.hashing import sha256_hexdigest

logger = logging.getLogger(__name__)


_DOUBLE_QUOTES = re.compile("[“”„‟″]")
_SINGLE_QUOTES = re.compile("[‘’‚‛′]")
_DASHES = re.compile("[–—‒―−]")


def normalize_for_hash(content: str) -> str:
    text = " ".join((content or "").split())
    text = text.lower()
    text = _DOUBLE_QUOTES.sub('"', text)
    text = _SINGLE_QUOTES.sub("'", text)
    text = _DASHES.sub("-", text)
    text = text.replace("…", "...")
    return text.strip()


def compute_content_hash(content: str, audit_type: str, rule_pack_version: str) -> str:
    canonical = f"{normalize_for_hash(content)}|{audit_type}|{rule_pack_version}"
    return sha256_hexdigest(canonical.encode("utf-8"))


# ----------------------------------------------------------------------
# Store contract
# ----------------------------------------------------------------------


class AuditCacheStore(Protocol):
    """
    Persistence collaborator for finalized results.

    Implementations may raise; the CacheManager absorbs failures.
    """

    async def find_by_hash(self, content_hash: str) -> Optional[CacheEntry]:
        ...

    async def store(self, entry: CacheEntry) -> None:
        ...


class InMemoryAuditCacheStore:
    """
    Process-local store. Later writes for a hash replace earlier ones.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, CacheEntry] = {}

    async def find_by_hash(self, content_hash: str) -> Optional[CacheEntry]:
        return self._entries.get(content_hash)

    async def store(self, entry: CacheEntry) -> None:
        self._entries[entry.content_hash] = entry

    def __len__(self) -> int:
        return len(self._entries)


# ----------------------------------------------------------------------
# Manager
# ----------------------------------------------------------------------


class CacheManager:
    def __init__(
        self,
        *,
        store: Optional[AuditCacheStore],
        rule_pack_version: str,
        scorer: Optional[RiskScorer] = None,
    ) -> None:
        self._store = store
        self._rule_pack_version = rule_pack_version
        self._scorer = scorer or RiskScorer()

    @property
    def enabled(self) -> bool:
        return self._store is not None

    def key_for(self, audit_input: AuditInput) -> str:
        return compute_content_hash(
            audit_input.text,
            audit_input.audit_type,
            self._rule_pack_version,
        )

    async def lookup(self, content_hash: str) -> Optional[AuditResult]:
        if self._store is None:
            return None

        try:
            entry = await self._store.find_by_hash(content_hash)
        except Exception as exc:
            logger.warning("Cache lookup failed for %s: %s", content_hash[:12], exc)
            return None

        if entry is None or entry.status != CacheEntryStatus.COMPLETED:
            return None

        assessment = self._scorer.assess(v.severity for v in entry.result.violations)
        logger.info("Cache hit for %s", content_hash[:12])
        return entry.result.model_copy(
            update={
                "risk_score": assessment.risk_score,
                "risk_level": assessment.risk_level,
                "status": assessment.status,
                "content_hash": content_hash,
            }
        )

    async def store(
        self,
        content_hash: str,
        audit_type: str,
        result: AuditResult,
    ) -> bool:
        if self._store is None:
            return False

        entry = CacheEntry(
            content_hash=content_hash,
            audit_type=audit_type,
            rule_pack_version=self._rule_pack_version,
            status=CacheEntryStatus.COMPLETED,
            result=result,
        )
        try:
            await self._store.store(entry)
        except Exception as exc:
            logger.warning("Cache store failed for %s: %s", content_hash[:12], exc)
            return False
        return True
