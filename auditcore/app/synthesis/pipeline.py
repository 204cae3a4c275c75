"""
Audit synthesis pipeline.

Orchestrates one audit request end to end:

    cache lookup
      -> (miss) one primary model call
      -> per finding: evidence resolution, validation, bounded regeneration
      -> deterministic scoring
      -> result assembly
      -> cache store

IMPORTANT:
- The model proposes findings. It never decides the score, the level,
  the status or the evidence.
- Findings are processed strictly in order, so the accepted set used
  for cross-finding checks is reproducible.
- A cache hit bypasses the model and regeneration entirely.
- Only transport failures on the primary call and a twice-malformed
  response surface as AuditSynthesisError.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from auditcore.app.config import AuditCoreConfig
from auditcore.app.events import (
    AuditEvent,
    AuditEventEmitter,
    AuditEventType,
    NullEventEmitter,
)
from auditcore.app.schemas.audit import AuditInput, AuditResult
from auditcore.app.schemas.findings import (
    FindingDraft,
    NormalizedFinding,
    RawAuditResponse,
    RawFinding,
    Severity,
)
from auditcore.app.synthesis.assembler import (
    DEFAULT_DESCRIPTION,
    DEFAULT_LAW_REFERENCE,
    ResultAssembler,
)
from auditcore.app.synthesis.cache import AuditCacheStore, CacheManager
from auditcore.app.synthesis.constraints import FindingValidator
from auditcore.app.synthesis.errors import AuditSynthesisError
from auditcore.app.synthesis.evidence import EvidenceResolver
from auditcore.app.synthesis.fallbacks import derive_rule_pack
from auditcore.app.synthesis.fix_options import fix_text_from_parts
from auditcore.app.synthesis.language import detect_language
from auditcore.app.synthesis.llm_executor import TextModelExecutor
from auditcore.app.synthesis.prompts import (
    build_audit_prompt,
    build_strict_retry_prompt,
    build_system_text,
)
from auditcore.app.synthesis.regeneration import RegenerationController
from auditcore.app.synthesis.response_parser import (
    MalformedResponseError,
    parse_audit_response,
)
from auditcore.app.synthesis.scoring import RiskScorer
from auditcore.app.synthesis.text_slicer import DeterministicTextSlicer

logger = logging.getLogger(__name__)


class AuditSynthesisPipeline:
    """
    Deterministic orchestrator around one untrusted model call.

    This pipeline owns:
    - cache consultation and storage
    - evidence grounding and finding validation
    - regeneration bounds and fallbacks
    - scoring and wire assembly

    It does NOT own:
    - the judgment of what counts as a violation (the model's)
    - persistence mechanics (the cache store's)
    """

    def __init__(
        self,
        *,
        executor: TextModelExecutor,
        config: Optional[AuditCoreConfig] = None,
        cache_store: Optional[AuditCacheStore] = None,
    ) -> None:
        self._config = config or AuditCoreConfig()
        self._executor = executor

        self._scorer = RiskScorer.from_config(self._config)
        self._cache = CacheManager(
            store=cache_store,
            rule_pack_version=self._config.RULE_PACK_VERSION,
            scorer=self._scorer,
        )
        self._evidence = EvidenceResolver(max_chars=self._config.MAX_EVIDENCE_CHARS)
        self._controller = RegenerationController(
            executor=executor,
            config=self._config,
            validator=FindingValidator(self._config),
        )
        self._slicer = DeterministicTextSlicer.for_budget(self._config.MAX_SOURCE_CHARS)
        self._assembler = ResultAssembler()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def run(
        self,
        audit_input: AuditInput,
        *,
        audit_id: Optional[str] = None,
        emitter: Optional[AuditEventEmitter] = None,
    ) -> AuditResult:
        emitter = emitter or NullEventEmitter()
        language = detect_language(audit_input.text)
        content_hash = self._cache.key_for(audit_input)

        await self._emit(
            emitter,
            audit_id,
            AuditEventType.AUDIT_STARTED,
            {
                "source_type": audit_input.audit_type,
                "language": language,
                "content_hash": content_hash,
            },
        )

        try:
            result = await self._run(
                audit_input,
                language=language,
                content_hash=content_hash,
                audit_id=audit_id,
                emitter=emitter,
            )
        except AuditSynthesisError as exc:
            logger.warning("Audit %s failed: %s", audit_id or content_hash[:12], exc)
            await self._emit(
                emitter,
                audit_id,
                AuditEventType.AUDIT_FAILED,
                {"failure_type": exc.failure_type, "detail": exc.detail},
            )
            raise

        logger.info(
            "Audit %s completed: score=%s level=%s findings=%s",
            audit_id or content_hash[:12],
            result.risk_score,
            result.risk_level.value,
            len(result.violations),
        )
        await self._emit(
            emitter,
            audit_id,
            AuditEventType.AUDIT_COMPLETED,
            {"result": result.to_wire()},
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _run(
        self,
        audit_input: AuditInput,
        *,
        language: str,
        content_hash: str,
        audit_id: Optional[str],
        emitter: AuditEventEmitter,
    ) -> AuditResult:
        cached = await self._cache.lookup(content_hash)
        if cached is not None:
            await self._emit(emitter, audit_id, AuditEventType.CACHE_HIT, {"content_hash": content_hash})
            return cached
        if self._cache.enabled:
            await self._emit(emitter, audit_id, AuditEventType.CACHE_MISS, {"content_hash": content_hash})

        response = await self._request_findings(
            audit_input,
            language=language,
            audit_id=audit_id,
            emitter=emitter,
        )

        findings: List[NormalizedFinding] = []
        issues = response.issues[: self._config.MAX_FINDINGS]
        if len(response.issues) > len(issues):
            logger.warning(
                "Model returned %s issues; keeping the first %s",
                len(response.issues),
                len(issues),
            )

        for index, raw in enumerate(issues, start=1):
            draft = self._draft(raw, audit_input)
            settled = await self._controller.settle(
                draft,
                language=language,
                accepted=findings,
                index=index,
                audit_id=audit_id,
                emitter=emitter,
            )
            findings.append(settled.finding)
            await self._emit(
                emitter,
                audit_id,
                AuditEventType.FINDING_ACCEPTED,
                {
                    "index": index,
                    "state": settled.state.value,
                    "attempts": settled.attempts,
                    "regeneration_calls": settled.regeneration_calls,
                },
            )

        assessment = self._scorer.assess(f.severity for f in findings)
        result = self._assembler.assemble(
            findings=findings,
            assessment=assessment,
            audit_input=audit_input,
            content_hash=content_hash,
            response=response,
        )

        if self._cache.enabled:
            stored = await self._cache.store(content_hash, audit_input.audit_type, result)
            if not stored:
                await self._emit(
                    emitter,
                    audit_id,
                    AuditEventType.CACHE_STORE_FAILED,
                    {"content_hash": content_hash},
                )
        return result

    async def _request_findings(
        self,
        audit_input: AuditInput,
        *,
        language: str,
        audit_id: Optional[str],
        emitter: AuditEventEmitter,
    ) -> RawAuditResponse:
        """
        One primary call. A malformed reply is retried once with a
        stricter instruction; transport failures are never retried.
        """
        system_text = build_system_text(language)
        prompt = build_audit_prompt(
            source_text=self._slicer.slice(audit_input.text),
            source_type=audit_input.audit_type,
            language=language,
            rule_pack_version=self._config.RULE_PACK_VERSION,
            metadata=audit_input.metadata,
        )

        last_error = ""
        for attempt, fragment in enumerate((prompt, build_strict_retry_prompt(prompt)), start=1):
            result = await self._executor.execute(
                prompt=fragment,
                system_text=system_text,
                audit_id=audit_id,
                emitter=emitter,
            )
            if not result.success or result.text is None:
                raise AuditSynthesisError("transport", result.failure_type or "unexpected_error")

            try:
                return parse_audit_response(result.text)
            except MalformedResponseError as exc:
                logger.warning("Malformed model response (attempt %s): %s", attempt, exc)
                last_error = str(exc)

        raise AuditSynthesisError("malformed_response", last_error)

    def _draft(self, raw: RawFinding, audit_input: AuditInput) -> FindingDraft:
        description = raw.violation or DEFAULT_DESCRIPTION
        return FindingDraft(
            severity=Severity.parse(raw.severity),
            rule_pack=derive_rule_pack(raw.rule_pack, raw.law_reference),
            law_reference=raw.law_reference or DEFAULT_LAW_REFERENCE,
            description=description,
            evidence=self._evidence.resolve(
                source_text=audit_input.evidence_source,
                candidate=raw.evidence,
                description=description,
            ),
            guidance=raw.guidance,
            fix=fix_text_from_parts(raw.recommended_fix, raw.fixed_line, raw.fixed_line_b),
        )

    @staticmethod
    async def _emit(
        emitter: AuditEventEmitter,
        audit_id: Optional[str],
        event_type: AuditEventType,
        details: dict,
    ) -> None:
        if audit_id is None:
            return
        await emitter.emit(
            AuditEvent(audit_id=audit_id, event_type=event_type, details=details)
        )
