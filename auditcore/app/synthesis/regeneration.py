"""
Uniqueness and regeneration controller.

Each finding runs through an explicit, bounded state machine:

    CANDIDATE --valid--> VALIDATED
    CANDIDATE --invalid--> REGENERATION_REQUESTED --model reply--> CANDIDATE
    CANDIDATE --invalid on last attempt--> EXHAUSTED_FALLBACK
    REGENERATION_REQUESTED --transport/malformed--> EXHAUSTED_FALLBACK

IMPORTANT:
- Every attempt validates exactly once.
- The last attempt never calls the model, so a finding costs at most
  ``max_attempts - 1`` regeneration calls.
- Regeneration asks only for failing fields. Evidence and passing
  fields are locked.
- Fallback replaces only failing fields, with deterministic text.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from auditcore.app.config import AuditCoreConfig
from auditcore.app.events import (
    AuditEvent,
    AuditEventEmitter,
    AuditEventType,
    NullEventEmitter,
)
from auditcore.app.schemas.findings import (
    FindingDraft,
    FindingResolution,
    NormalizedFinding,
)
from auditcore.app.synthesis.constraints import FindingValidator, ValidationReport
from auditcore.app.synthesis.fallbacks import FallbackWriter
from auditcore.app.synthesis.fix_options import parse_fix_options
from auditcore.app.synthesis.llm_executor import TextModelExecutor
from auditcore.app.synthesis.prompts import (
    REGENERATION_KEYS,
    build_regeneration_prompt,
    build_system_text,
)
from auditcore.app.synthesis.response_parser import (
    MalformedResponseError,
    parse_regeneration_response,
)

logger = logging.getLogger(__name__)


class FindingState(str, Enum):
    CANDIDATE = "candidate"
    REGENERATION_REQUESTED = "regeneration_requested"
    VALIDATED = "validated"
    EXHAUSTED_FALLBACK = "exhausted_fallback"


class SettledFinding(BaseModel):
    """
    Terminal outcome of the state machine for one finding.
    """

    finding: NormalizedFinding
    state: FindingState
    attempts: int
    regeneration_calls: int
    fallback_fields: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True, extra="forbid")


class RegenerationController:
    def __init__(
        self,
        *,
        executor: TextModelExecutor,
        config: Optional[AuditCoreConfig] = None,
        validator: Optional[FindingValidator] = None,
        fallbacks: Optional[FallbackWriter] = None,
    ) -> None:
        self._config = config or AuditCoreConfig()
        self._executor = executor
        self._validator = validator or FindingValidator(self._config)
        self._fallbacks = fallbacks or FallbackWriter(
            config=self._config,
            validator=self._validator,
        )

    @property
    def max_attempts(self) -> int:
        return self._config.MAX_REGENERATION_ATTEMPTS

    async def settle(
        self,
        draft: FindingDraft,
        *,
        language: str,
        accepted: Sequence[NormalizedFinding] = (),
        index: int = 1,
        audit_id: Optional[str] = None,
        emitter: Optional[AuditEventEmitter] = None,
    ) -> SettledFinding:
        emitter = emitter or NullEventEmitter()
        regeneration_calls = 0
        attempt = 0
        report: Optional[ValidationReport] = None

        for attempt in range(1, self.max_attempts + 1):
            report = self._validator.evaluate(draft, accepted, language=language)
            logger.debug(
                "Finding %s attempt %s/%s: %s",
                index,
                attempt,
                self.max_attempts,
                report.describe() or "valid",
            )

            if report.passed:
                return self._settled(
                    draft,
                    state=FindingState.VALIDATED,
                    attempts=attempt,
                    regeneration_calls=regeneration_calls,
                )

            if attempt == self.max_attempts:
                break

            fields = [f for f in report.failing_fields if f in REGENERATION_KEYS]
            if not fields:
                break

            if audit_id is not None:
                await emitter.emit(
                    AuditEvent(
                        audit_id=audit_id,
                        event_type=AuditEventType.FINDING_REGENERATION_REQUESTED,
                        details={
                            "index": index,
                            "attempt": attempt,
                            "fields": fields,
                            "reasons": [r.value for r in report.reasons],
                        },
                    )
                )

            regeneration_calls += 1
            regenerated = await self._regenerate(
                draft,
                fields,
                report,
                language=language,
                accepted=accepted,
                audit_id=audit_id,
                emitter=emitter,
            )
            if regenerated is None:
                break
            draft = regenerated

        fallback_fields = report.failing_fields if report is not None else ()
        logger.warning(
            "Finding %s exhausted after %s attempt(s); fallback for %s",
            index,
            attempt,
            ", ".join(fallback_fields),
        )
        draft = self._fallbacks.apply(
            draft,
            fallback_fields,
            language=language,
            accepted=accepted,
        )

        if audit_id is not None:
            await emitter.emit(
                AuditEvent(
                    audit_id=audit_id,
                    event_type=AuditEventType.FINDING_FALLBACK_APPLIED,
                    details={
                        "index": index,
                        "attempts": attempt,
                        "fields": list(fallback_fields),
                    },
                )
            )

        return self._settled(
            draft,
            state=FindingState.EXHAUSTED_FALLBACK,
            attempts=attempt,
            regeneration_calls=regeneration_calls,
            fallback_fields=fallback_fields,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _regenerate(
        self,
        draft: FindingDraft,
        fields: Sequence[str],
        report: ValidationReport,
        *,
        language: str,
        accepted: Sequence[NormalizedFinding],
        audit_id: Optional[str],
        emitter: AuditEventEmitter,
    ) -> Optional[FindingDraft]:
        prompt = build_regeneration_prompt(
            draft=draft,
            fields=fields,
            language=language,
            rule_pack_version=self._config.RULE_PACK_VERSION,
            problems=report.describe(),
            prior_guidance=[f.guidance for f in accepted],
            prior_fixes=[f.fix for f in accepted],
        )

        result = await self._executor.execute(
            prompt=prompt,
            system_text=build_system_text(language),
            audit_id=audit_id,
            emitter=emitter,
        )
        if not result.success or result.text is None:
            logger.warning(
                "Regeneration call failed (%s): %s",
                result.failure_type,
                result.raw_error,
            )
            return None

        keys = [REGENERATION_KEYS[field] for field in fields]
        try:
            values = parse_regeneration_response(result.text, keys)
        except MalformedResponseError as exc:
            logger.warning("Regeneration reply unusable: %s", exc)
            return None

        update = {field: values[REGENERATION_KEYS[field]] for field in fields}
        return draft.model_copy(update=update)

    def _settled(
        self,
        draft: FindingDraft,
        *,
        state: FindingState,
        attempts: int,
        regeneration_calls: int,
        fallback_fields: Sequence[str] = (),
    ) -> SettledFinding:
        options = parse_fix_options(draft.fix)
        fix = options.render() if options is not None else draft.fix

        finding = NormalizedFinding(
            severity=draft.severity,
            rule_pack=draft.rule_pack,
            law_reference=draft.law_reference,
            description=draft.description,
            evidence=draft.evidence,
            guidance=draft.guidance.strip(),
            fix=fix,
            resolution=(
                FindingResolution.VALIDATED
                if state == FindingState.VALIDATED
                else FindingResolution.FALLBACK
            ),
            attempts=attempts,
        )
        return SettledFinding(
            finding=finding,
            state=state,
            attempts=attempts,
            regeneration_calls=regeneration_calls,
            fallback_fields=tuple(fallback_fields),
        )
