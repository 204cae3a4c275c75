"""
Deterministic risk scoring.

The score is a pure function of finding severities. The model never
supplies it, and it is recomputed over stored findings on every cache
hit so that scoring changes apply to cached results too.
"""

from __future__ import annotations

from typing import Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict

from auditcore.app.config import AuditCoreConfig
from auditcore.app.schemas.audit import ComplianceStatus, RiskLevel
from auditcore.app.schemas.findings import Severity


MAX_SCORE = 100

SEVERITY_PENALTIES = {
    Severity.CRITICAL: 20,
    Severity.HIGH: 20,
    Severity.MEDIUM: 10,
    Severity.LOW: 5,
}


class RiskAssessment(BaseModel):
    risk_score: int
    risk_level: RiskLevel
    status: ComplianceStatus

    model_config = ConfigDict(frozen=True, extra="forbid")


class RiskScorer:
    """
    Score, level and status from severities.

    Level and status use separate thresholds. With the defaults a score
    of 50 is Medium and COMPLIANT.
    """

    def __init__(
        self,
        *,
        level_high_threshold: int = 70,
        level_medium_threshold: int = 40,
        non_compliant_threshold: int = 70,
    ) -> None:
        self._level_high = level_high_threshold
        self._level_medium = level_medium_threshold
        self._non_compliant = non_compliant_threshold

    @classmethod
    def from_config(cls, config: Optional[AuditCoreConfig] = None) -> "RiskScorer":
        config = config or AuditCoreConfig()
        return cls(
            level_high_threshold=config.RISK_LEVEL_HIGH_THRESHOLD,
            level_medium_threshold=config.RISK_LEVEL_MEDIUM_THRESHOLD,
            non_compliant_threshold=config.NON_COMPLIANT_THRESHOLD,
        )

    def score(self, severities: Iterable[Union[Severity, str]]) -> int:
        total = MAX_SCORE
        for severity in severities:
            total -= SEVERITY_PENALTIES[Severity.parse(severity)]
        return max(0, min(MAX_SCORE, total))

    def level(self, score: int) -> RiskLevel:
        if score >= self._level_high:
            return RiskLevel.HIGH
        if score >= self._level_medium:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def status(self, score: int) -> ComplianceStatus:
        if score >= self._non_compliant:
            return ComplianceStatus.NON_COMPLIANT
        return ComplianceStatus.COMPLIANT

    def assess(self, severities: Iterable[Union[Severity, str]]) -> RiskAssessment:
        score = self.score(severities)
        return RiskAssessment(
            risk_score=score,
            risk_level=self.level(score),
            status=self.status(score),
        )
