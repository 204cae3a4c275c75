import pytest

from auditcore.app.config import AuditCoreConfig
from auditcore.app.schemas.audit import ComplianceStatus, RiskLevel
from auditcore.app.schemas.findings import Severity
from auditcore.app.synthesis.scoring import RiskScorer


@pytest.mark.parametrize(
    "severities, expected",
    [
        ([], 100),
        ([Severity.LOW], 95),
        ([Severity.MEDIUM], 90),
        ([Severity.HIGH], 80),
        ([Severity.CRITICAL], 80),
        (["High", "high", "Medium"], 50),
        (["something unknown"], 90),
        ([Severity.CRITICAL] * 6, 0),
    ],
)
def test_score_is_pure_function_of_severities(severities, expected):
    assert RiskScorer().score(severities) == expected


def test_two_high_one_medium_is_medium_and_compliant():
    assessment = RiskScorer().assess([Severity.HIGH, Severity.HIGH, Severity.MEDIUM])

    assert assessment.risk_score == 50
    assert assessment.risk_level == RiskLevel.MEDIUM
    assert assessment.status == ComplianceStatus.COMPLIANT


def test_level_boundaries_are_inclusive():
    scorer = RiskScorer()
    assert scorer.level(70) == RiskLevel.HIGH
    assert scorer.level(69) == RiskLevel.MEDIUM
    assert scorer.level(40) == RiskLevel.MEDIUM
    assert scorer.level(39) == RiskLevel.LOW
    assert scorer.status(70) == ComplianceStatus.NON_COMPLIANT
    assert scorer.status(69) == ComplianceStatus.COMPLIANT


def test_level_and_status_thresholds_are_independent():
    scorer = RiskScorer.from_config(AuditCoreConfig(NON_COMPLIANT_THRESHOLD=50))
    assessment = scorer.assess([Severity.HIGH, Severity.HIGH, Severity.MEDIUM])

    # Level still uses its own thresholds
    assert assessment.risk_level == RiskLevel.MEDIUM
    assert assessment.status == ComplianceStatus.NON_COMPLIANT
