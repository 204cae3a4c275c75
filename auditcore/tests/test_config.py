import pytest
from pydantic import ValidationError

from auditcore.app.config import AuditCoreConfig


def test_defaults_reproduce_production_rule_set():
    config = AuditCoreConfig()

    assert config.GUIDANCE_EVIDENCE_SIMILARITY_MAX == 0.35
    assert config.CROSS_FINDING_SIMILARITY_MAX == 0.40
    assert config.GUIDANCE_FIX_SIMILARITY_MAX == 0.75
    assert config.MAX_REGENERATION_ATTEMPTS == 4
    assert config.MAX_EVIDENCE_CHARS == 250
    assert not config.model_enabled


def test_from_env_reads_prefixed_variables(monkeypatch):
    monkeypatch.setenv("AUDITCORE_RULE_PACK_VERSION", "v2.0.0")
    monkeypatch.setenv("AUDITCORE_MAX_REGENERATION_ATTEMPTS", "2")
    monkeypatch.setenv("AUDITCORE_MODEL_PROVIDER", "openai")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    config = AuditCoreConfig.from_env()

    assert config.RULE_PACK_VERSION == "v2.0.0"
    assert config.MAX_REGENERATION_ATTEMPTS == 2
    assert config.model_enabled
    assert "sk-test" not in repr(config)


def test_config_is_immutable():
    config = AuditCoreConfig()
    with pytest.raises(ValidationError):
        config.MAX_FINDINGS = 3


def test_unknown_provider_is_rejected():
    with pytest.raises(ValidationError):
        AuditCoreConfig(MODEL_PROVIDER="bard")


def test_azure_provider_requires_endpoint():
    with pytest.raises(ValidationError):
        AuditCoreConfig(MODEL_PROVIDER="azure_openai")

    config = AuditCoreConfig(
        MODEL_PROVIDER="azure_openai",
        AZURE_OPENAI_ENDPOINT="https://example.openai.azure.com",
        AZURE_OPENAI_DEPLOYMENT="audit-gpt",
    )
    assert config.model_deployment == "audit-gpt"


def test_openai_provider_ignores_stray_azure_deployment():
    config = AuditCoreConfig(
        MODEL_PROVIDER="openai",
        MODEL_NAME="gpt-4o-mini",
        AZURE_OPENAI_ENDPOINT="https://example.openai.azure.com",
        AZURE_OPENAI_DEPLOYMENT="audit-gpt",
    )
    assert config.model_deployment == "gpt-4o-mini"


def test_thresholds_are_validated():
    with pytest.raises(ValidationError):
        AuditCoreConfig(CROSS_FINDING_SIMILARITY_MAX=1.5)
    with pytest.raises(ValidationError):
        AuditCoreConfig(FIX_EVIDENCE_OVERLAP_MIN=0.5, FIX_EVIDENCE_OVERLAP_MAX=0.4)
    with pytest.raises(ValidationError):
        AuditCoreConfig(RISK_LEVEL_HIGH_THRESHOLD=40, RISK_LEVEL_MEDIUM_THRESHOLD=60)
