"""
Runtime configuration for the audit synthesis service.

This module centralizes environment-driven configuration: model access,
acceptance thresholds, retry bounds and scoring cut-offs.

Configuration is read-only at runtime. Every threshold here is a named,
overridable value; nothing in the synthesis layer hard-codes its own.
"""

from __future__ import annotations

import os
from pydantic import BaseModel, Field, field_validator, ValidationInfo


class AuditCoreConfig(BaseModel):
    """
    Runtime configuration for the audit synthesis service.

    Defaults reproduce the production rule set. Tests override single
    values by constructing the model directly.
    """

    # ------------------------------------------------------------------
    # Rule set identity
    # ------------------------------------------------------------------

    RULE_PACK_VERSION: str = Field(
        "v1.0.0",
        description=(
            "Version tag of the rule packs. Part of the cache key, so a "
            "bump invalidates every stored result."
        ),
    )

    # ------------------------------------------------------------------
    # Generative model
    # ------------------------------------------------------------------

    MODEL_PROVIDER: str = Field(
        "disabled",
        description="Generative model provider identifier",
    )

    MODEL_NAME: str = Field(
        "gpt-4o-mini",
        description="Chat model (or Azure deployment) used for audits",
    )

    TRANSCRIPTION_MODEL_NAME: str = Field(
        "whisper-1",
        description="Speech-to-text model used for audio/video uploads",
    )

    OPENAI_API_KEY: str = Field(
        "",
        repr=False,
        description="API key for the public OpenAI endpoint",
    )

    AZURE_OPENAI_ENDPOINT: str = Field(
        "",
        validate_default=True,
        description="Azure OpenAI endpoint URL",
    )

    AZURE_OPENAI_DEPLOYMENT: str = Field(
        "",
        description="Azure OpenAI deployment name (overrides MODEL_NAME)",
    )

    AZURE_OPENAI_API_VERSION: str = Field(
        "2024-06-01",
        description="Azure OpenAI API version",
    )

    MODEL_TIMEOUT_SECONDS: float = Field(
        60.0,
        gt=0,
        description="Per-call timeout for model requests",
    )

    MODEL_MAX_TOKENS: int = Field(
        2000,
        ge=1,
        description="Completion token limit per model call",
    )

    # ------------------------------------------------------------------
    # Similarity thresholds
    # ------------------------------------------------------------------

    GUIDANCE_EVIDENCE_SIMILARITY_MAX: float = Field(
        0.35,
        description="Guidance at or above this similarity to evidence is a paraphrase",
    )

    CROSS_FINDING_SIMILARITY_MAX: float = Field(
        0.40,
        description="Guidance or fix pairs across findings at or above this collide",
    )

    GUIDANCE_FIX_SIMILARITY_MAX: float = Field(
        0.75,
        description="Guidance and fix at or above this similarity have collapsed",
    )

    FIX_EVIDENCE_OVERLAP_MIN: float = Field(
        0.10,
        description="Each fix option must overlap the evidence above this",
    )

    FIX_EVIDENCE_OVERLAP_MAX: float = Field(
        0.90,
        description="Each fix option must overlap the evidence below this",
    )

    SIMILARITY_MIN_TOKEN_LENGTH: int = Field(
        3,
        ge=1,
        description="Tokens shorter than this are ignored by similarity checks",
    )

    # ------------------------------------------------------------------
    # Field limits and retry bounds
    # ------------------------------------------------------------------

    MAX_REGENERATION_ATTEMPTS: int = Field(
        4,
        ge=1,
        description=(
            "Validation attempts per finding. The last attempt applies the "
            "local fallback instead of calling the model."
        ),
    )

    MAX_EVIDENCE_CHARS: int = Field(
        250,
        ge=20,
        description="Hard limit on resolved evidence length",
    )

    MIN_GUIDANCE_CHARS: int = Field(
        25,
        ge=1,
        description="Guidance shorter than this is rejected as weak",
    )

    MIN_FIX_CHARS: int = Field(
        15,
        ge=1,
        description="Combined fix option text shorter than this is rejected",
    )

    MAX_FINDINGS: int = Field(
        25,
        ge=1,
        description="Upper bound on findings taken from one model response",
    )

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    RISK_LEVEL_HIGH_THRESHOLD: int = Field(
        70,
        description="Scores at or above this are reported as High",
    )

    RISK_LEVEL_MEDIUM_THRESHOLD: int = Field(
        40,
        description="Scores at or above this (and below High) are Medium",
    )

    NON_COMPLIANT_THRESHOLD: int = Field(
        70,
        description="Scores at or above this are NON_COMPLIANT",
    )

    # ------------------------------------------------------------------
    # Safety and resource limits
    # ------------------------------------------------------------------

    MAX_SOURCE_CHARS: int = Field(
        30_000,
        ge=100,
        description="Upper bound on source text sent to the model",
    )

    MAX_UPLOAD_SIZE_MB: int = Field(
        25,
        ge=1,
        description="Maximum accepted audio/video upload size in megabytes",
    )

    # ------------------------------------------------------------------
    # Validators (Pydantic v2)
    # ------------------------------------------------------------------

    @field_validator("MODEL_PROVIDER")
    @classmethod
    def validate_model_provider(cls, v: str) -> str:
        allowed = {"disabled", "openai", "azure_openai"}
        if v not in allowed:
            raise ValueError(
                f"Unsupported MODEL_PROVIDER '{v}'. "
                f"Allowed values: {sorted(allowed)}"
            )
        return v

    @field_validator(
        "GUIDANCE_EVIDENCE_SIMILARITY_MAX",
        "CROSS_FINDING_SIMILARITY_MAX",
        "GUIDANCE_FIX_SIMILARITY_MAX",
        "FIX_EVIDENCE_OVERLAP_MIN",
        "FIX_EVIDENCE_OVERLAP_MAX",
    )
    @classmethod
    def threshold_in_unit_interval(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"Similarity thresholds must lie in [0, 1], got {v}")
        return v

    @field_validator("FIX_EVIDENCE_OVERLAP_MAX")
    @classmethod
    def overlap_interval_ordered(
        cls, v: float, info: ValidationInfo
    ) -> float:
        lower = info.data.get("FIX_EVIDENCE_OVERLAP_MIN")
        if lower is not None and v <= lower:
            raise ValueError(
                "FIX_EVIDENCE_OVERLAP_MAX must be greater than "
                "FIX_EVIDENCE_OVERLAP_MIN."
            )
        return v

    @field_validator("RISK_LEVEL_MEDIUM_THRESHOLD")
    @classmethod
    def level_thresholds_ordered(
        cls, v: int, info: ValidationInfo
    ) -> int:
        high = info.data.get("RISK_LEVEL_HIGH_THRESHOLD")
        if high is not None and v >= high:
            raise ValueError(
                "RISK_LEVEL_MEDIUM_THRESHOLD must be below "
                "RISK_LEVEL_HIGH_THRESHOLD."
            )
        return v

    @field_validator("AZURE_OPENAI_ENDPOINT")
    @classmethod
    def azure_endpoint_required_for_azure(
        cls, v: str, info: ValidationInfo
    ) -> str:
        if info.data.get("MODEL_PROVIDER") == "azure_openai" and not v:
            raise ValueError(
                "MODEL_PROVIDER is 'azure_openai' but "
                "AZURE_OPENAI_ENDPOINT is not configured."
            )
        return v

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def model_enabled(self) -> bool:
        return self.MODEL_PROVIDER != "disabled"

    @property
    def model_deployment(self) -> str:
        if self.MODEL_PROVIDER == "azure_openai":
            return self.AZURE_OPENAI_DEPLOYMENT or self.MODEL_NAME
        return self.MODEL_NAME

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> "AuditCoreConfig":
        """
        Load configuration from environment variables.

        All values are parsed once at startup and must remain immutable.
        """

        def env_str(name: str, default: str) -> str:
            return os.getenv(f"AUDITCORE_{name}", default)

        return cls(
            RULE_PACK_VERSION=env_str("RULE_PACK_VERSION", "v1.0.0"),
            MODEL_PROVIDER=env_str("MODEL_PROVIDER", "disabled"),
            MODEL_NAME=env_str("MODEL_NAME", "gpt-4o-mini"),
            TRANSCRIPTION_MODEL_NAME=env_str(
                "TRANSCRIPTION_MODEL_NAME", "whisper-1"
            ),
            OPENAI_API_KEY=os.getenv("OPENAI_API_KEY", ""),
            AZURE_OPENAI_ENDPOINT=os.getenv("AZURE_OPENAI_ENDPOINT", ""),
            AZURE_OPENAI_DEPLOYMENT=os.getenv("AZURE_OPENAI_DEPLOYMENT", ""),
            AZURE_OPENAI_API_VERSION=os.getenv(
                "AZURE_OPENAI_API_VERSION", "2024-06-01"
            ),
            MODEL_TIMEOUT_SECONDS=float(
                env_str("MODEL_TIMEOUT_SECONDS", "60")
            ),
            MODEL_MAX_TOKENS=int(env_str("MODEL_MAX_TOKENS", "2000")),
            GUIDANCE_EVIDENCE_SIMILARITY_MAX=float(
                env_str("GUIDANCE_EVIDENCE_SIMILARITY_MAX", "0.35")
            ),
            CROSS_FINDING_SIMILARITY_MAX=float(
                env_str("CROSS_FINDING_SIMILARITY_MAX", "0.40")
            ),
            GUIDANCE_FIX_SIMILARITY_MAX=float(
                env_str("GUIDANCE_FIX_SIMILARITY_MAX", "0.75")
            ),
            FIX_EVIDENCE_OVERLAP_MIN=float(
                env_str("FIX_EVIDENCE_OVERLAP_MIN", "0.10")
            ),
            FIX_EVIDENCE_OVERLAP_MAX=float(
                env_str("FIX_EVIDENCE_OVERLAP_MAX", "0.90")
            ),
            SIMILARITY_MIN_TOKEN_LENGTH=int(
                env_str("SIMILARITY_MIN_TOKEN_LENGTH", "3")
            ),
            MAX_REGENERATION_ATTEMPTS=int(
                env_str("MAX_REGENERATION_ATTEMPTS", "4")
            ),
            MAX_EVIDENCE_CHARS=int(env_str("MAX_EVIDENCE_CHARS", "250")),
            MIN_GUIDANCE_CHARS=int(env_str("MIN_GUIDANCE_CHARS", "25")),
            MIN_FIX_CHARS=int(env_str("MIN_FIX_CHARS", "15")),
            MAX_FINDINGS=int(env_str("MAX_FINDINGS", "25")),
            RISK_LEVEL_HIGH_THRESHOLD=int(
                env_str("RISK_LEVEL_HIGH_THRESHOLD", "70")
            ),
            RISK_LEVEL_MEDIUM_THRESHOLD=int(
                env_str("RISK_LEVEL_MEDIUM_THRESHOLD", "40")
            ),
            NON_COMPLIANT_THRESHOLD=int(
                env_str("NON_COMPLIANT_THRESHOLD", "70")
            ),
            MAX_SOURCE_CHARS=int(env_str("MAX_SOURCE_CHARS", "30000")),
            MAX_UPLOAD_SIZE_MB=int(env_str("MAX_UPLOAD_SIZE_MB", "25")),
        )

    model_config = {
        "frozen": True,
    }
