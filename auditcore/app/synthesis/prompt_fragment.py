from pydantic import BaseModel, Field, ConfigDict

from auditcore.app.utils.hashing import sha256_hexdigest


class PromptFragment(BaseModel):
    """
    Immutable prompt sent to the generative model.

    Prompt fragments are versioned, hashable, and auditable.
    """

    purpose: str = Field(
        ...,
        description="What the prompt asks for (e.g., 'audit', 'regenerate')",
    )

    rule_pack_version: str = Field(
        ...,
        description="Rule-pack version the prompt was built for",
    )

    text: str = Field(
        ...,
        description="Prompt content",
    )

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    @property
    def prompt_id(self) -> str:
        return f"{self.purpose}:{self.rule_pack_version}"

    @property
    def content_digest(self) -> str:
        return sha256_hexdigest(self.text.encode("utf-8"))
