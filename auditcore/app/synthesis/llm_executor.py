from __future__ import annotations

import logging
from typing import Any, Dict, Literal, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict

from azure.identity import (
    DefaultAzureCredential,
    get_bearer_token_provider,
)
from azure.core.exceptions import (
    ClientAuthenticationError,
    ServiceResponseTimeoutError,
)

from openai import (
    APITimeoutError,
    AsyncAzureOpenAI,
    AsyncOpenAI,
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
)

from auditcore.app.config import AuditCoreConfig
from auditcore.app.synthesis.prompt_fragment import PromptFragment

# Optional events (observational only)
from auditcore.app.events import (
    AuditEvent,
    AuditEventType,
    AuditEventEmitter,
    NullEventEmitter,
)

logger = logging.getLogger(__name__)

AZURE_COGNITIVE_SCOPE = "https://cognitiveservices.azure.com/.default"

FailureType = Literal[
    "timeout",
    "authentication",
    "rate_limited",
    "empty_response",
    "unexpected_error",
]

# ----------------------------------------------------------------------
# Execution Result
# ----------------------------------------------------------------------

class TextExecutionResult(BaseModel):
    """
    Canonical result of one generative model call.

    This object is NON-AUTHORITATIVE: the text is untrusted until the
    synthesis layer has parsed and validated it.
    """
    success: bool
    text: Optional[str] = None

    # Diagnostic execution telemetry (raw, advisory only)
    token_metrics: Optional[Dict[str, Any]] = None

    failure_type: Optional[FailureType] = None
    raw_error: Optional[str] = None

    model_deployment: str
    prompt_id: str

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

# ----------------------------------------------------------------------
# Executor Interface
# ----------------------------------------------------------------------

class TextModelExecutor(Protocol):
    """
    Boundary to the generative model.

    Implementations MUST never raise. Every outcome is normalized into a
    TextExecutionResult.
    """

    async def execute(
        self,
        *,
        prompt: PromptFragment,
        system_text: str,
        audit_id: Optional[str] = None,
        emitter: Optional[AuditEventEmitter] = None,
    ) -> TextExecutionResult:
        ...

# ----------------------------------------------------------------------
# Client construction
# ----------------------------------------------------------------------

def build_openai_client(config: AuditCoreConfig) -> Union[AsyncOpenAI, AsyncAzureOpenAI]:
    """
    Azure OpenAI with an Entra ID token provider for the azure_openai
    provider, the public OpenAI API with a key otherwise. Azure settings
    left in the environment do not change the provider.
    """
    if config.MODEL_PROVIDER == "azure_openai":
        credential = DefaultAzureCredential()
        token_provider = get_bearer_token_provider(
            credential,
            AZURE_COGNITIVE_SCOPE,
        )
        return AsyncAzureOpenAI(
            azure_endpoint=config.AZURE_OPENAI_ENDPOINT,
            azure_ad_token_provider=token_provider,
            api_version=config.AZURE_OPENAI_API_VERSION,
            timeout=config.MODEL_TIMEOUT_SECONDS,
        )

    return AsyncOpenAI(
        api_key=config.OPENAI_API_KEY or None,
        timeout=config.MODEL_TIMEOUT_SECONDS,
    )

# ----------------------------------------------------------------------
# OpenAI / Azure OpenAI Executor
# ----------------------------------------------------------------------

class OpenAITextExecutor:
    """
    Chat-completions implementation of TextModelExecutor.

    Calls are as deterministic as the API allows: temperature 0,
    top_p 1 and the JSON-object response format.
    """

    def __init__(
        self,
        *,
        client: Union[AsyncOpenAI, AsyncAzureOpenAI],
        deployment: str,
        max_tokens: int = 2000,
    ) -> None:
        self._client = client
        self._deployment = deployment
        self._max_tokens = max_tokens

    @classmethod
    def from_config(cls, config: AuditCoreConfig) -> "OpenAITextExecutor":
        return cls(
            client=build_openai_client(config),
            deployment=config.model_deployment,
            max_tokens=config.MODEL_MAX_TOKENS,
        )

    def _failure(
        self,
        failure_type: FailureType,
        exc: Optional[BaseException],
        prompt_id: str,
    ) -> TextExecutionResult:
        return TextExecutionResult(
            success=False,
            text=None,
            token_metrics=None,
            failure_type=failure_type,
            raw_error=str(exc) if exc is not None else None,
            model_deployment=self._deployment,
            prompt_id=prompt_id,
        )

    async def execute(
        self,
        *,
        prompt: PromptFragment,
        system_text: str,
        audit_id: Optional[str] = None,
        emitter: Optional[AuditEventEmitter] = None,
    ) -> TextExecutionResult:
        emitter = emitter or NullEventEmitter()
        prompt_id = prompt.prompt_id

        if audit_id is not None:
            await emitter.emit(
                AuditEvent(
                    audit_id=audit_id,
                    event_type=AuditEventType.LLM_EXECUTION_STARTED,
                    details={
                        "purpose": prompt.purpose,
                        "prompt_digest": prompt.content_digest,
                        "rule_pack_version": prompt.rule_pack_version,
                        "model_deployment": self._deployment,
                    },
                )
            )

        result: Optional[TextExecutionResult] = None
        try:
            response = await self._client.chat.completions.create(
                model=self._deployment,
                messages=[
                    {"role": "system", "content": system_text},
                    {"role": "user", "content": prompt.text},
                ],
                temperature=0,
                top_p=1,
                max_tokens=self._max_tokens,
                response_format={"type": "json_object"},
            )

            text = None
            if response.choices:
                text = response.choices[0].message.content

            token_metrics: Optional[Dict[str, Any]] = None
            usage = getattr(response, "usage", None)
            if usage is not None:
                token_metrics = {
                    "prompt_tokens": getattr(usage, "prompt_tokens", None),
                    "completion_tokens": getattr(usage, "completion_tokens", None),
                    "total_tokens": getattr(usage, "total_tokens", None),
                }

            if not text or not text.strip():
                result = self._failure("empty_response", None, prompt_id)
            else:
                result = TextExecutionResult(
                    success=True,
                    text=text,
                    token_metrics=token_metrics,
                    failure_type=None,
                    raw_error=None,
                    model_deployment=self._deployment,
                    prompt_id=prompt_id,
                )

        except (APITimeoutError, ServiceResponseTimeoutError) as exc:
            result = self._failure("timeout", exc, prompt_id)

        except (AuthenticationError, PermissionDeniedError, ClientAuthenticationError) as exc:
            result = self._failure("authentication", exc, prompt_id)

        except RateLimitError as exc:
            result = self._failure("rate_limited", exc, prompt_id)

        except Exception as exc:
            logger.exception("Model call failed for %s", prompt_id)
            result = self._failure("unexpected_error", exc, prompt_id)

        finally:
            if audit_id is not None:
                await emitter.emit(
                    AuditEvent(
                        audit_id=audit_id,
                        event_type=AuditEventType.LLM_EXECUTION_COMPLETED,
                        details={
                            "success": result.success if result else False,
                            "failure_type": result.failure_type if result else "unexpected_error",
                        },
                    )
                )

        return result
