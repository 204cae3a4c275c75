from __future__ import annotations

from typing import Literal, Optional

SynthesisFailureType = Literal["transport", "malformed_response"]


class AuditSynthesisError(Exception):
    """
    Raised when an audit cannot produce a result.

    - ``transport``: the primary model call failed; ``detail`` carries
      the executor's classified cause (timeout, authentication, ...)
    - ``malformed_response``: the model returned unusable output twice

    Policy violations never surface here; regeneration absorbs them.
    """

    def __init__(self, failure_type: SynthesisFailureType, detail: Optional[str] = None) -> None:
        self.failure_type = failure_type
        self.detail = detail
        message = failure_type if not detail else f"{failure_type}: {detail}"
        super().__init__(message)
