from __future__ import annotations

import json
from typing import Any, Dict, Optional
from enum import Enum
from datetime import datetime, timezone
from uuid import uuid4, UUID

from pydantic import BaseModel, Field, ConfigDict


# ----------------------------------------------------------------------
# Event Types (Finite and Versioned)
# ----------------------------------------------------------------------
class AuditEventType(str, Enum):
    """
    Deterministic progression events emitted during an audit synthesis.

    NOTE:
    This enum is finite and versioned.
    New entries must preserve observational semantics.
    """

    # ------------------------------------------------------------------
    # Global Audit Lifecycle
    # ------------------------------------------------------------------
    AUDIT_STARTED = "audit_started"
    AUDIT_COMPLETED = "audit_completed"
    AUDIT_FAILED = "audit_failed"

    # ------------------------------------------------------------------
    # Cache Phase
    # ------------------------------------------------------------------
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"
    CACHE_STORE_FAILED = "cache_store_failed"

    # ------------------------------------------------------------------
    # LLM Execution (Observational, Non-Authoritative)
    # ------------------------------------------------------------------
    LLM_EXECUTION_STARTED = "llm_execution_started"
    LLM_EXECUTION_COMPLETED = "llm_execution_completed"

    # ------------------------------------------------------------------
    # Finding Synthesis
    # ------------------------------------------------------------------
    FINDING_REGENERATION_REQUESTED = "finding_regeneration_requested"
    FINDING_FALLBACK_APPLIED = "finding_fallback_applied"
    FINDING_ACCEPTED = "finding_accepted"


# ----------------------------------------------------------------------
# Event Model
# ----------------------------------------------------------------------
class AuditEvent(BaseModel):
    """
    An immutable observation of a phase transition within a synthesis run.

    Events are:
    - strictly observational
    - transport-agnostic
    - not authoritative
    """

    event_id: UUID = Field(default_factory=uuid4)
    audit_id: str = Field(..., description="The global audit identifier")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    event_type: AuditEventType

    # Optional contextual metadata (finding index, counts, reasons, etc.)
    details: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    def to_sse_payload(self) -> str:
        """
        Render the event as a single Server-Sent Events frame.
        """
        data = json.dumps(self.model_dump(mode="json"), ensure_ascii=False)
        return f"event: {self.event_type.value}\ndata: {data}\n\n"
