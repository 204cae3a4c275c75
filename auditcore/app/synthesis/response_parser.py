"""
Extraction of JSON payloads from model output.

Models wrap JSON in code fences, prepend prose, or return truncated
objects. Everything here turns that text into a validated pydantic
shape or raises MalformedResponseError.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Sequence

from pydantic import ValidationError

from auditcore.app.schemas.findings import RawAuditResponse

_FENCE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)


class MalformedResponseError(ValueError):
    pass


def extract_json_object(text: str) -> Dict[str, Any]:
    cleaned = _FENCE.sub("", text or "").strip()
    if not cleaned:
        raise MalformedResponseError("empty response")

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise MalformedResponseError("response is not JSON") from None
        try:
            data = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as exc:
            raise MalformedResponseError(f"response is not JSON: {exc.msg}") from exc

    if not isinstance(data, dict):
        raise MalformedResponseError("response is not a JSON object")
    return data


def parse_audit_response(text: str) -> RawAuditResponse:
    data = extract_json_object(text)
    if not isinstance(data.get("issues"), list):
        raise MalformedResponseError("'issues' is missing or not a list")

    try:
        return RawAuditResponse.model_validate(data)
    except ValidationError as exc:
        raise MalformedResponseError(f"invalid issues payload: {exc.error_count()} errors") from exc


def parse_regeneration_response(text: str, fields: Sequence[str]) -> Dict[str, str]:
    """
    Parse a scoped regeneration reply. Every requested key must be a
    non-empty string; extra keys are ignored.
    """
    data = extract_json_object(text)
    values: Dict[str, str] = {}
    for field in fields:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            raise MalformedResponseError(f"'{field}' is missing or empty")
        values[field] = value.strip()
    return values
