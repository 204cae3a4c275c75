"""
Speech-to-text boundary for audio and video audits.

Transcription is best-effort. A failed or silent transcription yields a
bracketed placeholder string instead of an exception, and callers
decide whether a placeholder is auditable.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol, Union

from openai import AsyncAzureOpenAI, AsyncOpenAI

from auditcore.app.config import AuditCoreConfig
from auditcore.app.synthesis.llm_executor import build_openai_client

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"^\[(?:Transcription failed for|No speech detected in) .*\]$", re.DOTALL)


def failed_placeholder(filename: str, reason: str) -> str:
    return f"[Transcription failed for {filename}: {reason}]"


def silent_placeholder(filename: str) -> str:
    return f"[No speech detected in {filename}]"


def is_transcription_placeholder(text: str) -> bool:
    return bool(_PLACEHOLDER.match((text or "").strip()))


class Transcriber(Protocol):
    async def transcribe(self, audio_bytes: bytes, filename: str) -> str:
        ...


class OpenAITranscriber:
    """
    Whisper transcription in the original spoken language.
    """

    def __init__(
        self,
        *,
        client: Union[AsyncOpenAI, AsyncAzureOpenAI],
        model: str = "whisper-1",
    ) -> None:
        self._client = client
        self._model = model

    @classmethod
    def from_config(cls, config: AuditCoreConfig) -> "OpenAITranscriber":
        return cls(
            client=build_openai_client(config),
            model=config.TRANSCRIPTION_MODEL_NAME,
        )

    async def transcribe(self, audio_bytes: bytes, filename: str) -> str:
        if not audio_bytes:
            return silent_placeholder(filename)

        try:
            response = await self._client.audio.transcriptions.create(
                model=self._model,
                file=(filename, audio_bytes),
                response_format="verbose_json",
                temperature=0,
            )
        except Exception as exc:
            logger.warning("Transcription failed for %s: %s", filename, exc)
            return failed_placeholder(filename, str(exc))

        text = (getattr(response, "text", "") or "").strip()
        if not text:
            return silent_placeholder(filename)

        logger.info(
            "Transcribed %s (%s chars, language=%s)",
            filename,
            len(text),
            getattr(response, "language", "unknown"),
        )
        return text
