"""
Provider clients for the gateway.
AIProvider is the seam the gateway depends on; OpenAIProvider talks to any
OpenAI-compatible API through the official async SDK.
"""
from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import httpx
from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class AIProvider(ABC):
    """Abstract provider: chat completion, transcription and speech synthesis."""

    @abstractmethod
    async def complete(self, messages: List[Dict[str, str]], model: str, temperature: float,
                       max_tokens: int) -> str:
        """Return the text of the first completion choice ('' if there is none)."""
        raise NotImplementedError

    @abstractmethod
    async def transcribe(self, audio: bytes, filename: str, model: str) -> str:
        """Transcribe an in-memory audio payload to text."""
        raise NotImplementedError

    @abstractmethod
    async def synthesize(self, text: str, model: str, voice: str, response_format: str = "mp3") -> bytes:
        """Generate speech audio for the given text."""
        raise NotImplementedError

    async def aclose(self):
        """Release any pooled connections. No-op by default."""
        return None


class OpenAIProvider(AIProvider):
    """
    AsyncOpenAI-backed provider.
    Retries are disabled so a single upstream failure surfaces to the caller.
    """

    def __init__(self, api_key: str, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 client: Optional[AsyncOpenAI] = None):
        if client is None:
            kwargs = {
                "api_key": api_key,
                "base_url": base_url,
                "max_retries": 0,
                "http_client": httpx.AsyncClient(),
            }
            if timeout is not None:
                kwargs["timeout"] = timeout
            client = AsyncOpenAI(**kwargs)
        self.client = client

    @classmethod
    def from_settings(cls, settings) -> "OpenAIProvider":
        return cls(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout=settings.request_timeout,
        )

    async def complete(self, messages: List[Dict[str, str]], model: str, temperature: float,
                       max_tokens: int) -> str:
        response = await self.client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        if not response.choices:
            logger.warning(f"⚠️ {model} returned no choices")
            return ""
        return response.choices[0].message.content or ""

    async def transcribe(self, audio: bytes, filename: str, model: str) -> str:
        buf = io.BytesIO(audio)
        buf.name = filename  # the API infers the container format from the name

        result = await self.client.audio.transcriptions.create(model=model, file=buf)

        text = getattr(result, "text", None)
        if not text and isinstance(result, dict):
            text = result.get("text")
        return text or ""

    async def synthesize(self, text: str, model: str, voice: str, response_format: str = "mp3") -> bytes:
        response = await self.client.audio.speech.create(
            model=model,
            voice=voice,
            input=text,
            response_format=response_format,
        )
        return response.content

    async def aclose(self):
        await self.client.close()
