from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from utility.provider import AIProvider
from utility.settings import Settings


def make_settings(**overrides) -> Settings:
    values = {"openai_api_key": "sk-test"}
    values.update(overrides)
    return Settings(**values)


class FakeProvider(AIProvider):
    """In-memory provider that records every call and returns canned results."""

    def __init__(self, completion: Optional[str] = "", transcript: Optional[str] = "",
                 speech: bytes = b"", error: Optional[Exception] = None):
        self.completion = completion
        self.transcript = transcript
        self.speech = speech
        self.error = error
        self.calls: List[Dict] = []
        self.closed = False

    async def complete(self, messages, model, temperature, max_tokens):
        self.calls.append({"op": "complete", "messages": messages, "model": model,
                           "temperature": temperature, "max_tokens": max_tokens})
        if self.error:
            raise self.error
        return self.completion

    async def transcribe(self, audio, filename, model):
        self.calls.append({"op": "transcribe", "audio": audio, "filename": filename, "model": model})
        if self.error:
            raise self.error
        return self.transcript

    async def synthesize(self, text, model, voice, response_format="mp3"):
        self.calls.append({"op": "synthesize", "text": text, "model": model, "voice": voice,
                           "response_format": response_format})
        if self.error:
            raise self.error
        return self.speech

    async def aclose(self):
        self.closed = True


@pytest.fixture
def provider_factory():
    return FakeProvider


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def client_factory():
    """Build a TestClient around create_app() with an injected fake provider."""
    def _build(provider: Optional[AIProvider] = None, raise_server_exceptions: bool = True, **overrides):
        app = create_app(make_settings(**overrides), provider=provider or FakeProvider())
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)
    return _build
