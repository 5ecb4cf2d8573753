from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from utility.provider import OpenAIProvider


@pytest.fixture
def sdk_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    client.audio.transcriptions.create = AsyncMock()
    client.audio.speech.create = AsyncMock()
    client.close = AsyncMock()
    return client


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.mark.asyncio
async def test_complete_forwards_parameters(sdk_client):
    sdk_client.chat.completions.create.return_value = _completion("Hola")
    provider = OpenAIProvider(api_key="sk-test", client=sdk_client)
    messages = [{"role": "user", "content": "hi"}]

    assert await provider.complete(messages, model="gpt-4o-mini", temperature=0.1, max_tokens=500) == "Hola"
    sdk_client.chat.completions.create.assert_awaited_once_with(
        model="gpt-4o-mini", messages=messages, temperature=0.1, max_tokens=500,
    )


@pytest.mark.asyncio
async def test_complete_without_choices(sdk_client):
    sdk_client.chat.completions.create.return_value = SimpleNamespace(choices=[])
    provider = OpenAIProvider(api_key="sk-test", client=sdk_client)
    assert await provider.complete([], model="m", temperature=0.7, max_tokens=400) == ""

    sdk_client.chat.completions.create.return_value = _completion(None)
    assert await provider.complete([], model="m", temperature=0.7, max_tokens=400) == ""


@pytest.mark.asyncio
async def test_transcribe_sends_named_buffer(sdk_client):
    sdk_client.audio.transcriptions.create.return_value = SimpleNamespace(text="hello world")
    provider = OpenAIProvider(api_key="sk-test", client=sdk_client)

    assert await provider.transcribe(b"RIFF....", filename="clip.wav", model="gpt-4o-mini-transcribe") == "hello world"

    kwargs = sdk_client.audio.transcriptions.create.await_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini-transcribe"
    assert kwargs["file"].name == "clip.wav"
    assert kwargs["file"].getvalue() == b"RIFF...."


@pytest.mark.asyncio
async def test_transcribe_missing_text(sdk_client):
    sdk_client.audio.transcriptions.create.return_value = SimpleNamespace(text=None)
    provider = OpenAIProvider(api_key="sk-test", client=sdk_client)
    assert await provider.transcribe(b"x", filename="a.webm", model="m") == ""


@pytest.mark.asyncio
async def test_synthesize_returns_bytes(sdk_client):
    sdk_client.audio.speech.create.return_value = SimpleNamespace(content=b"ID3audio")
    provider = OpenAIProvider(api_key="sk-test", client=sdk_client)

    assert await provider.synthesize("hi", model="gpt-4o-mini-tts", voice="alloy") == b"ID3audio"
    sdk_client.audio.speech.create.assert_awaited_once_with(
        model="gpt-4o-mini-tts", voice="alloy", input="hi", response_format="mp3",
    )


@pytest.mark.asyncio
async def test_errors_propagate(sdk_client):
    sdk_client.chat.completions.create.side_effect = RuntimeError("401 invalid api key")
    provider = OpenAIProvider(api_key="sk-test", client=sdk_client)
    with pytest.raises(RuntimeError, match="invalid api key"):
        await provider.complete([], model="m", temperature=0.1, max_tokens=1)


@pytest.mark.asyncio
async def test_aclose(sdk_client):
    provider = OpenAIProvider(api_key="sk-test", client=sdk_client)
    await provider.aclose()
    sdk_client.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_default_client_disables_retries():
    provider = OpenAIProvider(api_key="sk-test", base_url="https://llm.example/v1", timeout=5.0)
    try:
        assert provider.client.max_retries == 0
        assert str(provider.client.base_url).startswith("https://llm.example/v1")
        assert provider.client.timeout == 5.0
    finally:
        await provider.aclose()
