from __future__ import annotations

import logging
import time
from typing import Optional

from utility.errors import UpstreamError, ValidationError
from utility.prompt_manager import PromptManager
from utility.provider import AIProvider
from utility.settings import Settings

logger = logging.getLogger(__name__)


# Extensions the transcription endpoint uses to detect the container format
AUDIO_EXTENSIONS = {"flac", "m4a", "mp3", "mp4", "mpeg", "mpga", "oga", "ogg", "wav", "webm"}

CONTENT_TYPE_EXTENSIONS = {
    "audio/flac": "flac",
    "audio/x-flac": "flac",
    "audio/m4a": "m4a",
    "audio/x-m4a": "m4a",
    "audio/mp4": "mp4",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/ogg": "ogg",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/webm": "webm",
    "video/webm": "webm",
    "video/mp4": "mp4",
}


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def transcription_filename(filename: Optional[str], content_type: Optional[str] = None) -> str:
    """
    Name the upload so the provider can detect its format.
    Browsers send Blob uploads as 'blob', so an unknown extension falls back to
    the content type, then to record-<epoch-ms>.webm.
    """
    if filename and "." in filename:
        extension = filename.rsplit(".", 1)[1].lower()
        if extension in AUDIO_EXTENSIONS:
            return filename

    mime = (content_type or "").split(";", 1)[0].strip().lower()
    extension = CONTENT_TYPE_EXTENSIONS.get(mime, "webm")
    return f"record-{int(time.time() * 1000)}.{extension}"


class LanguageGateway:
    """
    Request mediation between the HTTP layer and the provider.
    Each operation validates its input, makes exactly one provider call and
    reshapes the result. Provider failures become UpstreamError.
    """

    def __init__(self, provider: AIProvider, settings: Settings):
        self.provider = provider
        self.settings = settings

    # -----------------------------
    # Text
    # -----------------------------
    async def translate(self, text: Optional[str], target_language: Optional[str]) -> str:
        missing = [name for name, value in (("text", text), ("targetLanguage", target_language))
                   if _is_blank(value)]
        if missing:
            raise ValidationError(f"Missing {' or '.join(missing)}")

        messages = PromptManager.build_translate_messages(text, target_language)
        start = time.perf_counter()
        try:
            translated = await self.provider.complete(
                messages,
                model=self.settings.translate_model,
                temperature=self.settings.translate_temperature,
                max_tokens=self.settings.translate_max_tokens,
            )
        except Exception as e:
            logger.error(f"❌ translate error: {e}")
            raise UpstreamError.from_exception("Translate", e)

        logger.info(f"✅ translate → {target_language} in {(time.perf_counter() - start) * 1000:.0f}ms")
        return (translated or "").strip()

    async def chat(self, message: Optional[str], language: Optional[str] = None) -> str:
        if _is_blank(message):
            raise ValidationError("Missing message")

        messages = PromptManager.build_chat_messages(message, language)
        start = time.perf_counter()
        try:
            reply = await self.provider.complete(
                messages,
                model=self.settings.chat_model,
                temperature=self.settings.chat_temperature,
                max_tokens=self.settings.chat_max_tokens,
            )
        except Exception as e:
            logger.error(f"❌ chat error: {e}")
            raise UpstreamError.from_exception("Chat", e)

        logger.info(f"✅ chat reply in {(time.perf_counter() - start) * 1000:.0f}ms")
        return (reply or "").strip()

    # -----------------------------
    # Audio
    # -----------------------------
    async def voice_to_text(self, audio: Optional[bytes], filename: Optional[str] = None,
                            content_type: Optional[str] = None) -> str:
        """Transcribe an uploaded recording. The payload never touches disk."""
        if not audio:
            raise ValidationError("No audio file uploaded")

        filename = transcription_filename(filename, content_type)
        start = time.perf_counter()
        try:
            text = await self.provider.transcribe(audio, filename=filename, model=self.settings.transcribe_model)
        except Exception as e:
            logger.error(f"❌ voice-to-text error: {e}")
            raise UpstreamError.from_exception("Voice-to-text", e)

        logger.info(f"✅ transcribed {len(audio)} bytes in {(time.perf_counter() - start) * 1000:.0f}ms")
        return text or ""

    async def text_to_voice(self, text: Optional[str]) -> bytes:
        if _is_blank(text):
            raise ValidationError("Missing text")

        start = time.perf_counter()
        try:
            audio = await self.provider.synthesize(
                text,
                model=self.settings.tts_model,
                voice=self.settings.tts_voice,
                response_format="mp3",
            )
        except Exception as e:
            logger.error(f"❌ text-to-voice error: {e}")
            raise UpstreamError.from_exception("TTS", e)

        if not isinstance(audio, (bytes, bytearray)):
            logger.error(f"❌ text-to-voice returned {type(audio).__name__}, expected bytes")
            raise UpstreamError("TTS failed", details="Provider returned no audio payload")

        logger.info(f"✅ synthesized {len(audio)} bytes in {(time.perf_counter() - start) * 1000:.0f}ms")
        return bytes(audio)
