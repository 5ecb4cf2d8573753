from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from utility.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 10000
DEFAULT_MAX_BODY_BYTES = 1024 * 1024


@dataclass
class Settings:
    """Gateway configuration. Build it with Settings.from_env() in production."""
    openai_api_key: str
    openai_base_url: Optional[str] = None
    request_timeout: Optional[float] = None

    # Server
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    log_level: str = "INFO"

    # Models
    translate_model: str = "gpt-4o-mini"
    chat_model: str = "gpt-4o-mini"
    transcribe_model: str = "gpt-4o-mini-transcribe"
    tts_model: str = "gpt-4o-mini-tts"
    tts_voice: str = "alloy"

    # Generation parameters
    translate_temperature: float = 0.1
    translate_max_tokens: int = 500
    chat_temperature: float = 0.7
    chat_max_tokens: int = 400

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """
        Load settings from the process environment (and a .env file if present).
        Fails fast when the provider credential is missing.
        """
        load_dotenv(env_file)

        api_key = os.getenv("OPENAI_API_KEY", "").strip()
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY must be set to start the gateway")

        origins = [
            origin.strip()
            for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
            if origin.strip()
        ]

        return cls(
            openai_api_key=api_key,
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            request_timeout=_read_number("OPENAI_TIMEOUT", float, None),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_read_number("PORT", int, None) or _read_number("PORT_NUMBER", int, DEFAULT_PORT),
            cors_allow_origins=origins or ["*"],
            max_body_bytes=_read_number("MAX_BODY_BYTES", int, DEFAULT_MAX_BODY_BYTES),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            translate_model=os.getenv("TRANSLATE_MODEL", cls.translate_model),
            chat_model=os.getenv("CHAT_MODEL", cls.chat_model),
            transcribe_model=os.getenv("TRANSCRIBE_MODEL", cls.transcribe_model),
            tts_model=os.getenv("TTS_MODEL", cls.tts_model),
            tts_voice=os.getenv("TTS_VOICE", cls.tts_voice),
        )

    def log_summary(self):
        """Log the effective configuration without exposing credentials"""
        logger.info("🔧 Gateway configuration")
        logger.info(f"OPENAI_API_KEY: {'✅ Loaded' if self.openai_api_key else '❌ Missing'}")
        logger.info(f"OPENAI_BASE_URL: {self.openai_base_url or 'default'}")
        logger.info(f"Listening on {self.host}:{self.port}")
        logger.info(f"CORS origins: {', '.join(self.cors_allow_origins)}")
        logger.info(
            f"Models: translate={self.translate_model} chat={self.chat_model} "
            f"transcribe={self.transcribe_model} tts={self.tts_model} (voice={self.tts_voice})"
        )


def _read_number(name: str, cast, default):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
