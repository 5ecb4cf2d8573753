from typing import Optional

from pydantic import BaseModel, ConfigDict


class TranslateRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: Optional[str] = None
    targetLanguage: Optional[str] = None  # e.g. "Spanish"


class TranslateResponse(BaseModel):
    result: str


class ChatRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: Optional[str] = None
    language: Optional[str] = None


class ChatResponse(BaseModel):
    reply: str


class TextToVoiceRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: Optional[str] = None


class TranscriptionResponse(BaseModel):
    text: str


class HealthResponse(BaseModel):
    status: str
    ts: int  # epoch milliseconds


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
