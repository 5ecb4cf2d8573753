from __future__ import annotations

import json
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional, Type, TypeVar
from urllib.parse import parse_qsl

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, File, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from utility.dto import (
    ChatRequest,
    ChatResponse,
    HealthResponse,
    TextToVoiceRequest,
    TranscriptionResponse,
    TranslateRequest,
    TranslateResponse,
)
from utility.errors import ConfigurationError, GatewayError, ValidationError
from utility.gateway import LanguageGateway
from utility.log_config import setup_logging
from utility.provider import AIProvider, OpenAIProvider
from utility.settings import Settings

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "OPTIONS"]
CORS_HEADERS = ["Content-Type"]

RequestModel = TypeVar("RequestModel", bound=BaseModel)

router = APIRouter()


# -----------------------------
# Helpers
# -----------------------------
def get_gateway(request: Request) -> LanguageGateway:
    return request.app.state.gateway


async def read_payload(request: Request, model: Type[RequestModel]) -> RequestModel:
    """
    Parse a JSON or urlencoded body into `model`.
    Oversized bodies are rejected before they are parsed.
    """
    max_bytes = request.app.state.settings.max_body_bytes
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise GatewayError("Request body too large", status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)

    # chunked bodies carry no Content-Length, so count while reading
    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > max_bytes:
            raise GatewayError("Request body too large", status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)
        chunks.append(chunk)
    body = b"".join(chunks)

    data: Any = {}
    if body:
        content_type = request.headers.get("content-type", "")
        try:
            if content_type.startswith("application/x-www-form-urlencoded"):
                data = dict(parse_qsl(body.decode("utf-8"), keep_blank_values=True))
            else:
                data = json.loads(body)
        except ValueError as e:
            raise ValidationError("Invalid request body", details=str(e))

    if not isinstance(data, dict):
        raise ValidationError("Invalid request body", details="Expected a JSON object")

    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError("Invalid request body", details=_summarize_errors(e.errors()))


def _summarize_errors(errors) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}" for err in errors
    )


# -----------------------------
# HTTP Endpoints
# -----------------------------
@router.get("/", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok", ts=int(time.time() * 1000))


@router.post("/translate", response_model=TranslateResponse)
async def translate(request: Request, gateway: LanguageGateway = Depends(get_gateway)):
    req = await read_payload(request, TranslateRequest)
    result = await gateway.translate(req.text, req.targetLanguage)
    return TranslateResponse(result=result)


@router.post("/chat", response_model=ChatResponse)
async def chat(request: Request, gateway: LanguageGateway = Depends(get_gateway)):
    req = await read_payload(request, ChatRequest)
    reply = await gateway.chat(req.message, req.language)
    return ChatResponse(reply=reply)


@router.post("/voice-to-text", response_model=TranscriptionResponse)
async def voice_to_text(
        audio: Optional[UploadFile] = File(None),
        gateway: LanguageGateway = Depends(get_gateway),
):
    if audio is None:
        text = await gateway.voice_to_text(None)
    else:
        text = await gateway.voice_to_text(await audio.read(), audio.filename, audio.content_type)
    return TranscriptionResponse(text=text)


@router.post("/text-to-voice")
async def text_to_voice(request: Request, gateway: LanguageGateway = Depends(get_gateway)):
    req = await read_payload(request, TextToVoiceRequest)
    audio = await gateway.text_to_voice(req.text)
    return Response(
        content=audio,
        media_type="audio/mpeg",
        headers={"Content-Length": str(len(audio))},
    )


def cors_headers(request: Request) -> Dict[str, str]:
    origins = request.app.state.settings.cors_allow_origins
    origin = request.headers.get("origin")
    if "*" in origins:
        allow_origin = "*"
    elif origin in origins:
        allow_origin = origin
    else:
        allow_origin = origins[0]

    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Methods": ", ".join(CORS_METHODS),
        "Access-Control-Allow-Headers": ", ".join(CORS_HEADERS),
    }


async def answer_options(request: Request, call_next):
    """Answer OPTIONS on any path. Browser preflights are handled by CORSMiddleware first."""
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_200_OK, headers=cors_headers(request))
    return await call_next(request)


# -----------------------------
# Error handling
# -----------------------------
def register_exception_handlers(app: FastAPI):
    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        if exc.status_code >= 500:
            logger.error(f"❌ {request.method} {request.url.path}: {exc.message} ({exc.details})")
        else:
            logger.warning(f"⚠️ {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"⚠️ {request.method} {request.url.path}: invalid request")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request body", "details": _summarize_errors(exc.errors())},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error", "details": str(exc)},
            headers=cors_headers(request),
        )


# -----------------------------
# FastAPI app
# -----------------------------
def create_app(settings: Settings, provider: Optional[AIProvider] = None) -> FastAPI:
    """
    Build the gateway application.
    `provider` defaults to an OpenAIProvider built from settings; tests pass a fake.
    """
    provider = provider or OpenAIProvider.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("✅ Gateway started")
        yield
        await app.state.gateway.provider.aclose()
        logger.info("Gateway stopped")

    app = FastAPI(title="Language Partner Gateway", lifespan=lifespan)
    app.state.settings = settings
    app.state.gateway = LanguageGateway(provider, settings)

    # OPTIONS on any path; CORSMiddleware below wraps it
    app.middleware("http")(answer_options)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )

    register_exception_handlers(app)
    app.include_router(router)
    return app


def build_app() -> FastAPI:
    """Factory for `uvicorn app.main:build_app --factory`"""
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    return create_app(settings)


def main():
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        logger.error(f"❌ {e}")
        raise SystemExit(1)

    setup_logging(settings.log_level)
    settings.log_summary()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
