from __future__ import annotations

from typing import Any, Dict, Optional


class ConfigurationError(ValueError):
    """Raised at startup when the environment cannot produce valid Settings."""


class GatewayError(Exception):
    """Base error that maps straight onto an HTTP error response."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(GatewayError):
    """Required request field missing or empty."""

    status_code = 400


class UpstreamError(GatewayError):
    """The provider call raised or returned something unusable."""

    status_code = 500

    @classmethod
    def from_exception(cls, operation: str, exc: BaseException) -> "UpstreamError":
        return cls(f"{operation} failed", details=str(exc) or exc.__class__.__name__)
