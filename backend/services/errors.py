"""Error taxonomy shared by the dialogue engine and its gateways."""
from typing import Any, Dict, Optional


class AssistantError(Exception):
    """Base class for errors raised by the assistant's services."""


class ValidationError(AssistantError):
    """Required device fields are missing."""

    def __init__(self, message: str, missing_fields: Optional[list] = None):
        self.missing_fields = list(missing_fields or [])
        super().__init__(message)


class UpstreamError(AssistantError):
    """
    An external gateway call failed or returned a malformed payload.

    Attributes:
        code: Machine-readable error code (e.g. "TIMEOUT_ERROR")
        message: Human-readable description
        details: Extra context for logging
    """

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class NotFoundError(AssistantError):
    """A lookup succeeded but matched nothing (e.g. an unknown zip code)."""
