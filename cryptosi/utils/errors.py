from __future__ import annotations

import re
from typing import Optional

from fastapi import HTTPException, status

# Patterns that might leak sensitive information
SENSITIVE_PATTERNS = [
    r"api[_-]?key[=:\s]+\S+",
    r"password[=:\s]+\S+",
    r"token[=:\s]+\S+",
    r"secret[=:\s]+\S+",
    r"bearer\s+\S+",
    r"\b(?:\d{1,3}\.){3}\d{1,3}\b",  # IP addresses
    r"/home/\S+",  # File paths
    r"/var/\S+",
    r"/etc/\S+",
    r"traceback",
    r"stack trace",
]

GENERIC_FAILURE_MESSAGE = "Failed to generate image. Please try again."


class GenerationError(Exception):
    """Base class for every error surfaced to the form user."""

    code = "generation_error"
    status_code = status.HTTP_400_BAD_REQUEST
    title = "Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FormValidationError(GenerationError):
    """Input problem caught before any network call."""

    code = "validation_error"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class UnknownModelError(FormValidationError):
    code = "unknown_model"


class InvalidImageError(FormValidationError):
    code = "invalid_image"


class GenerationInProgressError(GenerationError):
    code = "generation_in_progress"
    status_code = status.HTTP_409_CONFLICT


class ProtocolError(GenerationError):
    """The API answered successfully but without a usable image."""

    code = "protocol_error"
    status_code = status.HTTP_502_BAD_GATEWAY


class TransportError(GenerationError):
    """Network or HTTP failure talking to the image API."""

    code = "transport_error"
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, *, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status


def sanitize_error_message(message: str) -> str:
    """Remove potentially sensitive information from error messages.

    Upstream messages are shown to the user verbatim otherwise, so keys,
    addresses and paths are redacted and very long bodies truncated.
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, "[REDACTED]", sanitized, flags=re.IGNORECASE)

    # Truncate very long messages that might contain stack traces
    if len(sanitized) > 500:
        sanitized = sanitized[:500] + "... [truncated]"

    return sanitized


def api_error(
    message: str,
    *,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    code: str = "bad_request",
    sanitize: bool = True,
) -> HTTPException:
    """Create an API error with optional message sanitization.

    Args:
        message: The error message to show to users
        status_code: HTTP status code
        code: Error code for programmatic handling
        sanitize: Whether to sanitize the message (default True)

    Returns:
        HTTPException with sanitized error details
    """
    user_message = sanitize_error_message(message) if sanitize else message

    return HTTPException(
        status_code=status_code,
        detail={"error": {"message": user_message, "code": code}}
    )


def from_generation_error(exc: GenerationError) -> HTTPException:
    """Translate a domain error into the JSON error envelope."""
    return api_error(exc.message, status_code=exc.status_code, code=exc.code)
