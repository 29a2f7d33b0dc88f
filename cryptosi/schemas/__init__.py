"""Pydantic schema exports."""

from .generation import (
    FormSnapshot,
    GenerationPayload,
    GenerationResponse,
    Notification,
)

__all__ = [
    "FormSnapshot",
    "GenerationPayload",
    "GenerationResponse",
    "Notification",
]
