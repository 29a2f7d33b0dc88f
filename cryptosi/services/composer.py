from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..schemas.generation import GenerationPayload
from ..utils.errors import FormValidationError
from .form_state import FormState
from .image_io import strip_data_url

logger = logging.getLogger("cryptosi.composer")

BACKEND = "auto"


@dataclass(slots=True)
class ComposedRequest:
    payload: GenerationPayload
    warnings: List[str] = field(default_factory=list)


def validate_form(state: FormState, api_key: Optional[str]) -> None:
    """Raise FormValidationError for anything that must block submission."""
    caps = state.capabilities
    if not state.prompt:
        raise FormValidationError("Please enter a prompt")
    if "controlnet_image" in caps.required_fields and not state.controlnet_image:
        raise FormValidationError("Please upload a reference image for ControlNet")
    if not api_key:
        raise FormValidationError("API key is not configured")


def compose_request(state: FormState, api_key: Optional[str]) -> ComposedRequest:
    """Build the outbound payload from the current form state."""
    validate_form(state, api_key)
    caps = state.capabilities
    warnings: List[str] = []

    if not caps.supports_negative_prompt and state.negative_prompt:
        warnings.append(
            f"{state.model_name} does not support negative prompts. "
            "The negative prompt will be ignored."
        )

    payload = GenerationPayload(
        model_name=state.model_name,
        prompt=state.prompt,
        width=state.width,
        height=state.height,
        steps=state.steps,
        cfg_scale=state.cfg_scale,
        backend=BACKEND,
    )

    if caps.supports_negative_prompt and state.negative_prompt:
        payload.negative_prompt = state.negative_prompt

    if caps.is_controlnet:
        payload.controlnet_name = state.controlnet_name
        payload.controlnet_image = strip_data_url(state.controlnet_image)

    if caps.supports_init_image and state.init_image:
        payload.init_image = strip_data_url(state.init_image)
        payload.temperature = state.temperature

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Request body: %s", loggable_body(payload))
    return ComposedRequest(payload=payload, warnings=warnings)


def loggable_body(payload: GenerationPayload) -> dict:
    """Request body with image fields shortened for logs."""
    body = payload.to_request_body()
    for key in ("controlnet_image", "init_image"):
        if key in body:
            body[key] = body[key][:50] + "..."
    return body
