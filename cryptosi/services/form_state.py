"""
Editable form state for one generation session.

All cross-field effects live in the named transition methods below, so a
model switch or an uploaded source image changes the state in exactly one
place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from ..catalog import (
    COMMON_NEGATIVE_PROMPT,
    DEFAULT_MODEL,
    ModelCapabilities,
    model_capabilities,
)
from ..utils.errors import FormValidationError

logger = logging.getLogger("cryptosi.form_state")

DIMENSION_MIN = 512
DIMENSION_MAX = 2048
DIMENSION_STEP = 64
STEPS_MIN, STEPS_MAX = 1, 150
CFG_MIN, CFG_MAX = 1.0, 20.0
TEMPERATURE_MIN, TEMPERATURE_MAX = 0.0, 0.5

CONTROLNET_SLOT = "controlnet_image"
SOURCE_SLOT = "init_image"
UPLOAD_SLOTS = (CONTROLNET_SLOT, SOURCE_SLOT)
SLOT_LABELS = {CONTROLNET_SLOT: "a ControlNet reference image", SOURCE_SLOT: "a source image"}


def _clamp(value, low, high):
    return max(low, min(high, value))


def snap_dimension(value: int) -> int:
    """Clamp to the supported range and round to the nearest 64px multiple."""
    snapped = int(round(value / DIMENSION_STEP)) * DIMENSION_STEP
    return _clamp(snapped, DIMENSION_MIN, DIMENSION_MAX)


def step_dimension(value: int, direction: int) -> int:
    """Move one stepper notch up (+1) or down (-1), staying on the 64px grid."""
    if direction > 0:
        stepped = (value // DIMENSION_STEP + 1) * DIMENSION_STEP
    else:
        stepped = (-(-value // DIMENSION_STEP) - 1) * DIMENSION_STEP
    return _clamp(stepped, DIMENSION_MIN, DIMENSION_MAX)


@dataclass
class FormState:
    model_name: str = DEFAULT_MODEL
    prompt: str = ""
    negative_prompt: str = ""
    use_common_negatives: bool = False
    width: int = 1024
    height: int = 1024
    steps: int = 30
    cfg_scale: float = 7.5
    controlnet_name: str = "canny"
    controlnet_image: Optional[str] = None
    init_image: Optional[str] = None
    temperature: float = 0.3
    # Collected but not part of the outbound payload
    enable_refiner: bool = False
    _upload_tokens: Dict[str, int] = field(default_factory=lambda: {slot: 0 for slot in UPLOAD_SLOTS}, repr=False)

    @property
    def capabilities(self) -> ModelCapabilities:
        return model_capabilities(self.model_name)

    # --- model ---

    def set_model(self, model_name: str) -> None:
        caps = model_capabilities(model_name)
        self.model_name = model_name
        allowed = caps.allowed_controlnet_types
        if allowed and self.controlnet_name not in allowed:
            logger.debug("Resetting controlnet type %s to %s for %s", self.controlnet_name, allowed[0], model_name)
            self.controlnet_name = allowed[0]

    # --- text ---

    def set_prompt_text(self, text: str) -> None:
        self.prompt = text

    def set_negative_prompt(self, text: str) -> None:
        self.negative_prompt = text
        self.use_common_negatives = text == COMMON_NEGATIVE_PROMPT

    def set_common_negatives(self, checked: bool) -> None:
        self.use_common_negatives = checked
        self.negative_prompt = COMMON_NEGATIVE_PROMPT if checked else ""

    # --- numeric fields ---

    def set_width(self, value: int) -> None:
        self.width = snap_dimension(value)

    def set_height(self, value: int) -> None:
        self.height = snap_dimension(value)

    def step_width(self, direction: int) -> None:
        self.width = step_dimension(self.width, direction)

    def step_height(self, direction: int) -> None:
        self.height = step_dimension(self.height, direction)

    def set_steps(self, value: int) -> None:
        self.steps = int(_clamp(value, STEPS_MIN, STEPS_MAX))

    def set_cfg_scale(self, value: float) -> None:
        self.cfg_scale = float(_clamp(value, CFG_MIN, CFG_MAX))

    def set_temperature(self, value: float) -> None:
        self.temperature = float(_clamp(value, TEMPERATURE_MIN, TEMPERATURE_MAX))

    # --- model specific toggles ---

    def set_controlnet_name(self, name: str) -> None:
        allowed = self.capabilities.allowed_controlnet_types
        if name not in allowed:
            raise FormValidationError(
                f"ControlNet type '{name}' is not available for {self.model_name}"
            )
        self.controlnet_name = name

    def set_refiner(self, enabled: bool) -> None:
        self.enable_refiner = enabled

    # --- uploads ---

    def _accepts(self, slot: str) -> bool:
        caps = self.capabilities
        if slot == CONTROLNET_SLOT:
            return caps.is_controlnet
        return caps.supports_init_image

    def begin_upload(self, slot: str) -> int:
        """Register a new read for `slot`; only the newest token may commit.

        Raises FormValidationError when the selected model has no such field.
        """
        if slot not in self._upload_tokens:
            raise ValueError(f"Unknown upload slot: {slot}")
        if not self._accepts(slot):
            raise FormValidationError(f"{self.model_name} does not accept {SLOT_LABELS[slot]}")
        self._upload_tokens[slot] += 1
        return self._upload_tokens[slot]

    def _is_current(self, slot: str, token: int) -> bool:
        current = self._upload_tokens[slot] == token
        if not current:
            logger.info("Discarding stale %s upload (token=%d, latest=%d)", slot, token, self._upload_tokens[slot])
            return False
        # The model may have changed while the file was being read
        if not self._accepts(slot):
            logger.info("Discarding %s upload, %s does not use it", slot, self.model_name)
            return False
        return True

    def apply_controlnet_image(self, token: int, data_url: str) -> bool:
        if not self._is_current(CONTROLNET_SLOT, token):
            return False
        self.controlnet_image = data_url
        return True

    def apply_source_image(self, token: int, data_url: str, width: int, height: int) -> bool:
        """Store the image-to-image source and adopt its native size."""
        if not self._is_current(SOURCE_SLOT, token):
            return False
        self.width = width
        self.height = height
        self.init_image = data_url
        return True

    def clear_source_image(self) -> None:
        # Invalidate reads still in flight so they cannot bring the image back
        self._upload_tokens[SOURCE_SLOT] += 1
        self.init_image = None
