"""Supported models and the form rules derived from the selected one."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Tuple

from .utils.errors import UnknownModelError

DEFAULT_MODEL = "SDXL1.0-base"
IMAGE_TO_IMAGE_MODEL = "FLUX.1-dev"
REFINER_MODELS = frozenset({"SDXL1.0-base", "SDXL-turbo"})

# Insertion order is the order shown in the model selector
MODEL_LABELS: Dict[str, str] = {
    "SDXL1.0-base": "Stable Diffusion XL 1.0 (Newest)",
    "SDXL-turbo": "SDXL-Turbo (Fast)",
    "SD2": "Stable Diffusion v2",
    "SD1.5": "Stable Diffusion v1.5",
    "SSD": "Segmind Stable Diffusion 1B",
    "SDXL-ControlNet": "SDXL1.0-base + ControlNet",
    "SD1.5-ControlNet": "SD1.5 + ControlNet",
    "FLUX.1-dev": "Flux 1.0 (Experimental)",
}

CONTROLNET_MODELS: Dict[str, Tuple[str, ...]] = {
    "SDXL-ControlNet": ("canny", "softedge", "depth", "openpose"),
    "SD1.5-ControlNet": ("canny", "softedge", "depth", "openpose"),
}

COMMON_FIELDS = frozenset({"prompt", "width", "height", "steps", "cfg_scale"})

COMMON_NEGATIVE_PROMPT = (
    "worst quality, low quality, blurry, pixelated, jpeg artifacts, low resolution, "
    "bad anatomy, deformed, extra limbs, missing arms, fused fingers, mutated hands, "
    "poorly drawn face, out of frame, cropped, poorly drawn hands, distorted, "
    "asymmetrical, text, watermark, signature, logo, username, overexposed, "
    "underexposed, oversaturated, unnatural colors, cartoon, ugly, boring"
)


@dataclass(frozen=True, slots=True)
class ModelCapabilities:
    model_name: str
    fields_visible: FrozenSet[str]
    required_fields: FrozenSet[str]
    allowed_controlnet_types: Tuple[str, ...] = ()
    is_controlnet: bool = False
    supports_negative_prompt: bool = True
    supports_init_image: bool = False
    supports_refiner: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "model_name": self.model_name,
            "fields_visible": sorted(self.fields_visible),
            "required_fields": sorted(self.required_fields),
            "allowed_controlnet_types": list(self.allowed_controlnet_types),
            "is_controlnet": self.is_controlnet,
            "supports_negative_prompt": self.supports_negative_prompt,
            "supports_init_image": self.supports_init_image,
            "supports_refiner": self.supports_refiner,
        }


def is_controlnet_model(model_name: str) -> bool:
    return "ControlNet" in model_name


def model_capabilities(model_name: str) -> ModelCapabilities:
    """Map a model id to what the form shows and requires for it.

    Raises UnknownModelError for ids outside the catalog.
    """
    if model_name not in MODEL_LABELS:
        raise UnknownModelError(f"Unknown model: {model_name}")

    visible = set(COMMON_FIELDS)
    required = {"prompt"}
    controlnet = is_controlnet_model(model_name)
    image_to_image = model_name == IMAGE_TO_IMAGE_MODEL
    refiner = model_name in REFINER_MODELS

    if controlnet:
        visible.update({"controlnet_name", "controlnet_image"})
        required.add("controlnet_image")
    if image_to_image:
        visible.update({"init_image", "temperature"})
    else:
        visible.add("negative_prompt")
    if refiner:
        visible.add("enable_refiner")

    return ModelCapabilities(
        model_name=model_name,
        fields_visible=frozenset(visible),
        required_fields=frozenset(required),
        allowed_controlnet_types=CONTROLNET_MODELS.get(model_name, ()),
        is_controlnet=controlnet,
        supports_negative_prompt=not image_to_image,
        supports_init_image=image_to_image,
        supports_refiner=refiner,
    )


def list_models() -> List[Dict[str, str]]:
    return [{"id": model_id, "label": label} for model_id, label in MODEL_LABELS.items()]
