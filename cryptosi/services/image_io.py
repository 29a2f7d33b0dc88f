from __future__ import annotations

import base64
import io
import logging
from dataclasses import dataclass
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from ..utils.errors import InvalidImageError

logger = logging.getLogger("cryptosi.image_io")

RESULT_MIME_TYPE = "image/jpeg"


@dataclass(slots=True)
class IngestedImage:
    data_url: str
    width: int
    height: int
    mime_type: str


def to_data_url(data: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def strip_data_url(data_url: str) -> str:
    """Return only the base64 payload of a data URL."""
    _, sep, payload = data_url.partition(",")
    return payload if sep else data_url


def result_data_url(image_b64: str) -> str:
    return f"data:{RESULT_MIME_TYPE};base64,{image_b64}"


def _open_image(data: bytes) -> Tuple[Image.Image, str]:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidImageError("The selected file is not a readable image") from exc
    mime_type = Image.MIME.get(img.format or "", "application/octet-stream")
    return img, mime_type


def ingest_image(data: bytes) -> IngestedImage:
    """Encode an uploaded image as a data URL and read its native size."""
    if not data:
        raise InvalidImageError("The selected file is empty")
    img, mime_type = _open_image(data)
    width, height = img.size
    logger.debug("Ingested %s image %dx%d (%d bytes)", mime_type, width, height, len(data))
    return IngestedImage(
        data_url=to_data_url(data, mime_type),
        width=width,
        height=height,
        mime_type=mime_type,
    )
