from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from ..config import get_settings
from ..schemas.generation import GenerationPayload, GenerationResponse
from ..utils.errors import (
    GENERIC_FAILURE_MESSAGE,
    ProtocolError,
    TransportError,
    sanitize_error_message,
)
from ..utils.http_client import HttpClient
from .image_io import result_data_url

logger = logging.getLogger("cryptosi.hyperbolic")


class HyperbolicClient:
    """Posts one composed request to the Hyperbolic image API."""

    def __init__(self):
        self._client: Optional[HttpClient] = None

    def _ensure_client(self) -> HttpClient:
        if not self._client:
            settings = get_settings()
            # One attempt per submission; the user decides whether to retry
            self._client = HttpClient(timeout=settings.request_timeout)
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.close()
            self._client = None

    def _headers(self, api_key: str, origin: Optional[str]) -> Dict[str, str]:
        settings = get_settings()
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Origin": origin or settings.app_origin,
        }

    async def generate(self, payload: GenerationPayload, api_key: str, origin: Optional[str] = None) -> str:
        """Submit the payload and return the first generated image as a data URL."""
        client = self._ensure_client()
        settings = get_settings()
        url = settings.generation_url

        logger.info("Submitting generation request model=%s size=%dx%d", payload.model_name, payload.width, payload.height)
        try:
            response = await client.post(
                url,
                headers=self._headers(api_key, origin),
                json=payload.to_request_body(),
            )
        except httpx.HTTPStatusError as exc:
            body = _error_body(exc.response)
            logger.error("API Error: status=%s body=%s", exc.response.status_code, body)
            raise TransportError(
                _server_message(body) or GENERIC_FAILURE_MESSAGE,
                upstream_status=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("API Error: %s", exc)
            raise TransportError(GENERIC_FAILURE_MESSAGE) from exc

        return parse_generation_response(response)


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _server_message(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return sanitize_error_message(message)
    return None


def parse_generation_response(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError as exc:
        logger.error("Generation response is not JSON: %.200s", response.text)
        raise ProtocolError(GENERIC_FAILURE_MESSAGE) from exc
    try:
        parsed = GenerationResponse.model_validate(data)
    except ValidationError as exc:
        logger.error("Invalid response format from API: %s", exc.errors())
        raise ProtocolError(GENERIC_FAILURE_MESSAGE) from exc
    return result_data_url(parsed.images[0].image)


hyperbolic_client = HyperbolicClient()
