import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from ..config import get_settings

router = APIRouter()

logger = logging.getLogger("cryptosi.health")

HEALTH_RESPONSE = {"ok": True, "status": "ok"}


@router.get(
    "/health",
    tags=["Monitoring"],
    summary="Health check endpoint",
    include_in_schema=False,
)
@router.get(
    "/healthz",
    tags=["Monitoring"],
    summary="Kubernetes style health check endpoint",
    include_in_schema=False,
)
async def health_check():
    logger.info("Health probe received")
    content = dict(HEALTH_RESPONSE)
    # A missing key is reported, not fatal: submissions fail with a validation error instead
    content["api_key_configured"] = bool(get_settings().hyperbolic_api_key)
    return JSONResponse(content=content, status_code=status.HTTP_200_OK)
