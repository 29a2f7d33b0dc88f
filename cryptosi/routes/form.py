"""
Form API.

Every control of the generation form maps to one transition endpoint. Each
endpoint returns the full form snapshot so the client can re-render from a
single source of truth.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, File, Request, Response, UploadFile, status

from ..config import get_settings
from ..schemas.generation import (
    CommonNegativesToggle,
    ControlnetSelection,
    DimensionStep,
    Dimensions,
    DismissNotification,
    FormSnapshot,
    ModelSelection,
    PromptText,
    RefinerToggle,
    Sampling,
    TemperatureValue,
)
from ..services.form_state import CONTROLNET_SLOT, SOURCE_SLOT
from ..services.image_io import ingest_image
from ..services.session import FormSession, session_store
from ..utils.errors import GenerationError, api_error, from_generation_error

logger = logging.getLogger("cryptosi.routes.form")

router = APIRouter()

SESSION_COOKIE = "form_session"


def get_session(
    response: Response,
    form_session: Optional[str] = Cookie(default=None),
) -> FormSession:
    session = session_store.get_or_create(form_session)
    if session.session_id != form_session:
        response.set_cookie(SESSION_COOKIE, session.session_id, httponly=True, samesite="lax")
    return session


@router.get("/form", response_model=FormSnapshot)
async def get_form(session: FormSession = Depends(get_session)):
    return session.snapshot()


@router.post("/form/model", response_model=FormSnapshot)
async def select_model(body: ModelSelection, session: FormSession = Depends(get_session)):
    try:
        session.state.set_model(body.model_name)
    except GenerationError as exc:
        raise from_generation_error(exc) from exc
    return session.snapshot()


@router.post("/form/prompt", response_model=FormSnapshot)
async def set_prompt(body: PromptText, session: FormSession = Depends(get_session)):
    session.state.set_prompt_text(body.text)
    return session.snapshot()


@router.post("/form/negative-prompt", response_model=FormSnapshot)
async def set_negative_prompt(body: PromptText, session: FormSession = Depends(get_session)):
    session.state.set_negative_prompt(body.text)
    return session.snapshot()


@router.post("/form/common-negatives", response_model=FormSnapshot)
async def toggle_common_negatives(body: CommonNegativesToggle, session: FormSession = Depends(get_session)):
    session.state.set_common_negatives(body.checked)
    return session.snapshot()


@router.post("/form/dimensions", response_model=FormSnapshot)
async def set_dimensions(body: Dimensions, session: FormSession = Depends(get_session)):
    if body.width is not None:
        session.state.set_width(body.width)
    if body.height is not None:
        session.state.set_height(body.height)
    return session.snapshot()


@router.post("/form/dimensions/step", response_model=FormSnapshot)
async def step_dimension(body: DimensionStep, session: FormSession = Depends(get_session)):
    if body.field == "width":
        session.state.step_width(body.direction)
    else:
        session.state.step_height(body.direction)
    return session.snapshot()


@router.post("/form/sampling", response_model=FormSnapshot)
async def set_sampling(body: Sampling, session: FormSession = Depends(get_session)):
    if body.steps is not None:
        session.state.set_steps(body.steps)
    if body.cfg_scale is not None:
        session.state.set_cfg_scale(body.cfg_scale)
    return session.snapshot()


@router.post("/form/controlnet", response_model=FormSnapshot)
async def select_controlnet(body: ControlnetSelection, session: FormSession = Depends(get_session)):
    try:
        session.state.set_controlnet_name(body.controlnet_name)
    except GenerationError as exc:
        raise from_generation_error(exc) from exc
    return session.snapshot()


@router.post("/form/temperature", response_model=FormSnapshot)
async def set_temperature(body: TemperatureValue, session: FormSession = Depends(get_session)):
    session.state.set_temperature(body.temperature)
    return session.snapshot()


@router.post("/form/refiner", response_model=FormSnapshot)
async def toggle_refiner(body: RefinerToggle, session: FormSession = Depends(get_session)):
    session.state.set_refiner(body.enabled)
    return session.snapshot()


async def _read_upload(upload: UploadFile) -> bytes:
    settings = get_settings()
    if upload.size and upload.size > settings.max_upload_bytes:
        raise api_error("File size too large", status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, code="file_too_large")
    if upload.content_type and not upload.content_type.startswith("image/"):
        raise api_error("File must be an image", status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, code="unsupported_media_type")
    data = await upload.read()
    if len(data) > settings.max_upload_bytes:
        raise api_error("File size too large", status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, code="file_too_large")
    return data


@router.post("/form/controlnet-image", response_model=FormSnapshot)
async def upload_controlnet_image(
    image: UploadFile = File(...),
    session: FormSession = Depends(get_session),
):
    try:
        token = session.state.begin_upload(CONTROLNET_SLOT)
    except GenerationError as exc:
        raise from_generation_error(exc) from exc
    logger.debug("Reference image upload: %s (%s)", image.filename, image.content_type)
    data = await _read_upload(image)
    try:
        ingested = ingest_image(data)
    except GenerationError as exc:
        raise from_generation_error(exc) from exc
    session.state.apply_controlnet_image(token, ingested.data_url)
    return session.snapshot()


@router.post("/form/source-image", response_model=FormSnapshot)
async def upload_source_image(
    image: UploadFile = File(...),
    session: FormSession = Depends(get_session),
):
    try:
        token = session.state.begin_upload(SOURCE_SLOT)
    except GenerationError as exc:
        raise from_generation_error(exc) from exc
    logger.debug("Source image upload: %s (%s)", image.filename, image.content_type)
    data = await _read_upload(image)
    try:
        ingested = ingest_image(data)
    except GenerationError as exc:
        raise from_generation_error(exc) from exc
    session.state.apply_source_image(token, ingested.data_url, ingested.width, ingested.height)
    return session.snapshot()


@router.delete("/form/source-image", response_model=FormSnapshot)
async def remove_source_image(session: FormSession = Depends(get_session)):
    session.state.clear_source_image()
    return session.snapshot()


@router.post("/form/notifications/dismiss", response_model=FormSnapshot)
async def dismiss_notification(body: DismissNotification, session: FormSession = Depends(get_session)):
    session.dismiss(body.id)
    return session.snapshot()


@router.post("/generate", response_model=FormSnapshot)
async def generate_image(request: Request, session: FormSession = Depends(get_session)):
    settings = get_settings()
    try:
        await session.generate(settings.hyperbolic_api_key, origin=request.headers.get("origin"))
    except GenerationError as exc:
        raise from_generation_error(exc) from exc
    return session.snapshot()
