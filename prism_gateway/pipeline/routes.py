"""
FastAPI routes for the upload gateway.

  POST    /api/upload  — upload an image, run the generation pipeline
  OPTIONS /api/upload  — CORS preflight
  GET     /api/styles  — list character style presets
"""

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import UploadFile

from ..presets import list_presets
from .models import ImageUpload

logger = logging.getLogger(__name__)

upload_router = APIRouter(prefix="/api", tags=["upload"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def _text_field(form, name: str) -> Optional[str]:
    value = form.get(name)
    return value if isinstance(value, str) else None


async def _read_image(form, max_bytes: int) -> Optional[ImageUpload]:
    """
    Pull the `image` file out of the form. A text value counts as no image.
    At most max_bytes + 1 bytes are read, enough for the size check to reject.
    """
    image = form.get("image")
    if not isinstance(image, UploadFile):
        return None
    content = await image.read(max_bytes + 1)
    return ImageUpload(
        filename=image.filename or "upload",
        content_type=image.content_type or "",
        content=content,
    )


@upload_router.post("/upload")
async def upload(request: Request):
    """
    Validate the upload, generate character/video, return URLs and credits.

    Form fields: image (file), style, characterDescription, animationPrompt, prompt.
    """
    config = request.app.state.config
    gateway = request.app.state.gateway

    async with request.form() as form:
        upload_image = await _read_image(form, config.max_upload_bytes)
        style = _text_field(form, "style")
        character_description = _text_field(form, "characterDescription")
        animation_prompt = _text_field(form, "animationPrompt") or _text_field(form, "prompt")

    status_code, body = await gateway.handle(
        upload_image,
        style=style,
        character_description=character_description,
        animation_prompt=animation_prompt,
    )
    return JSONResponse(status_code=status_code, content=body)


@upload_router.options("/upload")
async def upload_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@upload_router.get("/styles")
async def styles():
    return {"styles": list_presets()}
