"""
Upload Gateway — validates one upload and drives the generation pipeline.

Every path out of handle() is a (status_code, body) pair; nothing raises past it.
"""

import logging
from typing import Optional

from ..config import PrismConfig
from ..errors import GatewayError, ValidationError, user_message_for
from ..presets import resolve_texts
from .models import (
    ErrorEnvelope,
    ImageUpload,
    PipelineResult,
    UploadData,
    UploadedFileInfo,
    UploadResponse,
)
from .orchestrator import GenerationPipeline

logger = logging.getLogger(__name__)


def validate_upload(image: Optional[ImageUpload], config: PrismConfig) -> ImageUpload:
    """Reject missing, non-image or oversized uploads before any outbound call."""
    if image is None:
        raise ValidationError("No image file provided")
    if not (image.content_type or "").startswith("image/"):
        raise ValidationError("Invalid file type. Please upload an image.")
    if image.size > config.max_upload_bytes:
        raise ValidationError(f"File size exceeds {config.max_upload_mb}MB limit")
    return image


def error_envelope(exc: GatewayError) -> ErrorEnvelope:
    return ErrorEnvelope(
        error=exc.message,
        details=exc.details,
        step=exc.step,
        status_code=exc.status_code,
    )


def failure_envelope(result: PipelineResult) -> ErrorEnvelope:
    failure = result.failure
    step = result.failed_step.value
    return ErrorEnvelope(
        error=user_message_for(failure.status_code, step, failure.kind),
        details=failure.details or failure.message,
        step=step,
        status_code=failure.status_code,
        retries_attempted=result.attempts,
    )


def success_response(result: PipelineResult, image: ImageUpload) -> UploadResponse:
    video = result.video
    character = result.character
    data = UploadData(
        video_url=video.output,
        transparent_video_url=video.transparent_video_url,
        character_url=character.output if character else None,
        character_generation_time=character.generation_time if character else None,
        video_generation_time=video.generation_time,
        total_generation_time=result.total_generation_time,
        credits_used=result.total_credits_used,
        credits_remaining=result.credits_remaining,
    )
    return UploadResponse(
        data=data,
        uploaded_file=UploadedFileInfo(name=image.filename, size=image.size, type=image.content_type),
    )


class UploadGateway:
    def __init__(self, config: PrismConfig, pipeline: GenerationPipeline):
        self.config = config
        self.pipeline = pipeline

    async def handle(
        self,
        image: Optional[ImageUpload],
        style: Optional[str] = None,
        character_description: Optional[str] = None,
        animation_prompt: Optional[str] = None,
    ) -> tuple[int, dict]:
        try:
            image = validate_upload(image, self.config)
            description, prompt = resolve_texts(style, character_description, animation_prompt)
            self.config.require_api_key()

            logger.info(f"📤 Upload accepted: {image.filename} ({image.size} bytes, {image.content_type})")
            result = await self.pipeline.run(image, description, prompt)
        except GatewayError as e:
            logger.warning(f"Upload rejected ({e.status_code}): {e.message}")
            envelope = error_envelope(e)
            return envelope.status_code, envelope.body()
        except Exception as e:
            logger.error(f"Upload error: {e}", exc_info=True)
            envelope = ErrorEnvelope(
                error="An unexpected error occurred",
                details=str(e),
                step="upload",
                status_code=500,
            )
            return 500, envelope.body()

        if not result.ok:
            envelope = failure_envelope(result)
            logger.error(f"Generation failed at {envelope.step}: {envelope.details}")
            return envelope.status_code, envelope.body()

        return 200, success_response(result, image).model_dump(by_alias=True, exclude_none=True)
