"""
PRISM AI API client.

Two endpoints, one POST each:
  POST {base}/api/v1/generate_ai_character  — image + description → character image URL
  POST {base}/api/v1/generate_ai_video      — character (URL or file) + prompt → video URL

Calls never raise for upstream problems. Each returns a CallResult carrying
either the parsed response or an UpstreamFailure.
"""

import logging
from typing import Optional, Union

import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError

from .config import PrismConfig
from .errors import (
    BAD_RESPONSE_STATUS,
    NETWORK_ERROR_STATUS,
    TIMEOUT_STATUS,
    FailureKind,
    UpstreamFailure,
    classify_status,
    extract_error_details,
)
from .pipeline.models import CallResult, GenerationResponse, ImageUpload, StepName

logger = logging.getLogger(__name__)

CHARACTER_PATH = "/api/v1/generate_ai_character"
VIDEO_PATH = "/api/v1/generate_ai_video"


class ChainResult(BaseModel):
    """Character → video chain without retries."""
    character: Optional[GenerationResponse] = None
    video: Optional[GenerationResponse] = None
    failed_step: Optional[StepName] = None
    failure: Optional[UpstreamFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class PrismClient:
    """
    Stateless request builder for the PRISM API.

    Usage:
        client = PrismClient(config)
        result = await client.generate_ai_character(image, "2d chibi avatar")
        if result.ok:
            video = await client.generate_ai_video(result.response.output, "waves")
    """

    def __init__(self, config: PrismConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport

    def _headers(self) -> dict:
        return {"x-api-key": self.config.require_api_key()}

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.config.request_timeout, connect=self.config.connect_timeout)

    async def _post(self, path: str, label: str, data: dict, files: Optional[dict] = None) -> CallResult:
        url = f"{self.config.base_url}{path}"
        headers = self._headers()

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout(), transport=self._transport, follow_redirects=True
            ) as client:
                resp = await client.post(url, headers=headers, data=data, files=files)
        except httpx.TimeoutException as e:
            logger.warning(f"[PRISM] {label} timed out: {e!r}")
            return CallResult.failed(UpstreamFailure(
                kind=FailureKind.TRANSPORT,
                status_code=TIMEOUT_STATUS,
                message=f"Request timeout during {label}",
                details=str(e) or e.__class__.__name__,
            ))
        except httpx.RequestError as e:
            logger.warning(f"[PRISM] Network error during {label}: {e!r}")
            return CallResult.failed(UpstreamFailure(
                kind=FailureKind.TRANSPORT,
                status_code=NETWORK_ERROR_STATUS,
                message=f"Network error during {label}",
                details=str(e) or e.__class__.__name__,
            ))

        if resp.is_error:
            details = extract_error_details(resp.text)
            return CallResult.failed(UpstreamFailure(
                kind=classify_status(resp.status_code),
                status_code=resp.status_code,
                message=f"{label.capitalize()} failed",
                details=details,
            ))

        try:
            parsed = GenerationResponse.model_validate(resp.json())
        except (ValueError, PydanticValidationError) as e:
            logger.error(f"[PRISM] Unreadable {label} response: {resp.text[:200]}")
            return CallResult.failed(UpstreamFailure(
                kind=FailureKind.PARSE_ERROR,
                status_code=BAD_RESPONSE_STATUS,
                message=f"Invalid response from {label}",
                details=str(e),
            ))

        logger.info(
            f"✅ [PRISM] {label} done in {parsed.generation_time}s "
            f"(credits used={parsed.credits_used}, remaining={parsed.credits_remaining})"
        )
        return CallResult.success(parsed)

    async def generate_ai_character(self, image: ImageUpload, character_description: str) -> CallResult:
        """
        Turn a photo into a stylized character image.

        Args:
            image:                 The uploaded photo.
            character_description: Style text, e.g. "2d chibi avatar with realistic proportions".

        Returns:
            CallResult whose response.output is the hosted character image URL.
        """
        logger.info(f"[PRISM] Character request: file={image.filename}, description={character_description[:60]}")
        return await self._post(
            CHARACTER_PATH,
            "character generation",
            data={"character_description": character_description},
            files={"image": image.as_file()},
        )

    async def generate_ai_video(
        self,
        character: Union[str, ImageUpload],
        prompt: str,
        loop: Optional[bool] = None,
    ) -> CallResult:
        """
        Animate a character image into a video.

        Args:
            character: Hosted character image URL, or the raw uploaded image.
            prompt:    Animation prompt, e.g. "The person waves at the camera".
            loop:      Ask for a looping video. Omitted from the request when None.

        Returns:
            CallResult whose response.output is the video URL. A transparent
            variant, when produced, is in response.extra.transparent_video_url.
        """
        data = {"prompt": prompt}
        files = None
        if isinstance(character, ImageUpload):
            files = {"character": character.as_file()}
        else:
            data["character"] = character
        if loop is not None:
            data["loop"] = "True" if loop else "False"

        logger.info(f"[PRISM] Video request: character={'file' if files else character[:80]}, prompt={prompt[:60]}")
        return await self._post(VIDEO_PATH, "video generation", data=data, files=files)

    async def generate_character_and_video(
        self,
        image: ImageUpload,
        character_description: str,
        animation_prompt: str,
    ) -> ChainResult:
        """Character then video, back to back, no retries. Stops at the first failure."""
        character = await self.generate_ai_character(image, character_description)
        if not character.ok:
            return ChainResult(failed_step=StepName.CHARACTER_GENERATION, failure=character.failure)

        video = await self.generate_ai_video(character.response.output, animation_prompt)
        if not video.ok:
            return ChainResult(
                character=character.response,
                failed_step=StepName.VIDEO_GENERATION,
                failure=video.failure,
            )
        return ChainResult(character=character.response, video=video.response)
