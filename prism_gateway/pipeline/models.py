"""
Pydantic models and enums for the generation pipeline.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from ..errors import UpstreamFailure


# ── Step names ───────────────────────────────────────────────────────────────

class StepName(str, Enum):
    CHARACTER_GENERATION = "character_generation"
    VIDEO_GENERATION = "video_generation"


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"


# ── Inbound upload ───────────────────────────────────────────────────────────

class ImageUpload(BaseModel):
    """The uploaded image, already read into memory."""
    filename: str = "upload"
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    def as_file(self) -> tuple[str, bytes, str]:
        """httpx multipart file tuple."""
        return (self.filename, self.content, self.content_type)


# ── Upstream responses ───────────────────────────────────────────────────────

class GenerationResponse(BaseModel):
    """Body returned by generate_ai_character / generate_ai_video."""
    model_config = ConfigDict(extra="allow")

    output: str
    generation_time: float = 0.0
    credits_remaining: Optional[float] = None
    credits_used: float = 0.0
    type: str = ""
    extra: Optional[dict] = None

    @property
    def transparent_video_url(self) -> Optional[str]:
        if not self.extra:
            return None
        return self.extra.get("transparent_video_url")


class CallResult(BaseModel):
    """Outcome of one outbound call: either a response or a failure."""
    response: Optional[GenerationResponse] = None
    failure: Optional[UpstreamFailure] = None

    @property
    def ok(self) -> bool:
        return self.response is not None

    @classmethod
    def success(cls, response: GenerationResponse) -> "CallResult":
        return cls(response=response)

    @classmethod
    def failed(cls, failure: UpstreamFailure) -> "CallResult":
        return cls(failure=failure)


class GenerationAttempt(BaseModel):
    number: int
    outcome: AttemptOutcome
    status_code: Optional[int] = None
    error: Optional[str] = None


# ── Pipeline results ─────────────────────────────────────────────────────────

class StepRecord(BaseModel):
    step: StepName
    response: GenerationResponse
    attempts: int = 1


class PipelineResult(BaseModel):
    steps: list[StepRecord] = Field(default_factory=list)
    failed_step: Optional[StepName] = None
    failure: Optional[UpstreamFailure] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.failure is None

    def response_for(self, step: StepName) -> Optional[GenerationResponse]:
        for record in self.steps:
            if record.step == step:
                return record.response
        return None

    @property
    def character(self) -> Optional[GenerationResponse]:
        return self.response_for(StepName.CHARACTER_GENERATION)

    @property
    def video(self) -> Optional[GenerationResponse]:
        return self.response_for(StepName.VIDEO_GENERATION)

    @property
    def total_credits_used(self) -> float:
        return sum(r.response.credits_used for r in self.steps)

    @property
    def total_generation_time(self) -> float:
        return sum(r.response.generation_time for r in self.steps)

    @property
    def credits_remaining(self) -> Optional[float]:
        if not self.steps:
            return None
        return self.steps[-1].response.credits_remaining


# ── Browser responses ────────────────────────────────────────────────────────

class UploadedFileInfo(BaseModel):
    name: str
    size: int
    type: str


class UploadData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    video_url: str = Field(alias="videoUrl")
    transparent_video_url: Optional[str] = Field(default=None, alias="transparentVideoUrl")
    character_url: Optional[str] = Field(default=None, alias="characterUrl")
    character_generation_time: Optional[float] = Field(default=None, alias="characterGenerationTime")
    video_generation_time: float = Field(alias="videoGenerationTime")
    total_generation_time: float = Field(alias="totalGenerationTime")
    credits_used: float = Field(alias="creditsUsed")
    credits_remaining: Optional[float] = Field(default=None, alias="creditsRemaining")


class UploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Video generated successfully"
    data: UploadData
    uploaded_file: UploadedFileInfo = Field(alias="uploadedFile")


class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: str
    details: str = ""
    step: str
    status_code: int = Field(alias="statusCode")
    retries_attempted: Optional[int] = Field(default=None, alias="retriesAttempted")

    def body(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
