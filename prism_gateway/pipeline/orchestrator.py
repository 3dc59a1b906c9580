"""
GenerationPipeline — ordered steps, each with its own retry policy.

  character_video mode:  Character Generation → Video Generation
  video_only mode:       Video Generation (uploaded image sent directly)

The output URL of each step is handed to the next one. The first failure
stops the pipeline; later steps are never reached.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from ..config import PrismConfig
from .models import (
    CallResult,
    ImageUpload,
    PipelineResult,
    StepName,
    StepRecord,
)
from .retry import NO_RETRY, RetryPolicy, Sleep, run_with_retry

logger = logging.getLogger(__name__)


class StepContext:
    """Inputs flowing through the pipeline for one request."""

    def __init__(self, image: ImageUpload, character_description: str, animation_prompt: str):
        self.image = image
        self.character_description = character_description
        self.animation_prompt = animation_prompt
        self.previous_output: Optional[str] = None


class PipelineStep(ABC):
    name: StepName

    def __init__(self, policy: RetryPolicy = NO_RETRY):
        self.policy = policy

    @abstractmethod
    async def call(self, client, ctx: StepContext) -> CallResult:
        """Issue one outbound call for this step."""


class CharacterStep(PipelineStep):
    name = StepName.CHARACTER_GENERATION

    async def call(self, client, ctx: StepContext) -> CallResult:
        return await client.generate_ai_character(ctx.image, ctx.character_description)


class VideoStep(PipelineStep):
    name = StepName.VIDEO_GENERATION

    def __init__(self, policy: RetryPolicy = NO_RETRY, loop: Optional[bool] = None):
        super().__init__(policy)
        self.loop = loop

    async def call(self, client, ctx: StepContext) -> CallResult:
        # Chained after character generation → send its URL; otherwise the raw upload
        character = ctx.previous_output or ctx.image
        return await client.generate_ai_video(character, ctx.animation_prompt, loop=self.loop)


def build_steps(config: PrismConfig) -> list[PipelineStep]:
    """Steps for the configured pipeline mode."""
    video = VideoStep(
        RetryPolicy(max_attempts=config.video_max_attempts, base_delay=config.retry_base_delay),
        loop=config.video_loop,
    )
    if config.pipeline_mode == "video_only":
        return [video]
    character = CharacterStep(
        RetryPolicy(max_attempts=config.character_max_attempts, base_delay=config.retry_base_delay)
    )
    return [character, video]


class GenerationPipeline:
    """
    Runs the steps for one upload.

    Usage:
        pipeline = GenerationPipeline(client, build_steps(config))
        result = await pipeline.run(image, description, prompt)
    """

    def __init__(self, client, steps: list[PipelineStep], sleep: Sleep = asyncio.sleep):
        self.client = client
        self.steps = steps
        self.sleep = sleep

    async def run(self, image: ImageUpload, character_description: str, animation_prompt: str) -> PipelineResult:
        ctx = StepContext(image, character_description, animation_prompt)
        result = PipelineResult()

        for index, step in enumerate(self.steps, start=1):
            logger.info(f"🎬 Step {index}/{len(self.steps)}: {step.name.value}")

            outcome = await run_with_retry(
                lambda: step.call(self.client, ctx),
                step.policy,
                sleep=self.sleep,
                label=step.name.value,
            )

            if not outcome.result.ok:
                logger.error(
                    f"Step {step.name.value} failed after {outcome.attempt_count} attempt(s): "
                    f"{outcome.result.failure.details}"
                )
                result.failed_step = step.name
                result.failure = outcome.result.failure
                result.attempts = outcome.attempt_count
                return result

            response = outcome.result.response
            result.steps.append(StepRecord(step=step.name, response=response, attempts=outcome.attempt_count))
            ctx.previous_output = response.output

        logger.info(
            f"💰 Pipeline complete: credits used={result.total_credits_used}, "
            f"remaining={result.credits_remaining}, time={result.total_generation_time:.1f}s"
        )
        return result
