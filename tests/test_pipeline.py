from __future__ import annotations

import asyncio

import httpx
import pytest

from prism_gateway.config import PrismConfig
from prism_gateway.errors import FailureKind
from prism_gateway.pipeline import GenerationPipeline, StepName, build_steps
from prism_gateway.pipeline.orchestrator import CharacterStep, PipelineStep, VideoStep

from conftest import character_ok, network_error, upstream_error, video_ok

CHARACTER = "/api/v1/generate_ai_character"
VIDEO = "/api/v1/generate_ai_video"


def run(pipeline, image, description="avatar", prompt="waves"):
    return asyncio.run(pipeline.run(image, description, prompt))


class TestBuildSteps:
    def test_character_video_mode(self, config) -> None:
        steps = build_steps(config)
        assert [type(s) for s in steps] == [CharacterStep, VideoStep]
        assert steps[0].policy.max_attempts == 1
        assert steps[1].policy.max_attempts == 3
        assert steps[1].loop is True

    def test_video_only_mode(self) -> None:
        steps = build_steps(PrismConfig(api_key="k", pipeline_mode="video_only", video_max_attempts=5))
        assert [s.name for s in steps] == [StepName.VIDEO_GENERATION]
        assert steps[0].policy.max_attempts == 5

    def test_character_retries_configurable(self) -> None:
        steps = build_steps(PrismConfig(api_key="k", character_max_attempts=2, retry_base_delay=0.5))
        assert steps[0].policy.max_attempts == 2
        assert steps[0].policy.delay_before(2) == 1.0


class TestGenerationPipeline:
    def test_chains_character_into_video_and_sums_credits(self, config, make_client, image, sleep) -> None:
        client, upstream = make_client(
            character_ok(output="https://cdn.prism.test/hero.png", credits_used=1, remaining=99, time=3.5),
            video_ok(credits_used=5, remaining=94, time=42.0),
        )
        pipeline = GenerationPipeline(client, build_steps(config), sleep=sleep)

        result = run(pipeline, image)

        assert result.ok
        assert upstream.paths() == [CHARACTER, VIDEO]
        assert b"hero.png" in upstream.requests[1].content
        assert result.total_credits_used == 6
        assert result.total_generation_time == 45.5
        assert result.credits_remaining == 94
        assert result.character.output == "https://cdn.prism.test/hero.png"

    def test_character_failure_never_reaches_video(self, config, make_client, image, sleep) -> None:
        client, upstream = make_client(upstream_error(500, "character backend down"))
        pipeline = GenerationPipeline(client, build_steps(config), sleep=sleep)

        result = run(pipeline, image)

        assert not result.ok
        assert result.failed_step == StepName.CHARACTER_GENERATION
        assert result.attempts == 1
        assert upstream.paths() == [CHARACTER]
        assert sleep.delays == []

    def test_video_step_retries_with_backoff(self, config, make_client, image, sleep) -> None:
        client, upstream = make_client(
            character_ok(),
            upstream_error(429),
            upstream_error(429),
            video_ok(),
        )
        pipeline = GenerationPipeline(client, build_steps(config), sleep=sleep)

        result = run(pipeline, image)

        assert result.ok
        assert upstream.paths() == [CHARACTER, VIDEO, VIDEO, VIDEO]
        assert sleep.delays == [2.0, 4.0]
        assert result.steps[-1].attempts == 3

    def test_video_exhausts_attempts(self, config, make_client, image, sleep) -> None:
        client, upstream = make_client(
            character_ok(),
            upstream_error(503, "busy"),
            network_error,
            upstream_error(500, "still broken"),
        )
        pipeline = GenerationPipeline(client, build_steps(config), sleep=sleep)

        result = run(pipeline, image)

        assert result.failed_step == StepName.VIDEO_GENERATION
        assert result.failure.status_code == 500
        assert result.failure.details == "still broken"
        assert result.attempts == 3
        assert len(upstream.requests) == 4

    def test_video_only_sends_upload_directly(self, make_client, image, sleep) -> None:
        cfg = PrismConfig(api_url="https://prism.test", api_key="k", pipeline_mode="video_only")
        client, upstream = make_client(video_ok(credits_used=5), cfg=cfg)
        pipeline = GenerationPipeline(client, build_steps(cfg), sleep=sleep)

        result = run(pipeline, image)

        assert result.ok
        assert upstream.paths() == [VIDEO]
        assert b'name="character"; filename="me.png"' in upstream.requests[0].content
        assert result.character is None
        assert result.total_credits_used == 5

    def test_parse_error_not_retried(self, config, make_client, image, sleep) -> None:
        client, upstream = make_client(character_ok(), httpx.Response(200, text="not json"))
        pipeline = GenerationPipeline(client, build_steps(config), sleep=sleep)

        result = run(pipeline, image)

        assert result.failure.kind == FailureKind.PARSE_ERROR
        assert len(upstream.requests) == 2


def test_step_base_requires_call() -> None:
    class NamelessStep(PipelineStep):
        name = StepName.VIDEO_GENERATION

    with pytest.raises(TypeError):
        PipelineStep()
    with pytest.raises(TypeError):
        NamelessStep()
