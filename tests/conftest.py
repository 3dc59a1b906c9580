from __future__ import annotations

import httpx
import pytest

from prism_gateway.config import PrismConfig
from prism_gateway.pipeline.models import ImageUpload
from prism_gateway.prism import PrismClient


class FakeUpstream:
    """httpx.MockTransport handler replaying canned responses in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"unexpected request to {request.url}")
        item = self.responses.pop(0)
        if callable(item):
            return item(request)
        return item

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def character_ok(output="https://cdn.prism.test/character.png", credits_used=1, remaining=99, time=3.5):
    return httpx.Response(200, json={
        "output": output,
        "generation_time": time,
        "credits_remaining": remaining,
        "credits_used": credits_used,
        "type": "ai_character",
    })


def video_ok(output="https://cdn.prism.test/video.mp4", credits_used=5, remaining=94, time=42.0, transparent=None):
    body = {
        "output": output,
        "generation_time": time,
        "credits_remaining": remaining,
        "credits_used": credits_used,
        "type": "ai_video",
    }
    if transparent:
        body["extra"] = {"transparent_video_url": transparent}
    return httpx.Response(200, json=body)


def upstream_error(status, message="upstream says no"):
    return httpx.Response(status, json={"message": message})


def network_error(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


def read_timeout(request: httpx.Request) -> httpx.Response:
    raise httpx.ReadTimeout("timed out", request=request)


@pytest.fixture
def config() -> PrismConfig:
    return PrismConfig(api_url="https://prism.test/", api_key="test-key")


@pytest.fixture
def image() -> ImageUpload:
    return ImageUpload(filename="me.png", content_type="image/png", content=b"\x89PNG fake image bytes")


@pytest.fixture
def make_client(config):
    def _make(*responses, cfg: PrismConfig | None = None):
        upstream = FakeUpstream(*responses)
        client = PrismClient(cfg or config, transport=httpx.MockTransport(upstream))
        return client, upstream
    return _make


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()
