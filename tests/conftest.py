"""Common test fixtures for the screenshot API."""

import io
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from screenshot_maker.config import settings
from screenshot_maker.main import app, limiter
from screenshot_maker.services.cache_service import screenshot_cache
from screenshot_maker.services.screenshot_service import RenderFailure, RenderResult

# Test constants
TEST_API_KEY = "test_api_key_123"
ALLOWED_HOST = "allowed.example.com"


def make_png(width: int = 40, height: int = 30, color=(200, 30, 30, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeRenderer:
    """Stands in for render_screenshot and records every call."""

    def __init__(self) -> None:
        self.calls = []
        self.failure = None

    async def __call__(self, options, policy=None, session=None) -> RenderResult:
        self.calls.append(options)
        if self.failure is not None:
            return RenderResult.failed(self.failure)
        # unique bytes per call so cache hits are detectable
        return RenderResult.success(make_png(color=(len(self.calls), 0, 0, 255)))

    def fail_with(self, reason: RenderFailure) -> None:
        self.failure = reason


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Pin access control and disable rate limiting for every test."""
    monkeypatch.setattr(settings, "api_key", TEST_API_KEY)
    monkeypatch.setattr(settings, "allowed_origins", [ALLOWED_HOST])
    monkeypatch.setattr(settings, "bypass_auth_check", False)
    monkeypatch.setattr(limiter, "enabled", False)
    screenshot_cache.clear()
    yield settings
    screenshot_cache.clear()


@pytest.fixture
def renderer(monkeypatch) -> FakeRenderer:
    fake = FakeRenderer()
    monkeypatch.setattr("screenshot_maker.routes.screenshot.render_screenshot", fake)
    return fake


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as client:
        yield client
