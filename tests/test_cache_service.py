"""
Tests for the in-process screenshot cache.
"""
import pytest

from screenshot_maker.services.cache_service import ResponseCache
from screenshot_maker.services.screenshot_service import RenderFailure, RenderResult


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingRender:
    def __init__(self, result: RenderResult) -> None:
        self.result = result
        self.calls = 0

    async def __call__(self) -> RenderResult:
        self.calls += 1
        return self.result


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> ResponseCache:
    return ResponseCache(ttl=3600, max_entries=0, clock=clock)


@pytest.mark.asyncio
async def test_hit_within_ttl_skips_render(cache, clock):
    render = CountingRender(RenderResult.success(b"image"))

    first = await cache.get_or_render("key", render, tag="https://example.com")
    clock.advance(3599)
    second = await cache.get_or_render("key", render, tag="https://example.com")

    assert first.image == second.image == b"image"
    assert render.calls == 1


@pytest.mark.asyncio
async def test_entry_expires_after_ttl(cache, clock):
    render = CountingRender(RenderResult.success(b"image"))

    await cache.get_or_render("key", render)
    clock.advance(3600)
    await cache.get_or_render("key", render)

    assert render.calls == 2


@pytest.mark.asyncio
async def test_failures_are_not_stored(cache):
    render = CountingRender(RenderResult.failed(RenderFailure.PAGE))

    result = await cache.get_or_render("key", render)
    await cache.get_or_render("key", render)

    assert not result.ok
    assert result.failure is RenderFailure.PAGE
    assert render.calls == 2
    assert len(cache) == 0


def test_invalidate_tag_removes_all_variants(cache):
    cache.set(("https://a.example", "png"), b"1", tag="https://a.example")
    cache.set(("https://a.example", "jpeg"), b"2", tag="https://a.example")
    cache.set(("https://b.example", "png"), b"3", tag="https://b.example")

    assert cache.invalidate_tag("https://a.example") == 2
    assert cache.get(("https://a.example", "png")) is None
    assert cache.get(("https://b.example", "png")) == b"3"
    assert cache.invalidate_tag("https://a.example") == 0


def test_bounded_cache_evicts_oldest(clock):
    cache = ResponseCache(ttl=3600, max_entries=2, clock=clock)

    cache.set("first", b"1")
    clock.advance(1)
    cache.set("second", b"2")
    clock.advance(1)
    cache.set("third", b"3")

    assert len(cache) == 2
    assert cache.get("first") is None
    assert cache.get("second") == b"2"
    assert cache.get("third") == b"3"


def test_bounded_cache_prefers_dropping_expired(clock):
    cache = ResponseCache(ttl=10, max_entries=2, clock=clock)

    cache.set("stale", b"1")
    clock.advance(5)
    cache.set("fresh", b"2")
    clock.advance(6)
    cache.set("new", b"3")

    assert cache.get("fresh") == b"2"
    assert cache.get("new") == b"3"


def test_overwriting_key_does_not_evict_others(clock):
    cache = ResponseCache(ttl=3600, max_entries=2, clock=clock)

    cache.set("a", b"1")
    cache.set("b", b"2")
    cache.set("a", b"updated")

    assert cache.get("a") == b"updated"
    assert cache.get("b") == b"2"


def test_clear(cache):
    cache.set("a", b"1")
    cache.clear()
    assert len(cache) == 0


def test_ttl_and_bound_follow_settings_when_not_given(clock, test_settings, monkeypatch):
    cache = ResponseCache(clock=clock)

    monkeypatch.setattr(test_settings, "cache_ttl", 60)
    monkeypatch.setattr(test_settings, "cache_max_entries", 1)
    cache.set("a", b"1")
    cache.set("b", b"2")

    assert cache.ttl == 60
    assert len(cache) == 1
    clock.advance(60)
    assert cache.get("b") is None
