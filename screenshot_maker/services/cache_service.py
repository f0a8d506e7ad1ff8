import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Hashable, Optional

from screenshot_maker.config import settings
from screenshot_maker.services.screenshot_service import RenderResult

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    image: bytes
    expires_at: float
    tag: Optional[str] = None


class ResponseCache:
    """In-process cache of rendered images with a fixed time to live.

    Entries carry a tag (the target URL) so every variant of one page can be
    dropped at once. Failed renders are never stored.
    """

    def __init__(
        self,
        ttl: Optional[int] = None,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry] = {}

    @property
    def ttl(self) -> int:
        return settings.cache_ttl if self._ttl is None else self._ttl

    @property
    def max_entries(self) -> int:
        return settings.cache_max_entries if self._max_entries is None else self._max_entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Hashable) -> Optional[bytes]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry.image

    def set(self, key: Hashable, image: bytes, tag: Optional[str] = None) -> None:
        self._entries.pop(key, None)
        if self.max_entries > 0 and len(self._entries) >= self.max_entries:
            self._purge_expired()
            while len(self._entries) >= self.max_entries:
                oldest = min(self._entries, key=lambda k: self._entries[k].expires_at)
                del self._entries[oldest]
                logger.debug("Cache full, evicted %s", oldest)
        self._entries[key] = CacheEntry(image=image, expires_at=self._clock() + self.ttl, tag=tag)

    async def get_or_render(
        self,
        key: Hashable,
        render_fn: Callable[[], Awaitable[RenderResult]],
        tag: Optional[str] = None,
    ) -> RenderResult:
        cached = self.get(key)
        if cached is not None:
            logger.info("Cache hit for %s", tag or key)
            return RenderResult.success(cached)

        logger.info("Cache miss for %s", tag or key)
        result = await render_fn()
        if result.ok:
            self.set(key, result.image, tag=tag)
        return result

    def invalidate_tag(self, tag: str) -> int:
        keys = [k for k, entry in self._entries.items() if entry.tag == tag]
        for k in keys:
            del self._entries[k]
        logger.info("Invalidated %d cached screenshot(s) for %s", len(keys), tag)
        return len(keys)

    def clear(self) -> None:
        self._entries.clear()

    def _purge_expired(self) -> None:
        now = self._clock()
        for k in [k for k, entry in self._entries.items() if entry.expires_at <= now]:
            del self._entries[k]


screenshot_cache = ResponseCache()
