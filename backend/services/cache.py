"""In-memory TTL cache for the active topic list. No Redis needed.

Note: Each uvicorn worker has its own cache instance. With --workers 2,
topics may be fetched twice (once per worker). That is fine at this scale;
the cache still collapses repeated calls within a worker.

Entries are frozen and replaced wholesale, so a reader holding one never
sees a half-updated list. Fetches run under an asyncio lock: concurrent
misses wait for the in-flight fetch and reuse its result.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

from errors import UpstreamError
from services.models import Topic

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[list[Topic]]]
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TopicCacheEntry:
    data: tuple[Topic, ...] = ()
    fetched_at: datetime | None = None


class TopicCache:
    def __init__(self, fetch: Fetcher, ttl_seconds: float = 3600, clock: Clock = utcnow):
        self._fetch = fetch
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._entry = TopicCacheEntry()
        self._lock = asyncio.Lock()
        # Bumped when a fetch finishes, whether it succeeded or not.
        self._attempts = 0

    @property
    def entry(self) -> TopicCacheEntry:
        return self._entry

    def _is_fresh(self, entry: TopicCacheEntry) -> bool:
        if entry.fetched_at is None:
            return False
        return self._clock() - entry.fetched_at < self._ttl

    async def get(self) -> list[Topic]:
        entry = self._entry
        if self._is_fresh(entry):
            return list(entry.data)

        attempts = self._attempts
        async with self._lock:
            # Another caller fetched while we waited: take its outcome.
            entry = self._entry
            if self._is_fresh(entry) or self._attempts != attempts:
                return list(entry.data)
            logger.info("Topic cache miss - fetching fresh data")
            return await self._refresh()

    async def force_refresh(self) -> list[Topic]:
        async with self._lock:
            logger.info("Forcing topic cache refresh")
            return await self._refresh()

    async def find(self, topic_id: str) -> Topic | None:
        wanted = topic_id.strip()
        for topic in await self.get():
            if topic.topic_id == wanted:
                return topic
        return None

    async def _refresh(self) -> list[Topic]:
        """Fetch and swap in a new entry; keep the old one on failure.

        Caller must hold ``self._lock``.
        """
        try:
            topics = await self._fetch()
        except UpstreamError as e:
            self._attempts += 1
            previous = self._entry
            logger.warning(
                "Topic fetch failed, serving %d cached topics: %s",
                len(previous.data), e,
            )
            return list(previous.data)

        self._entry = TopicCacheEntry(data=tuple(topics), fetched_at=self._clock())
        self._attempts += 1
        logger.info("Topic cache refreshed with %d topics", len(topics))
        return list(topics)
