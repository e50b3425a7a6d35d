"""Discussion comment counts from GitHub Discussions (GraphQL).

One POST fetches the latest 100 threads; their counts fan out to every id the
dashboard asks about. Threads are joined to topics by a best-effort parse of
the thread title: upstream gives us no stable key to join on, so an id with no
matching thread simply reads as 0.

Failures never escape ``get_counts``. The last good snapshot is served when
a fetch fails, or an empty mapping if there has never been one.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Mapping

import httpx

from errors import MalformedUpstreamData, NotConfigured, UpstreamError, UpstreamUnavailable
from services.cache import Clock, utcnow

logger = logging.getLogger(__name__)

GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"

DISCUSSIONS_QUERY = """
query($owner: String!, $name: String!) {
  repository(owner: $owner, name: $name) {
    discussions(first: 100) {
      nodes {
        number
        title
        comments {
          totalCount
        }
      }
    }
  }
}
"""

# Topic/solicitation code shape: AF251-0001, N251-D01, A254-012
TOPIC_ID_PATTERN = re.compile(r"[A-Z]+\d+-[A-Z]?\d+")

DISCUSS_PATH_PREFIX = "/discuss/"


@dataclass(frozen=True)
class Thread:
    number: int | None
    title: str
    comment_count: int


@dataclass(frozen=True)
class DiscussionCountSnapshot:
    counts: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    threads: tuple[Thread, ...] = ()
    fetched_at: datetime | None = None


def extract_topic_id(title: str) -> str | None:
    match = TOPIC_ID_PATTERN.search(title or "")
    return match.group(0) if match else None


def parse_threads(body) -> list[Thread]:
    """Pull threads out of a GraphQL response body.

    Raises MalformedUpstreamData when the path to the nodes is missing.
    """
    try:
        nodes = body["data"]["repository"]["discussions"]["nodes"]
    except (KeyError, TypeError) as e:
        errors = body.get("errors") if isinstance(body, dict) else None
        raise MalformedUpstreamData(f"Unexpected discussions payload: {errors or e!r}") from e
    if not isinstance(nodes, list):
        raise MalformedUpstreamData("Discussion nodes is not a list")

    threads = []
    for node in nodes:
        if not isinstance(node, dict):
            continue
        comments = node.get("comments") or {}
        count = comments.get("totalCount") if isinstance(comments, dict) else None
        if not isinstance(count, int) or isinstance(count, bool) or count < 0:
            count = 0
        threads.append(Thread(
            number=node.get("number"),
            title=str(node.get("title") or "").strip(),
            comment_count=count,
        ))
    return threads


def build_counts(threads: list[Thread]) -> dict[str, int]:
    """Map extracted topic ids to comment counts. First thread wins."""
    counts: dict[str, int] = {}
    for thread in threads:
        topic_id = extract_topic_id(thread.title)
        if topic_id and topic_id not in counts:
            counts[topic_id] = thread.comment_count
    return counts


def count_for_path(path: str, threads: tuple[Thread, ...]) -> int:
    """Path-based lookup: the id is matched as a literal substring of the title."""
    needle = path.removeprefix(DISCUSS_PATH_PREFIX).strip()
    if not needle:
        return 0
    for thread in threads:
        if needle in thread.title:
            return thread.comment_count
    return 0


class DiscussionCountCache:
    def __init__(
        self,
        token: str | None,
        repo_owner: str,
        repo_name: str,
        ttl_seconds: float = 300,
        timeout: float = 5.0,
        http_client: httpx.AsyncClient | None = None,
        clock: Clock = utcnow,
    ):
        self.token = token
        self.repo_owner = repo_owner
        self.repo_name = repo_name
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._snapshot = DiscussionCountSnapshot()
        self._lock = asyncio.Lock()
        # Bumped when a fetch finishes, whether it succeeded or not.
        self._attempts = 0
        self._warned_unconfigured = False

    @property
    def configured(self) -> bool:
        return bool(self.token)

    @property
    def snapshot(self) -> DiscussionCountSnapshot:
        return self._snapshot

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_counts(self, ids: list[str] | None = None) -> dict[str, int]:
        snapshot = await self._current()
        if ids is None:
            return dict(snapshot.counts)
        return {i: snapshot.counts.get(i.strip(), 0) for i in ids}

    async def get_counts_by_path(self, paths: list[str]) -> dict[str, int]:
        snapshot = await self._current()
        return {p: count_for_path(p, snapshot.threads) for p in paths}

    def _is_fresh(self, snapshot: DiscussionCountSnapshot) -> bool:
        if snapshot.fetched_at is None:
            return False
        return self._clock() - snapshot.fetched_at < self._ttl

    async def _current(self) -> DiscussionCountSnapshot:
        snapshot = self._snapshot
        if self._is_fresh(snapshot):
            return snapshot

        attempts = self._attempts
        async with self._lock:
            # Another caller fetched while we waited: take its outcome.
            snapshot = self._snapshot
            if self._is_fresh(snapshot) or self._attempts != attempts:
                return snapshot
            try:
                threads = await self._fetch_threads()
            except NotConfigured as e:
                if not self._warned_unconfigured:
                    logger.warning("Discussion counts disabled: %s", e)
                    self._warned_unconfigured = True
                return snapshot
            except UpstreamError as e:
                self._attempts += 1
                logger.warning("Discussion fetch failed, serving last snapshot: %s", e)
                return snapshot

            self._snapshot = DiscussionCountSnapshot(
                counts=MappingProxyType(build_counts(threads)),
                threads=tuple(threads),
                fetched_at=self._clock(),
            )
            self._attempts += 1
            logger.info("Cached comment counts for %d discussions", len(threads))
            return self._snapshot

    async def _fetch_threads(self) -> list[Thread]:
        if not self.token:
            raise NotConfigured("GITHUB_ACCESS_TOKEN")

        payload = {
            "query": DISCUSSIONS_QUERY,
            "variables": {"owner": self.repo_owner, "name": self.repo_name},
        }
        headers = {
            "Authorization": f"bearer {self.token}",
            "Accept": "application/vnd.github.v4+json",
            "User-Agent": "sbir-dashboard",
        }
        try:
            resp = await self._client.post(GITHUB_GRAPHQL_URL, json=payload, headers=headers)
            resp.raise_for_status()
        except httpx.TimeoutException as e:
            raise UpstreamUnavailable(f"GitHub GraphQL timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise UpstreamUnavailable(
                f"GitHub GraphQL returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"GitHub GraphQL request failed: {e}") from e

        try:
            body = resp.json()
        except ValueError as e:
            raise MalformedUpstreamData("GitHub GraphQL returned invalid JSON") from e
        return parse_threads(body)
