"""DoD SBIR/STTR topic listing client.

Fetches every topic in the currently open solicitation cycles with a single
GET, then maps the agency's field names onto :class:`Topic`, keeping only
records inside their active window. Failures raise :class:`UpstreamError`
subclasses; deciding what to serve instead is the cache's job.
"""

import json
import logging
from datetime import datetime, timezone

import httpx

from errors import MalformedUpstreamData, UpstreamUnavailable
from services.active_window import canonical_window, is_active, parse_status
from services.models import Topic

logger = logging.getLogger(__name__)

USER_AGENT = "sbir-dashboard/1.0"

# "openTopics" cycle, Pre-Release (591) and Open (592) release statuses.
OPEN_CYCLE_SEARCH = {
    "searchText": None,
    "components": None,
    "programYear": None,
    "solicitationCycleNames": ["openTopics"],
    "releaseNumbers": [],
    "topicReleaseStatus": [591, 592],
    "modernizationPriorities": None,
    "sortBy": "finalTopicCode,asc",
}
PAGE_SIZE = 1000


class UpstreamTopicClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_raw(self) -> list[dict]:
        """One round trip to the listing service. No retries."""
        params = {
            "searchParam": json.dumps(OPEN_CYCLE_SEARCH),
            "size": PAGE_SIZE,
            "page": 0,
        }
        logger.info("Fetching topics from %s", self.base_url)
        try:
            resp = await self._client.get(self.base_url, params=params)
            resp.raise_for_status()
        except httpx.TimeoutException as e:
            raise UpstreamUnavailable(f"Topic listing timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise UpstreamUnavailable(
                f"Topic listing returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Topic listing request failed: {e}") from e

        try:
            body = resp.json()
        except ValueError as e:
            raise MalformedUpstreamData("Topic listing returned invalid JSON") from e

        # The search endpoint wraps results in {"total": n, "data": [...]}
        if isinstance(body, dict):
            body = body.get("data")
        if not isinstance(body, list):
            raise MalformedUpstreamData(
                f"Topic listing returned {type(body).__name__}, expected a list"
            )
        logger.info("Topic listing returned %d records", len(body))
        return body

    async def fetch_active_topics(self, now: datetime | None = None) -> list[Topic]:
        raw = await self.fetch_raw()
        return normalize_topics(raw, now or datetime.now(timezone.utc))


def normalize_topic(raw, now: datetime) -> Topic | None:
    """Map one raw DoD record to a Topic, or None if it should not be shown."""
    if not isinstance(raw, dict):
        return None
    if not is_active(raw, now):
        return None

    status = parse_status(raw.get("topicStatus"))
    window = canonical_window(status, raw)
    topic_id = _text(raw.get("topicCode"))
    if window is None or not topic_id:
        return None
    # The served deadline can differ from the field that decided visibility.
    if not window[0] <= now <= window[1]:
        return None

    return Topic(
        topic_id=topic_id,
        title=_text(raw.get("topicTitle")) or "",
        status=status,
        window_open=window[0],
        window_close=window[1],
        component=_text(raw.get("component")) or "",
        solicitation_number=_text(raw.get("solicitationNumber")),
        solicitation_title=_text(raw.get("solicitationTitle")),
        program=_text(raw.get("program")),
    )


def normalize_topics(records: list, now: datetime) -> list[Topic]:
    """Normalize in upstream order; the first record wins for a repeated id."""
    topics: list[Topic] = []
    seen: set[str] = set()
    for raw in records:
        topic = normalize_topic(raw, now)
        if topic is None or topic.topic_id in seen:
            continue
        seen.add(topic.topic_id)
        topics.append(topic)

    dropped = len(records) - len(topics)
    if dropped:
        logger.info("Dropped %d inactive or unusable topic records", dropped)
    return topics


def _text(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
