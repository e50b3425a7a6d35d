"""Topic listing routes — served from the in-memory topic cache."""

import logging

from fastapi import APIRouter, Depends, Header, Query, Request

from config import Settings
from errors import TopicNotFoundError
from services.cache import TopicCache
from services.models import Topic
from services.refresh import refresh_topics

logger = logging.getLogger(__name__)

router = APIRouter()


def get_topic_cache(request: Request) -> TopicCache:
    return request.app.state.topic_cache


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.get("/solicitations")
async def list_active_topics(
    q: str | None = Query(None, max_length=200),
    cache: TopicCache = Depends(get_topic_cache),
) -> list[Topic]:
    """Active topics, optionally narrowed by a text search."""
    topics = await cache.get()
    if q:
        topics = [t for t in topics if t.matches(q)]
    return topics


@router.get("/topics/{topic_id}")
async def get_topic(topic_id: str, cache: TopicCache = Depends(get_topic_cache)) -> Topic:
    """Single topic, for the per-topic discussion page."""
    topic = await cache.find(topic_id)
    if topic is None:
        logger.info("Topic %s not in active set", topic_id)
        raise TopicNotFoundError(topic_id)
    return topic


@router.get("/refresh-cache")
async def refresh_cache(
    cron_secret: str | None = Query(None),
    x_cron_secret: str | None = Header(None),
    cache: TopicCache = Depends(get_topic_cache),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Force a refresh. Cron callers that cannot set headers pass the secret as a query param."""
    return await refresh_topics(cache, cron_secret or x_cron_secret, settings.cron_secret)
