"""Discussion comment counts and usage tracking."""

from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from services.discussions import DiscussionCountCache
from services.tracking import track_event

router = APIRouter()


class CountsRequest(BaseModel):
    ids: list[str] | None = None
    paths: list[str] | None = None


class TrackRequest(BaseModel):
    eventName: str | None = None
    metadata: Any = None


def get_discussion_cache(request: Request) -> DiscussionCountCache:
    return request.app.state.discussion_cache


@router.get("/discussions")
async def all_counts(cache: DiscussionCountCache = Depends(get_discussion_cache)) -> dict:
    return {"counts": await cache.get_counts()}


@router.post("/discussions")
async def counts_for(
    body: CountsRequest,
    cache: DiscussionCountCache = Depends(get_discussion_cache),
) -> dict:
    """Counts for the given topic ids, or for ``/discuss/<id>`` paths."""
    if body.paths is not None:
        return {"counts": await cache.get_counts_by_path(body.paths)}
    return {"counts": await cache.get_counts(body.ids)}


@router.post("/track")
async def track(body: TrackRequest) -> dict:
    return track_event(body.eventName, body.metadata)
