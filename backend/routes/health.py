"""Health and readiness check routes."""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/ready")
async def ready(request: Request) -> dict:
    """Lightweight readiness check — no external calls."""
    settings = request.app.state.settings
    return {"status": "ok", "service": "sbir-dashboard-api", "commit": settings.git_sha}


@router.get("/health")
async def health(request: Request) -> dict:
    """Cache freshness report. Never triggers an upstream fetch."""
    state = request.app.state
    entry = state.topic_cache.entry
    snapshot = state.discussion_cache.snapshot

    return {
        "status": "ok",
        "service": "sbir-dashboard-api",
        "commit": state.settings.git_sha,
        "topics": {
            "count": len(entry.data),
            "fetched_at": entry.fetched_at.isoformat() if entry.fetched_at else None,
        },
        "discussions": {
            "configured": state.discussion_cache.configured,
            "count": len(snapshot.counts),
            "fetched_at": snapshot.fetched_at.isoformat() if snapshot.fetched_at else None,
        },
    }
