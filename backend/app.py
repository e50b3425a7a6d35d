"""FastAPI application entry point for the SBIR dashboard API."""

import logging
import sys

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from config import Settings, settings as default_settings
from errors import register_error_handlers
from services.cache import TopicCache
from services.discussions import DiscussionCountCache
from services.topics_api import UpstreamTopicClient

# Structured logging: JSON for production, human-readable for local
if default_settings.is_production:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}',
        stream=sys.stdout,
    )
else:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    topic_client: UpstreamTopicClient | None = None,
    discussion_cache: DiscussionCountCache | None = None,
) -> FastAPI:
    settings = settings or default_settings
    app = FastAPI(title="SBIR Dashboard API", version="1.0.0")

    topic_client = topic_client or UpstreamTopicClient(
        settings.topics_api_url,
        timeout=settings.topics_timeout_seconds,
    )
    discussion_cache = discussion_cache or DiscussionCountCache(
        token=settings.github_access_token,
        repo_owner=settings.discussions_repo_owner,
        repo_name=settings.discussions_repo_name,
        ttl_seconds=settings.discussions_cache_ttl_seconds,
        timeout=settings.discussions_timeout_seconds,
    )

    app.state.settings = settings
    app.state.topic_cache = TopicCache(
        topic_client.fetch_active_topics,
        ttl_seconds=settings.topics_cache_ttl_seconds,
    )
    app.state.discussion_cache = discussion_cache

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Security headers
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    # Centralized error handlers
    register_error_handlers(app)

    from routes.health import router as health_router
    from routes.topics import router as topics_router
    from routes.discussions import router as discussions_router

    app.include_router(health_router)
    app.include_router(topics_router)
    app.include_router(discussions_router)

    @app.on_event("startup")
    async def _validate_config() -> None:
        missing = settings.validate()
        if missing:
            logger.warning("Missing env vars (some features disabled): %s", ", ".join(missing))

    @app.on_event("shutdown")
    async def _close_clients() -> None:
        await topic_client.aclose()
        await discussion_cache.aclose()

    return app


app = create_app()
