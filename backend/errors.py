"""Custom exceptions and centralized FastAPI error handlers."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class DashboardError(Exception):
    """Base exception with HTTP status code."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class UpstreamError(DashboardError):
    """An external API could not supply usable data."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message, status_code=status_code)


class UpstreamUnavailable(UpstreamError):
    """Network failure, timeout or non-success response."""


class MalformedUpstreamData(UpstreamError):
    """The response arrived but its shape was not what we expect."""


class NotConfigured(DashboardError):
    def __init__(self, setting: str):
        super().__init__(f"{setting} is not configured", status_code=503)
        self.setting = setting


class UnauthorizedError(DashboardError):
    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, status_code=403)


class TopicNotFoundError(DashboardError):
    def __init__(self, topic_id: str):
        super().__init__(f"Topic not found: {topic_id}", status_code=404)


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(DashboardError)
    async def handle_dashboard_error(_request: Request, exc: DashboardError):
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    @app.exception_handler(ValueError)
    async def handle_value_error(_request: Request, exc: ValueError):
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(
            {"error": "Internal server error"},
            status_code=500,
        )
