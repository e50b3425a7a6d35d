"""Centralized configuration — all env vars in one place."""

import os

DEFAULT_TOPICS_API_URL = "https://www.dodsbirsttr.mil/topics/api/public/topics/search"


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        self.cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
        self.git_sha: str = os.getenv("GIT_SHA", "unknown")
        self.environment: str = os.getenv("ENVIRONMENT", "local")

        # DoD topic listing
        self.topics_api_url: str = os.getenv("TOPICS_API_URL", DEFAULT_TOPICS_API_URL)
        self.topics_cache_ttl_seconds: float = float(os.getenv("TOPICS_CACHE_TTL_SECONDS", "3600"))
        self.topics_timeout_seconds: float = float(os.getenv("TOPICS_TIMEOUT_SECONDS", "15"))

        # GitHub discussions
        self.github_access_token: str | None = (os.getenv("GITHUB_ACCESS_TOKEN") or "").strip() or None
        self.discussions_repo_owner: str = os.getenv("DISCUSSIONS_REPO_OWNER", "jrbauhaus")
        self.discussions_repo_name: str = os.getenv("DISCUSSIONS_REPO_NAME", "sbir-dashboard-next")
        self.discussions_cache_ttl_seconds: float = float(os.getenv("DISCUSSIONS_CACHE_TTL_SECONDS", "300"))
        self.discussions_timeout_seconds: float = float(os.getenv("DISCUSSIONS_TIMEOUT_SECONDS", "5"))

        # Scheduler-triggered cache refresh
        self.cron_secret: str | None = os.getenv("CRON_SECRET") or None

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate(self) -> list[str]:
        """Return list of missing env vars for optional features."""
        optional = ["GITHUB_ACCESS_TOKEN", "CRON_SECRET"]
        return [var for var in optional if not getattr(self, _attr_for(var))]


settings = Settings()


def _attr_for(env_var: str) -> str:
    """Map env var name to Settings attribute name."""
    mapping = {
        "GITHUB_ACCESS_TOKEN": "github_access_token",
        "CRON_SECRET": "cron_secret",
    }
    return mapping.get(env_var, env_var.lower())
