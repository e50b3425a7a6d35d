"""Canonical topic shape served to the dashboard."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class TopicStatus(str, Enum):
    PRE_RELEASE = "Pre-Release"
    OPEN = "Open"


class Topic(BaseModel):
    """A funding opportunity that was inside its active window when fetched."""

    model_config = ConfigDict(frozen=True)

    topic_id: str
    title: str
    status: TopicStatus
    window_open: datetime
    window_close: datetime
    component: str
    solicitation_number: str | None = None
    solicitation_title: str | None = None
    program: str | None = None

    def matches(self, query: str) -> bool:
        """Case-insensitive search over title, solicitation title and id."""
        needle = query.strip().lower()
        if not needle:
            return True
        haystacks = (self.title, self.solicitation_title, self.topic_id)
        return any(h and needle in h.lower() for h in haystacks)
