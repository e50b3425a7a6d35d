"""Usage analytics. Events go to the application log, nothing is stored."""

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def track_event(event_name: str, metadata: Any = None) -> dict:
    event_name = (event_name or "").strip()
    if not event_name:
        raise ValueError("eventName is required")

    logger.info(
        "Event tracked: %s %s",
        event_name,
        json.dumps(metadata, default=str, sort_keys=True),
    )
    return {"message": "Event tracked successfully"}
