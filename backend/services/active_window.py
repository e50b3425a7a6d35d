"""Active-window rules for DoD topic records.

The upstream listing reports different date fields depending on a topic's
status. Pre-Release topics carry their visibility window in the
``topicPreRelease*`` fields, Open topics in ``topicStartDate``/``topicEndDate``.
Anything else is excluded; we never guess a mapping for a status we have
not seen.

Dates arrive as millisecond epochs. Nothing in here raises: a value that
cannot be read is treated as missing and the record is excluded.
"""

from datetime import datetime, timezone

from services.models import TopicStatus

PRE_RELEASE_START = "topicPreReleaseStartDate"
PRE_RELEASE_END = "topicPreReleaseEndDate"
OPEN_START = "topicStartDate"
OPEN_END = "topicEndDate"

_WINDOW_FIELDS = {
    TopicStatus.PRE_RELEASE: (PRE_RELEASE_START, PRE_RELEASE_END),
    TopicStatus.OPEN: (OPEN_START, OPEN_END),
}

Window = tuple[datetime, datetime]


def parse_status(value) -> TopicStatus | None:
    try:
        return TopicStatus(value)
    except (ValueError, TypeError):
        return None


def parse_timestamp(value) -> datetime | None:
    """Read a millisecond epoch (or ISO-8601 string) as an aware UTC datetime."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            try:
                value = float(text)
            except ValueError:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
                if parsed.tzinfo is None:
                    parsed = parsed.replace(tzinfo=timezone.utc)
                return parsed.astimezone(timezone.utc)
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None
    return None


def resolve_window(status, raw: dict) -> Window | None:
    """Pick the (open, close) pair that decides visibility for this status."""
    fields = _WINDOW_FIELDS.get(parse_status(status))
    if fields is None:
        return None
    opens = parse_timestamp(raw.get(fields[0]))
    closes = parse_timestamp(raw.get(fields[1]))
    if opens is None or closes is None:
        return None
    return opens, closes


def is_active(raw: dict, now: datetime) -> bool:
    window = resolve_window(raw.get("topicStatus"), raw)
    if window is None:
        return False
    opens, closes = window
    return opens <= now <= closes


def canonical_window(status, raw: dict) -> Window | None:
    """Window stored on the normalized topic.

    The close side is always the Open-status end field, even for Pre-Release
    topics: the dashboard shows the submission deadline, which upstream only
    publishes there.
    """
    fields = _WINDOW_FIELDS.get(parse_status(status))
    if fields is None:
        return None
    opens = parse_timestamp(raw.get(fields[0]))
    closes = parse_timestamp(raw.get(OPEN_END))
    if opens is None or closes is None:
        return None
    return opens, closes
