"""Shared fixtures: raw DoD records, a controllable clock, mock HTTP clients."""

import json
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import pytest

NOW = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)


def ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def raw_topic(
    code: str = "AF251-0001",
    status: str = "Open",
    **overrides: Any,
) -> dict:
    """A raw topic record shaped like the DoD listing, active at NOW."""
    record = {
        "topicCode": code,
        "topicTitle": f"{code} research",
        "topicStatus": status,
        "topicPreReleaseStartDate": ms(NOW - timedelta(days=10)),
        "topicPreReleaseEndDate": ms(NOW + timedelta(days=5)),
        "topicStartDate": ms(NOW - timedelta(days=2)),
        "topicEndDate": ms(NOW + timedelta(days=30)),
        "component": "AF",
        "solicitationNumber": "DOD_SBIR_2025_P1_C1",
        "solicitationTitle": "DoD SBIR 2025.1",
        "program": "SBIR",
    }
    record.update(overrides)
    return record


def json_response(data: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        content=json.dumps(data).encode(),
        headers={"content-type": "application/json"},
    )


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class FakeClock:
    def __init__(self, start: datetime = NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("GITHUB_ACCESS_TOKEN", "CRON_SECRET", "ENVIRONMENT"):
        monkeypatch.delenv(var, raising=False)
