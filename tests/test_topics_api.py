"""Upstream topic client: transport, body shapes and normalization."""

import json
from datetime import timedelta

import httpx
import pytest

from conftest import NOW, json_response, mock_client, ms, raw_topic
from errors import MalformedUpstreamData, UpstreamUnavailable
from services.active_window import parse_timestamp
from services.models import TopicStatus
from services.topics_api import UpstreamTopicClient, normalize_topic, normalize_topics

URL = "https://topics.example.test/search"


def _client(handler) -> UpstreamTopicClient:
    return UpstreamTopicClient(URL, http_client=mock_client(handler))


class TestFetchRaw:
    async def test_plain_array(self) -> None:
        records = [raw_topic("AF251-0001"), raw_topic("N251-D01")]
        client = _client(lambda request: json_response(records))
        assert await client.fetch_raw() == records

    async def test_wrapped_in_data(self) -> None:
        records = [raw_topic()]
        client = _client(lambda request: json_response({"total": 1, "data": records}))
        assert await client.fetch_raw() == records

    async def test_sends_open_cycle_query(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return json_response([])

        await _client(handler).fetch_raw()

        assert len(seen) == 1
        search = json.loads(seen[0].url.params["searchParam"])
        assert search["solicitationCycleNames"] == ["openTopics"]

    @pytest.mark.parametrize("status_code", [404, 500, 503])
    async def test_non_success_is_unavailable(self, status_code: int) -> None:
        client = _client(lambda request: json_response({"error": "x"}, status_code))
        with pytest.raises(UpstreamUnavailable):
            await client.fetch_raw()

    async def test_timeout_is_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(UpstreamUnavailable):
            await _client(handler).fetch_raw()

    async def test_connection_error_is_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamUnavailable):
            await _client(handler).fetch_raw()

    async def test_invalid_json_is_malformed(self) -> None:
        client = _client(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(MalformedUpstreamData):
            await client.fetch_raw()

    async def test_unexpected_shape_is_malformed(self) -> None:
        client = _client(lambda request: json_response({"total": 0}))
        with pytest.raises(MalformedUpstreamData):
            await client.fetch_raw()


class TestNormalize:
    def test_open_topic_fields(self) -> None:
        raw = raw_topic("AF251-0001", status="Open")
        topic = normalize_topic(raw, NOW)

        assert topic.topic_id == "AF251-0001"
        assert topic.title == "AF251-0001 research"
        assert topic.status is TopicStatus.OPEN
        assert topic.window_open == parse_timestamp(raw["topicStartDate"])
        assert topic.window_close == parse_timestamp(raw["topicEndDate"])
        assert topic.component == "AF"
        assert topic.solicitation_number == "DOD_SBIR_2025_P1_C1"
        assert topic.program == "SBIR"

    def test_pre_release_topic_reports_open_deadline(self) -> None:
        raw = raw_topic("N251-D01", status="Pre-Release")
        topic = normalize_topic(raw, NOW)

        assert topic.status is TopicStatus.PRE_RELEASE
        assert topic.window_open == parse_timestamp(raw["topicPreReleaseStartDate"])
        assert topic.window_close == parse_timestamp(raw["topicEndDate"])

    def test_optional_fields_may_be_absent(self) -> None:
        raw = raw_topic()
        for key in ("solicitationNumber", "solicitationTitle", "program"):
            del raw[key]
        topic = normalize_topic(raw, NOW)
        assert topic.solicitation_number is None
        assert topic.solicitation_title is None

    @pytest.mark.parametrize(
        "raw",
        [
            raw_topic(status="Closed"),
            raw_topic(topicStartDate="garbage"),
            raw_topic(topicEndDate=ms(NOW - timedelta(days=1))),
            raw_topic(status="Pre-Release", topicEndDate=ms(NOW - timedelta(days=1))),
            raw_topic(topicCode=None),
            raw_topic(topicCode="  "),
            "not a record",
            None,
        ],
    )
    def test_dropped_records(self, raw) -> None:
        assert normalize_topic(raw, NOW) is None

    def test_keeps_order_and_first_duplicate(self) -> None:
        records = [
            raw_topic("AF251-0002"),
            raw_topic("AF251-0001", topicTitle="first"),
            raw_topic("X", status="Closed"),
            raw_topic("AF251-0001", topicTitle="second"),
        ]
        topics = normalize_topics(records, NOW)
        assert [t.topic_id for t in topics] == ["AF251-0002", "AF251-0001"]
        assert topics[1].title == "first"

    async def test_fetch_active_topics_filters(self) -> None:
        records = [raw_topic("AF251-0001"), raw_topic("AF251-0002", status="Closed")]
        client = _client(lambda request: json_response(records))
        topics = await client.fetch_active_topics(now=NOW)
        assert [t.topic_id for t in topics] == ["AF251-0001"]
