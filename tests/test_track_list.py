"""Tests for paginated track list aggregation."""

import aiohttp
import pytest
from conftest import FakeResponse, track_page

from ximalaya_dl.api.client import MOBILE_USER_AGENT, XimalayaAPIClient
from ximalaya_dl.core.track_list import TrackListAggregator, parse_track_page


def test_parse_track_page_maps_track_info() -> None:
    items = parse_track_page(track_page(10, 2))

    assert [(i.track_id, i.title) for i in items] == [
        (10, "Episode 10"),
        (11, "Episode 11"),
    ]
    assert items[0].url == "https://aod.example.com/10.m4a"


def test_parse_track_page_tolerates_missing_data() -> None:
    assert parse_track_page({"ret": 0, "data": None}) == []


def test_missing_play_path_marks_vip_item() -> None:
    (item,) = parse_track_page(track_page(5, 1, play_path=""))

    assert item.requires_entitlement


@pytest.mark.parametrize(
    ("audio_count", "pages"), [(0, 0), (1, 1), (100, 1), (101, 2), (250, 3)]
)
def test_page_total(audio_count: int, pages: int) -> None:
    aggregator = TrackListAggregator(XimalayaAPIClient())

    assert aggregator.page_total(audio_count) == pages


@pytest.mark.asyncio
async def test_250_audios_take_three_pages(make_client) -> None:
    client, session = make_client(
        [
            FakeResponse(json_data=track_page(1, 100)),
            FakeResponse(json_data=track_page(101, 100)),
            FakeResponse(json_data=track_page(201, 50)),
        ]
    )

    items = await TrackListAggregator(client).aggregate(39725061, 250)

    assert len(items) == 250
    assert [i.track_id for i in items] == list(range(1, 251))
    assert [c["params"] for c in session.calls] == [
        {"albumId": 39725061, "page": page, "pageSize": 100, "asc": "true"}
        for page in (1, 2, 3)
    ]
    assert all(c["url"] == XimalayaAPIClient.TRACK_LIST_URL for c in session.calls)
    assert all(c["headers"]["User-Agent"] == MOBILE_USER_AGENT for c in session.calls)
    assert all(r.released for r in session.returned)


@pytest.mark.asyncio
async def test_failed_page_returns_items_so_far(make_client, caplog) -> None:
    client, session = make_client(
        [
            FakeResponse(json_data=track_page(1, 100)),
            aiohttp.ClientConnectionError("connection reset"),
        ]
    )

    items = await TrackListAggregator(client).aggregate(1, 250)

    assert len(items) == 100
    assert len(session.calls) == 2
    assert "page 2" in caplog.text


@pytest.mark.asyncio
async def test_non_200_page_stops_aggregation(make_client) -> None:
    client, session = make_client(
        [FakeResponse(json_data=track_page(1, 100)), FakeResponse(status=503)]
    )

    items = await TrackListAggregator(client).aggregate(1, 300)

    assert len(items) == 100
    assert len(session.calls) == 2


@pytest.mark.asyncio
async def test_invalid_json_stops_aggregation(make_client) -> None:
    client, _ = make_client([FakeResponse(body="<html>oops</html>")])

    assert await TrackListAggregator(client).aggregate(1, 20) == []


@pytest.mark.asyncio
async def test_zero_audios_makes_no_requests(make_client) -> None:
    client, session = make_client([])

    assert await TrackListAggregator(client).aggregate(1, 0) == []
    assert session.calls == []


@pytest.mark.asyncio
async def test_malformed_page_keeps_earlier_items(make_client) -> None:
    client, session = make_client(
        [
            FakeResponse(json_data=track_page(1, 100)),
            FakeResponse(json_data={"ret": 0, "data": {"trackDetailInfos": 5}}),
        ]
    )

    items = await TrackListAggregator(client).aggregate(1, 250)

    assert [i.track_id for i in items] == list(range(1, 101))
    assert len(session.calls) == 2


@pytest.mark.parametrize(
    "details", [5, "oops", [None], [{"trackInfo": "x"}]], ids=repr
)
def test_parse_track_page_rejects_malformed_records(details) -> None:
    with pytest.raises(ValueError):
        parse_track_page({"ret": 0, "data": {"trackDetailInfos": details}})
