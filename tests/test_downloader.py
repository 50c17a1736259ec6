"""Tests for the retrying file downloader."""

import aiohttp
import pytest
from conftest import FakeResponse

from ximalaya_dl.api.client import DESKTOP_USER_AGENT
from ximalaya_dl.exceptions import DownloadExhaustedError, FileSystemError
from ximalaya_dl.media.downloader import Downloader
from ximalaya_dl.models.stats import DownloadStats

URL = "https://aod.example.com/group1/episode.m4a"


@pytest.mark.asyncio
async def test_always_500_makes_three_attempts_and_writes_nothing(
    make_client, tmp_path
) -> None:
    client, session = make_client(handler=lambda url, params: FakeResponse(500))
    destination = tmp_path / "out" / "Ep1.m4a"

    with pytest.raises(DownloadExhaustedError):
        await Downloader(client).download_file(URL, destination)

    assert len(session.calls) == 3
    assert all(r.released for r in session.returned)
    assert not destination.exists()
    assert not destination.parent.exists()


@pytest.mark.asyncio
async def test_succeeds_on_third_attempt(make_client, tmp_path) -> None:
    body = b"ID3" + bytes(range(256)) * 1200
    client, session = make_client(
        [FakeResponse(500), FakeResponse(500), FakeResponse(200, body)]
    )
    destination = tmp_path / "Ep1.m4a"
    stats = DownloadStats()

    written = await Downloader(client).download_file(URL, destination, stats=stats)

    assert written == len(body)
    assert destination.read_bytes() == body
    assert len(session.calls) == 3
    assert all(r.released for r in session.returned)
    assert stats.tracks_downloaded == 1
    assert stats.total_size_downloaded == len(body)


@pytest.mark.asyncio
async def test_transport_errors_are_retried(make_client, tmp_path) -> None:
    client, session = make_client(
        [
            aiohttp.ClientConnectionError("reset"),
            aiohttp.ServerDisconnectedError(),
            FakeResponse(200, b"audio"),
        ]
    )
    destination = tmp_path / "a.m4a"

    await Downloader(client).download_file(URL, destination)

    assert destination.read_bytes() == b"audio"
    assert len(session.calls) == 3


@pytest.mark.asyncio
async def test_uses_desktop_headers(make_client, tmp_path) -> None:
    client, session = make_client([FakeResponse(200, b"x")])

    await Downloader(client).download_file(URL, tmp_path / "a.m4a")

    headers = session.calls[0]["headers"]
    assert headers["User-Agent"] == DESKTOP_USER_AGENT
    assert headers["Connection"] == "keep-alive"
    assert headers["Accept-Language"] == "zh-CN,zh;q=0.9"


@pytest.mark.asyncio
async def test_custom_budget(make_client, tmp_path) -> None:
    client, session = make_client(handler=lambda url, params: FakeResponse(404))

    with pytest.raises(DownloadExhaustedError, match="5 tries"):
        await Downloader(client, max_attempts=5).download_file(URL, tmp_path / "a")

    assert len(session.calls) == 5


@pytest.mark.asyncio
async def test_no_delay_by_default(make_client, tmp_path, monkeypatch) -> None:
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    monkeypatch.setattr("ximalaya_dl.media.downloader.asyncio.sleep", fake_sleep)
    client, _ = make_client(handler=lambda url, params: FakeResponse(500))

    with pytest.raises(DownloadExhaustedError):
        await Downloader(client).download_file(URL, tmp_path / "a")

    assert sleeps == []


@pytest.mark.asyncio
async def test_configured_delay_between_attempts(
    make_client, tmp_path, monkeypatch
) -> None:
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    monkeypatch.setattr("ximalaya_dl.media.downloader.asyncio.sleep", fake_sleep)
    client, _ = make_client(handler=lambda url, params: FakeResponse(500))

    with pytest.raises(DownloadExhaustedError):
        await Downloader(client, retry_delay=0.5).download_file(URL, tmp_path / "a")

    assert sleeps == [0.5, 0.5]


@pytest.mark.asyncio
async def test_overwrites_existing_file(make_client, tmp_path) -> None:
    destination = tmp_path / "a.m4a"
    destination.write_bytes(b"old content that is longer")
    client, _ = make_client([FakeResponse(200, b"new")])

    await Downloader(client).download_file(URL, destination)

    assert destination.read_bytes() == b"new"


@pytest.mark.asyncio
async def test_unwritable_directory_is_a_filesystem_error(
    make_client, tmp_path
) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    client, session = make_client([FakeResponse(200, b"x")])

    with pytest.raises(FileSystemError, match="Make dir failed"):
        await Downloader(client).download_file(URL, blocker / "a.m4a")

    assert session.returned[0].released
