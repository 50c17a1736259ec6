"""Test fixtures and fake HTTP transport."""

import json
from collections.abc import Callable
from typing import Any

import aiohttp
import pytest

from ximalaya_dl.api.client import XimalayaAPIClient


class FakeContent:
    """Mimics ``aiohttp.StreamReader`` for chunked reads."""

    def __init__(self, body: bytes):
        self._body = body

    async def iter_chunked(self, n: int):
        for i in range(0, len(self._body), n):
            yield self._body[i : i + n]


class FakeResponse:
    """Minimal stand-in for ``aiohttp.ClientResponse``."""

    def __init__(
        self,
        status: int = 200,
        body: bytes | str = b"",
        json_data: Any = None,
    ):
        if isinstance(body, str):
            body = body.encode("utf-8")
        if json_data is not None:
            body = json.dumps(json_data).encode("utf-8")
        self.status = status
        self.body = body
        self.headers = {"Content-Length": str(len(body))}
        self.content = FakeContent(body)
        self.released = False

    def release(self) -> None:
        self.released = True

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise aiohttp.ClientError(f"HTTP {self.status}")

    async def text(self, encoding: str = "utf-8", errors: str = "strict") -> str:
        return self.body.decode(encoding, errors)

    async def json(self, content_type: str | None = "application/json") -> Any:
        return json.loads(self.body)


class FakeSession:
    """
    Records every GET and answers from a queue or a handler.

    Queue entries and handler results may be a ``FakeResponse`` or an exception
    instance, which is raised as a transport failure.
    """

    def __init__(
        self,
        responses: list | None = None,
        handler: Callable[[str, dict | None], Any] | None = None,
    ):
        self._responses = list(responses or [])
        self._handler = handler
        self.calls: list[dict[str, Any]] = []
        self.returned: list[FakeResponse] = []
        self.closed = False

    async def get(self, url: str, headers: dict | None = None, params: dict | None = None):
        self.calls.append({"url": url, "headers": headers or {}, "params": params})
        result = self._handler(url, params) if self._handler else self._responses.pop(0)
        if isinstance(result, Exception):
            raise result
        self.returned.append(result)
        return result

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_client() -> Callable[..., tuple[XimalayaAPIClient, FakeSession]]:
    """Builds an API client on top of a fake session."""

    def _make(responses: list | None = None, handler=None, cookie: str = ""):
        session = FakeSession(responses=responses, handler=handler)
        return XimalayaAPIClient(cookie=cookie, session=session), session

    return _make


def track_page(start: int, count: int, play_path: str = "https://aod.example.com/{}.m4a") -> dict:
    """Builds one page of the track listing JSON."""
    return {
        "ret": 0,
        "data": {
            "trackDetailInfos": [
                {
                    "trackInfo": {
                        "id": track_id,
                        "playPath": play_path.format(track_id) if play_path else "",
                        "title": f"Episode {track_id}",
                    }
                }
                for track_id in range(start, start + count)
            ]
        },
    }


ALBUM_PAGE_HTML = """
<html><body>
  <h1 class="title">郭德纲相声精选</h1>
  <div class="head"><span>专辑里的声音(5)</span></div>
  <ul class="pagination-page">
    <li>1</li>
    <li>下一页</li>
  </ul>
</body></html>
"""
