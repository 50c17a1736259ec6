"""Tests for the Typer command line."""

import pytest
from typer.testing import CliRunner

import ximalaya_dl.__main__ as entry
from ximalaya_dl import __version__
from ximalaya_dl.cli import app as cli_app
from ximalaya_dl.exceptions import MetadataFetchError
from ximalaya_dl.models.stats import DownloadStats

runner = CliRunner()


class FakeClient:
    instances: list["FakeClient"] = []

    def __init__(self, cookie: str = ""):
        self.cookie = cookie
        FakeClient.instances.append(self)

    async def __aenter__(self) -> "FakeClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        pass


class FakeAlbumDetail:
    instances: list["FakeAlbumDetail"] = []

    def __init__(self, url, api_client, output_dir, downloader=None, **kwargs):
        self.url = url
        self.output_dir = output_dir
        self.downloader = downloader
        self.calls: list[tuple] = []
        self.stats = DownloadStats()
        FakeAlbumDetail.instances.append(self)

    async def fetch(self) -> None:
        self.calls.append(("fetch",))

    def display(self, console=None) -> None:
        self.calls.append(("display",))

    async def download(self, start=None, progress_manager=None) -> None:
        self.calls.append(("download", start))


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    config_file = tmp_path / "ximalaya-dl" / "config.ini"
    monkeypatch.setattr(cli_app, "CONFIG_FILE", config_file)
    return config_file


@pytest.fixture
def fakes(monkeypatch):
    FakeClient.instances = []
    FakeAlbumDetail.instances = []
    monkeypatch.setattr(cli_app, "XimalayaAPIClient", FakeClient)
    monkeypatch.setattr(cli_app, "AlbumDetail", FakeAlbumDetail)


def test_version() -> None:
    result = runner.invoke(cli_app.app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_display_does_not_download(fakes) -> None:
    result = runner.invoke(
        cli_app.app, ["download", "https://www.ximalaya.com/xiangsheng/1", "-d"]
    )

    assert result.exit_code == 0, result.output
    (detail,) = FakeAlbumDetail.instances
    assert detail.calls == [("fetch",), ("display",)]


def test_download_uses_cli_options(fakes, tmp_path) -> None:
    out = tmp_path / "music"
    result = runner.invoke(
        cli_app.app,
        [
            "download",
            "https://www.ximalaya.com/xiangsheng/1",
            "-o",
            str(out),
            "--start",
            "3",
            "--retries",
            "5",
            "--cookie",
            "c=1",
        ],
    )

    assert result.exit_code == 0, result.output
    (detail,) = FakeAlbumDetail.instances
    assert detail.calls == [("fetch",), ("download", 3)]
    assert detail.output_dir == str(out)
    assert detail.downloader.max_attempts == 5
    assert FakeClient.instances[0].cookie == "c=1"
    assert "Download Complete" in result.output


def test_init_writes_config(isolated_config) -> None:
    result = runner.invoke(cli_app.app, ["init", "1&_token=abc", "-o", "/music"])

    assert result.exit_code == 0, result.output
    text = isolated_config.read_text(encoding="utf-8")
    assert "cookie = 1&_token=abc" in text
    assert "output_dir = /music" in text


def test_init_refuses_overwrite_without_confirmation(isolated_config) -> None:
    isolated_config.parent.mkdir(parents=True)
    isolated_config.write_text("[DEFAULT]\ncookie = old\n", encoding="utf-8")

    result = runner.invoke(cli_app.app, ["init", "new"], input="n\n")

    assert result.exit_code != 0
    assert "cookie = old" in isolated_config.read_text(encoding="utf-8")


def test_main_exits_with_status_1_on_domain_error(monkeypatch) -> None:
    def failing_app(args=None) -> None:
        raise MetadataFetchError("Read html failed")

    monkeypatch.setattr(entry, "app", failing_app)

    with pytest.raises(SystemExit) as exc_info:
        entry.main()

    assert exc_info.value.code == 1


@pytest.mark.parametrize(
    ("argv", "expected"),
    [
        (["https://x.com/c/1"], ["download", "https://x.com/c/1"]),
        (["-d", "https://x.com/c/1"], ["download", "-d", "https://x.com/c/1"]),
        (["-vv", "https://x.com/c/1", "-d"], ["-vv", "download", "https://x.com/c/1", "-d"]),
        (["-o", "out", "https://x.com/c/1"], ["download", "-o", "out", "https://x.com/c/1"]),
        (["download", "https://x.com/c/1"], ["download", "https://x.com/c/1"]),
        (["init", "cookie"], ["init", "cookie"]),
        (["--version"], ["--version"]),
        ([], []),
    ],
)
def test_bare_url_defaults_to_download(argv, expected) -> None:
    assert cli_app.with_default_command(argv) == expected


def test_bare_url_runs_download(fakes) -> None:
    args = cli_app.with_default_command(["https://www.ximalaya.com/xiangsheng/1", "-d"])

    result = runner.invoke(cli_app.app, args)

    assert result.exit_code == 0, result.output
    (detail,) = FakeAlbumDetail.instances
    assert detail.url == "https://www.ximalaya.com/xiangsheng/1"
    assert detail.calls == [("fetch",), ("display",)]


def test_main_passes_rewritten_argv(monkeypatch) -> None:
    received = []
    monkeypatch.setattr(entry, "app", lambda args=None: received.append(args))
    monkeypatch.setattr("sys.argv", ["ximalaya-dl", "https://x.com/c/1"])

    entry.main()

    assert received == [["download", "https://x.com/c/1"]]
