"""Pytest configuration and shared fakes for destream tests."""

from __future__ import annotations

import io
import signal
from pathlib import Path

import pytest

from destream.api.schemas import SessionInfo
from destream.config.loader import clear_config_cache
from destream.exceptions import BrowserError
from destream.models.video import Video
from destream.tools.ffmpeg import FFmpegTool, MuxError, MuxProgress, MuxSuccess
from destream.tools.progress import ChunkProgressBar

SESSION_DATA = {
    "AccessToken": "opaque-token",
    "ApiGatewayUri": "https://euwe-1.api.microsoftstream.com/api/",
    "ApiGatewayVersion": "1.4-private",
}

LOGIN_URLS = [
    "https://logon.ms.cvut.cz/adfs/ls/?client-request-id=1",
    "https://login.microsoftonline.com/login.srf",
    "https://web.microsoftstream.com/",
]

VIDEO_ID = "a1b2c3d4-0000-1111-2222-333344445555"


def pytest_addoption(parser):
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against a real browser and ffmpeg",
    )


def pytest_collection_modifyitems(config, items):
    if not config.getoption("--run-integration"):
        skip = pytest.mark.skip(reason="needs --run-integration flag")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip)


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    """Point config resolution at a temporary root for every test."""
    monkeypatch.setenv("DESTREAM_ROOT", str(tmp_path / "root"))
    monkeypatch.delenv("DESTREAM_TOKEN_CACHE", raising=False)
    monkeypatch.chdir(tmp_path)
    clear_config_cache()
    yield
    clear_config_cache()


# ---------------------------------------------------------------------------
# Browser
# ---------------------------------------------------------------------------


class FakeBrowser:
    """In-memory BrowserDriver.

    Args:
        selectors: Selectors that appear on the page
        urls: URLs the page passes through; a URL wait succeeds if any matches
        failed_probes: Number of evaluate() calls that fail before the
            session object becomes readable (None: never readable)
        session_data: Value returned by evaluate()
    """

    def __init__(self, selectors=(), urls=(), failed_probes=0, session_data=None):
        self.selectors = set(selectors)
        self.urls = list(urls)
        self.failed_probes = failed_probes
        self.session_data = dict(session_data or SESSION_DATA)
        self.actions = []
        self.evaluations = 0
        self.closed = False
        self._url = ""

    @property
    def url(self):
        return self._url

    def goto(self, url):
        self.actions.append(("goto", url))
        self._url = url

    def wait_for_selector(self, selector, timeout):
        return selector in self.selectors

    def wait_for_url(self, predicate, timeout):
        for url in self.urls:
            if predicate(url):
                self._url = url
                return True
        return False

    def type(self, selector, text):
        self.actions.append(("type", selector, text))

    def click(self, selector):
        self.actions.append(("click", selector))

    def evaluate(self, expression):
        self.evaluations += 1
        if self.failed_probes is None or self.evaluations <= self.failed_probes:
            raise BrowserError("ReferenceError: sessionInfo is not defined")
        return dict(self.session_data)

    def close(self):
        self.closed = True


@pytest.fixture
def session():
    return SessionInfo.model_validate(SESSION_DATA).to_session()


# ---------------------------------------------------------------------------
# Videos and ffmpeg
# ---------------------------------------------------------------------------


def make_video(tmp_path: Path, index: int = 1, total_chunks: int = 50, **kwargs) -> Video:
    defaults = {
        "id": f"a1b2c3d4-0000-1111-2222-{index:012d}",
        "title": f"Lecture {index}",
        "playback_url": f"https://cdn.example.com/{index}/manifest(format=m3u8-aapl)",
        "poster_image_url": None,
        "total_chunks": total_chunks,
        "publish_date": "2020-04-01",
        "out_path": str(tmp_path / f"lecture-{index}.mkv"),
    }
    defaults.update(kwargs)
    return Video(**defaults)


INTERRUPT = object()


class FakeProcess:
    """MuxProcess stand-in that writes the output file and replays events."""

    def __init__(self, script, out_path):
        self.script = script
        self.out_path = Path(out_path)
        self.terminated = False

    def events(self):
        self.out_path.write_bytes(b"partial")
        for item in self.script:
            if item is INTERRUPT:
                signal.getsignal(signal.SIGINT)(signal.SIGINT, None)
            else:
                yield item

    def terminate(self):
        self.terminated = True


class FakeFFmpeg(FFmpegTool):
    """FFmpegTool that replays one scripted event list per spawn()."""

    def __init__(self, *scripts):
        self.scripts = list(scripts)
        self.commands = []
        self.processes = []

    def get_path(self):
        return "ffmpeg"

    def spawn(self, command):
        self.commands.append(command)
        process = FakeProcess(self.scripts.pop(0), command.outputs[-1][-1])
        self.processes.append(process)
        return process


def progress_script(*timemarks, result=None):
    events = [MuxProgress(timemark=t, bitrate="2048.0kbits/s", speed="1.5x") for t in timemarks]
    events.append(result or MuxSuccess())
    return events


def failing_script(*timemarks, reason="Server returned 403 Forbidden"):
    return progress_script(*timemarks, result=MuxError(reason))


class BarRecorder:
    """progress_factory that keeps every bar it creates."""

    def __init__(self, columns=90):
        self.columns = columns
        self.bars = []
        self.output = io.StringIO()

    def __call__(self, total):
        bar = ChunkProgressBar(total, output=self.output, columns=self.columns)
        self.bars.append(bar)
        return bar
