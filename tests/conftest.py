"""Pytest configuration, fixtures and fakes for the external services."""
import http.cookiejar
import json
from contextlib import contextmanager
from pathlib import Path
from types import SimpleNamespace

import pytest

from ytscribe.config import Config
from ytscribe.errors import FetchError
from ytscribe.models import ResolvedVideo
from ytscribe.ytdl_client import YtdlClient


@pytest.fixture
def config(tmp_path):
    """Config rooted in a temp dir with the artifact directories created."""
    cookies_path = tmp_path / "cookies.json"
    cookies = [{"name": "SID", "value": "session-value", "domain": ".youtube.com"}]
    cookies_path.write_text(json.dumps(cookies), encoding="utf-8")

    cfg = Config(
        deepgram_api_key="test-deepgram-key",
        base_dir=tmp_path,
        cookies_path=cookies_path,
        cookies=cookies,
    )
    cfg.ensure_directories()
    return cfg


class FakeYoutubeDL:
    """Stands in for yt_dlp.YoutubeDL inside YtdlClient.open()."""

    def __init__(self, opts, info=None, error=None, payload=b"video-bytes", hook_events=None):
        self.opts = opts
        self.cookiejar = http.cookiejar.CookieJar()
        self.info = info
        self.error = error
        self.payload = payload
        self.hook_events = hook_events or []
        self.extract_calls = []
        self.download_calls = []

    def extract_info(self, url, download=True, process=True):
        self.extract_calls.append(url)
        if self.error is not None:
            raise self.error
        return self.info

    def download(self, urls):
        self.download_calls.append(list(urls))
        output = Path(self.opts["outtmpl"])
        for event in self.hook_events:
            for hook in self.opts.get("progress_hooks", []):
                hook(event)
        if self.error is not None:
            output.write_bytes(self.payload[: len(self.payload) // 2])
            raise self.error
        output.write_bytes(self.payload)
        return 0


class FakeYtdlClient:
    """YtdlClient replacement recording every session it opens."""

    def __init__(self, config, **ydl_kwargs):
        self.config = config
        self.ydl_kwargs = ydl_kwargs
        self.sessions = []

    @contextmanager
    def open(self, options):
        ydl = FakeYoutubeDL({**YtdlClient.base_options(self), **options}, **self.ydl_kwargs)
        self.sessions.append(ydl)
        yield ydl


@pytest.fixture
def fake_client_factory(config):
    def factory(**ydl_kwargs):
        return FakeYtdlClient(config, **ydl_kwargs)
    return factory


class FakeResolver:
    def __init__(self, stable_id="abc123", title="Example Video"):
        self.stable_id = stable_id
        self.title = title
        self.calls = []

    def resolve(self, source_reference):
        self.calls.append(source_reference)
        return ResolvedVideo(stable_id=self.stable_id, display_title=self.title,
                             raw_metadata={"id": self.stable_id, "title": self.title})


class FakeDownloader:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    def download(self, source_reference, target, progress=None):
        self.calls.append((source_reference, target))
        if self.fail:
            raise FetchError("simulated network error")
        target.write_bytes(b"video-bytes")
        return target


class FakeExtractor:
    def __init__(self):
        self.calls = []

    def extract(self, video_path, audio_path):
        self.calls.append((video_path, audio_path))
        audio_path.write_bytes(b"audio-bytes")
        return audio_path


class FakeTranscriber:
    def __init__(self, transcript="hello world"):
        self.transcript = transcript
        self.calls = []

    def transcribe(self, audio_path):
        self.calls.append(audio_path)
        return self.transcript


@pytest.fixture
def stages():
    """Fresh fake stage implementations keyed by role."""
    return SimpleNamespace(
        resolver=FakeResolver(),
        downloader=FakeDownloader(),
        extractor=FakeExtractor(),
        transcriber=FakeTranscriber(),
    )


def deepgram_response(transcript="hello world"):
    return {
        "metadata": {"request_id": "req-1"},
        "results": {
            "channels": [
                {"alternatives": [{"transcript": transcript, "confidence": 0.98}]}
            ]
        },
    }


class FakeDeepgramClient:
    """Mimics DeepgramClient.listen.rest.v("1").transcribe_file."""

    def __init__(self, response=None, error=None):
        self.response = deepgram_response() if response is None else response
        self.error = error
        self.requests = []
        self.listen = SimpleNamespace(rest=SimpleNamespace(v=self._version))

    def _version(self, version):
        return SimpleNamespace(transcribe_file=self._transcribe_file)

    def _transcribe_file(self, payload, options, headers=None, timeout=None):
        self.requests.append({"payload": payload, "options": options,
                              "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def fake_deepgram():
    """Factory for FakeDeepgramClient; pass response= or error=."""
    return FakeDeepgramClient


@pytest.fixture
def make_response():
    return deepgram_response
