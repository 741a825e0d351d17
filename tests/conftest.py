"""
Shared test fixtures for HLS verifier tests.

Collaborators are replaced by in-memory fakes: tests never open a network
connection or spawn ffprobe.
"""
import io
import os

import pytest

from hls_verifier.errors import DownloadFailed
from hls_verifier.resources import ValidationContext
from hls_verifier.utils.config import VerifierConfig
from hls_verifier.utils.reporter import Reporter


class FakeDownloader:
    """Serves bytes from a URL -> bytes map; unknown URLs fail like an HTTP 404."""

    def __init__(self, resources=None, probe_error=None):
        self.resources = dict(resources or {})
        self.probe_error = probe_error
        self.calls = []
        self.probed = 0

    def probe(self):
        self.probed += 1
        if self.probe_error is not None:
            raise self.probe_error

    def fetch(self, url):
        self.calls.append(url)
        if url not in self.resources:
            raise DownloadFailed(f"{url}: HTTP 404")
        return self.resources[url]


class FakeInspector:
    """Returns keyframe flags by staged file name; an exception value is raised."""

    def __init__(self, flags_by_name=None, default=(True, False, False), probe_error=None):
        self.flags_by_name = dict(flags_by_name or {})
        self.default = default
        self.probe_error = probe_error
        self.calls = []
        self.probed = 0

    def probe(self):
        self.probed += 1
        if self.probe_error is not None:
            raise self.probe_error

    def keyframe_flags(self, path):
        assert os.path.isfile(path), f"segment was not staged: {path}"
        name = os.path.basename(path)
        self.calls.append(name)
        value = self.flags_by_name.get(name, self.default)
        if isinstance(value, Exception):
            raise value
        return list(value)


@pytest.fixture
def workspace_root(tmp_path):
    root = tmp_path / "workspaces"
    root.mkdir()
    return root


@pytest.fixture
def config(workspace_root):
    return VerifierConfig(workspace_root=str(workspace_root))


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def reporter(output):
    return Reporter(stream=output)


@pytest.fixture
def downloader():
    return FakeDownloader()


@pytest.fixture
def inspector():
    return FakeInspector()


@pytest.fixture
def ctx(reporter, downloader, inspector, config):
    return ValidationContext(reporter=reporter, downloader=downloader, inspector=inspector, config=config)


MASTER_URL = "http://cdn.test/live/master.m3u8"

MASTER_PLAYLIST = b"""#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=800000,RESOLUTION=640x360
low/index.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=1400000,RESOLUTION=1280x720
high/index.m3u8
"""

MEDIA_PLAYLIST = b"""#EXTM3U
#EXT-X-VERSION:3
#EXT-X-TARGETDURATION:6
#EXT-X-MEDIA-SEQUENCE:0
#EXTINF:6.0,
seg0.ts
#EXTINF:6.0,
seg1.ts
#EXT-X-ENDLIST
"""


@pytest.fixture
def stream_tree():
    """A master playlist with two variants, each listing two segments."""
    return {
        MASTER_URL: MASTER_PLAYLIST,
        "http://cdn.test/live/low/index.m3u8": MEDIA_PLAYLIST,
        "http://cdn.test/live/low/seg0.ts": b"\x47low0",
        "http://cdn.test/live/low/seg1.ts": b"\x47low1",
        "http://cdn.test/live/high/index.m3u8": MEDIA_PLAYLIST,
        "http://cdn.test/live/high/seg0.ts": b"\x47high0",
        "http://cdn.test/live/high/seg1.ts": b"\x47high1",
    }
