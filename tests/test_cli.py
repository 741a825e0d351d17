"""
Tests for the command line entry point.
"""
import io
import json

import pytest

from hls_verifier.cli import main
from hls_verifier.errors import MissingDependency
from hls_verifier.utils.reporter import Reporter
from hls_verifier.validator import ValidationRun


MASTER_URL = "http://cdn.test/live/master.m3u8"


@pytest.fixture
def config_file(tmp_path, workspace_root):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"workspace_root": str(workspace_root)}), encoding="utf-8")
    return path


@pytest.fixture
def cli(downloader, inspector, config_file):
    """Run main() against the fake collaborators; returns (exit_code, stdout_text, run)."""
    runs = []

    def factory(reporter, config):
        run = ValidationRun(reporter=reporter, downloader=downloader, inspector=inspector, config=config)
        runs.append(run)
        return run

    def _invoke(*argv):
        out = io.StringIO()
        code = main(["-c", str(config_file), *argv], reporter=Reporter(stream=out), run_factory=factory)
        return code, out.getvalue(), runs[-1] if runs else None

    return _invoke


class TestMain:

    def test_all_valid_exits_zero(self, cli, downloader, stream_tree):
        downloader.resources.update(stream_tree)

        code, text, _ = cli(MASTER_URL)

        assert code == 0
        assert text.startswith("HLS Stream verifier\n")
        assert text.rstrip().endswith("All resources valid ✔")

    def test_failure_exits_one(self, cli, downloader, stream_tree):
        downloader.resources.update(stream_tree)
        del downloader.resources["http://cdn.test/live/high/seg1.ts"]

        code, text, _ = cli(MASTER_URL)

        assert code == 1
        assert text.rstrip().endswith("Validation failed ✘")

    def test_no_urls_exits_one(self, cli, downloader):
        code, text, _ = cli()

        assert code == 1
        assert "Must give URL" in text
        assert downloader.calls == []

    def test_missing_dependency_exits_one(self, cli, downloader, inspector, stream_tree):
        downloader.resources.update(stream_tree)
        inspector.probe_error = MissingDependency("No ffprobe installed")

        code, text, _ = cli(MASTER_URL)

        assert code == 1
        assert "No ffprobe installed" in text
        assert downloader.calls == []

    def test_cli_flags_override_config(self, cli, downloader, stream_tree):
        downloader.resources.update(stream_tree)

        _, _, run = cli("--timeout", "3", "--ffprobe", "/opt/ffprobe", "--proxy", "http://p:1", "--insecure", MASTER_URL)

        assert run.config.timeout == 3
        assert run.config.ffprobe_path == "/opt/ffprobe"
        assert run.config.proxy_url == "http://p:1"
        assert run.config.verify_tls is False

    def test_json_report(self, cli, downloader, stream_tree, tmp_path):
        downloader.resources.update(stream_tree)
        del downloader.resources["http://cdn.test/live/low/index.m3u8"]
        report_path = tmp_path / "reports" / "run.json"

        code, _, _ = cli("--report-json", str(report_path), MASTER_URL)

        assert code == 1
        data = json.loads(report_path.read_text(encoding="utf-8"))
        assert data["success"] is False
        master = data["playlists"][0]
        assert master["url"] == MASTER_URL
        assert master["reason"] == "error in child resource"
        assert [c["valid"] for c in master["children"]] == [False, True]
        assert len(master["children"][1]["children"]) == 2

    def test_report_write_failure_ends_on_failure_line(self, cli, downloader, stream_tree, tmp_path):
        downloader.resources.update(stream_tree)
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x", encoding="utf-8")

        code, text, _ = cli("--report-json", str(blocker / "run.json"), MASTER_URL)

        assert code == 1
        last = text.rstrip().splitlines()[-1]
        assert last.startswith("Failed to write report")
        assert last.endswith("✘")
        assert "All resources valid" not in text

    def test_report_written_before_verdict(self, cli, downloader, stream_tree, tmp_path):
        downloader.resources.update(stream_tree)
        report_path = tmp_path / "run.json"

        code, text, _ = cli("--report-json", str(report_path), MASTER_URL)

        assert code == 0
        assert report_path.exists()
        assert text.rstrip().splitlines()[-1] == "All resources valid ✔"
