"""
验证流程 - 依赖检查、逐个验证顶层播放列表并汇总结果
"""
from __future__ import annotations

from typing import Any, Sequence

from hls_verifier.errors import UsageError
from hls_verifier.inspector import FfprobeInspector
from hls_verifier.resources import Playlist, ValidationContext, validate_each
from hls_verifier.types import ExitStatus, ValidationResult
from hls_verifier.utils.config import VerifierConfig
from hls_verifier.utils.logger import logger
from hls_verifier.utils.network import HttpDownloader
from hls_verifier.utils.reporter import Reporter


class ValidationRun:
    """Validates one or more top-level playlists as independent trees."""

    def __init__(
        self,
        reporter: Reporter | None = None,
        downloader: Any = None,
        inspector: Any = None,
        config: VerifierConfig | None = None,
    ):
        self.config = config or VerifierConfig()
        self.reporter = reporter or Reporter()
        self.downloader = downloader or HttpDownloader.from_config(self.config)
        self.inspector = inspector or FfprobeInspector.from_config(self.config)
        self.urls: list[str] = []
        self.results: list[ValidationResult] = []

    def check_dependencies(self) -> None:
        """Raises MissingDependency when the download or frame-inspection tool is unusable."""
        self.downloader.probe()
        self.inspector.probe()
        logger.debug("Dependencies available")

    def run(self, urls: Sequence[str]) -> ExitStatus:
        """
        验证所有顶层播放列表

        Raises:
            UsageError: no URL given.
            MissingDependency: a collaborator failed its probe; nothing was downloaded.
        """
        self.urls = [u.strip() for u in urls if u and u.strip()]
        if not self.urls:
            raise UsageError("Must give URL to .m3u8 playlist as argument")

        self.check_dependencies()

        ctx = ValidationContext(
            reporter=self.reporter,
            downloader=self.downloader,
            inspector=self.inspector,
            config=self.config,
        )
        logger.info(f"Validating {len(self.urls)} playlist(s)")
        self.results = validate_each(Playlist, self.urls, ctx)

        if self.reporter.has_any_failure():
            logger.info("Validation finished with failures")
            return ExitStatus.FAILED
        logger.info("Validation finished, all resources valid")
        return ExitStatus.OK
