"""
播放列表/分片节点 - 递归验证 HLS 资源树
"""
from __future__ import annotations

import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable
from urllib.parse import urlsplit

from hls_verifier.errors import DownloadFailed, InspectionFailed
from hls_verifier.types import CHILD_FAILURE, PLAYLIST, SEGMENT, ValidationResult
from hls_verifier.utils.config import VerifierConfig
from hls_verifier.utils.logger import logger
from hls_verifier.utils.reporter import Reporter


SEGMENT_EXT = ".ts"
PLAYLIST_EXT = ".m3u8"

DOWNLOAD_FAILED = "download failed"
NOT_TEXT = "playlist is not valid text"
NO_URLS = "no URLs found in playlist"
NO_FRAMES = "no frames found"
NO_KEYFRAMES = "no keyframes found in any frame"
KEYFRAME_NOT_FIRST = "keyframe is not the first frame"


@dataclass
class ValidationContext:
    """Collaborators shared by every node of one run."""

    reporter: Reporter
    downloader: Any
    inspector: Any
    config: VerifierConfig = field(default_factory=VerifierConfig)


def _sentence(reason: str) -> str:
    return reason[:1].upper() + reason[1:]


def classify_line(line: str) -> str | None:
    """Return SEGMENT, PLAYLIST or None (tags, comments, anything else)."""
    if line.endswith(SEGMENT_EXT):
        return SEGMENT
    if line.endswith(PLAYLIST_EXT):
        return PLAYLIST
    return None


def keyframe_verdict(flags: list[bool]) -> str | None:
    """Return why a segment with these per-frame keyframe flags is invalid, or None."""
    if not flags:
        return NO_FRAMES
    if not any(flags):
        return NO_KEYFRAMES
    if not flags[0]:
        return KEYFRAME_NOT_FIRST
    return None


class Resource(ABC):
    """A node of the validation tree, addressed by an absolute URL."""

    kind: str

    def __init__(self, url: str, ctx: ValidationContext):
        self.url = url
        self.ctx = ctx
        self.local_path: str | None = None
        self._workspace: str | None = None

    @property
    def reporter(self) -> Reporter:
        return self.ctx.reporter

    @property
    def description(self) -> str:
        return f"{self.kind} {self.url}"

    # -- URLs --

    @property
    def parent_url(self) -> str:
        return self.url.rsplit("/", 1)[0]

    def resolve_child_url(self, reference: str) -> str:
        if "://" in reference:
            return reference
        return f"{self.parent_url}/{reference.lstrip('/')}"

    @property
    def filename(self) -> str:
        name = urlsplit(self.url).path.rsplit("/", 1)[-1]
        if name in ("", ".", ".."):
            return "resource"
        return name

    # -- Workspace --

    @property
    def workspace(self) -> str:
        if self._workspace is None:
            root = self.ctx.config.workspace_root or None
            if root:
                os.makedirs(root, exist_ok=True)
            self._workspace = tempfile.mkdtemp(prefix="hls_verifier_", dir=root)
            logger.debug(f"Workspace for {self.url}: {self._workspace}")
        return self._workspace

    def cleanup(self) -> None:
        if self._workspace is None:
            return
        if self.ctx.config.keep_workspace:
            logger.info(f"Keeping workspace {self._workspace} ({self.url})")
            return
        shutil.rmtree(self._workspace, ignore_errors=True)
        self._workspace = None
        self.local_path = None

    # -- Download --

    def download(self) -> bytes:
        """Fetch this resource into its workspace and return the bytes.

        Raises:
            DownloadFailed: after reporting the failure.
        """
        try:
            data = self.ctx.downloader.fetch(self.url)
            path = os.path.join(self.workspace, self.filename)
            with open(path, "wb") as f:
                f.write(data)
        except DownloadFailed as e:
            logger.error(f"Download failed: {e}")
            self.reporter.negative("Download failed")
            raise
        except OSError as e:
            logger.error(f"Cannot stage {self.url} in {self._workspace}: {e}")
            self.reporter.negative(f"Cannot stage download: {e}")
            raise DownloadFailed(f"{self.url}: {e}") from e
        self.local_path = path
        return data

    # -- Validation --

    def validate(self) -> ValidationResult:
        self.reporter.announce_start(self.description)
        try:
            result = self._check()
        except Exception as e:
            logger.exception(f"Unexpected error while validating {self.url}")
            self.reporter.negative(f"Unexpected error: {e}")
            result = ValidationResult.invalid(self.url, self.kind, f"unexpected error: {e}")
        finally:
            self.cleanup()

        if result.valid:
            self.reporter.announce_success()
        else:
            self.reporter.announce_failure()
        return result

    @abstractmethod
    def _check(self) -> ValidationResult:
        pass

    def _invalid(self, reason: str, children: list[ValidationResult] | None = None) -> ValidationResult:
        return ValidationResult.invalid(self.url, self.kind, reason, children)


def validate_each(node_cls: type[Resource], urls: Iterable[str], ctx: ValidationContext) -> list[ValidationResult]:
    """Validate every URL as a fresh `node_cls` node; one failure never stops the rest."""
    results = []
    for url in urls:
        try:
            results.append(node_cls(url, ctx).validate())
        except Exception as e:
            logger.exception(f"Could not validate {url}")
            ctx.reporter.negative(f"Unexpected error: {e}")
            results.append(ValidationResult.invalid(url, node_cls.kind, f"unexpected error: {e}"))
    return results


class Playlist(Resource):
    """An .m3u8 manifest listing child playlists and/or segments."""

    kind = PLAYLIST

    def __init__(self, url: str, ctx: ValidationContext):
        super().__init__(url, ctx)
        self.playlist_urls: list[str] = []
        self.segment_urls: list[str] = []

    def parse_urls(self, text: str) -> None:
        self.playlist_urls = []
        self.segment_urls = []
        for line in text.splitlines():
            line = line.strip()
            kind = classify_line(line)
            if kind == SEGMENT:
                self.segment_urls.append(self.resolve_child_url(line))
            elif kind == PLAYLIST:
                self.playlist_urls.append(self.resolve_child_url(line))

    def _check(self) -> ValidationResult:
        try:
            data = self.download()
        except DownloadFailed:
            return self._invalid(DOWNLOAD_FAILED)

        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            logger.warning(f"{self.url} is not UTF-8 text: {e}")
            self.reporter.negative(_sentence(NOT_TEXT))
            return self._invalid(NOT_TEXT)

        self.parse_urls(text)
        logger.debug(
            f"{self.url}: {len(self.playlist_urls)} playlists, {len(self.segment_urls)} segments"
        )
        if not self.playlist_urls and not self.segment_urls:
            self.reporter.negative(_sentence(NO_URLS))
            return self._invalid(NO_URLS)

        self.reporter.positive("Has URLs")
        children = validate_each(Playlist, self.playlist_urls, self.ctx)
        children += validate_each(Segment, self.segment_urls, self.ctx)

        if any(not c.valid for c in children):
            return self._invalid(CHILD_FAILURE, children)
        return ValidationResult.ok(self.url, self.kind, children)


class Segment(Resource):
    """A .ts media segment that must start with a keyframe."""

    kind = SEGMENT

    def _check(self) -> ValidationResult:
        try:
            self.download()
        except DownloadFailed:
            return self._invalid(DOWNLOAD_FAILED)

        try:
            flags = self.ctx.inspector.keyframe_flags(self.local_path)
        except InspectionFailed as e:
            logger.error(f"Keyframe analysis failed for {self.url}: {e}")
            cause = str(e).strip().splitlines()[0] if str(e).strip() else "unknown error"
            self.reporter.negative(f"Keyframe analysis failed: {cause}")
            return self._invalid(f"keyframe analysis failed: {e}")

        logger.debug(f"{self.url}: {len(flags)} frames, {sum(flags)} keyframes")
        reason = keyframe_verdict(flags)
        if reason is not None:
            self.reporter.negative(_sentence(reason))
            return self._invalid(reason)

        self.reporter.positive("Keyframe is first frame")
        return ValidationResult.ok(self.url, self.kind)
