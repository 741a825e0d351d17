from __future__ import annotations

import re
import subprocess
from pathlib import Path

from hls_verifier.errors import InspectionFailed, MissingDependency
from hls_verifier.utils.config import DEFAULT_FFPROBE_TIMEOUT, VerifierConfig
from hls_verifier.utils.logger import logger


_KEY_FRAME_RE = re.compile(r"key_frame=(\d)")


def parse_keyframe_flags(output: str) -> list[bool]:
    """Extract one flag per `key_frame=N` entry of `ffprobe -show_frames` output."""
    return [m.group(1) == "1" for m in _KEY_FRAME_RE.finditer(output)]


class FfprobeInspector:
    """Reads per-frame keyframe flags of the first video stream with ffprobe."""

    def __init__(self, ffprobe_path: str = "ffprobe", timeout: float = DEFAULT_FFPROBE_TIMEOUT):
        self.ffprobe_path = ffprobe_path
        self.timeout = timeout

    @classmethod
    def from_config(cls, cfg: VerifierConfig) -> "FfprobeInspector":
        return cls(ffprobe_path=cfg.ffprobe_path, timeout=cfg.ffprobe_timeout)

    def probe(self) -> None:
        try:
            proc = subprocess.run(
                [self.ffprobe_path, "-version"],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise MissingDependency(f"No ffprobe installed ({self.ffprobe_path}): {e}") from e
        if proc.returncode != 0:
            raise MissingDependency(f"No ffprobe installed ({self.ffprobe_path}): exit code {proc.returncode}")

    def keyframe_flags(self, path: str | Path) -> list[bool]:
        """Return the keyframe flag of every frame, in the order ffprobe reports them.

        Raises:
            InspectionFailed: ffprobe is missing, timed out or exited non-zero.
        """
        cmd = [
            self.ffprobe_path,
            "-v",
            "error",
            "-select_streams",
            "v:0",
            "-show_frames",
            "-show_entries",
            "frame=key_frame",
            str(path),
        ]
        logger.debug(f"Running {' '.join(cmd)}")
        try:
            proc = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise InspectionFailed(f"{self.ffprobe_path} not found") from e
        except subprocess.TimeoutExpired as e:
            raise InspectionFailed(f"ffprobe timed out after {self.timeout:g}s") from e

        if proc.returncode != 0:
            stderr = proc.stderr.decode("utf-8", errors="replace").strip()
            logger.debug(f"ffprobe failed on {path}: {stderr}")
            raise InspectionFailed(stderr or f"ffprobe exited with code {proc.returncode}")

        return parse_keyframe_flags(proc.stdout.decode("utf-8", errors="replace"))
