"""
控制台报告模块 - 按层级输出验证进度与结果
"""
from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import TextIO

from hls_verifier.utils.logger import logger


PASS_MARK = "✔"
FAIL_MARK = "✘"


@dataclass(frozen=True)
class ReportEntry:
    kind: str  # start | positive | negative | success | failure | info
    depth: int
    text: str


class Reporter:
    """Hierarchical progress printer shared by every node of one run.

    Carries the only mutable state of a run: the nesting depth, the stack of
    nodes waiting for their pass/fail line and the cumulative failure flag.
    """

    def __init__(self, stream: TextIO | None = None, indent: str = "  "):
        self.stream = stream
        self.indent = indent
        self.entries: list[ReportEntry] = []
        self._depth = 0
        self._open: list[str] = []
        self._failed = False

    @property
    def depth(self) -> int:
        return self._depth

    def _emit(self, kind: str, text: str) -> None:
        self.entries.append(ReportEntry(kind=kind, depth=self._depth, text=text))
        stream = self.stream if self.stream is not None else sys.stdout
        stream.write(f"{self.indent * self._depth}{text}\n")
        stream.flush()
        logger.debug(f"[{kind}] {'.' * self._depth}{text}")

    def info(self, message: str = "") -> None:
        self._emit("info", message)

    def announce_start(self, description: str) -> None:
        self._emit("start", f"Validating {description}")
        self._open.append(description)
        self._depth += 1

    def _close(self) -> str:
        if not self._open:
            raise RuntimeError("announce_success/announce_failure called without announce_start")
        self._depth -= 1
        return self._open.pop()

    def announce_success(self) -> None:
        description = self._close()
        self._emit("success", f"{PASS_MARK} {description}")

    def announce_failure(self) -> None:
        description = self._close()
        self._failed = True
        self._emit("failure", f"{FAIL_MARK} {description}")

    def positive(self, message: str) -> None:
        self._emit("positive", f"{message} {PASS_MARK}")

    def negative(self, message: str) -> None:
        self._failed = True
        self._emit("negative", f"{message} {FAIL_MARK}")

    def has_any_failure(self) -> bool:
        return self._failed

    def messages(self, kind: str) -> list[str]:
        """Texts of all entries of one kind, in emission order."""
        return [e.text for e in self.entries if e.kind == kind]
