from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum


PLAYLIST = "playlist"
SEGMENT = "segment"

# Generic reason of a playlist whose child failed; the child already reported its own reason.
CHILD_FAILURE = "error in child resource"


class ExitStatus(IntEnum):
    OK = 0
    FAILED = 1


@dataclass
class ValidationResult:
    """Verdict of one node of the validation tree.

    `reason` is None for a valid node.
    """

    url: str
    kind: str
    valid: bool
    reason: str | None = None
    children: list[ValidationResult] = field(default_factory=list)

    @classmethod
    def ok(cls, url: str, kind: str, children: list[ValidationResult] | None = None) -> ValidationResult:
        return cls(url=url, kind=kind, valid=True, children=list(children or []))

    @classmethod
    def invalid(
        cls,
        url: str,
        kind: str,
        reason: str,
        children: list[ValidationResult] | None = None,
    ) -> ValidationResult:
        return cls(url=url, kind=kind, valid=False, reason=reason, children=list(children or []))

    def walk(self):
        yield self
        for child in self.children:
            yield from child.walk()
