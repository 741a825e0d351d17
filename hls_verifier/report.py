from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from hls_verifier.types import ValidationResult


class NodeReport(BaseModel):
    url: str = Field(..., min_length=1)
    kind: str
    valid: bool
    reason: Optional[str] = None
    children: List[NodeReport] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ValidationResult) -> NodeReport:
        return cls(
            url=result.url,
            kind=result.kind,
            valid=result.valid,
            reason=result.reason,
            children=[cls.from_result(c) for c in result.children],
        )


class RunReport(BaseModel):
    success: bool
    started_at: datetime
    finished_at: datetime
    playlists: List[NodeReport] = Field(default_factory=list)


def build_run_report(
    results: List[ValidationResult],
    success: bool,
    started_at: datetime,
    finished_at: datetime,
) -> RunReport:
    return RunReport(
        success=success,
        started_at=started_at,
        finished_at=finished_at,
        playlists=[NodeReport.from_result(r) for r in results],
    )


def write_run_report(report: RunReport, path: str | Path) -> Path:
    p = Path(path)
    if p.parent and not p.parent.exists():
        p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    return p
