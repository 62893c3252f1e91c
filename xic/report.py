from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .results import BatchResult, JobResult
from .settings import ConvertSettings, settings_to_dict


@dataclass(frozen=True)
class FileReport:
    source: str
    output: Optional[str]
    status: str  # "converted" | "replaced" | "failed" | "skipped"
    error_kind: Optional[str]
    error: Optional[str]


@dataclass(frozen=True)
class BatchReport:
    created_utc: str
    summary: dict
    settings: dict
    files: List[FileReport]


def _status(r: JobResult) -> str:
    if r.skipped:
        return "skipped"
    if r.error is not None:
        return "failed"
    return "replaced" if r.replaced else "converted"


def build_report(result: BatchResult, settings: ConvertSettings) -> BatchReport:
    created_utc = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")

    files: List[FileReport] = []
    for r in result.results:
        files.append(
            FileReport(
                source=str(r.source),
                output=str(r.output) if r.output else None,
                status=_status(r),
                error_kind=r.error.kind if r.error else None,
                error=str(r.error) if r.error else None,
            )
        )

    summary_dict = {
        "total": result.total,
        "succeeded": result.succeeded,
        "failed": result.failed,
        "skipped": result.skipped,
        "cancelled": result.cancelled,
    }

    return BatchReport(
        created_utc=created_utc,
        summary=summary_dict,
        settings=settings_to_dict(settings),
        files=files,
    )


def save_report_json(report: BatchReport, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", encoding="utf-8") as f:
        json.dump(asdict(report), f, indent=2, ensure_ascii=False)


def save_report_csv(report: BatchReport, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        w.writerow(["source", "output", "status", "error_kind", "error"])
        for fr in report.files:
            w.writerow([fr.source, fr.output or "", fr.status, fr.error_kind or "", fr.error or ""])


def format_summary(result: BatchResult) -> List[str]:
    """End-of-batch message: counts, then one line per failed file."""
    lines = [f"Successfully converted {result.succeeded} image(s)."]
    if result.failed:
        lines.append(f"Failed: {result.failed}")
        lines.append("Errors:")
        for src, err in result.failures:
            lines.append(f"  {Path(src).name}: {err}")
    if result.skipped:
        lines.append(f"Skipped (cancelled): {result.skipped}")
    return lines
