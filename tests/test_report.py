"""Tests for batch reports and the end-of-batch summary."""

import csv
import json
from pathlib import Path

from xic.errors import DecodeError, EncodeError
from xic.report import build_report, format_summary, save_report_csv, save_report_json
from xic.results import BatchResult, JobResult


def _result(out_dir: Path) -> BatchResult:
    r = BatchResult(total=4)
    r.record(JobResult(Path("in/a.png"), out_dir / "a.jpg"))
    r.record(JobResult(Path("in/b.png"), out_dir / "b.jpg", replaced=True))
    r.record(JobResult(Path("in/c.png"), None, error=DecodeError("Failed to load image: c.png")))
    r.record(JobResult(Path("in/d.png"), None, error=EncodeError("webp", "bad size")))
    return r


class TestBatchResult:
    def test_counts(self, out_dir):
        r = _result(out_dir)

        assert (r.succeeded, r.failed, r.skipped, r.attempted) == (2, 2, 0, 4)
        assert [p.name for p in r.outputs] == ["a.jpg", "b.jpg"]
        assert [src.name for src, _ in r.failures] == ["c.png", "d.png"]


class TestSummary:
    def test_lists_every_failure(self, out_dir):
        lines = format_summary(_result(out_dir))

        assert lines[0] == "Successfully converted 2 image(s)."
        assert "Failed: 2" in lines
        assert any(l.strip().startswith("c.png:") for l in lines)
        assert any("WEBP encode failed: bad size" in l for l in lines)

    def test_clean_batch(self, out_dir):
        r = BatchResult(total=1)
        r.record(JobResult(Path("a.png"), out_dir / "a.jpg"))

        assert format_summary(r) == ["Successfully converted 1 image(s)."]


class TestReportFiles:
    def test_json_and_csv(self, out_dir, settings):
        report = build_report(_result(out_dir), settings)

        save_report_json(report, out_dir / "r" / "report.json")
        save_report_csv(report, out_dir / "r" / "report.csv")

        data = json.loads((out_dir / "r" / "report.json").read_text(encoding="utf-8"))
        assert data["summary"]["succeeded"] == 2
        assert data["settings"]["output_format"] == "jpeg"
        assert [f["status"] for f in data["files"]] == ["converted", "replaced", "failed", "failed"]
        assert data["files"][3]["error_kind"] == "encode"

        with (out_dir / "r" / "report.csv").open(encoding="utf-8", newline="") as f:
            rows = list(csv.DictReader(f))
        assert rows[2]["error_kind"] == "decode"
        assert rows[0]["output"].endswith("a.jpg")
