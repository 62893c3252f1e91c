from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from .errors import ConversionError


@dataclass(frozen=True)
class JobResult:
    """
    Outcome of converting a single file.

    Keeping it immutable (frozen=True) makes it easy to pass between threads.
    """
    source: Path
    output: Optional[Path]  # None unless a file was written
    error: Optional[ConversionError] = None
    skipped: bool = False  # never started (batch cancelled first)
    replaced: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.skipped and self.output is not None


@dataclass(frozen=True)
class ProgressEvent:
    processed: int
    total: int
    current_file: str

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 1.0
        return self.processed / self.total


@dataclass
class BatchResult:
    """Aggregate of a batch, filled in job by job."""

    total: int = 0
    results: List[JobResult] = field(default_factory=list)
    cancelled: bool = False

    def record(self, r: JobResult) -> None:
        self.results.append(r)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.error is not None)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.skipped)

    @property
    def attempted(self) -> int:
        return sum(1 for r in self.results if not r.skipped)

    @property
    def failures(self) -> List[Tuple[Path, ConversionError]]:
        return [(r.source, r.error) for r in self.results if r.error is not None]

    @property
    def outputs(self) -> List[Path]:
        return [r.output for r in self.results if r.ok and r.output is not None]
