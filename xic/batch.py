from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from enum import Enum
import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence
import threading

from . import collisions
from .collisions import CollisionPolicy, CollisionScan, PlannedOutput
from .engine import SUPPORTED_EXTS, ConversionJob, convert_file
from .errors import BatchStateError, CollisionCancelled, ConversionError
from .results import BatchResult, JobResult, ProgressEvent
from .settings import ConvertSettings


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]
PolicyChooser = Callable[[CollisionScan], CollisionPolicy]


class BatchState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    AWAITING_POLICY = "awaiting_policy"
    READY = "ready"  # jobs queued, waiting for run()
    CONVERTING = "converting"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def _is_relative_to(child: Path, parent: Path) -> bool:
    try:
        child.relative_to(parent)
        return True
    except ValueError:
        return False


def iter_images(
    paths: Sequence[Path],
    recursive: bool = True,
    exclude_dir: Optional[Path] = None,
) -> Iterable[Path]:
    """
    Yield supported image paths from a mixture of files and directories.

    exclude_dir:
        If provided, any files inside this directory will be skipped.
        (Prevents re-processing output files when output_dir is inside input_dir.)

    Files named explicitly are yielded even if the extension is unknown, so
    the batch can report them as decode failures instead of dropping them.
    """
    exclude_resolved = exclude_dir.resolve() if exclude_dir else None

    for p in paths:
        p = Path(p)

        if p.is_dir():
            pattern = "**/*" if recursive else "*"
            for f in sorted(p.glob(pattern)):
                if not f.is_file() or f.name.startswith("."):
                    continue
                if f.suffix.lower() not in SUPPORTED_EXTS:
                    continue
                if exclude_resolved and _is_relative_to(f.resolve(), exclude_resolved):
                    continue
                yield f
            continue

        if exclude_resolved and _is_relative_to(p.resolve(), exclude_resolved):
            continue
        yield p


def build_job(planned: PlannedOutput, s: ConvertSettings) -> ConversionJob:
    return ConversionJob(
        source=planned.source,
        output=planned.output,
        aspect=s.aspect,
        scaling_mode=s.scaling_mode,
        anchor=s.anchor_for(planned.source),
        resolution=s.resolution,
        output_format=s.output_format,
        quality=s.quality,
        remove_letterboxing=s.remove_letterboxing,
        replace_existing=planned.replace_existing,
        webp_lossless=s.webp_lossless,
        allow_upscale=s.allow_upscale,
        letterbox_threshold=s.letterbox_threshold,
        background=s.background,
    )


class BatchOrchestrator:
    """
    Drives one batch through

        IDLE -> SCANNING -> [AWAITING_POLICY] -> READY -> CONVERTING -> COMPLETED | CANCELLED

    AWAITING_POLICY is only entered when some outputs already exist. The
    user's policy applies to every collision of the batch. Once converting,
    every job runs independently; a failing file is recorded, never raised.
    """

    def __init__(
        self,
        settings: ConvertSettings,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.settings = settings
        self.progress_callback = progress_callback
        self.cancel_event = cancel_event or threading.Event()

        self.state = BatchState.IDLE
        self.collision_scan: Optional[CollisionScan] = None
        self.jobs: List[ConversionJob] = []

    # ---------------- Scanning ----------------
    def scan(self, inputs: Sequence[Path]) -> CollisionScan:
        self._require(BatchState.IDLE)
        self.state = BatchState.SCANNING

        s = self.settings
        sources = iter_images(inputs, recursive=s.recursive, exclude_dir=Path(s.output_dir))
        pairs = [(src, s.output_path_for(src)) for src in sources]
        self.collision_scan = collisions.scan(pairs)

        if self.collision_scan.has_collisions:
            self.state = BatchState.AWAITING_POLICY
            logger.info("%d of %d output(s) already exist", len(self.collision_scan.colliding), len(pairs))
        else:
            self.jobs = [build_job(p, s) for p in self.collision_scan.fresh]
            self.state = BatchState.READY

        return self.collision_scan

    def choose_policy(self, policy: CollisionPolicy) -> None:
        self._require(BatchState.AWAITING_POLICY)

        try:
            plan = collisions.resolve(self.collision_scan, policy)
        except CollisionCancelled:
            logger.info("Batch cancelled at collision prompt")
            self._reset()
            raise

        logger.info("Collision policy: %s", CollisionPolicy(policy).value)
        self.jobs = [build_job(p, self.settings) for p in plan]
        self.state = BatchState.READY

    # ---------------- Converting ----------------
    def run(self) -> BatchResult:
        self._require(BatchState.READY)
        self.state = BatchState.CONVERTING

        jobs = list(self.jobs)
        result = BatchResult(total=len(jobs))
        processed = 0

        for r in self._execute(jobs):
            result.record(r)
            if r.skipped:
                continue
            processed += 1
            self._emit(ProgressEvent(processed, len(jobs), r.source.name))

        result.cancelled = result.skipped > 0
        self.state = BatchState.CANCELLED if result.cancelled else BatchState.COMPLETED
        logger.info("Batch %s: %d succeeded, %d failed, %d skipped",
                    self.state.value, result.succeeded, result.failed, result.skipped)
        return result

    def cancel(self) -> None:
        """Ask a running batch to stop before its next job."""
        self.cancel_event.set()

    def _execute(self, jobs: List[ConversionJob]) -> Iterable[JobResult]:
        workers = min(self.settings.max_workers, max(1, len(jobs)))

        if workers <= 1:
            for job in jobs:
                yield self._run_job(job)
            return

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self._run_job, job) for job in jobs]
            for future in as_completed(futures):
                yield future.result()

    def _run_job(self, job: ConversionJob) -> JobResult:
        if self.cancel_event.is_set():
            return JobResult(source=job.source, output=None, skipped=True)

        try:
            return convert_file(job)
        except ConversionError as ex:
            logger.warning("%s: %s", job.source.name, ex)
            return JobResult(source=job.source, output=None, error=ex)
        except Exception as ex:
            logger.exception("Unexpected error converting %s", job.source)
            err = ConversionError(f"Unexpected error: {ex}", job.source)
            return JobResult(source=job.source, output=None, error=err)

    def _emit(self, event: ProgressEvent) -> None:
        if self.progress_callback:
            self.progress_callback(event)

    def _require(self, state: BatchState) -> None:
        if self.state is not state:
            raise BatchStateError(f"expected state {state.value}, batch is {self.state.value}")

    def _reset(self) -> None:
        self.state = BatchState.IDLE
        self.collision_scan = None
        self.jobs = []


def process_batch(
    inputs: Sequence[Path],
    settings: ConvertSettings,
    choose_policy: Optional[PolicyChooser] = None,
    progress_callback: Optional[ProgressCallback] = None,
    cancel_event: Optional[threading.Event] = None,
) -> BatchResult:
    """
    Scan, resolve collisions and convert in one call.

    choose_policy is only consulted when some outputs already exist;
    without it settings.collision_policy is used. Raises
    CollisionCancelled if the policy is CANCEL.
    """
    orch = BatchOrchestrator(settings, progress_callback=progress_callback, cancel_event=cancel_event)
    scan_result = orch.scan(inputs)

    if orch.state is BatchState.AWAITING_POLICY:
        policy = choose_policy(scan_result) if choose_policy else settings.collision_policy
        orch.choose_policy(policy)

    return orch.run()
