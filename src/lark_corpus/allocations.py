"""
Allocation recording around successful cases.

Purely diagnostic: a report never decides whether a case passes. A
recording that is started and never stopped (a failing case) is kept as
``recorder.abandoned`` together with a final snapshot, so the allocations
made while running the failing case can be inspected afterwards.
"""
from __future__ import annotations

import gc
import sys
import tracemalloc
from dataclasses import dataclass
from typing import IO, List, Optional, Tuple

TOP_LIMIT = 5


@dataclass(frozen=True)
class AllocationReport:
    retained_blocks: int
    retained_bytes: int
    top: Tuple[str, ...] = ()


EMPTY_REPORT = AllocationReport(0, 0)


def _snapshot() -> tracemalloc.Snapshot:
    return tracemalloc.take_snapshot().filter_traces(
        (
            tracemalloc.Filter(False, tracemalloc.__file__),
            tracemalloc.Filter(False, "<frozen importlib._bootstrap>"),
            tracemalloc.Filter(False, "<unknown>"),
        )
    )


def compare_snapshots(baseline: tracemalloc.Snapshot, final: tracemalloc.Snapshot, limit: int = TOP_LIMIT) -> AllocationReport:
    retained = [stat for stat in final.compare_to(baseline, "lineno") if stat.size_diff > 0]
    return AllocationReport(
        retained_blocks=sum(max(stat.count_diff, 0) for stat in retained),
        retained_bytes=sum(stat.size_diff for stat in retained),
        top=tuple(str(stat) for stat in retained[:limit]),
    )


class AllocationRecording:
    def __init__(self, recorder: AllocationRecorder, baseline: Optional[tracemalloc.Snapshot]):
        self._recorder = recorder
        self.baseline = baseline
        self.final: Optional[tracemalloc.Snapshot] = None
        self.report: Optional[AllocationReport] = None

    @property
    def active(self) -> bool:
        return self._recorder.current is self

    def stop(self) -> AllocationReport:
        return self._recorder._stop(self)


class AllocationRecorder:
    def __init__(self, enabled: bool = False, out: Optional[IO[str]] = None, limit: int = TOP_LIMIT):
        self.enabled = enabled
        self.out = out
        self.limit = limit
        self.current: Optional[AllocationRecording] = None
        self.abandoned: Optional[AllocationRecording] = None
        self.reports: List[AllocationReport] = []
        self._owns_tracing = False

    def start(self) -> AllocationRecording:
        if self.current is not None:
            self._abandon(self.current)

        baseline = None
        if self.enabled:
            if not tracemalloc.is_tracing():
                tracemalloc.start()
                self._owns_tracing = True
            baseline = _snapshot()

        self.current = AllocationRecording(self, baseline)
        return self.current

    def close(self) -> None:
        """Finalize whatever is still open; call once the run is over."""
        if self.current is not None:
            self._abandon(self.current)
        self._finish_tracing()

    def _stop(self, recording: AllocationRecording) -> AllocationReport:
        if recording.report is not None:
            return recording.report
        if recording is not self.current:
            raise RuntimeError("allocation recording was abandoned by a later start()")

        self.current = None
        if recording.baseline is None:
            recording.report = EMPTY_REPORT
            return EMPTY_REPORT

        gc.collect()
        recording.final = _snapshot()
        report = compare_snapshots(recording.baseline, recording.final, self.limit)
        self._finish_tracing()

        recording.report = report
        self.reports.append(report)
        if report.retained_blocks:
            out = self.out or sys.stderr
            print(f"  allocations: {report.retained_blocks} blocks ({report.retained_bytes} bytes) retained", file=out)
            for line in report.top:
                print(f"    {line}", file=out)
        return report

    def _abandon(self, recording: AllocationRecording) -> None:
        if recording.baseline is not None and tracemalloc.is_tracing():
            recording.final = _snapshot()
        self.abandoned = recording
        self.current = None
        self._finish_tracing()

    def _finish_tracing(self) -> None:
        if self._owns_tracing:
            tracemalloc.stop()
            self._owns_tracing = False
