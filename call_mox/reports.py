"""In-memory sink for performance reports keyed by test title."""

from __future__ import annotations

import logging
import typing as t

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .perf import PerfReport

logger = logging.getLogger(__name__)


class PerfReportCollector:
    """Collect :class:`~call_mox.perf.PerfReport` objects for later output."""

    def __init__(self) -> None:
        self._reports: dict[str, PerfReport] = {}

    def add_report(self, title: str, report: PerfReport) -> None:
        """Store *report* under *title*, replacing any earlier one."""
        if title in self._reports:
            logger.debug("Replacing performance report for %s", title)
        self._reports[title] = report

    @property
    def reports(self) -> dict[str, PerfReport]:
        """Return a copy of the stored reports."""
        return dict(self._reports)

    def as_dict(self) -> dict[str, dict[str, t.Any]]:
        """Return every report as plain data for an external writer."""
        return {title: report.to_dict() for title, report in self._reports.items()}

    def format_summary(self) -> list[str]:
        """Return one human readable line per report."""
        return [
            (
                f"{title}: mean {report.time.mean * 1000:.3f} ms, "
                f"{report.num_per_second.mean:.1f} ops/s, "
                f"+/-{report.time.standard_error}% "
                f"({report.total_sample_size} trials, "
                f"{report.time.dropped} dropped)"
            )
            for title, report in sorted(self._reports.items())
        ]

    def __len__(self) -> int:
        """Return the number of stored reports."""
        return len(self._reports)


__all__ = ["PerfReportCollector"]
