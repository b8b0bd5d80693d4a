"""Repeated timing of a runnable and outlier-trimmed statistics."""

from __future__ import annotations

import asyncio
import dataclasses as dc
import datetime as dt
import logging
import math
import statistics
import time
import typing as t

from ._validators import validate_positive_finite, validate_positive_int

logger = logging.getLogger(__name__)

MAX_TRIALS_PER_SAMPLE: t.Final[int] = 1000
ACCEPTABLE_Z_SCORE: t.Final[float] = 1.645

Runnable: t.TypeAlias = t.Callable[[], t.Awaitable[None]]


@dc.dataclass(slots=True, frozen=True)
class MetricStats:
    """Summary of one measured quantity."""

    mean: float
    median: float
    standard_deviation: float
    variance: float
    standard_error: int
    dropped: int

    def to_dict(self) -> dict[str, float | int]:
        """Return a JSON-serializable mapping."""
        return {
            "mean": self.mean,
            "median": self.median,
            "standardDeviation": self.standard_deviation,
            "variance": self.variance,
            "standardError": self.standard_error,
            "dropped": self.dropped,
        }


@dc.dataclass(slots=True, frozen=True)
class PerfReport:
    """Statistics for elapsed time and throughput over every trial."""

    date: dt.datetime
    time: MetricStats
    num_per_second: MetricStats
    total_sample_size: int

    def to_dict(self) -> dict[str, t.Any]:
        """Return a JSON-serializable mapping."""
        return {
            "date": self.date.isoformat(),
            "time": self.time.to_dict(),
            "numPerSecond": self.num_per_second.to_dict(),
            "totalSampleSize": self.total_sample_size,
        }


def _trim(values: t.Sequence[float]) -> tuple[list[float], int]:
    """Drop values further than ``ACCEPTABLE_Z_SCORE`` deviations from the mean."""
    mean = statistics.fmean(values)
    spread = ACCEPTABLE_Z_SCORE * statistics.pstdev(values, mean)
    low, high = mean - spread, mean + spread
    kept = [value for value in values if low <= value <= high]
    return kept, len(values) - len(kept)


def _summarise(values: t.Sequence[float], total: int) -> MetricStats:
    kept, dropped = _trim(values)
    mean = statistics.fmean(kept)
    deviation = statistics.pstdev(kept, mean)
    standard_error = (
        math.floor(100 * (deviation / math.sqrt(total)) / mean) if mean else 0
    )
    return MetricStats(
        mean=mean,
        median=statistics.median(kept),
        standard_deviation=deviation,
        variance=statistics.pvariance(kept, mean),
        standard_error=standard_error,
        dropped=dropped,
    )


def compute_statistics(times: t.Sequence[float]) -> PerfReport:
    """Summarise trial *times* (seconds) and their reciprocals."""
    if not times:
        msg = "cannot compute statistics without any trial times"
        raise ValueError(msg)
    rates = [1.0 / value if value > 0 else math.inf for value in times]
    finite_rates = [rate for rate in rates if math.isfinite(rate)] or [0.0]
    return PerfReport(
        date=dt.datetime.now(dt.UTC),
        time=_summarise(times, len(times)),
        num_per_second=_summarise(finite_rates, len(times)),
        total_sample_size=len(times),
    )


class PerfSampler:
    """Time a runnable repeatedly in bounded samples."""

    def __init__(
        self,
        runnable: Runnable,
        *,
        max_trials_per_sample: int = MAX_TRIALS_PER_SAMPLE,
    ) -> None:
        validate_positive_int(max_trials_per_sample, name="max_trials_per_sample")
        self._runnable = runnable
        self._max_trials = max_trials_per_sample

    async def run_sample(self, sample_time: float) -> list[float]:
        """Run trials until *sample_time* seconds pass or the cap is hit."""
        validate_positive_finite(sample_time, name="sample_time")
        deadline = time.perf_counter() + sample_time
        trials: list[float] = []
        while True:
            start = time.perf_counter()
            await self._runnable()
            finished = time.perf_counter()
            trials.append(finished - start)
            if finished >= deadline or len(trials) >= self._max_trials:
                return trials
            await asyncio.sleep(0)

    async def run_all_samples(self, num_samples: int, sample_time: float) -> list[float]:
        """Collect *num_samples* samples into one flat list of trial times."""
        validate_positive_int(num_samples, name="num_samples")
        pool: list[float] = []
        for index in range(num_samples):
            trials = await self.run_sample(sample_time)
            logger.debug("Sample %d finished with %d trials", index + 1, len(trials))
            pool.extend(trials)
            await asyncio.sleep(0)
        return pool

    async def run(self, num_samples: int, sample_time: float) -> PerfReport:
        """Sample the runnable and return its statistics."""
        return compute_statistics(await self.run_all_samples(num_samples, sample_time))


__all__ = [
    "ACCEPTABLE_Z_SCORE",
    "MAX_TRIALS_PER_SAMPLE",
    "MetricStats",
    "PerfReport",
    "PerfSampler",
    "compute_statistics",
]
