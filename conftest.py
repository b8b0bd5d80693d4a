"""Global test configuration and shared fixtures."""

from __future__ import annotations

import typing as t

import pytest

from call_mox.config import (
    COMPLETION_TIMEOUT_ENV,
    PERF_ENV,
    PERF_SAMPLE_TIME_ENV,
    PERF_SAMPLES_ENV,
    POLL_INTERVAL_ENV,
)

pytest_plugins = ("call_mox.pytest_plugin", "pytester")


@pytest.fixture(autouse=True)
def clear_call_mox_environment(monkeypatch: pytest.MonkeyPatch) -> t.Iterator[None]:
    """Keep ``CALL_MOX_*`` variables from the outer shell out of each test."""
    for name in (
        PERF_ENV,
        PERF_SAMPLES_ENV,
        PERF_SAMPLE_TIME_ENV,
        COMPLETION_TIMEOUT_ENV,
        POLL_INTERVAL_ENV,
    ):
        monkeypatch.delenv(name, raising=False)
    yield
