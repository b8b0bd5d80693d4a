"""Settings controlling completion waits and performance sampling."""

from __future__ import annotations

import dataclasses as dc
import os
import typing as t

from ._validators import validate_positive_finite, validate_positive_int

PERF_ENV: t.Final[str] = "CALL_MOX_PERF"
PERF_SAMPLES_ENV: t.Final[str] = "CALL_MOX_PERF_SAMPLES"
PERF_SAMPLE_TIME_ENV: t.Final[str] = "CALL_MOX_PERF_SAMPLE_TIME"
COMPLETION_TIMEOUT_ENV: t.Final[str] = "CALL_MOX_COMPLETION_TIMEOUT"
POLL_INTERVAL_ENV: t.Final[str] = "CALL_MOX_POLL_INTERVAL"

DEFAULT_NUM_SAMPLES: t.Final[int] = 5
DEFAULT_SAMPLE_TIME: t.Final[float] = 1.0
DEFAULT_COMPLETION_TIMEOUT: t.Final[float] = 10.0
DEFAULT_POLL_INTERVAL: t.Final[float] = 0.005

_TRUTHY: t.Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})
_FALSY: t.Final[frozenset[str]] = frozenset({"0", "false", "no", "off", ""})
_DISABLED: t.Final[frozenset[str]] = frozenset({"none", "off", "0"})


def parse_bool(raw: str, *, name: str) -> bool:
    """Interpret an environment or ini flag."""
    value = raw.strip().casefold()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    msg = f"{name} must be a boolean flag, got {raw!r}"
    raise ValueError(msg)


def parse_timeout(raw: str, *, name: str) -> float | None:
    """Parse a timeout where ``none``/``off``/``0`` disable the limit."""
    if raw.strip().casefold() in _DISABLED:
        return None
    value = float(raw)
    validate_positive_finite(value, name=name)
    return value


@dc.dataclass(slots=True, frozen=True)
class ScenarioSettings:
    """Knobs read by the scenario pipeline."""

    perf_enabled: bool = False
    num_samples: int = DEFAULT_NUM_SAMPLES
    sample_time: float = DEFAULT_SAMPLE_TIME
    completion_timeout: float | None = DEFAULT_COMPLETION_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL

    def __post_init__(self) -> None:
        """Validate numeric settings."""
        validate_positive_int(self.num_samples, name="num_samples")
        validate_positive_finite(self.sample_time, name="sample_time")
        validate_positive_finite(self.poll_interval, name="poll_interval")
        if self.completion_timeout is not None:
            validate_positive_finite(
                self.completion_timeout, name="completion_timeout"
            )

    @classmethod
    def from_env(cls, environ: t.Mapping[str, str] | None = None) -> ScenarioSettings:
        """Build settings from ``CALL_MOX_*`` environment variables."""
        env = os.environ if environ is None else environ
        overrides: dict[str, t.Any] = {}
        if PERF_ENV in env:
            overrides["perf_enabled"] = parse_bool(env[PERF_ENV], name=PERF_ENV)
        if PERF_SAMPLES_ENV in env:
            overrides["num_samples"] = int(env[PERF_SAMPLES_ENV])
        if PERF_SAMPLE_TIME_ENV in env:
            overrides["sample_time"] = float(env[PERF_SAMPLE_TIME_ENV])
        if COMPLETION_TIMEOUT_ENV in env:
            overrides["completion_timeout"] = parse_timeout(
                env[COMPLETION_TIMEOUT_ENV], name=COMPLETION_TIMEOUT_ENV
            )
        if POLL_INTERVAL_ENV in env:
            overrides["poll_interval"] = float(env[POLL_INTERVAL_ENV])
        return cls(**overrides)

    def with_overrides(self, **changes: t.Any) -> ScenarioSettings:
        """Return a validated copy with *changes* applied."""
        return dc.replace(self, **changes)


__all__ = [
    "COMPLETION_TIMEOUT_ENV",
    "PERF_ENV",
    "PERF_SAMPLES_ENV",
    "PERF_SAMPLE_TIME_ENV",
    "POLL_INTERVAL_ENV",
    "ScenarioSettings",
    "parse_bool",
    "parse_timeout",
]
