"""Information a host test runner hands to a scenario."""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as t

from .config import ScenarioSettings
from .reports import PerfReportCollector

logger = logging.getLogger(__name__)


def _log_skip(reason: str) -> None:
    logger.info("Skip requested: %s", reason)


@dc.dataclass(slots=True)
class HostContext:
    """Title, settings and hooks for the test currently running.

    ``skip`` is called after a performance run so the host can drop normal
    pass/fail judgement; the pytest plugin passes :func:`pytest.skip`.
    """

    title: str = "scenario"
    settings: ScenarioSettings = dc.field(default_factory=ScenarioSettings.from_env)
    skip: t.Callable[[str], t.Any] = _log_skip
    reports: PerfReportCollector = dc.field(default_factory=PerfReportCollector)


__all__ = ["HostContext"]
