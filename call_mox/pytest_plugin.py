"""Pytest plugin providing the ``call_mox`` and ``call_mox_context`` fixtures."""

from __future__ import annotations

import logging
import typing as t

import pytest

from .config import ScenarioSettings, parse_bool, parse_timeout
from .context import HostContext
from .reports import PerfReportCollector
from .scenarios import (
    AsyncScenario,
    CallbackScenario,
    RequestScenario,
    SynchronousScenario,
)

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .scenario import Scenario

logger = logging.getLogger(__name__)

SETTINGS_KEY = pytest.StashKey[ScenarioSettings]()
REPORTS_KEY = pytest.StashKey[PerfReportCollector]()

T_Scenario = t.TypeVar("T_Scenario", bound="Scenario")

# (settings field, ini name, command-line dest, parser)
_SETTINGS_SOURCES: t.Final[tuple[tuple[str, str, str, t.Callable[[str], t.Any]], ...]] = (
    (
        "perf_enabled",
        "call_mox_perf",
        "call_mox_perf",
        lambda raw: parse_bool(raw, name="call_mox_perf"),
    ),
    ("num_samples", "call_mox_samples", "call_mox_samples", int),
    ("sample_time", "call_mox_sample_time", "call_mox_sample_time", float),
    (
        "completion_timeout",
        "call_mox_completion_timeout",
        "call_mox_completion_timeout",
        lambda raw: parse_timeout(raw, name="call_mox_completion_timeout"),
    ),
)


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line and ini options for the plugin."""
    group = parser.getgroup("call_mox")
    group.addoption(
        "--call-mox-perf",
        action="store_true",
        dest="call_mox_perf",
        default=None,
        help=(
            "Sample the speed of scenarios marked with perf() and skip their "
            "pass/fail judgement. Overrides the pytest.ini setting."
        ),
    )
    group.addoption(
        "--no-call-mox-perf",
        action="store_false",
        dest="call_mox_perf",
        default=None,
        help="Run scenarios marked with perf() as ordinary tests.",
    )
    group.addoption(
        "--call-mox-samples",
        dest="call_mox_samples",
        default=None,
        help="Number of samples collected per performance run.",
    )
    group.addoption(
        "--call-mox-sample-time",
        dest="call_mox_sample_time",
        default=None,
        help="Seconds spent collecting each performance sample.",
    )
    group.addoption(
        "--call-mox-completion-timeout",
        dest="call_mox_completion_timeout",
        default=None,
        help=(
            "Seconds to wait for a designated finisher call; 'none' waits "
            "indefinitely."
        ),
    )
    parser.addini("call_mox_perf", "Enable performance mode for perf() scenarios.")
    parser.addini("call_mox_samples", "Number of samples per performance run.")
    parser.addini("call_mox_sample_time", "Seconds per performance sample.")
    parser.addini(
        "call_mox_completion_timeout",
        "Seconds to wait for a designated finisher call ('none' disables).",
    )


def resolve_settings(config: pytest.Config) -> ScenarioSettings:
    """Merge environment, ini and command-line settings, in that order."""
    settings = ScenarioSettings.from_env()
    changes: dict[str, t.Any] = {}
    for field, ini_name, dest, parse in _SETTINGS_SOURCES:
        ini_value = config.getini(ini_name)
        if isinstance(ini_value, str) and ini_value.strip():
            changes[field] = parse(ini_value)
        cli_value = config.getoption(dest)
        if cli_value is not None:
            changes[field] = (
                cli_value if isinstance(cli_value, bool) else parse(str(cli_value))
            )
    return settings.with_overrides(**changes)


def pytest_configure(config: pytest.Config) -> None:
    """Resolve settings and create the session report collector."""
    try:
        config.stash[SETTINGS_KEY] = resolve_settings(config)
    except (TypeError, ValueError) as err:
        msg = f"invalid call-mox setting: {err}"
        raise pytest.UsageError(msg) from err
    config.stash[REPORTS_KEY] = PerfReportCollector()


def pytest_terminal_summary(
    terminalreporter: pytest.TerminalReporter,
    exitstatus: int,
    config: pytest.Config,
) -> None:
    """Print every performance report collected during the session."""
    del exitstatus
    reports = config.stash.get(REPORTS_KEY, None)
    if not reports:
        return
    terminalreporter.section("call-mox performance")
    for line in reports.format_summary():
        terminalreporter.write_line(line)


@pytest.fixture
def call_mox_context(request: pytest.FixtureRequest) -> HostContext:
    """Return a :class:`HostContext` for the requesting test."""
    config = request.config
    return HostContext(
        title=request.node.nodeid,
        settings=config.stash[SETTINGS_KEY],
        skip=pytest.skip,
        reports=config.stash[REPORTS_KEY],
    )


class ScenarioFactory:
    """Create scenarios bound to one test and undo any left unrun."""

    def __init__(self, context: HostContext) -> None:
        self.context = context
        self._scenarios: list[Scenario] = []

    def _track(self, scenario: T_Scenario) -> T_Scenario:
        self._scenarios.append(scenario)
        return scenario

    def synchronous(self) -> SynchronousScenario:
        """Return a scenario for an entry point that returns directly."""
        return self._track(SynchronousScenario(self.context))

    def asynchronous(self) -> AsyncScenario:
        """Return a scenario for a coroutine entry point."""
        return self._track(AsyncScenario(self.context))

    def callback(self) -> CallbackScenario:
        """Return a scenario for an entry point taking a trailing callback."""
        return self._track(CallbackScenario(self.context))

    def request(self) -> RequestScenario:
        """Return a scenario for a request handler."""
        return self._track(RequestScenario(self.context))

    def close(self) -> None:
        """Restore every function still intercepted by a tracked scenario."""
        for scenario in reversed(self._scenarios):
            if scenario.registry.states:
                logger.debug("Restoring stand-ins of a scenario that never ran")
            scenario.registry.teardown()
        self._scenarios.clear()


@pytest.fixture
def call_mox(call_mox_context: HostContext) -> t.Generator[ScenarioFactory, None, None]:
    """Provide a :class:`ScenarioFactory` whose stand-ins are always restored."""
    factory = ScenarioFactory(call_mox_context)
    try:
        yield factory
    except Exception:
        logger.exception("Error during call_mox fixture setup or test execution")
        raise
    finally:
        try:
            factory.close()
        except Exception:
            logger.exception("Error during call_mox fixture cleanup")
            pytest.fail("call_mox fixture cleanup failed")


__all__ = [
    "REPORTS_KEY",
    "SETTINGS_KEY",
    "ScenarioFactory",
    "call_mox",
    "call_mox_context",
    "resolve_settings",
]
