"""Recording function doubles driven by declarative test scenarios.

A scenario replaces functions on collaborator objects with recording
stand-ins, scripts what they return, runs an entry point and then verifies
that every stand-in was called with the expected arguments, in order, the
expected number of times. Scenarios can also sample the entry point's speed.
"""

from __future__ import annotations

from .comparators import IGNORE, Any, Contains, IsA, Predicate, Regex, StartsWith
from .config import ScenarioSettings
from .context import HostContext
from .errors import (
    ArgumentMismatchError,
    CallMoxError,
    ComparisonError,
    CompletionTimeoutError,
    DuplicateRegistrationError,
    FunctionNotFoundError,
    InvalidScenarioError,
    MissingCallbackError,
    MissingProgrammedResultError,
    MissingRegistrationError,
    MockCallCountMismatchError,
    MockRuntimeError,
    ScenarioBuildError,
    UncheckedAssertionError,
    WrongParamCountError,
)
from .perf import PerfReport, PerfSampler, compute_statistics
from .registry import MockRegistry
from .reports import PerfReportCollector
from .response import RESPONSE_GROUP, ResponseDouble
from .scenario import Scenario
from .scenarios import (
    AsyncScenario,
    CallbackScenario,
    RequestScenario,
    SynchronousScenario,
)

__all__ = [
    "IGNORE",
    "RESPONSE_GROUP",
    "Any",
    "ArgumentMismatchError",
    "AsyncScenario",
    "CallMoxError",
    "CallbackScenario",
    "ComparisonError",
    "CompletionTimeoutError",
    "Contains",
    "DuplicateRegistrationError",
    "FunctionNotFoundError",
    "HostContext",
    "InvalidScenarioError",
    "IsA",
    "MissingCallbackError",
    "MissingProgrammedResultError",
    "MissingRegistrationError",
    "MockCallCountMismatchError",
    "MockRegistry",
    "MockRuntimeError",
    "PerfReport",
    "PerfReportCollector",
    "PerfSampler",
    "Predicate",
    "Regex",
    "RequestScenario",
    "ResponseDouble",
    "Scenario",
    "ScenarioBuildError",
    "ScenarioSettings",
    "StartsWith",
    "SynchronousScenario",
    "UncheckedAssertionError",
    "WrongParamCountError",
    "compute_statistics",
]
