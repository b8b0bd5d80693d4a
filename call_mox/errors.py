"""Exception hierarchy for call-mox.

Errors fall into three tiers. Build errors describe a malformed scenario and
are raised while the scenario is declared. Runtime errors mean the scenario
script and the code under test diverged while the entry point ran. Comparison
errors report a recorded argument that differs from its expectation.
"""

from __future__ import annotations

import typing as t

ORDINALS: t.Final[tuple[str, ...]] = (
    "first",
    "second",
    "third",
    "fourth",
    "fifth",
    "sixth",
    "seventh",
    "eighth",
    "ninth",
    "tenth",
    "eleventh",
    "twelfth",
    "thirteenth",
    "fourteenth",
    "fifteenth",
    "sixteenth",
    "seventeenth",
    "eighteenth",
    "nineteenth",
    "twentieth",
)


def ordinal(index: int) -> str:
    """Return the English ordinal for zero-based *index*."""
    if 0 <= index < len(ORDINALS):
        return ORDINALS[index]
    return f"#{index + 1}"


class CallMoxError(Exception):
    """Base class for all call-mox errors."""

    code: t.ClassVar[int] = 0
    prefix: t.ClassVar[str] = "call-mox error"

    def __init__(self, message: str) -> None:
        super().__init__(f"{self.prefix} ({self.code}): {message}")
        self.detail = message


# ----------------------------------------------------------------------
# Build errors
# ----------------------------------------------------------------------
class ScenarioBuildError(CallMoxError):
    """Scenario configuration is invalid."""

    code = 1000
    prefix = "Scenario build error"


class InvalidScenarioError(ScenarioBuildError):
    """A builder method received arguments of the wrong shape."""


class MissingRegistrationError(ScenarioBuildError):
    """Results or expectations were declared for an unregistered function."""

    code = 2000

    def __init__(self, group: str, name: str) -> None:
        super().__init__(
            f"You must declare the mock {group}.{name} using "
            "'mock_this_function' before declaring results or expectations."
        )
        self.group = group
        self.name = name


class FunctionNotFoundError(ScenarioBuildError):
    """The host object has no callable with the requested name."""

    code = 2001

    def __init__(self, group: str, name: str) -> None:
        super().__init__(f"Function {name} does not exist in mock {group}.")
        self.group = group
        self.name = name


class DuplicateRegistrationError(ScenarioBuildError):
    """The function is already intercepted."""

    code = 2002

    def __init__(self, group: str, name: str) -> None:
        super().__init__(f"Attempted to mock {group}.{name}, but it was already mocked.")
        self.group = group
        self.name = name


# ----------------------------------------------------------------------
# Runtime errors
# ----------------------------------------------------------------------
class MockRuntimeError(CallMoxError):
    """The code under test and the scenario script diverged."""

    code = 3000
    prefix = "Runtime error"


class MissingCallbackError(MockRuntimeError):
    """A callback-style result was scripted but no callback was passed."""

    code = 3000

    def __init__(self, group: str, name: str) -> None:
        super().__init__(
            "When using 'does_return_with_callback' or 'does_error_with_callback' "
            f"for {group}.{name} the last parameter in the function must be the "
            "callback function."
        )
        self.group = group
        self.name = name


class MissingProgrammedResultError(MockRuntimeError):
    """A stand-in was called more often than results were scripted."""

    code = 3001

    def __init__(self, call_index: int, group: str, name: str) -> None:
        super().__init__(
            f"Attempted to get mocked data for the {ordinal(call_index)} call to "
            f"{group}.{name}, but it wasn't created in the scenario. You are "
            "missing a 'does_return' / 'does_error' call."
        )
        self.call_index = call_index
        self.group = group
        self.name = name


class MockCallCountMismatchError(MockRuntimeError):
    """A stand-in was called a different number of times than expected."""

    code = 3002

    def __init__(self, group: str, name: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Expected the mock {group}.{name} to be called {expected} time(s), "
            f"but it was actually called {actual} time(s)."
        )
        self.group = group
        self.name = name
        self.expected = expected
        self.actual = actual


class WrongParamCountError(MockRuntimeError):
    """A recorded call had a different number of parameters than expected."""

    code = 3004

    def __init__(
        self, call_index: int, group: str, name: str, expected: int, actual: int
    ) -> None:
        super().__init__(
            f"Expected the {ordinal(call_index)} call to {group}.{name} to have "
            f"{expected} param(s), but it was actually called with {actual} "
            "param(s)."
        )
        self.call_index = call_index
        self.group = group
        self.name = name
        self.expected = expected
        self.actual = actual


class CompletionTimeoutError(MockRuntimeError):
    """The designated completion call never happened."""

    code = 3005

    def __init__(self, group: str, name: str, iteration: int, timeout: float) -> None:
        super().__init__(
            f"Timed out after {timeout:g}s waiting for the {ordinal(iteration)} "
            f"call to {group}.{name}, which was designated as the test finisher."
        )
        self.group = group
        self.name = name
        self.iteration = iteration
        self.timeout = timeout


# ----------------------------------------------------------------------
# Comparison errors
# ----------------------------------------------------------------------
class ComparisonError(CallMoxError):
    """A recorded value did not satisfy its expectation."""

    code = 3003
    prefix = "Comparison error"


class ArgumentMismatchError(ComparisonError):
    """A recorded argument differs from the declared expectation."""

    def __init__(  # noqa: PLR0913 - each field is reported to the user
        self,
        position: int | str,
        group: str,
        name: str,
        call_index: int,
        *,
        actual: object,
        expected: object,
        details: str = "",
    ) -> None:
        where = (
            f"{ordinal(position)} param"
            if isinstance(position, int)
            else f"keyword param {position!r}"
        )
        message = (
            f"Failed expectation for the {where} in mock {group}.{name}, the "
            f"{ordinal(call_index)} time the mock was called."
        )
        if details:
            message = f"{message}\n{details}"
        super().__init__(message)
        self.position = position
        self.group = group
        self.name = name
        self.call_index = call_index
        self.actual = actual
        self.expected = expected


# ----------------------------------------------------------------------
# Escalation
# ----------------------------------------------------------------------
class UncheckedAssertionError(CallMoxError):
    """The testable callback raised after it had already been invoked."""

    code = 4004
    prefix = "Unchecked error"

    def __init__(self) -> None:
        super().__init__(
            "To prevent false positives, please handle expectation failures "
            "yourself. Wrap your assertions in a try / except inside the testable "
            "callback. See the chained exception for the test failure."
        )


__all__ = [
    "ORDINALS",
    "ArgumentMismatchError",
    "CallMoxError",
    "ComparisonError",
    "CompletionTimeoutError",
    "DuplicateRegistrationError",
    "FunctionNotFoundError",
    "InvalidScenarioError",
    "MissingCallbackError",
    "MissingProgrammedResultError",
    "MissingRegistrationError",
    "MockCallCountMismatchError",
    "MockRuntimeError",
    "ScenarioBuildError",
    "UncheckedAssertionError",
    "WrongParamCountError",
    "ordinal",
]
