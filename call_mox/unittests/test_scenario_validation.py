"""Argument checks performed by the fluent scenario builder."""

from __future__ import annotations

import typing as t

import pytest

from call_mox import (
    DuplicateRegistrationError,
    FunctionNotFoundError,
    InvalidScenarioError,
    MissingRegistrationError,
    Scenario,
    ScenarioBuildError,
    SynchronousScenario,
)
from call_mox.unittests._people import PersonService, is_restored, proxy


@pytest.fixture
def scenario() -> t.Iterator[SynchronousScenario]:
    """Scenario with ``get_middle_name`` intercepted, torn down afterwards."""
    built = SynchronousScenario().mock_this_function(
        "PersonProxy", "get_middle_name", proxy
    )
    yield built
    built.registry.teardown()
    assert is_restored()


@pytest.mark.parametrize(
    ("call", "message"),
    [
        (
            lambda s: s.mock_this_function(1, "get_first_name", proxy),
            "'mock_this_function', the first parameter must be of type str "
            "representing the mock key",
        ),
        (
            lambda s: s.mock_this_function("PersonProxy", "", proxy),
            "the second parameter must be of type str representing the function name",
        ),
        (
            lambda s: s.mock_this_function("PersonProxy", "get_first_name", None),
            "third parameter must be the host object",
        ),
        (
            lambda s: s.should_be_called_with("PersonProxy", "get_middle_name", "123"),
            "third parameter must be a list or tuple representing the params",
        ),
        (
            lambda s: s.should_be_called_with(
                "PersonProxy", "get_middle_name", ["1"], {1: "x"}
            ),
            "'kwargs' must be a mapping keyed by str",
        ),
        (
            lambda s: s.does_return_with_callback(
                "PersonProxy", "get_middle_name", "Bill"
            ),
            "representing the callback arguments",
        ),
        (
            lambda s: s.does_error("PersonProxy", "get_middle_name", "boom"),
            "must be an exception instance",
        ),
        (
            lambda s: s.with_test_finisher_function(
                "PersonProxy", "get_middle_name", -1
            ),
            "'iteration' must be a non-negative int",
        ),
        (
            lambda s: s.with_test_finisher_function(
                "PersonProxy", "get_middle_name", True
            ),
            "'iteration' must be a non-negative int",
        ),
        (
            lambda s: s.with_input_params("123"),
            "'with_input_params', the first parameter must be a list or tuple",
        ),
        (lambda s: s.with_entry_point(None, "describe"), "must be an object"),
        (
            lambda s: s.with_entry_point(PersonService, "missing"),
            "is not a callable attribute",
        ),
        (lambda s: s.perf(""), "representing the report title"),
    ],
)
def test_builder_rejects_bad_arguments(
    scenario: SynchronousScenario,
    call: t.Callable[[SynchronousScenario], object],
    message: str,
) -> None:
    """Each builder method validates its arguments eagerly."""
    with pytest.raises(InvalidScenarioError, match=message):
        call(scenario)


def test_unknown_function_is_rejected(scenario: SynchronousScenario) -> None:
    """Only existing callables can be intercepted."""
    with pytest.raises(FunctionNotFoundError, match="does not exist in mock"):
        scenario.mock_this_function("PersonProxy", "get_nickname", proxy)


def test_duplicate_registration_is_rejected(scenario: SynchronousScenario) -> None:
    """A function cannot be intercepted twice."""
    with pytest.raises(DuplicateRegistrationError):
        scenario.mock_this_function("PersonProxy", "get_middle_name", proxy)


def test_stand_in_cannot_be_intercepted_again(scenario: SynchronousScenario) -> None:
    """Another scenario refuses a function that is already a stand-in."""
    other = SynchronousScenario()
    with pytest.raises(DuplicateRegistrationError):
        other.mock_this_function("Other", "get_middle_name", proxy)


@pytest.mark.parametrize(
    "call",
    [
        lambda s: s.does_return("PersonProxy", "get_first_name", "Cory"),
        lambda s: s.should_be_called_with("PersonProxy", "get_first_name", []),
        lambda s: s.should_always_be_ignored("PersonProxy", "get_first_name"),
        lambda s: s.with_test_finisher_function("PersonProxy", "get_first_name"),
    ],
)
def test_unregistered_function_is_rejected(
    scenario: SynchronousScenario, call: t.Callable[[SynchronousScenario], object]
) -> None:
    """Scripting a function requires intercepting it first."""
    with pytest.raises(MissingRegistrationError, match="mock_this_function"):
        call(scenario)


def test_build_errors_share_a_base_class() -> None:
    """Callers can catch every configuration problem at once."""
    assert issubclass(InvalidScenarioError, ScenarioBuildError)
    assert issubclass(MissingRegistrationError, ScenarioBuildError)
    err = MissingRegistrationError("PersonProxy", "get_first_name")
    assert str(err).startswith("Scenario build error (2000): ")


def test_perf_title_defaults_to_context_title(scenario: SynchronousScenario) -> None:
    """Reports are stored under the running test's title unless renamed."""
    scenario.perf()
    assert scenario._perf_title == scenario.context.title
    scenario.perf("custom")
    assert scenario._perf_title == "custom"


def test_input_params_are_copied(scenario: SynchronousScenario) -> None:
    """Later mutation of the list does not change the scenario."""
    params = ["123"]
    scenario.with_input_params(params)
    params.append("456")
    assert scenario.input_params == ("123",)


def test_base_scenario_cannot_be_built() -> None:
    """Only flavours that know how to call the entry point can be built."""
    with pytest.raises(TypeError, match="_invoke_entry_point"):
        Scenario()  # type: ignore[abstract]
