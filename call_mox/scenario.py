"""Fluent scenario builder shared by every entry-point flavour."""

from __future__ import annotations

import abc
import asyncio
import logging
import typing as t

from ._validators import (
    require_exception,
    require_kwargs,
    require_sequence,
    require_str,
)
from .context import HostContext
from .errors import InvalidScenarioError
from .expectations import MatchMode
from .pipeline import ScenarioPipeline, ScenarioState
from .registry import MockRegistry
from .results import ResultKind
from .verifiers import ExpectationVerifier

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .pipeline import Testable

logger = logging.getLogger(__name__)

T_Scenario = t.TypeVar("T_Scenario", bound="Scenario")


class Scenario(abc.ABC):
    """Describe collaborators, an entry point and the expected interactions.

    Subclasses decide how the entry point is invoked by implementing
    :meth:`_invoke_entry_point`. Stand-ins are installed as soon as
    :meth:`mock_this_function` is called and are removed when the scenario
    finishes.

    Examples
    --------
    >>> scenario = SynchronousScenario()  # doctest: +SKIP
    >>> (
    ...     scenario.mock_this_function("Db", "load", db)
    ...     .with_entry_point(service, "fetch")
    ...     .with_input_params([1])
    ...     .should_be_called_with("Db", "load", [1])
    ...     .does_return("Db", "load", {"id": 1})
    ...     .test(check)
    ... )
    """

    def __init__(self, context: HostContext | None = None) -> None:
        self.context = context if context is not None else HostContext()
        self.registry = MockRegistry()
        self._entry_owner: object | None = None
        self._entry_name: str | None = None
        self._input_params: tuple[t.Any, ...] | None = None
        self._perf_title: str | None = None
        self._debug = True

    # ------------------------------------------------------------------
    # Collaborators and entry point
    # ------------------------------------------------------------------
    def mock_this_function(
        self: T_Scenario, group: str, name: str, host: object
    ) -> T_Scenario:
        """Intercept ``host.<name>`` and record its calls under ``(group, name)``."""
        method = "mock_this_function"
        require_str(group, method=method, position=0, meaning="mock key")
        require_str(name, method=method, position=1, meaning="function name")
        if host is None:
            msg = f"When calling {method!r}, the third parameter must be the host object."
            raise InvalidScenarioError(msg)
        self.registry.register(group, name, host)
        return self

    def with_entry_point(self: T_Scenario, owner: object, name: str) -> T_Scenario:
        """Use ``owner.<name>`` as the function under test."""
        if owner is None:
            msg = "When calling 'with_entry_point', the first parameter must be an object."
            raise InvalidScenarioError(msg)
        require_str(name, method="with_entry_point", position=1, meaning="function name")
        if not callable(getattr(owner, name, None)):
            msg = f"Entry point {name!r} is not a callable attribute of {owner!r}."
            raise InvalidScenarioError(msg)
        self._entry_owner = owner
        self._entry_name = name
        return self

    def with_input_params(self: T_Scenario, params: t.Sequence[t.Any]) -> T_Scenario:
        """Pass ``params`` positionally to the entry point."""
        self._input_params = require_sequence(
            params, method="with_input_params", position=0, meaning="input params"
        )
        return self

    # ------------------------------------------------------------------
    # Expectations
    # ------------------------------------------------------------------
    def _expect(  # noqa: PLR0913 - keyword form of the expectation record
        self: T_Scenario,
        method: str,
        group: str,
        name: str,
        params: t.Sequence[t.Any] = (),
        kwargs: t.Mapping[str, t.Any] | None = None,
        *,
        mode: MatchMode = MatchMode.EXACT,
        always: bool = False,
    ) -> T_Scenario:
        require_str(group, method=method, position=0, meaning="mock key")
        require_str(name, method=method, position=1, meaning="function name")
        args = require_sequence(params, method=method, position=2, meaning="params")
        self.registry.declare_expectation(
            group,
            name,
            args,
            require_kwargs(kwargs, method=method),
            mode=mode,
            always=always,
        )
        return self

    def should_be_called_with(
        self: T_Scenario,
        group: str,
        name: str,
        params: t.Sequence[t.Any],
        kwargs: t.Mapping[str, t.Any] | None = None,
    ) -> T_Scenario:
        """Expect the next call to receive exactly ``params`` and ``kwargs``."""
        return self._expect("should_be_called_with", group, name, params, kwargs)

    def should_be_called_with_subset(
        self: T_Scenario,
        group: str,
        name: str,
        params: t.Sequence[t.Any],
        kwargs: t.Mapping[str, t.Any] | None = None,
    ) -> T_Scenario:
        """Expect the next call's composite arguments to contain ``params``."""
        return self._expect(
            "should_be_called_with_subset",
            group,
            name,
            params,
            kwargs,
            mode=MatchMode.SUBSET,
        )

    def should_be_called(self: T_Scenario, group: str, name: str) -> T_Scenario:
        """Expect one more call without checking its arguments."""
        return self._expect(
            "should_be_called", group, name, mode=MatchMode.CALLED_ONLY
        )

    def should_always_be_called_with(
        self: T_Scenario,
        group: str,
        name: str,
        params: t.Sequence[t.Any],
        kwargs: t.Mapping[str, t.Any] | None = None,
    ) -> T_Scenario:
        """Expect every call, however many, to receive ``params``."""
        return self._expect(
            "should_always_be_called_with", group, name, params, kwargs, always=True
        )

    def should_always_be_ignored(self: T_Scenario, group: str, name: str) -> T_Scenario:
        """Skip verification of ``(group, name)`` entirely."""
        method = "should_always_be_ignored"
        require_str(group, method=method, position=0, meaning="mock key")
        require_str(name, method=method, position=1, meaning="function name")
        self.registry.ignore_always(group, name)
        return self

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------
    def _program(  # noqa: PLR0913 - keyword form of the result descriptor
        self: T_Scenario,
        method: str,
        group: str,
        name: str,
        value: t.Any,
        kind: ResultKind,
        *,
        is_error: bool = False,
        always: bool = False,
    ) -> T_Scenario:
        require_str(group, method=method, position=0, meaning="mock key")
        require_str(name, method=method, position=1, meaning="function name")
        if kind is ResultKind.CALLBACK:
            value = require_sequence(
                value, method=method, position=2, meaning="callback arguments"
            )
        elif is_error:
            value = require_exception(value, method=method)
        self.registry.program_result(
            group, name, value, kind, is_error, always=always
        )
        return self

    def does_return(self: T_Scenario, group: str, name: str, value: t.Any) -> T_Scenario:
        """Return ``value`` from the next call."""
        return self._program("does_return", group, name, value, ResultKind.SYNCHRONOUS)

    def does_always_return(
        self: T_Scenario, group: str, name: str, value: t.Any
    ) -> T_Scenario:
        """Return ``value`` from every call."""
        return self._program(
            "does_always_return", group, name, value, ResultKind.SYNCHRONOUS, always=True
        )

    def does_return_async(
        self: T_Scenario, group: str, name: str, value: t.Any
    ) -> T_Scenario:
        """Return an awaitable resolving to ``value`` from the next call."""
        return self._program(
            "does_return_async", group, name, value, ResultKind.DEFERRED
        )

    def does_always_return_async(
        self: T_Scenario, group: str, name: str, value: t.Any
    ) -> T_Scenario:
        """Return an awaitable resolving to ``value`` from every call."""
        return self._program(
            "does_always_return_async",
            group,
            name,
            value,
            ResultKind.DEFERRED,
            always=True,
        )

    def does_return_with_callback(
        self: T_Scenario, group: str, name: str, params: t.Sequence[t.Any]
    ) -> T_Scenario:
        """Call the trailing callback of the next call with ``*params``."""
        return self._program(
            "does_return_with_callback", group, name, params, ResultKind.CALLBACK
        )

    def does_always_return_with_callback(
        self: T_Scenario, group: str, name: str, params: t.Sequence[t.Any]
    ) -> T_Scenario:
        """Call the trailing callback of every call with ``*params``."""
        return self._program(
            "does_always_return_with_callback",
            group,
            name,
            params,
            ResultKind.CALLBACK,
            always=True,
        )

    def does_error(
        self: T_Scenario, group: str, name: str, error: BaseException
    ) -> T_Scenario:
        """Raise ``error`` from the next call."""
        return self._program(
            "does_error", group, name, error, ResultKind.SYNCHRONOUS, is_error=True
        )

    def does_error_async(
        self: T_Scenario, group: str, name: str, error: BaseException
    ) -> T_Scenario:
        """Return an awaitable raising ``error`` from the next call."""
        return self._program(
            "does_error_async", group, name, error, ResultKind.DEFERRED, is_error=True
        )

    def does_error_with_callback(
        self: T_Scenario, group: str, name: str, params: t.Sequence[t.Any]
    ) -> T_Scenario:
        """Call the trailing callback of the next call with ``*params``.

        Identical to :meth:`does_return_with_callback`; ``params`` usually
        starts with the error passed to the callback.
        """
        return self._program(
            "does_error_with_callback",
            group,
            name,
            params,
            ResultKind.CALLBACK,
            is_error=True,
        )

    # ------------------------------------------------------------------
    # Completion, reporting and execution
    # ------------------------------------------------------------------
    def with_test_finisher_function(
        self: T_Scenario, group: str, name: str, iteration: int = 0
    ) -> T_Scenario:
        """Treat the ``iteration``-th (zero-based) call of ``(group, name)`` as done.

        Use this when the entry point returns before its work finishes, for
        example when it schedules tasks it does not await.
        """
        method = "with_test_finisher_function"
        require_str(group, method=method, position=0, meaning="mock key")
        require_str(name, method=method, position=1, meaning="function name")
        if isinstance(iteration, bool) or not isinstance(iteration, int) or iteration < 0:
            msg = f"When calling {method!r}, 'iteration' must be a non-negative int."
            raise InvalidScenarioError(msg)
        self.registry.designate_completion(group, name, iteration)
        return self

    def perf(self: T_Scenario, title: str | None = None) -> T_Scenario:
        """Sample this scenario's speed when performance mode is enabled."""
        if title is not None:
            require_str(title, method="perf", position=0, meaning="report title")
        self._perf_title = title if title is not None else self.context.title
        return self

    def no_debug(self: T_Scenario) -> T_Scenario:
        """Leave expected and actual values out of mismatch messages."""
        self._debug = False
        return self

    def test(self, testable: Testable) -> None:
        """Run the scenario on a fresh event loop and report to ``testable``."""
        asyncio.run(self.run(testable))

    async def run(self, testable: Testable) -> None:
        """Run the scenario on the current event loop."""
        logger.debug("Running scenario %s", self.context.title)
        state = ScenarioState(
            registry=self.registry,
            context=self.context,
            testable=testable,
            validate=lambda: self._validate(testable),
            invoke=self._invoke_entry_point,
            verifier=ExpectationVerifier(debug=self._debug),
            perf_title=self._perf_title,
        )
        await ScenarioPipeline(state).run()

    # ------------------------------------------------------------------
    # Flavour hooks
    # ------------------------------------------------------------------
    @property
    def entry_point(self) -> t.Callable[..., t.Any]:
        """Return the bound entry point."""
        if self._entry_owner is None or self._entry_name is None:
            msg = "You must call 'with_entry_point' before running the scenario."
            raise InvalidScenarioError(msg)
        return getattr(self._entry_owner, self._entry_name)

    @property
    def input_params(self) -> tuple[t.Any, ...]:
        """Return the positional inputs for the entry point."""
        return self._input_params or ()

    def _validate(self, testable: Testable) -> None:
        """Raise :class:`InvalidScenarioError` if the scenario cannot run."""
        if not callable(testable):
            msg = "The 'test' method requires a callable taking (error, result)."
            raise InvalidScenarioError(msg)
        self.entry_point  # noqa: B018 - raises when no entry point was given
        if self._input_params is None:
            msg = "You must call 'with_input_params' before running the scenario."
            raise InvalidScenarioError(msg)

    @abc.abstractmethod
    async def _invoke_entry_point(self) -> t.Any:
        """Call the entry point once and return its settled result."""


__all__ = ["Scenario"]
