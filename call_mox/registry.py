"""Registry of intercepted functions: recording, scripting and dispatch."""

from __future__ import annotations

import dataclasses as dc
import functools
import logging
import typing as t

from .errors import (
    DuplicateRegistrationError,
    FunctionNotFoundError,
    MissingCallbackError,
    MissingProgrammedResultError,
    MissingRegistrationError,
    MockRuntimeError,
)
from .expectations import CallRecord, ExpectationRecord, MatchMode
from .results import ResultDescriptor, ResultKind, deliver

logger = logging.getLogger(__name__)

InterceptionKey: t.TypeAlias = tuple[str, str]

STAND_IN_MARKER: t.Final[str] = "__call_mox_stand_in__"

_MISSING: t.Final = object()


def is_stand_in(value: object) -> bool:
    """Return ``True`` when *value* is a wrapper installed by a registry."""
    return bool(getattr(value, STAND_IN_MARKER, False))


def _own_attribute(host: object, name: str) -> object:
    """Return *host*'s own (unresolved) attribute, or ``_MISSING``."""
    try:
        return vars(host).get(name, _MISSING)
    except TypeError:
        return _MISSING


@dc.dataclass(slots=True, eq=False)
class FunctionMockState:
    """Everything known about one intercepted function."""

    group: str
    name: str
    host: object
    original: object = _MISSING
    programmed_results: list[ResultDescriptor] = dc.field(default_factory=list)
    always_result: ResultDescriptor | None = None
    call_count: int = 0
    actual_calls: list[CallRecord] = dc.field(default_factory=list)
    expected_calls: list[ExpectationRecord] = dc.field(default_factory=list)
    always_expectation: ExpectationRecord | None = None
    ignored_always: bool = False
    completion_iteration: int | None = None
    finisher: bool = False

    @property
    def key(self) -> InterceptionKey:
        """Return the ``(group, name)`` pair identifying this stand-in."""
        return (self.group, self.name)

    def next_result(self) -> ResultDescriptor | None:
        """Return the descriptor for the upcoming call, if one was scripted."""
        if self.always_result is not None:
            return self.always_result
        if self.call_count < len(self.programmed_results):
            return self.programmed_results[self.call_count]
        return None

    def restore(self) -> None:
        """Put the original attribute back on the host object."""
        if self.original is _MISSING:
            try:
                delattr(self.host, self.name)
            except AttributeError:
                logger.debug("%s.%s already removed from host", self.group, self.name)
        else:
            setattr(self.host, self.name, self.original)


class MockRegistry:
    """Owns every :class:`FunctionMockState` for a single scenario."""

    def __init__(self) -> None:
        self._states: dict[InterceptionKey, FunctionMockState] = {}
        self._completion_fired = False
        self._runtime_error: MockRuntimeError | None = None
        self._response_end: t.Callable[[], None] | None = None
        self._completion_listener: t.Callable[[], None] | None = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def states(self) -> list[FunctionMockState]:
        """Return the states in registration order."""
        return list(self._states.values())

    @property
    def completion_fired(self) -> bool:
        """Return ``True`` once the designated completion call happened."""
        return self._completion_fired

    @property
    def runtime_error(self) -> MockRuntimeError | None:
        """Return the first runtime error raised by a stand-in, if any."""
        return self._runtime_error

    @property
    def completion_designation(self) -> tuple[InterceptionKey, int] | None:
        """Return the designated ``(key, iteration)`` pair, if any."""
        for state in self._states.values():
            if state.completion_iteration is not None:
                return state.key, state.completion_iteration
        return None

    def __contains__(self, key: object) -> bool:
        """Return ``True`` if *key* is registered."""
        return key in self._states

    def get(self, group: str, name: str) -> FunctionMockState:
        """Return the state for ``(group, name)``."""
        state = self._states.get((group, name))
        if state is None:
            raise MissingRegistrationError(group, name)
        return state

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register(self, group: str, name: str, host: object) -> FunctionMockState:
        """Intercept ``host.<name>`` under the key ``(group, name)``."""
        target = getattr(host, name, None)
        if target is None or not callable(target):
            raise FunctionNotFoundError(group, name)
        if (group, name) in self._states or is_stand_in(target):
            raise DuplicateRegistrationError(group, name)

        state = FunctionMockState(
            group=group, name=name, host=host, original=_own_attribute(host, name)
        )
        stand_in = self._make_stand_in(state, target)
        setattr(host, name, staticmethod(stand_in) if isinstance(host, type) else stand_in)
        self._states[state.key] = state
        logger.debug("Intercepted %s.%s on %r", group, name, host)
        return state

    def register_at_most_once(
        self, group: str, name: str, host: object
    ) -> FunctionMockState:
        """Return the existing state for the key or register it."""
        existing = self._states.get((group, name))
        if existing is not None:
            return existing
        return self.register(group, name, host)

    def _make_stand_in(
        self, state: FunctionMockState, target: t.Callable[..., t.Any]
    ) -> t.Callable[..., t.Any]:
        @functools.wraps(target)
        def stand_in(*args: t.Any, **kwargs: t.Any) -> t.Any:
            return self._dispatch(state, args, kwargs)

        setattr(stand_in, STAND_IN_MARKER, True)
        return stand_in

    # ------------------------------------------------------------------
    # Scripting
    # ------------------------------------------------------------------
    def program_result(  # noqa: PLR0913 - mirrors the descriptor fields
        self,
        group: str,
        name: str,
        value: t.Any,
        kind: ResultKind = ResultKind.SYNCHRONOUS,
        is_error: bool = False,  # noqa: FBT001, FBT002
        *,
        always: bool = False,
    ) -> None:
        """Script the result of the next call, or of every call."""
        state = self.get(group, name)
        descriptor = ResultDescriptor(value=value, kind=kind, is_error=is_error)
        if always:
            state.always_result = descriptor
        else:
            state.programmed_results.append(descriptor)

    def declare_expectation(  # noqa: PLR0913 - keyword form of the record
        self,
        group: str,
        name: str,
        args: t.Sequence[t.Any] = (),
        kwargs: t.Mapping[str, t.Any] | None = None,
        *,
        mode: MatchMode = MatchMode.EXACT,
        always: bool = False,
    ) -> None:
        """Declare the arguments expected for the next call, or every call."""
        state = self.get(group, name)
        record = ExpectationRecord(args=tuple(args), kwargs=dict(kwargs or {}), mode=mode)
        if always:
            state.always_expectation = record
        else:
            state.expected_calls.append(record)

    def ignore_always(self, group: str, name: str) -> None:
        """Never verify the calls made to ``(group, name)``."""
        self.get(group, name).ignored_always = True

    def designate_completion(self, group: str, name: str, iteration: int = 0) -> None:
        """Mark the *iteration*-th call of ``(group, name)`` as the finish line."""
        designated = self.get(group, name)
        for state in self._states.values():
            state.completion_iteration = None
        designated.completion_iteration = iteration

    def mark_finisher(self, group: str, name: str) -> None:
        """Notify the response-end listener whenever ``(group, name)`` is called."""
        self.get(group, name).finisher = True

    def on_response_end(self, listener: t.Callable[[], None] | None) -> None:
        """Set the callable notified when a finisher function is called."""
        self._response_end = listener

    def on_completion(self, listener: t.Callable[[], None] | None) -> None:
        """Set the callable notified when the designated call fires."""
        self._completion_listener = listener

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def _flag_runtime_error(self, error: MockRuntimeError) -> None:
        if self._runtime_error is None:
            self._runtime_error = error

    def _dispatch(
        self,
        state: FunctionMockState,
        args: tuple[t.Any, ...],
        kwargs: dict[str, t.Any],
    ) -> t.Any:
        descriptor = state.next_result()

        if not self._completion_fired:
            recorded = args
            if (
                descriptor is not None
                and descriptor.kind is ResultKind.CALLBACK
                and args
                and callable(args[-1])
            ):
                recorded = args[:-1]
            state.actual_calls.append(CallRecord.capture(recorded, kwargs))

        if descriptor is None:
            error = MissingProgrammedResultError(state.call_count, state.group, state.name)
            self._flag_runtime_error(error)
            raise error

        if state.completion_iteration == state.call_count and not self._completion_fired:
            self._completion_fired = True
            logger.debug(
                "Completion signal fired by call %d of %s.%s",
                state.call_count,
                state.group,
                state.name,
            )
            if self._completion_listener is not None:
                self._completion_listener()

        state.call_count += 1
        logger.debug(
            "Dispatching %s result for call %d of %s.%s",
            descriptor.kind,
            state.call_count,
            state.group,
            state.name,
        )
        try:
            result = deliver(descriptor, state.group, state.name, args)
        except MissingCallbackError as err:
            self._flag_runtime_error(err)
            raise

        if state.finisher and self._response_end is not None:
            self._response_end()
        return result

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def reset_call_counts(self) -> None:
        """Forget recorded calls so the scenario can run again."""
        for state in self._states.values():
            state.call_count = 0
            state.actual_calls.clear()
        self._completion_fired = False
        self._runtime_error = None

    def teardown(self) -> None:
        """Restore every intercepted function and discard all state."""
        for state in reversed(self._states.values()):
            state.restore()
        self._states.clear()
        self._completion_fired = False
        self._response_end = None
        self._completion_listener = None
        logger.debug("Registry torn down")


__all__ = [
    "STAND_IN_MARKER",
    "FunctionMockState",
    "InterceptionKey",
    "MockRegistry",
    "is_stand_in",
]
