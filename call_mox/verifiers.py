"""Verification of recorded calls against declared expectations."""

from __future__ import annotations

import logging
import pprint
import typing as t
from textwrap import indent

from .comparators import IGNORE, is_composite, is_subset, matches
from .errors import (
    ArgumentMismatchError,
    MockCallCountMismatchError,
    WrongParamCountError,
)
from .expectations import MatchMode
from .response import RESPONSE_GROUP

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .expectations import CallRecord, ExpectationRecord
    from .registry import FunctionMockState, MockRegistry

logger = logging.getLogger(__name__)

_MISSING_ARG: t.Final = object()


def _format_value(value: object) -> str:
    if value is _MISSING_ARG:
        return "(not passed)"
    return pprint.pformat(value, width=78, sort_dicts=True)


def _format_sections(sections: list[tuple[str, str]]) -> str:
    parts: list[str] = []
    for label, body in sections:
        if not body:
            continue
        parts.append(f"{label}:")
        parts.append(indent(body, "  "))
    return "\n".join(parts)


def _compare(actual: object, expected: object, mode: MatchMode) -> bool:
    if expected is IGNORE:
        return True
    if actual is _MISSING_ARG:
        return False
    if mode is MatchMode.SUBSET and is_composite(actual):
        return is_subset(actual, expected)
    return matches(actual, expected)


def _expected_count(expected: tuple[t.Any, ...], supplied: int) -> int:
    """Count expected positions, leaving out trailing ``IGNORE`` the call omitted."""
    count = len(expected)
    while count > supplied and expected[count - 1] is IGNORE:
        count -= 1
    return count


class ExpectationVerifier:
    """Compare each stand-in's recorded calls with its expectations."""

    def __init__(self, *, debug: bool = True) -> None:
        self.debug = debug

    def verify_all(self, registry: MockRegistry) -> None:
        """Raise on the first expectation that the recorded calls violate.

        Response-object functions are verified after every other stand-in so
        that collaborator failures are reported first.
        """
        states = registry.states
        ordered = [s for s in states if s.group != RESPONSE_GROUP]
        ordered.extend(s for s in states if s.group == RESPONSE_GROUP)
        for state in ordered:
            self.verify_state(state)

    def verify_state(self, state: FunctionMockState) -> None:
        """Verify the calls recorded for a single stand-in."""
        if state.ignored_always:
            logger.debug("Skipping ignored mock %s.%s", state.group, state.name)
            return

        actual_calls = state.actual_calls
        expected_calls = state.expected_calls
        if state.always_expectation is None and len(actual_calls) != len(
            expected_calls
        ):
            raise MockCallCountMismatchError(
                state.group, state.name, len(expected_calls), len(actual_calls)
            )

        for index, call in enumerate(actual_calls):
            expectation = state.always_expectation or expected_calls[index]
            if expectation.mode is MatchMode.CALLED_ONLY:
                continue
            self._verify_call(state, index, call, expectation)

    def _verify_call(
        self,
        state: FunctionMockState,
        index: int,
        call: CallRecord,
        expectation: ExpectationRecord,
    ) -> None:
        for position, (actual, expected) in enumerate(
            zip(call.args, expectation.args, strict=False)
        ):
            if not _compare(actual, expected, expectation.mode):
                raise self._mismatch(state, index, position, actual, expected)

        for key in sorted(call.kwargs.keys() | expectation.kwargs.keys()):
            actual = call.kwargs.get(key, _MISSING_ARG)
            expected = expectation.kwargs.get(key, _MISSING_ARG)
            if expected is _MISSING_ARG or not _compare(
                actual, expected, expectation.mode
            ):
                raise self._mismatch(state, index, key, actual, expected)

        expected_count = _expected_count(expectation.args, len(call.args))
        if len(call.args) != expected_count:
            raise WrongParamCountError(
                index, state.group, state.name, expected_count, len(call.args)
            )

    def _mismatch(  # noqa: PLR0913 - all values feed the report
        self,
        state: FunctionMockState,
        index: int,
        position: int | str,
        actual: object,
        expected: object,
    ) -> ArgumentMismatchError:
        details = ""
        if self.debug:
            details = _format_sections(
                [
                    ("Expected", _format_value(expected)),
                    ("Actual", _format_value(actual)),
                ]
            )
        return ArgumentMismatchError(
            position,
            state.group,
            state.name,
            index,
            actual=None if actual is _MISSING_ARG else actual,
            expected=None if expected is _MISSING_ARG else expected,
            details=details,
        )


__all__ = ["ExpectationVerifier"]
