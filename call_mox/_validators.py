"""Shared validation helpers."""

from __future__ import annotations

import collections.abc as cabc
import math
import typing as t

from .errors import InvalidScenarioError


def validate_positive_finite(value: float, *, name: str) -> None:
    """Ensure *value* is a usable positive duration or size."""
    if isinstance(value, bool):
        msg = f"{name} must be a real number"
        raise TypeError(msg)

    if not (value > 0 and math.isfinite(value)):
        msg = f"{name} must be > 0 and finite"
        raise ValueError(msg)


def validate_positive_int(value: int, *, name: str) -> None:
    """Ensure *value* is a strictly positive integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{name} must be an integer"
        raise TypeError(msg)

    if value <= 0:
        msg = f"{name} must be positive"
        raise ValueError(msg)


_POSITIONS: t.Final[tuple[str, ...]] = ("first", "second", "third", "fourth")


def require_str(value: object, *, method: str, position: int, meaning: str) -> str:
    """Return *value* if it is a non-empty string, else raise a build error."""
    if not isinstance(value, str) or not value:
        msg = (
            f"When calling {method!r}, the {_POSITIONS[position]} parameter must "
            f"be of type str representing the {meaning}."
        )
        raise InvalidScenarioError(msg)
    return value


def require_sequence(
    value: object, *, method: str, position: int, meaning: str
) -> tuple[t.Any, ...]:
    """Return *value* as a tuple if it is a list or tuple."""
    if not isinstance(value, list | tuple):
        msg = (
            f"When calling {method!r}, the {_POSITIONS[position]} parameter must "
            f"be a list or tuple representing the {meaning}."
        )
        raise InvalidScenarioError(msg)
    return tuple(value)


def require_kwargs(value: object, *, method: str) -> dict[str, t.Any] | None:
    """Return a copy of a str-keyed mapping, passing ``None`` through."""
    if value is None:
        return None
    if not isinstance(value, cabc.Mapping) or not all(isinstance(k, str) for k in value):
        msg = f"When calling {method!r}, 'kwargs' must be a mapping keyed by str."
        raise InvalidScenarioError(msg)
    return dict(value)


def require_exception(value: object, *, method: str) -> BaseException:
    """Return *value* if it is an exception instance."""
    if not isinstance(value, BaseException):
        msg = (
            f"When calling {method!r}, the third parameter must be an exception "
            "instance to raise."
        )
        raise InvalidScenarioError(msg)
    return value
