"""Scripted results and how a stand-in delivers them."""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as t

from .errors import MissingCallbackError


class ResultKind(enum.StrEnum):
    """Delivery style for a scripted result."""

    SYNCHRONOUS = "synchronous"
    DEFERRED = "deferred"
    CALLBACK = "callback"


@dc.dataclass(slots=True, frozen=True)
class ResultDescriptor:
    """A value to hand back from one (or every) call of a stand-in.

    For :attr:`ResultKind.CALLBACK` the value is a sequence whose elements are
    passed to the caller's trailing callback.
    """

    value: t.Any
    kind: ResultKind = ResultKind.SYNCHRONOUS
    is_error: bool = False


async def _settle(value: t.Any, *, is_error: bool) -> t.Any:
    if is_error:
        raise value
    return value


def deliver(
    descriptor: ResultDescriptor,
    group: str,
    name: str,
    args: t.Sequence[t.Any],
) -> t.Any:
    """Return, raise or call back with *descriptor* for a call with *args*."""
    match descriptor.kind:
        case ResultKind.SYNCHRONOUS:
            if descriptor.is_error:
                raise descriptor.value
            return descriptor.value
        case ResultKind.DEFERRED:
            return _settle(descriptor.value, is_error=descriptor.is_error)
        case ResultKind.CALLBACK:
            if not args or not callable(args[-1]):
                raise MissingCallbackError(group, name)
            return args[-1](*descriptor.value)
        case _:  # pragma: no cover - exhaustive over ResultKind
            t.assert_never(descriptor.kind)


__all__ = ["ResultDescriptor", "ResultKind", "deliver"]
