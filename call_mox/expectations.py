"""Recorded calls and declared expectations for intercepted functions."""

from __future__ import annotations

import copy
import dataclasses as dc
import enum
import logging
import typing as t

logger = logging.getLogger(__name__)


class MatchMode(enum.StrEnum):
    """How the arguments of one expected call are compared."""

    EXACT = "exact"
    SUBSET = "subset"
    CALLED_ONLY = "called_only"


def _snapshot(value: object) -> object:
    """Deep-copy *value*, keeping a reference when it cannot be copied."""
    try:
        return copy.deepcopy(value)
    except Exception:  # noqa: BLE001 - arbitrary objects may refuse deepcopy
        logger.warning(
            "Argument of type %s cannot be deep-copied; recording a reference",
            type(value).__name__,
        )
        return value


@dc.dataclass(slots=True, frozen=True)
class CallRecord:
    """Snapshot of the arguments passed to a stand-in."""

    args: tuple[t.Any, ...]
    kwargs: t.Mapping[str, t.Any] = dc.field(default_factory=dict)

    @classmethod
    def capture(
        cls, args: t.Sequence[t.Any], kwargs: t.Mapping[str, t.Any]
    ) -> CallRecord:
        """Copy *args* and *kwargs* so later mutation cannot alter history."""
        return cls(
            args=tuple(_snapshot(arg) for arg in args),
            kwargs={key: _snapshot(value) for key, value in kwargs.items()},
        )


@dc.dataclass(slots=True, frozen=True)
class ExpectationRecord:
    """Expected arguments for one call, or for every call of a stand-in."""

    args: tuple[t.Any, ...] = ()
    kwargs: t.Mapping[str, t.Any] = dc.field(default_factory=dict)
    mode: MatchMode = MatchMode.EXACT


__all__ = ["CallRecord", "ExpectationRecord", "MatchMode"]
