"""Comparator classes and the deep comparison used during verification."""

from __future__ import annotations

import collections.abc as cabc
import re
import typing as t


class Comparator(t.Protocol):
    """Callable returning ``True`` when a value matches."""

    def __call__(self, value: object) -> bool:
        """Return ``True`` if *value* satisfies the comparison."""
        ...


class Ignore:
    """Placeholder for an argument position that is never compared."""

    _instance: t.ClassVar[Ignore | None] = None

    def __new__(cls) -> Ignore:
        """Return the shared sentinel."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __call__(self, value: object) -> bool:
        """Return ``True`` for any input."""
        return True

    def __repr__(self) -> str:
        """Return a debug representation."""
        return "IGNORE"


IGNORE: t.Final[Ignore] = Ignore()


class Any:
    """Match any value."""

    def __call__(self, value: object) -> bool:
        """Return ``True`` for any input."""
        return True

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        """Return a debug representation."""
        return "Any()"


class IsA:
    """Match instances of ``typ``."""

    def __init__(self, typ: type) -> None:
        self.typ = typ

    def __call__(self, value: object) -> bool:
        """Return ``True`` when ``value`` is an instance of ``typ``."""
        return isinstance(value, self.typ)

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"IsA({self.typ.__qualname__})"


class Regex:
    """Match if the string form of *value* matches ``pattern``."""

    def __init__(self, pattern: str) -> None:
        self._pattern = re.compile(pattern)

    def __call__(self, value: object) -> bool:
        """Return ``True`` if the regex matches *value*."""
        return isinstance(value, str) and bool(self._pattern.search(value))

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"Regex({self._pattern.pattern!r})"


class Contains:
    """Match if ``item`` is found in *value*."""

    def __init__(self, item: object) -> None:
        self.item = item

    def __call__(self, value: object) -> bool:
        """Return ``True`` if ``item`` is in *value*."""
        try:
            return self.item in value  # type: ignore[operator]
        except TypeError:
            return False

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"Contains({self.item!r})"


class StartsWith:
    """Match if *value* begins with ``prefix``."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix

    def __call__(self, value: object) -> bool:
        """Return ``True`` if *value* starts with ``prefix``."""
        return isinstance(value, str) and value.startswith(self.prefix)

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"StartsWith({self.prefix!r})"


class Predicate:
    """Use a custom ``func`` to determine a match."""

    def __init__(self, func: t.Callable[[t.Any], bool]) -> None:
        self.func = func

    def __call__(self, value: object) -> bool:
        """Return ``True`` if ``func(value)`` is truthy."""
        return bool(self.func(value))

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        """Return a debug representation."""
        return f"Predicate({self.func})"


COMPARATOR_TYPES: t.Final[tuple[type, ...]] = (
    Ignore,
    Any,
    IsA,
    Regex,
    Contains,
    StartsWith,
    Predicate,
)


def is_comparator(value: object) -> bool:
    """Return ``True`` when *value* is one of the comparator classes above."""
    return isinstance(value, COMPARATOR_TYPES)


def is_composite(value: object) -> bool:
    """Return ``True`` for mappings and non-string sequences or sets."""
    if isinstance(value, str | bytes | bytearray):
        return False
    return isinstance(value, cabc.Mapping | cabc.Sequence | cabc.Set)


def matches(actual: object, expected: object) -> bool:
    """Deep-compare *actual* against *expected*.

    Comparators nested anywhere inside *expected* are applied to the value at
    the same location. Exceptions compare equal when type and ``args`` agree.
    """
    if is_comparator(expected):
        return t.cast("Comparator", expected)(actual)
    if isinstance(expected, BaseException):
        return type(actual) is type(expected) and matches(
            getattr(actual, "args", None), expected.args
        )
    if isinstance(expected, cabc.Mapping):
        if not isinstance(actual, cabc.Mapping) or actual.keys() != expected.keys():
            return False
        return all(matches(actual[key], value) for key, value in expected.items())
    if isinstance(expected, list | tuple):
        if type(actual) is not type(expected) or len(actual) != len(expected):
            return False
        return all(matches(a, e) for a, e in zip(actual, expected, strict=True))
    try:
        if actual == expected:
            return True
    except Exception:  # noqa: BLE001 - exotic __eq__ implementations may fail
        return False
    # Recorded arguments are deep copies, so plain objects lose identity.
    if (
        type(actual) is type(expected)
        and type(expected).__eq__ is object.__eq__
        and hasattr(expected, "__dict__")
    ):
        return matches(vars(actual), vars(expected))
    return False


def is_subset(actual: object, expected: object) -> bool:
    """Return ``True`` when *actual* contains everything in *expected*.

    Mappings must carry every expected key with a recursively matching value.
    Sequences and sets must contain, for every expected element, some element
    that recursively matches it. Other values fall back to :func:`matches`.
    """
    if is_comparator(expected):
        return t.cast("Comparator", expected)(actual)
    if isinstance(expected, cabc.Mapping):
        if not isinstance(actual, cabc.Mapping):
            return False
        return all(
            key in actual and is_subset(actual[key], value)
            for key, value in expected.items()
        )
    if is_composite(expected):
        if not is_composite(actual) or isinstance(actual, cabc.Mapping):
            return False
        pool = list(t.cast("t.Iterable[object]", actual))
        return all(
            any(is_subset(candidate, item) for candidate in pool)
            for item in t.cast("t.Iterable[object]", expected)
        )
    return matches(actual, expected)


__all__ = [
    "IGNORE",
    "Any",
    "Comparator",
    "Contains",
    "Ignore",
    "IsA",
    "Predicate",
    "Regex",
    "StartsWith",
    "is_comparator",
    "is_composite",
    "is_subset",
    "matches",
]
