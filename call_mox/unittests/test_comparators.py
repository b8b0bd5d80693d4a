"""Comparator helpers and deep comparison tests."""

from __future__ import annotations

import typing as t
from types import SimpleNamespace

import pytest

from call_mox.comparators import (
    IGNORE,
    Contains,
    Ignore,
    IsA,
    Predicate,
    Regex,
    StartsWith,
    is_comparator,
    is_composite,
    is_subset,
    matches,
)
from call_mox.comparators import (
    Any as AnyComparator,
)


@pytest.mark.parametrize(
    ("matcher", "good", "bad", "expected_repr"),
    [
        (AnyComparator(), "anything", None, "Any()"),
        (IsA(int), 42, "nope", "IsA(int)"),
        (Contains("bar"), "foobarbaz", "qux", "Contains('bar')"),
        (Contains(2), [1, 2, 3], [4], "Contains(2)"),
        (StartsWith("bar"), "barfly", "foobar", "StartsWith('bar')"),
        (Regex(r"^foo\d$"), "foo1", "bar", "Regex('^foo\\\\d$')"),
    ],
)
def test_matchers_match_and_repr(
    matcher: t.Callable[[object], bool],
    good: object,
    bad: object | None,
    expected_repr: str,
) -> None:
    """Matchers evaluate values and provide helpful reprs."""
    assert matcher(good)
    if bad is not None:
        assert not matcher(bad)
    assert repr(matcher) == expected_repr


def test_contains_rejects_unsupported_containers() -> None:
    """Values without membership support never match."""
    assert not Contains("x")(42)


def test_regex_requires_strings() -> None:
    """Regex does not coerce non-string values."""
    assert not Regex(r"\d+")(123)


def test_predicate_uses_truthiness() -> None:
    """Predicate results are coerced to bool."""
    matcher = Predicate(len)
    assert matcher([1])
    assert not matcher([])


def test_ignore_is_a_singleton() -> None:
    """Every Ignore() is the shared IGNORE sentinel."""
    assert Ignore() is IGNORE
    assert IGNORE(object())
    assert repr(IGNORE) == "IGNORE"


def test_is_comparator_recognises_builtin_comparators() -> None:
    """Plain callables are values, not comparators."""
    assert is_comparator(IsA(str))
    assert is_comparator(IGNORE)
    assert not is_comparator(len)
    assert not is_comparator("text")


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ({"a": 1}, True),
        ([1], True),
        ((1,), True),
        ({1}, True),
        ("text", False),
        (b"bytes", False),
        (3, False),
        (None, False),
    ],
)
def test_is_composite(value: object, *, expected: bool) -> None:
    """Strings are scalars for subset purposes."""
    assert is_composite(value) is expected


def test_matches_deep_structures_with_nested_comparators() -> None:
    """Comparators apply at any depth of the expected value."""
    actual = {"id": 7, "tags": ["a", "b"], "owner": {"name": "Cory"}}
    expected = {"id": IsA(int), "tags": ["a", AnyComparator()], "owner": {"name": "Cory"}}
    assert matches(actual, expected)
    assert not matches(actual, {**expected, "id": IsA(str)})


def test_matches_distinguishes_list_from_tuple() -> None:
    """Sequence types must agree."""
    assert not matches([1, 2], (1, 2))
    assert not matches([1, 2], [1, 2, 3])


def test_matches_requires_identical_mapping_keys() -> None:
    """Extra keys are a mismatch outside subset mode."""
    assert not matches({"a": 1, "b": 2}, {"a": 1})


def test_matches_compares_exceptions_by_type_and_args() -> None:
    """Distinct exception instances compare structurally."""
    assert matches(ValueError("boom"), ValueError("boom"))
    assert not matches(ValueError("boom"), ValueError("bang"))
    assert not matches(KeyError("boom"), ValueError("boom"))


def test_matches_plain_objects_by_attributes() -> None:
    """Copies of objects without ``__eq__`` compare by their attributes."""
    assert matches(SimpleNamespace(a=1), SimpleNamespace(a=1)) is True

    class Point:
        def __init__(self, x: int) -> None:
            self.x = x

    assert matches(Point(1), Point(1))
    assert not matches(Point(1), Point(2))


def test_is_subset_for_mappings() -> None:
    """Every expected key must be present with a matching value."""
    actual = {"person_id": "123", "home_state": "IL", "extra": True}
    assert is_subset(actual, {"person_id": "123"})
    assert is_subset(actual, {"home_state": StartsWith("I")})
    assert not is_subset(actual, {"person_id": "999"})
    assert not is_subset(actual, {"missing": None})


def test_is_subset_for_sequences_and_nesting() -> None:
    """Each expected element must match some actual element."""
    assert is_subset([1, {"a": 1, "b": 2}, 3], [{"a": 1}, 3])
    assert not is_subset([1, 2], [4])
    assert not is_subset({"a": 1}, [1])


def test_is_subset_falls_back_to_equality_for_scalars() -> None:
    """Scalars are compared with :func:`matches`."""
    assert is_subset("abc", "abc")
    assert not is_subset("abc", "ab")
