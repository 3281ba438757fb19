from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Union as TypingUnion

"""Selector types for column, row, group and spanner selection.

Selectors only describe *what* to select. Resolution against a table model
happens in ``tabledoc.services.resolver`` at the moment an annotation call
executes.

Plain values are accepted wherever a selector is:
- ``str``: one name/label
- ``int``: one position (columns: display order, rows: dataset row index)
- sequences of ``str``/``int``
- boolean masks (``pandas.Series``/``numpy.ndarray``/list of bool) for rows
"""

__all__ = [
    "Selector",
    "Everything",
    "StartsWith",
    "EndsWith",
    "Contains",
    "Matches",
    "OneOf",
    "Where",
    "Union",
    "Complement",
    "SelectorLike",
    "everything",
    "starts_with",
    "ends_with",
    "contains",
    "matches",
    "one_of",
    "where",
]


class Selector:
    """Base class giving every selector the set-algebra operators.

    ``a | b`` is the union (first-seen order, no duplicates) and ``~a`` is the
    complement against all candidates.
    """

    def __or__(self, other: SelectorLike) -> Union:
        return Union(parts=(self, other))

    def __ror__(self, other: SelectorLike) -> Union:
        return Union(parts=(other, self))

    def __invert__(self) -> Complement:
        return Complement(inner=self)


@dataclass(frozen=True)
class Everything(Selector):
    pass


@dataclass(frozen=True)
class StartsWith(Selector):
    prefix: str
    ignore_case: bool = True


@dataclass(frozen=True)
class EndsWith(Selector):
    suffix: str
    ignore_case: bool = True


@dataclass(frozen=True)
class Contains(Selector):
    text: str
    ignore_case: bool = True


@dataclass(frozen=True)
class Matches(Selector):
    pattern: str
    ignore_case: bool = True


@dataclass(frozen=True)
class OneOf(Selector):
    """Explicit list of names; the wrapper is stripped on resolution."""
    names: tuple[Any, ...]


@dataclass(frozen=True)
class Where(Selector):
    """Predicate over original values.

    For rows ``predicate(data)`` receives the whole dataset and returns a
    boolean mask. For columns ``predicate(series)`` is called once per column
    and returns a single bool.
    """
    predicate: Callable[[Any], Any]


@dataclass(frozen=True)
class Union(Selector):
    parts: tuple[Any, ...]


@dataclass(frozen=True)
class Complement(Selector):
    inner: Any


SelectorLike = TypingUnion[Selector, str, int, Sequence[Any], None]


def everything() -> Everything:
    return Everything()


def starts_with(prefix: str, ignore_case: bool = True) -> StartsWith:
    return StartsWith(prefix=prefix, ignore_case=ignore_case)


def ends_with(suffix: str, ignore_case: bool = True) -> EndsWith:
    return EndsWith(suffix=suffix, ignore_case=ignore_case)


def contains(text: str, ignore_case: bool = True) -> Contains:
    return Contains(text=text, ignore_case=ignore_case)


def matches(pattern: str, ignore_case: bool = True) -> Matches:
    return Matches(pattern=pattern, ignore_case=ignore_case)


def one_of(*names: Any) -> OneOf:
    # one_of("a", "b") と one_of(["a", "b"]) の両方を許容
    if len(names) == 1 and isinstance(names[0], (list, tuple)):
        names = tuple(names[0])
    return OneOf(names=tuple(names))


def where(predicate: Callable[[Any], Any]) -> Where:
    return Where(predicate=predicate)
