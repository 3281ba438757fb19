from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .selectors import Everything, SelectorLike

"""Location taxonomy and location specifiers.

A location specifier says *where* an annotation (footnote, style) applies.
The set of kinds is closed; each kind carries a fixed precedence used to
order mixed-location ledger entries (title first, body cells last).
"""

__all__ = [
    "LocationKind",
    "Location",
    "CellsTitle",
    "CellsColumnSpanners",
    "CellsColumnLabels",
    "CellsData",
    "CellsStub",
    "CellsRowGroups",
    "CellsSummary",
    "CellsGrandSummary",
    "cells_title",
    "cells_column_spanners",
    "cells_column_labels",
    "cells_data",
    "cells_stub",
    "cells_row_groups",
    "cells_summary",
    "cells_grand_summary",
]


class LocationKind(Enum):
    """Closed set of location kinds with (ledger name, precedence).

    title(1) < subtitle(2) < column spanners(3) < column labels(4)
    < {data, stub, row groups, summary, grand summary}(5)
    """
    TITLE = ("title", 1)
    SUBTITLE = ("subtitle", 2)
    COLUMN_SPANNERS = ("columns_groups", 3)
    COLUMN_LABELS = ("columns_columns", 4)
    DATA = ("data", 5)
    STUB = ("stub", 5)
    ROW_GROUPS = ("stub_groups", 5)
    SUMMARY = ("summary_cells", 5)
    GRAND_SUMMARY = ("grand_summary_cells", 5)

    def __init__(self, locname: str, precedence: int) -> None:
        self.locname = locname
        self.precedence = precedence


class Location:
    """Marker base class for location specifiers."""
    pass


@dataclass(frozen=True)
class CellsTitle(Location):
    part: str = "title"  # "title" | "subtitle"


@dataclass(frozen=True)
class CellsColumnSpanners(Location):
    spanners: Any = field(default_factory=Everything)


@dataclass(frozen=True)
class CellsColumnLabels(Location):
    columns: Any = field(default_factory=Everything)


@dataclass(frozen=True)
class CellsData(Location):
    columns: Any = field(default_factory=Everything)
    rows: Any = field(default_factory=Everything)


@dataclass(frozen=True)
class CellsStub(Location):
    rows: Any = field(default_factory=Everything)


@dataclass(frozen=True)
class CellsRowGroups(Location):
    groups: Any = field(default_factory=Everything)


@dataclass(frozen=True)
class CellsSummary(Location):
    """Summary cells; ``rows`` selects summary rows by label or position."""
    groups: Any = field(default_factory=Everything)
    columns: Any = field(default_factory=Everything)
    rows: Any = field(default_factory=Everything)


@dataclass(frozen=True)
class CellsGrandSummary(Location):
    columns: Any = field(default_factory=Everything)
    rows: Any = field(default_factory=Everything)


def cells_title(part: str = "title") -> CellsTitle:
    return CellsTitle(part=part)


def cells_column_spanners(spanners: SelectorLike = None) -> CellsColumnSpanners:
    return CellsColumnSpanners(spanners=Everything() if spanners is None else spanners)


def cells_column_labels(columns: SelectorLike = None) -> CellsColumnLabels:
    return CellsColumnLabels(columns=Everything() if columns is None else columns)


def cells_data(columns: SelectorLike = None, rows: SelectorLike = None) -> CellsData:
    return CellsData(
        columns=Everything() if columns is None else columns,
        rows=Everything() if rows is None else rows,
    )


def cells_stub(rows: SelectorLike = None) -> CellsStub:
    return CellsStub(rows=Everything() if rows is None else rows)


def cells_row_groups(groups: SelectorLike = None) -> CellsRowGroups:
    return CellsRowGroups(groups=Everything() if groups is None else groups)


def cells_summary(
    groups: SelectorLike = None, columns: SelectorLike = None, rows: SelectorLike = None
) -> CellsSummary:
    return CellsSummary(
        groups=Everything() if groups is None else groups,
        columns=Everything() if columns is None else columns,
        rows=Everything() if rows is None else rows,
    )


def cells_grand_summary(columns: SelectorLike = None, rows: SelectorLike = None) -> CellsGrandSummary:
    return CellsGrandSummary(
        columns=Everything() if columns is None else columns,
        rows=Everything() if rows is None else rows,
    )
