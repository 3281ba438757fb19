from __future__ import annotations

from dataclasses import dataclass

"""Column and stub metadata held by the table model.

Metadata carries every ordering and display property; the dataset itself is
never reordered or rewritten by annotation calls.
"""

__all__ = [
    "ColumnMeta",
    "StubRow",
    "Heading",
    "ALIGNMENTS",
]

ALIGNMENTS = ("left", "center", "right")


@dataclass
class ColumnMeta:
    """Display metadata for one dataset column.

    The position of the entry in ``TableModel.columns`` is its display position.
    """
    name: str  # dataset column name (stable key)
    label: str  # column label shown in the header
    visible: bool = True
    align: str = "left"
    spanner: str | None = None  # spanner label above this column


@dataclass
class StubRow:
    """Stub metadata for one dataset row."""
    index: int  # dataset row index (never changes)
    rowname: str | None = None
    group: str | None = None  # None = ungrouped bucket


@dataclass(frozen=True)
class Heading:
    title: str
    subtitle: str | None = None
