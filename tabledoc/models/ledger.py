from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Iterator
from dataclasses import dataclass
from enum import Enum

from .locations import LocationKind

"""Annotation ledgers.

A ledger is an append-only, deduplicated, ordered sequence of location-tagged
entries. Deduplication is by full-entry equality: an entry identical in every
field to an existing one is not re-added and the ledger size is unchanged.
"""

__all__ = [
    "LedgerKind",
    "LedgerEntry",
    "Ledger",
]


class LedgerKind(Enum):
    """The four independent ledgers held by a table model."""
    STYLES = "styles"
    FOOTNOTES = "footnotes"
    FORMATS = "formats"
    SUMMARIES = "summaries"


@dataclass(frozen=True)
class LedgerEntry:
    """One location-tagged ledger row.

    Only the fields meaningful for ``kind`` are populated; the others stay
    ``None`` (e.g. a title footnote has no group, column or row).
    """
    kind: LocationKind
    group: str | None = None
    column: str | None = None
    row: int | None = None
    payload: Hashable = None

    @property
    def precedence(self) -> int:
        return self.kind.precedence


class Ledger:
    """Ordered set of ``LedgerEntry`` keyed by the whole entry."""

    def __init__(self, entries: Iterable[LedgerEntry] = ()) -> None:
        # dict をオーダー付き集合として使う (挿入順保持)
        self._entries: dict[LedgerEntry, None] = {}
        self.extend(entries)

    def add(self, entry: LedgerEntry) -> bool:
        """Append ``entry`` unless an identical entry exists. Returns True if added."""
        if entry in self._entries:
            return False
        self._entries[entry] = None
        return True

    def extend(self, entries: Iterable[LedgerEntry]) -> int:
        added = 0
        for entry in entries:
            if self.add(entry):
                added += 1
        return added

    def copy(self) -> Ledger:
        """Independent ledger sharing the (frozen) entries."""
        clone = Ledger()
        clone._entries = dict(self._entries)
        return clone

    def discard_where(self, predicate: Callable[[LedgerEntry], bool]) -> int:
        """Drop every entry matching ``predicate``; returns the number removed."""
        doomed = [e for e in self._entries if predicate(e)]
        for entry in doomed:
            del self._entries[entry]
        return len(doomed)

    def by_precedence(self) -> list[LedgerEntry]:
        """Entries sorted by location precedence; ties keep insertion order."""
        return sorted(self._entries, key=lambda e: e.precedence)

    def __iter__(self) -> Iterator[LedgerEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry: object) -> bool:
        return entry in self._entries

    def __repr__(self) -> str:  # pragma: no cover (trivial)
        return f"Ledger({list(self._entries)!r})"
