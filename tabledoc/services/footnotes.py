from __future__ import annotations

import string
from collections.abc import Sequence
from dataclasses import dataclass

from ..errors import ConfigError
from ..models.ledger import Ledger, LedgerEntry

"""Footnote mark assignment.

Marks follow ledger order: entries are sorted by location precedence and,
within equal precedence, by first occurrence. Each distinct footnote text
receives one mark, attached to every location carrying that text.
"""

__all__ = [
    "MARK_SETS",
    "FootnoteMark",
    "footnote_mark_sequence",
    "assign_footnote_marks",
]

MARK_SETS: dict[str, tuple[str, ...]] = {
    "letters": tuple(string.ascii_lowercase),
    "LETTERS": tuple(string.ascii_uppercase),
    "standard": ("*", "†", "‡", "§", "‖", "¶"),
}


@dataclass(frozen=True)
class FootnoteMark:
    mark: str
    text: str
    locations: tuple[LedgerEntry, ...]


def footnote_mark_sequence(marks: str | Sequence[str], n: int) -> list[str]:
    """First ``n`` marks of a mark set.

    "numbers" counts 1, 2, 3...; for a finite set of k symbols the (i+1)-th
    round repeats each symbol i+1 times (a..z, aa..zz, ...).
    """
    if marks == "numbers":
        return [str(i + 1) for i in range(n)]
    if isinstance(marks, str):
        if marks not in MARK_SETS:
            raise ConfigError(f"unknown footnote mark set '{marks}'")
        symbols = MARK_SETS[marks]
    else:
        symbols = tuple(marks)
        if not symbols:
            raise ConfigError("footnote mark list must not be empty")
    k = len(symbols)
    return [symbols[i % k] * (i // k + 1) for i in range(n)]


def assign_footnote_marks(ledger: Ledger, marks: str | Sequence[str]) -> list[FootnoteMark]:
    locations_by_text: dict[str, list[LedgerEntry]] = {}
    for entry in ledger.by_precedence():
        locations_by_text.setdefault(str(entry.payload), []).append(entry)
    sequence = footnote_mark_sequence(marks, len(locations_by_text))
    return [
        FootnoteMark(mark=mark, text=text, locations=tuple(locs))
        for mark, (text, locs) in zip(sequence, locations_by_text.items(), strict=True)
    ]
