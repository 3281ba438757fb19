from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

import numpy as np
import pandas as pd

from ..errors import ConfigError, ResolutionError
from ..models.ledger import LedgerEntry
from ..models.locations import (
    CellsColumnLabels,
    CellsColumnSpanners,
    CellsData,
    CellsGrandSummary,
    CellsRowGroups,
    CellsStub,
    CellsSummary,
    CellsTitle,
    Location,
    LocationKind,
)
from ..models.selectors import (
    Complement,
    Contains,
    EndsWith,
    Everything,
    Matches,
    OneOf,
    StartsWith,
    Union,
    Where,
)
from ..models.table_model import TableModel

"""Selector resolution.

Turns selectors and location specifiers into concrete coordinates against the
*current* model state:
- columns -> ordered column names (display order for predicates)
- rows -> dataset row indices
- groups/spanners -> names currently defined

Resolution is eager: annotation calls resolve when they execute, so later
structural changes (new row groups, moved columns) never alter earlier
resolutions. Results are ordered and free of duplicates.
"""

__all__ = [
    "GRAND_SUMMARY",
    "resolve_columns",
    "resolve_column_positions",
    "resolve_rows",
    "resolve_groups",
    "resolve_spanners",
    "resolve_summary_rows",
    "resolve_location",
    "resolve_locations",
]

# Group key of the grand summary block (never a user group name in practice)
GRAND_SUMMARY = "::GRAND_SUMMARY"


def _dedupe(values: list[Any]) -> list[Any]:
    return list(dict.fromkeys(values))


def _text_predicate(selector: Any) -> Any:
    """Return a label -> bool function for name-pattern selectors, else None."""
    if isinstance(selector, StartsWith):
        prefix = selector.prefix.lower() if selector.ignore_case else selector.prefix
        return lambda s: (s.lower() if selector.ignore_case else s).startswith(prefix)
    if isinstance(selector, EndsWith):
        suffix = selector.suffix.lower() if selector.ignore_case else selector.suffix
        return lambda s: (s.lower() if selector.ignore_case else s).endswith(suffix)
    if isinstance(selector, Contains):
        text = selector.text.lower() if selector.ignore_case else selector.text
        return lambda s: text in (s.lower() if selector.ignore_case else s)
    if isinstance(selector, Matches):
        try:
            regex = re.compile(selector.pattern, re.IGNORECASE if selector.ignore_case else 0)
        except re.error as e:
            raise ConfigError(f"invalid pattern {selector.pattern!r}: {e}") from e
        return lambda s: regex.search(s) is not None
    return None


def _match_labels(
    candidates: Sequence[str | None],
    selector: Any,
    what: str,
    *,
    allow_positions: bool = True,
) -> list[int]:
    """Resolve ``selector`` to positions within ``candidates``.

    Shared by columns (candidates = names in display order), groups, spanners
    and summary rows. Explicit names keep the order they were given in;
    pattern selectors keep candidate order.
    """
    if selector is None:
        return []
    if isinstance(selector, Everything):
        return list(range(len(candidates)))
    if isinstance(selector, OneOf):
        return _match_labels(candidates, list(selector.names), what, allow_positions=allow_positions)
    if isinstance(selector, Union):
        positions: list[int] = []
        for part in selector.parts:
            positions.extend(_match_labels(candidates, part, what, allow_positions=allow_positions))
        return _dedupe(positions)
    if isinstance(selector, Complement):
        excluded = set(_match_labels(candidates, selector.inner, what, allow_positions=allow_positions))
        return [i for i in range(len(candidates)) if i not in excluded]

    predicate = _text_predicate(selector)
    if predicate is not None:
        return [i for i, c in enumerate(candidates) if c is not None and predicate(c)]

    if isinstance(selector, str):
        for i, c in enumerate(candidates):
            if c == selector:
                return [i]
        known = [c for c in candidates if c is not None]
        raise ResolutionError(f"{what} '{selector}' not found: {known}")
    if isinstance(selector, (int, np.integer)) and not isinstance(selector, (bool, np.bool_)):
        if not allow_positions:
            raise ResolutionError(f"{what} must be referenced by name, got position {selector}")
        if not 0 <= int(selector) < len(candidates):
            raise ResolutionError(f"{what} position {selector} out of range (0..{len(candidates) - 1})")
        return [int(selector)]
    if isinstance(selector, (list, tuple)):
        positions = []
        for item in selector:
            positions.extend(_match_labels(candidates, item, what, allow_positions=allow_positions))
        return _dedupe(positions)
    raise ConfigError(f"unsupported {what} selector: {selector!r}")


def resolve_columns(model: TableModel, selector: Any) -> list[str]:
    """Resolve a column selector to column names.

    ``where(fn)`` calls ``fn(series)`` for every column on the original data.
    Columns scheduled for removal by a merge remain addressable until the
    model is materialized.
    """
    names = model.column_names()
    if isinstance(selector, Where):
        return [n for n in names if bool(selector.predicate(model.data[n]))]
    if isinstance(selector, (Union, Complement)) and _contains_where(selector):
        # where() inside set algebra: evaluate to explicit names first
        selector = _expand_where(model, selector)
    positions = _match_labels(names, selector, "column")
    return [names[i] for i in positions]


def _contains_where(selector: Any) -> bool:
    if isinstance(selector, Where):
        return True
    if isinstance(selector, Union):
        return any(_contains_where(p) for p in selector.parts)
    if isinstance(selector, Complement):
        return _contains_where(selector.inner)
    return False


def _expand_where(model: TableModel, selector: Any) -> Any:
    if isinstance(selector, Where):
        return OneOf(names=tuple(resolve_columns(model, selector)))
    if isinstance(selector, Union):
        return Union(parts=tuple(_expand_where(model, p) for p in selector.parts))
    if isinstance(selector, Complement):
        return Complement(inner=_expand_where(model, selector.inner))
    return selector


def resolve_column_positions(model: TableModel, names: Sequence[str]) -> list[int]:
    """Current display positions of ``names`` (reflects moves made so far)."""
    order = model.column_names()
    positions = []
    for name in names:
        if name not in order:
            model.column(name)  # raises ResolutionError with the right message
        positions.append(order.index(name))
    return positions


def _is_mask(selector: Any) -> bool:
    if isinstance(selector, (pd.Series, np.ndarray)):
        return pd.api.types.is_bool_dtype(selector)
    if isinstance(selector, list) and selector:
        return all(isinstance(v, (bool, np.bool_)) for v in selector)
    return False


def _mask_to_rows(mask: Any, n_rows: int) -> list[int]:
    values = np.asarray(mask, dtype=bool)
    if values.ndim != 1 or len(values) != n_rows:
        raise ResolutionError(f"row mask has length {values.size}, expected {n_rows}")
    return [int(i) for i in np.flatnonzero(values)]


def resolve_rows(model: TableModel, selector: Any) -> list[int]:
    """Resolve a row selector to dataset row indices.

    - labels (sequence, ``pd.Index`` or ``pd.Series``): matched against stub
      row labels, in the order given; a label shared by rows selects them all
    - ints: dataset row indices
    - ``where(fn)``: ``fn(data)`` on original values; sorted indices where true
    - boolean masks: must have one entry per row
    Unmatched labels raise ``ResolutionError``; an empty predicate result is
    simply an empty list.
    """
    n_rows = model.n_rows
    if selector is None:
        return []
    if isinstance(selector, Everything):
        return list(range(n_rows))
    if isinstance(selector, Where):
        mask = selector.predicate(model.data)
        if isinstance(mask, pd.Series):
            mask = mask.fillna(False).to_numpy(dtype=bool)
        return _mask_to_rows(mask, n_rows)
    if _is_mask(selector):
        if isinstance(selector, pd.Series):
            selector = selector.fillna(False).to_numpy(dtype=bool)
        return _mask_to_rows(selector, n_rows)
    if isinstance(selector, Union):
        rows: list[int] = []
        for part in selector.parts:
            rows.extend(resolve_rows(model, part))
        return _dedupe(rows)
    if isinstance(selector, Complement):
        excluded = set(resolve_rows(model, selector.inner))
        return [i for i in range(n_rows) if i not in excluded]
    if isinstance(selector, OneOf):
        return resolve_rows(model, list(selector.names))

    labels = model.row_labels()
    predicate = _text_predicate(selector)
    if predicate is not None:
        return [i for i, label in enumerate(labels) if label is not None and predicate(label)]
    if isinstance(selector, str):
        found = [i for i, label in enumerate(labels) if label == selector]
        if not found:
            raise ResolutionError(f"row label '{selector}' not found in stub")
        return found
    if isinstance(selector, (int, np.integer)) and not isinstance(selector, (bool, np.bool_)):
        if not 0 <= int(selector) < n_rows:
            raise ResolutionError(f"row index {selector} out of range (0..{n_rows - 1})")
        return [int(selector)]
    if isinstance(selector, (list, tuple, pd.Index, pd.Series)):
        rows = []
        if isinstance(selector, pd.Series):
            selector = selector.tolist()
        for item in selector:
            rows.extend(resolve_rows(model, item))
        return _dedupe(rows)
    raise ConfigError(f"unsupported row selector: {selector!r}")


def resolve_groups(model: TableModel, groups: Any) -> list[str]:
    """Resolve to named row groups currently defined (``one_of`` wrapper stripped)."""
    candidates = model.group_names()
    positions = _match_labels(candidates, groups, "row group", allow_positions=False)
    return [candidates[i] for i in positions]


def resolve_spanners(model: TableModel, spanners: Any) -> list[str]:
    candidates = model.spanner_labels()
    positions = _match_labels(candidates, spanners, "spanner", allow_positions=False)
    return [candidates[i] for i in positions]


def resolve_summary_rows(labels: Sequence[str], rows: Any) -> list[int]:
    """Resolve summary rows of one block by label or position within the block."""
    return _match_labels(list(labels), rows, "summary row")


def _summary_labels(model: TableModel, group: str) -> list[str]:
    """Summary row labels a group will receive, from definitions recorded so far."""
    labels: list[str] = []
    for entry in model.summaries:
        definition = entry.payload
        if group == GRAND_SUMMARY and definition.is_grand:
            labels.extend(definition.labels)
        elif not definition.is_grand and group in definition.groups:
            labels.extend(definition.labels)
    return labels


def resolve_location(model: TableModel, location: Location) -> list[LedgerEntry]:
    """Resolve one location specifier to payload-less ledger entries.

    Every location variant is handled explicitly; an unknown variant is a
    usage error, never a silent no-op.
    """
    if isinstance(location, CellsTitle):
        if location.part == "title":
            return [LedgerEntry(kind=LocationKind.TITLE)]
        if location.part == "subtitle":
            return [LedgerEntry(kind=LocationKind.SUBTITLE)]
        raise ConfigError(f"cells_title part must be 'title' or 'subtitle', got {location.part!r}")

    if isinstance(location, CellsColumnSpanners):
        return [
            LedgerEntry(kind=LocationKind.COLUMN_SPANNERS, group=s)
            for s in resolve_spanners(model, location.spanners)
        ]

    if isinstance(location, CellsColumnLabels):
        return [
            LedgerEntry(kind=LocationKind.COLUMN_LABELS, column=c)
            for c in resolve_columns(model, location.columns)
        ]

    if isinstance(location, CellsData):
        columns = resolve_columns(model, location.columns)
        rows = resolve_rows(model, location.rows)
        return [
            LedgerEntry(kind=LocationKind.DATA, column=c, row=r)
            for c in columns
            for r in rows
        ]

    if isinstance(location, CellsStub):
        return [LedgerEntry(kind=LocationKind.STUB, row=r) for r in resolve_rows(model, location.rows)]

    if isinstance(location, CellsRowGroups):
        return [
            LedgerEntry(kind=LocationKind.ROW_GROUPS, group=g)
            for g in resolve_groups(model, location.groups)
        ]

    if isinstance(location, CellsSummary):
        entries = []
        columns = resolve_columns(model, location.columns)
        for group in resolve_groups(model, location.groups):
            labels = _summary_labels(model, group)
            if not labels and isinstance(location.groups, Everything):
                # 全グループ指定: 要約行を持たないグループは対象外
                continue
            rows = resolve_summary_rows(labels, location.rows)
            entries.extend(
                LedgerEntry(kind=LocationKind.SUMMARY, group=group, column=c, row=r)
                for c in columns
                for r in rows
            )
        return entries

    if isinstance(location, CellsGrandSummary):
        columns = resolve_columns(model, location.columns)
        rows = resolve_summary_rows(_summary_labels(model, GRAND_SUMMARY), location.rows)
        return [
            LedgerEntry(kind=LocationKind.GRAND_SUMMARY, group=GRAND_SUMMARY, column=c, row=r)
            for c in columns
            for r in rows
        ]

    raise ConfigError(f"unsupported location: {location!r}")


def resolve_locations(model: TableModel, locations: Location | Sequence[Location]) -> list[LedgerEntry]:
    if isinstance(locations, Location):
        locations = [locations]
    entries: list[LedgerEntry] = []
    for loc in locations:
        entries.extend(resolve_location(model, loc))
    return _dedupe(entries)
