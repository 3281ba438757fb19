from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any

import pandas as pd

from ..config.loader import TableOptions
from ..errors import ConfigError, ResolutionError
from .ledger import Ledger, LedgerEntry, LedgerKind
from .metadata import ColumnMeta, Heading, StubRow

"""TableModel: the mutable intermediate representation of a table document.

The model owns a private copy of the dataset plus all structural metadata
(column display order, visibility, alignment, spanners; stub row labels,
group membership, group order) and the four annotation ledgers.

Only two orderings are exposed: column display order (``columns``) and stub
group order (``group_order``). Dataset storage order is never mutated.
"""

__all__ = [
    "TableModel",
]

logger = logging.getLogger(__name__)

# 変換前状態のスナップショット対象外 (データ本体は注釈呼び出しで変更されない)
_UNSNAPSHOTTED = frozenset({"data", "body"})
_LIST_STATE = ("group_order", "source_notes", "merges", "pending_drops", "dropped_columns")


def default_align(series: pd.Series) -> str:
    if pd.api.types.is_bool_dtype(series):
        return "center"
    if pd.api.types.is_numeric_dtype(series):
        return "right"
    return "left"


def _stub_label(value: Any) -> str | None:
    if value is None or (pd.api.types.is_scalar(value) and pd.isna(value)):
        return None
    return str(value)


class TableModel:
    """Central owner of dataset, column/stub metadata and ledgers.

    Args:
        data: Rectangular dataset (a DataFrame or anything ``pd.DataFrame`` accepts)
        rowname_col: Column whose values become stub row labels
        groupname_col: Column whose values become row group names
        options: Table-wide defaults (``TableOptions()`` if None)
    """

    def __init__(
        self,
        data: Any,
        *,
        rowname_col: str | None = None,
        groupname_col: str | None = None,
        options: TableOptions | None = None,
    ) -> None:
        frame = data.copy() if isinstance(data, pd.DataFrame) else pd.DataFrame(data)
        frame.columns = [str(c) for c in frame.columns]
        if frame.columns.duplicated().any():
            dupes = sorted(set(frame.columns[frame.columns.duplicated()]))
            raise ConfigError(f"duplicate column names: {dupes}")
        if rowname_col is not None and rowname_col == groupname_col:
            raise ConfigError("rowname_col and groupname_col must be different columns")
        for col in (rowname_col, groupname_col):
            if col is not None and col not in frame.columns:
                raise ResolutionError(f"column '{col}' not found in data: {list(frame.columns)}")
        frame = frame.reset_index(drop=True)

        n_rows = len(frame)
        rownames = [_stub_label(v) for v in frame[rowname_col]] if rowname_col else [None] * n_rows
        groups = [_stub_label(v) for v in frame[groupname_col]] if groupname_col else [None] * n_rows
        stub_cols = [c for c in (rowname_col, groupname_col) if c is not None]

        self.data: pd.DataFrame = frame.drop(columns=stub_cols)
        self.options: TableOptions = options or TableOptions()
        self.columns: list[ColumnMeta] = [
            ColumnMeta(name=name, label=name, align=default_align(self.data[name]))
            for name in self.data.columns
        ]
        self.stub: list[StubRow] = [
            StubRow(index=i, rowname=rownames[i], group=groups[i]) for i in range(n_rows)
        ]
        self.group_order: list[str | None] = []
        if groupname_col:
            for g in groups:
                if g is not None and g not in self.group_order:
                    self.group_order.append(g)
            if any(g is None for g in groups):
                self.group_order.append(None)
        self.others_label: str | None = None

        self.heading: Heading | None = None
        self.stubhead_label: str | None = None
        self.source_notes: list[str] = []

        self.styles = Ledger()
        self.footnotes = Ledger()
        self.formats = Ledger()
        self.summaries = Ledger()

        # Column-merge state: merges run and sources are dropped at materialization
        self.merges: list[Any] = []
        self.pending_drops: list[str] = []
        self.dropped_columns: list[str] = []

        # Populated by materialize()
        self.materialized: bool = False
        self.body: pd.DataFrame | None = None
        self.summary_rows: dict[str, list[Any]] = {}

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def n_rows(self) -> int:
        return len(self.stub)

    @property
    def has_stub(self) -> bool:
        return any(r.rowname is not None for r in self.stub) or bool(self.group_order)

    @property
    def others_group_label(self) -> str | None:
        """Label of the ungrouped bucket (explicit call wins over the option default)."""
        if self.others_label is not None:
            return self.others_label
        return self.options.row_group_others_label

    def column_names(self) -> list[str]:
        """Current column names in display order (merge sources included until materialized)."""
        return [c.name for c in self.columns]

    def column(self, name: str) -> ColumnMeta:
        for meta in self.columns:
            if meta.name == name:
                return meta
        if name in self.dropped_columns:
            raise ResolutionError(f"column '{name}' was removed by a column merge")
        raise ResolutionError(f"column '{name}' not found in columns: {self.column_names()}")

    def row_labels(self) -> list[str | None]:
        return [r.rowname for r in self.stub]

    def group_names(self) -> list[str]:
        """Named row groups in group order (the ungrouped bucket excluded)."""
        return [g for g in self.group_order if g is not None]

    def rows_in_group(self, group: str | None) -> list[int]:
        return [r.index for r in self.stub if r.group == group]

    def spanner_labels(self) -> list[str]:
        seen: list[str] = []
        for meta in self.columns:
            if meta.spanner is not None and meta.spanner not in seen:
                seen.append(meta.spanner)
        return seen

    def ledger(self, kind: LedgerKind) -> Ledger:
        return getattr(self, kind.value)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def ensure_open(self) -> None:
        if self.materialized:
            raise ConfigError("table is already materialized; no further annotation calls are accepted")

    def _snapshot(self) -> dict[str, Any]:
        """Copy of the mutable state, one level deep.

        Ledger entries, options and heading are frozen and shared; only the
        containers and the mutable column/stub records are copied.
        """
        state = {k: v for k, v in vars(self).items() if k not in _UNSNAPSHOTTED}
        state["columns"] = [copy.copy(c) for c in self.columns]
        state["stub"] = [copy.copy(r) for r in self.stub]
        for kind in LedgerKind:
            state[kind.value] = self.ledger(kind).copy()
        for name in _LIST_STATE:
            state[name] = list(getattr(self, name))
        state["summary_rows"] = {g: list(rows) for g, rows in self.summary_rows.items()}
        return state

    @contextmanager
    def transaction(self) -> Iterator[TableModel]:
        """Run a block of mutations atomically.

        On any exception the model's metadata and ledgers are restored to the
        state at entry and the exception propagates.
        """
        self.ensure_open()
        snapshot = self._snapshot()
        try:
            yield self
        except Exception:
            vars(self).update(snapshot)
            logger.debug("rolled back table model after failed call")
            raise

    def move_columns(self, names: Sequence[str], after: str) -> None:
        """Relocate ``names`` directly behind ``after``, keeping their given order."""
        names = list(dict.fromkeys(names))
        for name in names:
            self.column(name)
        self.column(after)
        if after in names:
            raise ConfigError(f"column '{after}' given as `after` cannot also be moved")
        if not names:
            return
        moving = [self.column(n) for n in names]
        rest = [c for c in self.columns if c.name not in names]
        pos = next(i for i, c in enumerate(rest) if c.name == after)
        self.columns = rest[: pos + 1] + moving + rest[pos + 1:]

    def move_columns_to_start(self, names: Sequence[str]) -> None:
        names = list(dict.fromkeys(names))
        moving = [self.column(n) for n in names]
        self.columns = moving + [c for c in self.columns if c.name not in names]

    def move_columns_to_end(self, names: Sequence[str]) -> None:
        names = list(dict.fromkeys(names))
        moving = [self.column(n) for n in names]
        self.columns = [c for c in self.columns if c.name not in names] + moving

    def set_group(self, rows: Iterable[int], group: str) -> None:
        """Assign ``group`` to ``rows``.

        Repeating a group name adds rows to the existing group without changing
        group order. While some rows remain ungrouped, the implicit ungrouped
        bucket (``None``) is kept in group order so those rows still render.
        """
        rows = list(rows)
        if not rows:
            return
        for i in rows:
            self.stub[i].group = group
        order = self.group_order + [group]
        if any(r.group is None for r in self.stub):
            order.append(None)
        self.group_order = list(dict.fromkeys(order))

    def set_others_label(self, label: str) -> None:
        self.others_label = label

    def append_ledger_entry(self, kind: LedgerKind, entries: LedgerEntry | Iterable[LedgerEntry]) -> int:
        """Append entries to a ledger, deduplicating; returns the number added."""
        if isinstance(entries, LedgerEntry):
            entries = [entries]
        return self.ledger(kind).extend(entries)

    def __repr__(self) -> str:
        return (
            f"TableModel(rows={self.n_rows}, columns={self.column_names()}, "
            f"groups={self.group_order}, materialized={self.materialized})"
        )
