from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from ..models.ledger import LedgerEntry
from ..models.locations import LocationKind
from ..models.metadata import ColumnMeta, Heading
from ..models.styles import CellStyle
from ..models.table_model import TableModel
from .footnotes import FootnoteMark, assign_footnote_marks
from .prepare import materialize
from .resolver import GRAND_SUMMARY
from .summary import SummaryRow

"""Read-only render plan handed to markup emitters.

Renderers rely on:
- visible columns in final display order (merges and moves applied)
- row blocks in stub group order; an unnamed ungrouped bucket comes last, a
  named one keeps its position; each block lists its data rows, then its
  summary rows
- one trailing grand-summary block
- footnote marks ordered by location precedence, then first occurrence
"""

__all__ = [
    "RowBlock",
    "SpannerRun",
    "RenderPlan",
    "build_render_plan",
]

_LocationKey = tuple[LocationKind, str | None, str | None, int | None]


@dataclass(frozen=True)
class RowBlock:
    group: str | None  # None = ungrouped bucket (or a table without groups)
    label: str | None  # group label to render (None = unlabeled)
    rows: tuple[int, ...]
    summary: tuple[SummaryRow, ...] = ()


@dataclass(frozen=True)
class SpannerRun:
    """Contiguous visible columns sharing one spanner label (None = no spanner)."""
    label: str | None
    columns: tuple[str, ...]


@dataclass(frozen=True)
class RenderPlan:
    heading: Heading | None
    stubhead_label: str | None
    columns: tuple[ColumnMeta, ...]
    spanners: tuple[SpannerRun, ...]
    blocks: tuple[RowBlock, ...]
    grand_summary: tuple[SummaryRow, ...]
    footnotes: tuple[FootnoteMark, ...]
    source_notes: tuple[str, ...]
    body: pd.DataFrame
    has_stub: bool = False
    _marks: dict[_LocationKey, tuple[str, ...]] = field(default_factory=dict, repr=False)
    _styles: dict[_LocationKey, CellStyle] = field(default_factory=dict, repr=False)

    def row_order(self) -> list[tuple[str, Any, Any]]:
        """Flattened row order: ("data", group, row index) / ("summary", group, label)."""
        order: list[tuple[str, Any, Any]] = []
        for block in self.blocks:
            order.extend(("data", block.group, r) for r in block.rows)
            order.extend(("summary", block.group, s.label) for s in block.summary)
        order.extend(("summary", GRAND_SUMMARY, s.label) for s in self.grand_summary)
        return order

    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def marks_for(
        self, kind: LocationKind, group: str | None = None, column: str | None = None, row: int | None = None
    ) -> tuple[str, ...]:
        return self._marks.get((kind, group, column, row), ())

    def style_for(
        self, kind: LocationKind, group: str | None = None, column: str | None = None, row: int | None = None
    ) -> CellStyle | None:
        return self._styles.get((kind, group, column, row))


def _key(entry: LedgerEntry) -> _LocationKey:
    return (entry.kind, entry.group, entry.column, entry.row)


def _row_blocks(model: TableModel) -> list[RowBlock]:
    if not model.group_order:
        return [RowBlock(group=None, label=None, rows=tuple(range(model.n_rows)))]

    order = list(model.group_order)
    has_ungrouped = any(r.group is None for r in model.stub)
    if has_ungrouped and None not in order:
        order.append(None)
    if None in order and model.others_group_label is None:
        # 無名の「その他」ブロックは常に末尾
        order.remove(None)
        order.append(None)

    blocks = []
    for group in order:
        rows = model.rows_in_group(group)
        summary = model.summary_rows.get(group, []) if group is not None else []
        if not rows and not summary:
            continue
        label = group if group is not None else model.others_group_label
        blocks.append(RowBlock(group=group, label=label, rows=tuple(rows), summary=tuple(summary)))
    return blocks


def _spanner_runs(columns: list[ColumnMeta]) -> list[SpannerRun]:
    runs: list[SpannerRun] = []
    for meta in columns:
        if runs and runs[-1].label == meta.spanner:
            last = runs.pop()
            runs.append(SpannerRun(label=last.label, columns=last.columns + (meta.name,)))
        else:
            runs.append(SpannerRun(label=meta.spanner, columns=(meta.name,)))
    return runs


def build_render_plan(model: TableModel) -> RenderPlan:
    """Materialize ``model`` (if needed) and snapshot what renderers consume."""
    materialize(model)

    visible = [copy.copy(c) for c in model.columns if c.visible]
    footnotes = assign_footnote_marks(model.footnotes, model.options.footnote_marks)
    marks: dict[_LocationKey, tuple[str, ...]] = {}
    for fn in footnotes:
        for entry in fn.locations:
            marks[_key(entry)] = marks.get(_key(entry), ()) + (fn.mark,)
    styles: dict[_LocationKey, CellStyle] = {}
    for entry in model.styles:
        key = _key(entry)
        styles[key] = styles[key].merged(entry.payload) if key in styles else entry.payload

    return RenderPlan(
        heading=model.heading,
        stubhead_label=model.stubhead_label,
        columns=tuple(visible),
        spanners=tuple(_spanner_runs(visible)),
        blocks=tuple(_row_blocks(model)),
        grand_summary=tuple(model.summary_rows.get(GRAND_SUMMARY, [])),
        footnotes=tuple(footnotes),
        source_notes=tuple(model.source_notes),
        body=model.body[[c.name for c in visible]].copy(),
        has_stub=model.has_stub,
        _marks=marks,
        _styles=styles,
    )
