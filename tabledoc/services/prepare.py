from __future__ import annotations

import logging

import pandas as pd

from ..logging.init import SUMMARY_LEVEL
from ..models.table_model import TableModel
from .formatting import format_number, format_value
from .merge import apply_merges
from .summary import materialize_summaries

"""Render preparation ("materialize").

Runs once, immediately before rendering, as a single transaction:
1. Build the formatted body (default formatter + formats ledger in order)
2. Apply column merges in call order on formatted values
3. Compute summary rows from original values
4. Remove merge-source columns from metadata and body; prune ledger entries
   that point at them
5. Mark the model read-only and log a SUMMARY line
"""

__all__ = [
    "build_body",
    "materialize",
    "render_summary_line",
]

logger = logging.getLogger(__name__)


def build_body(model: TableModel) -> pd.DataFrame:
    """Formatted text for every dataset cell (``None`` = missing)."""
    body = pd.DataFrame(
        {
            name: pd.Series([format_value(v) for v in model.data[name].tolist()], index=model.data.index, dtype=object)
            for name in model.data.columns
        },
        index=model.data.index,
    )
    # 後から追加された書式指定が優先 (台帳順に上書き)
    for entry in model.formats:
        body.at[entry.row, entry.column] = format_number(model.data.at[entry.row, entry.column], entry.payload)
    return body


def render_summary_line(model: TableModel) -> str:
    """One-line description of a materialized model for the SUMMARY log.

    Example:
        columns=4/5 rows=10 groups=3 summary_rows=6 footnotes=2 dropped=1
    """
    visible = sum(1 for c in model.columns if c.visible)
    n_summary = sum(len(rows) for rows in model.summary_rows.values())
    return (
        f"columns={visible}/{len(model.columns)} "
        f"rows={model.n_rows} "
        f"groups={len(model.group_names())} "
        f"summary_rows={n_summary} "
        f"footnotes={len(model.footnotes)} "
        f"dropped={len(model.dropped_columns)}"
    )


def materialize(model: TableModel) -> TableModel:
    """Turn deferred state (merges, pending drops, summaries) into concrete model state.

    Idempotent: a model that is already materialized is returned unchanged.

    Raises:
        FormatError: A summary aggregation cannot be applied to a column
    """
    if model.materialized:
        return model

    with model.transaction():
        body = build_body(model)
        apply_merges(model, body)
        summary = materialize_summaries(model)

        dropped = list(dict.fromkeys(model.pending_drops))
        model.columns = [c for c in model.columns if c.name not in dropped]
        pruned = 0
        for ledger in (model.footnotes, model.styles, model.formats):
            pruned += ledger.discard_where(lambda e: e.column in dropped)
        if pruned:
            logger.warning("dropped %d annotation(s) attached to merged-away columns %s", pruned, dropped)

        model.dropped_columns = dropped
        model.pending_drops = []
        model.summary_rows = summary
        model.body = body.drop(columns=dropped)
        model.materialized = True

    logger.log(SUMMARY_LEVEL, render_summary_line(model))
    return model
