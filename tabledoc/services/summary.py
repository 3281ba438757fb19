from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from ..errors import ConfigError, FormatError
from ..models.ledger import LedgerEntry, LedgerKind
from ..models.locations import LocationKind
from ..models.selectors import Everything
from ..models.table_model import TableModel
from .formatting import NumberFormat, format_number, format_value, is_numeric_series, is_numeric_value
from .resolver import GRAND_SUMMARY, resolve_columns, resolve_groups

"""Summary engine: per-group and grand summary rows.

Lifecycle:
1. ``summary_rows`` / ``grand_summary_rows`` record a ``SummaryDefinition``
   in the model's summaries ledger (groups and columns resolved eagerly).
2. ``materialize_summaries`` (called once from ``materialize``) computes one
   row per aggregation function for every selected group from the group's
   *original* values, then formats it as an independent step.
3. ``extract_summary`` returns the realized rows as a plain DataFrame that can
   be fed back into ``TableModel`` as a fresh dataset.
"""

__all__ = [
    "AGGREGATIONS",
    "NUMERIC_ONLY",
    "SummaryDefinition",
    "SummaryRow",
    "summary_rows",
    "grand_summary_rows",
    "compute_summary_rows",
    "materialize_summaries",
    "extract_summary",
]

logger = logging.getLogger(__name__)

# Aggregation name -> pandas.Series method
AGGREGATIONS: dict[str, str] = {
    "mean": "mean",
    "sum": "sum",
    "sd": "std",
    "min": "min",
    "max": "max",
    "median": "median",
    "count": "count",
    "first": "first",
    "last": "last",
}
NUMERIC_ONLY = frozenset({"mean", "sum", "sd", "min", "max", "median"})

Aggregation = str | Callable[[pd.Series], Any]


@dataclass(frozen=True)
class SummaryDefinition:
    """Recorded summary call; ``groups`` is empty for a grand summary."""
    groups: tuple[str, ...]
    columns: tuple[str, ...]
    fns: tuple[Aggregation, ...]
    labels: tuple[str, ...]
    format: NumberFormat
    is_grand: bool = False


@dataclass(frozen=True)
class SummaryRow:
    """One realized summary row of a group (or of the grand summary block)."""
    group: str
    label: str
    values: dict[str, Any]  # column -> raw aggregate
    formatted: dict[str, str | None]  # column -> formatted text


def _fn_label(fn: Aggregation) -> str:
    if isinstance(fn, str):
        return fn
    return getattr(fn, "__name__", "summary")


def _check_fns(fns: Sequence[Aggregation], labels: Sequence[str] | None) -> tuple[tuple[Aggregation, ...], tuple[str, ...]]:
    if isinstance(fns, str) or callable(fns):
        fns = [fns]
    fns = tuple(fns)
    if not fns:
        raise ConfigError("at least one aggregation function is required")
    for fn in fns:
        if isinstance(fn, str) and fn not in AGGREGATIONS:
            raise ConfigError(f"unknown aggregation '{fn}': expected one of {sorted(AGGREGATIONS)}")
        if not isinstance(fn, str) and not callable(fn):
            raise ConfigError(f"aggregation must be a name or a callable, got {fn!r}")
    if labels is None:
        labels = tuple(_fn_label(fn) for fn in fns)
    else:
        labels = (labels,) if isinstance(labels, str) else tuple(str(label) for label in labels)
        if len(labels) != len(fns):
            raise ConfigError(f"got {len(labels)} labels for {len(fns)} aggregation functions")
    return fns, labels


def _check_column_types(model: TableModel, columns: Sequence[str], fns: Sequence[Aggregation]) -> None:
    for column in columns:
        if is_numeric_series(model.data[column]):
            continue
        for fn in fns:
            if isinstance(fn, str) and fn in NUMERIC_ONLY:
                raise FormatError(
                    f"aggregation '{fn}' cannot be applied to non-numeric column '{column}'"
                )


def _define(
    model: TableModel,
    *,
    groups: tuple[str, ...],
    columns: Any,
    fns: Any,
    labels: Any,
    number_format: dict[str, Any],
    is_grand: bool,
) -> TableModel:
    with model.transaction():
        fns, labels = _check_fns(fns, labels)
        resolved_columns = resolve_columns(model, Everything() if columns is None else columns)
        if not resolved_columns or (not is_grand and not groups):
            logger.debug("summary selects no %s; nothing recorded", "columns" if groups or is_grand else "groups")
            return model
        _check_column_types(model, resolved_columns, fns)
        options = model.options
        fmt = NumberFormat(
            decimals=options.decimals if number_format["decimals"] is None else number_format["decimals"],
            use_seps=options.use_seps if number_format["use_seps"] is None else number_format["use_seps"],
            sep_mark=options.sep_mark if number_format["sep_mark"] is None else number_format["sep_mark"],
            dec_mark=options.dec_mark if number_format["dec_mark"] is None else number_format["dec_mark"],
            drop_trailing_zeros=number_format["drop_trailing_zeros"],
        )
        definition = SummaryDefinition(
            groups=groups,
            columns=tuple(resolved_columns),
            fns=fns,
            labels=labels,
            format=fmt,
            is_grand=is_grand,
        )
        kind = LocationKind.GRAND_SUMMARY if is_grand else LocationKind.SUMMARY
        model.append_ledger_entry(
            LedgerKind.SUMMARIES,
            LedgerEntry(kind=kind, group=GRAND_SUMMARY if is_grand else None, payload=definition),
        )
    return model


def summary_rows(
    model: TableModel,
    groups: Any = None,
    columns: Any = None,
    fns: Any = ("mean",),
    labels: Sequence[str] | None = None,
    decimals: int | None = None,
    use_seps: bool | None = None,
    sep_mark: str | None = None,
    dec_mark: str | None = None,
    drop_trailing_zeros: bool = False,
) -> TableModel:
    """Add summary rows to row groups.

    Args:
        groups: Row groups to summarize (all named groups if None)
        columns: Columns to aggregate (all columns if None)
        fns: Aggregation names (see ``AGGREGATIONS``) or callables taking a Series
        labels: Row labels, one per function (function names if None)
        decimals, use_seps, sep_mark, dec_mark, drop_trailing_zeros: Number
            formatting of the results (table options if None)

    Raises:
        ResolutionError: Unknown group or column
        FormatError: Numeric-only aggregation on a non-numeric column, or invalid
            number formatting options
        ConfigError: No functions, unknown function name, label count mismatch
    """
    model.ensure_open()
    resolved_groups = tuple(resolve_groups(model, Everything() if groups is None else groups))
    return _define(
        model,
        groups=resolved_groups,
        columns=columns,
        fns=fns,
        labels=labels,
        number_format=dict(
            decimals=decimals, use_seps=use_seps, sep_mark=sep_mark, dec_mark=dec_mark,
            drop_trailing_zeros=drop_trailing_zeros,
        ),
        is_grand=False,
    )


def grand_summary_rows(
    model: TableModel,
    columns: Any = None,
    fns: Any = ("mean",),
    labels: Sequence[str] | None = None,
    decimals: int | None = None,
    use_seps: bool | None = None,
    sep_mark: str | None = None,
    dec_mark: str | None = None,
    drop_trailing_zeros: bool = False,
) -> TableModel:
    """Add grand summary rows computed over all rows regardless of group."""
    return _define(
        model,
        groups=(),
        columns=columns,
        fns=fns,
        labels=labels,
        number_format=dict(
            decimals=decimals, use_seps=use_seps, sep_mark=sep_mark, dec_mark=dec_mark,
            drop_trailing_zeros=drop_trailing_zeros,
        ),
        is_grand=True,
    )


def _aggregate(series: pd.Series, fn: Aggregation, column: str) -> Any:
    if isinstance(fn, str):
        method = AGGREGATIONS[fn]
        if fn in NUMERIC_ONLY:
            if not is_numeric_series(series) and series.notna().any():
                raise FormatError(f"aggregation '{fn}' cannot be applied to non-numeric column '{column}'")
            if not pd.api.types.is_numeric_dtype(series):
                # object 列の数値のみ float 化 (int64 の sum は整数のまま)
                series = series.astype("float64")
        if method == "first":
            value = series.iloc[0] if len(series) else np.nan
        elif method == "last":
            value = series.iloc[-1] if len(series) else np.nan
        else:
            value = getattr(series, method)()
    else:
        try:
            value = fn(series)
        except (TypeError, ValueError) as e:
            raise FormatError(
                f"aggregation '{_fn_label(fn)}' failed on column '{column}': {e}"
            ) from e
    if isinstance(value, np.generic):
        value = value.item()
    return value


def compute_summary_rows(model: TableModel, definition: SummaryDefinition) -> dict[str, list[SummaryRow]]:
    """Compute the rows of one definition, keyed by group (``GRAND_SUMMARY`` for grand)."""
    if definition.is_grand:
        targets = {GRAND_SUMMARY: list(range(model.n_rows))}
    else:
        targets = {g: model.rows_in_group(g) for g in definition.groups}

    result: dict[str, list[SummaryRow]] = {}
    for group, rows in targets.items():
        block = model.data.iloc[rows]
        realized = []
        for fn, label in zip(definition.fns, definition.labels, strict=True):
            values = {c: _aggregate(block[c], fn, c) for c in definition.columns}
            # 行計算と書式化は独立したステップ
            formatted = {
                c: format_number(v, definition.format) if is_numeric_value(v) else format_value(v)
                for c, v in values.items()
            }
            realized.append(SummaryRow(group=group, label=label, values=values, formatted=formatted))
        result[group] = realized
    return result


def materialize_summaries(model: TableModel) -> dict[str, list[SummaryRow]]:
    """Compute every recorded definition; rows land in group order, grand block last."""
    collected: dict[str, list[SummaryRow]] = {}
    for entry in model.summaries:
        for group, rows in compute_summary_rows(model, entry.payload).items():
            collected.setdefault(group, []).extend(rows)

    ordered: dict[str, list[SummaryRow]] = {}
    for group in model.group_names():
        if group in collected:
            ordered[group] = collected[group]
    if GRAND_SUMMARY in collected:
        ordered[GRAND_SUMMARY] = collected[GRAND_SUMMARY]
    return ordered


def extract_summary(model: TableModel) -> pd.DataFrame:
    """Realized summary rows as a standalone dataset.

    Columns: ``groupname``, ``rowname``, then one column per aggregated column
    holding raw (unformatted) values. Usable as fresh input to ``TableModel``.
    """
    if not model.materialized:
        raise ConfigError("summary rows are only available after materialize()")
    records: list[dict[str, Any]] = []
    value_columns: list[str] = []
    for group, rows in model.summary_rows.items():
        for row in rows:
            for column in row.values:
                if column not in value_columns:
                    value_columns.append(column)
            records.append({"groupname": group, "rowname": row.label, **row.values})
    return pd.DataFrame.from_records(records, columns=["groupname", "rowname", *value_columns])
