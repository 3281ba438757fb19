from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

import pandas as pd

from ..errors import ConfigError, ResolutionError
from ..models.table_model import TableModel

"""Column-merge engine.

A merge call records a ``ColumnMerge`` and schedules the second column for
removal. Nothing is rewritten at call time: the second column stays fully
addressable by name (labels, footnotes, formats) until materialization, when
merges are applied in call order to the *formatted* body and the scheduled
columns are dropped.
"""

__all__ = [
    "MergeKind",
    "ColumnMerge",
    "cols_merge",
    "cols_merge_uncert",
    "cols_merge_range",
    "merge_pattern_values",
    "merge_uncert_values",
    "merge_range_values",
    "apply_merges",
]

logger = logging.getLogger(__name__)


class MergeKind(Enum):
    PATTERN = "pattern"
    UNCERT = "uncert"
    RANGE = "range"


@dataclass(frozen=True)
class ColumnMerge:
    """Deferred merge of ``drop`` into ``keep``.

    ``template`` is the pattern for PATTERN merges and the separator for
    UNCERT/RANGE merges.
    """
    kind: MergeKind
    keep: str
    drop: str
    template: str
    propagate_missing: bool = True


def merge_pattern_values(first: str | None, second: str | None, pattern: str, missing_text: str) -> str:
    """Substitute ``{1}``/``{2}`` in ``pattern``; other text passes through unchanged."""
    first_text = missing_text if first is None else first
    second_text = missing_text if second is None else second
    # 置換は一度だけ: {1} の値に "{2}" が含まれていても再置換しない
    pieces = pattern.split("{1}")
    return first_text.join(piece.replace("{2}", second_text) for piece in pieces)


def merge_uncert_values(base: str | None, uncert: str | None, sep: str = " ± ") -> str | None:
    """Value +/- uncertainty.

    both present -> "base{sep}uncert"; base missing -> missing;
    uncertainty missing -> base alone.
    """
    if base is None:
        return None
    if uncert is None:
        return base
    return f"{base}{sep}{uncert}"


def merge_range_values(
    begin: str | None, end: str | None, sep: str = "—", propagate_missing: bool = True
) -> str | None:
    """Range "begin{sep}end"; a missing bound makes the result missing unless
    ``propagate_missing`` is False, in which case the present bound is shown alone."""
    if begin is not None and end is not None:
        return f"{begin}{sep}{end}"
    if propagate_missing:
        return None
    return begin if begin is not None else end


def _record_merge(model: TableModel, merge: ColumnMerge) -> TableModel:
    with model.transaction():
        for name in (merge.keep, merge.drop):
            if name in model.pending_drops:
                raise ResolutionError(f"column '{name}' was already merged away by an earlier column merge")
            model.column(name)
        if merge.keep == merge.drop:
            raise ConfigError(f"cannot merge column '{merge.keep}' with itself")
        model.merges.append(merge)
        model.pending_drops.append(merge.drop)
        logger.debug("scheduled %s merge %s <- %s", merge.kind.value, merge.keep, merge.drop)
    return model


def cols_merge(model: TableModel, col_1: str, col_2: str, pattern: str = "{1} {2}") -> TableModel:
    """Merge ``col_2`` into ``col_1`` using ``pattern`` (``{1}``, ``{2}`` placeholders)."""
    if "{1}" not in pattern and "{2}" not in pattern:
        raise ConfigError(f"pattern must reference '{{1}}' and/or '{{2}}': {pattern!r}")
    return _record_merge(model, ColumnMerge(MergeKind.PATTERN, col_1, col_2, pattern))


def cols_merge_uncert(model: TableModel, col_val: str, col_uncert: str, sep: str | None = None) -> TableModel:
    sep = model.options.uncert_sep if sep is None else sep
    return _record_merge(model, ColumnMerge(MergeKind.UNCERT, col_val, col_uncert, sep))


def cols_merge_range(
    model: TableModel,
    col_begin: str,
    col_end: str,
    sep: str | None = None,
    propagate_missing: bool = True,
) -> TableModel:
    sep = model.options.range_sep if sep is None else sep
    return _record_merge(
        model, ColumnMerge(MergeKind.RANGE, col_begin, col_end, sep, propagate_missing=propagate_missing)
    )


def apply_merges(model: TableModel, body: pd.DataFrame) -> None:
    """Rewrite ``body`` (formatted text, None = missing) for every recorded merge, in call order."""
    missing_text = model.options.missing_text
    for merge in model.merges:
        keep_values = body[merge.keep].tolist()
        drop_values = body[merge.drop].tolist()
        if merge.kind is MergeKind.PATTERN:
            merged = [
                merge_pattern_values(a, b, merge.template, missing_text)
                for a, b in zip(keep_values, drop_values, strict=True)
            ]
        elif merge.kind is MergeKind.UNCERT:
            merged = [
                merge_uncert_values(a, b, merge.template)
                for a, b in zip(keep_values, drop_values, strict=True)
            ]
        else:
            merged = [
                merge_range_values(a, b, merge.template, merge.propagate_missing)
                for a, b in zip(keep_values, drop_values, strict=True)
            ]
        body[merge.keep] = pd.Series(merged, index=body.index, dtype=object)
