from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from ..config.loader import TableOptions, options_from_mapping
from ..errors import ConfigError, FormatError
from ..models.ledger import LedgerEntry, LedgerKind
from ..models.locations import Location, LocationKind
from ..models.metadata import ALIGNMENTS, Heading
from ..models.selectors import Everything
from ..models.styles import CellStyle
from ..models.table_model import TableModel, default_align
from .formatting import NumberFormat, is_numeric_series
from .resolver import resolve_column_positions, resolve_columns, resolve_locations, resolve_rows

"""Annotation calls.

Every function takes the table model first, mutates it inside
``model.transaction()`` (so a failing call leaves the model untouched) and
returns it for the next call in the chain. Targets are resolved when the
call executes.
"""

__all__ = [
    "create_table",
    "tab_header",
    "tab_stubhead_label",
    "tab_source_note",
    "tab_row_group",
    "tab_spanner",
    "tab_footnote",
    "tab_style",
    "tab_options",
    "cols_label",
    "cols_move",
    "cols_move_to_start",
    "cols_move_to_end",
    "cols_hide",
    "cols_align",
    "fmt_number",
]

logger = logging.getLogger(__name__)


def create_table(
    data: Any,
    rowname_col: str | None = None,
    groupname_col: str | None = None,
    options: TableOptions | Mapping[str, Any] | None = None,
) -> TableModel:
    """Create a table model from a rectangular dataset.

    ``options`` may be a ``TableOptions`` or a mapping validated like an
    options file.
    """
    if options is not None and not isinstance(options, TableOptions):
        options = options_from_mapping(dict(options))
    model = TableModel(data, rowname_col=rowname_col, groupname_col=groupname_col, options=options)
    logger.debug("created %r", model)
    return model


def _check_text(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"`{name}` must be a string, got {type(value).__name__}")
    return value


def tab_header(model: TableModel, title: str, subtitle: str | None = None) -> TableModel:
    with model.transaction():
        title = _check_text("title", title)
        if subtitle is not None:
            subtitle = _check_text("subtitle", subtitle)
        model.heading = Heading(title=title, subtitle=subtitle)
    return model


def tab_stubhead_label(model: TableModel, label: str) -> TableModel:
    """Label the stubhead. Stored even without a stub; renderers ignore it then."""
    with model.transaction():
        model.stubhead_label = _check_text("label", label)
    return model


def tab_source_note(model: TableModel, source_note: str) -> TableModel:
    """Append a source note; notes keep call order."""
    with model.transaction():
        model.source_notes.append(_check_text("source_note", source_note))
    return model


def tab_row_group(
    model: TableModel,
    group: str | None = None,
    rows: Any = None,
    others: str | None = None,
) -> TableModel:
    """Create (or extend) a row group, and/or label the ungrouped bucket.

    Args:
        group: Row group name; repeating a name adds rows to that group
        rows: Rows to place in the group (labels, indices, mask, ``where(...)``)
        others: Label for rows not placed in any named group

    Raises:
        ConfigError: Neither ``group`` nor ``others`` given, or ``group`` without ``rows``
        ResolutionError: Unknown row label or out-of-range row index
    """
    with model.transaction():
        if group is None and others is None:
            raise ConfigError("tab_row_group needs a `group` (with `rows`) or an `others` label")
        if group is not None:
            group = _check_text("group", group)
            if rows is None:
                raise ConfigError(f"row group '{group}' needs `rows`")
            resolved = resolve_rows(model, rows)
            if not resolved:
                logger.debug("row group '%s' selects no rows; nothing changed", group)
            model.set_group(resolved, group)
        if others is not None:
            model.set_others_label(_check_text("others", others))
    return model


def tab_spanner(model: TableModel, label: str, columns: Any, gather: bool = True) -> TableModel:
    """Place a spanner label above ``columns``.

    With ``gather`` the spanned columns are moved next to the left-most of
    them; their relative order is preserved.
    """
    with model.transaction():
        label = _check_text("label", label)
        if not label:
            raise ConfigError("spanner label must not be empty")
        names = resolve_columns(model, columns)
        for name in names:
            model.column(name).spanner = label
        if gather and len(names) > 1:
            positions = resolve_column_positions(model, names)
            ordered = [name for _, name in sorted(zip(positions, names, strict=True))]
            model.move_columns(ordered[1:], after=ordered[0])
    return model


def tab_footnote(model: TableModel, footnote: str, locations: Location | Sequence[Location]) -> TableModel:
    """Attach ``footnote`` to every resolved location (identical entries are not re-added)."""
    with model.transaction():
        footnote = _check_text("footnote", footnote)
        entries = [dataclasses.replace(e, payload=footnote) for e in resolve_locations(model, locations)]
        added = model.append_ledger_entry(LedgerKind.FOOTNOTES, entries)
        logger.debug("footnote %r: %d location(s), %d new", footnote, len(entries), added)
    return model


def tab_style(
    model: TableModel,
    style: CellStyle | Sequence[CellStyle],
    locations: Location | Sequence[Location],
) -> TableModel:
    with model.transaction():
        styles = [style] if isinstance(style, CellStyle) else list(style)
        for s in styles:
            if not isinstance(s, CellStyle):
                raise ConfigError(f"style must be a CellStyle, got {type(s).__name__}")
        located = resolve_locations(model, locations)
        model.append_ledger_entry(
            LedgerKind.STYLES,
            [dataclasses.replace(e, payload=s) for e in located for s in styles],
        )
    return model


def tab_options(model: TableModel, **options: Any) -> TableModel:
    """Override table options; unknown keys or invalid values raise ConfigError."""
    with model.transaction():
        model.options = options_from_mapping(options, base=model.options)
    return model


def cols_label(model: TableModel, labels: Mapping[str, str] | None = None, **kwargs: str) -> TableModel:
    """Relabel columns: ``cols_label(model, {"a": "A"})`` or ``cols_label(model, a="A")``.

    Columns scheduled for removal by a merge can still be relabelled.
    """
    with model.transaction():
        mapping = {**(labels or {}), **kwargs}
        for name, label in mapping.items():
            model.column(name).label = _check_text("label", label)
    return model


def cols_move(model: TableModel, columns: Any, after: str) -> TableModel:
    with model.transaction():
        model.move_columns(resolve_columns(model, columns), after=after)
    return model


def cols_move_to_start(model: TableModel, columns: Any) -> TableModel:
    with model.transaction():
        model.move_columns_to_start(resolve_columns(model, columns))
    return model


def cols_move_to_end(model: TableModel, columns: Any) -> TableModel:
    with model.transaction():
        model.move_columns_to_end(resolve_columns(model, columns))
    return model


def cols_hide(model: TableModel, columns: Any) -> TableModel:
    with model.transaction():
        for name in resolve_columns(model, columns):
            model.column(name).visible = False
    return model


def cols_align(model: TableModel, align: str = "left", columns: Any = None) -> TableModel:
    """Set alignment; ``"auto"`` restores the dtype-based default."""
    with model.transaction():
        if align != "auto" and align not in ALIGNMENTS:
            raise ConfigError(f"invalid align '{align}': expected 'auto' or one of {list(ALIGNMENTS)}")
        for name in resolve_columns(model, Everything() if columns is None else columns):
            meta = model.column(name)
            meta.align = default_align(model.data[name]) if align == "auto" else align
    return model


def fmt_number(
    model: TableModel,
    columns: Any = None,
    rows: Any = None,
    decimals: int | None = None,
    use_seps: bool | None = None,
    sep_mark: str | None = None,
    dec_mark: str | None = None,
    drop_trailing_zeros: bool = False,
    pattern: str = "{x}",
) -> TableModel:
    """Record number formatting for body cells; later directives win per cell.

    Raises:
        FormatError: A targeted column is not numeric, or the options are invalid
    """
    with model.transaction():
        options = model.options
        fmt = NumberFormat(
            decimals=options.decimals if decimals is None else decimals,
            use_seps=options.use_seps if use_seps is None else use_seps,
            sep_mark=options.sep_mark if sep_mark is None else sep_mark,
            dec_mark=options.dec_mark if dec_mark is None else dec_mark,
            drop_trailing_zeros=drop_trailing_zeros,
            pattern=pattern,
        )
        if columns is None:
            # 列指定なし: 数値列のみ対象
            names = [n for n in model.column_names() if is_numeric_series(model.data[n])]
        else:
            names = resolve_columns(model, columns)
        target_rows = resolve_rows(model, Everything() if rows is None else rows)
        for name in names:
            if not is_numeric_series(model.data[name]):
                raise FormatError(f"fmt_number cannot format non-numeric column '{name}'")
        model.append_ledger_entry(
            LedgerKind.FORMATS,
            [
                LedgerEntry(kind=LocationKind.DATA, column=name, row=r, payload=fmt)
                for name in names
                for r in target_rows
            ],
        )
    return model
