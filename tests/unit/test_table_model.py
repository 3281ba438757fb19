from __future__ import annotations

import pandas as pd
import pytest

from tabledoc import ConfigError, ResolutionError, TableOptions
from tabledoc.models.ledger import LedgerEntry, LedgerKind
from tabledoc.models.locations import LocationKind
from tabledoc.models.table_model import TableModel, default_align

"""Unit tests for TableModel construction and structural mutations."""


def test_construction_moves_stub_columns_out_of_data(grouped_frame: pd.DataFrame) -> None:
    """rowname/groupname columns become stub metadata, not data columns."""
    model = TableModel(grouped_frame, rowname_col="row", groupname_col="group")

    assert model.column_names() == ["value_1", "value_2", "note"]
    assert model.row_labels()[:2] == ["row_1", "row_2"]
    assert model.group_order == ["A", "B", "C"]
    assert model.rows_in_group("C") == [8, 9]
    assert model.has_stub is True
    assert model.n_rows == 10


def test_construction_copies_input(grouped_frame: pd.DataFrame) -> None:
    model = TableModel(grouped_frame)
    grouped_frame.loc[0, "value_1"] = -1.0
    assert model.data.loc[0, "value_1"] == 1.0
    assert model.has_stub is False


def test_default_alignment_by_dtype() -> None:
    model = TableModel({"n": [1, 2], "s": ["x", "y"], "b": [True, False]})
    assert [c.align for c in model.columns] == ["right", "left", "center"]
    assert default_align(pd.Series([1.5])) == "right"


def test_non_string_column_names_are_stringified() -> None:
    model = TableModel(pd.DataFrame({1: [1], 2: [2]}))
    assert model.column_names() == ["1", "2"]


def test_construction_errors(grouped_frame: pd.DataFrame) -> None:
    with pytest.raises(ResolutionError):
        TableModel(grouped_frame, rowname_col="missing")
    with pytest.raises(ConfigError):
        TableModel(grouped_frame, rowname_col="row", groupname_col="row")
    dupes = pd.DataFrame([[1, 2]], columns=["a", "a"])
    with pytest.raises(ConfigError):
        TableModel(dupes)


def test_missing_group_values_form_ungrouped_bucket() -> None:
    frame = pd.DataFrame({"g": ["x", None, "y"], "v": [1, 2, 3]})
    model = TableModel(frame, groupname_col="g")
    assert model.group_order == ["x", "y", None]
    assert model.group_names() == ["x", "y"]
    assert model.rows_in_group(None) == [1]


def test_column_lookup_errors() -> None:
    model = TableModel({"a": [1]})
    with pytest.raises(ResolutionError) as e:
        model.column("b")
    assert "not found" in str(e.value)
    model.dropped_columns = ["b"]
    with pytest.raises(ResolutionError) as e:
        model.column("b")
    assert "column merge" in str(e.value)


# --- column moves ----------------------------------------------------------

def test_move_columns_after_keeps_given_order(cars_frame: pd.DataFrame) -> None:
    model = TableModel(cars_frame, rowname_col="model")
    model.move_columns(["msrp", "year"], after="mfr")
    assert model.column_names() == ["mfr", "msrp", "year", "hp", "trq"]


def test_move_columns_errors(cars_frame: pd.DataFrame) -> None:
    model = TableModel(cars_frame, rowname_col="model")
    with pytest.raises(ResolutionError):
        model.move_columns(["nope"], after="mfr")
    with pytest.raises(ResolutionError):
        model.move_columns(["hp"], after="nope")
    with pytest.raises(ConfigError):
        model.move_columns(["hp", "mfr"], after="mfr")


def test_move_empty_selection_is_noop(cars_frame: pd.DataFrame) -> None:
    model = TableModel(cars_frame, rowname_col="model")
    before = model.column_names()
    model.move_columns([], after="hp")
    assert model.column_names() == before


def test_move_to_start_and_end(cars_frame: pd.DataFrame) -> None:
    model = TableModel(cars_frame, rowname_col="model")
    model.move_columns_to_start(["trq", "hp"])
    assert model.column_names() == ["trq", "hp", "mfr", "year", "msrp"]
    model.move_columns_to_end(["trq"])
    assert model.column_names() == ["hp", "mfr", "year", "msrp", "trq"]


# --- row groups ------------------------------------------------------------

def test_set_group_order_is_first_creation() -> None:
    model = TableModel({"v": range(6)})
    model.set_group([4, 5], "late")
    model.set_group([0], "early")
    model.set_group([1], "late")  # existing group: order unchanged

    assert model.group_names() == ["late", "early"]
    assert model.rows_in_group("late") == [1, 4, 5]
    assert None in model.group_order  # rows 2, 3 still ungrouped


def test_set_group_with_no_rows_is_noop() -> None:
    model = TableModel({"v": range(3)})
    model.set_group([], "empty")
    assert model.group_order == []


def test_others_label_call_wins_over_option() -> None:
    model = TableModel({"v": [1]}, options=TableOptions(row_group_others_label="Rest"))
    assert model.others_group_label == "Rest"
    model.set_others_label("Other")
    assert model.others_group_label == "Other"


# --- ledgers and transactions ----------------------------------------------

def test_append_ledger_entry_dedupes() -> None:
    model = TableModel({"a": [1]})
    entry = LedgerEntry(kind=LocationKind.TITLE, payload="note")
    assert model.append_ledger_entry(LedgerKind.FOOTNOTES, entry) == 1
    assert model.append_ledger_entry(LedgerKind.FOOTNOTES, [entry, entry]) == 0
    assert len(model.ledger(LedgerKind.FOOTNOTES)) == 1
    assert model.ledger(LedgerKind.STYLES) is model.styles


def test_transaction_rolls_back_on_error(cars_frame: pd.DataFrame) -> None:
    """A failing block leaves ordering, metadata and ledgers as they were."""
    model = TableModel(cars_frame, rowname_col="model")
    with pytest.raises(ResolutionError):
        with model.transaction():
            model.column("hp").label = "Horsepower"
            model.append_ledger_entry(LedgerKind.FOOTNOTES, LedgerEntry(kind=LocationKind.TITLE, payload="x"))
            model.move_columns(["hp"], after="mfr")
            model.move_columns(["nope"], after="mfr")

    assert model.column("hp").label == "hp"
    assert model.column_names() == ["mfr", "year", "hp", "trq", "msrp"]
    assert len(model.footnotes) == 0


def test_ensure_open_after_materialize() -> None:
    model = TableModel({"a": [1]})
    model.materialized = True
    with pytest.raises(ConfigError):
        model.ensure_open()
    with pytest.raises(ConfigError):
        with model.transaction():
            pass


def test_transaction_snapshot_shares_frozen_entries() -> None:
    """Snapshot cost is per container, not per ledger entry or data cell."""
    model = TableModel({"a": list(range(2000)), "b": [0.5] * 2000})
    entries = [LedgerEntry(kind=LocationKind.DATA, column="a", row=i, payload="n") for i in range(2000)]
    model.append_ledger_entry(LedgerKind.FORMATS, entries)

    snapshot = model._snapshot()

    assert "data" not in snapshot
    assert snapshot["formats"] is not model.formats
    assert all(a is b for a, b in zip(snapshot["formats"], model.formats, strict=True))
    assert snapshot["columns"][0] is not model.columns[0]
    assert snapshot["columns"][0] == model.columns[0]
    assert snapshot["stub"][5] is not model.stub[5]


def test_transaction_rollback_restores_ledger_and_stub() -> None:
    model = TableModel({"g": ["x", "y"], "v": [1, 2]}, groupname_col="g")
    kept = LedgerEntry(kind=LocationKind.TITLE, payload="kept")
    model.append_ledger_entry(LedgerKind.FOOTNOTES, kept)

    with pytest.raises(ResolutionError):
        with model.transaction():
            model.append_ledger_entry(LedgerKind.FOOTNOTES, LedgerEntry(kind=LocationKind.TITLE, payload="new"))
            model.set_group([0, 1], "z")
            model.source_notes.append("source")
            model.column("missing")

    assert list(model.footnotes) == [kept]
    assert [r.group for r in model.stub] == ["x", "y"]
    assert model.group_order == ["x", "y"]
    assert model.source_notes == []
