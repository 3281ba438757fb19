from __future__ import annotations

import pandas as pd
import pytest

from tabledoc import (
    CellStyle,
    ConfigError,
    FormatError,
    ResolutionError,
    cell_fill,
    cell_text,
    cells_column_labels,
    cells_data,
    cells_title,
    cols_align,
    cols_hide,
    cols_label,
    cols_move,
    cols_move_to_end,
    cols_move_to_start,
    create_table,
    fmt_number,
    materialize,
    starts_with,
    tab_footnote,
    tab_header,
    tab_options,
    tab_row_group,
    tab_source_note,
    tab_spanner,
    tab_stubhead_label,
    tab_style,
    where,
)
from tabledoc.models.locations import LocationKind

"""Unit tests for annotation calls."""


@pytest.fixture
def cars(cars_frame: pd.DataFrame):
    return create_table(cars_frame, rowname_col="model")


def test_calls_return_the_model(cars) -> None:
    assert tab_header(cars, "Cars", "2015-2017") is cars
    assert cars.heading.title == "Cars"
    assert cars.heading.subtitle == "2015-2017"


def test_text_arguments_must_be_strings(cars) -> None:
    with pytest.raises(ConfigError):
        tab_header(cars, 42)  # type: ignore[arg-type]
    with pytest.raises(ConfigError):
        tab_source_note(cars, None)  # type: ignore[arg-type]
    assert cars.heading is None


def test_stubhead_and_source_notes(cars) -> None:
    tab_stubhead_label(cars, "Model")
    tab_source_note(cars, "Source: one")
    tab_source_note(cars, "Source: two")
    assert cars.stubhead_label == "Model"
    assert cars.source_notes == ["Source: one", "Source: two"]


# --- row groups ------------------------------------------------------------

def test_row_group_by_predicate(cars) -> None:
    tab_row_group(cars, group="2015", rows=where(lambda d: d["year"] == 2015))
    assert cars.rows_in_group("2015") == [1, 2, 4, 5]
    assert cars.group_order == ["2015", None]


def test_row_group_argument_errors(cars) -> None:
    with pytest.raises(ConfigError):
        tab_row_group(cars)
    with pytest.raises(ConfigError):
        tab_row_group(cars, group="g")
    with pytest.raises(ResolutionError):
        tab_row_group(cars, group="g", rows=["Enzo"])
    assert cars.group_order == []


def test_row_group_others_label(cars) -> None:
    tab_row_group(cars, others="Remaining")
    assert cars.others_group_label == "Remaining"


# --- spanners and column layout --------------------------------------------

def test_spanner_gathers_columns(cars) -> None:
    tab_spanner(cars, "perf", ["msrp", "hp"])
    assert cars.column_names() == ["mfr", "year", "hp", "msrp", "trq"]
    assert cars.column("hp").spanner == "perf"
    assert cars.column("msrp").spanner == "perf"
    assert cars.column("trq").spanner is None


def test_spanner_without_gather(cars) -> None:
    tab_spanner(cars, "perf", ["msrp", "hp"], gather=False)
    assert cars.column_names() == ["mfr", "year", "hp", "trq", "msrp"]


def test_spanner_empty_label(cars) -> None:
    with pytest.raises(ConfigError):
        tab_spanner(cars, "", ["hp"])


def test_cols_label_forms(cars) -> None:
    cols_label(cars, {"hp": "Horsepower"}, trq="Torque")
    assert cars.column("hp").label == "Horsepower"
    assert cars.column("trq").label == "Torque"
    with pytest.raises(ResolutionError):
        cols_label(cars, nope="Nope")


def test_cols_move_family(cars) -> None:
    cols_move(cars, ["msrp"], after="mfr")
    assert cars.column_names() == ["mfr", "msrp", "year", "hp", "trq"]
    cols_move_to_start(cars, starts_with("t"))
    assert cars.column_names()[0] == "trq"
    cols_move_to_end(cars, "mfr")
    assert cars.column_names()[-1] == "mfr"


def test_cols_hide(cars) -> None:
    cols_hide(cars, ["year"])
    assert cars.column("year").visible is False
    assert "year" in cars.column_names()


def test_cols_align(cars) -> None:
    cols_align(cars, "center", columns=["hp"])
    assert cars.column("hp").align == "center"
    cols_align(cars, "auto")
    assert cars.column("hp").align == "right"
    assert cars.column("mfr").align == "left"
    with pytest.raises(ConfigError):
        cols_align(cars, "middle")


# --- footnotes and styles ---------------------------------------------------

def test_footnote_is_deduplicated(cars) -> None:
    tab_footnote(cars, "Horsepower", cells_column_labels("hp"))
    tab_footnote(cars, "Horsepower", cells_column_labels("hp"))
    assert len(cars.footnotes) == 1
    entry = next(iter(cars.footnotes))
    assert entry.kind is LocationKind.COLUMN_LABELS
    assert entry.payload == "Horsepower"


def test_footnote_on_unknown_column_is_atomic(cars) -> None:
    with pytest.raises(ResolutionError):
        tab_footnote(cars, "x", [cells_title(), cells_column_labels("nope")])
    assert len(cars.footnotes) == 0


def test_style_entries(cars) -> None:
    tab_style(cars, [cell_fill("lightblue"), cell_text(weight="bold")], cells_data(columns="hp", rows=["GT"]))
    payloads = [e.payload for e in cars.styles]
    assert payloads == [CellStyle(fill="lightblue"), CellStyle(weight="bold")]
    with pytest.raises(ConfigError):
        tab_style(cars, "bold", cells_title())  # type: ignore[arg-type]
    with pytest.raises(ConfigError):
        cell_text(weight="heavy")


# --- options and formats -----------------------------------------------------

def test_tab_options_overrides(cars) -> None:
    tab_options(cars, decimals=0, footnote_marks="letters")
    assert cars.options.decimals == 0
    assert cars.options.footnote_marks == "letters"
    with pytest.raises(ConfigError):
        tab_options(cars, unknown_option=1)
    assert cars.options.decimals == 0


def test_fmt_number_defaults_to_numeric_columns(cars) -> None:
    fmt_number(cars, decimals=0)
    assert {e.column for e in cars.formats} == {"year", "hp", "trq", "msrp"}
    materialize(cars)
    assert cars.body.at[0, "msrp"] == "447,000"
    assert cars.body.at[0, "mfr"] == "Ford"


def test_fmt_number_rejects_text_column(cars) -> None:
    with pytest.raises(FormatError) as e:
        fmt_number(cars, columns=["mfr"])
    assert "mfr" in str(e.value)
    assert len(cars.formats) == 0


def test_later_fmt_number_wins(cars) -> None:
    fmt_number(cars, columns=["msrp"], decimals=0)
    fmt_number(cars, columns=["msrp"], rows=["FF"], decimals=0, pattern="${x}")
    materialize(cars)
    assert cars.body.at[0, "msrp"] == "447,000"
    assert cars.body.at[5, "msrp"] == "$295,000"


def test_no_calls_after_materialize(cars) -> None:
    materialize(cars)
    with pytest.raises(ConfigError):
        tab_header(cars, "late")
    with pytest.raises(ConfigError):
        cols_hide(cars, "hp")


def test_fmt_number_keeps_large_integers_exact() -> None:
    model = create_table({"n": [9007199254740993]})
    fmt_number(model, columns="n", decimals=0)
    materialize(model)
    assert model.body.at[0, "n"] == "9,007,199,254,740,993"
