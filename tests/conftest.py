# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from tabledoc.logging.init import reset_logging


@pytest.fixture(autouse=True)
def _reset_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_options_yaml() -> str:
    return """footnote_marks: letters
missing_text: "--"
decimals: 1
use_seps: true
sep_mark: "."
dec_mark: ","
uncert_sep: " +/- "
range_sep: " to "
row_group_others_label: Other
"""


@pytest.fixture()
def write_options(temp_workdir: Path, sample_options_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "table.yml"
    cfg.write_text(sample_options_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def grouped_frame() -> pd.DataFrame:
    """10 rows in groups A, B, C (4, 4, 2 rows)."""
    return pd.DataFrame(
        {
            "row": [f"row_{i}" for i in range(1, 11)],
            "group": ["A"] * 4 + ["B"] * 4 + ["C"] * 2,
            "value_1": [1.0, 2.0, 3.0, 4.0, 10.0, 20.0, 30.0, 40.0, 100.0, 200.0],
            "value_2": [5, 6, 7, 8, 9, 10, 11, 12, 13, 14],
            "note": list("abcdefghij"),
        }
    )


@pytest.fixture()
def cars_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "model": ["GT", "458 Speciale", "458 Spider", "488 GTB", "California", "FF"],
            "mfr": ["Ford", "Ferrari", "Ferrari", "Ferrari", "Ferrari", "Ferrari"],
            "year": [2017, 2015, 2015, 2016, 2015, 2015],
            "hp": [647, 597, 562, 661, 553, 652],
            "trq": [550, 398, 398, 561, 557, 504],
            "msrp": [447000, 291744, 263553, 245400, 198973, 295000],
        }
    )


@pytest.fixture()
def stock_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "date": ["2024-01-02", "2024-01-03", "2024-01-04", "2024-01-05"],
            "open": [100.5, 101.25, np.nan, 99.0],
            "high": [102.0, 103.5, 101.0, 100.25],
            "low": [99.5, 100.0, 98.75, np.nan],
            "close": [101.0, 102.75, 100.0, 99.5],
        }
    )
