from __future__ import annotations
import pytest
from pathlib import Path
from unittest.mock import patch

from tabledoc import create_table
from tabledoc.config.loader import ConfigError, TableOptions, load_options, options_from_mapping


def test_load_options_success(write_options: Path):
    opts = load_options(write_options)
    assert opts.footnote_marks == "letters"
    assert opts.missing_text == "--"
    assert opts.decimals == 1
    assert (opts.sep_mark, opts.dec_mark) == (".", ",")
    assert opts.row_group_others_label == "Other"


def test_load_options_missing_file(temp_workdir: Path):
    missing = temp_workdir / "config" / "not_exists.yml"
    with pytest.raises(ConfigError) as e:
        load_options(missing)
    assert "options file not found" in str(e.value)


def test_load_options_empty_file_gives_defaults(temp_workdir: Path):
    cfg = temp_workdir / "config" / "empty.yml"
    cfg.write_text("", encoding="utf-8")
    assert load_options(cfg) == TableOptions()


def test_load_options_invalid_yaml(temp_workdir: Path):
    cfg = temp_workdir / "config" / "broken.yml"
    cfg.write_text("decimals: [1, 2\n", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_options(cfg)
    assert "invalid yaml" in str(e.value)


def test_load_options_extra_field(write_options: Path):
    # extra field rejected by additionalProperties: false
    text = write_options.read_text(encoding="utf-8") + "\nextra_field: not_allowed\n"
    write_options.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_options(write_options)
    assert "options validation failed" in str(e.value)


@pytest.mark.parametrize(
    "data",
    [
        {"decimals": -1},
        {"decimals": "2"},
        {"footnote_marks": "roman"},
        {"footnote_marks": []},
        {"dec_mark": ""},
        {"use_seps": "yes"},
    ],
)
def test_options_type_errors(data):
    with pytest.raises(ConfigError) as e:
        options_from_mapping(data)
    assert "options validation failed" in str(e.value)


def test_options_same_marks_rejected():
    with pytest.raises(ConfigError):
        options_from_mapping({"sep_mark": ".", "dec_mark": "."})
    assert options_from_mapping({"sep_mark": ".", "dec_mark": ".", "use_seps": False}).dec_mark == "."


def test_options_custom_marks_and_base():
    base = TableOptions(decimals=0)
    opts = options_from_mapping({"footnote_marks": ("†", "‡")}, base=base)
    assert opts.footnote_marks == ("†", "‡")
    assert opts.decimals == 0
    assert base.footnote_marks != opts.footnote_marks


def test_options_not_a_mapping():
    with pytest.raises(ConfigError):
        options_from_mapping(["decimals", 1])  # type: ignore[arg-type]


def test_schema_missing(tmp_path: Path):
    with patch("tabledoc.config.loader.SCHEMA_PATH", tmp_path / "missing.json"):
        with pytest.raises(ConfigError) as e:
            options_from_mapping({"decimals": 1})
    assert "options schema not found" in str(e.value)


def test_schema_invalid_json(tmp_path: Path):
    broken = tmp_path / "schema.json"
    broken.write_text("{not json", encoding="utf-8")
    with patch("tabledoc.config.loader.SCHEMA_PATH", broken):
        with pytest.raises(ConfigError) as e:
            options_from_mapping({"decimals": 1})
    assert "invalid schema file" in str(e.value)


def test_create_table_accepts_loaded_options(write_options: Path):
    model = create_table({"a": [1.25]}, options=load_options(write_options))
    assert model.options.decimals == 1
    assert model.others_group_label == "Other"
