from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..errors import ConfigError

"""Table options loader.

Responsibilities:
- Load table options from a YAML file
- Validate keys and types against the bundled JSON schema
- Apply defaults for every option not given
"""

__all__ = [
    "ConfigError",
    "TableOptions",
    "SCHEMA_PATH",
    "load_options",
    "options_from_mapping",
]

# tabledoc/config/loader.py -> tabledoc/config/options_schema.json
SCHEMA_PATH = Path(__file__).parent / "options_schema.json"


@dataclass(frozen=True)
class TableOptions:
    """Table-wide defaults consulted by annotation calls and materialization."""
    footnote_marks: str | tuple[str, ...] = "numbers"  # numbers/letters/LETTERS/standard or explicit marks
    missing_text: str = "NA"  # 欠損値の表示 (merge パターン内)
    decimals: int = 2
    use_seps: bool = True
    sep_mark: str = ","
    dec_mark: str = "."
    uncert_sep: str = " ± "
    range_sep: str = "—"
    # Default label of the ungrouped bucket; tab_row_group(others=...) overrides it
    row_group_others_label: str | None = None


def _validate_options_schema(data: dict[str, Any]) -> None:
    """Validate option data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or if the
            data fails validation (unknown keys, wrong types, out-of-range values).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"options schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"options validation failed: {e.message}") from e


def options_from_mapping(data: dict[str, Any], base: TableOptions | None = None) -> TableOptions:
    """Build ``TableOptions`` from a mapping, on top of ``base`` (defaults if None)."""
    if not isinstance(data, dict):
        raise ConfigError(f"options must be a mapping, got {type(data).__name__}")
    # JSON schema の array は list のみ受理、dataclass 側では tuple に正規化
    data = {k: list(v) if isinstance(v, tuple) else v for k, v in data.items()}
    _validate_options_schema(data)
    known = {f.name for f in fields(TableOptions)}
    values = {k: v for k, v in data.items() if k in known}
    if isinstance(values.get("footnote_marks"), list):
        values["footnote_marks"] = tuple(values["footnote_marks"])
    options = replace(base or TableOptions(), **values)
    if options.use_seps and options.sep_mark == options.dec_mark:
        raise ConfigError("options validation failed: sep_mark and dec_mark must differ")
    return options


def load_options(path: Path) -> TableOptions:
    if not path.exists():
        raise ConfigError(f"options file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    return options_from_mapping(data)
