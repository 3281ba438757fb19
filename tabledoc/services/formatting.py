from __future__ import annotations

import numbers
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import numpy as np
import pandas as pd

from ..errors import FormatError

"""Value formatting for table body and summary cells.

``format_value`` is the default formatter applied to every body cell;
``format_number`` implements the decimal/separator rules shared by
``fmt_number`` directives and summary rows. Missing values format to ``None``
so renderers can substitute their own missing text.
"""

__all__ = [
    "NumberFormat",
    "is_missing",
    "is_numeric_value",
    "is_numeric_series",
    "format_value",
    "format_number",
]


@dataclass(frozen=True)
class NumberFormat:
    """Numeric formatting options.

    Attributes:
        decimals: Digits after the decimal mark (>= 0)
        use_seps: Insert ``sep_mark`` between digit groups of three
        sep_mark: Digit grouping separator
        dec_mark: Decimal mark
        drop_trailing_zeros: Strip zeros (and a dangling decimal mark) from the fraction
        pattern: Output pattern; ``{x}`` is replaced by the formatted number
    """
    decimals: int = 2
    use_seps: bool = True
    sep_mark: str = ","
    dec_mark: str = "."
    drop_trailing_zeros: bool = False
    pattern: str = "{x}"

    def __post_init__(self) -> None:
        if isinstance(self.decimals, bool) or not isinstance(self.decimals, int):
            raise FormatError(f"decimals must be an integer, got {self.decimals!r}")
        if self.decimals < 0:
            raise FormatError(f"decimals must be >= 0, got {self.decimals}")
        if not self.dec_mark:
            raise FormatError("dec_mark must not be empty")
        if self.use_seps and self.sep_mark == self.dec_mark:
            raise FormatError(f"sep_mark and dec_mark must differ (both '{self.dec_mark}')")
        if "{x}" not in self.pattern:
            raise FormatError(f"pattern must contain '{{x}}': {self.pattern!r}")


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    if pd.api.types.is_scalar(value):
        return bool(pd.isna(value))
    return False


def is_numeric_value(value: Any) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return False
    return isinstance(value, numbers.Number)


def is_numeric_series(series: pd.Series) -> bool:
    """True for numeric (non-boolean) dtypes, or object columns holding only numbers/missing."""
    if pd.api.types.is_bool_dtype(series):
        return False
    if pd.api.types.is_numeric_dtype(series):
        return True
    present = [v for v in series.tolist() if not is_missing(v)]
    return bool(present) and all(is_numeric_value(v) for v in present)


def format_value(value: Any) -> str | None:
    """Default cell formatter: ``None`` for missing, ``str()`` otherwise."""
    if is_missing(value):
        return None
    if isinstance(value, np.generic):
        value = value.item()
    return str(value)


def format_number(value: Any, fmt: NumberFormat) -> str | None:
    if is_missing(value):
        return None
    if not is_numeric_value(value):
        raise FormatError(f"cannot format non-numeric value {value!r} as a number")

    if isinstance(value, np.generic):
        value = value.item()
    # 整数と Decimal は float を経由しない (2**53 超の桁落ち防止)
    x = Decimal(value) if isinstance(value, (numbers.Integral, Decimal)) else float(value)
    grouping = "," if fmt.use_seps else ""
    body = f"{abs(x):{grouping}.{fmt.decimals}f}"
    int_part, _, frac = body.partition(".")
    if fmt.drop_trailing_zeros:
        frac = frac.rstrip("0")
    if fmt.use_seps:
        int_part = int_part.replace(",", fmt.sep_mark)
    text = int_part + (fmt.dec_mark + frac if frac else "")
    # "-0.00" は出さない
    if x < 0 and any(ch in "123456789" for ch in int_part + frac):
        text = "-" + text
    return fmt.pattern.replace("{x}", text)
