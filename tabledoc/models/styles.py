from __future__ import annotations

from dataclasses import dataclass

from ..errors import ConfigError

"""Cell style payloads for the styles ledger."""

__all__ = [
    "CellStyle",
    "cell_text",
    "cell_fill",
]

ALIGN_VALUES = {"left", "center", "right", "justify"}
WEIGHT_VALUES = {"normal", "bold", "lighter", "bolder"}
FONT_STYLE_VALUES = {"normal", "italic", "oblique"}
DECORATE_VALUES = {"overline", "line-through", "underline"}


@dataclass(frozen=True)
class CellStyle:
    """Hashable set of style properties; ``None`` means "not set"."""
    color: str | None = None
    fill: str | None = None
    size: str | None = None
    weight: str | None = None
    style: str | None = None
    align: str | None = None
    decorate: str | None = None

    def __post_init__(self) -> None:
        _check_choice("align", self.align, ALIGN_VALUES)
        _check_choice("weight", self.weight, WEIGHT_VALUES)
        _check_choice("style", self.style, FONT_STYLE_VALUES)
        _check_choice("decorate", self.decorate, DECORATE_VALUES)

    def merged(self, other: CellStyle) -> CellStyle:
        """Combine with ``other``; properties set on ``other`` win."""
        values = {
            name: getattr(other, name) if getattr(other, name) is not None else getattr(self, name)
            for name in self.__dataclass_fields__
        }
        return CellStyle(**values)


def _check_choice(name: str, value: str | None, allowed: set[str]) -> None:
    if value is not None and value not in allowed:
        raise ConfigError(f"invalid {name} '{value}': expected one of {sorted(allowed)}")


def cell_text(
    color: str | None = None,
    size: str | None = None,
    weight: str | None = None,
    style: str | None = None,
    align: str | None = None,
    decorate: str | None = None,
) -> CellStyle:
    return CellStyle(color=color, size=size, weight=weight, style=style, align=align, decorate=decorate)


def cell_fill(color: str) -> CellStyle:
    return CellStyle(fill=color)
