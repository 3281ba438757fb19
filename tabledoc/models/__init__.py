"""Domain models for the table document.

This package contains the model classes shared across the services: the
table model itself, column/stub metadata, ledgers, location specifiers,
selectors and cell styles.
"""

from .ledger import Ledger, LedgerEntry, LedgerKind
from .locations import (
    CellsColumnLabels,
    CellsColumnSpanners,
    CellsData,
    CellsGrandSummary,
    CellsRowGroups,
    CellsStub,
    CellsSummary,
    CellsTitle,
    Location,
    LocationKind,
)
from .metadata import ColumnMeta, Heading, StubRow
from .styles import CellStyle
from .table_model import TableModel

__all__ = [
    # Table model
    "TableModel",
    "ColumnMeta",
    "StubRow",
    "Heading",
    # Ledgers
    "Ledger",
    "LedgerEntry",
    "LedgerKind",
    # Locations
    "Location",
    "LocationKind",
    "CellsTitle",
    "CellsColumnSpanners",
    "CellsColumnLabels",
    "CellsData",
    "CellsStub",
    "CellsRowGroups",
    "CellsSummary",
    "CellsGrandSummary",
    # Styles
    "CellStyle",
]
