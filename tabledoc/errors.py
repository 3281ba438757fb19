from __future__ import annotations

"""Exception hierarchy for table model operations.

Every error is raised synchronously by the call that triggers it. Annotation
calls run inside ``TableModel.transaction()``, so a failed call leaves the
model exactly as it was before the call.
"""

__all__ = [
    "TableDocError",
    "ResolutionError",
    "FormatError",
    "ConfigError",
]


class TableDocError(Exception):
    """Base exception for table model errors."""
    pass


class ResolutionError(TableDocError):
    """Unknown column/row/group reference, or a column already removed by a merge."""
    pass


class FormatError(TableDocError):
    """Formatting or aggregation applied to an incompatible value type or option."""
    pass


class ConfigError(TableDocError):
    """Missing, mutually exclusive or invalid arguments/options."""
    pass
