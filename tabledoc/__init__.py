"""tabledoc: table model and location-resolution engine for table documents.

Typical pipeline::

    model = create_table(df, rowname_col="model", groupname_col="mfr")
    tab_header(model, "Cars")
    tab_footnote(model, "Horsepower", cells_column_labels("hp"))
    summary_rows(model, columns=["hp"], fns=["mean", "max"])
    plan = build_render_plan(model)
"""

from .config.loader import TableOptions, load_options
from .errors import ConfigError, FormatError, ResolutionError, TableDocError
from .logging.init import setup_logging
from .models.locations import (
    cells_column_labels,
    cells_column_spanners,
    cells_data,
    cells_grand_summary,
    cells_row_groups,
    cells_stub,
    cells_summary,
    cells_title,
)
from .models.selectors import contains, ends_with, everything, matches, one_of, starts_with, where
from .models.styles import CellStyle, cell_fill, cell_text
from .models.table_model import TableModel
from .services.annotations import (
    cols_align,
    cols_hide,
    cols_label,
    cols_move,
    cols_move_to_end,
    cols_move_to_start,
    create_table,
    fmt_number,
    tab_footnote,
    tab_header,
    tab_options,
    tab_row_group,
    tab_source_note,
    tab_spanner,
    tab_stubhead_label,
    tab_style,
)
from .services.merge import cols_merge, cols_merge_range, cols_merge_uncert
from .services.prepare import materialize
from .services.render_plan import RenderPlan, build_render_plan
from .services.summary import extract_summary, grand_summary_rows, summary_rows

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "create_table",
    "TableModel",
    "TableOptions",
    "load_options",
    "setup_logging",
    # Errors
    "TableDocError",
    "ResolutionError",
    "FormatError",
    "ConfigError",
    # Selectors
    "everything",
    "starts_with",
    "ends_with",
    "contains",
    "matches",
    "one_of",
    "where",
    # Locations
    "cells_title",
    "cells_column_spanners",
    "cells_column_labels",
    "cells_data",
    "cells_stub",
    "cells_row_groups",
    "cells_summary",
    "cells_grand_summary",
    # Styles
    "CellStyle",
    "cell_text",
    "cell_fill",
    # Annotations
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
    # Merges and summaries
    "cols_merge",
    "cols_merge_uncert",
    "cols_merge_range",
    "summary_rows",
    "grand_summary_rows",
    "extract_summary",
    # Preparation
    "materialize",
    "build_render_plan",
    "RenderPlan",
]
