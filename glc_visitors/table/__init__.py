from .columns import ColumnDefinition, derive_columns
from .controller import Mode, VisitorTableSession
from .edit_buffer import EditBuffer, FlushResult
from .summary import SummaryStats, summarize

__all__ = [
    "ColumnDefinition",
    "derive_columns",
    "EditBuffer",
    "FlushResult",
    "Mode",
    "SummaryStats",
    "summarize",
    "VisitorTableSession",
]
