"""Progress matrix: columns, legacy/relational row sources and the legacy bridge."""

from structrack.progress.bridge import LegacyProgressBridge
from structrack.progress.columns import ColumnRegistry
from structrack.progress.models import (
    CellUpdate,
    MatrixCell,
    MatrixColumn,
    MatrixType,
    ProgressRow,
    SyncOutcome,
    SyncReport,
)
from structrack.progress.sources import (
    LegacyProgressSource,
    ProgressRowSource,
    RelationalProgressSource,
    parse_matrix_paste,
)

__all__ = [
    "CellUpdate",
    "ColumnRegistry",
    "LegacyProgressBridge",
    "LegacyProgressSource",
    "MatrixCell",
    "MatrixColumn",
    "MatrixType",
    "ProgressRow",
    "ProgressRowSource",
    "RelationalProgressSource",
    "SyncOutcome",
    "SyncReport",
    "parse_matrix_paste",
]
