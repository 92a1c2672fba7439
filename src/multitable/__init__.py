"""multitable -- several tabular sources presented as one sortable table.

Public API::

    from multitable import AggregatedView, ListSource, FrameSource
"""

from multitable.bindings import BindingTable, SourceBinding
from multitable.config import DEFAULT_CONFIG, load_view_config
from multitable.errors import (
    BindingResult,
    InvalidStrideError,
    LogicalIndexError,
    MultiTableError,
)
from multitable.projection import UNSORTED, SortProjection, compare_descending, numeric_order
from multitable.refresh import (
    ChangeEvent,
    ChangeKind,
    ChangeLog,
    RefreshBatcher,
    RefreshMode,
)
from multitable.sources import (
    DataSource,
    FrameSource,
    ListSource,
    TypeTag,
    is_numeric,
    snapshot_frame,
)
from multitable.view import ROW_NUMBER_BASE, AggregatedView

__version__ = "0.1.0"

__all__ = [
    "AggregatedView",
    "BindingResult",
    "BindingTable",
    "ChangeEvent",
    "ChangeKind",
    "ChangeLog",
    "DEFAULT_CONFIG",
    "DataSource",
    "FrameSource",
    "InvalidStrideError",
    "ListSource",
    "LogicalIndexError",
    "MultiTableError",
    "ROW_NUMBER_BASE",
    "RefreshBatcher",
    "RefreshMode",
    "SortProjection",
    "SourceBinding",
    "TypeTag",
    "UNSORTED",
    "compare_descending",
    "is_numeric",
    "load_view_config",
    "numeric_order",
    "snapshot_frame",
]
