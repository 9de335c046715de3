"""Board synchronization core: value types, stage resolver, sync engine."""

from leadboard.engine.resolver import order_leads, resolve  # noqa: F401
from leadboard.engine.sync import SyncEngine  # noqa: F401
from leadboard.engine.types import (  # noqa: F401
    HistoryEntry,
    Lead,
    Priority,
    PropertyChange,
    Stage,
    StageColor,
    StageMeta,
)
