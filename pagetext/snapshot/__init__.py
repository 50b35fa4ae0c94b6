"""Page snapshot extraction and incremental diffing."""

from .models import (
    InteractiveControl,
    PageSnapshot,
    PositionedNode,
    SessionSnapshotState,
    SnapshotOutput,
    SnapshotResult,
    TextFragment,
)
from .scanner import DOMScanner
from .linearizer import LayoutLinearizer
from .differ import (
    SnapshotDiffer,
    UnifiedPatchStrategy,
    WordDiffStrategy,
    create_differ,
    select_snapshot_output,
)
from .store import SessionSnapshotStore
from .service import SnapshotService, build_snapshot

__all__ = [
    "InteractiveControl",
    "PageSnapshot",
    "PositionedNode",
    "SessionSnapshotState",
    "SnapshotOutput",
    "SnapshotResult",
    "TextFragment",
    "DOMScanner",
    "LayoutLinearizer",
    "SnapshotDiffer",
    "UnifiedPatchStrategy",
    "WordDiffStrategy",
    "create_differ",
    "select_snapshot_output",
    "SessionSnapshotStore",
    "SnapshotService",
    "build_snapshot",
]
