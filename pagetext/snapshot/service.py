"""
Snapshot Service.
Runs one snapshot request: capture, scan, linearize, select full or diff, update the baseline.
"""

from typing import Awaitable, Callable, Optional

from pagetext.dom.document import DocumentAccessor
from pagetext.snapshot.differ import SnapshotDiffer
from pagetext.snapshot.linearizer import LayoutLinearizer
from pagetext.snapshot.models import PageSnapshot, SnapshotResult
from pagetext.snapshot.scanner import DOMScanner
from pagetext.snapshot.store import SessionSnapshotStore
from pagetext.utils.errors import AccessorError
from pagetext.utils.logger import snapshot_logger as logger


DocumentSource = Callable[[str], Awaitable[DocumentAccessor]]


def build_snapshot(
    document: DocumentAccessor,
    scanner: Optional[DOMScanner] = None,
    linearizer: Optional[LayoutLinearizer] = None
) -> PageSnapshot:
    """Scan and linearize one document state into a full snapshot."""
    scanner = scanner or DOMScanner()
    linearizer = linearizer or LayoutLinearizer()

    controls = scanner.scan(document)
    text, nodes = linearizer.linearize(document, controls)
    return PageSnapshot(
        text=text,
        controls=controls,
        nodes=nodes,
        url=getattr(document, "url", ""),
        title=getattr(document, "title", ""),
    )


class SnapshotService:
    """
    Serves `compute_snapshot(session_id)` for any number of sessions.

    Args:
        source: async callable returning the session's current document
        store: baseline store; a private one is created if omitted
        differ: output selection policy
    """

    def __init__(
        self,
        source: DocumentSource,
        store: Optional[SessionSnapshotStore] = None,
        differ: Optional[SnapshotDiffer] = None,
        scanner: Optional[DOMScanner] = None,
        linearizer: Optional[LayoutLinearizer] = None,
        show_summary: bool = False
    ):
        self.source = source
        self.store = store if store is not None else SessionSnapshotStore()
        self.differ = differ or SnapshotDiffer()
        self.scanner = scanner or DOMScanner()
        self.linearizer = linearizer or LayoutLinearizer()
        self.show_summary = show_summary

    async def compute_snapshot(self, session_id: str) -> SnapshotResult:
        """
        Produce the full snapshot or a diff against the session's baseline.

        The baseline is replaced with the full snapshot after every successful
        computation and left untouched when reading the document fails.

        Raises:
            AccessorError: the document could not be read.
        """
        async with self.store.session(session_id):
            document = await self.source(session_id)
            snapshot = self._build(document)

            if snapshot.is_empty:
                logger.info(f"Session {session_id}: page has no visible text or controls")

            previous = self.store.get(session_id)
            output = self.differ.select(previous, snapshot.text)
            self.store.set(session_id, snapshot.text)

        logger.info(
            f"Session {session_id}: returned {'diff' if output.is_diff else 'full snapshot'} "
            f"({len(output.text)}/{len(snapshot.text)} chars, {len(snapshot.controls)} controls)"
        )
        if self.show_summary:
            logger.snapshot_summary(
                session_id,
                control_count=len(snapshot.controls),
                snapshot_length=len(snapshot.text),
                output_length=len(output.text),
                is_diff=output.is_diff,
            )

        return SnapshotResult(
            session_id=session_id,
            text=output.text,
            is_diff=output.is_diff,
            full_length=len(snapshot.text),
            control_count=len(snapshot.controls),
            url=snapshot.url,
        )

    def _build(self, document: DocumentAccessor) -> PageSnapshot:
        try:
            return build_snapshot(document, self.scanner, self.linearizer)
        except AccessorError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise AccessorError(f"Document became unreadable during scan: {e}", cause=e) from e

    async def end_session(self, session_id: str) -> bool:
        """
        Drop the session's baseline when its owner tears it down.

        Waits for requests already queued on the session so none of them
        writes a baseline back after teardown.
        """
        async with self.store.session(session_id):
            return self.store.discard(session_id)
