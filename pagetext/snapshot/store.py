"""
Session Snapshot State Store.
Keeps one diff baseline (the last full snapshot) per session.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional

from pagetext.snapshot.models import SessionSnapshotState
from pagetext.utils.logger import snapshot_logger as logger


class SessionSnapshotStore:
    """
    Per-session baseline store.

    Holds at most one snapshot per session, with no history. Each session also
    owns an asyncio.Lock; callers hold it through `session()` for the whole
    read-compute-write cycle so two requests for the same session never
    interleave. A lock lives as long as some task holds or awaits it.
    """

    def __init__(self):
        self._states: dict[str, SessionSnapshotState] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    def get(self, session_id: str) -> Optional[str]:
        """The session's last full snapshot, or None before its first request."""
        state = self._states.get(session_id)
        return state.last_full_snapshot if state else None

    def set(self, session_id: str, full_snapshot: str):
        """Replace the session's baseline with a full snapshot."""
        state = self._states.get(session_id)
        if state is None:
            state = SessionSnapshotState(session_id=session_id)
            self._states[session_id] = state
        state.last_full_snapshot = full_snapshot
        state.updated_at = datetime.now()

    def state(self, session_id: str) -> Optional[SessionSnapshotState]:
        return self._states.get(session_id)

    def lock(self, session_id: str) -> asyncio.Lock:
        """The lock serializing snapshot requests for a session, created lazily."""
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    @asynccontextmanager
    async def session(self, session_id: str) -> AsyncIterator[None]:
        """Hold the session's lock; the lock is dropped once nobody holds or awaits it."""
        lock = self.lock(session_id)
        self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[session_id] -= 1
            if not self._lock_users[session_id]:
                del self._lock_users[session_id]
                if self._locks.get(session_id) is lock:
                    del self._locks[session_id]

    def discard(self, session_id: str) -> bool:
        """Forget a session's baseline. Returns True if it had one."""
        removed = self._states.pop(session_id, None) is not None
        if removed:
            logger.debug(f"Discarded snapshot baseline for session {session_id}")
        return removed

    def clear(self):
        self._states.clear()

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._states

    def __len__(self) -> int:
        return len(self._states)

    @property
    def session_ids(self) -> list[str]:
        return list(self._states)
