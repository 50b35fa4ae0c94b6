"""Tests for the Snapshot Service."""

import asyncio
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from pagetext.dom.html_loader import load_html
from pagetext.snapshot.differ import create_differ
from pagetext.snapshot.service import SnapshotService
from pagetext.snapshot.store import SessionSnapshotStore
from pagetext.utils.errors import AccessorError


PAGE = """
<html><body>
    <h1 data-box="0,0,400,30">Inbox</h1>
    <p data-box="0,40,400,20">You have {count} unread messages in your inbox today</p>
    <p data-box="0,70,400,20">{notice}</p>
    <button data-box="0,100,80,20">Compose</button>
    <a href="/settings" data-box="100,100,80,20">Settings</a>
</body></html>
"""


def page(count=3, notice="Nothing new from the team"):
    return PAGE.format(count=count, notice=notice)


class ScriptedSource:
    """Serves a fixed sequence of page states; None entries raise AccessorError."""

    def __init__(self, pages, delay=0.0):
        self.pages = list(pages)
        self.delay = delay
        self.calls = 0
        self.active = 0
        self.max_active = 0

    async def __call__(self, session_id):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            html = self.pages[min(self.calls, len(self.pages) - 1)]
            self.calls += 1
            if html is None:
                raise AccessorError("Execution context was destroyed")
            return load_html(html)
        finally:
            self.active -= 1


def run(coro):
    return asyncio.run(coro)


class TestSnapshotService:
    """Test suite for SnapshotService."""

    @pytest.fixture
    def store(self):
        return SessionSnapshotStore()

    def test_first_request_returns_full_snapshot(self, store):
        service = SnapshotService(ScriptedSource([page()]), store=store, differ=create_differ("word"))
        result = run(service.compute_snapshot("s1"))

        assert result.is_diff is False
        assert result.text == (
            "Inbox\n"
            "You have 3 unread messages in your inbox today\n"
            "Nothing new from the team\n"
            "[0]{button}(Compose) [1]{a}(Settings)"
        )
        assert result.control_count == 2
        assert result.full_length == len(result.text)
        assert store.get("s1") == result.text

    def test_unchanged_page_returns_sentinel(self, store):
        service = SnapshotService(ScriptedSource([page(), page()]), store=store, differ=create_differ("word"))
        run(service.compute_snapshot("s1"))
        second = run(service.compute_snapshot("s1"))

        assert second.text == "No changes detected"
        assert second.is_diff is True

    def test_change_returns_diff_and_stores_full(self, store):
        source = ScriptedSource([page(), page(notice="Nothing new from the team yet, meeting moved to Friday")])
        service = SnapshotService(source, store=store, differ=create_differ("word"))
        first = run(service.compute_snapshot("s1"))
        second = run(service.compute_snapshot("s1"))

        assert second.is_diff is True
        assert second.text == "[ADDED] yet, meeting moved to Friday"
        assert len(second.text) < second.full_length
        assert store.get("s1") != first.text
        assert store.get("s1").count("\n") == 3
        assert "meeting moved to Friday" in store.get("s1")

    def test_numeric_change_returns_full(self, store):
        source = ScriptedSource([page(count=3), page(count=4)])
        service = SnapshotService(source, store=store, differ=create_differ("word"))
        run(service.compute_snapshot("s1"))
        second = run(service.compute_snapshot("s1"))

        assert second.is_diff is False
        assert "You have 4 unread messages" in second.text

    def test_patch_strategy(self, store):
        source = ScriptedSource([page(), page(notice="Nothing new from the team yet, meeting moved to Friday")])
        service = SnapshotService(source, store=store, differ=create_differ("patch", context_lines=0))
        run(service.compute_snapshot("s1"))
        second = run(service.compute_snapshot("s1"))

        assert second.is_diff is True
        assert second.text.startswith("--- previous\n+++ current\n")
        assert "+Nothing new from the team yet, meeting moved to Friday" in second.text

    def test_accessor_error_leaves_baseline(self, store):
        source = ScriptedSource([page(), None, page(notice="Nothing new from the team today")])
        service = SnapshotService(source, store=store, differ=create_differ("word"))
        first = run(service.compute_snapshot("s1"))

        with pytest.raises(AccessorError):
            run(service.compute_snapshot("s1"))
        assert store.get("s1") == first.text

        third = run(service.compute_snapshot("s1"))
        assert third.is_diff is True
        assert third.text == "[ADDED] today"

    def test_failed_first_request_creates_no_entry(self, store):
        service = SnapshotService(ScriptedSource([None]), store=store)
        with pytest.raises(AccessorError):
            run(service.compute_snapshot("s1"))
        assert "s1" not in store

    def test_malformed_document_is_accessor_error(self, store):
        class Broken:
            url = ""
            title = ""

            def query(self, tags, roles):
                raise KeyError("detached")

            def root(self):
                raise KeyError("body")

        async def source(session_id):
            return Broken()

        service = SnapshotService(source, store=store)
        with pytest.raises(AccessorError):
            run(service.compute_snapshot("s1"))
        assert "s1" not in store

    def test_empty_page_updates_store(self, store):
        service = SnapshotService(ScriptedSource(["<html><body></body></html>"]), store=store)
        result = run(service.compute_snapshot("s1"))

        assert result.text == ""
        assert result.is_diff is False
        assert result.control_count == 0
        assert store.get("s1") == ""

    def test_sessions_have_separate_baselines(self, store):
        service = SnapshotService(ScriptedSource([page()]), store=store)
        run(service.compute_snapshot("s1"))
        other = run(service.compute_snapshot("s2"))

        assert other.is_diff is False
        assert len(store) == 2

    def test_end_session_resets_baseline(self, store):
        service = SnapshotService(ScriptedSource([page()]), store=store)
        run(service.compute_snapshot("s1"))
        assert run(service.end_session("s1")) is True

        again = run(service.compute_snapshot("s1"))
        assert again.is_diff is False

    def test_end_session_waits_for_queued_requests(self, store):
        source = ScriptedSource([page(), page(notice="Nothing new from the team today")], delay=0.02)
        service = SnapshotService(source, store=store)

        async def teardown_mid_request():
            pending = [
                asyncio.create_task(service.compute_snapshot("s1")),
                asyncio.create_task(service.compute_snapshot("s1")),
            ]
            await asyncio.sleep(0.005)
            ended = await service.end_session("s1")
            baseline_after_teardown = store.get("s1")
            after = await service.compute_snapshot("s1")
            await asyncio.gather(*pending)
            return ended, baseline_after_teardown, after

        ended, baseline_after_teardown, after = run(teardown_mid_request())
        assert ended is True
        assert baseline_after_teardown is None
        assert source.max_active == 1
        assert after.is_diff is False

    def test_same_session_requests_are_serialized(self, store):
        source = ScriptedSource([page(), page(notice="Nothing new from the team today")], delay=0.01)
        service = SnapshotService(source, store=store)

        async def both():
            return await asyncio.gather(
                service.compute_snapshot("s1"),
                service.compute_snapshot("s1"),
            )

        first, second = run(both())
        assert source.max_active == 1
        assert first.is_diff is False
        assert second.is_diff is True

    def test_different_sessions_run_concurrently(self, store):
        source = ScriptedSource([page()], delay=0.01)
        service = SnapshotService(source, store=store)

        async def both():
            return await asyncio.gather(
                service.compute_snapshot("s1"),
                service.compute_snapshot("s2"),
            )

        run(both())
        assert source.max_active == 2

    def test_summary_table(self, store):
        service = SnapshotService(ScriptedSource([page()]), store=store, show_summary=True)
        result = run(service.compute_snapshot("s1"))
        assert result.to_dict()["control_count"] == 2
