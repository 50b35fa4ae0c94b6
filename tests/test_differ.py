"""Tests for the Snapshot Differ."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from pagetext.snapshot.differ import (
    DiffStrategy,
    SnapshotDiffer,
    UnifiedPatchStrategy,
    WordDiffStrategy,
    create_differ,
    create_strategy,
    select_snapshot_output,
    tokenize,
)
from pagetext.utils.errors import DiffComputationError


PAGE = (
    "Welcome to the store\n"
    "[0]{a}(Home) [1]{a}(Cart)\n"
    "Visitors online: 100\n"
    "Keyboard $49 [2]{button}(Add)\n"
    "Mouse $19 [3]{button}(Add mouse)"
)


class FailingStrategy(DiffStrategy):
    name = "failing"

    def compute(self, previous, current):
        raise RuntimeError("boom")


class TestSnapshotDiffer:
    """Test suite for SnapshotDiffer selection."""

    @pytest.fixture
    def differ(self):
        return SnapshotDiffer(WordDiffStrategy(), no_change_text="No changes detected")

    def test_no_previous_returns_full(self, differ):
        output = differ.select(None, PAGE)
        assert output.text == PAGE
        assert output.is_diff is False

    def test_no_previous_empty_page(self, differ):
        output = differ.select(None, "")
        assert output.text == ""
        assert output.is_diff is False

    def test_identical_returns_sentinel(self, differ):
        output = differ.select(PAGE, PAGE)
        assert output.text == "No changes detected"
        assert output.is_diff is True

    def test_whitespace_only_change_returns_sentinel(self, differ):
        output = differ.select(PAGE, PAGE.replace("Keyboard $49", "Keyboard  $49"))
        assert output.text == "No changes detected"

    def test_added_punctuation(self, differ):
        output = differ.select("Hello\nWorld", "Hello\nWorld!")
        assert output.text == "[ADDED] !"
        assert output.is_diff is True

    def test_removal_then_addition(self, differ):
        current = PAGE.replace("Welcome to the store", "Welcome back to the shop")
        output = differ.select(PAGE, current)
        assert output.is_diff is True
        assert output.text == "[ADDED] back\n[REMOVED] store\n[ADDED] shop"

    def test_diff_not_shorter_returns_full(self, differ):
        output = differ.select("a", "b")
        assert output.text == "b"
        assert output.is_diff is False

    def test_numeric_churn_returns_full(self, differ):
        current = PAGE.replace("Visitors online: 100", "Visitors online: 101")
        output = differ.select(PAGE, current)
        assert output.text == current
        assert output.is_diff is False

    def test_numeric_ratio_is_overridable(self):
        differ = SnapshotDiffer(WordDiffStrategy(numeric_ratio=1.0))
        current = PAGE.replace("Visitors online: 100", "Visitors online: 101")
        output = differ.select(PAGE, current)
        assert output.is_diff is True
        assert output.text == "[REMOVED] 100\n[ADDED] 101"

    def test_mixed_change_with_minor_numeric_part_is_diff(self, differ):
        current = PAGE.replace("Visitors online: 100", "Visitors online: 101").replace(
            "Welcome to the store", "Welcome to the big sale"
        )
        output = differ.select(PAGE, current)
        assert output.is_diff is True
        assert "[ADDED] big sale" in output.text

    def test_strategy_failure_falls_back_to_full(self):
        differ = SnapshotDiffer(FailingStrategy())
        output = differ.select(PAGE, PAGE + " more")
        assert output.text == PAGE + " more"
        assert output.is_diff is False

    def test_select_never_mutates_inputs(self, differ):
        previous = PAGE
        differ.select(previous, PAGE + "!")
        assert previous == PAGE

    @pytest.mark.parametrize("strategy", ["word", "patch"])
    def test_size_dominance(self, strategy):
        differ = create_differ(strategy)
        variants = [
            PAGE.replace("Cart", "Cart (1)"),
            PAGE.replace("Mouse $19", "Mouse $17"),
            PAGE + "\nNew footer line",
            "Completely different page",
            "",
        ]
        for current in variants:
            output = differ.select(PAGE, current)
            if output.is_diff and output.text != differ.no_change_text:
                assert len(output.text) < len(current)
            elif not output.is_diff:
                assert output.text == current

    @pytest.mark.parametrize("strategy", ["word", "patch"])
    def test_sentinel_may_exceed_tiny_snapshot(self, strategy):
        snapshot = "[0]{a}(Go)"
        output = create_differ(strategy).select(snapshot, snapshot)
        assert output.text == "No changes detected"
        assert output.is_diff is True
        assert len(output.text) > len(snapshot)

    @pytest.mark.parametrize("strategy", ["word", "patch"])
    def test_idempotence(self, strategy):
        output = create_differ(strategy).select(PAGE, PAGE)
        assert output.text == "No changes detected"


class TestWordDiffStrategy:
    """Test suite for the tagged word diff."""

    @pytest.fixture
    def strategy(self):
        return WordDiffStrategy(numeric_ratio=0.5, fragment_min_lines=10, fragment_max_line_length=10)

    def test_tokenize(self):
        assert tokenize("[0]{a}(Home) ok!") == [
            "[", "0", "]", "{", "a", "}", "(", "Home", ")", " ", "ok", "!",
        ]

    def test_render_multiple_spans(self, strategy):
        rendered = strategy.render("one two three", "one 2 three four")
        assert rendered == "[REMOVED] two\n[ADDED] 2\n[ADDED] four"

    def test_is_numeric_churn(self, strategy):
        assert strategy.is_numeric_churn("[REMOVED] 10\n[ADDED] 11")
        assert not strategy.is_numeric_churn("[REMOVED] 10\n[ADDED] eleven")
        assert not strategy.is_numeric_churn("[ADDED] 1\n[ADDED] a\n[ADDED] b")

    def test_is_fragmented(self, strategy):
        assert strategy.is_fragmented("\n".join(["[ADDED] x"] * 11))
        assert not strategy.is_fragmented("\n".join(["[ADDED] x"] * 10))
        assert not strategy.is_fragmented("\n".join(["[ADDED] x"] * 10 + ["[ADDED] longer"]))

    def test_fragmented_diff_returns_full(self):
        previous = " ".join(f"paragraph{i}" for i in range(12))
        current = " ".join(f"paragraph{i} b" for i in range(12))

        output = SnapshotDiffer(WordDiffStrategy()).select(previous, current)
        assert output.is_diff is False
        assert output.text == current

        relaxed = SnapshotDiffer(WordDiffStrategy(fragment_min_lines=20)).select(previous, current)
        assert relaxed.is_diff is True
        assert relaxed.text == "\n".join(["[ADDED] b"] * 12)


class TestUnifiedPatchStrategy:
    """Test suite for the unified patch strategy."""

    @pytest.fixture
    def long_page(self):
        return "\n".join(f"Line number {i} of the page" for i in range(30))

    def test_patch_when_shorter(self, long_page):
        current = long_page.replace("Line number 15 of", "Line number 15 in")
        output = SnapshotDiffer(UnifiedPatchStrategy(context_lines=1)).select(long_page, current)
        assert output.is_diff is True
        assert output.text.splitlines() == [
            "--- previous",
            "+++ current",
            "@@ -15,3 +15,3 @@",
            " Line number 14 of the page",
            "-Line number 15 of the page",
            "+Line number 15 in the page",
            " Line number 16 of the page",
        ]

    def test_numeric_changes_are_not_filtered(self, long_page):
        current = long_page.replace("Line number 15", "Line number 99")
        output = SnapshotDiffer(UnifiedPatchStrategy()).select(long_page, current)
        assert output.is_diff is True

    def test_full_when_patch_is_longer(self):
        output = SnapshotDiffer(UnifiedPatchStrategy()).select("short", "tiny")
        assert output.text == "tiny"
        assert output.is_diff is False


class TestFactories:
    """Tests for strategy construction."""

    def test_create_strategy(self):
        assert isinstance(create_strategy("word"), WordDiffStrategy)
        assert isinstance(create_strategy("patch", context_lines=5), UnifiedPatchStrategy)

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            create_strategy("levenshtein")

    def test_default_strategy_is_word(self):
        assert isinstance(create_differ().strategy, WordDiffStrategy)

    def test_select_snapshot_output(self):
        assert select_snapshot_output(None, "page").is_diff is False
        assert select_snapshot_output("Hello\nWorld", "Hello\nWorld!", strategy="word").text == "[ADDED] !"

    def test_diff_error_is_recovered(self):
        class Raising(DiffStrategy):
            name = "raising"

            def compute(self, previous, current):
                raise DiffComputationError("bad input")

        output = SnapshotDiffer(Raising()).select("a b", "a c")
        assert output.text == "a c"
        assert output.is_diff is False
