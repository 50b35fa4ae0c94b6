"""
Snapshot Differ.

Chooses between returning the full current snapshot and a smaller diff
against the session's previous snapshot. Two interchangeable strategies are
provided:

- ``word``: word-level edit script rendered as ``[ADDED] ...`` /
  ``[REMOVED] ...`` lines, rejected when it is not shorter than the snapshot,
  mostly numeric churn, or fragmented into many tiny changes.
- ``patch``: line-level unified diff, used whenever it is shorter than the
  snapshot.

The differ never touches session state.
"""

import difflib
import re
from abc import ABC, abstractmethod
from typing import Optional

from config.settings import settings
from pagetext.snapshot.models import SnapshotOutput
from pagetext.utils.errors import DiffComputationError
from pagetext.utils.logger import snapshot_logger as logger


ADDED_TAG = "[ADDED]"
REMOVED_TAG = "[REMOVED]"

# Whitespace runs, word runs, single brackets/quotes, other punctuation runs
_TOKEN = re.compile(r"\s+|\w+|[()\[\]{}'\"]|[^\w\s()\[\]{}'\"]+")
_TAG = re.compile(r"\[ADDED\]|\[REMOVED\]")
_DIGITS = re.compile(r"^\d+$")


def tokenize(text: str) -> list[str]:
    return _TOKEN.findall(text)


class DiffStrategy(ABC):
    """Computes a diff, or returns None to ask for the full snapshot."""

    name: str = ""

    @abstractmethod
    def compute(self, previous: str, current: str) -> Optional[str]:
        ...


class WordDiffStrategy(DiffStrategy):
    """Tagged word diff with size, numeric-churn and fragmentation filters."""

    name = "word"

    def __init__(
        self,
        numeric_ratio: Optional[float] = None,
        fragment_min_lines: Optional[int] = None,
        fragment_max_line_length: Optional[int] = None
    ):
        self.numeric_ratio = numeric_ratio if numeric_ratio is not None else settings.diff.numeric_ratio
        self.fragment_min_lines = (
            fragment_min_lines if fragment_min_lines is not None else settings.diff.fragment_min_lines
        )
        self.fragment_max_line_length = (
            fragment_max_line_length
            if fragment_max_line_length is not None
            else settings.diff.fragment_max_line_length
        )

    def compute(self, previous: str, current: str) -> Optional[str]:
        diff_text = self.render(previous, current)
        if not diff_text:
            return ""
        if len(diff_text) >= len(current):
            logger.debug("Word diff is not shorter than the snapshot")
            return None
        if self.is_numeric_churn(diff_text):
            logger.debug("Word diff is mostly numeric churn")
            return None
        if self.is_fragmented(diff_text):
            logger.debug("Word diff is fragmented")
            return None
        return diff_text

    def render(self, previous: str, current: str) -> str:
        """One tagged line per changed span; removals before additions in a replacement."""
        old_tokens = tokenize(previous)
        new_tokens = tokenize(current)
        matcher = difflib.SequenceMatcher(
            None,
            [self._comparable(token) for token in old_tokens],
            [self._comparable(token) for token in new_tokens],
            autojunk=False,
        )

        lines = []
        for opcode, i1, i2, j1, j2 in matcher.get_opcodes():
            if opcode in ("replace", "delete"):
                removed = "".join(old_tokens[i1:i2]).strip()
                if removed:
                    lines.append(f"{REMOVED_TAG} {removed}")
            if opcode in ("replace", "insert"):
                added = "".join(new_tokens[j1:j2]).strip()
                if added:
                    lines.append(f"{ADDED_TAG} {added}")
        return "\n".join(lines)

    @staticmethod
    def _comparable(token: str) -> str:
        # Whitespace differences alone never count as changes
        return " " if token.isspace() else token

    def is_numeric_churn(self, diff_text: str) -> bool:
        lines = diff_text.split("\n")
        numeric = [line for line in lines if _DIGITS.match(_TAG.sub("", line, count=1).strip())]
        return len(numeric) / len(lines) > self.numeric_ratio

    def is_fragmented(self, diff_text: str) -> bool:
        lines = diff_text.split("\n")
        return (
            len(lines) > self.fragment_min_lines
            and all(len(line) < self.fragment_max_line_length for line in lines)
        )


class UnifiedPatchStrategy(DiffStrategy):
    """Context-bounded line patch, used only when shorter than the snapshot."""

    name = "patch"

    def __init__(self, context_lines: Optional[int] = None):
        self.context_lines = context_lines if context_lines is not None else settings.diff.context_lines

    def compute(self, previous: str, current: str) -> Optional[str]:
        patch = "\n".join(
            difflib.unified_diff(
                previous.splitlines(),
                current.splitlines(),
                fromfile="previous",
                tofile="current",
                n=self.context_lines,
                lineterm="",
            )
        )
        if len(patch) < len(current):
            return patch
        return None


DIFF_STRATEGIES: dict[str, type[DiffStrategy]] = {
    WordDiffStrategy.name: WordDiffStrategy,
    UnifiedPatchStrategy.name: UnifiedPatchStrategy,
}


class SnapshotDiffer:
    """
    Selects the output for one request given the previous and current snapshots.

    No baseline means the full snapshot. Identical snapshots (or an empty diff)
    yield the no-change sentinel. A strategy failure is logged and answered
    with the full snapshot.
    """

    def __init__(self, strategy: Optional[DiffStrategy] = None, no_change_text: Optional[str] = None):
        self.strategy = strategy or create_strategy(settings.diff.strategy)
        self.no_change_text = no_change_text if no_change_text is not None else settings.diff.no_change_text

    def select(self, previous: Optional[str], current: str) -> SnapshotOutput:
        if previous is None:
            return SnapshotOutput(text=current, is_diff=False)
        if previous == current:
            return SnapshotOutput(text=self.no_change_text, is_diff=True)

        try:
            diff_text = self._compute(previous, current)
        except DiffComputationError as e:
            logger.warning(f"Diff computation failed, returning full snapshot: {e}", exception=e)
            return SnapshotOutput(text=current, is_diff=False)

        if diff_text is None:
            return SnapshotOutput(text=current, is_diff=False)
        if not diff_text:
            return SnapshotOutput(text=self.no_change_text, is_diff=True)
        return SnapshotOutput(text=diff_text, is_diff=True)

    def _compute(self, previous: str, current: str) -> Optional[str]:
        try:
            return self.strategy.compute(previous, current)
        except DiffComputationError:
            raise
        except Exception as e:
            raise DiffComputationError(f"{self.strategy.name} strategy failed: {e}") from e


def create_strategy(name: str, **params) -> DiffStrategy:
    """Instantiate a diff strategy by name (`word` or `patch`)."""
    try:
        strategy_cls = DIFF_STRATEGIES[name]
    except KeyError:
        raise ValueError(f"Unknown diff strategy '{name}', expected one of {sorted(DIFF_STRATEGIES)}") from None
    return strategy_cls(**params)


def create_differ(name: Optional[str] = None, no_change_text: Optional[str] = None, **params) -> SnapshotDiffer:
    """Build a SnapshotDiffer around the named strategy (settings default when omitted)."""
    return SnapshotDiffer(create_strategy(name or settings.diff.strategy, **params), no_change_text=no_change_text)


def select_snapshot_output(
    previous: Optional[str],
    current: str,
    strategy: Optional[str] = None
) -> SnapshotOutput:
    """Convenience wrapper: select the output with a freshly built differ."""
    return create_differ(strategy).select(previous, current)
