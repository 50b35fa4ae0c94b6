"""
Layout Linearizer.
Merges visible text and scanned controls into one text blob ordered by on-screen position.
"""

import re
from functools import cmp_to_key
from typing import Optional

from config.settings import settings
from pagetext.dom.document import DocumentAccessor, NodeHandle, NodeKind
from pagetext.snapshot.models import InteractiveControl, PositionedNode, TextFragment
from pagetext.snapshot.scanner import matches
from pagetext.utils.logger import snapshot_logger as logger


# Subtrees never walked for text or controls
EXCLUDED_TAGS = ("script", "style", "head", "meta", "link")


class LayoutLinearizer:
    """
    Approximates reading order from geometry.

    Items closer than `row_threshold` vertically share a row and are ordered
    by x. A new output line starts on a vertical gap above the threshold, or
    when an item starts more than `horizontal_backtrack` left of the previous
    item's right edge (wraparound, e.g. the next table row).

    Text under fixed or absolutely positioned ancestors is dropped as overlay
    chrome; text inside controls is represented by the control placeholder.
    """

    def __init__(
        self,
        line_height: Optional[float] = None,
        newline_gap_factor: Optional[float] = None,
        horizontal_backtrack: Optional[float] = None
    ):
        line_height = line_height if line_height is not None else settings.layout.line_height
        factor = newline_gap_factor if newline_gap_factor is not None else settings.layout.newline_gap_factor
        self.row_threshold = line_height * factor
        self.horizontal_backtrack = (
            horizontal_backtrack if horizontal_backtrack is not None else settings.layout.horizontal_backtrack
        )

    def linearize(
        self,
        document: DocumentAccessor,
        controls: list[InteractiveControl]
    ) -> tuple[str, list[PositionedNode]]:
        """Return the snapshot text and the positioned nodes it was rendered from."""
        nodes = self.collect(document, controls)
        ordered = self.sort(nodes)
        lines = self.group_lines(ordered)
        text = self.render(lines)
        logger.debug(f"Linearized {len(ordered)} nodes into {len(lines)} lines ({len(text)} chars)")
        return text, ordered

    def collect(
        self,
        document: DocumentAccessor,
        controls: list[InteractiveControl]
    ) -> list[PositionedNode]:
        by_handle = {control.handle: control for control in controls}
        processed: set[NodeHandle] = set()
        nodes: list[PositionedNode] = []

        for handle in document.walk(skip_tags=EXCLUDED_TAGS):
            kind = document.kind(handle)

            if kind is NodeKind.TEXT:
                fragment = self._text_fragment(document, handle, processed)
                if fragment is not None:
                    nodes.append(PositionedNode(fragment))
                continue

            control = by_handle.get(handle)
            if control is None or handle in processed:
                continue
            processed.add(handle)
            if control.accessible_name and not control.bounding_box.is_empty:
                nodes.append(PositionedNode(control))

        return nodes

    def _text_fragment(
        self,
        document: DocumentAccessor,
        handle: NodeHandle,
        processed: set[NodeHandle]
    ) -> Optional[TextFragment]:
        content = document.text_content(handle).strip()
        if not content:
            return None

        for ancestor in document.ancestors(handle):
            style = document.computed_style(ancestor)
            if (
                style.is_hidden
                or style.is_out_of_flow
                or document.get_attribute(ancestor, "aria-hidden") == "true"
            ):
                return None
            if ancestor in processed or matches(document, ancestor):
                return None

        box = document.bounding_box(handle)
        if box.is_empty:
            return None
        return TextFragment(content=content, bounding_box=box)

    def _compare(self, a: PositionedNode, b: PositionedNode) -> float:
        y_diff = a.y - b.y
        if abs(y_diff) < self.row_threshold:
            return a.x - b.x
        return y_diff

    def sort(self, nodes: list[PositionedNode]) -> list[PositionedNode]:
        return sorted(nodes, key=cmp_to_key(self._compare))

    def group_lines(self, ordered: list[PositionedNode]) -> list[list[PositionedNode]]:
        lines: list[list[PositionedNode]] = []
        current: list[PositionedNode] = []
        last_y = 0.0
        last_right = 0.0

        for node in ordered:
            if current and (
                abs(node.y - last_y) > self.row_threshold
                or node.x < last_right - self.horizontal_backtrack
            ):
                lines.append(current)
                current = []
            current.append(node)
            last_y = node.y
            last_right = node.box.right

        if current:
            lines.append(current)

        return [sorted(line, key=lambda node: node.x) for line in lines]

    @staticmethod
    def render(lines: list[list[PositionedNode]]) -> str:
        text = "\n".join(" ".join(node.render() for node in line) for line in lines)
        text = re.sub(r"\n\s+", "\n", text)
        text = re.sub(r"\n{3,}", "\n\n", text)
        return text.strip()
