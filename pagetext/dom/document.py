"""
Read-only document accessor interface.

The snapshot engine never holds live DOM objects. Every query goes through a
DocumentAccessor using integer node handles that are only meaningful for the
accessor that issued them, so nothing is carried across snapshot requests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional


NodeHandle = int


class NodeKind(str, Enum):
    """Kinds of nodes exposed by an accessor."""
    ELEMENT = "element"
    TEXT = "text"


@dataclass(frozen=True)
class BoundingBox:
    """Document-relative rectangle (scroll offset already applied)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class ComputedStyle:
    """The subset of computed style the engine looks at."""
    display: str = "inline"
    visibility: str = "visible"
    position: str = "static"

    @property
    def is_hidden(self) -> bool:
        return self.display == "none" or self.visibility == "hidden"

    @property
    def is_out_of_flow(self) -> bool:
        return self.position in ("fixed", "absolute")


class DocumentAccessor(ABC):
    """
    Read-only view of one document state.

    Implementations must return handles in document order from walk() and
    query(), and must raise AccessorError for handles they did not issue.
    """

    @abstractmethod
    def root(self) -> NodeHandle:
        """Handle of the content root (the body element)."""

    @abstractmethod
    def kind(self, handle: NodeHandle) -> NodeKind:
        ...

    @abstractmethod
    def parent(self, handle: NodeHandle) -> Optional[NodeHandle]:
        ...

    @abstractmethod
    def children(self, handle: NodeHandle) -> list[NodeHandle]:
        ...

    @abstractmethod
    def tag_name(self, handle: NodeHandle) -> str:
        """Lower-case tag name; empty for text nodes."""

    @abstractmethod
    def get_attribute(self, handle: NodeHandle, name: str) -> Optional[str]:
        ...

    @abstractmethod
    def computed_style(self, handle: NodeHandle) -> ComputedStyle:
        ...

    @abstractmethod
    def bounding_box(self, handle: NodeHandle) -> BoundingBox:
        ...

    @abstractmethod
    def text_content(self, handle: NodeHandle) -> str:
        """Concatenated text of the node and all its descendants."""

    @abstractmethod
    def value(self, handle: NodeHandle) -> Optional[str]:
        """Current form value for input-like elements, else None."""

    @abstractmethod
    def element_by_id(self, element_id: str) -> Optional[NodeHandle]:
        ...

    @abstractmethod
    def query(self, tags: Iterable[str], roles: Iterable[str]) -> list[NodeHandle]:
        """Elements whose tag is in `tags` or whose role attribute is in `roles`, in document order."""

    def has_attribute(self, handle: NodeHandle, name: str) -> bool:
        return self.get_attribute(handle, name) is not None

    def is_element(self, handle: NodeHandle) -> bool:
        return self.kind(handle) is NodeKind.ELEMENT

    def ancestors(self, handle: NodeHandle) -> Iterator[NodeHandle]:
        """Parent, grandparent, ... up to the document element."""
        current = self.parent(handle)
        while current is not None:
            yield current
            current = self.parent(current)

    def walk(
        self,
        start: Optional[NodeHandle] = None,
        skip_tags: Iterable[str] = ()
    ) -> Iterator[NodeHandle]:
        """
        Pre-order traversal below `start` (exclusive), like a TreeWalker.

        Elements whose tag is in `skip_tags` are rejected together with their
        whole subtree.
        """
        skip = frozenset(skip_tags)
        start = self.root() if start is None else start
        stack = list(reversed(self.children(start)))
        while stack:
            handle = stack.pop()
            if skip and self.is_element(handle) and self.tag_name(handle) in skip:
                continue
            yield handle
            stack.extend(reversed(self.children(handle)))
