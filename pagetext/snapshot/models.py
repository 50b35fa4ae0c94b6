"""
Data model for page snapshots.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pagetext.dom.document import BoundingBox, NodeHandle


@dataclass(frozen=True)
class InteractiveControl:
    """A control found by the scanner. `index` is only valid within its snapshot."""
    index: int
    role: str
    accessible_name: str
    bounding_box: BoundingBox
    handle: NodeHandle

    @property
    def placeholder(self) -> str:
        return f"[{self.index}]{{{self.role}}}({self.accessible_name})"

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "role": self.role,
            "name": self.accessible_name,
            "box": [
                self.bounding_box.x,
                self.bounding_box.y,
                self.bounding_box.width,
                self.bounding_box.height,
            ],
        }


@dataclass(frozen=True)
class TextFragment:
    """A visible run of text."""
    content: str
    bounding_box: BoundingBox


class NodeType(str, Enum):
    TEXT = "text"
    CONTROL = "control"


@dataclass(frozen=True)
class PositionedNode:
    """A text fragment or control placeholder placed on the page."""
    item: Union[TextFragment, InteractiveControl]

    @property
    def type(self) -> NodeType:
        return NodeType.CONTROL if isinstance(self.item, InteractiveControl) else NodeType.TEXT

    @property
    def box(self) -> BoundingBox:
        return self.item.bounding_box

    @property
    def x(self) -> float:
        return self.box.x

    @property
    def y(self) -> float:
        return self.box.y

    @property
    def sort_key(self) -> tuple[float, float]:
        return self.y, self.x

    def render(self) -> str:
        if self.type is NodeType.CONTROL:
            return self.item.placeholder
        return self.item.content


@dataclass
class PageSnapshot:
    """Result of scanning and linearizing one document state."""
    text: str
    controls: list[InteractiveControl]
    nodes: list[PositionedNode] = field(default_factory=list)
    url: str = ""
    title: str = ""
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def get_control(self, index: int) -> Optional[InteractiveControl]:
        if 0 <= index < len(self.controls):
            return self.controls[index]
        return None


@dataclass(frozen=True)
class SnapshotOutput:
    """What the differ selected: either the full snapshot or a diff against the baseline."""
    text: str
    is_diff: bool


@dataclass
class SnapshotResult:
    """Response of one snapshot request."""
    session_id: str
    text: str
    is_diff: bool
    full_length: int
    control_count: int
    url: str = ""

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "text": self.text,
            "is_diff": self.is_diff,
            "full_length": self.full_length,
            "control_count": self.control_count,
            "url": self.url,
        }


@dataclass
class SessionSnapshotState:
    """The single diff baseline remembered for a session."""
    session_id: str
    last_full_snapshot: Optional[str] = None
    updated_at: Optional[datetime] = None
