"""
Accessor over a serialized document payload.

The live page is captured in one evaluation into a flat list of nodes in
document order (see capture.py); SerializedDocument answers accessor queries
against that payload without further round-trips to the browser.
"""

from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from pagetext.dom.document import (
    BoundingBox,
    ComputedStyle,
    DocumentAccessor,
    NodeHandle,
    NodeKind,
)
from pagetext.utils.errors import AccessorError


class StylePayload(BaseModel):
    display: str = "inline"
    visibility: str = "visible"
    position: str = "static"


class NodePayload(BaseModel):
    """One node as serialized by the capture script."""
    id: int
    type: NodeKind
    parent: Optional[int] = None
    children: list[int] = Field(default_factory=list)
    tag: str = ""
    attrs: dict[str, str] = Field(default_factory=dict)
    style: StylePayload = Field(default_factory=StylePayload)
    box: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    text: str = ""
    value: Optional[str] = None


def check_acyclic(by_id: dict[int, NodePayload]):
    # Every parent chain must end at a node without a parent
    settled: set[int] = set()
    for node_id in by_id:
        seen: set[int] = set()
        current = node_id
        while current is not None and current not in settled:
            if current in seen:
                raise ValueError(f"parent links of node {node_id} form a cycle")
            seen.add(current)
            current = by_id[current].parent
        settled.update(seen)


class DocumentPayload(BaseModel):
    """A whole captured document. `nodes` are in document (pre-)order."""
    url: str = ""
    title: str = ""
    root: int
    nodes: list[NodePayload]

    @model_validator(mode="after")
    def _check_references(self) -> "DocumentPayload":
        by_id = {node.id: node for node in self.nodes}
        if len(by_id) != len(self.nodes):
            raise ValueError("duplicate node ids")
        if self.root not in by_id:
            raise ValueError(f"root {self.root} is not a node")
        for node in self.nodes:
            if node.parent is not None:
                if node.parent not in by_id:
                    raise ValueError(f"node {node.id} has unknown parent {node.parent}")
                if node.id not in by_id[node.parent].children:
                    raise ValueError(f"node {node.id} is missing from the children of its parent {node.parent}")
            missing = [child for child in node.children if child not in by_id]
            if missing:
                raise ValueError(f"node {node.id} has unknown children {missing}")
            if len(set(node.children)) != len(node.children):
                raise ValueError(f"node {node.id} lists a child twice")
            for child in node.children:
                if by_id[child].parent != node.id:
                    raise ValueError(f"child {child} of node {node.id} has parent {by_id[child].parent}")
        check_acyclic(by_id)
        return self


class SerializedDocument(DocumentAccessor):
    """DocumentAccessor backed by a validated DocumentPayload."""

    def __init__(self, payload: DocumentPayload):
        self.payload = payload
        self._nodes: dict[int, NodePayload] = {node.id: node for node in payload.nodes}
        self._ids: dict[str, int] = {}
        for node in payload.nodes:
            element_id = node.attrs.get("id")
            if node.type is NodeKind.ELEMENT and element_id and element_id not in self._ids:
                self._ids[element_id] = node.id

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "SerializedDocument":
        """Validate a raw payload (as returned by page.evaluate)."""
        if not isinstance(data, dict):
            raise AccessorError(f"Document payload must be an object, got {type(data).__name__}")
        try:
            payload = DocumentPayload.model_validate(data)
        except ValidationError as e:
            raise AccessorError(f"Malformed document payload: {e}", cause=e) from e
        return cls(payload)

    @property
    def url(self) -> str:
        return self.payload.url

    @property
    def title(self) -> str:
        return self.payload.title

    def __len__(self) -> int:
        return len(self._nodes)

    def _node(self, handle: NodeHandle) -> NodePayload:
        try:
            return self._nodes[handle]
        except KeyError:
            raise AccessorError(f"Unknown node handle: {handle}") from None

    def root(self) -> NodeHandle:
        return self.payload.root

    def kind(self, handle: NodeHandle) -> NodeKind:
        return self._node(handle).type

    def parent(self, handle: NodeHandle) -> Optional[NodeHandle]:
        return self._node(handle).parent

    def children(self, handle: NodeHandle) -> list[NodeHandle]:
        return list(self._node(handle).children)

    def tag_name(self, handle: NodeHandle) -> str:
        return self._node(handle).tag.lower()

    def get_attribute(self, handle: NodeHandle, name: str) -> Optional[str]:
        return self._node(handle).attrs.get(name)

    def computed_style(self, handle: NodeHandle) -> ComputedStyle:
        style = self._node(handle).style
        return ComputedStyle(
            display=style.display,
            visibility=style.visibility,
            position=style.position,
        )

    def bounding_box(self, handle: NodeHandle) -> BoundingBox:
        return BoundingBox(*self._node(handle).box)

    def text_content(self, handle: NodeHandle) -> str:
        node = self._node(handle)
        if node.type is NodeKind.TEXT:
            return node.text
        parts = []
        stack = list(reversed(node.children))
        while stack:
            child = self._node(stack.pop())
            if child.type is NodeKind.TEXT:
                parts.append(child.text)
            else:
                stack.extend(reversed(child.children))
        return "".join(parts)

    def value(self, handle: NodeHandle) -> Optional[str]:
        return self._node(handle).value

    def element_by_id(self, element_id: str) -> Optional[NodeHandle]:
        return self._ids.get(element_id)

    def query(self, tags: Iterable[str], roles: Iterable[str]) -> list[NodeHandle]:
        tag_set = {tag.lower() for tag in tags}
        role_set = set(roles)
        return [
            node.id
            for node in self.payload.nodes
            if node.type is NodeKind.ELEMENT
            and (node.tag.lower() in tag_set or node.attrs.get("role") in role_set)
        ]
