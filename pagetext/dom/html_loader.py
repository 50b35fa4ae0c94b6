"""
Static HTML loader.

Builds a SerializedDocument from an HTML string with BeautifulSoup so the
snapshot engine can run without a browser. There is no layout engine here:
geometry comes from a `data-box="x,y,width,height"` attribute and computed
style from inline `style` declarations, the `hidden` attribute and the tags a
browser never renders.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from pagetext.dom.document import NodeKind
from pagetext.dom.serialized import DocumentPayload, NodePayload, SerializedDocument, StylePayload
from pagetext.utils.errors import AccessorError


BOX_ATTRIBUTE = "data-box"

# Tags whose computed display is always none
NON_RENDERED_TAGS = {
    "head", "title", "script", "style", "meta", "link", "template", "noscript", "base"
}

_DECLARATION = re.compile(r"^\s*([\w-]+)\s*:\s*(.+?)\s*(?:!important)?\s*$", re.I)


def parse_box(value: Optional[str]) -> Optional[tuple[float, float, float, float]]:
    """Parse a `data-box` value. Returns None when absent or malformed."""
    if not value:
        return None
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 4:
        return None
    try:
        x, y, width, height = (float(part) for part in parts)
    except ValueError:
        return None
    return x, y, width, height


def parse_inline_style(style: Optional[str]) -> dict[str, str]:
    """Parse `prop: value; ...` into a dict of lower-case properties."""
    declarations = {}
    if not style:
        return declarations
    for chunk in style.split(";"):
        match = _DECLARATION.match(chunk)
        if match:
            declarations[match.group(1).lower()] = match.group(2).lower()
    return declarations


class HtmlDocumentBuilder:
    """Converts a parsed soup into a flat DocumentPayload."""

    def __init__(self, url: str = "", title: str = ""):
        self.url = url
        self.title = title
        self._nodes: list[NodePayload] = []

    def build(self, html: str) -> SerializedDocument:
        soup = BeautifulSoup(html, "lxml")
        self._nodes = []

        document_element = soup.find("html")
        if document_element is None:
            document_element = soup.new_tag("html")
            document_element.append(soup.new_tag("body"))
        if document_element.find("body") is None:
            document_element.append(soup.new_tag("body"))

        self._add_subtree(document_element)

        body = next(node for node in self._nodes if node.type is NodeKind.ELEMENT and node.tag == "body")
        title = self.title
        if not title and soup.title is not None:
            title = soup.title.get_text(strip=True)

        try:
            payload = DocumentPayload(url=self.url, title=title, root=body.id, nodes=self._nodes)
        except ValueError as e:
            raise AccessorError(f"Could not build document from HTML: {e}", cause=e) from e
        return SerializedDocument(payload)

    def _add_subtree(self, top: Tag):
        # (element, parent id, inherited visibility, nearest box)
        stack: list[tuple[object, Optional[int], str, tuple[float, float, float, float]]] = [
            (top, None, "visible", (0.0, 0.0, 0.0, 0.0))
        ]
        while stack:
            item, parent_id, inherited_visibility, inherited_box = stack.pop()
            node_id = len(self._nodes)

            if isinstance(item, Tag):
                node = self._element_node(item, node_id, parent_id, inherited_visibility)
                own_box = parse_box(item.get(BOX_ATTRIBUTE))
                node.box = own_box or (0.0, 0.0, 0.0, 0.0)
                child_box = own_box or inherited_box
                children = [
                    child for child in item.children
                    if isinstance(child, Tag)
                    or (isinstance(child, NavigableString) and not isinstance(child, PreformattedString))
                ]
                for child in reversed(children):
                    stack.append((child, node_id, node.style.visibility, child_box))
            else:
                node = NodePayload(
                    id=node_id,
                    type=NodeKind.TEXT,
                    parent=parent_id,
                    text=str(item),
                    box=inherited_box,
                )

            self._nodes.append(node)
            if parent_id is not None:
                self._nodes[parent_id].children.append(node_id)

    def _element_node(
        self,
        element: Tag,
        node_id: int,
        parent_id: Optional[int],
        inherited_visibility: str
    ) -> NodePayload:
        attrs = {}
        for key, value in element.attrs.items():
            if isinstance(value, list):
                value = " ".join(value)
            attrs[key] = str(value)

        declarations = parse_inline_style(attrs.get("style"))
        display = declarations.get("display", "inline")
        if element.name in NON_RENDERED_TAGS or "hidden" in attrs:
            display = "none"

        return NodePayload(
            id=node_id,
            type=NodeKind.ELEMENT,
            parent=parent_id,
            tag=element.name,
            attrs=attrs,
            style=StylePayload(
                display=display,
                visibility=declarations.get("visibility", inherited_visibility),
                position=declarations.get("position", "static"),
            ),
            value=self._form_value(element),
        )

    @staticmethod
    def _form_value(element: Tag) -> Optional[str]:
        if element.name == "input":
            return str(element.get("value", ""))
        if element.name == "textarea":
            return element.get_text()
        if element.name == "select":
            options = element.find_all("option")
            if not options:
                return ""
            selected = next((option for option in options if option.has_attr("selected")), options[0])
            return str(selected.get("value", selected.get_text(strip=True)))
        return None


def load_html(html: str, url: str = "", title: str = "") -> SerializedDocument:
    """Parse static HTML into a document accessor."""
    return HtmlDocumentBuilder(url=url, title=title).build(html)
