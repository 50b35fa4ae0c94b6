"""
DOM Scanner.
Enumerates the interactive controls of a document and resolves their accessible names.
"""

from pagetext.dom.document import DocumentAccessor, NodeHandle
from pagetext.snapshot.models import InteractiveControl
from pagetext.utils.logger import snapshot_logger as logger


# Natively interactive tags. Tags listed here still need the attribute checks in matches().
INTERACTIVE_TAGS = (
    "a", "button", "input", "select", "textarea", "summary", "video", "audio"
)

# ARIA roles that make any element interactive
INTERACTIVE_ROLES = (
    "button",
    "checkbox",
    "combobox",
    "gridcell",
    "link",
    "listbox",
    "menuitem",
    "menuitemcheckbox",
    "menuitemradio",
    "option",
    "radio",
    "searchbox",
    "slider",
    "spinbutton",
    "switch",
    "tab",
    "textbox",
    "treeitem",
)

# Elements whose current value can name them
VALUE_NAMED_TAGS = {"input", "textarea", "select"}


def matches(document: DocumentAccessor, handle: NodeHandle) -> bool:
    """True if the element is a control candidate, by tag or by role."""
    if not document.is_element(handle):
        return False

    role = document.get_attribute(handle, "role")
    if role in INTERACTIVE_ROLES:
        return True

    tag = document.tag_name(handle)
    if tag == "a":
        return document.has_attribute(handle, "href")
    if tag == "input":
        input_type = document.get_attribute(handle, "type") or ""
        return input_type.lower() != "hidden"
    if tag in ("video", "audio"):
        return document.has_attribute(handle, "controls")
    return tag in ("button", "select", "textarea", "summary")


def is_available(document: DocumentAccessor, handle: NodeHandle) -> bool:
    """False for controls hidden from assistive technology, disabled, inert or not displayed."""
    if document.get_attribute(handle, "aria-hidden") == "true":
        return False
    if document.has_attribute(handle, "disabled") or document.has_attribute(handle, "inert"):
        return False
    return not document.computed_style(handle).is_hidden


def accessible_name(document: DocumentAccessor, handle: NodeHandle) -> str:
    """
    Resolve an element's accessible name. First non-empty wins:
    aria-label, aria-labelledby targets, title, current value (form fields),
    then the element's own direct text.
    """
    label = document.get_attribute(handle, "aria-label")
    if label:
        return label

    labelled_by = document.get_attribute(handle, "aria-labelledby")
    if labelled_by:
        texts = []
        for element_id in labelled_by.split():
            target = document.element_by_id(element_id)
            if target is None:
                continue
            text = document.text_content(target).strip()
            if text:
                texts.append(text)
        if texts:
            return " ".join(texts)

    title = document.get_attribute(handle, "title")
    if title:
        return title

    if document.tag_name(handle) in VALUE_NAMED_TAGS:
        value = document.get_attribute(handle, "value") or document.value(handle)
        if value:
            return value

    direct = [
        document.text_content(child).strip()
        for child in document.children(handle)
        if not document.is_element(child)
    ]
    return " ".join(text for text in direct if text)


class DOMScanner:
    """
    Finds interactive controls in document order.

    A structural query over tags and roles is followed by a full tree walk to
    pick up anything the query missed; duplicates are dropped by handle. Each
    surviving control's index is its position in that combined order.
    """

    def scan(self, document: DocumentAccessor) -> list[InteractiveControl]:
        ordered = self.find_elements(document)
        controls = [self._build_control(document, index, handle) for index, handle in enumerate(ordered)]
        logger.debug(f"Scanner found {len(controls)} interactive controls")
        return controls

    def find_elements(self, document: DocumentAccessor) -> list[NodeHandle]:
        found: list[NodeHandle] = []
        seen: set[NodeHandle] = set()

        for handle in document.query(INTERACTIVE_TAGS, INTERACTIVE_ROLES):
            if handle not in seen and matches(document, handle) and is_available(document, handle):
                seen.add(handle)
                found.append(handle)

        for handle in document.walk():
            if handle in seen or not document.is_element(handle):
                continue
            if matches(document, handle) and is_available(document, handle):
                seen.add(handle)
                found.append(handle)

        return found

    def _build_control(
        self,
        document: DocumentAccessor,
        index: int,
        handle: NodeHandle
    ) -> InteractiveControl:
        return InteractiveControl(
            index=index,
            role=document.get_attribute(handle, "role") or document.tag_name(handle),
            accessible_name=accessible_name(document, handle),
            bounding_box=document.bounding_box(handle),
            handle=handle,
        )

