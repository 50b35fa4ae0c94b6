"""
Live document capture through Playwright.

A single page.evaluate() call serializes the current document into the flat
payload understood by SerializedDocument: tags, attributes, the computed
style properties the engine needs, document-relative (scroll-aware) boxes for
elements and text ranges, and live form values.
"""

from playwright.async_api import Page, Error as PlaywrightError

from pagetext.dom.serialized import SerializedDocument
from pagetext.utils.errors import AccessorError
from pagetext.utils.logger import snapshot_logger as logger


CAPTURE_SCRIPT = r"""() => {
    const SKIP_CONTENT = new Set(['script', 'style', 'head', 'template', 'noscript']);
    const nodes = [];
    const scrollX = window.pageXOffset;
    const scrollY = window.pageYOffset;

    const toBox = (rect) => [rect.left + scrollX, rect.top + scrollY, rect.width, rect.height];

    const textBox = (node) => {
        const range = document.createRange();
        range.selectNodeContents(node);
        return toBox(range.getBoundingClientRect());
    };

    const formValue = (el) => {
        const tag = el.tagName.toLowerCase();
        if (tag === 'input' || tag === 'textarea' || tag === 'select') {
            return el.value == null ? '' : String(el.value);
        }
        return null;
    };

    const visit = (node, parentId) => {
        const id = nodes.length;
        if (node.nodeType === Node.TEXT_NODE) {
            nodes.push({ id, type: 'text', parent: parentId, text: node.textContent, box: textBox(node) });
            return id;
        }
        if (node.nodeType !== Node.ELEMENT_NODE) {
            return null;
        }
        const style = window.getComputedStyle(node);
        const attrs = {};
        for (const attr of node.attributes) {
            attrs[attr.name] = attr.value;
        }
        const entry = {
            id,
            type: 'element',
            parent: parentId,
            children: [],
            tag: node.tagName.toLowerCase(),
            attrs,
            style: { display: style.display, visibility: style.visibility, position: style.position },
            box: toBox(node.getBoundingClientRect()),
            value: formValue(node),
        };
        nodes.push(entry);
        if (!SKIP_CONTENT.has(entry.tag)) {
            for (const child of node.childNodes) {
                const childId = visit(child, id);
                if (childId !== null) entry.children.push(childId);
            }
        }
        return id;
    };

    if (!document.documentElement || !document.body) {
        throw new Error('Document has no body');
    }
    visit(document.documentElement, null);
    const body = nodes.find((n) => n.type === 'element' && n.tag === 'body');
    return { url: location.href, title: document.title, root: body.id, nodes };
}"""


async def capture_document(page: Page) -> SerializedDocument:
    """
    Serialize the page's current document.

    Raises:
        AccessorError: if the page is closed, the frame is detached or a
            navigation destroyed the execution context mid-capture.
    """
    if page.is_closed():
        raise AccessorError("Page is closed")

    try:
        payload = await page.evaluate(CAPTURE_SCRIPT)
    except PlaywrightError as e:
        raise AccessorError(f"Failed to read document: {e}", cause=e) from e

    document = SerializedDocument.from_payload(payload)
    logger.debug(f"Captured {len(document)} nodes from {document.url}")
    return document
