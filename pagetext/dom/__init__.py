"""Read-only document access: interface, serialized payloads and loaders."""

from .document import BoundingBox, ComputedStyle, DocumentAccessor, NodeHandle, NodeKind
from .serialized import DocumentPayload, NodePayload, SerializedDocument
from .html_loader import load_html

__all__ = [
    "BoundingBox",
    "ComputedStyle",
    "DocumentAccessor",
    "NodeHandle",
    "NodeKind",
    "DocumentPayload",
    "NodePayload",
    "SerializedDocument",
    "load_html",
]
