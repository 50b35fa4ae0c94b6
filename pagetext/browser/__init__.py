"""Browser automation package."""

from .controller import BrowserController, ActionResult

__all__ = ["BrowserController", "ActionResult"]
