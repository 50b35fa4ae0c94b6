"""
Exception types for the page snapshot engine.
"""

from typing import Optional


class PageTextError(Exception):
    """Base class for all snapshot engine errors."""


class AccessorError(PageTextError):
    """
    The live document could not be read.

    Raised when the page handle is closed or detached, a navigation is in
    flight, or the captured payload is malformed. The session baseline is
    never updated when this error escapes a snapshot computation.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class DiffComputationError(PageTextError):
    """A diff strategy failed on well-formed input."""
