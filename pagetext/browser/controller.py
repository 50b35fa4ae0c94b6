"""
Playwright Browser Controller for the page snapshot engine.
Owns the browser process and page, and captures the live document for snapshotting.
"""

from dataclasses import dataclass
from typing import Optional, Callable
from datetime import datetime
import traceback

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeout,
    Error as PlaywrightError,
)

from config.settings import settings
from pagetext.dom.capture import capture_document
from pagetext.dom.serialized import SerializedDocument
from pagetext.utils.errors import AccessorError
from pagetext.utils.logger import snapshot_logger as logger


@dataclass
class ActionResult:
    """Result of a browser action."""
    success: bool
    action: str
    message: str
    error: Optional[str] = None
    traceback: Optional[str] = None
    url_before: Optional[str] = None
    url_after: Optional[str] = None
    duration_ms: Optional[float] = None


class BrowserController:
    """
    Async Playwright browser controller.
    Actions report failures through ActionResult; document capture raises AccessorError.
    """

    def __init__(
        self,
        headless: bool = None,
        viewport_width: int = None,
        viewport_height: int = None,
        timeout_ms: int = None,
        slow_mo: int = None,
        user_agent: str = None
    ):
        # Use settings defaults if not specified
        self.headless = headless if headless is not None else settings.browser.headless
        self.viewport_width = viewport_width or settings.browser.viewport_width
        self.viewport_height = viewport_height or settings.browser.viewport_height
        self.timeout_ms = timeout_ms or settings.browser.timeout_ms
        self.slow_mo = slow_mo if slow_mo is not None else settings.browser.slow_mo
        self.user_agent = user_agent or settings.browser.user_agent

        # Playwright objects
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

        self._is_initialized = False

    async def initialize(self) -> ActionResult:
        """Launch the browser and open a page."""
        start_time = datetime.now()
        try:
            logger.info("Initializing Playwright browser...")

            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                slow_mo=self.slow_mo,
            )

            self._context = await self._browser.new_context(
                viewport={"width": self.viewport_width, "height": self.viewport_height},
                user_agent=self.user_agent,
                java_script_enabled=True,
            )
            self._context.set_default_timeout(self.timeout_ms)

            self._page = await self._context.new_page()
            self._is_initialized = True

            duration = (datetime.now() - start_time).total_seconds() * 1000
            logger.success("Browser initialized")

            return ActionResult(
                success=True,
                action="initialize",
                message="Browser initialized successfully",
                duration_ms=duration
            )

        except Exception as e:
            error_tb = traceback.format_exc()
            logger.error(f"Failed to initialize browser: {e}", exception=e)
            return ActionResult(
                success=False,
                action="initialize",
                message="Failed to initialize browser",
                error=str(e),
                traceback=error_tb
            )

    async def close(self):
        """Close the browser and cleanup resources."""
        try:
            if self._page:
                await self._page.close()
            if self._context:
                await self._context.close()
            if self._browser:
                await self._browser.close()
            if self._playwright:
                await self._playwright.stop()

            self._is_initialized = False
            logger.info("Browser closed")
        except PlaywrightError as e:
            logger.error(f"Error closing browser: {e}", exception=e)

    def _ensure_initialized(self):
        if not self._is_initialized or not self._page:
            raise RuntimeError("Browser not initialized. Call initialize() first.")

    def _wrap_action(self, action: str):
        """Decorator factory for wrapping actions with error handling."""
        def decorator(func: Callable):
            async def wrapper(*args, **kwargs) -> ActionResult:
                self._ensure_initialized()
                start_time = datetime.now()
                url_before = self._page.url

                try:
                    result = await func(*args, **kwargs)
                    duration = (datetime.now() - start_time).total_seconds() * 1000
                    return ActionResult(
                        success=True,
                        action=action,
                        message=result if isinstance(result, str) else "Action completed",
                        url_before=url_before,
                        url_after=self._page.url,
                        duration_ms=duration
                    )

                except PlaywrightTimeout as e:
                    logger.error(f"Timeout during {action}: {e}")
                    return ActionResult(
                        success=False,
                        action=action,
                        message="Timeout: action did not complete in time",
                        error=str(e),
                        traceback=traceback.format_exc(),
                        url_before=url_before
                    )

                except PlaywrightError as e:
                    logger.error(f"Playwright error during {action}: {e}")
                    return ActionResult(
                        success=False,
                        action=action,
                        message=f"Browser error: {str(e)[:200]}",
                        error=str(e),
                        traceback=traceback.format_exc(),
                        url_before=url_before
                    )

            return wrapper
        return decorator

    async def navigate(self, url: str, wait_until: str = None) -> ActionResult:
        """Navigate to a URL."""
        wait_until = wait_until or settings.browser.wait_until

        @self._wrap_action("navigate")
        async def _navigate():
            logger.action("navigate", {"url": url, "wait_until": wait_until})
            await self._page.goto(url, wait_until=wait_until)
            return f"Navigated to {url}"

        return await _navigate()

    async def capture_document(self) -> SerializedDocument:
        """
        Capture the current document for snapshotting.

        Raises:
            AccessorError: if the browser is not ready or the page cannot be read.
        """
        if not self.is_ready:
            raise AccessorError("Browser not initialized")
        return await capture_document(self._page)

    async def document_source(self, session_id: str) -> SerializedDocument:
        """SnapshotService source: every session reads this controller's page."""
        return await self.capture_document()

    @property
    def page(self) -> Optional[Page]:
        """Get the current page object for advanced operations."""
        return self._page

    @property
    def is_ready(self) -> bool:
        return self._is_initialized and self._page is not None
