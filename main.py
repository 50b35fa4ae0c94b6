"""
pagetext - Main Entry Point

Prints compact text snapshots of a web page, and diffs between successive
snapshots of the same session.

Usage:
    python main.py https://example.com
    python main.py --repeat 3 --interval 5 https://news.ycombinator.com
    python main.py --strategy patch --repeat 2 https://example.com
    python main.py --html page.html
"""

import asyncio
import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from config import settings
from pagetext.browser.controller import BrowserController
from pagetext.dom.html_loader import load_html
from pagetext.snapshot.differ import DIFF_STRATEGIES, create_differ
from pagetext.snapshot.service import SnapshotService
from pagetext.utils.errors import AccessorError
from pagetext.utils.logger import snapshot_logger as logger


async def run_snapshots(service: SnapshotService, session_id: str, repeat: int, interval: float) -> bool:
    """Compute `repeat` snapshots for one session, printing each result."""
    for attempt in range(1, repeat + 1):
        try:
            result = await service.compute_snapshot(session_id)
        except AccessorError as e:
            logger.error(f"Could not read the page: {e}", exception=e)
            return False

        title = f"Snapshot {attempt}/{repeat} ({'diff' if result.is_diff else 'full'})"
        logger.snapshot(result.text, title=title, is_diff=result.is_diff)

        if attempt < repeat:
            await asyncio.sleep(interval)

    await service.end_session(session_id)
    return True


async def run_live(url: str, args) -> bool:
    browser = BrowserController(headless=args.headless)
    try:
        result = await browser.initialize()
        if not result.success:
            logger.error(f"Failed to initialize browser: {result.error}")
            return False

        result = await browser.navigate(url)
        if not result.success:
            logger.error(f"Navigation failed: {result.error}")
            return False

        service = SnapshotService(
            source=browser.document_source,
            differ=create_differ(args.strategy),
            show_summary=args.summary,
        )
        return await run_snapshots(service, args.session, args.repeat, args.interval)

    finally:
        await browser.close()


async def run_offline(html_path: Path, args) -> bool:
    async def source(session_id: str):
        try:
            html = html_path.read_text(encoding="utf-8")
        except OSError as e:
            raise AccessorError(f"Cannot read {html_path}: {e}", cause=e) from e
        return load_html(html, url=html_path.resolve().as_uri())

    service = SnapshotService(
        source=source,
        differ=create_differ(args.strategy),
        show_summary=args.summary,
    )
    return await run_snapshots(service, args.session, args.repeat, args.interval)


def main():
    """Main entry point with argument parsing."""
    parser = argparse.ArgumentParser(
        description="pagetext - text snapshots and diffs of web pages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py https://example.com
  python main.py --repeat 3 --interval 5 https://news.ycombinator.com
  python main.py --strategy patch --repeat 2 --summary https://example.com
  python main.py --html path/to/page.html
        """
    )

    parser.add_argument("url", nargs="?", default=None, help="Page to snapshot")

    parser.add_argument(
        "--html",
        type=Path,
        default=None,
        help="Snapshot a static HTML file (geometry from data-box attributes) instead of a live page"
    )

    parser.add_argument(
        "--strategy", "-s",
        choices=sorted(DIFF_STRATEGIES),
        default=settings.diff.strategy,
        help=f"Diff strategy (default: {settings.diff.strategy})"
    )

    parser.add_argument(
        "--repeat", "-n",
        type=int,
        default=1,
        help="Number of snapshots to take in the session (default: 1)"
    )

    parser.add_argument(
        "--interval", "-i",
        type=float,
        default=2.0,
        help="Seconds between snapshots (default: 2)"
    )

    parser.add_argument("--session", default="cli", help="Session id (default: cli)")

    parser.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=settings.browser.headless,
        help="Run browser in headless mode"
    )

    parser.add_argument("--summary", action="store_true", help="Print a summary table per snapshot")

    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    if not args.url and not args.html:
        parser.error("a URL or --html FILE is required")
    if args.repeat < 1:
        parser.error("--repeat must be at least 1")

    logger.configure(
        level="DEBUG" if args.debug else settings.logging.level,
        log_to_file=settings.logging.log_to_file,
        log_dir=settings.logging.log_dir,
    )
    logger.banner("pagetext")

    if args.html:
        ok = asyncio.run(run_offline(args.html, args))
    else:
        ok = asyncio.run(run_live(args.url, args))

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
