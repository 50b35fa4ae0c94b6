"""
Demo script for the pagetext components.
Runs the snapshot pipeline on static HTML, no browser required.
"""

import asyncio
from pathlib import Path

# Add project root to path
import sys
sys.path.insert(0, str(Path(__file__).parent))

from pagetext.dom.html_loader import load_html
from pagetext.snapshot.differ import create_differ
from pagetext.snapshot.service import SnapshotService, build_snapshot
from pagetext.utils.logger import snapshot_logger as logger


STORE_PAGE = """
<html>
<head><title>Demo Store</title><style>.x {{ color: red; }}</style></head>
<body>
    <div style="position: fixed" data-box="0,0,1280,40">Free shipping on all orders</div>
    <h1 data-box="20,60,400,32">Demo Store</h1>
    <a href="/" data-box="20,110,60,20">Home</a>
    <a href="/cart" data-box="100,110,60,20">Cart ({cart})</a>
    <p data-box="20,150,600,20">{status}</p>
    <table>
        <tr><td data-box="20,200,200,20">Keyboard</td><td data-box="240,200,80,20">$49</td>
            <td><button data-box="340,200,60,20">Add</button></td></tr>
        <tr><td data-box="20,224,200,20">Mouse</td><td data-box="240,224,80,20">$19</td>
            <td><button data-box="340,224,60,20" aria-label="Add mouse">+</button></td></tr>
    </table>
    <input type="search" placeholder="Search" aria-label="Search products" data-box="20,270,300,24">
    <input type="hidden" name="csrf" value="token">
    <p data-box="20,320,300,20">Visitors online: <span data-box="140,320,40,20">{visitors}</span></p>
</body>
</html>
"""


def render(cart: int = 0, status: str = "Welcome!", visitors: int = 100) -> str:
    return STORE_PAGE.format(cart=cart, status=status, visitors=visitors)


def demo_full_snapshot():
    """Show the linearized snapshot and its controls."""
    logger.banner("Full Snapshot")
    snapshot = build_snapshot(load_html(render()))
    logger.snapshot(snapshot.text, title=f"{snapshot.title} ({len(snapshot.controls)} controls)")
    logger.show_json({"controls": [control.to_dict() for control in snapshot.controls]}, "Controls")


async def demo_session(strategy: str):
    """Walk one session through a series of page states."""
    logger.banner(f"Session with '{strategy}' strategy")

    pages = [
        render(),
        render(cart=1, status="Keyboard added to cart. Continue shopping or check out."),
        render(cart=1, status="Keyboard added to cart. Continue shopping or check out.", visitors=101),
        render(cart=1, status="Keyboard added to cart. Continue shopping or check out.", visitors=101),
    ]
    states = iter(pages)

    async def source(session_id: str):
        return load_html(next(states))

    service = SnapshotService(source=source, differ=create_differ(strategy), show_summary=True)
    for step in range(len(pages)):
        result = await service.compute_snapshot("demo")
        logger.snapshot(
            result.text,
            title=f"Request {step + 1}: {'diff' if result.is_diff else 'full'}",
            is_diff=result.is_diff,
        )
    await service.end_session("demo")


def main():
    demo_full_snapshot()
    asyncio.run(demo_session("word"))
    asyncio.run(demo_session("patch"))


if __name__ == "__main__":
    main()
