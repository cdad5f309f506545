"""Full-page screenshot with the baseline grid drawn on top."""

import logging
from pathlib import Path
from typing import Union

from playwright.async_api import Page


logger = logging.getLogger(__name__)

OVERLAY_ID = "__baseline_grid_overlay"

ADD_OVERLAY_JS = """({overlayId, gridPx, offsetY}) => {
    const overlay = document.createElement('div');
    overlay.id = overlayId;
    overlay.style.cssText = [
        'position: absolute',
        'top: 0',
        'left: 0',
        'width: 100%',
        `height: ${document.documentElement.scrollHeight}px`,
        'pointer-events: none',
        'z-index: 99999',
        `background: repeating-linear-gradient(to bottom, rgba(255, 0, 0, 0.2) 0px, rgba(255, 0, 0, 0.2) 1px, transparent 1px, transparent ${gridPx}px)`,
        `background-position-y: ${offsetY}px`,
    ].join(';');
    (document.body || document.documentElement).appendChild(overlay);
}"""

REMOVE_OVERLAY_JS = """(overlayId) => {
    const overlay = document.getElementById(overlayId);
    if (overlay) overlay.remove();
}"""


def first_line_offset(grid_px: float, origin_baseline: float) -> float:
    """Y of the first grid line at or below the top of the document."""
    return origin_baseline % grid_px


async def capture_with_overlay(
    page: Page,
    grid_px: float,
    origin_baseline: float,
    path: Union[str, Path],
) -> Path:
    path = Path(path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)

    offset_y = first_line_offset(grid_px, origin_baseline)
    await page.evaluate(
        ADD_OVERLAY_JS,
        {"overlayId": OVERLAY_ID, "gridPx": grid_px, "offsetY": offset_y},
    )
    try:
        await page.screenshot(path=str(path), full_page=True)
    finally:
        await page.evaluate(REMOVE_OVERLAY_JS, OVERLAY_ID)
    logger.debug("Grid overlay screenshot written to %s (first line at y=%s)", path, offset_y)
    return path
