#!/usr/bin/env python3
"""
Baseline Grid Check
Loads a page in headless Chromium and reports how far each text element's
first-line baseline sits from a vertical baseline grid.
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from playwright.async_api import Error as PlaywrightError, async_playwright

from grid_measure import (
    DEFAULT_GRID_PROPERTY,
    DEFAULT_SELECTORS,
    MeasureResult,
    MeasurementError,
    measure,
)
from grid_overlay import capture_with_overlay
from grid_report import exit_code, format_json, format_table
from page_probe import PlaywrightPageProbe


logger = logging.getLogger("check_grid")

DEFAULT_VIEWPORT = "1280x900"
DEFAULT_TOLERANCE = 1.0
DEFAULT_TIMEOUT_MS = 60000


@dataclass
class CheckConfig:
    url: str
    grid: Optional[float] = None
    origin: Optional[str] = None
    selectors: str = DEFAULT_SELECTORS
    grid_property: str = DEFAULT_GRID_PROPERTY
    screenshot: Optional[str] = None
    auth: Optional[Tuple[str, str]] = None
    viewport: Optional[Dict[str, int]] = None
    tolerance: float = DEFAULT_TOLERANCE
    timeout_ms: float = DEFAULT_TIMEOUT_MS
    json: bool = False

    def __post_init__(self):
        if self.viewport is None:
            self.viewport = parse_viewport(DEFAULT_VIEWPORT)


def parse_viewport(raw: str) -> Dict[str, int]:
    if "x" not in (raw or "").lower():
        raise ValueError(f"viewport must look like WIDTHxHEIGHT, got {raw!r}")
    width_str, height_str = raw.lower().split("x", 1)
    width, height = int(width_str), int(height_str)
    if width <= 0 or height <= 0:
        raise ValueError(f"viewport dimensions must be positive, got {raw!r}")
    return {"width": width, "height": height}


def parse_auth(raw: Optional[str]) -> Optional[Tuple[str, str]]:
    if not raw:
        return None
    if ":" not in raw:
        raise ValueError("auth must look like USER:PASS")
    username, password = raw.split(":", 1)
    return username, password


def positive_float(raw: str) -> float:
    value = float(raw)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {raw}")
    return value


def non_negative_float(raw: str) -> float:
    value = float(raw)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {raw}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="check-grid",
        description="Check that text baselines on a web page sit on a vertical baseline grid",
    )
    parser.add_argument("url", help="Page to check")
    parser.add_argument(
        "--grid",
        type=positive_float,
        help="Grid height in px (default: read from the CSS custom property named by --grid-property)",
    )
    parser.add_argument(
        "--origin",
        help="Element whose baseline is grid line 0 (default: first matched element)",
    )
    parser.add_argument(
        "--selectors",
        default=DEFAULT_SELECTORS,
        help=f"Comma-separated CSS selectors to check (default: {DEFAULT_SELECTORS})",
    )
    parser.add_argument(
        "--grid-property",
        default=DEFAULT_GRID_PROPERTY,
        help=f"Custom property on :root holding the grid size, given as --grid-property=NAME (default: {DEFAULT_GRID_PROPERTY})",
    )
    parser.add_argument("--screenshot", help="Save a full-page screenshot with a red grid overlay")
    parser.add_argument("--auth", help="HTTP basic auth as USER:PASS")
    parser.add_argument(
        "--viewport",
        default=DEFAULT_VIEWPORT,
        help=f"Viewport as WIDTHxHEIGHT (default: {DEFAULT_VIEWPORT})",
    )
    parser.add_argument(
        "--tolerance",
        type=non_negative_float,
        default=DEFAULT_TOLERANCE,
        help=f"Max acceptable grid error in px (default: {DEFAULT_TOLERANCE:g})",
    )
    parser.add_argument(
        "--timeout",
        type=positive_float,
        default=DEFAULT_TIMEOUT_MS,
        help=f"Navigation timeout in ms (default: {DEFAULT_TIMEOUT_MS})",
    )
    parser.add_argument("--json", action="store_true", help="Output JSON instead of a table")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug details to stderr")
    return parser


def config_from_args(args: argparse.Namespace) -> CheckConfig:
    return CheckConfig(
        url=args.url,
        grid=args.grid,
        origin=args.origin,
        selectors=args.selectors,
        grid_property=args.grid_property,
        screenshot=args.screenshot,
        auth=parse_auth(args.auth),
        viewport=parse_viewport(args.viewport),
        tolerance=args.tolerance,
        timeout_ms=args.timeout,
        json=args.json,
    )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def render(result: MeasureResult, config: CheckConfig) -> str:
    if config.json:
        return format_json(result, config.url, config.tolerance)
    return format_table(result, config.url, config.tolerance, config.grid_property)


async def run_check(config: CheckConfig) -> int:
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True)
        try:
            context_options = {"viewport": config.viewport, "device_scale_factor": 1}
            if config.auth:
                username, password = config.auth
                context_options["http_credentials"] = {"username": username, "password": password}
            context = await browser.new_context(**context_options)
            page = await context.new_page()

            logger.debug("Loading %s at %sx%s", config.url, config.viewport["width"], config.viewport["height"])
            await page.goto(config.url, wait_until="networkidle", timeout=config.timeout_ms)

            result = await measure(
                PlaywrightPageProbe(page),
                selectors=config.selectors,
                origin_selector=config.origin,
                explicit_grid=config.grid,
                grid_property=config.grid_property,
            )
            print(render(result, config))

            if config.screenshot:
                path = await capture_with_overlay(
                    page, result.grid.pixels, result.origin.baseline, config.screenshot
                )
                if not config.json:
                    print(f"\nScreenshot saved: {path}")
        finally:
            await browser.close()

    return exit_code(result, config.tolerance)


async def main_async(config: CheckConfig) -> int:
    try:
        return await run_check(config)
    except MeasurementError as exc:
        print(f"Error: {exc}", file=sys.stderr)
    except PlaywrightError as exc:
        logger.debug("Browser error", exc_info=True)
        print(f"Error: {exc.message}", file=sys.stderr)
    return 1


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = config_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))
    configure_logging(args.verbose)
    sys.exit(asyncio.run(main_async(config)))


if __name__ == "__main__":
    main()
