"""
Baseline grid measurement.

Resolves the grid interval, picks the origin element and measures how far
each matched element's first-line baseline sits from the nearest grid line.
All page access goes through a PageProbe so the arithmetic can run against
a fake page in tests.
"""

import enum
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence


logger = logging.getLogger(__name__)

DEFAULT_SELECTORS = "h1,h2,h3,h4,h5,h6"
DEFAULT_GRID_PROPERTY = "--grid"
TEXT_TRUNCATE = 40


class MeasurementError(Exception):
    """Fatal error that stops a measurement pass before any result exists."""

    def to_dict(self) -> Dict[str, str]:
        return {"error": str(self)}


class GridDetectionError(MeasurementError):
    pass


class OriginNotFoundError(MeasurementError):
    pass


class NoVisibleElementsError(MeasurementError):
    pass


class SelectorError(MeasurementError):
    pass


class GridSource(enum.Enum):
    CLI = "CLI"
    CSS = "CSS"


class PageProbe(Protocol):
    """What the measurement needs from a rendered page.

    Element handles are opaque to the engine; they are only passed back
    into the probe that produced them.
    """

    async def read_root_property(self, name: str) -> str:
        ...

    async def length_to_pixels(self, value: str) -> float:
        ...

    async def query_first(self, selector: str) -> Optional[Any]:
        ...

    async def query_all(self, selector: str) -> List[Any]:
        ...

    async def is_visible(self, element: Any) -> bool:
        ...

    async def describe(self, element: Any) -> Dict[str, str]:
        """Return {"tag": ..., "text": ...} with the raw textContent."""
        ...

    async def baseline_y(self, element: Any) -> float:
        """Page-space Y of the element's first-line baseline."""
        ...


def round_half_up(value: float, digits: int = 0) -> float:
    scale = 10 ** digits
    # + 0.0 turns -0.0 into 0.0
    return math.floor(value * scale + 0.5) / scale + 0.0


def round2(value: float) -> float:
    return round_half_up(value, 2)


def split_selectors(raw: str) -> List[str]:
    return [s.strip() for s in (raw or "").split(",") if s.strip()]


def truncate_text(text: str, limit: int = TEXT_TRUNCATE) -> str:
    return (text or "").strip()[:limit]


@dataclass(frozen=True)
class GridSpec:
    pixels: float
    source: GridSource

    def describe(self, property_name: str = DEFAULT_GRID_PROPERTY) -> str:
        if self.source is GridSource.CLI:
            return "CLI --grid"
        return f"CSS {property_name}"


@dataclass(frozen=True)
class ElementDescriptor:
    tag: str
    text: str
    baseline: float

    def to_dict(self) -> Dict[str, Any]:
        return {"tag": self.tag, "text": self.text, "baseline": round2(self.baseline)}


@dataclass(frozen=True)
class Measurement:
    element: ElementDescriptor
    grid_lines: float
    grid_error: float

    def passes(self, tolerance: float) -> bool:
        # Judged on the two-decimal error that is printed, so the verdict
        # agrees with the report: 1.004 shows as 1.00 and passes at tolerance 1.
        # The error itself is still computed at full precision.
        return abs(round2(self.grid_error)) <= tolerance

    def to_dict(self) -> Dict[str, Any]:
        data = self.element.to_dict()
        data["gridLines"] = round2(self.grid_lines)
        data["gridError"] = round2(self.grid_error)
        return data


@dataclass
class MeasureResult:
    grid: GridSpec
    origin: ElementDescriptor
    measurements: List[Measurement] = field(default_factory=list)

    def ok_count(self, tolerance: float) -> int:
        return sum(1 for m in self.measurements if m.passes(tolerance))

    def miss_count(self, tolerance: float) -> int:
        return len(self.measurements) - self.ok_count(tolerance)

    def all_pass(self, tolerance: float) -> bool:
        return all(m.passes(tolerance) for m in self.measurements)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "measurements": [m.to_dict() for m in self.measurements],
            "origin": self.origin.to_dict(),
            "originBaseline": round2(self.origin.baseline),
            "detectedGrid": round2(self.grid.pixels),
            "gridSource": self.grid.source.value,
        }


def measure_baseline(element: ElementDescriptor, origin_baseline: float, grid_px: float) -> Measurement:
    """Place one baseline on the grid defined by origin_baseline and grid_px.

    grid_error is signed: positive means the baseline sits below the
    nearest grid line.
    """
    offset = element.baseline - origin_baseline
    grid_lines = offset / grid_px
    grid_error = (grid_lines - round_half_up(grid_lines)) * grid_px
    return Measurement(element=element, grid_lines=grid_lines, grid_error=grid_error)


def measure_baselines(
    elements: Sequence[ElementDescriptor],
    origin_baseline: float,
    grid_px: float,
) -> List[Measurement]:
    return [measure_baseline(el, origin_baseline, grid_px) for el in elements]


async def resolve_grid(
    probe: PageProbe,
    explicit_grid: Optional[float] = None,
    property_name: str = DEFAULT_GRID_PROPERTY,
) -> GridSpec:
    hint = (
        f"Could not detect grid size. Use --grid <px> or set the {property_name} "
        "CSS custom property on :root."
    )
    if explicit_grid is not None:
        if explicit_grid <= 0:
            raise GridDetectionError(f"{hint} (got --grid {explicit_grid})")
        return GridSpec(pixels=float(explicit_grid), source=GridSource.CLI)

    raw = (await probe.read_root_property(property_name) or "").strip()
    if not raw:
        raise GridDetectionError(hint)

    pixels = await probe.length_to_pixels(raw)
    logger.debug("%s: %r resolved to %spx", property_name, raw, pixels)
    if not (pixels and pixels > 0):
        raise GridDetectionError(f"{hint} ({property_name}: {raw} did not resolve to a positive length)")
    return GridSpec(pixels=float(pixels), source=GridSource.CSS)


async def describe_element(probe: PageProbe, element: Any) -> ElementDescriptor:
    info = await probe.describe(element)
    baseline = await probe.baseline_y(element)
    return ElementDescriptor(
        tag=(info.get("tag") or "").lower(),
        text=truncate_text(info.get("text", "")),
        baseline=baseline,
    )


async def visible_elements(probe: PageProbe, selector_list: str) -> List[Any]:
    selectors = split_selectors(selector_list)
    if not selectors:
        raise SelectorError("No selectors given.")
    combined = ",".join(selectors)
    elements = await probe.query_all(combined)
    visible = [el for el in elements if await probe.is_visible(el)]
    logger.debug("%s matched %d elements, %d visible", combined, len(elements), len(visible))
    return visible


async def find_origin_element(probe: PageProbe, origin_selector: Optional[str]) -> Optional[Any]:
    if not origin_selector:
        return None
    origin_el = await probe.query_first(origin_selector)
    if origin_el is None:
        raise OriginNotFoundError(f'Origin selector "{origin_selector}" matched no elements.')
    return origin_el


async def select_origin(
    probe: PageProbe,
    origin_el: Optional[Any],
    visible: Sequence[Any],
) -> ElementDescriptor:
    """Describe the grid-line-zero element, defaulting to the first visible match."""
    if origin_el is None:
        origin_el = visible[0]
    return await describe_element(probe, origin_el)


async def measure(
    probe: PageProbe,
    selectors: str = DEFAULT_SELECTORS,
    origin_selector: Optional[str] = None,
    explicit_grid: Optional[float] = None,
    grid_property: str = DEFAULT_GRID_PROPERTY,
) -> MeasureResult:
    """Run one measurement pass over the page behind probe.

    Raises a MeasurementError subclass when the grid cannot be resolved,
    the origin selector matches nothing or no matched element is visible.
    """
    grid = await resolve_grid(probe, explicit_grid, grid_property)
    logger.debug("Grid %spx from %s", grid.pixels, grid.describe(grid_property))

    origin_el = await find_origin_element(probe, origin_selector)

    visible = await visible_elements(probe, selectors)
    if not visible:
        raise NoVisibleElementsError(f"No visible elements found for selectors: {selectors}")

    origin = await select_origin(probe, origin_el, visible)
    logger.debug("Origin %s %r baseline @ y=%s", origin.tag, origin.text, origin.baseline)

    described = [await describe_element(probe, el) for el in visible]
    measurements = measure_baselines(described, origin.baseline, grid.pixels)
    for m in measurements:
        logger.debug(
            "%s %r baseline=%s line=%s error=%s",
            m.element.tag, m.element.text, m.element.baseline, m.grid_lines, m.grid_error,
        )
    return MeasureResult(grid=grid, origin=origin, measurements=measurements)
