"""Table and JSON rendering of a MeasureResult."""

import json
from typing import Any, Dict, List

from grid_measure import DEFAULT_GRID_PROPERTY, TEXT_TRUNCATE, MeasureResult, Measurement, round2


def format_number(value: float) -> str:
    return f"{round2(value):.2f}".rstrip("0").rstrip(".")


def format_signed(value: float) -> str:
    value = round2(value)
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.2f}"


def format_measurement_line(m: Measurement, tolerance: float) -> str:
    status = " OK " if m.passes(tolerance) else "MISS"
    text = m.element.text.ljust(TEXT_TRUNCATE)
    line_num = f"{round2(m.grid_lines):.2f}".rjust(8)
    return f'{status}  {m.element.tag.ljust(3)}  "{text}"  line{line_num}    {format_signed(m.grid_error)}px'


def format_table(
    result: MeasureResult,
    url: str,
    tolerance: float,
    grid_property: str = DEFAULT_GRID_PROPERTY,
) -> str:
    origin = result.origin
    lines: List[str] = [
        "Baseline Grid Check",
        f"  url:       {url}",
        f"  grid:      {format_number(result.grid.pixels)}px (from {result.grid.describe(grid_property)})",
        f'  origin:    {origin.tag} "{origin.text}" baseline @ y={format_number(origin.baseline)}',
        f"  tolerance: {format_number(tolerance)}px",
        "",
    ]
    for m in result.measurements:
        lines.append(format_measurement_line(m, tolerance))

    lines.append("")
    lines.append(
        f"{len(result.measurements)} checked: "
        f"{result.ok_count(tolerance)} OK, {result.miss_count(tolerance)} MISS"
    )
    return "\n".join(lines)


def build_json(result: MeasureResult, url: str, tolerance: float) -> Dict[str, Any]:
    data = result.to_dict()
    measurements = []
    for m, item in zip(result.measurements, data["measurements"]):
        item["pass"] = m.passes(tolerance)
        measurements.append(item)
    return {
        "url": url,
        "grid": data["detectedGrid"],
        "gridSource": data["gridSource"],
        "origin": data["origin"],
        "tolerance": tolerance,
        "measurements": measurements,
        "summary": {
            "checked": len(measurements),
            "ok": result.ok_count(tolerance),
            "miss": result.miss_count(tolerance),
        },
    }


def format_json(result: MeasureResult, url: str, tolerance: float) -> str:
    return json.dumps(build_json(result, url, tolerance), ensure_ascii=False, indent=2)


def exit_code(result: MeasureResult, tolerance: float) -> int:
    return 0 if result.all_pass(tolerance) else 1
