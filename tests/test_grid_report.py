"""
Report formatting tests
=======================
"""

import json

import pytest

from grid_measure import ElementDescriptor, GridSource, GridSpec, MeasureResult, measure_baselines
from grid_report import build_json, exit_code, format_json, format_signed, format_table


@pytest.fixture
def result():
    origin = ElementDescriptor(tag="h1", text="Baseline grids", baseline=65.0)
    elements = [
        origin,
        ElementDescriptor(tag="h2", text="Second section", baseline=161.0),
        ElementDescriptor(tag="h3", text="Off grid", baseline=359.0),
        ElementDescriptor(tag="h2", text="Nearly there", baseline=184.04),
    ]
    return MeasureResult(
        grid=GridSpec(pixels=24.0, source=GridSource.CSS),
        origin=origin,
        measurements=measure_baselines(elements, origin.baseline, 24.0),
    )


def test_format_signed():
    assert format_signed(6.0) == "+6.00"
    assert format_signed(-0.96) == "-0.96"
    assert format_signed(-0.0001) == "+0.00"
    assert format_signed(0.0) == "+0.00"


def test_table_layout(result):
    lines = format_table(result, "https://example.com/", 1.0).splitlines()

    assert lines[:6] == [
        "Baseline Grid Check",
        "  url:       https://example.com/",
        "  grid:      24px (from CSS --grid)",
        '  origin:    h1 "Baseline grids" baseline @ y=65',
        "  tolerance: 1px",
        "",
    ]
    assert lines[6] == ' OK   h1   "' + "Baseline grids".ljust(40) + '"  line    0.00    +0.00px'
    assert lines[8] == 'MISS  h3   "' + "Off grid".ljust(40) + '"  line   12.25    +6.00px'
    assert lines[9] == ' OK   h2   "' + "Nearly there".ljust(40) + '"  line    4.96    -0.96px'
    assert lines[-2] == ""
    assert lines[-1] == "4 checked: 3 OK, 1 MISS"


def test_table_names_the_grid_source(result):
    result.grid = GridSpec(pixels=24.0, source=GridSource.CLI)
    table = format_table(result, "https://example.com/", 0.5, grid_property="--baseline")
    assert "grid:      24px (from CLI --grid)" in table
    assert "tolerance: 0.5px" in table

    result.grid = GridSpec(pixels=24.0, source=GridSource.CSS)
    table = format_table(result, "https://example.com/", 0.5, grid_property="--baseline")
    assert "(from CSS --baseline)" in table


def test_json_output(result):
    data = json.loads(format_json(result, "https://example.com/", 1.0))

    assert data["url"] == "https://example.com/"
    assert data["grid"] == 24.0
    assert data["gridSource"] == "CSS"
    assert data["origin"] == {"tag": "h1", "text": "Baseline grids", "baseline": 65.0}
    assert data["tolerance"] == 1.0
    assert data["measurements"][2] == {
        "tag": "h3",
        "text": "Off grid",
        "baseline": 359.0,
        "gridLines": 12.25,
        "gridError": 6.0,
        "pass": False,
    }
    assert data["measurements"][3]["gridError"] == -0.96
    assert data["measurements"][3]["pass"] is True
    assert data["summary"] == {"checked": 4, "ok": 3, "miss": 1}


def test_json_keeps_unicode(result):
    result.measurements[1] = measure_baselines(
        [ElementDescriptor(tag="h2", text="Überschrift", baseline=161.0)], 65.0, 24.0
    )[0]
    assert "Überschrift" in format_json(result, "https://example.com/", 1.0)
    assert build_json(result, "u", 1.0)["measurements"][1]["text"] == "Überschrift"


def test_exit_code(result):
    assert exit_code(result, 1.0) == 1
    assert exit_code(result, 6.0) == 0
