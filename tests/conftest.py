import pytest

from fakes import FakeElement, FakeProbe


@pytest.fixture
def heading_page():
    return FakeProbe(
        [
            FakeElement("h1", "  Baseline grids  ", 65.0),
            FakeElement("h2", "Hidden heading", 0.0, visible=False),
            FakeElement("p", "Body copy", 89.0),
            FakeElement("h2", "Second section", 161.0),
            FakeElement("h3", "Off grid", 359.0),
        ],
        root_properties={"--grid": "1.5rem"},
        lengths={"1.5rem": 24.0},
    )
