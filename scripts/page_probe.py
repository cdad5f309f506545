"""
Playwright-backed PageProbe.

Every DOM mutation made here (baseline marker, length probe) is undone
before the evaluate call returns.
"""

from typing import Any, Dict, List, Optional

from playwright.async_api import ElementHandle, Error as PlaywrightError, JSHandle, Page

from grid_measure import SelectorError


# A zero-height inline-block aligned to the baseline collapses its top and
# bottom edges onto the baseline of the line it sits in.
BASELINE_PROBE_JS = """(el) => {
    const probe = document.createElement('span');
    probe.style.cssText = 'display:inline-block;width:0;height:0;padding:0;border:0;margin:0;vertical-align:baseline';
    el.insertBefore(probe, el.firstChild);
    try {
        return probe.getBoundingClientRect().top + window.scrollY;
    } finally {
        probe.remove();
    }
}"""

LENGTH_PROBE_JS = """(value) => {
    const temp = document.createElement('div');
    temp.style.cssText = 'position:absolute;visibility:hidden;top:0;left:0;width:0;padding:0;border:0;margin:0';
    temp.style.height = value;
    (document.body || document.documentElement).appendChild(temp);
    try {
        return temp.getBoundingClientRect().height;
    } finally {
        temp.remove();
    }
}"""

ROOT_PROPERTY_JS = """(name) => getComputedStyle(document.documentElement).getPropertyValue(name).trim()"""

QUERY_FIRST_JS = """(selector) => document.querySelector(selector)"""

QUERY_ALL_JS = """(selector) => Array.from(document.querySelectorAll(selector))"""

DESCRIBE_JS = """(el) => ({
    tag: el.tagName.toLowerCase(),
    text: el.textContent || '',
})"""


class PlaywrightPageProbe:
    def __init__(self, page: Page):
        self.page = page

    async def read_root_property(self, name: str) -> str:
        return await self.page.evaluate(ROOT_PROPERTY_JS, name)

    async def length_to_pixels(self, value: str) -> float:
        return await self.page.evaluate(LENGTH_PROBE_JS, value)

    async def _evaluate_selector(self, script: str, selector: str) -> JSHandle:
        # Native querySelector keeps plain CSS semantics and document order.
        try:
            return await self.page.evaluate_handle(script, selector)
        except PlaywrightError as exc:
            raise SelectorError(f'Invalid selector "{selector}": {exc.message}') from exc

    async def query_first(self, selector: str) -> Optional[ElementHandle]:
        handle = await self._evaluate_selector(QUERY_FIRST_JS, selector)
        element = handle.as_element()
        if element is None:
            await handle.dispose()
        return element

    async def query_all(self, selector: str) -> List[ElementHandle]:
        handle = await self._evaluate_selector(QUERY_ALL_JS, selector)
        properties = await handle.get_properties()
        await handle.dispose()
        elements = []
        for key in sorted((k for k in properties if k.isdigit()), key=int):
            element = properties[key].as_element()
            if element is not None:
                elements.append(element)
        return elements

    async def is_visible(self, element: ElementHandle) -> bool:
        box = await element.bounding_box()
        return bool(box) and box["width"] > 0 and box["height"] > 0

    async def describe(self, element: ElementHandle) -> Dict[str, Any]:
        return await element.evaluate(DESCRIBE_JS)

    async def baseline_y(self, element: ElementHandle) -> float:
        return await element.evaluate(BASELINE_PROBE_JS)
