"""Shared fixtures for the shipping tests.

The carrier page protocols are exercised against an in-process stand-in for
Playwright's ``Page``: a static DOM of selector -> element entries where an
element may run a callback when clicked (to simulate navigation).
"""

import asyncio
from datetime import UTC, datetime

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from shipping.carrier.browser import BrowserFactory, BrowserSession


@pytest.fixture(scope="session")
def shipping_bed():
    from shipping.domain import shipping

    bed = DomainFixture(shipping)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(shipping_bed):
    with shipping_bed.domain_context():
        yield
        for _, provider in current_domain.providers.items():
            provider._data_reset()


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_order():
    from shipping.order.order import Buyer, Order, OrderStatus, Product

    def _make(
        order_id="ORD-001",
        name="山田 花子",
        building="グリーンハイツ101",
        phone="090-1234-5678",
        product_name="ハンドメイドピアス",
        shipped=False,
    ):
        order = Order.create(
            order_id=order_id,
            buyer=Buyer(
                name=name,
                postal_code="150-0001",
                prefecture="東京都",
                city="渋谷区",
                street="神宮前1-2-3",
                building=building,
                phone=phone,
            ),
            product=Product(name=product_name, price=2500.0),
            ordered_at=datetime(2024, 1, 10, 9, 0, tzinfo=UTC),
        )
        if shipped:
            order.status = OrderStatus.SHIPPED.value
        return order

    return _make


# ---------------------------------------------------------------------------
# Playwright stand-ins
# ---------------------------------------------------------------------------
class FakeElement:
    def __init__(
        self,
        text=None,
        value="",
        attributes=None,
        visible=True,
        checkbox=False,
        checked=False,
        click_fails=False,
        script_toggle=True,
        on_click=None,
    ):
        self.text = text
        self.value = value
        self.attributes = attributes or {}
        self.visible = visible
        self.checkbox = checkbox
        self.checked = checked
        self.click_fails = click_fails
        self.script_toggle = script_toggle
        self.on_click = on_click


class FakeLocator:
    def __init__(self, page, selector):
        self.page = page
        self.selector = selector

    @property
    def first(self):
        return self

    def _element(self):
        element = self.page.elements.get(self.selector)
        if element is None:
            raise PlaywrightError(f"No element for {self.selector}")
        return element

    def _press(self, element):
        self.page.clicks.append(self.selector)
        if element.checkbox:
            element.checked = not element.checked
        if element.on_click is not None:
            element.on_click(self.page)

    async def wait_for(self, state="visible", timeout=None):
        element = self.page.elements.get(self.selector)
        if element is None or (state == "visible" and not element.visible):
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {self.selector}")

    async def click(self, timeout=None):
        element = self._element()
        if element.click_fails:
            raise PlaywrightError("Element is outside of the viewport")
        self._press(element)

    async def evaluate(self, script):
        element = self._element()
        if "el.click()" in script:
            self._press(element)
        elif "checked = true" in script and element.script_toggle:
            element.checked = True

    async def fill(self, value):
        self._element().value = value
        self.page.filled[self.selector] = value

    async def is_checked(self):
        return self._element().checked

    async def check(self):
        self._element().checked = True

    async def text_content(self):
        return self._element().text

    async def get_attribute(self, name):
        return self._element().attributes.get(name)

    async def input_value(self):
        return self._element().value


class FakeDownload:
    def __init__(self, path):
        self._path = path

    async def path(self):
        return self._path


class FakeDownloadExpectation:
    def __init__(self, page):
        self.page = page

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    @property
    def value(self):
        return self._wait()

    async def _wait(self):
        if self.page.download is None:
            raise PlaywrightTimeoutError("Timeout exceeded while waiting for event \"download\"")
        return self.page.download


class FakePage:
    def __init__(self, elements=None, url="about:blank", body_text="", download=None):
        self.elements = {
            selector: element if isinstance(element, FakeElement) else FakeElement(**element)
            for selector, element in (elements or {}).items()
        }
        self.url = url
        self.body_text = body_text
        self.download = download
        self.visited = []
        self.clicks = []
        self.filled = {}
        self.load_states = []

    def add(self, selector, **element):
        self.elements[selector] = FakeElement(**element)

    def remove(self, selector):
        self.elements.pop(selector, None)

    async def goto(self, url, wait_until=None):
        self.visited.append(url)
        self.url = url

    def locator(self, selector):
        return FakeLocator(self, selector)

    def get_by_role(self, role, name=None):
        return FakeLocator(self, f'role={role}[name="{name}"]')

    async def wait_for_load_state(self, state=None):
        self.load_states.append(state)

    async def inner_text(self, selector):
        return self.body_text

    def expect_download(self, timeout=None):
        return FakeDownloadExpectation(self)


class FakeBrowserSession(BrowserSession):
    def __init__(self, page, close_error=None):
        self.page = page
        self.close_error = close_error
        self.close_calls = 0

    async def new_page(self):
        return self.page

    async def close(self):
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


class FakeBrowserFactory(BrowserFactory):
    def __init__(self, page, close_error=None):
        self.page = page
        self.close_error = close_error
        self.sessions = []

    async def launch(self):
        session = FakeBrowserSession(self.page, self.close_error)
        self.sessions.append(session)
        return session


@pytest.fixture()
def make_page():
    return FakePage


@pytest.fixture()
def make_download():
    return FakeDownload


@pytest.fixture()
def make_browser_factory():
    return FakeBrowserFactory


@pytest.fixture()
def run():
    """Drive a coroutine to completion from a plain test function."""
    return asyncio.run
