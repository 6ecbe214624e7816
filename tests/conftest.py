"""Shared fixtures: in-memory stand-ins for the Playwright async API."""
from __future__ import annotations

import asyncio
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from playwright.async_api import Error as PlaywrightError

from tabhost.browser.connection import BrowserHandle
from tabhost.browser.tabs import SessionRegistry
from tabhost.core.config import Settings
from tabhost.server.app import create_app
from tabhost.server.service import TabService

SAMPLE_SNAPSHOT = """- banner:
  - link "Home":
    - /url: /
  - navigation:
    - link "About"
    - link "Contact"
- main:
  - heading "Welcome" [level=1]
  - textbox "Email"
  - checkbox "Remember me" [checked]
  - button "Sign in"
  - paragraph: Some text"""


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeLocator:
    def __init__(self, page: "FakePage", role: str, name: Optional[str] = None, exact: Optional[bool] = None, index: int = 0) -> None:
        self.page = page
        self.role = role
        self.name = name
        self.exact = exact
        self.index = index

    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(self.page, self.role, self.name, self.exact, index)

    async def click(self, timeout: Optional[float] = None) -> None:
        self.page.actions.append(("click", self.role, self.name))
        if self.page.click_navigates_to:
            self.page.url = self.page.click_navigates_to

    async def fill(self, value: str, timeout: Optional[float] = None) -> None:
        self.page.actions.append(("fill", self.role, self.name, value))


class FakeBodyLocator:
    def __init__(self, page: "FakePage") -> None:
        self.page = page

    async def aria_snapshot(self) -> str:
        self.page.snapshot_calls += 1
        if self.page.snapshots:
            return self.page.snapshots.pop(0)
        return self.page.snapshot


class FakeKeyboard:
    def __init__(self, page: "FakePage") -> None:
        self.page = page

    async def press(self, key: str) -> None:
        self.page.actions.append(("press", key))


class FakeMouse:
    def __init__(self, page: "FakePage") -> None:
        self.page = page

    async def wheel(self, delta_x: float, delta_y: float) -> None:
        self.page.actions.append(("wheel", delta_x, delta_y))


class FakePage:
    """Minimal async Playwright page with a linear history."""

    def __init__(self) -> None:
        self.url = "about:blank"
        self.closed = False
        self.history: list[str] = ["about:blank"]
        self.position = 0
        self.snapshot = SAMPLE_SNAPSHOT
        self.snapshots: list[str] = []
        self.snapshot_calls = 0
        self.actions: list[tuple] = []
        self.waits: list[int] = []
        self.links: list[dict] = []
        self.failing_urls: set[str] = set()
        self.fail_load_states: set[str] = set()
        self.click_navigates_to: Optional[str] = None
        self.keyboard = FakeKeyboard(self)
        self.mouse = FakeMouse(self)

    def is_closed(self) -> bool:
        return self.closed

    async def title(self) -> str:
        return f"Title of {self.url}"

    async def goto(self, url: str, wait_until: Optional[str] = None, timeout: Optional[float] = None) -> None:
        if url in self.failing_urls:
            raise PlaywrightError(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        self.history = self.history[: self.position + 1] + [url]
        self.position += 1
        self.url = url

    async def go_back(self, timeout: Optional[float] = None) -> None:
        if self.position == 0:
            raise PlaywrightError("No history entry")
        self.position -= 1
        self.url = self.history[self.position]

    async def go_forward(self, timeout: Optional[float] = None) -> None:
        if self.position >= len(self.history) - 1:
            raise PlaywrightError("No history entry")
        self.position += 1
        self.url = self.history[self.position]

    async def reload(self, wait_until: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self.actions.append(("reload",))

    async def wait_for_load_state(self, state: str = "load", timeout: Optional[float] = None) -> None:
        if state in self.fail_load_states:
            raise PlaywrightError(f"Timeout {timeout}ms exceeded waiting for {state}")

    async def wait_for_timeout(self, ms: float) -> None:
        self.waits.append(ms)

    def locator(self, selector: str) -> FakeBodyLocator:
        return FakeBodyLocator(self)

    def get_by_role(self, role: str, name: Optional[str] = None, exact: Optional[bool] = None) -> FakeLocator:
        return FakeLocator(self, role, name, exact)

    async def click(self, selector: str, timeout: Optional[float] = None) -> None:
        self.actions.append(("click_selector", selector))

    async def fill(self, selector: str, value: str, timeout: Optional[float] = None) -> None:
        self.actions.append(("fill_selector", selector, value))

    async def evaluate(self, expression: str, arg=None) -> list[dict]:
        return list(self.links)

    async def screenshot(self, type: str = "png", full_page: bool = False) -> bytes:
        self.actions.append(("screenshot", full_page))
        return b"\x89PNG\r\n\x1a\nfake"

    async def close(self) -> None:
        self.closed = True


class FakeContext:
    def __init__(self) -> None:
        self.pages: list[FakePage] = []
        self.closed = False
        self.fail_close = False
        self.failing_urls: set[str] = set()

    async def new_page(self) -> FakePage:
        page = FakePage()
        page.failing_urls |= self.failing_urls
        self.pages.append(page)
        return page

    async def close(self) -> None:
        if self.fail_close:
            raise PlaywrightError("Target closed")
        self.closed = True
        for page in self.pages:
            page.closed = True


class FakeHandle(BrowserHandle):
    """Browser handle that hands out fake contexts instead of launching Chromium."""

    def __init__(self) -> None:
        super().__init__()
        self.contexts: list[FakeContext] = []
        self.closed = False
        self.context_delay = 0.0

    async def new_context(self) -> FakeContext:
        if self.context_delay:
            await asyncio.sleep(self.context_delay)
        context = FakeContext()
        self.contexts.append(context)
        return context

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def handle() -> FakeHandle:
    return FakeHandle()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def registry(handle: FakeHandle, settings: Settings, clock: FakeClock) -> SessionRegistry:
    return SessionRegistry(handle, settings.timeouts, clock=clock)


@pytest.fixture
def service(settings: Settings, handle: FakeHandle, registry: SessionRegistry) -> TabService:
    return TabService(settings, handle=handle, registry=registry)


@pytest.fixture
def client(settings: Settings, service: TabService):
    with TestClient(create_app(settings, service)) as test_client:
        yield test_client
