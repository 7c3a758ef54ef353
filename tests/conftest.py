"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest
from fakeredis.aioredis import FakeRedis

from blinkit_checkout.core.locks import SessionLocks
from blinkit_checkout.core.pool import BrowserHandlePool
from blinkit_checkout.exceptions import PersistenceSoftFailure
from blinkit_checkout.services.automation import AutomationSteps
from blinkit_checkout.services.cache import SessionCache
from blinkit_checkout.services.orchestrator import CheckoutOrchestrator
from blinkit_checkout.services.session_store import SessionStore
from blinkit_checkout.utils import constants
from blinkit_checkout.utils.config import SiteSettings, reset_settings


# The page total deliberately differs from the sum of the lines
DEFAULT_CART = json.dumps(
    {
        "items": [
            {"name": "Amul Taaza Toned Milk", "quantity": "2", "price": "₹54"},
            {"name": "Harvest Gold White Bread", "quantity": "1", "price": "₹45"},
        ],
        "total": "₹13.47",
    }
)


# =============================================================================
# Fakes
# =============================================================================


class FakeBrowser:
    """In-memory stand-in for BrowserManager that records every action."""

    def __init__(
        self,
        fail_on: dict[str, Exception] | None = None,
        cart_payload: Any = None,
        step_delay: float = 0.0,
    ) -> None:
        self.fail_on = fail_on or {}
        self.cart_payload = DEFAULT_CART if cart_payload is None else cart_payload
        self.step_delay = step_delay
        self.started = False
        self.closed = False
        self.actions: list[tuple[Any, ...]] = []
        self.cookies: list[dict[str, Any]] = []
        self.url = "about:blank"
        self.active = 0
        self.max_active = 0

    async def _act(self, name: str, *args: Any) -> None:
        if name in self.fail_on:
            raise self.fail_on[name]
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            self.actions.append((name, *args))
            if self.step_delay:
                await asyncio.sleep(self.step_delay)
        finally:
            self.active -= 1

    @property
    def current_url(self) -> str:
        return self.url

    async def start(self) -> None:
        await self._act("start")
        self.started = True
        self.cookies = [{"name": "gr_1_deviceId", "value": "device-1", "domain": ".blinkit.com"}]

    async def goto(self, url: str) -> None:
        await self._act("goto", url)
        self.url = url

    async def fill(self, selector: str, value: str) -> None:
        await self._act("fill", selector, value)

    async def fill_nth(self, selector: str, index: int, value: str) -> None:
        await self._act("fill_nth", selector, index, value)

    async def click(self, selector: str) -> None:
        await self._act("click", selector)

    async def click_text(self, text: str) -> None:
        await self._act("click_text", text)

    async def random_delay(self, min_sec: float = 0.5, max_sec: float = 2.0) -> None:
        return None

    async def evaluate(self, script: str) -> Any:
        await self._act("evaluate")
        if "JSON.stringify" in script:
            return self.cart_payload
        return True

    async def content(self) -> str:
        await self._act("content")
        return f"<html><body>{self.url}</body></html>"

    async def get_cookies(self) -> list[dict[str, Any]]:
        await self._act("get_cookies")
        return list(self.cookies)

    async def set_cookies(self, cookies: list[dict[str, Any]]) -> None:
        await self._act("set_cookies", len(cookies))

    async def close(self) -> None:
        self.closed = True
        self.actions.append(("close",))


class FakeBrowserFactory:
    """Creates FakeBrowsers and keeps every one it made."""

    def __init__(self) -> None:
        self.created: list[FakeBrowser] = []
        self.fail_on: dict[str, Exception] = {}
        self.cart_payload: Any = None
        self.step_delay = 0.0

    def __call__(self) -> FakeBrowser:
        browser = FakeBrowser(
            fail_on=dict(self.fail_on),
            cart_payload=self.cart_payload,
            step_delay=self.step_delay,
        )
        self.created.append(browser)
        return browser

    @property
    def last(self) -> FakeBrowser:
        return self.created[-1]


class InMemoryDurable:
    """Durable tier backed by a dict."""

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}

    async def upsert(self, session_id: str, document: dict[str, Any]) -> None:
        self.documents[session_id] = dict(document)

    async def find_one(self, session_id: str) -> dict[str, Any] | None:
        document = self.documents.get(session_id)
        return dict(document) if document is not None else None


class FailingDurable:
    """Durable tier whose every call fails softly."""

    async def upsert(self, session_id: str, document: dict[str, Any]) -> None:
        raise PersistenceSoftFailure("database unreachable")

    async def find_one(self, session_id: str) -> dict[str, Any] | None:
        raise PersistenceSoftFailure("database unreachable")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def no_delays(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove the human-like pauses between automation actions."""
    monkeypatch.setattr(constants, "SHORT_DELAY", 0)
    monkeypatch.setattr(constants, "POST_ACTION_DELAY", 0)
    monkeypatch.setattr(constants, "PAGE_LOAD_DELAY", 0)


@pytest.fixture(autouse=True)
def fresh_settings() -> None:
    """Drop cached settings between tests."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
async def redis_client() -> FakeRedis:
    """Create a fresh fakeredis instance for testing."""
    client = FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def durable() -> InMemoryDurable:
    return InMemoryDurable()


@pytest.fixture
def failing_durable() -> FailingDurable:
    return FailingDurable()


@pytest.fixture
def session_store(redis_client: FakeRedis, durable: InMemoryDurable) -> SessionStore:
    """Two-tier store over fakeredis and an in-memory durable tier."""
    return SessionStore(cache=SessionCache(redis=redis_client), durable=durable)


@pytest.fixture
def browser_factory() -> FakeBrowserFactory:
    return FakeBrowserFactory()


@pytest.fixture
async def pool() -> BrowserHandlePool:
    """Small pool; every handle is closed after the test."""
    handle_pool = BrowserHandlePool(max_handles=2)
    yield handle_pool
    await handle_pool.clear_all()


@pytest.fixture
def steps(
    session_store: SessionStore,
    pool: BrowserHandlePool,
    browser_factory: FakeBrowserFactory,
) -> AutomationSteps:
    """Automation steps driving fake browsers."""
    return AutomationSteps(
        store=session_store,
        pool=pool,
        site=SiteSettings(cart_settle_seconds=0),
        browser_factory=browser_factory,
    )


@pytest.fixture
def orchestrator(steps: AutomationSteps, pool: BrowserHandlePool) -> CheckoutOrchestrator:
    return CheckoutOrchestrator(steps=steps, pool=pool, locks=SessionLocks())
