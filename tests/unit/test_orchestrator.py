"""Unit tests for CheckoutOrchestrator."""

from __future__ import annotations

import asyncio
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from blinkit_checkout.core.pool import BrowserHandlePool
from blinkit_checkout.exceptions import ElementNotFoundError, ErrorCode
from blinkit_checkout.models.cart import Product
from blinkit_checkout.services.orchestrator import CheckoutOrchestrator, Outcome
from blinkit_checkout.utils.config import Settings


PRODUCTS = [Product(url="https://blinkit.com/prn/amul-taaza-milk/prid/19512", variant="500 ml")]


class TestOutcome:
    """Tests for the Outcome value."""

    def test_success(self) -> None:
        outcome = Outcome.success("abc")

        assert outcome.ok is True
        assert outcome.value == "abc"
        assert outcome.error is None

    def test_failure_to_dict(self) -> None:
        outcome = Outcome.failure(ErrorCode.HANDLE_EXPIRED, "Please log in again.")

        assert outcome.to_dict() == {
            "success": False,
            "error": "HANDLE_EXPIRED",
            "message": "Please log in again.",
        }


class TestCheckoutFlow:
    """End-to-end flows against fake browsers."""

    async def test_full_flow(self, orchestrator: CheckoutOrchestrator) -> None:
        login = await orchestrator.request_login("9876543210")
        assert login.ok
        session_id = login.value

        verified = await orchestrator.verify_code(session_id, "1234")
        assert verified.ok

        cart = await orchestrator.populate_cart(session_id, PRODUCTS)
        assert cart.ok
        assert cart.value.total_price == 13.47

        again = await orchestrator.populate_cart(session_id, PRODUCTS)
        assert again.ok is False
        assert again.error == ErrorCode.HANDLE_EXPIRED

    async def test_unknown_session(self, orchestrator: CheckoutOrchestrator) -> None:
        outcome = await orchestrator.verify_code("does-not-exist", "1234")

        assert outcome.error == ErrorCode.SESSION_NOT_FOUND

    async def test_closed_handle(
        self, orchestrator: CheckoutOrchestrator, pool: BrowserHandlePool
    ) -> None:
        login = await orchestrator.request_login("9876543210")
        await pool.close(login.value)

        outcome = await orchestrator.verify_code(login.value, "1234")

        assert outcome.error == ErrorCode.HANDLE_EXPIRED

    async def test_cart_before_verify(self, orchestrator: CheckoutOrchestrator) -> None:
        login = await orchestrator.request_login("9876543210")

        outcome = await orchestrator.populate_cart(login.value, PRODUCTS)

        assert outcome.error == ErrorCode.INVALID_SESSION_STATE
        assert orchestrator.pool.get(login.value) is None

        retry = await orchestrator.verify_code(login.value, "1234")
        assert retry.error == ErrorCode.HANDLE_EXPIRED

    async def test_pool_exhausted(
        self, orchestrator: CheckoutOrchestrator, browser_factory: Any
    ) -> None:
        """The fixture pool holds two browsers."""
        assert (await orchestrator.request_login("9876543210")).ok
        assert (await orchestrator.request_login("9876543211")).ok

        third = await orchestrator.request_login("9876543212")

        assert third.error == ErrorCode.POOL_EXHAUSTED
        assert len(browser_factory.created) == 2

    async def test_login_failure_message_hides_detail(
        self, orchestrator: CheckoutOrchestrator, browser_factory: Any
    ) -> None:
        browser_factory.fail_on["fill"] = ElementNotFoundError(
            'Selector not found: [data-test-id="phone-no-text-box"]'
        )

        outcome = await orchestrator.request_login("9876543210")

        assert outcome.error == ErrorCode.AUTOMATION_STEP_FAILED
        assert "data-test-id" not in outcome.message
        assert browser_factory.last.closed is True
        assert orchestrator.pool.size == 0

    async def test_unreadable_cart(
        self, orchestrator: CheckoutOrchestrator, browser_factory: Any
    ) -> None:
        login = await orchestrator.request_login("9876543210")
        await orchestrator.verify_code(login.value, "1234")
        browser_factory.last.cart_payload = json.dumps({"items": None})

        outcome = await orchestrator.populate_cart(login.value, PRODUCTS)

        assert outcome.error == ErrorCode.SCRAPE_PARSE_FAILURE


class TestConcurrency:
    """Tests for per-session serialization."""

    async def test_same_session_calls_do_not_overlap(
        self, orchestrator: CheckoutOrchestrator, browser_factory: Any
    ) -> None:
        login = await orchestrator.request_login("9876543210")
        browser = browser_factory.last
        browser.step_delay = 0.005

        first, second = await asyncio.gather(
            orchestrator.verify_code(login.value, "1234"),
            orchestrator.verify_code(login.value, "1234"),
        )

        assert browser.max_active == 1
        assert {first.error, second.error} == {None, ErrorCode.INVALID_SESSION_STATE}

    async def test_different_sessions_proceed(
        self, orchestrator: CheckoutOrchestrator
    ) -> None:
        a = await orchestrator.request_login("9876543210")
        b = await orchestrator.request_login("9876543211")

        results = await asyncio.gather(
            orchestrator.verify_code(a.value, "1111"),
            orchestrator.verify_code(b.value, "2222"),
        )

        assert all(r.ok for r in results)


class TestUnexpectedErrors:
    """Tests for errors outside the checkout hierarchy."""

    async def test_generic_message(self) -> None:
        steps = MagicMock()
        steps.request_login = AsyncMock(side_effect=RuntimeError("socket exploded"))
        orchestrator = CheckoutOrchestrator(steps=steps, pool=BrowserHandlePool())

        outcome = await orchestrator.request_login("9876543210")

        assert outcome.error == ErrorCode.AUTOMATION_STEP_FAILED
        assert "socket" not in outcome.message


class TestFromSettings:
    """Tests for wiring from settings."""

    async def test_pool_capacity_from_settings(self, redis_client: Any) -> None:
        settings = Settings()
        settings.pool.max_handles = 7

        orchestrator = CheckoutOrchestrator.from_settings(settings, redis=redis_client)

        assert orchestrator.pool.capacity == 7
        assert orchestrator.pool.size == 0
