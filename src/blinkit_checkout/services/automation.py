"""Site-specific automation steps for the Blinkit login-and-cart flow."""

from __future__ import annotations

import asyncio
import json
import uuid
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from blinkit_checkout.core.browser import BrowserManager
from blinkit_checkout.core.pool import BrowserHandle
from blinkit_checkout.core.workflow import ensure_transition
from blinkit_checkout.exceptions import (
    AutomationStepFailedError,
    CheckoutError,
    HandleExpiredError,
    ScrapeParseError,
    SessionNotFoundError,
)
from blinkit_checkout.models.cart import CartLineItem, CartSummary
from blinkit_checkout.models.session import SessionRecord, WorkflowState
from blinkit_checkout.utils import constants as c
from blinkit_checkout.utils.config import BrowserSettings, SiteSettings
from blinkit_checkout.utils.logging import get_logger, mask_phone
from blinkit_checkout.utils.parsers import parse_price, parse_quantity


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from blinkit_checkout.core.pool import BrowserHandlePool
    from blinkit_checkout.models.cart import Product
    from blinkit_checkout.services.session_store import SessionStore

logger = get_logger(__name__)


_SELECT_VARIANT_JS = """
    (() => {{
        const wanted = {variant}.toLowerCase().replace(/\\s+/g, ' ').trim();
        const options = document.querySelectorAll({selector});
        for (const el of options) {{
            const text = el.textContent.toLowerCase().replace(/\\s+/g, ' ').trim();
            if (text === wanted || text.includes(wanted)) {{
                el.click();
                return true;
            }}
        }}
        return false;
    }})()
"""

_SCRAPE_CART_JS = """
    (() => {{
        const textOf = (root, sel) => {{
            const el = root.querySelector(sel);
            return el ? el.textContent.trim() : null;
        }};
        const items = [];
        document.querySelectorAll({item}).forEach(row => {{
            items.push({{
                name: textOf(row, {name}),
                quantity: textOf(row, {quantity}),
                price: textOf(row, {price}),
            }});
        }});
        const totalEl = document.querySelector({total});
        return JSON.stringify({{
            items: items,
            total: totalEl ? totalEl.textContent.trim() : null,
        }});
    }})()
"""


def build_cart_summary(raw: Any) -> CartSummary:
    """
    Turn the raw cart scrape into a CartSummary.

    Quantities that do not parse become 1 and prices become 0.0. The total
    is the one displayed on the page, not a sum of the lines.

    Raises:
        ScrapeParseError: If the scrape has no item list or no total
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise ScrapeParseError(f"Cart scrape is not JSON: {e}") from e
    if not isinstance(raw, dict) or not isinstance(raw.get("items"), list):
        raise ScrapeParseError("Cart scrape has no item list")
    if not raw.get("total"):
        raise ScrapeParseError("Cart page shows no total")

    items = []
    for row in raw["items"]:
        if not isinstance(row, dict) or not row.get("name"):
            continue
        items.append(
            CartLineItem(
                name=str(row["name"]).strip(),
                quantity=parse_quantity(row.get("quantity")),
                price=parse_price(row.get("price")),
            )
        )

    return CartSummary(items=items, total_price=parse_price(raw["total"]))


class AutomationSteps:
    """
    The three browser procedures of the checkout flow.

    Each step reads and writes the session store and the handle pool and
    owns the handle's cleanup on failure. Engine errors come out as
    ``AutomationStepFailedError``; checkout errors pass through unchanged.
    """

    def __init__(
        self,
        store: SessionStore,
        pool: BrowserHandlePool,
        site: SiteSettings | None = None,
        browser_settings: BrowserSettings | None = None,
        browser_factory: Callable[[], BrowserManager] | None = None,
    ) -> None:
        self._store = store
        self._pool = pool
        self._site = site or SiteSettings()
        self._browser_settings = browser_settings or BrowserSettings()
        self._browser_factory = browser_factory or self._default_browser

    def _default_browser(self) -> BrowserManager:
        settings = self._browser_settings
        return BrowserManager(
            headless=settings.headless,
            action_timeout=settings.action_timeout_seconds,
            navigation_timeout=settings.navigation_timeout_seconds,
            launch_timeout=settings.launch_timeout_seconds,
            lang=settings.lang,
        )

    # =========================================================================
    # Steps
    # =========================================================================

    async def request_login(self, phone_number: str) -> str:
        """
        Open the site, submit the phone number and register a new session.

        Returns:
            The new session id

        Raises:
            PoolCapacityError: If no browser slot is free
            AutomationStepFailedError: If any browser or persistence step fails
        """
        ensure_transition(WorkflowState.ANONYMOUS, WorkflowState.OTP_REQUESTED)
        logger.info("Requesting OTP", phone=mask_phone(phone_number))

        async with self._pool.reserve():
            browser = self._browser_factory()
            registered = False
            try:
                await browser.start()
                await self._submit_phone(browser, phone_number)
                cookies, dom_snapshot, url = await self._snapshot(browser)

                session_id = uuid.uuid4().hex
                record = SessionRecord(
                    session_id=session_id,
                    phone_number=phone_number,
                    cookies=cookies,
                    dom_snapshot=dom_snapshot,
                    current_url=url,
                    state=WorkflowState.OTP_REQUESTED,
                )
                await self._store.save(session_id, record)
                self._pool.save(session_id, BrowserHandle(session_id, browser))
                registered = True
            except CheckoutError:
                raise
            except Exception as e:
                raise self._step_failed(
                    "request login",
                    e,
                    "Could not start login process. Please try again.",
                ) from e
            finally:
                if not registered:
                    await browser.close()

        logger.info("OTP requested", session_id=session_id)
        return session_id

    async def verify_code(self, session_id: str, code: str) -> None:
        """
        Type the OTP into the live session and mark the record verified.

        The handle stays open on success; every failure closes it.

        Raises:
            SessionNotFoundError: If no record exists
            HandleExpiredError: If the record exists but the browser is gone
            InvalidSessionStateError: If the session is not awaiting an OTP
            AutomationStepFailedError: If any browser or persistence step fails
        """
        record, handle = await self._resume(session_id)

        succeeded = False
        try:
            ensure_transition(record.state, WorkflowState.VERIFIED)
            with handle.in_use():
                browser = handle.browser
                await browser.set_cookies(record.cookies)
                for index, digit in enumerate(code):
                    await browser.fill_nth(c.OTP_INPUT, index, digit)
                    logger.debug("Filled OTP digit", position=index + 1)
                    await asyncio.sleep(c.SHORT_DELAY)
                await browser.random_delay(1.0, 2.0)
                cookies, dom_snapshot, url = await self._snapshot(browser)

            record.cookies = cookies
            record.dom_snapshot = dom_snapshot
            record.current_url = url
            record.otp = code
            record.otp_expires_at = datetime.now(timezone.utc) + timedelta(
                seconds=self._site.otp_ttl_seconds
            )
            record.is_verified = True
            record.state = WorkflowState.VERIFIED
            await self._store.save(session_id, record)
            succeeded = True
        except CheckoutError:
            raise
        except Exception as e:
            raise self._step_failed(
                "verify code", e, "Could not verify OTP. Please try again."
            ) from e
        finally:
            if not succeeded:
                await self._pool.close(session_id)

        logger.info("OTP verified", session_id=session_id)

    async def populate_cart(
        self,
        session_id: str,
        products: Sequence[Product],
    ) -> CartSummary:
        """
        Add each product in order, then scrape the cart.

        All or nothing: the first product that fails aborts the call. The
        handle is closed at the end whether the call succeeds or not.

        Raises:
            SessionNotFoundError: If no record exists
            HandleExpiredError: If the record exists but the browser is gone
            InvalidSessionStateError: If the session is not verified
            ScrapeParseError: If the cart page cannot be read
            AutomationStepFailedError: If any browser or persistence step fails
        """
        record, handle = await self._resume(session_id)

        try:
            ensure_transition(record.state, WorkflowState.CART_POPULATED)
            with handle.in_use():
                browser = handle.browser
                await browser.set_cookies(record.cookies)
                for position, product in enumerate(products, start=1):
                    logger.info(
                        "Adding product",
                        position=position,
                        total=len(products),
                        url=product.url,
                    )
                    await self._add_product(browser, product)
                summary = await self._scrape_cart(browser)
                cookies, dom_snapshot, url = await self._snapshot(browser)

            record.cookies = cookies
            record.dom_snapshot = dom_snapshot
            record.current_url = url
            record.cart = [asdict(item) for item in summary.items]
            record.state = WorkflowState.CART_POPULATED
            await self._store.save(session_id, record)
        except CheckoutError:
            raise
        except Exception as e:
            raise self._step_failed(
                "populate cart", e, "Could not add products to cart. Please try again."
            ) from e
        finally:
            await self._pool.close(session_id)

        logger.info(
            "Cart populated",
            session_id=session_id,
            items=len(summary.items),
            total_price=summary.total_price,
        )
        return summary

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _resume(self, session_id: str) -> tuple[SessionRecord, BrowserHandle]:
        """Load the record and the live handle, in that order.

        A live handle whose record is gone is closed before raising.
        """
        record = await self._store.get(session_id)
        if record is None:
            if self._pool.get(session_id) is not None:
                logger.warning("Browser handle found but session record is gone")
                await self._pool.close(session_id)
            raise SessionNotFoundError(session_id)

        handle = self._pool.get(session_id)
        if handle is None:
            logger.warning("Session record found but browser handle is gone")
            raise HandleExpiredError(session_id)

        return record, handle

    async def _submit_phone(self, browser: BrowserManager, phone_number: str) -> None:
        """Set the delivery location, open login and submit the phone number."""
        await browser.goto(self._site.base_url)
        await browser.fill(c.LOCATION_INPUT, self._site.pin_code)
        await browser.random_delay(c.POST_ACTION_DELAY, c.POST_ACTION_DELAY + 1.0)
        await browser.click(c.LOCATION_SUGGESTION)
        await asyncio.sleep(c.PAGE_LOAD_DELAY)
        await browser.click_text(c.LOGIN_TEXT)
        await asyncio.sleep(c.POST_ACTION_DELAY)
        await browser.fill(c.PHONE_INPUT, phone_number)
        await browser.click_text(c.CONTINUE_TEXT)
        await asyncio.sleep(c.POST_ACTION_DELAY)

    async def _add_product(self, browser: BrowserManager, product: Product) -> None:
        """Open a product page, pick its variant and press ADD."""
        await browser.goto(product.url)
        if product.variant:
            selected = await browser.evaluate(
                _SELECT_VARIANT_JS.format(
                    variant=json.dumps(product.variant),
                    selector=json.dumps(c.VARIANT_OPTION),
                )
            )
            if not selected:
                logger.info(
                    "Variant option not rendered, keeping default",
                    variant=product.variant,
                )
        await browser.click_text(c.ADD_TO_CART_TEXT)
        await asyncio.sleep(self._site.cart_settle_seconds)

    async def _scrape_cart(self, browser: BrowserManager) -> CartSummary:
        """Open the cart and read its lines and displayed total."""
        await browser.click(c.CART_BUTTON)
        await asyncio.sleep(c.POST_ACTION_DELAY)
        raw = await browser.evaluate(
            _SCRAPE_CART_JS.format(
                item=json.dumps(c.CART_ITEM),
                name=json.dumps(c.CART_ITEM_NAME),
                quantity=json.dumps(c.CART_ITEM_QUANTITY),
                price=json.dumps(c.CART_ITEM_PRICE),
                total=json.dumps(c.CART_TOTAL),
            )
        )
        return build_cart_summary(raw)

    async def _snapshot(
        self, browser: BrowserManager
    ) -> tuple[list[dict[str, Any]], str, str]:
        """Capture cookies, HTML and URL."""
        cookies = await browser.get_cookies()
        dom_snapshot = await browser.content()
        return cookies, dom_snapshot, browser.current_url

    def _step_failed(
        self,
        step: str,
        error: Exception,
        user_message: str,
    ) -> AutomationStepFailedError:
        """Wrap an engine or persistence error raised inside a step."""
        logger.error(
            f"{step} failed",
            error=str(error),
            error_type=type(error).__name__,
        )
        return AutomationStepFailedError(f"{step}: {error}", user_message=user_message)
