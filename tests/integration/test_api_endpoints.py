"""Integration tests for API endpoints."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from blinkit_checkout.api.dependencies import get_orchestrator, get_redis
from blinkit_checkout.api.main import create_app
from blinkit_checkout.core.pool import BrowserHandlePool
from blinkit_checkout.exceptions import ErrorCode
from blinkit_checkout.models.cart import CartLineItem, CartSummary
from blinkit_checkout.services.orchestrator import Outcome


VALID_PRODUCT = {
    "url": "https://blinkit.com/prn/amul-taaza-milk/prid/19512",
    "variant": "500 ml",
}


@pytest.fixture
def mock_orchestrator() -> MagicMock:
    """Orchestrator whose operations all succeed."""
    orchestrator = MagicMock()
    orchestrator.pool = BrowserHandlePool(max_handles=3)
    orchestrator.request_login = AsyncMock(return_value=Outcome.success("sess-1"))
    orchestrator.verify_code = AsyncMock(return_value=Outcome.success())
    orchestrator.populate_cart = AsyncMock(
        return_value=Outcome.success(
            CartSummary(
                items=[CartLineItem(name="Amul Taaza Toned Milk", quantity=2, price=54.0)],
                total_price=13.47,
            )
        )
    )
    return orchestrator


@pytest.fixture
def client(mock_orchestrator: MagicMock) -> TestClient:
    """Create test client without running the lifespan."""
    mock_redis = MagicMock()
    mock_redis.ping = AsyncMock(return_value=True)

    app = create_app()
    app.dependency_overrides[get_orchestrator] = lambda: mock_orchestrator
    app.dependency_overrides[get_redis] = lambda: mock_redis
    return TestClient(app)


@pytest.mark.integration
class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_root_endpoint(self, client: TestClient) -> None:
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Blinkit Checkout API"
        assert "links" in data

    def test_health_endpoint(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["cache_reachable"] is True
        assert data["durable_tier"] is False
        assert data["pool"] == {"size": 0, "capacity": 3, "sessions": []}


@pytest.mark.integration
class TestLoginEndpoint:
    """Tests for POST /api/v1/checkout/login."""

    def test_login_success(self, client: TestClient, mock_orchestrator: MagicMock) -> None:
        response = client.post("/api/v1/checkout/login", json={"phone_number": "9876543210"})

        assert response.status_code == 200
        assert response.json()["data"] == {"session_id": "sess-1"}
        mock_orchestrator.request_login.assert_awaited_once_with("9876543210")

    @pytest.mark.parametrize("phone", ["12345", "5876543210", "98765432101", "98765abcde"])
    def test_login_rejects_invalid_phone(
        self, client: TestClient, mock_orchestrator: MagicMock, phone: str
    ) -> None:
        response = client.post("/api/v1/checkout/login", json={"phone_number": phone})

        assert response.status_code == 422
        mock_orchestrator.request_login.assert_not_awaited()

    def test_login_pool_exhausted(
        self, client: TestClient, mock_orchestrator: MagicMock
    ) -> None:
        mock_orchestrator.request_login.return_value = Outcome.failure(
            ErrorCode.POOL_EXHAUSTED, "Too many active checkouts right now."
        )

        response = client.post("/api/v1/checkout/login", json={"phone_number": "9876543210"})

        assert response.status_code == 503
        assert response.json()["error"] == "POOL_EXHAUSTED"


@pytest.mark.integration
class TestVerifyEndpoint:
    """Tests for POST /api/v1/checkout/verify."""

    def test_verify_success(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/checkout/verify", json={"session_id": "sess-1", "otp": "1234"}
        )

        assert response.status_code == 200
        assert response.json()["success"] is True

    @pytest.mark.parametrize("otp", ["123", "12345", "12a4"])
    def test_verify_rejects_bad_otp(self, client: TestClient, otp: str) -> None:
        response = client.post(
            "/api/v1/checkout/verify", json={"session_id": "sess-1", "otp": otp}
        )

        assert response.status_code == 422

    @pytest.mark.parametrize(
        ("code", "status_code"),
        [
            (ErrorCode.SESSION_NOT_FOUND, 404),
            (ErrorCode.HANDLE_EXPIRED, 410),
            (ErrorCode.INVALID_SESSION_STATE, 409),
            (ErrorCode.AUTOMATION_STEP_FAILED, 502),
        ],
    )
    def test_verify_error_mapping(
        self,
        client: TestClient,
        mock_orchestrator: MagicMock,
        code: ErrorCode,
        status_code: int,
    ) -> None:
        mock_orchestrator.verify_code.return_value = Outcome.failure(code, "Nope.")

        response = client.post(
            "/api/v1/checkout/verify", json={"session_id": "sess-1", "otp": "1234"}
        )

        assert response.status_code == status_code
        assert response.json() == {"success": False, "error": code.value, "message": "Nope."}


@pytest.mark.integration
class TestCartEndpoint:
    """Tests for POST /api/v1/checkout/cart."""

    def test_cart_success(self, client: TestClient, mock_orchestrator: MagicMock) -> None:
        response = client.post(
            "/api/v1/checkout/cart",
            json={"session_id": "sess-1", "products": [VALID_PRODUCT]},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalPrice"] == 13.47
        assert data["items"][0] == {
            "name": "Amul Taaza Toned Milk",
            "quantity": 2,
            "price": 54.0,
        }
        products = mock_orchestrator.populate_cart.call_args.args[1]
        assert products[0].url == VALID_PRODUCT["url"]
        assert products[0].variant == "500 ml"

    def test_cart_requires_products(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/checkout/cart", json={"session_id": "sess-1", "products": []}
        )

        assert response.status_code == 422

    def test_cart_rejects_non_http_url(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/checkout/cart",
            json={
                "session_id": "sess-1",
                "products": [{"url": "ftp://blinkit.com/x", "variant": "1 kg"}],
            },
        )

        assert response.status_code == 422

    def test_cart_rejects_empty_variant(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/checkout/cart",
            json={
                "session_id": "sess-1",
                "products": [{"url": VALID_PRODUCT["url"], "variant": ""}],
            },
        )

        assert response.status_code == 422

    def test_cart_scrape_failure(
        self, client: TestClient, mock_orchestrator: MagicMock
    ) -> None:
        mock_orchestrator.populate_cart.return_value = Outcome.failure(
            ErrorCode.SCRAPE_PARSE_FAILURE, "Could not read the cart contents."
        )

        response = client.post(
            "/api/v1/checkout/cart",
            json={"session_id": "sess-1", "products": [VALID_PRODUCT]},
        )

        assert response.status_code == 502
        assert response.json()["error"] == "SCRAPE_PARSE_FAILURE"
