"""Checkout endpoints - login, OTP verification and cart population."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from blinkit_checkout.api.dependencies import OrchestratorDep
from blinkit_checkout.api.schemas import (
    CartRequest,
    CartResponse,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    VerifyRequest,
    VerifyResponse,
)
from blinkit_checkout.exceptions import ErrorCode


if TYPE_CHECKING:
    from blinkit_checkout.services.orchestrator import Outcome

router = APIRouter(prefix="/checkout", tags=["Checkout"])

_STATUS_BY_ERROR = {
    ErrorCode.SESSION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.HANDLE_EXPIRED: status.HTTP_410_GONE,
    ErrorCode.INVALID_SESSION_STATE: status.HTTP_409_CONFLICT,
    ErrorCode.POOL_EXHAUSTED: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.AUTOMATION_STEP_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.SCRAPE_PARSE_FAILURE: status.HTTP_502_BAD_GATEWAY,
}

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    code: {"model": ErrorResponse} for code in set(_STATUS_BY_ERROR.values())
}


def error_response(outcome: Outcome[Any]) -> JSONResponse:
    """Render a failed outcome with the status matching its error code."""
    status_code = _STATUS_BY_ERROR.get(
        outcome.error, status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    return JSONResponse(status_code=status_code, content=outcome.to_dict())


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Request an OTP",
    description="Open the site in a new browser, submit the phone number and start a session.",
    responses=_ERROR_RESPONSES,
)
async def request_login(
    request: LoginRequest,
    orchestrator: OrchestratorDep,
) -> LoginResponse | JSONResponse:
    """Start a checkout session; the returned session id drives later calls."""
    outcome = await orchestrator.request_login(request.phone_number)
    if not outcome.ok:
        return error_response(outcome)
    return LoginResponse(message="OTP requested", data={"session_id": outcome.value})


@router.post(
    "/verify",
    response_model=VerifyResponse,
    summary="Submit the OTP",
    responses=_ERROR_RESPONSES,
)
async def verify_code(
    request: VerifyRequest,
    orchestrator: OrchestratorDep,
) -> VerifyResponse | JSONResponse:
    """Type the OTP into the session's live browser."""
    outcome = await orchestrator.verify_code(request.session_id, request.otp)
    if not outcome.ok:
        return error_response(outcome)
    return VerifyResponse(message="OTP verified")


@router.post(
    "/cart",
    response_model=CartResponse,
    summary="Add products and read the cart",
    description="Add each product in order, then return the cart lines and displayed total. "
    "The session's browser is closed afterwards.",
    responses=_ERROR_RESPONSES,
)
async def populate_cart(
    request: CartRequest,
    orchestrator: OrchestratorDep,
) -> CartResponse | JSONResponse:
    """Populate the cart for a verified session."""
    products = [p.to_product() for p in request.products]
    outcome = await orchestrator.populate_cart(request.session_id, products)
    if not outcome.ok or outcome.value is None:
        return error_response(outcome)
    return CartResponse(message="Cart populated", data=outcome.value.to_dict())
