"""Pydantic schemas for RESTful API request/response models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, HttpUrl

from blinkit_checkout.models.cart import Product


# =============================================================================
# Base Schemas
# =============================================================================


class BaseResponse(BaseModel):
    """Base response with common fields."""

    success: bool = True
    message: str = "OK"


class ErrorResponse(BaseModel):
    """Error response schema."""

    success: bool = False
    error: str
    message: str


# =============================================================================
# Checkout Schemas
# =============================================================================


class LoginRequest(BaseModel):
    """Request body for starting a login."""

    phone_number: str = Field(
        ...,
        pattern=r"^[6-9]\d{9}$",
        description="10-digit Indian mobile number",
        examples=["9999999999"],
    )


class VerifyRequest(BaseModel):
    """Request body for OTP submission."""

    session_id: str = Field(..., min_length=1)
    otp: str = Field(..., pattern=r"^\d{4}$", description="4-digit OTP")


class ProductSchema(BaseModel):
    """A product page and the variant to pick."""

    url: HttpUrl
    variant: str = Field(..., min_length=1, examples=["500 g"])

    def to_product(self) -> Product:
        return Product(url=str(self.url), variant=self.variant)


class CartRequest(BaseModel):
    """Request body for populating the cart."""

    session_id: str = Field(..., min_length=1)
    products: list[ProductSchema] = Field(..., min_length=1)


class CartLineItemSchema(BaseModel):
    """One scraped cart line."""

    name: str
    quantity: int
    price: float


class CartSummarySchema(BaseModel):
    """Scraped cart with the page-reported total."""

    items: list[CartLineItemSchema]
    totalPrice: float


class LoginResponse(BaseResponse):
    """Response for a started login."""

    data: dict[str, str]


class VerifyResponse(BaseResponse):
    """Response for a verified OTP."""


class CartResponse(BaseResponse):
    """Response for a populated cart."""

    data: CartSummarySchema


# =============================================================================
# Health Schemas
# =============================================================================


class HealthResponse(BaseModel):
    """Service health."""

    status: str
    version: str
    cache_reachable: bool
    durable_tier: bool
    pool: dict[str, Any]
