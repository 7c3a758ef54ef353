"""Data models for session records and carts."""

from blinkit_checkout.models.cart import CartLineItem, CartSummary, Product
from blinkit_checkout.models.session import SessionRecord, WorkflowState


__all__ = [
    "CartLineItem",
    "CartSummary",
    "Product",
    "SessionRecord",
    "WorkflowState",
]
