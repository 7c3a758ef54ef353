"""Cart input and output models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class Product:
    """A product page to add, with the desired variant (e.g. "500 g")."""

    url: str
    variant: str


@dataclass
class CartLineItem:
    """One line of the scraped cart."""

    name: str
    quantity: int
    price: float


@dataclass
class CartSummary:
    """
    Scraped cart contents.

    ``total_price`` is the total the site displays, which can differ from
    the sum of line items because of discounts and fees.
    """

    items: list[CartLineItem] = field(default_factory=list)
    total_price: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for API responses."""
        return {
            "items": [asdict(item) for item in self.items],
            "totalPrice": self.total_price,
        }
