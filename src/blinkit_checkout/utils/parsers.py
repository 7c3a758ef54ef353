"""Shared parsing utilities for scraped cart text."""

from __future__ import annotations

import re


def parse_price(price_text: str | None) -> float:
    """
    Parse price from text string.

    Handles rupee formats (e.g., "₹1,234.50" -> 1234.5).

    Args:
        price_text: Price string to parse

    Returns:
        Parsed price as float, or 0.0 if parsing fails
    """
    if not price_text:
        return 0.0
    cleaned = re.sub(r"[^\d.]", "", str(price_text))
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def parse_quantity(quantity_text: str | None) -> int:
    """
    Parse a cart line quantity.

    Args:
        quantity_text: Quantity string (e.g., "2", "Qty: 3")

    Returns:
        Parsed quantity, or 1 if parsing fails
    """
    if not quantity_text:
        return 1

    digits = re.sub(r"[^\d]", "", str(quantity_text))
    try:
        return int(digits)
    except ValueError:
        return 1
