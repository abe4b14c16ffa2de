"""
Validation utilities for the Inventory service.

Each validator returns a dict mapping field name to message, one entry per
violated field. An empty dict means the input is valid.
"""
from decimal import Decimal
from typing import Dict, Optional
from . import models, schemas

MAX_QUANTITY = models.INTEGER_MAX
# Largest value a Numeric(10, 2) column holds
MAX_PRICE = Decimal("99999999.99")
CENT = Decimal("0.01")


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def validate_price(price: Optional[Decimal]) -> Optional[str]:
    """
    Check a single price value.

    Returns:
        Error message, or None if the price is acceptable
    """
    if price is None:
        return "Price is required"
    if not price.is_finite():
        return "Price must be a finite number"
    if price < 0:
        return "Price must be at least 0"
    if price > MAX_PRICE:
        return f"Price cannot exceed {MAX_PRICE}"
    if price != price.quantize(CENT):
        return "Price cannot have more than 2 decimal places"
    return None


def validate_candidate(candidate: schemas.ItemCandidate) -> Dict[str, str]:
    """
    Validate an item candidate for create or full update.

    Args:
        candidate: Proposed field values

    Returns:
        Field -> message for every violated field
    """
    errors: Dict[str, str] = {}

    if _blank(candidate.name):
        errors["name"] = "Name is required"

    if candidate.quantity is None:
        errors["quantity"] = "Quantity is required"
    elif candidate.quantity < 0:
        errors["quantity"] = "Quantity must be at least 0"
    elif candidate.quantity > MAX_QUANTITY:
        errors["quantity"] = f"Quantity cannot exceed {MAX_QUANTITY}"

    price_error = validate_price(candidate.price)
    if price_error:
        errors["price"] = price_error

    if _blank(candidate.category):
        errors["category"] = "Category is required"

    return errors


def validate_price_range(min_price: Optional[Decimal], max_price: Optional[Decimal]) -> Dict[str, str]:
    """
    Validate the bounds of a price range filter.

    Args:
        min_price: Inclusive lower bound
        max_price: Inclusive upper bound

    Returns:
        Field -> message for every violated bound
    """
    errors: Dict[str, str] = {}
    if min_price is None or not min_price.is_finite():
        errors["min_price"] = "Minimum price must be a finite number"
    if max_price is None or not max_price.is_finite():
        errors["max_price"] = "Maximum price must be a finite number"
    if not errors and min_price > max_price:
        errors["min_price"] = f"Minimum price {min_price} is greater than maximum price {max_price}"
    return errors


def validate_restock(current: int, delta: int) -> Dict[str, str]:
    """
    Check that adding ``delta`` to ``current`` keeps the quantity storable.

    Returns:
        Field -> message, empty when the resulting quantity is in range
    """
    resulting = current + delta
    if resulting < 0:
        return {"quantity": f"Restock by {delta} would leave quantity {resulting}, must be at least 0"}
    if resulting > MAX_QUANTITY:
        return {"quantity": f"Restock by {delta} would raise quantity to {resulting}, cannot exceed {MAX_QUANTITY}"}
    return {}
