# app/services/quantity.py
"""
Conversion between a good's display unit and canonical kilograms.

Goods are either sold by weight (the customer types kilograms) or by
units (the customer types a piece count, and stock is debited by the
expected weight of those pieces). Everything that needs to know which
is which goes through this module.
"""
import math

from app.core.config import get_settings
from app.models.catalog import Good

settings = get_settings()

BY_WEIGHT = "by_weight"
BY_UNIT = "by_unit"


def is_by_weight(good: Good) -> bool:
    return good.pricing_mode != BY_UNIT


def display_unit(good: Good) -> str:
    return "kg" if is_by_weight(good) else "units"


def average_weight_kg(
    good: Good,
    size: str | None = None,
    size_weights: dict[str, float] | None = None,
) -> float:
    """
    Expected weight of one piece.

    Size-specific weight wins when the good has sizes and a weight is
    known for the size; then the good-level average; then the store
    default.
    """
    if good.has_sizes and size and size_weights and size in size_weights:
        return size_weights[size]
    if good.average_weight_kg and good.average_weight_kg > 0:
        return good.average_weight_kg
    return settings.DEFAULT_AVERAGE_WEIGHT_KG


def max_orderable_units(
    available_kg: float,
    good: Good,
    size: str | None = None,
    size_weights: dict[str, float] | None = None,
) -> int | None:
    """
    floor(available_kg / piece weight), never negative.

    None for by-weight goods: they have no unit ceiling.
    """
    if is_by_weight(good):
        return None
    avg = average_weight_kg(good, size, size_weights)
    # Guard against 1.9999999 style float noise before flooring
    return max(0, math.floor(round(available_kg / avg, 9)))


def weight_debit(
    good: Good,
    quantity: float,
    size: str | None = None,
    size_weights: dict[str, float] | None = None,
) -> float:
    """
    Kilograms to take out of stock for the requested quantity.
    """
    if is_by_weight(good):
        return round(float(quantity), 3)
    return round(quantity * average_weight_kg(good, size, size_weights), 3)


def validate_quantity(
    good: Good,
    quantity: float,
    size: str | None = None,
    size_weights: dict[str, float] | None = None,
) -> str | None:
    """
    Return a customer-facing reason if the quantity cannot be ordered,
    or None if it is fine.
    """
    if not math.isfinite(quantity):
        return f"Invalid quantity for {good.name}"

    # Goods without sizes, or without a size table yet, use the good-level
    # average; only a size missing from an existing table is an error.
    if size is not None and good.has_sizes and size_weights and size not in size_weights:
        return f"Size {size} is not available for {good.name}"

    if is_by_weight(good):
        if quantity < settings.MIN_WEIGHT_KG:
            return f"Minimum order for {good.name} is {settings.MIN_WEIGHT_KG} kg"
        return None

    if not float(quantity).is_integer() or quantity < 1:
        return f"{good.name} is sold by whole units"

    ceiling = max_orderable_units(good.available_kg, good, size, size_weights)
    if quantity > ceiling:
        return (
            f"Only {ceiling} units of {good.name} available "
            f"(requested {int(quantity)})"
        )
    return None


def unit_price(good: Good, price_addition: float) -> float:
    """Per-kg price including the cut surcharge."""
    return round(good.price_per_kg + price_addition, 2)


def line_total(price_per_kg: float, weight_kg: float) -> float:
    return round(price_per_kg * weight_kg, 2)
