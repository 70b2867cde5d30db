"""Stock and pricing rules shared by the cart, listings and dashboards.

Stock is validated against the quantity the caller last fetched. Nothing
re-reads live stock before a sale is committed, so two sessions selling
the same product can oversell it.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from storefront.core.config import settings


def has_sufficient_stock(requested: int, available: int) -> bool:
    return requested <= available


def is_low_stock(quantity: int, threshold: Optional[int] = None) -> bool:
    """Low stock means strictly below the threshold (10 by default)."""
    if threshold is None:
        threshold = settings.LOW_STOCK_THRESHOLD
    return quantity < threshold


def profit_margin(cost_price, selling_price) -> Optional[Decimal]:
    """(selling - cost) / selling * 100, one decimal place. None when selling price is 0."""
    selling = Decimal(str(selling_price))
    if selling == 0:
        return None
    margin = (selling - Decimal(str(cost_price))) / selling * 100
    return margin.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def inventory_value(products) -> Decimal:
    """Stock on hand valued at cost."""
    return sum((Decimal(p.quantity) * Decimal(str(p.cost_price)) for p in products), Decimal("0"))
