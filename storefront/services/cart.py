"""
Cart accumulation for an in-progress sale.

The cart never touches the database. Stock checks use the product
snapshot captured when the sale session was opened.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Mapping, Optional

from storefront.core.exceptions import InsufficientStockError, NotFoundError, ValidationError
from storefront.services.stock import has_sufficient_stock


@dataclass(frozen=True)
class ProductSnapshot:
    """Product as last fetched: what the cart validates and prices against."""
    id: str
    name: str
    selling_price: Decimal
    quantity: int

    @classmethod
    def from_product(cls, product) -> "ProductSnapshot":
        return cls(
            id=product.id,
            name=product.name,
            selling_price=Decimal(str(product.selling_price)),
            quantity=int(product.quantity),
        )


@dataclass
class CartLine:
    product_id: str
    name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


def _parse_quantity(requested_qty) -> int:
    if requested_qty is None or requested_qty == "" or isinstance(requested_qty, bool):
        raise ValidationError("Please select a product and quantity")
    try:
        qty = int(requested_qty)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"Invalid quantity: {requested_qty!r}")
    if qty != Decimal(str(requested_qty)) or qty <= 0:
        raise ValidationError("Quantity must be a positive whole number")
    return qty


class Cart:
    def __init__(self, catalog: Mapping[str, ProductSnapshot]):
        self._catalog = catalog
        self._lines: Dict[str, CartLine] = {}

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def quantity_of(self, product_id: str) -> int:
        line = self._lines.get(product_id)
        return line.quantity if line else 0

    def add_item(self, product_id: Optional[str], requested_qty) -> CartLine:
        """
        Add ``requested_qty`` of a product, merging with an existing line.

        The merged quantity must fit the snapshot stock; on rejection the
        cart is left exactly as it was.
        """
        if not product_id:
            raise ValidationError("Please select a product and quantity")
        qty = _parse_quantity(requested_qty)

        product = self._catalog.get(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)

        wanted = qty + self.quantity_of(product_id)
        if not has_sufficient_stock(wanted, product.quantity):
            raise InsufficientStockError(product.name, wanted, product.quantity)

        line = self._lines.get(product_id)
        if line:
            line.quantity = wanted
            line.subtotal = wanted * line.unit_price
        else:
            line = CartLine(
                product_id=product.id,
                name=product.name,
                quantity=qty,
                unit_price=product.selling_price,
                subtotal=qty * product.selling_price,
            )
            self._lines[product_id] = line
        return line

    def remove_item(self, product_id: str) -> None:
        self._lines.pop(product_id, None)

    def total(self) -> Decimal:
        return sum((line.subtotal for line in self._lines.values()), Decimal("0"))

    def clear(self) -> None:
        self._lines.clear()
