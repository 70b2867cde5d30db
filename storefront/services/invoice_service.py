"""
Invoice document for a completed sale.

``build_invoice`` is pure: the same sale, items and customer always give
the same document. Rendering to text or PDF happens elsewhere and never
touches domain data.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from storefront.core.config import settings
from storefront.core.exceptions import ValidationError

WALK_IN_CUSTOMER = "Walk-in Customer"


class InvoiceMismatchError(ValidationError):
    """Line subtotals do not add up to the persisted sale total."""


@dataclass(frozen=True)
class InvoiceLine:
    name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class BillTo:
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    walk_in: bool = False


@dataclass(frozen=True)
class InvoiceDocument:
    business_name: str
    business_address: str
    business_phone: str
    invoice_number: str
    sale_id: str
    date: str
    time: str
    payment_method: str
    bill_to: BillTo
    lines: List[InvoiceLine] = field(default_factory=list)
    total: Decimal = Decimal("0")

    @property
    def filename(self) -> str:
        return invoice_filename(self.sale_id)


def format_money(amount, symbol: Optional[str] = None) -> str:
    """₦16,000 for whole amounts, ₦1,250.50 otherwise; negatives as -₦500."""
    if symbol is None:
        symbol = settings.CURRENCY_SYMBOL
    value = Decimal(str(amount))
    sign = "-" if value < 0 else ""
    value = abs(value)
    if value == value.to_integral_value():
        return f"{sign}{symbol}{int(value):,}"
    return f"{sign}{symbol}{value:,.2f}"


def invoice_number(sale_id: str) -> str:
    """First 8 characters of the sale id, upper-cased."""
    return str(sale_id)[:8].upper()


def invoice_filename(sale_id: str) -> str:
    return f"invoice-{invoice_number(sale_id)}.pdf"


def build_invoice(sale, items, customer=None) -> InvoiceDocument:
    """
    Assemble the invoice for ``sale``.

    Args:
        sale: persisted Sale (id, total_amount, payment_method, created_at)
        items: its SaleItem rows, with ``product`` loaded for the names
        customer: Customer or None for a walk-in sale

    Raises:
        InvoiceMismatchError: if the item subtotals do not sum to sale.total_amount
    """
    lines = [
        InvoiceLine(
            name=item.product.name if item.product is not None else str(item.product_id),
            quantity=int(item.quantity),
            unit_price=Decimal(str(item.unit_price)),
            subtotal=Decimal(str(item.subtotal)),
        )
        for item in sorted(items, key=lambda i: i.position or 0)
    ]
    total = Decimal(str(sale.total_amount))
    lines_total = sum((line.subtotal for line in lines), Decimal("0"))
    if lines_total != total:
        raise InvoiceMismatchError(
            f"Invoice {invoice_number(sale.id)} lines add up to {lines_total}, sale total is {total}"
        )

    if customer is not None:
        bill_to = BillTo(name=customer.name, phone=customer.phone, email=customer.email or None)
    else:
        bill_to = BillTo(name=WALK_IN_CUSTOMER, walk_in=True)

    created_at = sale.created_at
    return InvoiceDocument(
        business_name=settings.BUSINESS_NAME,
        business_address=settings.BUSINESS_ADDRESS,
        business_phone=settings.BUSINESS_PHONE,
        invoice_number=invoice_number(sale.id),
        sale_id=sale.id,
        date=created_at.strftime("%d %b %Y") if created_at else "",
        time=created_at.strftime("%I:%M %p") if created_at else "",
        payment_method=sale.payment_method,
        bill_to=bill_to,
        lines=lines,
        total=total,
    )


def format_invoice_message(document: InvoiceDocument) -> str:
    """Plain-text invoice for printing or sharing."""
    bill_to = [document.bill_to.name]
    if document.bill_to.phone:
        bill_to.append(f"Phone: {document.bill_to.phone}")
    if document.bill_to.email:
        bill_to.append(f"Email: {document.bill_to.email}")

    rows = [
        f"{line.name} x{line.quantity} @ {format_money(line.unit_price)} = {format_money(line.subtotal)}"
        for line in document.lines
    ]

    message = "\n".join([
        document.business_name,
        document.business_address,
        "",
        f"INVOICE #{document.invoice_number}",
        f"Date: {document.date}, {document.time}",
        f"Payment: {document.payment_method}",
        "",
        "Bill To:",
        *bill_to,
        "",
        *rows,
        "",
        f"TOTAL: {format_money(document.total)}",
        "",
        "Thank you for your business!",
    ])
    return message
