"""Customer balances. Used by customer listings, payments and reminders."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable


@dataclass(frozen=True)
class CustomerTotals:
    total_sales: Decimal
    total_payments: Decimal
    balance: Decimal


def _sum(amounts: Iterable) -> Decimal:
    return sum((Decimal(str(a)) for a in amounts if a is not None), Decimal("0"))


def outstanding_balance(sale_totals: Iterable, payment_amounts: Iterable) -> Decimal:
    """
    Lifetime sales minus lifetime payments.

    Not clamped: a payment recorded outside the payment flow can push the
    balance below zero, and it is reported that way.
    """
    return _sum(sale_totals) - _sum(payment_amounts)


def customer_totals(customer) -> CustomerTotals:
    total_sales = _sum(s.total_amount for s in customer.sales)
    total_payments = _sum(p.amount for p in customer.payments)
    return CustomerTotals(
        total_sales=total_sales,
        total_payments=total_payments,
        balance=total_sales - total_payments,
    )


def customer_balance(customer) -> Decimal:
    return customer_totals(customer).balance
