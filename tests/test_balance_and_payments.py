from decimal import Decimal

import pytest

from storefront.core.exceptions import ValidationError
from storefront.services.balance_service import customer_totals, outstanding_balance
from storefront.services.customer_service import create_customer, get_customer
from storefront.services.payment_service import parse_amount, record_payment


@pytest.fixture
def owing_customer(data, customer):
    """Customer with one 16,000 sale on account."""
    data.insert("sales", {
        "customer_id": customer.id,
        "total_amount": Decimal("16000"),
        "payment_method": "Cash",
    })
    return get_customer(data, customer.id)


def test_outstanding_balance_is_sales_minus_payments():
    assert outstanding_balance([Decimal("16000"), Decimal("4500")], [Decimal("5000")]) == Decimal("15500")
    assert outstanding_balance([], []) == Decimal("0")


def test_outstanding_balance_is_not_clamped():
    assert outstanding_balance([1000], [1500]) == Decimal("-500")


def test_customer_totals(owing_customer):
    totals = customer_totals(owing_customer)
    assert totals.total_sales == Decimal("16000")
    assert totals.total_payments == Decimal("0")
    assert totals.balance == Decimal("16000")


@pytest.mark.parametrize("amount", [None, "", "abc", 0, "0", -5, "NaN", "Infinity", True])
def test_parse_amount_rejects_invalid_values(amount):
    with pytest.raises(ValidationError, match="Please enter a valid amount"):
        parse_amount(amount)


def test_parse_amount_accepts_decimal_strings():
    assert parse_amount(" 1250.50 ") == Decimal("1250.50")


@pytest.mark.parametrize("amount", ["0.004", "0.001", "-0.004"])
def test_amounts_rounding_to_zero_are_rejected(amount):
    with pytest.raises(ValidationError, match="Please enter a valid amount"):
        parse_amount(amount)


def test_parse_amount_rounds_to_two_places():
    assert parse_amount("0.005") == Decimal("0.01")
    assert parse_amount("1250.504") == Decimal("1250.50")


def test_sub_kobo_payment_is_not_stored(data, owing_customer):
    with pytest.raises(ValidationError):
        record_payment(data, owing_customer, "0.004")

    assert data.fetch_all("payments") == []


def test_balance_check_uses_rounded_amount(data, owing_customer):
    with pytest.raises(ValidationError, match="Payment amount cannot exceed outstanding balance"):
        record_payment(data, owing_customer, "16000.005")

    payment = record_payment(data, owing_customer, "16000.004")

    assert payment.amount == Decimal("16000.00")
    stored = data.fetch_all("payments")
    assert [p.amount for p in stored] == [Decimal("16000.00")]
    assert all(p.amount > 0 for p in stored)


def test_payment_equal_to_balance_is_accepted(data, owing_customer):
    payment = record_payment(data, owing_customer, "16000", notes="Cleared in full")

    assert payment.amount == Decimal("16000")
    assert payment.notes == "Cleared in full"
    assert customer_totals(get_customer(data, owing_customer.id)).balance == Decimal("0")


def test_payment_above_balance_is_rejected_without_write(data, owing_customer):
    with pytest.raises(ValidationError, match="Payment amount cannot exceed outstanding balance"):
        record_payment(data, owing_customer, 16001)

    assert data.fetch_all("payments") == []


def test_partial_payments_reduce_balance(data, owing_customer):
    record_payment(data, owing_customer, 6000)
    customer = get_customer(data, owing_customer.id)
    record_payment(data, customer, "4000.50")

    totals = customer_totals(get_customer(data, owing_customer.id))
    assert totals.total_payments == Decimal("10000.50")
    assert totals.balance == Decimal("5999.50")


def test_customer_without_balance_cannot_pay(data, customer):
    with pytest.raises(ValidationError):
        record_payment(data, get_customer(data, customer.id), 1)


def test_create_customer_requires_name_and_phone(data):
    with pytest.raises(ValidationError, match="Please fill in required fields"):
        create_customer(data, name="Tunde", phone="  ")
    with pytest.raises(ValidationError):
        create_customer(data, name="", phone="08012345678")


def test_create_customer_defaults_credit_limit(data):
    created = create_customer(data, name=" Tunde Bello ", phone="08012345678", email="")

    assert created.name == "Tunde Bello"
    assert created.email is None
    assert created.credit_limit == Decimal("0")
