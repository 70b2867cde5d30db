from decimal import Decimal

import pytest

from storefront.core.exceptions import InsufficientStockError, NotFoundError, ValidationError
from storefront.services.cart import Cart, ProductSnapshot


@pytest.fixture
def catalog():
    return {
        "oud": ProductSnapshot(id="oud", name="Oud Noir", selling_price=Decimal("8000"), quantity=5),
        "rose": ProductSnapshot(id="rose", name="Rose Mist", selling_price=Decimal("4500.50"), quantity=2),
    }


@pytest.fixture
def cart(catalog):
    return Cart(catalog)


def test_add_item_creates_line_priced_from_snapshot(cart):
    line = cart.add_item("oud", 2)

    assert line.name == "Oud Noir"
    assert line.quantity == 2
    assert line.unit_price == Decimal("8000")
    assert line.subtotal == Decimal("16000")
    assert len(cart.lines) == 1


def test_adding_same_product_merges_into_one_line(cart):
    cart.add_item("oud", 2)
    cart.add_item("oud", "3")

    assert len(cart.lines) == 1
    assert cart.quantity_of("oud") == 5
    assert cart.lines[0].subtotal == Decimal("40000")


def test_merged_quantity_over_stock_is_rejected_and_cart_unchanged(cart):
    cart.add_item("oud", 4)

    with pytest.raises(InsufficientStockError) as exc:
        cart.add_item("oud", 2)

    assert exc.value.requested == 6
    assert exc.value.available == 5
    assert cart.quantity_of("oud") == 4
    assert cart.lines[0].subtotal == Decimal("32000")


def test_quantity_equal_to_stock_is_accepted(cart):
    cart.add_item("rose", 2)
    assert cart.quantity_of("rose") == 2


@pytest.mark.parametrize("qty", [None, "", 0, -1, "abc", 1.5, "2.5", True, float("inf")])
def test_invalid_quantities_are_rejected(cart, qty):
    with pytest.raises(ValidationError):
        cart.add_item("oud", qty)
    assert cart.is_empty


def test_missing_product_is_rejected(cart):
    with pytest.raises(ValidationError):
        cart.add_item(None, 1)
    with pytest.raises(ValidationError):
        cart.add_item("", 1)


def test_product_outside_snapshot_is_not_found(cart):
    with pytest.raises(NotFoundError):
        cart.add_item("ghost", 1)


def test_lines_keep_insertion_order(cart):
    cart.add_item("rose", 1)
    cart.add_item("oud", 1)
    cart.add_item("rose", 1)

    assert [line.product_id for line in cart.lines] == ["rose", "oud"]


def test_total_sums_subtotals(cart):
    assert cart.total() == Decimal("0")

    cart.add_item("oud", 2)
    cart.add_item("rose", 1)

    assert cart.total() == Decimal("20500.50")


def test_remove_item_drops_line_and_ignores_unknown(cart):
    cart.add_item("oud", 1)
    cart.remove_item("rose")
    assert len(cart.lines) == 1

    cart.remove_item("oud")
    assert cart.is_empty
    assert cart.total() == Decimal("0")


def test_clear_empties_cart(cart):
    cart.add_item("oud", 1)
    cart.add_item("rose", 1)
    cart.clear()
    assert cart.is_empty
