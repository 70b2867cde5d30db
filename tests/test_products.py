from decimal import Decimal
from pathlib import Path

import pytest

from storefront.core.exceptions import NotFoundError, PersistenceError, ReferentialConstraintError, ValidationError
from storefront.services import catalog_service
from storefront.services.stock import inventory_value, is_low_stock, profit_margin


def _fields(category_id, /, **overrides):
    fields = {
        "name": "Oud Noir",
        "category_id": category_id,
        "cost_price": "5000",
        "selling_price": "8000",
        "quantity": "12",
        "description": "",
    }
    fields.update(overrides)
    return fields


def test_low_stock_is_strictly_below_threshold():
    assert is_low_stock(9)
    assert not is_low_stock(10)
    assert is_low_stock(0)
    assert not is_low_stock(3, threshold=3)


def test_profit_margin():
    assert profit_margin(Decimal("5000"), Decimal("8000")) == Decimal("37.5")
    assert profit_margin(3, 9) == Decimal("66.7")
    assert profit_margin(100, 80) == Decimal("-25.0")
    assert profit_margin(100, 0) is None


def test_inventory_value_uses_cost_price(make_product):
    products = [
        make_product("Oud Noir", quantity=5, cost_price="5000"),
        make_product("Rose Mist", quantity=2, cost_price="2500.50"),
    ]
    assert inventory_value(products) == Decimal("30001.00")


def test_create_product(data, category):
    product = catalog_service.create_product(data, _fields(category.id))

    row = catalog_service.product_row(product)
    assert row["category_name"] == "Perfumes"
    assert row["quantity"] == 12
    assert row["margin"] == Decimal("37.5")
    assert row["low_stock"] is False
    assert row["description"] is None
    assert row["image_url"] is None


@pytest.mark.parametrize("missing", ["name", "category_id", "cost_price", "selling_price", "quantity"])
def test_create_product_requires_fields(data, category, missing):
    with pytest.raises(ValidationError, match="Please fill in all required fields"):
        catalog_service.create_product(data, _fields(category.id, **{missing: ""}))
    assert data.fetch_all("products") == []


@pytest.mark.parametrize("overrides", [
    {"quantity": "-1"},
    {"quantity": "2.5"},
    {"cost_price": "abc"},
    {"selling_price": "-10"},
])
def test_create_product_rejects_bad_numbers(data, category, overrides):
    with pytest.raises(ValidationError):
        catalog_service.create_product(data, _fields(category.id, **overrides))


def test_create_product_with_unknown_category(data, category):
    with pytest.raises(NotFoundError):
        catalog_service.create_product(data, _fields("no-such-category"))


def test_image_upload_is_stored_and_linked(data, category, storage):
    product = catalog_service.create_product(
        data, _fields(category.id), image_filename="bottle.PNG", image_content=b"\x89PNG\r\n\x1a\nfake"
    )

    assert product.image_url.startswith("/media/product-images/")
    assert product.image_url.endswith(".png")
    stored = Path(storage.root) / "product-images" / product.image_url.rsplit("/", 1)[-1]
    assert stored.read_bytes().startswith(b"\x89PNG")


def test_image_upload_failure_does_not_block_product(data, category, monkeypatch):
    def broken_upload(bucket, path, content):
        raise PersistenceError("storage unavailable")

    monkeypatch.setattr(data, "upload_binary", broken_upload)

    product = catalog_service.create_product(
        data, _fields(category.id), image_filename="bottle.jpg", image_content=b"jpeg-bytes"
    )

    assert product.id is not None
    assert product.image_url is None


def test_unsupported_image_type_is_ignored(data, category):
    product = catalog_service.create_product(
        data, _fields(category.id), image_filename="notes.txt", image_content=b"hello"
    )
    assert product.image_url is None


def test_update_product_stock_and_price(data, make_product):
    product = make_product("Oud Noir", quantity=4)

    updated = catalog_service.update_product(data, product.id, {"quantity": 15, "selling_price": Decimal("9000")})

    assert updated.quantity == 15
    assert updated.selling_price == Decimal("9000")
    assert not catalog_service.product_row(updated)["low_stock"]


def test_update_product_rejects_negative_stock(data, make_product):
    product = make_product("Oud Noir", quantity=4)
    with pytest.raises(ValidationError):
        catalog_service.update_product(data, product.id, {"quantity": -1})


def test_low_stock_listing(data, make_product):
    make_product("Plenty", quantity=10)
    make_product("Almost Out", quantity=9)
    make_product("Sold Out", quantity=0)

    rows = catalog_service.list_low_stock(data)

    assert [row["name"] for row in rows] == ["Sold Out", "Almost Out"]


def test_delete_unsold_product(data, make_product):
    product = make_product("Oud Noir")
    catalog_service.delete_product(data, product.id)

    with pytest.raises(NotFoundError):
        data.get("products", product.id)


def test_delete_sold_product_is_refused(data, make_product):
    product = make_product("Oud Noir")
    sale = data.insert("sales", {"total_amount": Decimal("8000"), "payment_method": "Cash"})
    data.insert("sale_items", {
        "sale_id": sale.id,
        "product_id": product.id,
        "quantity": 1,
        "unit_price": Decimal("8000"),
        "subtotal": Decimal("8000"),
    })

    with pytest.raises(ReferentialConstraintError):
        catalog_service.delete_product(data, product.id)

    assert data.get("products", product.id).name == "Oud Noir"


def test_category_listing_counts_products(data, category, make_product):
    make_product("Oud Noir")
    make_product("Rose Mist")

    rows = catalog_service.list_categories(data)

    assert rows[0]["name"] == "Perfumes"
    assert rows[0]["product_count"] == 2


def test_delete_category_with_products_is_refused(data, category, make_product):
    make_product("Oud Noir")

    with pytest.raises(ReferentialConstraintError):
        catalog_service.delete_category(data, category.id)


def test_delete_empty_category(data):
    empty = catalog_service.create_category(data, "  Candles ", None)
    assert empty.name == "Candles"

    catalog_service.delete_category(data, empty.id)

    assert data.fetch_all("categories", filters={"id": empty.id}) == []


def test_create_category_requires_name(data):
    with pytest.raises(ValidationError, match="Please enter a category name"):
        catalog_service.create_category(data, "   ")
