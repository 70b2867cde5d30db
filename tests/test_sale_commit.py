from decimal import Decimal

import pytest

from storefront.core.cache import QueryCache
from storefront.core.exceptions import PersistenceError, SaleCommitError, ValidationError
from storefront.models.sale import PaymentMethod
from storefront.services.sale_service import commit_sale, open_sale_session, sale_invoice
from storefront.services.sale_session import CommitState, SaleSessionStore


@pytest.fixture
def store():
    return SaleSessionStore()


@pytest.fixture
def oud(make_product):
    return make_product("Oud Noir", quantity=5, selling_price="8000")


@pytest.fixture
def rose(make_product):
    return make_product("Rose Mist", quantity=3, cost_price="2500", selling_price="4500")


def _quantity(data, product_id):
    return data.get("products", product_id).quantity


def test_session_snapshot_only_holds_products_in_stock(data, store, oud, make_product):
    sold_out = make_product("Amber Dusk", quantity=0)

    session = open_sale_session(data, store)

    assert oud.id in session.catalog
    assert sold_out.id not in session.catalog
    assert store.get(session.id) is session


def test_commit_writes_sale_items_and_stock(data, store, oud, rose, customer):
    session = open_sale_session(data, store)
    session.cart.add_item(rose.id, 1)
    session.cart.add_item(oud.id, 2)
    session.set_checkout_details(customer.id, "Transfer")

    result = commit_sale(data, session)

    assert result.sale.total_amount == Decimal("20500")
    assert result.sale.customer_id == customer.id
    assert result.sale.payment_method == "Transfer"
    assert [item.product_id for item in result.items] == [rose.id, oud.id]
    assert [item.position for item in result.items] == [0, 1]
    assert sum(item.subtotal for item in result.items) == result.sale.total_amount

    assert _quantity(data, oud.id) == 3
    assert _quantity(data, rose.id) == 2


def test_commit_resets_session_for_next_sale(data, store, oud, customer):
    session = open_sale_session(data, store)
    session.cart.add_item(oud.id, 1)
    session.set_checkout_details(customer.id, "Card")

    commit_sale(data, session)

    assert session.state == CommitState.COMMITTED
    assert session.cart.is_empty
    assert session.customer_id is None
    assert session.payment_method == PaymentMethod.CASH


def test_walk_in_sale_has_no_customer(data, store, oud):
    session = open_sale_session(data, store)
    session.cart.add_item(oud.id, 1)
    session.set_checkout_details("", "Cash")

    result = commit_sale(data, session)

    assert result.sale.customer_id is None
    assert sale_invoice(data, result.sale.id).bill_to.walk_in


def test_empty_cart_is_rejected_without_writes(data, store, oud):
    session = open_sale_session(data, store)

    with pytest.raises(ValidationError, match="Cart is empty"):
        commit_sale(data, session)

    assert data.fetch_all("sales") == []
    assert session.state == CommitState.IDLE


def test_commit_invalidates_cached_listings(data, store, oud):
    cache = QueryCache()
    cache.get_or_load("products", lambda: ["stale"])
    cache.get_or_load("customers", lambda: ["stale"])
    session = open_sale_session(data, store)
    session.cart.add_item(oud.id, 1)

    commit_sale(data, session, cache=cache)

    assert "products" not in cache
    assert "customers" not in cache


def test_stock_decrement_uses_snapshot_so_last_writer_wins(data, store, oud):
    first = open_sale_session(data, store)
    second = open_sale_session(data, store)
    first.cart.add_item(oud.id, 2)
    second.cart.add_item(oud.id, 1)

    commit_sale(data, first)
    commit_sale(data, second)

    # Both sessions saw 5; the second write overwrites the first.
    assert _quantity(data, oud.id) == 4
    assert len(data.fetch_all("sales")) == 2


def test_header_failure_writes_nothing(data, store, oud, monkeypatch):
    session = open_sale_session(data, store)
    session.cart.add_item(oud.id, 1)

    def fail_insert(table, record):
        raise PersistenceError("database is locked")

    monkeypatch.setattr(data, "insert", fail_insert)

    with pytest.raises(SaleCommitError) as exc:
        commit_sale(data, session)

    assert exc.value.step == "sale"
    assert exc.value.sale_id is None
    assert exc.value.message == "database is locked"
    monkeypatch.undo()
    assert data.fetch_all("sales") == []


def test_items_failure_leaves_orphaned_header_and_keeps_cart(data, store, oud, monkeypatch):
    session = open_sale_session(data, store)
    session.cart.add_item(oud.id, 2)

    def fail_insert_many(table, records):
        raise PersistenceError("disk I/O error")

    monkeypatch.setattr(data, "insert_many", fail_insert_many)

    with pytest.raises(SaleCommitError) as exc:
        commit_sale(data, session)

    assert exc.value.step == "items"
    sales = data.fetch_all("sales", joins=["items"])
    assert [s.id for s in sales] == [exc.value.sale_id]
    assert sales[0].items == []
    assert _quantity(data, oud.id) == 5

    assert session.state == CommitState.FAILED
    assert session.last_error == "disk I/O error"
    assert session.cart.quantity_of(oud.id) == 2


def test_stock_failure_keeps_decrements_already_applied(data, store, oud, rose, monkeypatch):
    session = open_sale_session(data, store)
    session.cart.add_item(oud.id, 1)
    session.cart.add_item(rose.id, 1)

    real_update = data.update
    calls = []

    def flaky_update(table, record_id, changes):
        calls.append(record_id)
        if len(calls) == 2:
            raise PersistenceError("connection reset")
        return real_update(table, record_id, changes)

    monkeypatch.setattr(data, "update", flaky_update)

    with pytest.raises(SaleCommitError) as exc:
        commit_sale(data, session)

    assert exc.value.step == "stock"
    assert exc.value.sale_id is not None
    assert _quantity(data, oud.id) == 4
    assert _quantity(data, rose.id) == 3
    assert len(data.get("sales", exc.value.sale_id, joins=["items"]).items) == 2


def test_retry_after_failure_creates_second_header(data, store, oud, monkeypatch):
    session = open_sale_session(data, store)
    session.cart.add_item(oud.id, 1)

    def fail_insert_many(table, records):
        raise PersistenceError("disk I/O error")

    monkeypatch.setattr(data, "insert_many", fail_insert_many)
    with pytest.raises(SaleCommitError):
        commit_sale(data, session)
    monkeypatch.undo()

    result = commit_sale(data, session)

    assert session.state == CommitState.COMMITTED
    assert len(result.items) == 1
    assert len(data.fetch_all("sales")) == 2


def test_sale_invoice_matches_committed_sale(data, store, oud, rose, customer):
    session = open_sale_session(data, store)
    session.cart.add_item(oud.id, 2)
    session.cart.add_item(rose.id, 1)
    session.set_checkout_details(customer.id, "Cash")
    result = commit_sale(data, session)

    document = sale_invoice(data, result.sale.id)

    assert document.invoice_number == result.sale.id[:8].upper()
    assert [line.name for line in document.lines] == ["Oud Noir", "Rose Mist"]
    assert document.total == Decimal("20500")
    assert document.bill_to.name == "Adaeze Okafor"


def test_unexpected_error_marks_session_failed_and_allows_retry(data, store, oud, monkeypatch):
    session = open_sale_session(data, store)
    session.cart.add_item(oud.id, 1)

    def broken_insert_many(table, records):
        raise RuntimeError("driver crashed")

    monkeypatch.setattr(data, "insert_many", broken_insert_many)

    with pytest.raises(RuntimeError, match="driver crashed"):
        commit_sale(data, session)

    assert session.state == CommitState.FAILED
    assert session.last_error == "driver crashed"
    assert session.cart.quantity_of(oud.id) == 1

    monkeypatch.undo()
    result = commit_sale(data, session)

    assert session.state == CommitState.COMMITTED
    assert len(result.items) == 1
