"""
Sale commit: turn a session's cart into a persisted sale.

Three sequential writes, each committed on its own:
    1. sale header
    2. sale line items (one batch)
    3. product quantity decrements, one product at a time

There is no spanning transaction and no compensation. A failure in step 2
leaves the header from step 1 without items; a failure in step 3 keeps
the decrements already applied. Both cases are logged and reported with
the orphaned sale id. Stock is written as ``snapshot quantity - sold``
using the quantity captured when the session opened, so concurrent
sessions on the same product overwrite each other (last writer wins).
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from storefront.core.audit import AuditLog
from storefront.core.cache import QueryCache
from storefront.core.exceptions import NotFoundError, PersistenceError, SaleCommitError, ValidationError
from storefront.db.data_service import DataService
from storefront.models import Sale, SaleItem
from storefront.services.invoice_service import InvoiceDocument, build_invoice
from storefront.services.cart import ProductSnapshot
from storefront.services.sale_session import CommitState, SaleSession, SaleSessionStore

logger = logging.getLogger(__name__)


@dataclass
class CommitResult:
    sale: Sale
    items: List[SaleItem]


def open_sale_session(data: DataService, store: SaleSessionStore) -> SaleSession:
    """Fetch sellable products and open a session on them."""
    products = data.fetch_all("products", filters={"quantity__gt": 0}, order_by="name")
    return store.open(ProductSnapshot.from_product(p) for p in products)


def commit_sale(data: DataService, session: SaleSession, cache: Optional[QueryCache] = None) -> CommitResult:
    """
    Persist the session's cart as a sale.

    On success the cart is cleared, the session is marked COMMITTED and the
    product listing cache is invalidated. On failure the session is marked
    FAILED, the cart is kept for a retry and SaleCommitError carries the
    underlying message.
    """
    if session.cart.is_empty:
        raise ValidationError("Cart is empty")
    if session.state == CommitState.SUBMITTING:
        raise ValidationError("Sale is already being submitted")

    session.state = CommitState.SUBMITTING
    session.last_error = None
    lines = session.cart.lines
    total = session.cart.total()
    sale: Optional[Sale] = None
    step = "sale"

    try:
        sale = data.insert("sales", {
            "customer_id": session.customer_id,
            "total_amount": total,
            "payment_method": session.payment_method.value,
        })

        step = "items"
        items = data.insert_many("sale_items", [
            {
                "sale_id": sale.id,
                "product_id": line.product_id,
                "quantity": line.quantity,
                "unit_price": line.unit_price,
                "subtotal": line.subtotal,
                "position": position,
            }
            for position, line in enumerate(lines)
        ])

        step = "stock"
        for line in lines:
            snapshot = session.catalog.get(line.product_id)
            if snapshot is None:
                continue
            data.update("products", line.product_id, {"quantity": snapshot.quantity - line.quantity})

    except (PersistenceError, NotFoundError) as e:
        session.state = CommitState.FAILED
        session.last_error = e.message
        sale_id = sale.id if sale is not None else None
        if sale_id:
            logger.error(
                f"[SaleCommit] Step '{step}' failed after sale {sale_id} was written; "
                f"no rollback performed: {e.message}"
            )
        else:
            logger.error(f"[SaleCommit] Step '{step}' failed, nothing written: {e.message}")
        AuditLog.log_failure("commit", "sale", e.message, details={"step": step, "orphaned_sale_id": sale_id})
        if cache is not None and sale_id:
            cache.invalidate("products", "customers")
        raise SaleCommitError(step, e.message, sale_id=sale_id) from e
    except Exception as e:
        session.state = CommitState.FAILED
        session.last_error = str(e)
        sale_id = sale.id if sale is not None else None
        logger.exception(f"[SaleCommit] Unexpected error in step '{step}' (sale {sale_id})")
        AuditLog.log_failure("commit", "sale", str(e), details={"step": step, "orphaned_sale_id": sale_id})
        if cache is not None and sale_id:
            cache.invalidate("products", "customers")
        raise

    session.state = CommitState.COMMITTED
    session.reset_after_commit()
    if cache is not None:
        cache.invalidate("products", "customers")

    logger.info(f"[SaleCommit] Sale {sale.id} committed: {len(items)} lines, total {total}")
    AuditLog.log_action("commit", "sale", sale.id, changes={
        "total_amount": str(total),
        "payment_method": sale.payment_method,
        "customer_id": sale.customer_id,
        "lines": len(items),
    })
    return CommitResult(sale=sale, items=items)


def list_sales(data: DataService) -> List[Sale]:
    return data.fetch_all("sales", joins=["customer", "items"], order_by="created_at", descending=True)


def get_sale(data: DataService, sale_id: str) -> Sale:
    return data.get("sales", sale_id, joins=["customer", "items"])


def sale_invoice(data: DataService, sale_id: str) -> InvoiceDocument:
    """Invoice document for a persisted sale."""
    sale = get_sale(data, sale_id)
    return build_invoice(sale, sale.items, sale.customer)
