"""
Sales: the in-progress sale session, checkout, history and invoices.

A session is opened against the products in stock at that moment. Cart
edits and checkout details live on the session until checkout commits
them; a failed checkout keeps the session and its cart for a retry.
"""
import logging
from io import BytesIO

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from storefront.api.deps import get_cache, get_data_service, get_sale_sessions
from storefront.core.cache import QueryCache
from storefront.db.data_service import DataService
from storefront.schemas.sale import (
    CartItemAdd,
    CheckoutDetails,
    CheckoutResponse,
    InvoiceResponse,
    SaleResponse,
    SaleSessionResponse,
)
from storefront.services import sale_service
from storefront.services.invoice_service import InvoiceDocument, build_invoice, format_invoice_message
from storefront.services.pdf_service import save_invoice_pdf
from storefront.services.sale_session import SaleSession, SaleSessionStore

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_response(session: SaleSession) -> dict:
    return {
        "id": session.id,
        "state": session.state.value,
        "customer_id": session.customer_id,
        "payment_method": session.payment_method.value,
        "lines": session.cart.lines,
        "total": session.cart.total(),
        "products": sorted(session.catalog.values(), key=lambda p: p.name),
        "last_error": session.last_error,
    }


def _sale_response(sale, items=None) -> dict:
    items = sale.items if items is None else items
    return {
        "id": sale.id,
        "customer_id": sale.customer_id,
        "customer_name": sale.customer.name if sale.customer is not None else None,
        "total_amount": sale.total_amount,
        "payment_method": sale.payment_method,
        "created_at": sale.created_at,
        "items": [
            {
                "id": item.id,
                "product_id": item.product_id,
                "product_name": item.product.name if item.product is not None else None,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "subtotal": item.subtotal,
            }
            for item in sorted(items, key=lambda i: i.position or 0)
        ],
    }


def _invoice_response(document: InvoiceDocument) -> dict:
    return {
        "business_name": document.business_name,
        "business_address": document.business_address,
        "business_phone": document.business_phone,
        "invoice_number": document.invoice_number,
        "sale_id": document.sale_id,
        "date": document.date,
        "time": document.time,
        "payment_method": document.payment_method,
        "bill_to": document.bill_to,
        "lines": document.lines,
        "total": document.total,
        "filename": document.filename,
        "text": format_invoice_message(document),
        "download_url": f"/sales/{document.sale_id}/invoice.pdf",
    }


# ==============================================================================
# SALE SESSION
# ==============================================================================

@router.post("/sessions", response_model=SaleSessionResponse, status_code=201)
def open_session(
    data: DataService = Depends(get_data_service),
    store: SaleSessionStore = Depends(get_sale_sessions),
):
    """Open a sale session on the products currently in stock."""
    return _session_response(sale_service.open_sale_session(data, store))


@router.get("/sessions/{session_id}", response_model=SaleSessionResponse)
def get_session(session_id: str, store: SaleSessionStore = Depends(get_sale_sessions)):
    return _session_response(store.get(session_id))


@router.post("/sessions/{session_id}/items", response_model=SaleSessionResponse)
def add_cart_item(
    session_id: str,
    payload: CartItemAdd,
    store: SaleSessionStore = Depends(get_sale_sessions),
):
    """Add a product to the cart, merging with an existing line."""
    session = store.get(session_id)
    session.cart.add_item(payload.product_id, payload.quantity)
    return _session_response(session)


@router.delete("/sessions/{session_id}/items/{product_id}", response_model=SaleSessionResponse)
def remove_cart_item(
    session_id: str,
    product_id: str,
    store: SaleSessionStore = Depends(get_sale_sessions),
):
    session = store.get(session_id)
    session.cart.remove_item(product_id)
    return _session_response(session)


@router.patch("/sessions/{session_id}", response_model=SaleSessionResponse)
def set_checkout_details(
    session_id: str,
    details: CheckoutDetails,
    store: SaleSessionStore = Depends(get_sale_sessions),
):
    """Choose the customer (blank for walk-in) and payment method."""
    session = store.get(session_id)
    session.set_checkout_details(details.customer_id, details.payment_method)
    return _session_response(session)


@router.delete("/sessions/{session_id}", response_model=dict)
def discard_session(session_id: str, store: SaleSessionStore = Depends(get_sale_sessions)):
    store.get(session_id)
    store.discard(session_id)
    return {"message": "Sale session discarded", "id": session_id}


@router.post("/sessions/{session_id}/checkout", response_model=CheckoutResponse, status_code=201)
def checkout(
    session_id: str,
    details: CheckoutDetails | None = None,
    data: DataService = Depends(get_data_service),
    store: SaleSessionStore = Depends(get_sale_sessions),
    cache: QueryCache = Depends(get_cache),
):
    """
    Commit the cart as a sale and return it with its invoice.

    Body fields override the session's checkout details when given.
    """
    session = store.get(session_id)
    if details is not None:
        fields = details.model_dump(exclude_unset=True)
        if fields:
            session.set_checkout_details(
                fields.get("customer_id", session.customer_id),
                fields.get("payment_method"),
            )

    customer = data.get("customers", session.customer_id) if session.customer_id else None

    result = sale_service.commit_sale(data, session, cache=cache)
    store.discard(session_id)

    document = build_invoice(result.sale, result.items, customer)
    return {
        "sale": _sale_response(result.sale, result.items),
        "invoice": _invoice_response(document),
    }


# ==============================================================================
# SALES HISTORY AND INVOICES
# ==============================================================================

@router.get("", response_model=list[SaleResponse])
def list_sales(data: DataService = Depends(get_data_service)):
    """All sales, newest first, with customer and line items."""
    return [_sale_response(sale) for sale in sale_service.list_sales(data)]


@router.get("/{sale_id}", response_model=SaleResponse)
def get_sale(sale_id: str, data: DataService = Depends(get_data_service)):
    return _sale_response(sale_service.get_sale(data, sale_id))


@router.get("/{sale_id}/invoice", response_model=InvoiceResponse)
def get_invoice(sale_id: str, data: DataService = Depends(get_data_service)):
    return _invoice_response(sale_service.sale_invoice(data, sale_id))


@router.get("/{sale_id}/invoice.pdf")
def download_invoice_pdf(sale_id: str, data: DataService = Depends(get_data_service)):
    """Render the invoice PDF, keep a copy in the invoice directory and stream it."""
    document = sale_service.sale_invoice(data, sale_id)
    path = save_invoice_pdf(document)
    logger.info(f"[Invoice] Serving {path.name} for sale {sale_id}")
    return StreamingResponse(
        BytesIO(path.read_bytes()),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
    )
