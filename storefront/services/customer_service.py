"""Customer profiles and their running totals."""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from storefront.core.cache import QueryCache
from storefront.core.exceptions import ValidationError
from storefront.db.data_service import DataService
from storefront.models import Customer
from storefront.services.balance_service import customer_totals

logger = logging.getLogger(__name__)


def create_customer(
    data: DataService,
    name: Optional[str],
    phone: Optional[str],
    email: Optional[str] = None,
    credit_limit=None,
    cache: Optional[QueryCache] = None,
) -> Customer:
    if not name or not name.strip() or not phone or not phone.strip():
        raise ValidationError("Please fill in required fields")
    try:
        limit = Decimal(str(credit_limit)) if credit_limit not in (None, "") else Decimal("0")
    except InvalidOperation:
        raise ValidationError("Credit limit must be a number")
    if not limit.is_finite() or limit < 0:
        raise ValidationError("Credit limit cannot be negative")

    customer = data.insert("customers", {
        "name": name.strip(),
        "phone": phone.strip(),
        "email": (email or "").strip() or None,
        "credit_limit": limit,
    })
    if cache is not None:
        cache.invalidate("customers")
    logger.info(f"[Customers] Created customer {customer.id} '{customer.name}'")
    return customer


def customer_row(customer: Customer) -> Dict[str, Any]:
    totals = customer_totals(customer)
    return {
        "id": customer.id,
        "name": customer.name,
        "phone": customer.phone,
        "email": customer.email,
        "credit_limit": customer.credit_limit,
        "total_sales": totals.total_sales,
        "total_payments": totals.total_payments,
        "balance": totals.balance,
        "created_at": customer.created_at,
    }


def list_customers(data: DataService) -> List[Dict[str, Any]]:
    customers = data.fetch_all(
        "customers", joins=["sales", "payments"], order_by="created_at", descending=True
    )
    return [customer_row(c) for c in customers]


def get_customer(data: DataService, customer_id: str) -> Customer:
    return data.get("customers", customer_id, joins=["sales", "payments"])
