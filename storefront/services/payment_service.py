"""Payment recording against a customer's outstanding balance."""
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from storefront.core.audit import AuditLog
from storefront.core.exceptions import ValidationError
from storefront.db.data_service import DataService
from storefront.models import Customer, Payment
from storefront.services.balance_service import customer_balance

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def parse_amount(amount) -> Decimal:
    """Positive finite number rounded to two decimal places, or ValidationError."""
    if amount is None or isinstance(amount, bool):
        raise ValidationError("Please enter a valid amount")
    try:
        value = Decimal(str(amount).strip())
        if not value.is_finite():
            raise ValidationError("Please enter a valid amount")
        value = value.quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise ValidationError("Please enter a valid amount")
    if value <= 0:
        raise ValidationError("Please enter a valid amount")
    return value


def record_payment(data: DataService, customer: Customer, amount, notes: Optional[str] = None) -> Payment:
    """
    Record a payment from ``customer``.

    Accepted iff 0 < amount <= outstanding balance, with the balance computed
    here at submission time. The database does not re-check it, so a payment
    inserted by another path can still exceed the balance.
    """
    value = parse_amount(amount)
    balance = customer_balance(customer)
    if value > balance:
        raise ValidationError("Payment amount cannot exceed outstanding balance")

    payment = data.insert("payments", {
        "customer_id": customer.id,
        "amount": value,
        "notes": (notes or "").strip() or None,
    })
    logger.info(f"[Payments] Recorded {value} from customer {customer.id}; balance was {balance}")
    AuditLog.log_action("create", "payment", payment.id, changes={
        "customer_id": customer.id,
        "amount": str(value),
        "balance_before": str(balance),
    })
    return payment
