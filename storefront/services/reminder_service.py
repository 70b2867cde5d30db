"""
Payment reminders for customers with an outstanding balance.

The service only builds the message and a WhatsApp deep link. Sending is
left to whoever opens the link, so nothing here calls out to the network.
"""
import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional
from urllib.parse import quote

from storefront.core.config import settings
from storefront.core.exceptions import ValidationError
from storefront.db.data_service import DataService
from storefront.services.balance_service import customer_totals
from storefront.services.invoice_service import format_money

logger = logging.getLogger(__name__)

REMINDER_TEMPLATE = (
    "Hello! This is a friendly reminder from {business}. "
    "You have an outstanding balance of {balance}. "
    "We'd appreciate your payment at your earliest convenience. Thank you!"
)


@dataclass(frozen=True)
class Reminder:
    customer_id: str
    customer_name: str
    phone: str
    balance: Decimal
    message: str
    url: str


def normalize_phone(phone: Optional[str]) -> str:
    """Keep digits only: '+234 801-234 5678' -> '2348012345678'."""
    return re.sub(r"\D", "", phone or "")


def reminder_message(balance, business_name: Optional[str] = None) -> str:
    return REMINDER_TEMPLATE.format(
        business=business_name or settings.BUSINESS_NAME,
        balance=format_money(balance),
    )


def build_reminder(customer, balance=None) -> Reminder:
    """Message and deep link for ``customer``; balance defaults to the computed one."""
    phone = normalize_phone(customer.phone)
    if not phone:
        raise ValidationError(f"Customer {customer.name} has no usable phone number")
    if balance is None:
        balance = customer_totals(customer).balance
    balance = Decimal(str(balance))

    message = reminder_message(balance)
    url = f"{settings.WHATSAPP_BASE_URL.rstrip('/')}/{phone}?text={quote(message, safe='')}"
    return Reminder(
        customer_id=customer.id,
        customer_name=customer.name,
        phone=phone,
        balance=balance,
        message=message,
        url=url,
    )


def customers_due_reminder(data: DataService) -> List[Reminder]:
    """
    Scan customers and build a reminder for each one who owes money.

    Returns:
        Reminders ordered by balance, largest first
    """
    customers = data.fetch_all("customers", joins=["sales", "payments"], order_by="name")
    reminders = []
    for customer in customers:
        balance = customer_totals(customer).balance
        if balance <= 0:
            continue
        if not normalize_phone(customer.phone):
            logger.warning(f"[Reminders] Skipping {customer.name}: no usable phone number")
            continue
        reminders.append(build_reminder(customer, balance))

    reminders.sort(key=lambda r: r.balance, reverse=True)
    logger.info(f"[Reminders] {len(reminders)} customers with outstanding balances")
    return reminders
