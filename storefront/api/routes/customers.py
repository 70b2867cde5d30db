"""Customers: profiles, balances, payments and reminders."""
from fastapi import APIRouter, Depends

from storefront.api.deps import get_cache, get_data_service
from storefront.core.cache import QueryCache
from storefront.db.data_service import DataService
from storefront.schemas.customer import (
    CustomerCreate,
    CustomerResponse,
    PaymentCreate,
    PaymentResponse,
    ReminderResponse,
)
from storefront.services import customer_service, payment_service, reminder_service

router = APIRouter()


@router.get("", response_model=list[CustomerResponse])
def list_customers(
    data: DataService = Depends(get_data_service),
    cache: QueryCache = Depends(get_cache),
):
    """Newest first, each with lifetime sales, payments and outstanding balance."""
    return cache.get_or_load(
        "customers",
        lambda: [CustomerResponse.model_validate(row).model_dump() for row in customer_service.list_customers(data)],
    )


@router.post("", response_model=CustomerResponse, status_code=201)
def create_customer(
    payload: CustomerCreate,
    data: DataService = Depends(get_data_service),
    cache: QueryCache = Depends(get_cache),
):
    customer = customer_service.create_customer(
        data,
        name=payload.name,
        phone=payload.phone,
        email=payload.email,
        credit_limit=payload.credit_limit,
        cache=cache,
    )
    return customer_service.customer_row(customer)


@router.get("/reminders", response_model=list[ReminderResponse])
def list_reminders(data: DataService = Depends(get_data_service)):
    """Reminder links for every customer who currently owes money."""
    return reminder_service.customers_due_reminder(data)


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: str, data: DataService = Depends(get_data_service)):
    return customer_service.customer_row(customer_service.get_customer(data, customer_id))


@router.get("/{customer_id}/payments", response_model=list[PaymentResponse])
def list_payments(customer_id: str, data: DataService = Depends(get_data_service)):
    data.get("customers", customer_id)
    return data.fetch_all(
        "payments", filters={"customer_id": customer_id}, order_by="created_at", descending=True
    )


@router.post("/{customer_id}/payments", response_model=PaymentResponse, status_code=201)
def record_payment(
    customer_id: str,
    payload: PaymentCreate,
    data: DataService = Depends(get_data_service),
    cache: QueryCache = Depends(get_cache),
):
    """Record a payment; rejected when it exceeds the outstanding balance."""
    customer = customer_service.get_customer(data, customer_id)
    payment = payment_service.record_payment(data, customer, payload.amount, payload.notes)
    cache.invalidate("customers")
    return payment


@router.get("/{customer_id}/reminder", response_model=ReminderResponse)
def get_reminder(customer_id: str, data: DataService = Depends(get_data_service)):
    """Templated balance reminder and its WhatsApp link."""
    customer = customer_service.get_customer(data, customer_id)
    return reminder_service.build_reminder(customer)
