from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal


class CustomerCreate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    credit_limit: Optional[Decimal] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class CustomerResponse(BaseModel):
    id: str
    name: str
    phone: str
    email: Optional[str] = None
    credit_limit: Decimal = Decimal("0")
    total_sales: Decimal = Decimal("0")
    total_payments: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentCreate(BaseModel):
    # Validated by the payment service so the dashboard gets its own messages.
    amount: Optional[str | float | Decimal] = None
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    id: str
    customer_id: str
    amount: Decimal
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReminderResponse(BaseModel):
    customer_id: str
    customer_name: str
    phone: str
    balance: Decimal
    message: str
    url: str

    class Config:
        from_attributes = True
