from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal


class CartItemAdd(BaseModel):
    product_id: Optional[str] = None
    quantity: Optional[int | float | str] = None


class CheckoutDetails(BaseModel):
    customer_id: Optional[str] = None  # None or "" = walk-in
    payment_method: Optional[str] = None  # Cash | Transfer | Card


class CartLineResponse(BaseModel):
    product_id: str
    name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    class Config:
        from_attributes = True


class SnapshotProduct(BaseModel):
    id: str
    name: str
    selling_price: Decimal
    quantity: int

    class Config:
        from_attributes = True


class SaleSessionResponse(BaseModel):
    id: str
    state: str
    customer_id: Optional[str] = None
    payment_method: str
    lines: List[CartLineResponse] = []
    total: Decimal = Decimal("0")
    products: List[SnapshotProduct] = []
    last_error: Optional[str] = None


class SaleItemResponse(BaseModel):
    id: str
    product_id: str
    product_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class SaleResponse(BaseModel):
    id: str
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    total_amount: Decimal
    payment_method: str
    created_at: Optional[datetime] = None
    items: List[SaleItemResponse] = []


class InvoiceLineResponse(BaseModel):
    name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    class Config:
        from_attributes = True


class BillToResponse(BaseModel):
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    walk_in: bool = False

    class Config:
        from_attributes = True


class InvoiceResponse(BaseModel):
    business_name: str
    business_address: str
    business_phone: str
    invoice_number: str
    sale_id: str
    date: str
    time: str
    payment_method: str
    bill_to: BillToResponse
    lines: List[InvoiceLineResponse]
    total: Decimal
    filename: str
    text: str
    download_url: str

    class Config:
        from_attributes = True


class CheckoutResponse(BaseModel):
    sale: SaleResponse
    invoice: InvoiceResponse
