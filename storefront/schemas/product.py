from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from decimal import Decimal


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    category_id: Optional[str] = None
    cost_price: Optional[Decimal] = None
    selling_price: Optional[Decimal] = None
    quantity: Optional[int] = None
    description: Optional[str] = None


class ProductResponse(BaseModel):
    id: str
    name: str
    category_id: str
    category_name: Optional[str] = None
    cost_price: Decimal
    selling_price: Decimal
    quantity: int
    description: Optional[str] = None
    image_url: Optional[str] = None
    margin: Optional[Decimal] = None  # percent, one decimal
    low_stock: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
