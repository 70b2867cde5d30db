from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal


class DashboardStats(BaseModel):
    total_revenue: Decimal
    low_stock_products: int
    total_products: int
    inventory_value: Decimal
    total_categories: int


class TopCustomer(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    total_spent: Decimal
    purchases: int


class TopProduct(BaseModel):
    product_id: str
    name: Optional[str] = None
    quantity_sold: int
    revenue: Decimal


class BusinessAnalytics(BaseModel):
    total_revenue: Decimal
    total_cost: Decimal
    gross_profit: Decimal
    inventory_value: Decimal
    top_customers: List[TopCustomer]
    top_products: List[TopProduct]
