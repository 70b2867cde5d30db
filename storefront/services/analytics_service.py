"""
Dashboard and analytics figures.

Everything is derived on read from full collections, which is fine for a
single shop's data volume.
"""
from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, List, Optional

from storefront.core.config import settings
from storefront.db.data_service import DataService
from storefront.services.balance_service import customer_totals
from storefront.services.stock import inventory_value, is_low_stock


def _revenue(sales) -> Decimal:
    return sum((Decimal(str(s.total_amount)) for s in sales), Decimal("0"))


def dashboard_stats(data: DataService) -> Dict[str, Any]:
    sales = data.fetch_all("sales")
    products = data.fetch_all("products")
    categories = data.fetch_all("categories")
    return {
        "total_revenue": _revenue(sales),
        "low_stock_products": sum(1 for p in products if is_low_stock(p.quantity)),
        "total_products": len(products),
        "inventory_value": inventory_value(products),
        "total_categories": len(categories),
    }


def top_customers(data: DataService, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Customers ranked by lifetime sales."""
    limit = limit or settings.TOP_N
    customers = data.fetch_all("customers", joins=["sales", "payments"])
    ranked = sorted(
        (
            {
                "id": c.id,
                "name": c.name,
                "phone": c.phone,
                "total_spent": customer_totals(c).total_sales,
                "purchases": len(c.sales),
            }
            for c in customers
        ),
        key=lambda row: row["total_spent"],
        reverse=True,
    )
    return ranked[:limit]


def top_products(data: DataService, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Products ranked by revenue across all sale lines."""
    limit = limit or settings.TOP_N
    items = data.fetch_all("sale_items", joins=["product"])

    totals: Dict[str, Dict[str, Any]] = defaultdict(
        lambda: {"quantity_sold": 0, "revenue": Decimal("0")}
    )
    for item in items:
        row = totals[item.product_id]
        row["product_id"] = item.product_id
        row["name"] = item.product.name if item.product else None
        row["quantity_sold"] += item.quantity
        row["revenue"] += Decimal(str(item.subtotal))

    ranked = sorted(totals.values(), key=lambda row: row["revenue"], reverse=True)
    return ranked[:limit]


def business_analytics(data: DataService) -> Dict[str, Any]:
    """
    Revenue and profit overview.

    ``gross_profit`` is revenue minus the cost value of stock still on hand,
    which is how the dashboard has always reported it; it is not a
    cost-of-goods-sold figure.
    """
    total_revenue = _revenue(data.fetch_all("sales"))
    total_cost = inventory_value(data.fetch_all("products"))
    return {
        "total_revenue": total_revenue,
        "total_cost": total_cost,
        "gross_profit": total_revenue - total_cost,
        "inventory_value": total_cost,
        "top_customers": top_customers(data),
        "top_products": top_products(data),
    }
