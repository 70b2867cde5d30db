"""
Analytics API: dashboard cards and the business analytics page.

Provides aggregated data for:
- Dashboard stats (revenue, stock alerts, inventory value)
- Top customers by spend
- Top products by units sold
- Revenue, cost and gross profit
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from storefront.api.deps import get_data_service
from storefront.db.data_service import DataService
from storefront.schemas.analytics import BusinessAnalytics, DashboardStats, TopCustomer, TopProduct
from storefront.services import analytics_service

router = APIRouter()


@router.get("/dashboard", response_model=DashboardStats)
def get_dashboard_stats(data: DataService = Depends(get_data_service)):
    """
    Overall numbers for the dashboard cards.
    Returns: total revenue, low stock count, product count, inventory value, category count
    """
    return analytics_service.dashboard_stats(data)


@router.get("", response_model=BusinessAnalytics)
def get_business_analytics(data: DataService = Depends(get_data_service)):
    """Revenue, cost, gross profit and the top customer and product rankings."""
    return analytics_service.business_analytics(data)


@router.get("/top-products", response_model=list[TopProduct])
def get_top_products(
    limit: Optional[int] = Query(None, ge=1, le=50),
    data: DataService = Depends(get_data_service),
):
    """Best sellers by line-item revenue, with units sold."""
    return analytics_service.top_products(data, limit)


@router.get("/top-customers", response_model=list[TopCustomer])
def get_top_customers(
    limit: Optional[int] = Query(None, ge=1, le=50),
    data: DataService = Depends(get_data_service),
):
    return analytics_service.top_customers(data, limit)
