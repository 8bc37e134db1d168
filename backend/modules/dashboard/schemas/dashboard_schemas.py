# backend/modules/dashboard/schemas/dashboard_schemas.py

from datetime import date, datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel


class CustomerFigures(BaseModel):
    total: int
    this_month: int
    growth: int


class CampaignFigures(BaseModel):
    total: int
    active: int
    ending_today: int


class SegmentFigures(BaseModel):
    total: int
    this_month: int


class TransactionFigures(BaseModel):
    total: int
    this_month: int
    growth: int


class RevenueFigures(BaseModel):
    today: Decimal
    this_month: Decimal
    growth: int


class RecentActivity(BaseModel):
    transaction_id: int
    order_number: str
    customer_id: int
    customer_name: str
    final_amount: Decimal
    points_earned: int
    transaction_date: datetime


class TopProduct(BaseModel):
    product_name: str
    quantity: int
    revenue: Decimal


class DailyRevenue(BaseModel):
    date: date
    revenue: Decimal
    transactions: int


class DashboardStats(BaseModel):
    generated_at: datetime
    customers: CustomerFigures
    campaigns: CampaignFigures
    segments: SegmentFigures
    transactions: TransactionFigures
    revenue: RevenueFigures
    recent_activity: List[RecentActivity]
    top_products: List[TopProduct]
    revenue_by_day: List[DailyRevenue]
