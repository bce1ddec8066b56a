"""
Pydantic schemas for Reports module

Response models for the report endpoints. Amounts are Decimal.
"""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class DateRange(BaseModel):
    start_date: date
    end_date: date


# Aging
class AgingInvoice(BaseModel):
    """Unpaid or partially paid invoice with its outstanding amount"""
    id: UUID
    number: str
    customer_name: str
    status: str
    invoice_date: date
    total: Decimal
    due_amount: Decimal
    days_overdue: int = Field(description="Days since the invoice date")


class AgingBuckets(BaseModel):
    """Outstanding totals per age bucket, keyed 1-30, 31-60, 61-90 and 90+ in responses"""
    current: Decimal = Decimal("0")
    days_1_30: Decimal = Field(Decimal("0"), alias="1-30")
    days_31_60: Decimal = Field(Decimal("0"), alias="31-60")
    days_61_90: Decimal = Field(Decimal("0"), alias="61-90")
    days_90_plus: Decimal = Field(Decimal("0"), alias="90+")

    class Config:
        populate_by_name = True


class AgingReportResponse(BaseModel):
    as_of_date: date
    buckets: AgingBuckets
    total_due: Decimal
    invoices: List[AgingInvoice]


# Profit & loss
class ProfitLossDay(BaseModel):
    date: date
    revenue: Decimal
    expenses: Decimal


class ProfitLossResponse(DateRange):
    total_revenue: Decimal = Field(description="Payments received in the period")
    total_expenses: Decimal
    net_profit: Decimal
    daily: List[ProfitLossDay]


# Expenses
class ExpenseCategoryTotal(BaseModel):
    category: str
    total: Decimal
    count: int
    percentage: Decimal = Field(description="Share of the period total, 0-100")


class ExpenseBreakdownResponse(DateRange):
    total_expenses: Decimal
    categories: List[ExpenseCategoryTotal]


# Sales
class DailySales(BaseModel):
    date: date
    total: Decimal


class TopProduct(BaseModel):
    description: str
    quantity: int
    revenue: Decimal


class SalesAnalysisResponse(DateRange):
    total_revenue: Decimal
    invoices_with_payments: int
    average_daily_revenue: Decimal
    daily: List[DailySales]
    top_products: List[TopProduct]


# Inventory aging
class AgedInventoryItem(BaseModel):
    id: UUID
    name: str
    category: str
    quantity: int
    added_on: date
    age_in_days: int
    stock_value: Decimal = Field(description="quantity x cost price")


class InventoryAgingBracket(BaseModel):
    bracket: str = Field(description="0-30, 31-90, 91-180 or 180+")
    item_count: int
    total_quantity: int
    stock_value: Decimal
    items: List[AgedInventoryItem]


class InventoryAgingResponse(BaseModel):
    as_of_date: date
    total_stock_value: Decimal
    brackets: List[InventoryAgingBracket]


# Product / category / supplier performance
class ProductPerformance(BaseModel):
    id: UUID
    name: str
    units_sold: int
    revenue: Decimal
    cost: Decimal
    profit: Decimal
    profit_margin: Decimal = Field(description="profit / revenue, 0-100")


class ProductPerformanceResponse(BaseModel):
    total_revenue: Decimal
    total_profit: Decimal
    products: List[ProductPerformance]


class CategoryPerformance(BaseModel):
    name: str
    revenue: Decimal
    cost: Decimal
    profit: Decimal


class SupplierPerformance(BaseModel):
    id: UUID
    name: str
    revenue: Decimal
    profit: Decimal


class ProfitPerformanceResponse(DateRange):
    products: List[ProductPerformance]
    categories: List[CategoryPerformance]
    suppliers: List[SupplierPerformance]


CsvRow = Dict[str, Optional[object]]
