"""
Inventory Reports Router
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import require_owner_or_admin
from app.modules.auth.schemas import AuthContext
from ..services.inventory import InventoryReportService
from ..schemas import InventoryAgingResponse, ProductPerformanceResponse, ProfitPerformanceResponse
from ..utils import resolve_date_range


router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/inventory-aging", response_model=InventoryAgingResponse)
async def get_inventory_aging(
    as_of_date: Optional[date] = Query(None, description="Reference date (default: today)"),
    auth_context: AuthContext = Depends(require_owner_or_admin()),
    db: Session = Depends(get_db)
):
    """Stock grouped in 0-30, 31-90, 91-180 and 180+ days since it was added."""
    service = InventoryReportService(db=db, tenant_id=auth_context.tenant_id)
    return service.get_inventory_aging(as_of_date)


@router.get("/product-performance", response_model=ProductPerformanceResponse)
async def get_product_performance(
    auth_context: AuthContext = Depends(require_owner_or_admin()),
    db: Session = Depends(get_db)
):
    service = InventoryReportService(db=db, tenant_id=auth_context.tenant_id)
    return service.get_product_performance()


@router.get("/profit-performance", response_model=ProfitPerformanceResponse)
async def get_profit_performance(
    start_date: Optional[date] = Query(None, description="Start date (default: first day of the month)"),
    end_date: Optional[date] = Query(None, description="End date (default: last day of the month)"),
    auth_context: AuthContext = Depends(require_owner_or_admin()),
    db: Session = Depends(get_db)
):
    """Profit by product, category and supplier for invoices created in the period."""
    start_date, end_date = resolve_date_range(start_date, end_date)
    service = InventoryReportService(db=db, tenant_id=auth_context.tenant_id)
    return service.get_profit_performance(start_date, end_date)
