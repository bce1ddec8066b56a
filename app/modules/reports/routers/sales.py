"""
Sales Reports Router
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import require_owner_or_admin
from app.modules.auth.schemas import AuthContext
from ..services.sales import SalesReportService
from ..schemas import SalesAnalysisResponse
from ..utils import resolve_date_range


router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/sales-analysis", response_model=SalesAnalysisResponse)
async def get_sales_analysis(
    start_date: Optional[date] = Query(None, description="Start date (default: first day of the month)"),
    end_date: Optional[date] = Query(None, description="End date (default: last day of the month)"),
    auth_context: AuthContext = Depends(require_owner_or_admin()),
    db: Session = Depends(get_db)
):
    """Daily payment revenue and top selling products for the period."""
    start_date, end_date = resolve_date_range(start_date, end_date)
    service = SalesReportService(db=db, tenant_id=auth_context.tenant_id)
    return service.get_sales_analysis(start_date, end_date)
