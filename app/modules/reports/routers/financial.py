"""
Financial Reports Router

Aging, profit & loss and expense breakdown. Staff are denied.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import require_owner_or_admin
from app.modules.auth.schemas import AuthContext
from ..services.financial import FinancialReportService
from ..schemas import AgingReportResponse, ProfitLossResponse, ExpenseBreakdownResponse
from ..utils import resolve_date_range


router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/aging", response_model=AgingReportResponse)
async def get_aging_report(
    as_of_date: Optional[date] = Query(None, description="As of date (default: today)"),
    auth_context: AuthContext = Depends(require_owner_or_admin()),
    db: Session = Depends(get_db)
):
    """Outstanding invoices bucketed by age: current, 1-30, 31-60, 61-90, 90+."""
    service = FinancialReportService(db=db, tenant_id=auth_context.tenant_id)
    return service.get_aging_report(as_of_date)


@router.get("/profit-loss", response_model=ProfitLossResponse)
async def get_profit_and_loss(
    start_date: Optional[date] = Query(None, description="Start date (default: first day of the month)"),
    end_date: Optional[date] = Query(None, description="End date (default: last day of the month)"),
    auth_context: AuthContext = Depends(require_owner_or_admin()),
    db: Session = Depends(get_db)
):
    start_date, end_date = resolve_date_range(start_date, end_date)
    service = FinancialReportService(db=db, tenant_id=auth_context.tenant_id)
    return service.get_profit_and_loss(start_date, end_date)


@router.get("/expenses", response_model=ExpenseBreakdownResponse)
async def get_expense_breakdown(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    auth_context: AuthContext = Depends(require_owner_or_admin()),
    db: Session = Depends(get_db)
):
    start_date, end_date = resolve_date_range(start_date, end_date)
    service = FinancialReportService(db=db, tenant_id=auth_context.tenant_id)
    return service.get_expense_breakdown(start_date, end_date)
