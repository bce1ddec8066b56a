"""
CSV Export Router
"""

from datetime import date
from enum import Enum

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import require_owner_or_admin
from app.modules.auth.schemas import AuthContext
from ..services.exports import ExportService
from ..utils import create_csv_response, CSV_HEADERS


router = APIRouter(prefix="/reports/export", tags=["Reports"])


class ExportDataset(str, Enum):
    INVOICES = "invoices"
    CUSTOMERS = "customers"
    INVENTORY = "inventory"
    EXPENSES = "expenses"


@router.get("/{dataset}", response_model=None)
async def export_csv(
    dataset: ExportDataset = Path(..., description="invoices, customers, inventory o expenses"),
    auth_context: AuthContext = Depends(require_owner_or_admin()),
    db: Session = Depends(get_db)
):
    """Download a dataset as CSV. 404 when there is no data."""
    service = ExportService(db=db, tenant_id=auth_context.tenant_id)
    rows_for = {
        ExportDataset.INVOICES: service.invoice_rows,
        ExportDataset.CUSTOMERS: service.customer_rows,
        ExportDataset.INVENTORY: service.inventory_rows,
        ExportDataset.EXPENSES: service.expense_rows,
    }
    rows = rows_for[dataset]()
    filename = f"{dataset.value}-{date.today().isoformat()}"
    return create_csv_response(rows, filename, CSV_HEADERS[dataset.value])
