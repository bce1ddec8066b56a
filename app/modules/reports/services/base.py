"""
Base service class for Reports module

Provides tenant filtering and date helpers shared by all report services.
Reports read existing tables; they never write.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from app.common.validators import normalize_timestamp
from app.database.database import get_tenant_query
from app.modules.expenses.models import Expense
from app.modules.invoices.models import Invoice, Payment
from .. import utils


class BaseReportService:
    """Base service class for all report services"""

    def __init__(self, db: Session, tenant_id: UUID):
        self.db = db
        self.tenant_id = tenant_id

    def _get_base_invoice_query(self):
        """Invoices of the tenant with line items and payments loaded"""
        return self.db.query(Invoice).options(
            selectinload(Invoice.line_items),
            selectinload(Invoice.payments)
        ).filter(Invoice.tenant_id == self.tenant_id)

    def _get_base_payment_query(self):
        return get_tenant_query(self.db, Payment, self.tenant_id)

    def _get_base_expense_query(self):
        return get_tenant_query(self.db, Expense, self.tenant_id)

    def _apply_date_filter(self, query, date_field, start_date: date, end_date: date):
        """Apply an inclusive date range filter to a timestamp column"""
        return query.filter(
            date_field >= utils.day_start(start_date),
            date_field <= utils.day_end(end_date)
        )

    @staticmethod
    def _to_date(value) -> date:
        return normalize_timestamp(value).date()

    def _calculate_days_difference(self, from_date: date, to_date: Optional[date] = None) -> int:
        """Calculate days difference between dates"""
        if to_date is None:
            to_date = date.today()
        return (to_date - from_date).days
