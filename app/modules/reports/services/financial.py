"""
Financial Reports Service

Receivables aging, profit & loss and expense breakdown.
"""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from .base import BaseReportService
from app.modules.expenses.models import Expense
from app.modules.invoices.models import Invoice, InvoiceStatus, Payment
from ..schemas import (
    AgingBuckets, AgingInvoice, AgingReportResponse,
    ProfitLossDay, ProfitLossResponse,
    ExpenseCategoryTotal, ExpenseBreakdownResponse
)

ZERO = Decimal("0")
OPEN_STATUSES = [InvoiceStatus.UNPAID.value, InvoiceStatus.PARTIALLY_PAID.value]


def aging_bucket(days_overdue: int) -> str:
    """Bucket field for a number of days since the invoice date"""
    if days_overdue <= 0:
        return "current"
    if days_overdue <= 30:
        return "days_1_30"
    if days_overdue <= 60:
        return "days_31_60"
    if days_overdue <= 90:
        return "days_61_90"
    return "days_90_plus"


class FinancialReportService(BaseReportService):
    """Service for generating financial reports"""

    def get_aging_report(self, as_of_date: Optional[date] = None) -> AgingReportResponse:
        """
        Accounts receivable aging.

        Only Unpaid / Partially Paid invoices with an outstanding amount are
        included, bucketed by days since the invoice date and sorted with the
        oldest first.
        """
        as_of_date = as_of_date or date.today()
        invoices = self._get_base_invoice_query().filter(
            Invoice.status.in_(OPEN_STATUSES)
        ).all()

        totals = defaultdict(lambda: ZERO)
        rows = []
        for invoice in invoices:
            due_amount = invoice.balance_due
            if due_amount <= 0:
                continue
            invoice_date = self._to_date(invoice.created_at)
            days_overdue = self._calculate_days_difference(invoice_date, as_of_date)
            totals[aging_bucket(days_overdue)] += due_amount
            rows.append(AgingInvoice(
                id=invoice.id,
                number=invoice.number,
                customer_name=invoice.customer_name,
                status=invoice.status,
                invoice_date=invoice_date,
                total=invoice.total,
                due_amount=due_amount,
                days_overdue=days_overdue
            ))

        rows.sort(key=lambda row: row.days_overdue, reverse=True)
        return AgingReportResponse(
            as_of_date=as_of_date,
            buckets=AgingBuckets(**totals),
            total_due=sum((row.due_amount for row in rows), ZERO),
            invoices=rows
        )

    def get_profit_and_loss(self, start_date: date, end_date: date) -> ProfitLossResponse:
        """
        Profit & loss for a period.

        Revenue is the sum of payments dated in the period (cash basis);
        expenses are the expenses dated in the period.
        """
        payments = self._apply_date_filter(
            self._get_base_payment_query(), Payment.date, start_date, end_date
        ).all()
        expenses = self._apply_date_filter(
            self._get_base_expense_query(), Expense.date, start_date, end_date
        ).all()

        revenue_by_day = defaultdict(lambda: ZERO)
        for payment in payments:
            revenue_by_day[self._to_date(payment.date)] += Decimal(payment.amount)

        expenses_by_day = defaultdict(lambda: ZERO)
        for expense in expenses:
            expenses_by_day[self._to_date(expense.date)] += Decimal(expense.amount)

        daily = []
        day = start_date
        while day <= end_date:
            daily.append(ProfitLossDay(date=day, revenue=revenue_by_day[day], expenses=expenses_by_day[day]))
            day += timedelta(days=1)

        total_revenue = sum(revenue_by_day.values(), ZERO)
        total_expenses = sum(expenses_by_day.values(), ZERO)
        return ProfitLossResponse(
            start_date=start_date,
            end_date=end_date,
            total_revenue=total_revenue,
            total_expenses=total_expenses,
            net_profit=total_revenue - total_expenses,
            daily=daily
        )

    def get_expense_breakdown(self, start_date: date, end_date: date) -> ExpenseBreakdownResponse:
        """Expense totals per category, largest first"""
        expenses = self._apply_date_filter(
            self._get_base_expense_query(), Expense.date, start_date, end_date
        ).all()

        totals = defaultdict(lambda: ZERO)
        counts = defaultdict(int)
        for expense in expenses:
            totals[expense.category] += Decimal(expense.amount)
            counts[expense.category] += 1

        grand_total = sum(totals.values(), ZERO)
        categories = [
            ExpenseCategoryTotal(
                category=category,
                total=total,
                count=counts[category],
                percentage=(total / grand_total * 100).quantize(Decimal("0.01")) if grand_total else ZERO
            )
            for category, total in totals.items()
        ]
        categories.sort(key=lambda row: row.total, reverse=True)
        return ExpenseBreakdownResponse(
            start_date=start_date,
            end_date=end_date,
            total_expenses=grand_total,
            categories=categories
        )
