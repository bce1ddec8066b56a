"""
Sales Reports Service

Daily payment revenue and top products for a period.
"""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from .base import BaseReportService
from app.modules.invoices.models import Invoice, InvoiceStatus, LineItemType, Payment
from ..schemas import DailySales, TopProduct, SalesAnalysisResponse

ZERO = Decimal("0")
TOP_PRODUCTS_LIMIT = 10


class SalesReportService(BaseReportService):
    """Service for generating sales reports"""

    def daily_revenue(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> List[Dict]:
        """
        Payment totals per day, oldest first.

        Payments of cancelled invoices are excluded. Without bounds every
        payment of the tenant is used.
        """
        query = self._get_base_payment_query().join(Invoice, Invoice.id == Payment.invoice_id).filter(
            Invoice.status != InvoiceStatus.CANCELLED.value
        )
        if start_date and end_date:
            query = self._apply_date_filter(query, Payment.date, start_date, end_date)

        totals = defaultdict(lambda: ZERO)
        for payment in query.all():
            totals[self._to_date(payment.date)] += Decimal(payment.amount)
        return [{"date": day, "total": totals[day]} for day in sorted(totals)]

    def get_sales_analysis(self, start_date: date, end_date: date) -> SalesAnalysisResponse:
        revenue = {row["date"]: row["total"] for row in self.daily_revenue(start_date, end_date)}

        daily = []
        day = start_date
        while day <= end_date:
            daily.append(DailySales(date=day, total=revenue.get(day, ZERO)))
            day += timedelta(days=1)

        invoices = self._apply_date_filter(
            self._get_base_invoice_query().join(Payment, Payment.invoice_id == Invoice.id),
            Payment.date, start_date, end_date
        ).filter(Invoice.status != InvoiceStatus.CANCELLED.value).distinct().all()

        products = defaultdict(lambda: {"quantity": 0, "revenue": ZERO})
        for invoice in invoices:
            for line in invoice.line_items:
                if line.type != LineItemType.PRODUCT.value:
                    continue
                products[line.description]["quantity"] += line.quantity
                products[line.description]["revenue"] += line.line_total

        top_products = sorted(
            (TopProduct(description=name, **values) for name, values in products.items()),
            key=lambda product: product.revenue,
            reverse=True
        )[:TOP_PRODUCTS_LIMIT]

        total_revenue = sum(revenue.values(), ZERO)
        days = (end_date - start_date).days + 1
        return SalesAnalysisResponse(
            start_date=start_date,
            end_date=end_date,
            total_revenue=total_revenue,
            invoices_with_payments=len(invoices),
            average_daily_revenue=(total_revenue / days).quantize(Decimal("0.01")),
            daily=daily,
            top_products=top_products
        )
