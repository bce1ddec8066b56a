"""
Export Service

Flat rows for the CSV exports, one dict per record keyed by the fields of
CSV_HEADERS.
"""

from typing import Dict, List

from .base import BaseReportService
from app.modules.customers.models import Customer
from app.modules.expenses.models import Expense
from app.modules.inventory.models import InventoryItem
from app.modules.invoices.models import Invoice


class ExportService(BaseReportService):

    def invoice_rows(self) -> List[Dict]:
        invoices = self._get_base_invoice_query().order_by(Invoice.created_at.desc()).all()
        return [
            {
                "number": invoice.number,
                "customer_name": invoice.customer_name,
                "customer_phone": invoice.customer_phone,
                "status": invoice.status,
                "created_at": self._to_date(invoice.created_at),
                "total": invoice.total,
                "paid": invoice.paid_amount,
                "due": invoice.balance_due,
            }
            for invoice in invoices
        ]

    def customer_rows(self) -> List[Dict]:
        customers = self.db.query(Customer).filter(
            Customer.tenant_id == self.tenant_id
        ).order_by(Customer.created_at.desc()).all()
        return [
            {
                "name": customer.name,
                "phone": customer.phone,
                "email": customer.email,
                "address": customer.address,
                "created_at": self._to_date(customer.created_at),
            }
            for customer in customers
        ]

    def inventory_rows(self) -> List[Dict]:
        items = self.db.query(InventoryItem).filter(
            InventoryItem.tenant_id == self.tenant_id
        ).order_by(InventoryItem.name.asc()).all()
        return [
            {
                "name": item.name,
                "category": item.category,
                "brand": item.brand,
                "quantity": item.quantity,
                "price": item.price,
                "cost_price": item.cost_price,
                "reorder_point": item.reorder_point,
                "status": item.status,
                "supplier_name": item.supplier_name,
            }
            for item in items
        ]

    def expense_rows(self) -> List[Dict]:
        expenses = self._get_base_expense_query().order_by(Expense.date.desc()).all()
        return [
            {
                "date": self._to_date(expense.date),
                "category": expense.category,
                "description": expense.description,
                "vendor": expense.vendor,
                "amount": expense.amount,
            }
            for expense in expenses
        ]
