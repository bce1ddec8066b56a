"""
Inventory Reports Service

Stock aging by date added and sales performance per product, category and
supplier. Cost of sold units comes from the cost recorded on each line at
the moment of sale.
"""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from .base import BaseReportService
from app.database.database import get_tenant_query
from app.modules.inventory.models import InventoryItem
from app.modules.invoices.models import Invoice, InvoiceStatus, LineItemType
from app.modules.suppliers.models import Supplier
from ..schemas import (
    AgedInventoryItem, InventoryAgingBracket, InventoryAgingResponse,
    ProductPerformance, ProductPerformanceResponse,
    CategoryPerformance, SupplierPerformance, ProfitPerformanceResponse
)

ZERO = Decimal("0")
AGE_BRACKETS = ["0-30", "31-90", "91-180", "180+"]


def age_bracket(age_in_days: int) -> str:
    if age_in_days <= 30:
        return "0-30"
    if age_in_days <= 90:
        return "31-90"
    if age_in_days <= 180:
        return "91-180"
    return "180+"


def profit_margin(profit: Decimal, revenue: Decimal) -> Decimal:
    """Margen en porcentaje con un decimal; 0 cuando no hubo ventas."""
    if revenue <= 0:
        return Decimal("0.0")
    return (profit / revenue * 100).quantize(Decimal("0.1"))


class InventoryReportService(BaseReportService):
    """Service for inventory and product performance reports"""

    def _get_inventory(self) -> List[InventoryItem]:
        return get_tenant_query(self.db, InventoryItem, self.tenant_id).order_by(InventoryItem.name).all()

    def _sold_lines(self, start_date: Optional[date] = None, end_date: Optional[date] = None):
        """Product lines linked to inventory from non cancelled invoices, by invoice date"""
        query = self._get_base_invoice_query().filter(Invoice.status != InvoiceStatus.CANCELLED.value)
        if start_date and end_date:
            query = self._apply_date_filter(query, Invoice.created_at, start_date, end_date)

        for invoice in query.all():
            for line in invoice.line_items:
                if line.type == LineItemType.PRODUCT.value and line.inventory_item_id:
                    yield line

    def _product_rows(self, inventory: List[InventoryItem], lines) -> Dict:
        rows = {
            item.id: {"id": item.id, "name": item.name, "units_sold": 0, "revenue": ZERO, "cost": ZERO}
            for item in inventory
        }
        costs = {item.id: Decimal(item.cost_price) for item in inventory}
        for line in lines:
            row = rows.get(line.inventory_item_id)
            if row is None:
                continue
            # líneas antiguas sin costo registrado usan el costo actual
            unit_cost = line.cost_price_at_sale
            unit_cost = costs[line.inventory_item_id] if unit_cost is None else Decimal(unit_cost)
            row["units_sold"] += line.quantity
            row["revenue"] += line.line_total
            row["cost"] += unit_cost * line.quantity
        return rows

    @staticmethod
    def _product_performance(row: Dict) -> ProductPerformance:
        profit = row["revenue"] - row["cost"]
        return ProductPerformance(profit=profit, profit_margin=profit_margin(profit, row["revenue"]), **row)

    def get_inventory_aging(self, as_of_date: Optional[date] = None) -> InventoryAgingResponse:
        """
        Stock grouped by days since each item was added.

        Every bracket is present even when empty; items inside a bracket are
        sorted newest first.
        """
        as_of_date = as_of_date or date.today()
        brackets = {key: [] for key in AGE_BRACKETS}
        for item in self._get_inventory():
            added_on = self._to_date(item.created_at)
            age_in_days = self._calculate_days_difference(added_on, as_of_date)
            brackets[age_bracket(age_in_days)].append(AgedInventoryItem(
                id=item.id,
                name=item.name,
                category=item.category,
                quantity=item.quantity,
                added_on=added_on,
                age_in_days=age_in_days,
                stock_value=Decimal(item.cost_price) * item.quantity
            ))

        result = []
        for key, items in brackets.items():
            items.sort(key=lambda aged: aged.age_in_days)
            result.append(InventoryAgingBracket(
                bracket=key,
                item_count=len(items),
                total_quantity=sum(aged.quantity for aged in items),
                stock_value=sum((aged.stock_value for aged in items), ZERO),
                items=items
            ))

        return InventoryAgingResponse(
            as_of_date=as_of_date,
            total_stock_value=sum((bracket.stock_value for bracket in result), ZERO),
            brackets=result
        )

    def get_product_performance(self) -> ProductPerformanceResponse:
        """All-time units, revenue and profit per inventory item, best sellers first."""
        rows = self._product_rows(self._get_inventory(), self._sold_lines())
        products = sorted(
            (self._product_performance(row) for row in rows.values()),
            key=lambda product: product.revenue,
            reverse=True
        )
        return ProductPerformanceResponse(
            total_revenue=sum((product.revenue for product in products), ZERO),
            total_profit=sum((product.profit for product in products), ZERO),
            products=products
        )

    def get_profit_performance(self, start_date: date, end_date: date) -> ProfitPerformanceResponse:
        """
        Profit per product, category and supplier for invoices created in the period.

        Categories and suppliers come from the current inventory item; sales
        of deleted items are left out. Each list is sorted by profit.
        """
        inventory = self._get_inventory()
        lines = list(self._sold_lines(start_date, end_date))
        rows = self._product_rows(inventory, lines)

        categories = {
            item.category: {"name": item.category, "revenue": ZERO, "cost": ZERO} for item in inventory
        }
        suppliers = {
            supplier.id: {"id": supplier.id, "name": supplier.name, "revenue": ZERO, "cost": ZERO}
            for supplier in get_tenant_query(self.db, Supplier, self.tenant_id).all()
        }
        for item in inventory:
            row = rows[item.id]
            categories[item.category]["revenue"] += row["revenue"]
            categories[item.category]["cost"] += row["cost"]
            if item.supplier_id in suppliers:
                suppliers[item.supplier_id]["revenue"] += row["revenue"]
                suppliers[item.supplier_id]["cost"] += row["cost"]

        return ProfitPerformanceResponse(
            start_date=start_date,
            end_date=end_date,
            products=sorted(
                (self._product_performance(row) for row in rows.values()),
                key=lambda entry: entry.profit, reverse=True
            ),
            categories=sorted(
                (CategoryPerformance(profit=c["revenue"] - c["cost"], **c) for c in categories.values()),
                key=lambda entry: entry.profit, reverse=True
            ),
            suppliers=sorted(
                (SupplierPerformance(id=s["id"], name=s["name"], revenue=s["revenue"],
                                     profit=s["revenue"] - s["cost"]) for s in suppliers.values()),
                key=lambda entry: entry.profit, reverse=True
            )
        )
