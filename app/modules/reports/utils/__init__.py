"""
Utilities for Reports module

CSV export helpers and date range handling shared by the report services.
"""

import csv
import io
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException, Response, status


def format_csv_value(value: Any) -> str:
    """
    Format a value for CSV export.

    Args:
        value: Value to format

    Returns:
        String representation suitable for CSV
    """
    if value is None:
        return ""
    elif isinstance(value, Decimal):
        return f"{value:.2f}"
    elif isinstance(value, (date, datetime)):
        return value.isoformat()
    elif hasattr(value, "value"):
        return str(value.value)
    return str(value)


def build_csv(data: List[Dict[str, Any]], headers: Dict[str, str]) -> str:
    """
    Render rows as CSV text.

    The header row comes from the field -> label map. Values containing
    commas, quotes or newlines are quoted and inner quotes doubled.
    """
    output = io.StringIO()
    fieldnames = list(headers.keys())
    writer = csv.DictWriter(
        output, fieldnames=fieldnames, extrasaction="ignore",
        quoting=csv.QUOTE_MINIMAL, lineterminator="\n"
    )
    writer.writerow(headers)
    for row in data:
        writer.writerow({key: format_csv_value(row.get(key)) for key in fieldnames})

    content = output.getvalue()
    output.close()
    return content


def create_csv_response(data: List[Dict[str, Any]], filename: str, headers: Dict[str, str]) -> Response:
    """
    Create a CSV response from a list of dictionaries.

    Raises 404 when there is nothing to export.
    """
    if not data:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No hay datos para exportar"
        )

    return Response(
        content=build_csv(data, headers),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename={filename}.csv",
            "Content-Type": "text/csv; charset=utf-8"
        }
    )


def month_bounds(today: Optional[date] = None) -> Tuple[date, date]:
    """First and last day of the current month."""
    today = today or date.today()
    start = today.replace(day=1)
    next_month = (start.replace(day=28) + (date.resolution * 4)).replace(day=1)
    return start, next_month - date.resolution


def resolve_date_range(start_date: Optional[date], end_date: Optional[date]) -> Tuple[date, date]:
    """Fill missing bounds with the current month and validate the order."""
    default_start, default_end = month_bounds()
    start_date = start_date or default_start
    end_date = end_date or default_end
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end_date debe ser mayor o igual a start_date"
        )
    return start_date, end_date


def day_start(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def day_end(value: date) -> datetime:
    return datetime.combine(value, time.max, tzinfo=timezone.utc)


# Column headers for CSV exports
CSV_HEADERS = {
    "invoices": {
        "number": "Invoice #",
        "customer_name": "Customer Name",
        "customer_phone": "Customer Phone",
        "status": "Status",
        "created_at": "Date",
        "total": "Total Amount",
        "paid": "Amount Paid",
        "due": "Amount Due",
    },
    "customers": {
        "name": "Name",
        "phone": "Phone",
        "email": "Email",
        "address": "Address",
        "created_at": "Created At",
    },
    "inventory": {
        "name": "Item Name",
        "category": "Category",
        "brand": "Brand",
        "quantity": "Quantity",
        "price": "Price",
        "cost_price": "Cost Price",
        "reorder_point": "Reorder Point",
        "status": "Status",
        "supplier_name": "Supplier",
    },
    "expenses": {
        "date": "Date",
        "category": "Category",
        "description": "Description",
        "vendor": "Vendor",
        "amount": "Amount",
    },
}
