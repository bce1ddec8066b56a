"""
Services package for Reports module

Exports all report service classes for easy importing.
"""

from .sales import SalesReportService
from .financial import FinancialReportService
from .exports import ExportService
from .inventory import InventoryReportService

__all__ = [
    "SalesReportService",
    "FinancialReportService",
    "ExportService",
    "InventoryReportService"
]
