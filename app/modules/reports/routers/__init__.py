"""
Routers package for Reports module

Exports all report router instances for easy importing.
"""

from .sales import router as sales_router
from .financial import router as financial_router
from .exports import router as exports_router
from .inventory import router as inventory_router

__all__ = [
    "sales_router",
    "financial_router",
    "exports_router",
    "inventory_router"
]
