from .models import Supplier
from .service import SupplierService

__all__ = ["Supplier", "SupplierService"]
