"""
Módulo de Facturación (Invoices)

- Facturas de venta con líneas de producto o servicio
- Descuento de stock con movimientos de venta y reposición al cancelar
- Pagos parciales y completos con recálculo de estado
- Numeración INV-{año}-{NNNN} por organización

Roles:
- owner/admin: CRUD completo, edición y cancelación
- staff: crear, leer y registrar pagos
"""

from .models import Invoice, InvoiceLineItem, Payment, DocumentSequence
from .service import InvoiceService

__all__ = ["Invoice", "InvoiceLineItem", "Payment", "DocumentSequence", "InvoiceService"]
