"""
Módulo de Devoluciones

Devoluciones de clientes y a proveedores con numeración RTN-{año}-{NNNN}.
"""

from .models import ReturnItem
from .service import ReturnService

__all__ = ["ReturnItem", "ReturnService"]
