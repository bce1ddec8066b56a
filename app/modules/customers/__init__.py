"""
Módulo de Clientes

Clientes de la organización, usados como destinatarios de facturas.
"""

from .models import Customer
from .service import CustomerService

__all__ = ["Customer", "CustomerService"]
