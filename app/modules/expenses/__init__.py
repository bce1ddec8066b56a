"""
Módulo de Gastos

Gastos operativos de la organización. El staff solo puede registrarlos;
la consulta y edición es de owner/admin.
"""

from .models import Expense
from .service import ExpenseService

__all__ = ["Expense", "ExpenseService"]
