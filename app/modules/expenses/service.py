"""
Servicios de negocio para el módulo de Gastos
"""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.modules.expenses.models import Expense
from app.modules.expenses.schemas import ExpenseCreate, ExpenseUpdate, ExpenseList

logger = logging.getLogger(__name__)


class ExpenseService:
    """Servicio principal para gestión de gastos"""

    def __init__(self, db: Session):
        self.db = db

    def list_expenses(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        category: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> ExpenseList:
        """Listar gastos, más recientes primero"""
        query = self.db.query(Expense).filter(Expense.tenant_id == tenant_id)
        if category:
            query = query.filter(Expense.category == category)
        if start_date:
            query = query.filter(Expense.date >= start_date)
        if end_date:
            query = query.filter(Expense.date <= end_date)

        total = query.count()
        items = query.order_by(Expense.created_at.desc()).offset(offset).limit(limit).all()
        return ExpenseList(items=items, total=total, limit=limit, offset=offset)

    def get_expense(self, expense_id: UUID, tenant_id: UUID) -> Expense:
        expense = self.db.query(Expense).filter(
            Expense.id == expense_id,
            Expense.tenant_id == tenant_id
        ).first()
        if not expense:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Gasto no encontrado"
            )
        return expense

    def create_expense(self, data: ExpenseCreate, tenant_id: UUID, user_id: UUID) -> Expense:
        try:
            expense = Expense(
                tenant_id=tenant_id,
                created_by=user_id,
                category=data.category.value,
                amount=data.amount,
                date=data.date,
                description=data.description,
                vendor=data.vendor
            )
            self.db.add(expense)
            self.db.commit()
            self.db.refresh(expense)
            logger.info(f"Expense {expense.id} ({expense.category}) created in tenant {tenant_id}")
            return expense
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating expense for tenant {tenant_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error creando gasto"
            )

    def update_expense(self, expense_id: UUID, data: ExpenseUpdate, tenant_id: UUID) -> Expense:
        expense = self.get_expense(expense_id, tenant_id)
        try:
            for field, value in data.model_dump(exclude_unset=True).items():
                if value is None and field != "vendor":
                    continue
                if field == "category":
                    value = value.value
                setattr(expense, field, value)
            self.db.commit()
            self.db.refresh(expense)
            return expense
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating expense {expense_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error actualizando gasto"
            )

    def delete_expense(self, expense_id: UUID, tenant_id: UUID) -> None:
        expense = self.get_expense(expense_id, tenant_id)
        self.db.delete(expense)
        self.db.commit()
