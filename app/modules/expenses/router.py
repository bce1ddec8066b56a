"""
Router para el módulo de Gastos

- owner/admin: listar, ver, editar y eliminar
- staff: solo registrar gastos
"""
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES, MANAGER_ROLES
from app.modules.expenses.service import ExpenseService
from app.modules.expenses.schemas import (
    ExpenseCreate, ExpenseUpdate, ExpenseOut, ExpenseList, ExpenseCategory
)

router = APIRouter(
    prefix="/expenses",
    tags=["Expenses"],
    responses={404: {"description": "Not found"}}
)


@router.get("/", response_model=ExpenseList)
async def list_expenses(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    category: Optional[ExpenseCategory] = Query(None),
    start_date: Optional[datetime] = Query(None, description="Fecha inicial"),
    end_date: Optional[datetime] = Query(None, description="Fecha final"),
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return ExpenseService(db).list_expenses(
        auth_context.tenant_id, limit, offset,
        category.value if category else None, start_date, end_date
    )


@router.post("/", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_data: ExpenseCreate,
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    """
    Registrar gasto

    - **amount**: mayor a cero
    - **category**: Rent, Salaries, Utilities, Marketing, Purchases, Other
    """
    return ExpenseService(db).create_expense(expense_data, auth_context.tenant_id, auth_context.user_id)


@router.get("/{expense_id}", response_model=ExpenseOut)
async def get_expense(
    expense_id: UUID = Path(..., description="ID del gasto"),
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return ExpenseService(db).get_expense(expense_id, auth_context.tenant_id)


@router.put("/{expense_id}", response_model=ExpenseOut)
async def update_expense(
    expense_data: ExpenseUpdate,
    expense_id: UUID = Path(..., description="ID del gasto"),
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return ExpenseService(db).update_expense(expense_id, expense_data, auth_context.tenant_id)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: UUID = Path(..., description="ID del gasto"),
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    ExpenseService(db).delete_expense(expense_id, auth_context.tenant_id)
