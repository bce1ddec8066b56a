"""
Router para el módulo de Clientes

Todos los roles pueden gestionar clientes.
"""
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES
from app.modules.customers.service import CustomerService
from app.modules.customers.schemas import CustomerCreate, CustomerUpdate, CustomerOut, CustomerList

router = APIRouter(
    prefix="/customers",
    tags=["Customers"],
    responses={404: {"description": "Not found"}}
)


@router.get("/", response_model=CustomerList)
async def list_customers(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None, description="Búsqueda por nombre, teléfono o email"),
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return CustomerService(db).list_customers(auth_context.tenant_id, limit, offset, search)


@router.post("/", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_data: CustomerCreate,
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    """
    Crear cliente

    - **name**: mínimo 2 caracteres
    - **email**: válido o vacío
    """
    return CustomerService(db).create_customer(customer_data, auth_context.tenant_id, auth_context.user_id)


@router.get("/{customer_id}", response_model=CustomerOut)
async def get_customer(
    customer_id: UUID = Path(..., description="ID del cliente"),
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return CustomerService(db).get_customer(customer_id, auth_context.tenant_id)


@router.put("/{customer_id}", response_model=CustomerOut)
async def update_customer(
    customer_data: CustomerUpdate,
    customer_id: UUID = Path(..., description="ID del cliente"),
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return CustomerService(db).update_customer(customer_id, customer_data, auth_context.tenant_id)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(
    customer_id: UUID = Path(..., description="ID del cliente"),
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    CustomerService(db).delete_customer(customer_id, auth_context.tenant_id)
