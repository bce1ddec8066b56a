"""
Router para el módulo de Proveedores

Solo owners y admins tienen acceso; staff recibe 403 en todos los endpoints.
"""
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, MANAGER_ROLES
from app.modules.suppliers.service import SupplierService
from app.modules.suppliers.schemas import SupplierCreate, SupplierUpdate, SupplierOut, SupplierList

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])


@router.get("/", response_model=SupplierList)
async def list_suppliers(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return SupplierService(db).list_suppliers(auth_context.tenant_id, limit, offset, search)


@router.post("/", response_model=SupplierOut, status_code=status.HTTP_201_CREATED)
async def create_supplier(
    supplier_data: SupplierCreate,
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return SupplierService(db).create_supplier(supplier_data, auth_context.tenant_id, auth_context.user_id)


@router.get("/{supplier_id}", response_model=SupplierOut)
async def get_supplier(
    supplier_id: UUID = Path(..., description="ID del proveedor"),
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return SupplierService(db).get_supplier(supplier_id, auth_context.tenant_id)


@router.put("/{supplier_id}", response_model=SupplierOut)
async def update_supplier(
    supplier_data: SupplierUpdate,
    supplier_id: UUID = Path(..., description="ID del proveedor"),
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return SupplierService(db).update_supplier(supplier_id, supplier_data, auth_context.tenant_id)


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_supplier(
    supplier_id: UUID = Path(..., description="ID del proveedor"),
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    SupplierService(db).delete_supplier(supplier_id, auth_context.tenant_id)
