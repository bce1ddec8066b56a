import logging
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.modules.suppliers.models import Supplier
from app.modules.suppliers.schemas import SupplierCreate, SupplierUpdate, SupplierList

logger = logging.getLogger(__name__)


class SupplierService:
    """Servicio para gestión de proveedores (solo owner/admin)"""

    def __init__(self, db: Session):
        self.db = db

    def list_suppliers(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        search: Optional[str] = None
    ) -> SupplierList:
        query = self.db.query(Supplier).filter(Supplier.tenant_id == tenant_id)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(Supplier.name.ilike(term), Supplier.contact_person.ilike(term)))

        total = query.count()
        items = query.order_by(Supplier.created_at.desc()).offset(offset).limit(limit).all()
        return SupplierList(items=items, total=total, limit=limit, offset=offset)

    def get_supplier(self, supplier_id: UUID, tenant_id: UUID) -> Supplier:
        supplier = self.db.query(Supplier).filter(
            Supplier.id == supplier_id,
            Supplier.tenant_id == tenant_id
        ).first()
        if not supplier:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Proveedor no encontrado"
            )
        return supplier

    def create_supplier(self, data: SupplierCreate, tenant_id: UUID, user_id: UUID) -> Supplier:
        try:
            supplier = Supplier(tenant_id=tenant_id, created_by=user_id, **data.model_dump())
            self.db.add(supplier)
            self.db.commit()
            self.db.refresh(supplier)
            return supplier
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating supplier for tenant {tenant_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error creando proveedor"
            )

    def update_supplier(self, supplier_id: UUID, data: SupplierUpdate, tenant_id: UUID) -> Supplier:
        supplier = self.get_supplier(supplier_id, tenant_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if field == "name" and value is None:
                continue
            setattr(supplier, field, value)
        self.db.commit()
        self.db.refresh(supplier)
        return supplier

    def delete_supplier(self, supplier_id: UUID, tenant_id: UUID) -> None:
        supplier = self.get_supplier(supplier_id, tenant_id)
        self.db.delete(supplier)
        self.db.commit()
