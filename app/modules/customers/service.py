"""
Servicios de negocio para el módulo de Clientes
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.modules.customers.models import Customer
from app.modules.customers.schemas import CustomerCreate, CustomerUpdate, CustomerList

logger = logging.getLogger(__name__)


class CustomerService:
    """Servicio principal para gestión de clientes"""

    def __init__(self, db: Session):
        self.db = db

    def list_customers(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        search: Optional[str] = None
    ) -> CustomerList:
        """Listar clientes, más recientes primero"""
        query = self.db.query(Customer).filter(Customer.tenant_id == tenant_id)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                Customer.name.ilike(term),
                Customer.phone.ilike(term),
                Customer.email.ilike(term)
            ))

        total = query.count()
        items = query.order_by(Customer.created_at.desc()).offset(offset).limit(limit).all()
        return CustomerList(items=items, total=total, limit=limit, offset=offset)

    def get_customer(self, customer_id: UUID, tenant_id: UUID) -> Customer:
        customer = self.db.query(Customer).filter(
            Customer.id == customer_id,
            Customer.tenant_id == tenant_id
        ).first()
        if not customer:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Cliente no encontrado"
            )
        return customer

    def create_customer(self, data: CustomerCreate, tenant_id: UUID, user_id: UUID) -> Customer:
        try:
            customer = Customer(
                tenant_id=tenant_id,
                created_by=user_id,
                **data.model_dump()
            )
            self.db.add(customer)
            self.db.commit()
            self.db.refresh(customer)
            return customer
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating customer for tenant {tenant_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error creando cliente"
            )

    def update_customer(self, customer_id: UUID, data: CustomerUpdate, tenant_id: UUID) -> Customer:
        customer = self.get_customer(customer_id, tenant_id)
        try:
            for field, value in data.model_dump(exclude_unset=True).items():
                if field == "name" and value is None:
                    continue
                setattr(customer, field, value)
            self.db.commit()
            self.db.refresh(customer)
            return customer
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating customer {customer_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error actualizando cliente"
            )

    def delete_customer(self, customer_id: UUID, tenant_id: UUID) -> None:
        customer = self.get_customer(customer_id, tenant_id)
        self.db.delete(customer)
        self.db.commit()
