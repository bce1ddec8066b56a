"""
Servicios de negocio para el módulo de Devoluciones
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.common.mixins import utc_now
from app.modules.auth.dependencies import ALL_ROLES
from app.modules.auth.schemas import AuthContext
from app.modules.inventory.models import InventoryItem
from app.modules.invoices.service import next_document_number
from app.modules.notifications.models import NotificationType
from app.modules.notifications.service import NotificationService
from app.modules.returns.models import ReturnItem, ReturnStatus
from app.modules.returns.schemas import ReturnCreate, ReturnUpdate, ReturnList

logger = logging.getLogger(__name__)

RETURN_PREFIX = "RTN"


class ReturnService:
    """Servicio principal para gestión de devoluciones"""

    def __init__(self, db: Session):
        self.db = db
        self.notifications = NotificationService(db)

    def list_returns(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        status_filter: Optional[str] = None
    ) -> ReturnList:
        """Listar devoluciones, más recientes primero"""
        query = self.db.query(ReturnItem).filter(ReturnItem.tenant_id == tenant_id)
        if status_filter:
            query = query.filter(ReturnItem.status == status_filter)

        total = query.count()
        items = query.order_by(ReturnItem.created_at.desc()).offset(offset).limit(limit).all()
        return ReturnList(items=items, total=total, limit=limit, offset=offset)

    def get_return(self, return_id: UUID, tenant_id: UUID) -> ReturnItem:
        item = self.db.query(ReturnItem).filter(
            ReturnItem.id == return_id,
            ReturnItem.tenant_id == tenant_id
        ).first()
        if not item:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Devolución no encontrada"
            )
        return item

    def _notify(self, return_item: ReturnItem, auth_context: AuthContext, key: str) -> None:
        self.notifications.notify_roles(
            auth_context.tenant_id, ALL_ROLES,
            sender_name=auth_context.username,
            message_key=key,
            message_params={"user": auth_context.username, "returnId": return_item.return_number},
            link=f"/returns/{return_item.id}",
            type=NotificationType.RETURN,
            exclude_user_id=auth_context.user_id
        )

    def create_return(self, data: ReturnCreate, auth_context: AuthContext) -> ReturnItem:
        """
        Registrar devolución.

        El artículo debe existir en el inventario de la organización; su
        nombre se copia en la devolución. Estado inicial: Awaiting Inspection.
        """
        tenant_id = auth_context.tenant_id
        inventory_item = self.db.query(InventoryItem).filter(
            InventoryItem.id == data.inventory_item_id,
            InventoryItem.tenant_id == tenant_id
        ).first()
        if not inventory_item:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El artículo de inventario seleccionado no existe"
            )

        try:
            return_item = ReturnItem(
                tenant_id=tenant_id,
                return_number=next_document_number(self.db, tenant_id, RETURN_PREFIX),
                type=data.type.value,
                status=ReturnStatus.AWAITING_INSPECTION.value,
                customer_name=data.customer_name,
                customer_phone=data.customer_phone,
                inventory_item_id=inventory_item.id,
                inventory_item_name=inventory_item.name,
                original_invoice_id=data.original_invoice_id,
                quantity=data.quantity,
                reason=data.reason,
                created_by=auth_context.user_id,
                created_by_name=auth_context.username
            )
            self.db.add(return_item)
            self.db.flush()

            self._notify(return_item, auth_context, "notifications.returns.created")
            self.db.commit()
            self.db.refresh(return_item)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating return for tenant {tenant_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error registrando devolución"
            )

        logger.info(f"Return {return_item.return_number} created in tenant {tenant_id}")
        return return_item

    def update_return(self, return_id: UUID, data: ReturnUpdate, auth_context: AuthContext) -> ReturnItem:
        """
        Actualizar estado y notas.

        El staff no puede cambiar el estado. Al pasar a Completed / Closed la
        fecha de resolución se fija una sola vez.
        """
        return_item = self.get_return(return_id, auth_context.tenant_id)
        new_status = data.status.value if data.status else None

        if (
            new_status
            and new_status != return_item.status
            and auth_context.user_role.value == "staff"
        ):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Solo los administradores pueden cambiar el estado de la devolución"
            )

        try:
            if new_status:
                return_item.status = new_status
                if new_status == ReturnStatus.COMPLETED.value and return_item.resolution_date is None:
                    return_item.resolution_date = utc_now()
            if data.notes is not None:
                return_item.notes = data.notes

            self._notify(return_item, auth_context, "notifications.returns.updated")
            self.db.commit()
            self.db.refresh(return_item)
            return return_item
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating return {return_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error actualizando devolución"
            )
