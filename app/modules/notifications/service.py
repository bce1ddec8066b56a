"""
Servicio de notificaciones

- Feed por destinatario, más recientes primero
- Conteo de no leídas y marcado en lote
- Helpers para que los demás módulos notifiquen a miembros por rol

Los helpers de envío no hacen commit: la notificación se confirma en la
misma transacción que la operación que la origina.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.modules.auth.models import Membership
from app.modules.notifications.models import Notification, NotificationType
from app.modules.notifications.schemas import NotificationList, MarkAllReadResult

logger = logging.getLogger(__name__)

SYSTEM_SENDER = "System"


class NotificationService:
    """Servicio principal para gestión de notificaciones"""

    def __init__(self, db: Session):
        self.db = db

    # ===== ENVÍO =====

    def member_ids(self, tenant_id: UUID, roles: Iterable[str]) -> List[UUID]:
        rows = self.db.query(Membership.user_id).filter(
            Membership.tenant_id == tenant_id,
            Membership.is_active.is_(True),
            Membership.role.in_(list(roles))
        ).all()
        return [row.user_id for row in rows]

    def notify_roles(
        self,
        tenant_id: UUID,
        roles: Iterable[str],
        sender_name: str,
        message_key: str,
        message_params: Optional[Dict[str, Any]] = None,
        link: Optional[str] = None,
        type: NotificationType = NotificationType.GENERAL,
        exclude_user_id: Optional[UUID] = None
    ) -> List[Notification]:
        """Crear una notificación para cada miembro con alguno de los roles dados."""
        notifications = []
        for recipient_id in self.member_ids(tenant_id, roles):
            if exclude_user_id is not None and recipient_id == exclude_user_id:
                continue
            notification = Notification(
                tenant_id=tenant_id,
                recipient_id=recipient_id,
                sender_name=sender_name,
                message_key=message_key,
                message_params=message_params or {},
                link=link,
                read=False,
                type=type.value
            )
            self.db.add(notification)
            notifications.append(notification)

        logger.debug(f"Queued {len(notifications)} '{message_key}' notifications for tenant {tenant_id}")
        return notifications

    def notify_low_stock(self, tenant_id: UUID, item, old_quantity: int, new_quantity: int) -> None:
        """Avisar a admins/owners cuando el stock cruza el punto de reorden."""
        if not (new_quantity <= item.reorder_point < old_quantity):
            return
        self.notify_roles(
            tenant_id,
            ["owner", "admin"],
            sender_name=SYSTEM_SENDER,
            message_key="notifications.inventory.low_stock",
            message_params={"item": item.name, "count": new_quantity},
            link=f"/inventory/{item.id}/edit",
            type=NotificationType.LOW_STOCK
        )

    # ===== FEED =====

    def list_notifications(self, recipient_id: UUID, limit: int = 100, offset: int = 0) -> NotificationList:
        query = self.db.query(Notification).filter(Notification.recipient_id == recipient_id)
        total = query.count()
        items = query.order_by(Notification.created_at.desc()).offset(offset).limit(limit).all()
        return NotificationList(items=items, total=total, unread=self.unread_count(recipient_id))

    def unread_count(self, recipient_id: UUID) -> int:
        return self.db.query(Notification).filter(
            Notification.recipient_id == recipient_id,
            Notification.read.is_(False)
        ).count()

    def mark_read(self, notification_id: UUID, recipient_id: UUID) -> Notification:
        notification = self.db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.recipient_id == recipient_id
        ).first()
        if not notification:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Notificación no encontrada"
            )
        if not notification.read:
            notification.read = True
            self.db.commit()
            self.db.refresh(notification)
        return notification

    def mark_all_read(self, recipient_id: UUID) -> MarkAllReadResult:
        """Marcar todas como leídas en una sola transacción."""
        try:
            unread = self.db.query(Notification).filter(
                Notification.recipient_id == recipient_id,
                Notification.read.is_(False)
            ).all()
            for notification in unread:
                notification.read = True
            self.db.commit()
            return MarkAllReadResult(updated=len(unread))
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error marking notifications as read for {recipient_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error marcando notificaciones como leídas"
            )
