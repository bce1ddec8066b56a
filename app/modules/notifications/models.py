from app.database.database import Base
from sqlalchemy import Column, String, Boolean, JSON, ForeignKey, Uuid
from uuid import uuid4
from app.common.mixins import TenantMixin, TimestampMixin, LiveCollectionMixin
import enum


class NotificationType(enum.Enum):
    INVOICE = "invoice"
    INVENTORY = "inventory"
    RETURN = "return"
    GENERAL = "general"
    LOW_STOCK = "low-stock"


class Notification(Base, TenantMixin, TimestampMixin, LiveCollectionMixin):
    """
    Notificación dirigida a un usuario.

    El texto no se guarda: el frontend traduce message_key con message_params.
    """
    __tablename__ = "notifications"
    __live_collection__ = "notifications"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    recipient_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    sender_name = Column(String(100), nullable=False)
    message_key = Column(String(100), nullable=False)
    message_params = Column(JSON, nullable=False, default=dict)
    link = Column(String(300), nullable=True)
    read = Column(Boolean, nullable=False, default=False, index=True)
    type = Column(String(20), nullable=False, default=NotificationType.GENERAL.value)

    def live_topics(self) -> list:
        return [(str(self.recipient_id), self.__live_collection__)]
