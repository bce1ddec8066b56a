from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from uuid import UUID
from enum import Enum

from app.common.validators import IsoTimestamp


class NotificationType(str, Enum):
    INVOICE = "invoice"
    INVENTORY = "inventory"
    RETURN = "return"
    GENERAL = "general"
    LOW_STOCK = "low-stock"


class NotificationOut(BaseModel):
    id: UUID
    tenant_id: UUID
    recipient_id: UUID
    sender_name: str
    message_key: str
    message_params: Dict[str, Any] = {}
    link: Optional[str] = None
    read: bool
    type: NotificationType
    created_at: IsoTimestamp

    class Config:
        from_attributes = True


class NotificationList(BaseModel):
    items: List[NotificationOut]
    total: int
    unread: int


class UnreadCount(BaseModel):
    unread: int


class MarkAllReadResult(BaseModel):
    updated: int
