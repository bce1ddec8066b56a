from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.orm import Session
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.notifications.service import NotificationService
from app.modules.notifications.schemas import (
    NotificationOut, NotificationList, UnreadCount, MarkAllReadResult
)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/", response_model=NotificationList)
async def list_notifications(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)
):
    """Notificaciones del usuario actual, más recientes primero."""
    return NotificationService(db).list_notifications(auth_context.user_id, limit, offset)


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)
):
    return UnreadCount(unread=NotificationService(db).unread_count(auth_context.user_id))


@router.post("/read-all", response_model=MarkAllReadResult)
async def mark_all_read(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)
):
    return NotificationService(db).mark_all_read(auth_context.user_id)


@router.post("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(
    notification_id: UUID = Path(..., description="ID de la notificación"),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)
):
    return NotificationService(db).mark_read(notification_id, auth_context.user_id)
