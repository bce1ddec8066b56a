from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.chat.service import ChatService
from app.modules.chat.schemas import (
    ConversationCreate, ConversationOut, MessageCreate, MessageOut, UnreadTotal
)

router = APIRouter(prefix="/chat", tags=["Chat"])


@router.get("/conversations", response_model=List[ConversationOut])
async def list_conversations(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    return ChatService(db).list_conversations(auth_context)


@router.post("/conversations", response_model=ConversationOut)
async def create_or_get_conversation(
    data: ConversationCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """Abrir la conversación con otro miembro (se reutiliza si ya existe)."""
    return ChatService(db).create_or_get(data.other_user_id, auth_context)


@router.get("/unread-count", response_model=UnreadTotal)
async def unread_count(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    return UnreadTotal(unread=ChatService(db).total_unread(auth_context))


@router.get("/conversations/{conversation_id}/messages", response_model=List[MessageOut])
async def list_messages(
    conversation_id: UUID = Path(..., description="ID de la conversación"),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """Mensajes más antiguos primero; los marca como leídos."""
    return ChatService(db).list_messages(conversation_id, auth_context)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageOut,
    status_code=status.HTTP_201_CREATED
)
async def send_message(
    data: MessageCreate,
    conversation_id: UUID = Path(..., description="ID de la conversación"),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    return ChatService(db).send_message(conversation_id, data.text, auth_context)
