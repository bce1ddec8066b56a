"""
Servicio de chat

Las confirmaciones de lectura y el reinicio del contador de no leídos se
aplican en una sola transacción. Los campos JSON se reasignan completos para
que SQLAlchemy detecte el cambio.
"""
import logging
from typing import List
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.common.mixins import utc_now
from app.modules.auth.models import Membership, User
from app.modules.auth.schemas import AuthContext
from app.modules.chat.models import Conversation, Message

logger = logging.getLogger(__name__)

PREVIEW_LIMIT = 40
PREVIEW_CUT = 37


def message_preview(text: str) -> str:
    """Texto recortado para la lista de conversaciones."""
    text = text.strip()
    if len(text) > PREVIEW_LIMIT:
        return f"{text[:PREVIEW_CUT]}..."
    return text


class ChatService:
    def __init__(self, db: Session):
        self.db = db

    def list_conversations(self, auth_context: AuthContext) -> List[Conversation]:
        """Conversaciones del usuario en la organización activa, actividad más reciente primero."""
        user_key = str(auth_context.user_id)
        conversations = self.db.query(Conversation).filter(
            Conversation.tenant_id == auth_context.tenant_id,
            Conversation.participant_key.contains(user_key)
        ).order_by(Conversation.last_message_at.desc()).all()
        return [c for c in conversations if user_key in c.participants]

    def get_conversation(self, conversation_id: UUID, auth_context: AuthContext) -> Conversation:
        conversation = self.db.query(Conversation).filter(
            Conversation.id == conversation_id,
            Conversation.tenant_id == auth_context.tenant_id
        ).first()
        if not conversation or str(auth_context.user_id) not in conversation.participants:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Conversación no encontrada"
            )
        return conversation

    def create_or_get(self, other_user_id: UUID, auth_context: AuthContext) -> Conversation:
        """Devuelve la conversación existente entre ambos usuarios o crea una nueva."""
        if other_user_id == auth_context.user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No puedes iniciar una conversación contigo mismo"
            )

        other = self.db.query(User).join(Membership, Membership.user_id == User.id).filter(
            User.id == other_user_id,
            Membership.tenant_id == auth_context.tenant_id,
            Membership.is_active.is_(True)
        ).first()
        if not other:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="El usuario no pertenece a la organización"
            )

        participants = sorted([str(auth_context.user_id), str(other_user_id)])
        participant_key = ",".join(participants)

        existing = self.db.query(Conversation).filter(
            Conversation.tenant_id == auth_context.tenant_id,
            Conversation.participant_key == participant_key
        ).first()
        if existing:
            return existing

        conversation = Conversation(
            tenant_id=auth_context.tenant_id,
            participant_key=participant_key,
            participants=participants,
            participant_usernames={
                str(auth_context.user_id): auth_context.username,
                str(other.id): other.username,
            },
            last_message_at=utc_now(),
            unread_counts={participant: 0 for participant in participants}
        )
        self.db.add(conversation)
        self.db.commit()
        self.db.refresh(conversation)
        logger.info(f"Conversation {conversation.id} created in tenant {auth_context.tenant_id}")
        return conversation

    def list_messages(self, conversation_id: UUID, auth_context: AuthContext) -> List[Message]:
        """
        Mensajes de la conversación, más antiguos primero.

        Marca como leídos los mensajes de los demás participantes y reinicia
        el contador de no leídos del usuario.
        """
        conversation = self.get_conversation(conversation_id, auth_context)
        user_key = str(auth_context.user_id)
        messages = self.db.query(Message).filter(
            Message.conversation_id == conversation.id
        ).order_by(Message.created_at.asc()).all()

        changed = False
        for message in messages:
            read_by = list(message.read_by or [])
            if message.sender_id != auth_context.user_id and user_key not in read_by:
                message.read_by = read_by + [user_key]
                changed = True

        unread_counts = dict(conversation.unread_counts or {})
        if unread_counts.get(user_key, 0) > 0:
            unread_counts[user_key] = 0
            conversation.unread_counts = unread_counts
            changed = True

        if changed:
            self.db.commit()
        return messages

    def send_message(self, conversation_id: UUID, text: str, auth_context: AuthContext) -> Message:
        if not text or not text.strip():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El mensaje no puede estar vacío"
            )

        conversation = self.get_conversation(conversation_id, auth_context)
        user_key = str(auth_context.user_id)

        try:
            message = Message(
                conversation_id=conversation.id,
                sender_id=auth_context.user_id,
                sender_name=auth_context.username,
                text=text,
                read_by=[user_key]
            )
            self.db.add(message)

            unread_counts = dict(conversation.unread_counts or {})
            for participant in conversation.participants:
                if participant != user_key:
                    unread_counts[participant] = unread_counts.get(participant, 0) + 1

            conversation.unread_counts = unread_counts
            conversation.last_message = message_preview(text)
            conversation.last_message_at = utc_now()
            conversation.last_message_sender_id = user_key
            self.db.commit()
            self.db.refresh(message)
            return message
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error sending message in conversation {conversation_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error enviando mensaje"
            )

    def total_unread(self, auth_context: AuthContext) -> int:
        user_key = str(auth_context.user_id)
        return sum(
            (conversation.unread_counts or {}).get(user_key, 0)
            for conversation in self.list_conversations(auth_context)
        )
