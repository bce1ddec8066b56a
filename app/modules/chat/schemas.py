from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from uuid import UUID

from app.common.validators import IsoTimestamp, OptionalIsoTimestamp


class ConversationCreate(BaseModel):
    other_user_id: UUID


class ConversationOut(BaseModel):
    id: UUID
    tenant_id: UUID
    participants: List[str]
    participant_usernames: Dict[str, str]
    last_message: Optional[str] = None
    last_message_at: OptionalIsoTimestamp = None
    last_message_sender_id: Optional[str] = None
    unread_counts: Dict[str, int]
    created_at: IsoTimestamp

    class Config:
        from_attributes = True


class MessageCreate(BaseModel):
    text: str = Field(..., max_length=4000)


class MessageOut(BaseModel):
    id: UUID
    conversation_id: UUID
    sender_id: UUID
    sender_name: str
    text: str
    read_by: List[str]
    created_at: IsoTimestamp

    class Config:
        from_attributes = True


class UnreadTotal(BaseModel):
    unread: int
