from app.database.database import Base
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from uuid import uuid4
from app.common.mixins import BaseMixin, TimestampMixin, LiveCollectionMixin, utc_now


class Conversation(Base, BaseMixin, LiveCollectionMixin):
    __tablename__ = "conversations"
    __live_collection__ = "conversations"

    # ids de los participantes ordenados, unidos por coma
    participant_key = Column(String(200), nullable=False)
    participants = Column(JSON, nullable=False, default=list)
    participant_usernames = Column(JSON, nullable=False, default=dict)

    last_message = Column(String(50), nullable=True)
    last_message_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    last_message_sender_id = Column(String(50), nullable=True)
    unread_counts = Column(JSON, nullable=False, default=dict)

    messages = relationship(
        "Message", back_populates="conversation", cascade="all, delete-orphan",
        order_by="Message.created_at"
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "participant_key", name="uq_conversation_tenant_participants"),
    )

    def live_topics(self) -> list:
        return [(str(participant), self.__live_collection__) for participant in self.participants or []]


class Message(Base, TimestampMixin, LiveCollectionMixin):
    __tablename__ = "messages"
    __live_collection__ = "messages"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    conversation_id = Column(
        Uuid(as_uuid=True), ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    sender_name = Column(String(100), nullable=False)
    text = Column(Text, nullable=False)
    read_by = Column(JSON, nullable=False, default=list)

    conversation = relationship("Conversation", back_populates="messages")

    def live_topics(self) -> list:
        return [(str(self.conversation_id), self.__live_collection__)]
