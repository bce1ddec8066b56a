"""
Módulo de Chat

Conversaciones entre dos miembros de una organización, con conteo de no
leídos por participante y confirmaciones de lectura por mensaje.
"""

from .models import Conversation, Message
from .service import ChatService

__all__ = ["Conversation", "Message", "ChatService"]
