"""
Módulo de email para Pocket Kade.
"""

from .service import email_service
from .tasks import (
    send_invitation_email_task,
    send_password_reset_email_task
)

__all__ = [
    'email_service',
    'send_invitation_email_task',
    'send_password_reset_email_task'
]
