"""
Correo transaccional de Pocket Kade

Los mensajes se describen con `OutgoingEmail` (destinatario, asunto, template
y contexto) y se entregan por SMTP. Solo hay dos: invitación a una
organización y restablecimiento de contraseña.
"""
import logging
import smtplib
import ssl
from dataclasses import dataclass, field
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.core.config import settings

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

ROLE_LABELS = {
    "owner": "Owner",
    "admin": "Administrator",
    "staff": "Staff member",
}


@dataclass
class OutgoingEmail:
    to: str
    subject: str
    template: str
    context: Dict[str, Any] = field(default_factory=dict)


class EmailDeliveryError(Exception):
    """El servidor SMTP rechazó o no aceptó el mensaje."""


class EmailService:

    def __init__(self):
        self.sender_name = settings.EMAIL_FROM_NAME
        self.sender_address = settings.EMAIL_FROM or settings.EMAIL_USERNAME
        self.frontend_url = settings.FRONTEND_URL.rstrip("/")
        self.templates = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"])
        )

    # ===== MENSAJES =====

    def invitation_url(self, token: str) -> str:
        return f"{self.frontend_url}/accept-invitation?token={token}"

    def invitation(self, invitee_email: str, inviter_name: str, organization_name: str,
                   invitation_token: str, role: str) -> OutgoingEmail:
        return OutgoingEmail(
            to=invitee_email,
            subject=f"You're invited to join {organization_name} on {self.sender_name}",
            template="invitation_email.html",
            context={
                "invitee_email": invitee_email,
                "inviter_name": inviter_name,
                "organization_name": organization_name,
                "role": ROLE_LABELS.get(role, role),
                "invitation_url": self.invitation_url(invitation_token),
                "expire_hours": settings.INVITATION_EXPIRE_HOURS,
            }
        )

    def password_reset(self, user_email: str, user_name: str, reset_token: str) -> OutgoingEmail:
        return OutgoingEmail(
            to=user_email,
            subject=f"Reset your {self.sender_name} password",
            template="password_reset_email.html",
            context={
                "user_name": user_name,
                "reset_url": f"{self.frontend_url}/reset-password?token={reset_token}",
                "expire_hours": settings.PASSWORD_RESET_EXPIRE_HOURS,
            }
        )

    # ===== ENTREGA =====

    def render(self, email: OutgoingEmail) -> EmailMessage:
        html = self.templates.get_template(email.template).render(
            support_email=self.sender_address, app_name=self.sender_name, **email.context
        )
        message = EmailMessage()
        message["Subject"] = email.subject
        message["From"] = f"{self.sender_name} <{self.sender_address}>"
        message["To"] = email.to
        message.set_content(f"{email.subject}\n\nOpen this message in an HTML capable client.")
        message.add_alternative(html, subtype="html")
        return message

    def deliver(self, email: OutgoingEmail) -> None:
        """Enviar por SMTP. Lanza EmailDeliveryError si el servidor falla."""
        message = self.render(email)
        try:
            if settings.EMAIL_USE_TLS:
                server = smtplib.SMTP(settings.EMAIL_SMTP_SERVER, settings.EMAIL_SMTP_PORT, timeout=30)
                server.starttls(context=ssl.create_default_context())
            else:
                server = smtplib.SMTP_SSL(settings.EMAIL_SMTP_SERVER, settings.EMAIL_SMTP_PORT, timeout=30)
            with server:
                if settings.EMAIL_USERNAME:
                    server.login(settings.EMAIL_USERNAME, settings.EMAIL_PASSWORD)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(str(e)) from e

        logger.info(f"Email '{email.template}' sent to {email.to}")


email_service = EmailService()
