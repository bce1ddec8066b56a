"""
Tareas de Celery para el envío de correos.

Cada fallo de entrega se reintenta con espera exponencial (30s, 60s, 120s).
"""
import logging

from app.core.celery import celery_app
from app.modules.email.service import EmailDeliveryError, OutgoingEmail, email_service

logger = logging.getLogger(__name__)

RETRY_BASE_SECONDS = 30


def _deliver_with_retry(task, email: OutgoingEmail) -> dict:
    try:
        email_service.deliver(email)
    except EmailDeliveryError as exc:
        retries = task.request.retries
        logger.error(f"Delivery of {email.template} to {email.to} failed (attempt {retries + 1}): {exc}")
        if retries < task.max_retries:
            raise task.retry(exc=exc, countdown=RETRY_BASE_SECONDS * (2 ** retries))
        return {"status": "failed", "email": email.to, "error": str(exc)}
    return {"status": "sent", "email": email.to}


@celery_app.task(bind=True, max_retries=3)
def send_invitation_email_task(self, invitee_email: str, inviter_name: str, organization_name: str,
                               invitation_token: str, role: str):
    email = email_service.invitation(invitee_email, inviter_name, organization_name, invitation_token, role)
    return _deliver_with_retry(self, email)


@celery_app.task(bind=True, max_retries=3)
def send_password_reset_email_task(self, user_email: str, user_name: str, reset_token: str):
    email = email_service.password_reset(user_email, user_name, reset_token)
    return _deliver_with_retry(self, email)
