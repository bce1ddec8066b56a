import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.modules.organizations.models import Organization
from app.modules.organizations.schemas import (
    OrganizationSettingsUpdate, ThemeUpdate, InvoiceSettingsUpdate
)

logger = logging.getLogger(__name__)


def get_organization(db: Session, tenant_id: UUID) -> Organization:
    """
    Obtener la organización activa del usuario.

    Raises:
        HTTPException 404: si la organización no existe.
    """
    organization = db.get(Organization, tenant_id)
    if not organization:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organización no encontrada")
    return organization


def update_settings(db: Session, tenant_id: UUID, data: OrganizationSettingsUpdate) -> Organization:
    organization = get_organization(db, tenant_id)

    for field, value in data.model_dump(exclude_unset=True).items():
        if field == "name" and value is None:
            continue
        setattr(organization, field, value.strip() if isinstance(value, str) else value)

    db.commit()
    db.refresh(organization)
    logger.info(f"Organization {tenant_id} settings updated")
    return organization


def update_theme(db: Session, tenant_id: UUID, data: ThemeUpdate) -> Organization:
    organization = get_organization(db, tenant_id)
    organization.selected_theme = data.selected_theme.value
    db.commit()
    db.refresh(organization)
    return organization


def update_invoice_settings(db: Session, tenant_id: UUID, data: InvoiceSettingsUpdate) -> Organization:
    """
    Guardar plantilla y color de factura.
    El color también se agrega a la lista de colores recientes.
    """
    organization = get_organization(db, tenant_id)
    organization.invoice_template = data.invoice_template.value
    organization.invoice_color = data.invoice_color
    organization.push_recent_color(data.invoice_color)
    db.commit()
    db.refresh(organization)
    return organization


def complete_onboarding(db: Session, tenant_id: UUID) -> Organization:
    organization = get_organization(db, tenant_id)
    organization.onboarding_completed = True
    db.commit()
    db.refresh(organization)
    logger.info(f"Organization {tenant_id} completed onboarding")
    return organization
