from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import require_any_role, require_owner_or_admin
from app.modules.auth.schemas import AuthContext
from app.modules.organizations import service
from app.modules.organizations.schemas import (
    OrganizationOut, OrganizationSettingsUpdate, ThemeUpdate, InvoiceSettingsUpdate
)

organization_router = APIRouter()


@organization_router.get("/me", response_model=OrganizationOut)
async def get_my_organization(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(require_any_role())
):
    """
    Obtener la organización activa.
    """
    return service.get_organization(db, auth_context.tenant_id)


@organization_router.patch("/me", response_model=OrganizationOut)
async def update_organization(
    settings_update: OrganizationSettingsUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(require_owner_or_admin())
):
    """
    Actualizar los datos de la organización (owner/admin).
    """
    return service.update_settings(db, auth_context.tenant_id, settings_update)


@organization_router.patch("/me/theme", response_model=OrganizationOut)
async def update_theme(
    theme_update: ThemeUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(require_any_role())
):
    return service.update_theme(db, auth_context.tenant_id, theme_update)


@organization_router.patch("/me/invoice-settings", response_model=OrganizationOut)
async def update_invoice_settings(
    invoice_settings: InvoiceSettingsUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(require_owner_or_admin())
):
    """
    Cambiar plantilla y color de factura. Mantiene los últimos 5 colores usados.
    """
    return service.update_invoice_settings(db, auth_context.tenant_id, invoice_settings)


@organization_router.post("/me/complete-onboarding", response_model=OrganizationOut)
async def complete_onboarding(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(require_owner_or_admin())
):
    return service.complete_onboarding(db, auth_context.tenant_id)
