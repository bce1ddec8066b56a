from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.service import AuthService
from app.modules.auth.access import check_route_access
from app.modules.auth.dependencies import (
    get_current_user, get_auth_context, require_owner, require_owner_or_admin
)
from app.modules.auth.models import User
from app.modules.auth.schemas import (
    UserCreate, UserLogin, UserOut, TokenResponse, ContextTokenResponse,
    PasswordResetRequest, PasswordResetConfirm, ProfileUpdate,
    OrganizationSelectionRequest, AuthContext, RefreshTokenRequest,
    TenantUsersResponse, TenantUserOut, RoleUpdate,
    InvitationCreate, InvitationCreated, InvitationOut, InvitationDetails, InvitationAccept,
    RouteAccessDecision
)
from app.modules.organizations.models import Organization

auth_router = APIRouter()


@auth_router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    Registrar usuario junto con su organización (rol owner).
    """
    return AuthService(db).signup(user_data)


@auth_router.post("/login", response_model=TokenResponse)
async def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """
    Login de usuario. Retorna tokens y lista de organizaciones.
    """
    return AuthService(db).login(credentials.email, credentials.password)


@auth_router.post("/refresh", response_model=TokenResponse)
async def refresh_token(body: RefreshTokenRequest, db: Session = Depends(get_db)):
    """
    Renovar token de acceso con refresh token.
    """
    return AuthService(db).refresh(body.refresh_token)


@auth_router.post("/select-organization", response_model=ContextTokenResponse)
async def select_organization(
    selection_data: OrganizationSelectionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Seleccionar organización y obtener token de contexto.
    """
    return AuthService(db).select_organization(current_user.id, selection_data.tenant_id)


@auth_router.get("/me", response_model=UserOut)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    return UserOut.model_validate(current_user)


@auth_router.patch("/me", response_model=UserOut)
async def update_profile(
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return AuthService(db).update_profile(current_user, profile)


@auth_router.post("/me/complete-onboarding", response_model=UserOut)
async def complete_onboarding(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Marcar el onboarding del usuario como completado.
    """
    return AuthService(db).complete_onboarding(current_user)


@auth_router.get("/context", response_model=AuthContext)
async def get_auth_context_info(auth_context: AuthContext = Depends(get_auth_context)):
    """
    Obtener contexto de autenticación completo.
    """
    return auth_context


@auth_router.get("/route-access", response_model=RouteAccessDecision)
async def route_access(
    path: str = Query(..., description="Ruta del frontend a evaluar"),
    current_user: User = Depends(get_current_user),
    auth_context: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """
    Evaluar si el usuario actual puede ver una ruta del frontend.
    """
    organization_onboarded = False
    if auth_context.tenant_id:
        organization = db.get(Organization, auth_context.tenant_id)
        organization_onboarded = bool(organization and organization.onboarding_completed)

    redirect_to = check_route_access(
        path,
        authenticated=True,
        role=auth_context.user_role.value if auth_context.user_role else None,
        user_onboarded=current_user.onboarding_completed,
        organization_onboarded=organization_onboarded
    )
    return RouteAccessDecision(path=path, allowed=redirect_to is None, redirect_to=redirect_to)


@auth_router.post("/request-password-reset", response_model=dict)
async def request_password_reset(
    request_data: PasswordResetRequest,
    db: Session = Depends(get_db)
):
    """
    Solicitar restablecimiento de contraseña.
    """
    AuthService(db).request_password_reset(request_data.email)
    return {
        "message": "Si el email existe, se enviará un enlace de restablecimiento"
    }


@auth_router.post("/reset-password", response_model=dict)
async def reset_password(
    reset_data: PasswordResetConfirm,
    db: Session = Depends(get_db)
):
    """
    Restablecer contraseña con token.
    """
    user = AuthService(db).reset_password(reset_data.token, reset_data.new_password)
    return {
        "message": "Contraseña restablecida exitosamente",
        "user_id": str(user.id)
    }


# ===== USUARIOS DE LA ORGANIZACIÓN =====

@auth_router.get("/users", response_model=TenantUsersResponse)
async def list_users(
    auth_context: AuthContext = Depends(require_owner_or_admin()),
    db: Session = Depends(get_db)
):
    """
    Miembros de la organización activa con su rol.
    """
    return AuthService(db).list_users(auth_context.tenant_id)


@auth_router.patch("/users/{user_id}/role", response_model=TenantUserOut)
async def update_user_role(
    role_data: RoleUpdate,
    user_id: UUID = Path(..., description="ID del usuario"),
    auth_context: AuthContext = Depends(require_owner()),
    db: Session = Depends(get_db)
):
    """
    Cambiar el rol de un miembro (solo owner).
    """
    return AuthService(db).update_role(auth_context, user_id, role_data.role.value)


@auth_router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_user(
    user_id: UUID = Path(..., description="ID del usuario"),
    auth_context: AuthContext = Depends(require_owner()),
    db: Session = Depends(get_db)
):
    """
    Quitar un miembro de la organización (solo owner).
    """
    AuthService(db).remove_user(auth_context, user_id)


# ===== INVITACIONES =====

@auth_router.post("/invitations", response_model=InvitationCreated, status_code=status.HTTP_201_CREATED)
async def create_invitation(
    invitation_data: InvitationCreate,
    auth_context: AuthContext = Depends(require_owner_or_admin()),
    db: Session = Depends(get_db)
):
    """
    Invitar usuario a la organización (solo owners/admins).
    """
    return AuthService(db).create_invitation(auth_context, invitation_data)


@auth_router.get("/invitations", response_model=List[InvitationOut])
async def list_invitations(
    auth_context: AuthContext = Depends(require_owner_or_admin()),
    db: Session = Depends(get_db)
):
    return AuthService(db).list_invitations(auth_context.tenant_id)


@auth_router.get("/invitations/{token}", response_model=InvitationDetails)
async def get_invitation(token: str, db: Session = Depends(get_db)):
    """
    Obtener información sobre una invitación pendiente.
    """
    return AuthService(db).get_invitation(token)


@auth_router.post("/accept-invitation", response_model=TokenResponse)
async def accept_invitation(
    acceptance_data: InvitationAccept,
    db: Session = Depends(get_db)
):
    """
    Aceptar invitación: crea la cuenta (si no existe) y la membresía.
    """
    return AuthService(db).accept_invitation(acceptance_data)
