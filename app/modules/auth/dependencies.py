"""
Dependencias de autenticación para FastAPI.
"""
from typing import Optional, List
from uuid import UUID
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session, selectinload
import jwt

from app.database.database import get_db
from app.modules.auth.models import User, Membership
from app.modules.auth.schemas import AuthContext, MembershipOut
from app.core.config import settings

# Security scheme
security = HTTPBearer()

ALL_ROLES = ["owner", "admin", "staff"]
MANAGER_ROLES = ["owner", "admin"]


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No se pudieron validar las credenciales",
        headers={"WWW-Authenticate": "Bearer"},
    )


def membership_out(membership: Membership) -> MembershipOut:
    return MembershipOut(
        id=membership.id,
        tenant_id=membership.tenant_id,
        role=membership.role,
        is_active=membership.is_active,
        joined_at=membership.joined_at,
        organization_name=membership.organization.name
    )


def load_user(db: Session, user_id) -> Optional[User]:
    return db.query(User).options(
        selectinload(User.memberships).selectinload(Membership.organization)
    ).filter(User.id == UUID(str(user_id))).first()


def build_auth_context(db: Session, token: str, requested_tenant: Optional[str] = None) -> AuthContext:
    """
    Construir el contexto de autenticación a partir de un JWT.

    El tenant activo se resuelve en este orden: token de contexto,
    tenant solicitado (header X-Tenant-ID o query param en websockets)
    y, por defecto, la primera membresía del usuario.
    El rol siempre se lee de la base de datos.
    """
    try:
        payload = jwt.decode(token, settings.APP_SECRET_STRING, algorithms=[settings.ALGORITHM])
        user_id = payload.get("sub")
        token_type = payload.get("type", "access")
        if user_id is None or token_type not in ("access", "context"):
            raise _credentials_exception()
        user = load_user(db, user_id)
    except (jwt.PyJWTError, ValueError):
        raise _credentials_exception()

    if user is None or not user.is_active:
        raise _credentials_exception()

    active_memberships = [m for m in user.memberships if m.is_active]

    tenant_id = None
    if token_type == "context":
        tenant_id = payload.get("tenant_id")
    elif requested_tenant:
        tenant_id = str(requested_tenant)

    membership = None
    if tenant_id:
        try:
            tenant_uuid = UUID(str(tenant_id))
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="ID de organización inválido"
            )
        membership = next((m for m in active_memberships if m.tenant_id == tenant_uuid), None)
        if membership is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No tienes acceso a esta organización"
            )
    elif active_memberships:
        membership = active_memberships[0]

    return AuthContext(
        user_id=user.id,
        username=user.username,
        tenant_id=membership.tenant_id if membership else None,
        user_role=membership.role if membership else None,
        memberships=[membership_out(m) for m in active_memberships]
    )


class AuthDependencies:
    """Dependencias de autenticación reutilizables."""

    @staticmethod
    def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(security),
        db: Session = Depends(get_db)
    ) -> User:
        """
        Obtener usuario actual desde token JWT.
        No requiere tenant (para endpoints de perfil).
        """
        try:
            payload = jwt.decode(
                credentials.credentials,
                settings.APP_SECRET_STRING,
                algorithms=[settings.ALGORITHM]
            )
            user_id = payload.get("sub")
            if user_id is None or payload.get("type") == "refresh":
                raise _credentials_exception()
            user = load_user(db, user_id)
        except (jwt.PyJWTError, ValueError):
            raise _credentials_exception()

        if user is None or not user.is_active:
            raise _credentials_exception()

        return user

    @staticmethod
    def get_auth_context(
        request: Request,
        credentials: HTTPAuthorizationCredentials = Depends(security),
        db: Session = Depends(get_db)
    ) -> AuthContext:
        """
        Obtener contexto de autenticación completo con tenant.
        """
        requested_tenant = getattr(request.state, "tenant_id", None)
        return build_auth_context(db, credentials.credentials, requested_tenant)

    @staticmethod
    def require_role(allowed_roles: List[str]):
        """
        Dependencia para requerir roles específicos.
        """
        def role_checker(auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)):
            if not auth_context.tenant_id:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Se requiere pertenecer a una organización"
                )

            if auth_context.user_role.value not in allowed_roles:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Se requiere uno de estos roles: {', '.join(allowed_roles)}"
                )

            return auth_context
        return role_checker

    @staticmethod
    def require_owner():
        return AuthDependencies.require_role(["owner"])

    @staticmethod
    def require_owner_or_admin():
        """Dependencia para requerir rol de owner o admin."""
        return AuthDependencies.require_role(MANAGER_ROLES)

    @staticmethod
    def require_any_role():
        """Dependencia que requiere cualquier rol activo en una organización."""
        return AuthDependencies.require_role(ALL_ROLES)

# Instancias de dependencias
get_current_user = AuthDependencies.get_current_user
get_auth_context = AuthDependencies.get_auth_context
require_owner = AuthDependencies.require_owner
require_owner_or_admin = AuthDependencies.require_owner_or_admin
require_any_role = AuthDependencies.require_any_role
