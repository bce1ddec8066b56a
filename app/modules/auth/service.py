import logging
from datetime import datetime, timedelta, timezone
from typing import List
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload

from app.common.mixins import utc_now
from app.modules.auth.models import (
    User, Membership, PasswordResetToken, Invitation, InvitationStatus, UserRole
)
from app.modules.auth.schemas import (
    UserCreate, UserOut, TokenResponse, ContextTokenResponse, TenantUserOut,
    TenantUsersResponse, InvitationCreate, InvitationCreated, InvitationDetails,
    InvitationAccept, InvitationOut, ProfileUpdate, AuthContext
)
from app.modules.auth.dependencies import membership_out, load_user
from app.modules.auth.utils import (
    hash_password, verify_password, create_access_token,
    create_context_token, create_refresh_token, verify_token, generate_secure_token
)
from app.modules.organizations.models import Organization
from app.modules.email.service import email_service
from app.modules.email.tasks import send_invitation_email_task, send_password_reset_email_task
from app.core.config import settings

logger = logging.getLogger(__name__)


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AuthService:
    """
    Servicio de autenticación multi-tenant.
    """

    def __init__(self, db: Session):
        self.db = db

    # ===== SESIÓN =====

    def _token_response(self, user: User) -> TokenResponse:
        memberships = [membership_out(m) for m in user.memberships if m.is_active]
        access_token = create_access_token({
            "sub": str(user.id),
            "email": user.email,
            "user_name": user.username
        })
        return TokenResponse(
            access_token=access_token,
            token_type="bearer",
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            user=UserOut.model_validate(user),
            memberships=memberships,
            active_tenant_id=memberships[0].tenant_id if memberships else None,
            refresh_token=create_refresh_token(str(user.id))
        )

    def signup(self, user_data: UserCreate) -> TokenResponse:
        """
        Registrar usuario, crear su organización y la membresía de owner.
        """
        email = user_data.email.lower()
        if self.db.query(User).filter(User.email == email).first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Este email ya está registrado"
            )

        try:
            user = User(
                email=email,
                password=hash_password(user_data.password),
                username=user_data.username.strip(),
                is_active=True,
                onboarding_completed=False
            )
            self.db.add(user)
            self.db.flush()

            organization = Organization(name=user_data.organization_name.strip(), owner_id=user.id)
            self.db.add(organization)
            self.db.flush()

            self.db.add(Membership(
                user_id=user.id,
                tenant_id=organization.id,
                role=UserRole.OWNER.value
            ))
            user.last_login = utc_now()
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error during signup for {email}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error al registrar el usuario"
            )

        logger.info(f"New organization {organization.id} created by {email}")
        return self._token_response(load_user(self.db, user.id))

    def login(self, email: str, password: str) -> TokenResponse:
        """
        Login de usuario con listado de organizaciones.
        """
        user = self.db.query(User).options(
            selectinload(User.memberships).selectinload(Membership.organization)
        ).filter(User.email == email.lower()).first()

        if not user or not verify_password(password, user.password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Credenciales incorrectas"
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Cuenta inactiva"
            )

        user.last_login = utc_now()
        self.db.commit()

        return self._token_response(user)

    def refresh(self, refresh_token: str) -> TokenResponse:
        payload = verify_token(refresh_token)
        if payload.get("type") != "refresh":
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token de refresco inválido"
            )

        user = load_user(self.db, payload.get("sub"))
        if not user or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Usuario no encontrado o inactivo"
            )
        return self._token_response(user)

    def select_organization(self, user_id: UUID, tenant_id: UUID) -> ContextTokenResponse:
        """
        Seleccionar organización y generar token de contexto.
        """
        membership = self.db.query(Membership).options(
            selectinload(Membership.organization),
            selectinload(Membership.user)
        ).filter(
            Membership.user_id == user_id,
            Membership.tenant_id == tenant_id,
            Membership.is_active.is_(True)
        ).first()

        if not membership:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No tienes acceso a esta organización"
            )

        context_token = create_context_token({
            "sub": str(user_id),
            "email": membership.user.email,
            "user_name": membership.user.username,
            "tenant_id": str(tenant_id),
            "user_role": membership.role
        })

        return ContextTokenResponse(
            access_token=context_token,
            token_type="bearer",
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            tenant_id=tenant_id,
            organization_name=membership.organization.name,
            user_role=membership.role
        )

    # ===== CONTRASEÑA =====

    def request_password_reset(self, email: str) -> bool:
        """Solicitar restablecimiento de contraseña."""
        user = self.db.query(User).filter(User.email == email.lower()).first()
        if not user:
            # No revelar si el email existe o no
            return True

        self.db.query(PasswordResetToken).filter(
            PasswordResetToken.user_id == user.id,
            PasswordResetToken.is_used.is_(False)
        ).update({"is_used": True})

        reset_token = generate_secure_token()
        self.db.add(PasswordResetToken(
            user_id=user.id,
            token=reset_token,
            expires_at=utc_now() + timedelta(hours=settings.PASSWORD_RESET_EXPIRE_HOURS)
        ))
        self.db.commit()

        send_password_reset_email_task.delay(
            user_email=user.email,
            user_name=user.username,
            reset_token=reset_token
        )
        return True

    def reset_password(self, token: str, new_password: str) -> User:
        """Restablecer contraseña con token."""
        reset_token = self.db.query(PasswordResetToken).filter(
            PasswordResetToken.token == token,
            PasswordResetToken.is_used.is_(False)
        ).first()

        if not reset_token or _as_aware(reset_token.expires_at) <= utc_now():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Token de restablecimiento inválido o expirado"
            )

        user = reset_token.user
        user.password = hash_password(new_password)
        reset_token.is_used = True
        reset_token.used_at = utc_now()

        self.db.commit()
        return user

    # ===== PERFIL =====

    def update_profile(self, user: User, data: ProfileUpdate) -> User:
        user.username = data.username
        self.db.commit()
        self.db.refresh(user)
        return user

    def complete_onboarding(self, user: User) -> User:
        user.onboarding_completed = True
        self.db.commit()
        self.db.refresh(user)
        return user

    # ===== USUARIOS DE LA ORGANIZACIÓN =====

    def list_users(self, tenant_id: UUID) -> TenantUsersResponse:
        rows = self.db.query(Membership).options(selectinload(Membership.user)).filter(
            Membership.tenant_id == tenant_id,
            Membership.is_active.is_(True)
        ).order_by(Membership.joined_at.asc()).all()

        items = [
            TenantUserOut(
                user_id=m.user_id,
                email=m.user.email,
                username=m.user.username,
                role=m.role,
                joined_at=m.joined_at
            )
            for m in rows
        ]
        return TenantUsersResponse(items=items, total=len(items))

    def _get_membership(self, tenant_id: UUID, user_id: UUID) -> Membership:
        membership = self.db.query(Membership).filter(
            Membership.tenant_id == tenant_id,
            Membership.user_id == user_id
        ).first()
        if not membership:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Usuario no encontrado en la organización"
            )
        return membership

    def update_role(self, auth_context: AuthContext, user_id: UUID, role: str) -> TenantUserOut:
        """Cambiar el rol de un miembro. El owner no puede cambiar su propio rol."""
        if user_id == auth_context.user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No puedes cambiar tu propio rol"
            )

        membership = self._get_membership(auth_context.tenant_id, user_id)
        membership.role = role
        self.db.commit()
        logger.info(f"Role of {user_id} in {auth_context.tenant_id} changed to {role}")

        return TenantUserOut(
            user_id=membership.user_id,
            email=membership.user.email,
            username=membership.user.username,
            role=membership.role,
            joined_at=membership.joined_at
        )

    def remove_user(self, auth_context: AuthContext, user_id: UUID) -> None:
        if user_id == auth_context.user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No puedes eliminarte de la organización"
            )

        membership = self._get_membership(auth_context.tenant_id, user_id)
        self.db.delete(membership)
        self.db.commit()
        logger.info(f"User {user_id} removed from {auth_context.tenant_id}")

    # ===== INVITACIONES =====

    def create_invitation(self, auth_context: AuthContext, data: InvitationCreate) -> InvitationCreated:
        """Invitar usuario a la organización activa."""
        email = data.email.lower()
        tenant_id = auth_context.tenant_id

        existing_member = self.db.query(Membership).join(User).filter(
            Membership.tenant_id == tenant_id,
            User.email == email
        ).first()
        if existing_member:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Este usuario ya pertenece a la organización"
            )

        pending = self.db.query(Invitation).filter(
            Invitation.tenant_id == tenant_id,
            Invitation.email == email,
            Invitation.status == InvitationStatus.PENDING.value
        ).first()
        if pending:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Ya existe una invitación pendiente para este email"
            )

        token = generate_secure_token()
        invitation = Invitation(
            tenant_id=tenant_id,
            invited_by_id=auth_context.user_id,
            email=email,
            role=data.role.value,
            token=token,
            status=InvitationStatus.PENDING.value
        )
        self.db.add(invitation)
        self.db.commit()

        organization = self.db.get(Organization, tenant_id)
        send_invitation_email_task.delay(
            invitee_email=email,
            inviter_name=auth_context.username,
            organization_name=organization.name,
            invitation_token=token,
            role=data.role.value
        )

        return InvitationCreated(
            id=invitation.id,
            email=email,
            role=data.role,
            link=email_service.invitation_url(token)
        )

    def list_invitations(self, tenant_id: UUID) -> List[InvitationOut]:
        invitations = self.db.query(Invitation).filter(
            Invitation.tenant_id == tenant_id,
            Invitation.status == InvitationStatus.PENDING.value
        ).order_by(Invitation.created_at.desc()).all()
        return [InvitationOut.model_validate(inv) for inv in invitations]

    def _pending_invitation(self, token: str) -> Invitation:
        invitation = self.db.query(Invitation).options(
            selectinload(Invitation.organization)
        ).filter(
            Invitation.token == token,
            Invitation.status == InvitationStatus.PENDING.value
        ).first()

        if not invitation:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Invitación no encontrada o ya utilizada"
            )

        expires_at = _as_aware(invitation.created_at) + timedelta(hours=settings.INVITATION_EXPIRE_HOURS)
        if expires_at < utc_now():
            raise HTTPException(
                status_code=status.HTTP_410_GONE,
                detail="La invitación ha expirado"
            )
        return invitation

    def get_invitation(self, token: str) -> InvitationDetails:
        invitation = self._pending_invitation(token)
        return InvitationDetails(
            email=invitation.email,
            role=invitation.role or UserRole.STAFF.value,
            organization_name=invitation.organization.name
        )

    def accept_invitation(self, data: InvitationAccept) -> TokenResponse:
        """Aceptar invitación: crear (o reutilizar) el usuario y su membresía."""
        invitation = self._pending_invitation(data.token)

        user = self.db.query(User).filter(User.email == invitation.email).first()
        # Una cuenta existente solo se une con su propia contraseña
        if user is not None and not verify_password(data.password, user.password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Credenciales incorrectas"
            )

        try:
            if user is None:
                user = User(
                    email=invitation.email,
                    password=hash_password(data.password),
                    username=data.username.strip(),
                    is_active=True,
                    onboarding_completed=False
                )
                self.db.add(user)
                self.db.flush()

            already_member = self.db.query(Membership).filter(
                Membership.user_id == user.id,
                Membership.tenant_id == invitation.tenant_id
            ).first()
            if not already_member:
                self.db.add(Membership(
                    user_id=user.id,
                    tenant_id=invitation.tenant_id,
                    role=invitation.role or UserRole.STAFF.value
                ))

            invitation.status = InvitationStatus.COMPLETED.value
            invitation.accepted_at = utc_now()
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error accepting invitation {invitation.id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error al aceptar la invitación"
            )

        logger.info(f"{invitation.email} joined organization {invitation.tenant_id}")
        return self._token_response(load_user(self.db, user.id))
