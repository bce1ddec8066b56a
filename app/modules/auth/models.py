from sqlalchemy import Column, String, Boolean, ForeignKey, DateTime, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from uuid import uuid4
from app.database.database import Base
from app.common.mixins import TimestampMixin, LiveCollectionMixin, utc_now
import enum


class UserRole(enum.Enum):
    OWNER = "owner"    # Dueño de la organización, único que gestiona roles
    ADMIN = "admin"    # Administra inventario, facturas y reportes
    STAFF = "staff"    # Ventas y devoluciones


class InvitationStatus(enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    email = Column(String, unique=True, nullable=False, index=True)
    password = Column(String, nullable=False)
    username = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    onboarding_completed = Column(Boolean, default=False, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    memberships = relationship(
        "Membership", back_populates="user", cascade="all, delete-orphan",
        order_by="Membership.joined_at"
    )
    reset_tokens = relationship("PasswordResetToken", back_populates="user", cascade="all, delete-orphan")


class Membership(Base, TimestampMixin, LiveCollectionMixin):
    """Rol del usuario dentro de una organización (mapa tenant -> rol)."""
    __tablename__ = "memberships"
    __live_collection__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    tenant_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True)
    role = Column(String(20), nullable=False, default=UserRole.STAFF.value)
    is_active = Column(Boolean, default=True, nullable=False)
    joined_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    # Relationships
    user = relationship("User", back_populates="memberships")
    organization = relationship("Organization", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("user_id", "tenant_id", name="uq_membership_user_tenant"),
    )


class PasswordResetToken(Base, TimestampMixin):
    __tablename__ = "password_reset_tokens"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    token = Column(String, unique=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)
    is_used = Column(Boolean, default=False)

    # Relationships
    user = relationship("User", back_populates="reset_tokens")


class Invitation(Base, TimestampMixin):
    __tablename__ = "invitations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    tenant_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True)
    invited_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    email = Column(String, nullable=False, index=True)
    role = Column(String(20), nullable=False, default=UserRole.STAFF.value)
    token = Column(String, unique=True, nullable=False)
    status = Column(String(20), nullable=False, default=InvitationStatus.PENDING.value)
    accepted_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    organization = relationship("Organization")
    invited_by = relationship("User", foreign_keys=[invited_by_id])
