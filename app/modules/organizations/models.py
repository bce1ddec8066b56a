from app.database.database import Base
from sqlalchemy import Column, String, Boolean, Text, JSON, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from app.common.mixins import TimestampMixin, LiveCollectionMixin
import enum
import uuid


class ThemeOption(enum.Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class InvoiceTemplate(enum.Enum):
    CLASSIC = "classic"
    MODERN = "modern"
    CORPORATE = "corporate"
    CREATIVE = "creative"


MAX_RECENT_INVOICE_COLORS = 5


class Organization(Base, TimestampMixin, LiveCollectionMixin):
    """Organización (tenant). Su id es el tenant_id del resto de tablas."""
    __tablename__ = "organizations"
    __live_collection__ = "organization"

    id = Column(Uuid(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    owner_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    onboarding_completed = Column(Boolean, default=False, nullable=False)

    # Datos de contacto que se imprimen en la factura
    address = Column(String(300), nullable=True)
    phone = Column(String(50), nullable=True)
    brn = Column(String(50), nullable=True)  # Business Registration Number
    email = Column(String(100), nullable=True)

    # Preferencias de factura y apariencia
    invoice_thank_you_message = Column(Text, nullable=True)
    invoice_signature = Column(String(200), nullable=True)
    selected_theme = Column(String(20), nullable=False, default=ThemeOption.SYSTEM.value)
    invoice_template = Column(String(20), nullable=False, default=InvoiceTemplate.CLASSIC.value)
    invoice_color = Column(String(7), nullable=True)
    recent_invoice_colors = Column(JSON, nullable=False, default=list)

    memberships = relationship("Membership", back_populates="organization", cascade="all, delete-orphan")
    owner = relationship("User", foreign_keys=[owner_id])

    def live_topics(self) -> list:
        return [(str(self.id), self.__live_collection__)]

    def push_recent_color(self, color: str) -> None:
        """Agregar color al inicio de la lista de recientes (sin duplicados, máx 5)."""
        colors = [c for c in (self.recent_invoice_colors or []) if c != color]
        # Reasignar la lista para que SQLAlchemy detecte el cambio en la columna JSON
        self.recent_invoice_colors = [color] + colors[:MAX_RECENT_INVOICE_COLORS - 1]
