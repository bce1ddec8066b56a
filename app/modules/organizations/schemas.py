from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from uuid import UUID
from enum import Enum

from app.common.validators import IsoTimestamp, validate_optional_email, validate_hex_color


class ThemeOption(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class InvoiceTemplate(str, Enum):
    CLASSIC = "classic"
    MODERN = "modern"
    CORPORATE = "corporate"
    CREATIVE = "creative"


class OrganizationOut(BaseModel):
    id: UUID
    name: str
    owner_id: UUID
    onboarding_completed: bool
    address: Optional[str] = None
    phone: Optional[str] = None
    brn: Optional[str] = None
    email: Optional[str] = None
    invoice_thank_you_message: Optional[str] = None
    invoice_signature: Optional[str] = None
    selected_theme: ThemeOption = ThemeOption.SYSTEM
    invoice_template: InvoiceTemplate = InvoiceTemplate.CLASSIC
    invoice_color: Optional[str] = None
    recent_invoice_colors: List[str] = []
    created_at: IsoTimestamp

    class Config:
        from_attributes = True


class OrganizationSettingsUpdate(BaseModel):
    """Datos generales de la organización. Solo se actualizan los campos enviados."""
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    address: Optional[str] = Field(None, max_length=300)
    phone: Optional[str] = Field(None, max_length=50)
    brn: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=100)
    invoice_thank_you_message: Optional[str] = Field(None, max_length=500)
    invoice_signature: Optional[str] = Field(None, max_length=200)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return validate_optional_email(v)


class ThemeUpdate(BaseModel):
    selected_theme: ThemeOption


class InvoiceSettingsUpdate(BaseModel):
    invoice_template: InvoiceTemplate
    invoice_color: str

    @field_validator('invoice_color')
    @classmethod
    def validate_color(cls, v):
        return validate_hex_color(v)
