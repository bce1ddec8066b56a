from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from uuid import UUID

from app.common.validators import IsoTimestamp, validate_optional_email


class SupplierBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    contact_person: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=300)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError('El nombre debe tener al menos 2 caracteres')
        return v

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return validate_optional_email(v)


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    contact_person: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=300)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return validate_optional_email(v)


class SupplierOut(SupplierBase):
    id: UUID
    tenant_id: UUID
    created_at: IsoTimestamp

    class Config:
        from_attributes = True


class SupplierList(BaseModel):
    items: List[SupplierOut]
    total: int
    limit: int
    offset: int
