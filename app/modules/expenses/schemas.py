from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from uuid import UUID
from decimal import Decimal
from datetime import datetime
from enum import Enum

from app.common.validators import IsoTimestamp


class ExpenseCategory(str, Enum):
    RENT = "Rent"
    SALARIES = "Salaries"
    UTILITIES = "Utilities"
    MARKETING = "Marketing"
    PURCHASES = "Purchases"
    OTHER = "Other"


class ExpenseBase(BaseModel):
    category: ExpenseCategory
    amount: Decimal = Field(..., gt=0, description="Monto del gasto")
    date: datetime
    description: str = Field(..., min_length=1, max_length=1000)
    vendor: Optional[str] = Field(None, max_length=200)

    @field_validator('description')
    @classmethod
    def strip_description(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('La descripción es requerida')
        return v


class ExpenseCreate(ExpenseBase):
    pass


class ExpenseUpdate(BaseModel):
    category: Optional[ExpenseCategory] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    date: Optional[datetime] = None
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    vendor: Optional[str] = Field(None, max_length=200)


class ExpenseOut(BaseModel):
    id: UUID
    tenant_id: UUID
    category: ExpenseCategory
    amount: Decimal
    date: IsoTimestamp
    description: str
    vendor: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: IsoTimestamp

    class Config:
        from_attributes = True


class ExpenseList(BaseModel):
    items: List[ExpenseOut]
    total: int
    limit: int
    offset: int
