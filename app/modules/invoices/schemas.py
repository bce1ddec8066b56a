from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from uuid import UUID
from decimal import Decimal
from datetime import datetime
from enum import Enum

from app.common.validators import IsoTimestamp


class InvoiceStatus(str, Enum):
    PAID = "Paid"
    UNPAID = "Unpaid"
    PARTIALLY_PAID = "Partially Paid"
    CANCELLED = "Cancelled"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class LineItemType(str, Enum):
    PRODUCT = "product"
    SERVICE = "service"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    CARD = "Card"
    BANK_TRANSFER = "Bank Transfer"
    OTHER = "Other"


# Line items
class LineItemCreate(BaseModel):
    type: LineItemType = LineItemType.PRODUCT
    inventory_item_id: Optional[UUID] = None
    description: str = Field(..., min_length=1, max_length=300)
    quantity: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0)
    warranty_period: str = Field("N/A", min_length=1, max_length=50)
    cost_price_at_sale: Optional[Decimal] = Field(None, ge=0)


class LineItemOut(BaseModel):
    id: UUID
    type: LineItemType
    inventory_item_id: Optional[UUID] = None
    description: str
    quantity: int
    price: Decimal
    warranty_period: str
    cost_price_at_sale: Optional[Decimal] = None
    line_total: Decimal

    class Config:
        from_attributes = True


def _subtotal(line_items: List[LineItemCreate]) -> Decimal:
    return sum((Decimal(line.quantity) * line.price for line in line_items), Decimal("0"))


class InvoiceContent(BaseModel):
    """Campos comunes de creación y edición."""
    customer_id: Optional[UUID] = None
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_phone: Optional[str] = Field(None, max_length=50)
    line_items: List[LineItemCreate] = Field(..., min_length=1)
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: Decimal = Field(Decimal("0"), ge=0)

    @field_validator('customer_name')
    @classmethod
    def strip_customer_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El nombre del cliente es requerido')
        return v

    @model_validator(mode='after')
    def validate_discount(self):
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError('El descuento porcentual no puede ser mayor a 100')
        if self.discount_type == DiscountType.FIXED and self.discount_value > _subtotal(self.line_items):
            raise ValueError('El descuento fijo no puede superar el subtotal')
        return self


class InvoiceCreate(InvoiceContent):
    status: InvoiceStatus = InvoiceStatus.UNPAID
    initial_payment: Optional[Decimal] = Field(None, gt=0, description="Solo para Partially Paid")

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        if v == InvoiceStatus.CANCELLED:
            raise ValueError('No se puede crear una factura cancelada')
        return v


class InvoiceUpdate(InvoiceContent):
    pass


# Payments
class PaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Monto del pago")
    method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = Field(None, max_length=500)
    date: Optional[datetime] = None


class PaymentOut(BaseModel):
    id: UUID
    invoice_id: UUID
    amount: Decimal
    date: IsoTimestamp
    method: PaymentMethod
    notes: Optional[str] = None
    created_by: UUID
    created_by_name: str

    class Config:
        from_attributes = True


# Invoices
class InvoiceOut(BaseModel):
    id: UUID
    tenant_id: UUID
    number: str
    customer_id: Optional[UUID] = None
    customer_name: str
    customer_phone: Optional[str] = None
    status: InvoiceStatus
    discount_type: DiscountType
    discount_value: Decimal
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    paid_amount: Decimal
    balance_due: Decimal
    created_by: UUID
    created_by_name: str
    created_at: IsoTimestamp

    class Config:
        from_attributes = True


class InvoiceDetail(InvoiceOut):
    line_items: List[LineItemOut] = []
    payments: List[PaymentOut] = []


class InvoiceList(BaseModel):
    items: List[InvoiceOut]
    total: int
    limit: int
    offset: int


class NextNumber(BaseModel):
    number: str
