from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from uuid import UUID
from enum import Enum

from app.common.validators import IsoTimestamp, OptionalIsoTimestamp


class ReturnType(str, Enum):
    CUSTOMER = "Customer Return"
    SUPPLIER = "Supplier Return"


class ReturnStatus(str, Enum):
    AWAITING_INSPECTION = "Awaiting Inspection"
    UNDER_REPAIR = "Under Repair"
    READY_FOR_PICKUP = "Ready for Pickup"
    TO_BE_REPLACED = "To be Replaced"
    TO_BE_REFUNDED = "To be Refunded"
    RETURN_TO_SUPPLIER = "Return to Supplier"
    COMPLETED = "Completed / Closed"


class ReturnCreate(BaseModel):
    type: ReturnType
    inventory_item_id: UUID
    quantity: int = Field(..., ge=1)
    reason: str = Field(..., min_length=5, max_length=1000, description="Motivo (mínimo 5 caracteres)")
    original_invoice_id: Optional[str] = Field(None, max_length=50)
    customer_name: str = Field("", max_length=200)
    customer_phone: Optional[str] = Field(None, max_length=50)

    @model_validator(mode='after')
    def validate_customer(self):
        self.customer_name = self.customer_name.strip()
        if self.type == ReturnType.CUSTOMER and not self.customer_name:
            raise ValueError('El nombre del cliente es requerido para devoluciones de clientes')
        return self


class ReturnUpdate(BaseModel):
    status: Optional[ReturnStatus] = None
    notes: Optional[str] = Field(None, max_length=1000)


class ReturnOut(BaseModel):
    id: UUID
    tenant_id: UUID
    return_number: str
    type: ReturnType
    status: ReturnStatus
    customer_name: str
    customer_phone: Optional[str] = None
    inventory_item_id: Optional[UUID] = None
    inventory_item_name: str
    original_invoice_id: Optional[str] = None
    quantity: int
    reason: str
    notes: Optional[str] = None
    resolution_date: OptionalIsoTimestamp = None
    created_by: UUID
    created_by_name: str
    created_at: IsoTimestamp

    class Config:
        from_attributes = True


class ReturnList(BaseModel):
    items: List[ReturnOut]
    total: int
    limit: int
    offset: int
