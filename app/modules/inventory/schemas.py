from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from uuid import UUID
from decimal import Decimal
from enum import Enum

from app.common.validators import IsoTimestamp


class ItemStatus(str, Enum):
    AVAILABLE = "Available"
    AWAITING_INSPECTION = "Awaiting Inspection"
    DAMAGED = "Damaged"
    FOR_REPAIR = "For Repair"


class MovementType(str, Enum):
    ADDITION = "addition"
    SALE = "sale"
    CANCELLATION = "cancellation"
    RETURN = "return"
    ADJUSTMENT = "adjustment"


class InventoryItemBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    category: str = Field(..., min_length=2, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)
    price: Decimal = Field(..., ge=0, description="Precio de venta")
    cost_price: Decimal = Field(..., ge=0, description="Costo unitario")
    reorder_point: int = Field(..., ge=0)
    status: ItemStatus = ItemStatus.AVAILABLE
    warranty_period: str = Field(..., min_length=1, max_length=50)
    supplier_id: Optional[UUID] = None

    @field_validator('name', 'category')
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError('Debe tener al menos 2 caracteres')
        return v


class InventoryItemCreate(InventoryItemBase):
    quantity: int = Field(0, ge=0, description="Stock inicial")


class InventoryItemUpdate(BaseModel):
    """Actualización parcial. add_stock suma (o resta si es negativo) al stock actual."""
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    category: Optional[str] = Field(None, min_length=2, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)
    price: Optional[Decimal] = Field(None, ge=0)
    cost_price: Optional[Decimal] = Field(None, ge=0)
    reorder_point: Optional[int] = Field(None, ge=0)
    status: Optional[ItemStatus] = None
    warranty_period: Optional[str] = Field(None, min_length=1, max_length=50)
    supplier_id: Optional[UUID] = None
    add_stock: Optional[int] = None


class InventoryItemOut(BaseModel):
    id: UUID
    tenant_id: UUID
    name: str
    category: str
    brand: Optional[str] = None
    quantity: int
    price: Decimal
    cost_price: Decimal
    reorder_point: int
    status: ItemStatus
    warranty_period: str
    supplier_id: Optional[UUID] = None
    supplier_name: Optional[str] = None
    created_at: IsoTimestamp

    class Config:
        from_attributes = True


class InventoryList(BaseModel):
    items: List[InventoryItemOut]
    total: int
    limit: int
    offset: int


class StockMovementOut(BaseModel):
    id: UUID
    inventory_item_id: UUID
    type: MovementType
    quantity: int
    reference_id: Optional[str] = None
    created_by_name: Optional[str] = None
    created_at: IsoTimestamp

    class Config:
        from_attributes = True


# Shipment schemas
class ShipmentLineItem(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    quantity: int = Field(..., ge=1)
    unit_cost_price: Decimal = Field(..., ge=0)


class ShipmentCreate(BaseModel):
    line_items: List[ShipmentLineItem] = Field(..., min_length=1)
    transport_cost: Decimal = Field(Decimal("0"), ge=0)
    other_expenses: Decimal = Field(Decimal("0"), ge=0)
    target_profit: Decimal = Field(Decimal("0"), ge=0)


class ShipmentLineResult(BaseModel):
    inventory_item_id: UUID
    name: str
    quantity: int
    landed_cost: Decimal
    suggested_price: Decimal
    created: bool


class ShipmentResult(BaseModel):
    total_purchase_value: Decimal
    total_landed_cost: Decimal
    lines: List[ShipmentLineResult]
