from app.database.database import Base
from sqlalchemy import Column, String, Integer, Numeric, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from app.common.mixins import BaseMixin, LiveCollectionMixin
import enum


class ItemStatus(enum.Enum):
    AVAILABLE = "Available"
    AWAITING_INSPECTION = "Awaiting Inspection"
    DAMAGED = "Damaged"
    FOR_REPAIR = "For Repair"


class MovementType(enum.Enum):
    ADDITION = "addition"
    SALE = "sale"
    CANCELLATION = "cancellation"
    RETURN = "return"
    ADJUSTMENT = "adjustment"


class InventoryItem(Base, BaseMixin, LiveCollectionMixin):
    __tablename__ = "inventory_items"
    __live_collection__ = "inventory"

    name = Column(String(200), nullable=False, index=True)
    category = Column(String(100), nullable=False)
    brand = Column(String(100), nullable=True)
    quantity = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(15, 2), nullable=False, default=0)
    cost_price = Column(Numeric(15, 2), nullable=False, default=0)
    reorder_point = Column(Integer, nullable=False, default=0)
    status = Column(String(30), nullable=False, default=ItemStatus.AVAILABLE.value)
    warranty_period = Column(String(50), nullable=False, default="N/A")

    supplier_id = Column(Uuid(as_uuid=True), ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True)
    supplier_name = Column(String(200), nullable=True)

    movements = relationship(
        "StockMovement", back_populates="inventory_item", cascade="all, delete-orphan"
    )


class StockMovement(Base, BaseMixin, LiveCollectionMixin):
    """Historial de movimientos de stock. quantity es negativa solo en ajustes de salida."""
    __tablename__ = "stock_movements"
    __live_collection__ = "stock_movements"

    inventory_item_id = Column(
        Uuid(as_uuid=True), ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type = Column(String(20), nullable=False)
    quantity = Column(Integer, nullable=False)
    reference_id = Column(String(100), nullable=True)  # número de factura, "Shipment", etc.
    created_by_name = Column(String(100), nullable=True)

    inventory_item = relationship("InventoryItem", back_populates="movements")
