from app.database.database import Base
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, UniqueConstraint, Uuid
from app.common.mixins import BaseMixin, LiveCollectionMixin
import enum


class ReturnType(enum.Enum):
    CUSTOMER = "Customer Return"
    SUPPLIER = "Supplier Return"


class ReturnStatus(enum.Enum):
    AWAITING_INSPECTION = "Awaiting Inspection"
    UNDER_REPAIR = "Under Repair"
    READY_FOR_PICKUP = "Ready for Pickup"
    TO_BE_REPLACED = "To be Replaced"
    TO_BE_REFUNDED = "To be Refunded"
    RETURN_TO_SUPPLIER = "Return to Supplier"
    COMPLETED = "Completed / Closed"


class ReturnItem(Base, BaseMixin, LiveCollectionMixin):
    __tablename__ = "returns"
    __live_collection__ = "returns"

    return_number = Column(String(20), nullable=False)  # RTN-2024-0001
    type = Column(String(20), nullable=False)
    status = Column(String(30), nullable=False, default=ReturnStatus.AWAITING_INSPECTION.value, index=True)

    customer_name = Column(String(200), nullable=False, default="")
    customer_phone = Column(String(50), nullable=True)

    # el nombre queda como copia por si el artículo se elimina
    inventory_item_id = Column(
        Uuid(as_uuid=True), ForeignKey("inventory_items.id", ondelete="SET NULL"), nullable=True
    )
    inventory_item_name = Column(String(200), nullable=False)
    original_invoice_id = Column(String(50), nullable=True)

    quantity = Column(Integer, nullable=False)
    reason = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)
    resolution_date = Column(DateTime(timezone=True), nullable=True)

    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_by_name = Column(String(100), nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "return_number", name="uq_return_tenant_number"),
    )
