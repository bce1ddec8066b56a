from app.database.database import Base
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, Numeric, Text, Uuid
from sqlalchemy.orm import relationship
from decimal import Decimal, ROUND_HALF_UP
from app.common.mixins import BaseMixin, TenantMixin, TimestampMixin, LiveCollectionMixin, utc_now
from uuid import uuid4
import enum


class InvoiceStatus(enum.Enum):
    PAID = "Paid"
    UNPAID = "Unpaid"
    PARTIALLY_PAID = "Partially Paid"
    CANCELLED = "Cancelled"


class DiscountType(enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class LineItemType(enum.Enum):
    PRODUCT = "product"
    SERVICE = "service"


class PaymentMethod(enum.Enum):
    CASH = "Cash"
    CARD = "Card"
    BANK_TRANSFER = "Bank Transfer"
    OTHER = "Other"


CENT = Decimal("0.01")


def calculate_totals(lines, discount_type: str, discount_value) -> tuple:
    """
    Totales derivados de una factura.

    lines es un iterable de pares (quantity, price).
    Retorna (subtotal, discount, total); descuento y total redondeados a centavos.
    """
    subtotal = sum((Decimal(quantity) * Decimal(price) for quantity, price in lines), Decimal("0"))
    value = Decimal(discount_value or 0)
    if discount_type == DiscountType.PERCENTAGE.value:
        discount = subtotal * value / 100
    else:
        discount = value
    discount = discount.quantize(CENT, rounding=ROUND_HALF_UP)
    total = (subtotal - discount).quantize(CENT, rounding=ROUND_HALF_UP)
    return subtotal, discount, total


def status_for_payments(paid: Decimal, total: Decimal) -> str:
    if paid >= total:
        return InvoiceStatus.PAID.value
    if paid > 0:
        return InvoiceStatus.PARTIALLY_PAID.value
    return InvoiceStatus.UNPAID.value


class Invoice(Base, BaseMixin, LiveCollectionMixin):
    __tablename__ = "invoices"
    __live_collection__ = "invoices"

    number = Column(String(20), nullable=False)  # INV-2024-0001

    customer_id = Column(Uuid(as_uuid=True), ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    customer_name = Column(String(200), nullable=False)
    customer_phone = Column(String(50), nullable=True)

    status = Column(String(20), nullable=False, default=InvoiceStatus.UNPAID.value, index=True)
    discount_type = Column(String(20), nullable=False, default=DiscountType.PERCENTAGE.value)
    discount_value = Column(Numeric(15, 2), nullable=False, default=0)

    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_by_name = Column(String(100), nullable=False)

    # Relationships
    line_items = relationship(
        "InvoiceLineItem", back_populates="invoice", cascade="all, delete-orphan",
        order_by="InvoiceLineItem.position"
    )
    payments = relationship(
        "Payment", back_populates="invoice", cascade="all, delete-orphan",
        order_by="Payment.date"
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "number", name="uq_invoice_tenant_number"),
    )

    def _totals(self) -> tuple:
        return calculate_totals(
            ((line.quantity, line.price) for line in self.line_items),
            self.discount_type, self.discount_value
        )

    @property
    def subtotal(self) -> Decimal:
        return self._totals()[0]

    @property
    def discount_amount(self) -> Decimal:
        return self._totals()[1]

    @property
    def total(self) -> Decimal:
        return self._totals()[2]

    @property
    def paid_amount(self) -> Decimal:
        """Calcular monto pagado"""
        return sum((Decimal(payment.amount) for payment in self.payments), Decimal("0"))

    @property
    def balance_due(self) -> Decimal:
        """Calcular saldo pendiente"""
        return self.total - self.paid_amount


class InvoiceLineItem(Base, TenantMixin, TimestampMixin, LiveCollectionMixin):
    __tablename__ = "invoice_line_items"
    __live_collection__ = "invoices"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    invoice_id = Column(Uuid(as_uuid=True), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    inventory_item_id = Column(
        Uuid(as_uuid=True), ForeignKey("inventory_items.id", ondelete="SET NULL"), nullable=True
    )
    position = Column(Integer, nullable=False, default=0)

    type = Column(String(20), nullable=False, default=LineItemType.PRODUCT.value)
    description = Column(String(300), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(15, 2), nullable=False)
    warranty_period = Column(String(50), nullable=False, default="N/A")
    cost_price_at_sale = Column(Numeric(15, 2), nullable=True)

    invoice = relationship("Invoice", back_populates="line_items")

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.quantity) * Decimal(self.price)


class Payment(Base, TenantMixin, TimestampMixin, LiveCollectionMixin):
    __tablename__ = "payments"
    __live_collection__ = "invoices"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    invoice_id = Column(Uuid(as_uuid=True), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(Numeric(15, 2), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    method = Column(String(20), nullable=False, default=PaymentMethod.CASH.value)
    notes = Column(Text, nullable=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_by_name = Column(String(100), nullable=False)

    invoice = relationship("Invoice", back_populates="payments")


class DocumentSequence(Base, TenantMixin):
    """Secuencias de numeración por organización, prefijo y año (INV, RTN)"""
    __tablename__ = "document_sequences"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    prefix = Column(String(10), nullable=False)
    year = Column(Integer, nullable=False)
    current_number = Column(Integer, nullable=False, default=0)

    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("tenant_id", "prefix", "year", name="uq_sequence_tenant_prefix_year"),
    )
