"""
Servicio de facturación

- Numeración INV-{año}-{NNNN} por organización
- Descuento de stock y movimientos de venta
- Pagos y recálculo de estado
- Cancelación con reposición de stock
"""
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload

from app.common.mixins import utc_now
from app.modules.auth.dependencies import ALL_ROLES, MANAGER_ROLES
from app.modules.auth.schemas import AuthContext
from app.modules.inventory.models import InventoryItem, MovementType
from app.modules.inventory.service import InventoryService
from app.modules.invoices.models import (
    Invoice, InvoiceLineItem, Payment, DocumentSequence,
    InvoiceStatus, LineItemType, PaymentMethod, calculate_totals, status_for_payments
)
from app.modules.invoices.schemas import (
    InvoiceCreate, InvoiceUpdate, InvoiceList, PaymentCreate, LineItemCreate
)
from app.modules.notifications.models import NotificationType
from app.modules.notifications.service import NotificationService

logger = logging.getLogger(__name__)

INVOICE_PREFIX = "INV"


def format_document_number(prefix: str, year: int, number: int) -> str:
    return f"{prefix}-{year}-{number:04d}"


def next_document_number(db: Session, tenant_id: UUID, prefix: str, year: Optional[int] = None) -> str:
    """Reservar el siguiente número de la secuencia (prefijo, año). No hace commit."""
    year = year or utc_now().year
    sequence = db.query(DocumentSequence).filter(
        DocumentSequence.tenant_id == tenant_id,
        DocumentSequence.prefix == prefix,
        DocumentSequence.year == year
    ).with_for_update().first()

    if not sequence:
        sequence = DocumentSequence(tenant_id=tenant_id, prefix=prefix, year=year, current_number=0)
        db.add(sequence)
        db.flush()

    sequence.current_number += 1
    return format_document_number(prefix, year, sequence.current_number)


def preview_document_number(db: Session, tenant_id: UUID, prefix: str, year: Optional[int] = None) -> str:
    """Siguiente número sin reservarlo."""
    year = year or utc_now().year
    sequence = db.query(DocumentSequence).filter(
        DocumentSequence.tenant_id == tenant_id,
        DocumentSequence.prefix == prefix,
        DocumentSequence.year == year
    ).first()
    current = sequence.current_number if sequence else 0
    return format_document_number(prefix, year, current + 1)


def _stock_lines(lines) -> Dict[UUID, int]:
    """Cantidades por artículo de inventario de las líneas tipo producto."""
    quantities = defaultdict(int)
    for line in lines:
        line_type = line.type.value if hasattr(line.type, "value") else line.type
        if line.inventory_item_id and line_type == LineItemType.PRODUCT.value:
            quantities[line.inventory_item_id] += line.quantity
    return quantities


class InvoiceService:
    def __init__(self, db: Session):
        self.db = db
        self.inventory = InventoryService(db)
        self.notifications = NotificationService(db)

    # ===== LECTURA =====

    def get_invoice(self, invoice_id: UUID, tenant_id: UUID) -> Invoice:
        invoice = self.db.query(Invoice).options(
            selectinload(Invoice.line_items),
            selectinload(Invoice.payments)
        ).filter(
            Invoice.id == invoice_id,
            Invoice.tenant_id == tenant_id
        ).first()

        if not invoice:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Factura no encontrada"
            )
        return invoice

    def list_invoices(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        status_filter: Optional[str] = None,
        customer_id: Optional[UUID] = None,
        search: Optional[str] = None
    ) -> InvoiceList:
        query = self.db.query(Invoice).options(
            selectinload(Invoice.line_items),
            selectinload(Invoice.payments)
        ).filter(Invoice.tenant_id == tenant_id)

        if status_filter:
            query = query.filter(Invoice.status == status_filter)
        if customer_id:
            query = query.filter(Invoice.customer_id == customer_id)
        if search:
            term = f"%{search}%"
            query = query.filter(Invoice.number.ilike(term) | Invoice.customer_name.ilike(term))

        total = query.count()
        invoices = query.order_by(Invoice.created_at.desc()).offset(offset).limit(limit).all()
        return InvoiceList(items=invoices, total=total, limit=limit, offset=offset)

    def next_number(self, tenant_id: UUID) -> str:
        return preview_document_number(self.db, tenant_id, INVOICE_PREFIX)

    # ===== HELPERS =====

    def _find_item(self, item_id: UUID, tenant_id: UUID) -> Optional[InventoryItem]:
        return self.db.query(InventoryItem).filter(
            InventoryItem.id == item_id,
            InventoryItem.tenant_id == tenant_id
        ).first()

    def _load_item(self, item_id: UUID, tenant_id: UUID) -> InventoryItem:
        item = self._find_item(item_id, tenant_id)
        if not item:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Artículo de inventario {item_id} no encontrado"
            )
        return item

    def _build_lines(self, lines: List[LineItemCreate], tenant_id: UUID) -> List[InvoiceLineItem]:
        """Crear las líneas guardando el costo vigente de cada producto."""
        built = []
        for position, line in enumerate(lines):
            cost_price_at_sale = line.cost_price_at_sale
            inventory_item_id = line.inventory_item_id
            if inventory_item_id:
                item = self._find_item(inventory_item_id, tenant_id)
                if item is None:
                    # el artículo fue eliminado; la línea queda sin vínculo
                    inventory_item_id = None
                elif line.type == LineItemType.PRODUCT.value and cost_price_at_sale is None:
                    cost_price_at_sale = item.cost_price

            built.append(InvoiceLineItem(
                tenant_id=tenant_id,
                position=position,
                type=line.type.value,
                inventory_item_id=inventory_item_id,
                description=line.description.strip(),
                quantity=line.quantity,
                price=line.price,
                warranty_period=line.warranty_period,
                cost_price_at_sale=cost_price_at_sale
            ))
        return built

    def _check_stock(self, required: Dict[UUID, int], tenant_id: UUID,
                     skip_missing: bool = False) -> Dict[UUID, InventoryItem]:
        """
        Verificar disponibilidad antes de modificar nada.

        Con skip_missing los artículos ya eliminados se omiten (sus líneas
        quedan sin vínculo) en lugar de rechazar la operación.
        """
        items = {}
        for item_id, quantity in required.items():
            if skip_missing and self._find_item(item_id, tenant_id) is None:
                logger.warning(f"Inventory item {item_id} no longer exists, skipping stock adjustment")
                continue
            item = self._load_item(item_id, tenant_id)
            if quantity > 0 and item.quantity < quantity:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Stock insuficiente para '{item.name}'. Solo hay {item.quantity} disponibles"
                )
            items[item_id] = item
        return items

    def _notify(self, tenant_id: UUID, roles, auth_context: AuthContext, key: str, params: dict, invoice: Invoice):
        self.notifications.notify_roles(
            tenant_id, roles,
            sender_name=auth_context.username,
            message_key=key,
            message_params={"user": auth_context.username, "invoiceId": invoice.number, **params},
            link=f"/invoice/{invoice.id}",
            type=NotificationType.INVOICE,
            exclude_user_id=auth_context.user_id
        )

    # ===== ESCRITURA =====

    def create_invoice(self, data: InvoiceCreate, auth_context: AuthContext) -> Invoice:
        """Crear nueva factura"""
        tenant_id = auth_context.tenant_id
        _, _, total = calculate_totals(
            ((line.quantity, line.price) for line in data.line_items),
            data.discount_type.value, data.discount_value
        )

        if data.status.value == InvoiceStatus.PARTIALLY_PAID.value:
            if not data.initial_payment or data.initial_payment <= 0 or data.initial_payment >= total:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Para facturas parcialmente pagadas el pago inicial debe ser mayor a cero y menor al total"
                )

        try:
            required = _stock_lines(data.line_items)
            items = self._check_stock(required, tenant_id)

            number = next_document_number(self.db, tenant_id, INVOICE_PREFIX)
            invoice = Invoice(
                tenant_id=tenant_id,
                number=number,
                customer_id=data.customer_id,
                customer_name=data.customer_name,
                customer_phone=data.customer_phone,
                status=data.status.value,
                discount_type=data.discount_type.value,
                discount_value=data.discount_value,
                created_by=auth_context.user_id,
                created_by_name=auth_context.username
            )
            invoice.line_items = self._build_lines(data.line_items, tenant_id)

            if data.status.value == InvoiceStatus.PAID.value:
                invoice.payments.append(self._initial_payment(tenant_id, total, "Initial full payment on creation.", auth_context))
            elif data.status.value == InvoiceStatus.PARTIALLY_PAID.value:
                invoice.payments.append(self._initial_payment(
                    tenant_id, data.initial_payment, "Initial partial payment on creation.", auth_context
                ))

            self.db.add(invoice)
            self.db.flush()

            for item_id, quantity in required.items():
                self.inventory.change_stock(
                    items[item_id], -quantity, MovementType.SALE, number, auth_context.username,
                    movement_quantity=quantity
                )

            self._notify(
                tenant_id, MANAGER_ROLES, auth_context, "notifications.invoices.created",
                {"customer": invoice.customer_name}, invoice
            )
            self.db.commit()
        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating invoice for tenant {tenant_id}: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error creando factura"
            )

        logger.info(f"Invoice {number} created in tenant {tenant_id}")
        return self.get_invoice(invoice.id, tenant_id)

    def _initial_payment(self, tenant_id: UUID, amount: Decimal, notes: str, auth_context: AuthContext) -> Payment:
        return Payment(
            tenant_id=tenant_id,
            amount=amount,
            date=utc_now(),
            method=PaymentMethod.CASH.value,
            notes=notes,
            created_by=auth_context.user_id,
            created_by_name=auth_context.username
        )

    def update_invoice(self, invoice_id: UUID, data: InvoiceUpdate, auth_context: AuthContext) -> Invoice:
        """
        Editar factura reemplazando sus líneas.

        El stock se ajusta por la diferencia de cantidades por artículo y el
        estado se recalcula con los pagos existentes contra el nuevo total.
        """
        tenant_id = auth_context.tenant_id
        invoice = self.get_invoice(invoice_id, tenant_id)

        if invoice.status == InvoiceStatus.CANCELLED.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No se pueden editar facturas canceladas"
            )

        try:
            # positivo = se venden más unidades, negativo = vuelven al stock
            differences = defaultdict(int)
            for item_id, quantity in _stock_lines(invoice.line_items).items():
                differences[item_id] -= quantity
            for item_id, quantity in _stock_lines(data.line_items).items():
                differences[item_id] += quantity
            differences = {item_id: diff for item_id, diff in differences.items() if diff != 0}

            items = self._check_stock(differences, tenant_id, skip_missing=True)

            invoice.customer_id = data.customer_id
            invoice.customer_name = data.customer_name
            invoice.customer_phone = data.customer_phone
            invoice.discount_type = data.discount_type.value
            invoice.discount_value = data.discount_value
            invoice.line_items = self._build_lines(data.line_items, tenant_id)

            for item_id, diff in differences.items():
                if item_id not in items:
                    continue
                movement_type = MovementType.SALE if diff > 0 else MovementType.CANCELLATION
                self.inventory.change_stock(
                    items[item_id], -diff, movement_type, invoice.number, auth_context.username,
                    movement_quantity=abs(diff)
                )

            invoice.status = status_for_payments(invoice.paid_amount, invoice.total)

            self._notify(tenant_id, MANAGER_ROLES, auth_context, "notifications.invoices.updated", {}, invoice)
            self.db.commit()
        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating invoice {invoice_id}: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error actualizando factura"
            )

        return self.get_invoice(invoice_id, tenant_id)

    def cancel_invoice(self, invoice_id: UUID, auth_context: AuthContext) -> Invoice:
        """
        Cancelar factura con reposición de stock. Cancelar dos veces no tiene efecto.
        """
        tenant_id = auth_context.tenant_id
        invoice = self.get_invoice(invoice_id, tenant_id)
        if invoice.status == InvoiceStatus.CANCELLED.value:
            return invoice

        try:
            for item_id, quantity in _stock_lines(invoice.line_items).items():
                item = self._find_item(item_id, tenant_id)
                if item is None:
                    logger.warning(f"Inventory item {item_id} no longer exists, skipping restock for {invoice.number}")
                    continue
                self.inventory.change_stock(
                    item, quantity, MovementType.CANCELLATION, invoice.number, auth_context.username
                )

            invoice.status = InvoiceStatus.CANCELLED.value
            self._notify(tenant_id, MANAGER_ROLES, auth_context, "notifications.invoices.cancelled", {}, invoice)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error canceling invoice {invoice_id}: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error cancelando factura"
            )

        logger.info(f"Invoice {invoice.number} cancelled")
        return self.get_invoice(invoice_id, tenant_id)

    def add_payment(self, invoice_id: UUID, data: PaymentCreate, auth_context: AuthContext) -> Invoice:
        """Agregar pago a una factura"""
        tenant_id = auth_context.tenant_id
        invoice = self.get_invoice(invoice_id, tenant_id)

        if invoice.status == InvoiceStatus.CANCELLED.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No se pueden agregar pagos a facturas canceladas"
            )

        try:
            invoice.payments.append(Payment(
                tenant_id=tenant_id,
                amount=data.amount,
                date=data.date or utc_now(),
                method=data.method.value,
                notes=data.notes,
                created_by=auth_context.user_id,
                created_by_name=auth_context.username
            ))
            invoice.status = status_for_payments(invoice.paid_amount, invoice.total)

            self._notify(
                tenant_id, ALL_ROLES, auth_context, "notifications.invoices.payment_added",
                {"amount": f"{data.amount:.2f}"}, invoice
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error adding payment to invoice {invoice_id}: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error agregando pago"
            )

        return self.get_invoice(invoice_id, tenant_id)
