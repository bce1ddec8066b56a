import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, List
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.modules.auth.dependencies import MANAGER_ROLES
from app.modules.auth.schemas import AuthContext
from app.modules.inventory.models import InventoryItem, StockMovement, MovementType, ItemStatus
from app.modules.inventory.schemas import (
    InventoryItemCreate, InventoryItemUpdate, InventoryItemOut, InventoryList,
    StockMovementOut, ShipmentCreate, ShipmentResult, ShipmentLineResult
)
from app.modules.notifications.models import NotificationType
from app.modules.notifications.service import NotificationService
from app.modules.suppliers.models import Supplier

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

def landed_unit_cost(quantity: int, unit_cost: Decimal, purchase_value: Decimal, extra: Decimal) -> Decimal:
    """Costo unitario con gastos adicionales prorrateados según el valor de la línea."""
    if purchase_value <= 0:
        return unit_cost
    line_value = quantity * unit_cost
    return unit_cost + (line_value / purchase_value * extra) / quantity


def suggested_selling_price(landed: Decimal, total_landed: Decimal, target_profit: Decimal) -> Decimal:
    """Precio sugerido para alcanzar la ganancia objetivo, redondeado a la decena."""
    if target_profit <= 0 or total_landed <= 0:
        return landed
    raw = landed * (total_landed + target_profit) / total_landed
    return (raw / 10).quantize(Decimal("1"), rounding=ROUND_HALF_UP) * 10


def to_output(item: InventoryItem, role: Optional[str]) -> InventoryItemOut:
    """Serializar el item ocultando el costo para el rol staff."""
    out = InventoryItemOut.model_validate(item)
    if role == "staff":
        out.cost_price = Decimal("0")
    return out


class InventoryService:
    """Service for inventory management operations."""

    def __init__(self, db: Session):
        self.db = db
        self.notifications = NotificationService(db)

    # ===== LECTURA =====

    def get_item(self, item_id: UUID, tenant_id: UUID) -> InventoryItem:
        item = self.db.query(InventoryItem).filter(
            InventoryItem.id == item_id,
            InventoryItem.tenant_id == tenant_id
        ).first()
        if not item:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Artículo de inventario no encontrado"
            )
        return item

    def list_items(
        self,
        tenant_id: UUID,
        role: Optional[str],
        limit: int = 100,
        offset: int = 0,
        search: Optional[str] = None
    ) -> InventoryList:
        query = self.db.query(InventoryItem).filter(InventoryItem.tenant_id == tenant_id)
        if search:
            query = query.filter(InventoryItem.name.ilike(f"%{search}%"))

        total = query.count()
        items = query.order_by(InventoryItem.created_at.desc()).offset(offset).limit(limit).all()
        return InventoryList(
            items=[to_output(item, role) for item in items],
            total=total,
            limit=limit,
            offset=offset
        )

    def get_movements(self, item_id: UUID, tenant_id: UUID) -> List[StockMovementOut]:
        self.get_item(item_id, tenant_id)
        movements = self.db.query(StockMovement).filter(
            StockMovement.inventory_item_id == item_id,
            StockMovement.tenant_id == tenant_id
        ).order_by(StockMovement.created_at.desc()).all()
        return [StockMovementOut.model_validate(m) for m in movements]

    # ===== STOCK =====

    def record_movement(
        self,
        item: InventoryItem,
        movement_type: MovementType,
        quantity: int,
        reference_id: Optional[str],
        actor_name: Optional[str]
    ) -> StockMovement:
        movement = StockMovement(
            tenant_id=item.tenant_id,
            inventory_item_id=item.id,
            type=movement_type.value,
            quantity=quantity,
            reference_id=reference_id,
            created_by_name=actor_name
        )
        self.db.add(movement)
        return movement

    def change_stock(
        self,
        item: InventoryItem,
        delta: int,
        movement_type: MovementType,
        reference_id: Optional[str],
        actor_name: Optional[str],
        movement_quantity: Optional[int] = None
    ) -> None:
        """
        Aplicar un cambio de stock, registrar el movimiento y revisar el punto de reorden.
        No hace commit.
        """
        old_quantity = item.quantity
        new_quantity = old_quantity + delta
        if new_quantity < 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Stock insuficiente para '{item.name}' (disponible: {old_quantity})"
            )

        item.quantity = new_quantity
        self.record_movement(
            item, movement_type,
            movement_quantity if movement_quantity is not None else delta,
            reference_id, actor_name
        )
        self.notifications.notify_low_stock(item.tenant_id, item, old_quantity, new_quantity)

    def _resolve_supplier_name(self, supplier_id: Optional[UUID], tenant_id: UUID) -> Optional[str]:
        if not supplier_id:
            return None
        supplier = self.db.query(Supplier).filter(
            Supplier.id == supplier_id,
            Supplier.tenant_id == tenant_id
        ).first()
        if not supplier:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El proveedor especificado no existe"
            )
        return supplier.name

    # ===== ESCRITURA =====

    def create_item(self, data: InventoryItemCreate, auth_context: AuthContext) -> InventoryItemOut:
        tenant_id = auth_context.tenant_id
        supplier_name = self._resolve_supplier_name(data.supplier_id, tenant_id)

        try:
            payload = data.model_dump(exclude={"quantity", "status"})
            item = InventoryItem(
                tenant_id=tenant_id,
                quantity=data.quantity,
                status=data.status.value,
                supplier_name=supplier_name,
                **payload
            )
            self.db.add(item)
            self.db.flush()

            if data.quantity > 0:
                self.record_movement(item, MovementType.ADDITION, data.quantity, "Initial Stock", auth_context.username)

            self.notifications.notify_roles(
                tenant_id, MANAGER_ROLES,
                sender_name=auth_context.username,
                message_key="notifications.inventory.item_added",
                message_params={"user": auth_context.username, "item": item.name},
                link="/inventory",
                type=NotificationType.INVENTORY,
                exclude_user_id=auth_context.user_id
            )
            self.db.commit()
            self.db.refresh(item)
            logger.info(f"Inventory item {item.id} created in tenant {tenant_id}")
            return to_output(item, auth_context.user_role.value)
        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating inventory item: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error creando artículo de inventario"
            )

    def update_item(self, item_id: UUID, data: InventoryItemUpdate, auth_context: AuthContext) -> InventoryItemOut:
        tenant_id = auth_context.tenant_id
        item = self.get_item(item_id, tenant_id)
        updates = data.model_dump(exclude_unset=True, exclude={"add_stock"})

        try:
            if "supplier_id" in updates:
                item.supplier_name = self._resolve_supplier_name(updates["supplier_id"], tenant_id)

            for field, value in updates.items():
                if value is None and field != "supplier_id":
                    continue
                if field == "status":
                    value = ItemStatus(value).value
                setattr(item, field, value)

            if data.add_stock:
                movement_type = MovementType.ADDITION if data.add_stock > 0 else MovementType.ADJUSTMENT
                self.change_stock(item, data.add_stock, movement_type, "Manual Stock Update", auth_context.username)

            self.notifications.notify_roles(
                tenant_id, MANAGER_ROLES,
                sender_name=auth_context.username,
                message_key="notifications.inventory.item_updated",
                message_params={"user": auth_context.username, "item": item.name},
                link=f"/inventory/{item.id}/edit",
                type=NotificationType.INVENTORY,
                exclude_user_id=auth_context.user_id
            )
            self.db.commit()
            self.db.refresh(item)
            return to_output(item, auth_context.user_role.value)
        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating inventory item {item_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error actualizando artículo de inventario"
            )

    def delete_item(self, item_id: UUID, auth_context: AuthContext) -> None:
        item = self.get_item(item_id, auth_context.tenant_id)
        name = item.name
        self.db.delete(item)
        self.notifications.notify_roles(
            auth_context.tenant_id, MANAGER_ROLES,
            sender_name=auth_context.username,
            message_key="notifications.inventory.item_deleted",
            message_params={"user": auth_context.username, "item": name},
            link="/inventory",
            type=NotificationType.INVENTORY,
            exclude_user_id=auth_context.user_id
        )
        self.db.commit()
        logger.info(f"Inventory item {item_id} deleted from tenant {auth_context.tenant_id}")

    def add_shipment(self, data: ShipmentCreate, auth_context: AuthContext) -> ShipmentResult:
        """
        Registrar un envío de proveedor.

        Los gastos de transporte y otros se prorratean por valor de línea
        para obtener el costo unitario real. Los artículos existentes (mismo
        nombre) promedian su costo; los nuevos se crean con el precio sugerido.
        """
        tenant_id = auth_context.tenant_id
        extra = data.transport_cost + data.other_expenses
        purchase_value = sum((line.quantity * line.unit_cost_price for line in data.line_items), Decimal("0"))
        total_landed = purchase_value + extra

        results = []
        try:
            for line in data.line_items:
                landed = landed_unit_cost(line.quantity, line.unit_cost_price, purchase_value, extra)
                suggested = suggested_selling_price(landed, total_landed, data.target_profit)

                item = self.db.query(InventoryItem).filter(
                    InventoryItem.tenant_id == tenant_id,
                    InventoryItem.name == line.name
                ).first()

                created = item is None
                if created:
                    item = InventoryItem(
                        tenant_id=tenant_id,
                        name=line.name,
                        quantity=line.quantity,
                        cost_price=landed.quantize(CENT, rounding=ROUND_HALF_UP),
                        price=suggested.quantize(CENT, rounding=ROUND_HALF_UP),
                        category="Uncategorized",
                        reorder_point=10,
                        status=ItemStatus.AVAILABLE.value,
                        warranty_period="N/A",
                        brand=""
                    )
                    self.db.add(item)
                    self.db.flush()
                else:
                    old_total = Decimal(item.cost_price) * item.quantity
                    new_quantity = item.quantity + line.quantity
                    average = (old_total + landed * line.quantity) / new_quantity
                    item.quantity = new_quantity
                    item.cost_price = average.quantize(CENT, rounding=ROUND_HALF_UP)

                self.record_movement(item, MovementType.ADDITION, line.quantity, "Shipment", auth_context.username)
                results.append(ShipmentLineResult(
                    inventory_item_id=item.id,
                    name=line.name,
                    quantity=line.quantity,
                    landed_cost=landed.quantize(CENT, rounding=ROUND_HALF_UP),
                    suggested_price=suggested.quantize(CENT, rounding=ROUND_HALF_UP),
                    created=created
                ))

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error adding shipment in tenant {tenant_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error registrando el envío"
            )

        logger.info(f"Shipment with {len(results)} lines added to tenant {tenant_id}")
        return ShipmentResult(
            total_purchase_value=purchase_value.quantize(CENT, rounding=ROUND_HALF_UP),
            total_landed_cost=total_landed.quantize(CENT, rounding=ROUND_HALF_UP),
            lines=results
        )
