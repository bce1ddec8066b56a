from fastapi import APIRouter, Depends, Query, Path, status
from typing import List, Optional
from uuid import UUID
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import require_owner_or_admin, AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.inventory.service import InventoryService, to_output
from app.modules.inventory.schemas import (
    InventoryItemCreate, InventoryItemUpdate, InventoryItemOut, InventoryList,
    StockMovementOut, ShipmentCreate, ShipmentResult
)

inventory_router = APIRouter(prefix="/inventory", tags=["Inventory"])


@inventory_router.get("/", response_model=InventoryList)
def list_inventory(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None, description="Buscar por nombre"),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """List inventory items, newest first. Staff see cost_price as 0."""
    service = InventoryService(db)
    return service.list_items(auth_context.tenant_id, auth_context.user_role.value, limit, offset, search)


@inventory_router.post("/", response_model=InventoryItemOut, status_code=status.HTTP_201_CREATED)
def create_item(
    item_data: InventoryItemCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(require_owner_or_admin())
):
    return InventoryService(db).create_item(item_data, auth_context)


@inventory_router.post("/shipments", response_model=ShipmentResult, status_code=status.HTTP_201_CREATED)
def add_shipment(
    shipment: ShipmentCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(require_owner_or_admin())
):
    """Receive a supplier shipment and compute landed costs (admin only)."""
    return InventoryService(db).add_shipment(shipment, auth_context)


@inventory_router.get("/{item_id}", response_model=InventoryItemOut)
def get_item(
    item_id: UUID = Path(...),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    item = InventoryService(db).get_item(item_id, auth_context.tenant_id)
    return to_output(item, auth_context.user_role.value)


@inventory_router.put("/{item_id}", response_model=InventoryItemOut)
def update_item(
    item_data: InventoryItemUpdate,
    item_id: UUID = Path(...),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(require_owner_or_admin())
):
    """Update an item; add_stock may be negative to remove units."""
    return InventoryService(db).update_item(item_id, item_data, auth_context)


@inventory_router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: UUID = Path(...),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(require_owner_or_admin())
):
    InventoryService(db).delete_item(item_id, auth_context)


@inventory_router.get("/{item_id}/movements", response_model=List[StockMovementOut])
def get_movements(
    item_id: UUID = Path(...),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """Stock movement history for an item, newest first."""
    return InventoryService(db).get_movements(item_id, auth_context.tenant_id)
