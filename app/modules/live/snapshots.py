"""
Constructores de snapshots para cada colección en vivo.

Cada constructor recibe una sesión nueva y el contexto de auth y devuelve la
lista serializada tal como la devuelve el endpoint REST equivalente.
"""
from typing import Callable, Dict, List, NamedTuple

from sqlalchemy.orm import Session

from app.modules.auth.dependencies import ALL_ROLES, MANAGER_ROLES
from app.modules.auth.schemas import AuthContext
from app.modules.auth.service import AuthService
from app.modules.customers.service import CustomerService
from app.modules.expenses.service import ExpenseService
from app.modules.inventory.models import StockMovement
from app.modules.inventory.schemas import StockMovementOut
from app.modules.inventory.service import InventoryService
from app.modules.invoices.service import InvoiceService
from app.modules.organizations.schemas import OrganizationOut
from app.modules.organizations.service import get_organization
from app.modules.returns.service import ReturnService
from app.modules.suppliers.service import SupplierService

SNAPSHOT_LIMIT = 500


class LiveCollection(NamedTuple):
    roles: List[str]
    snapshot: Callable[[Session, AuthContext], list]


def _dump(items) -> list:
    return [item.model_dump(mode="json") for item in items]


def _customers(db: Session, ctx: AuthContext) -> list:
    return _dump(CustomerService(db).list_customers(ctx.tenant_id, limit=SNAPSHOT_LIMIT).items)


def _suppliers(db: Session, ctx: AuthContext) -> list:
    return _dump(SupplierService(db).list_suppliers(ctx.tenant_id, limit=SNAPSHOT_LIMIT).items)


def _inventory(db: Session, ctx: AuthContext) -> list:
    listing = InventoryService(db).list_items(ctx.tenant_id, ctx.user_role.value, limit=SNAPSHOT_LIMIT)
    return _dump(listing.items)


def _stock_movements(db: Session, ctx: AuthContext) -> list:
    movements = db.query(StockMovement).filter(
        StockMovement.tenant_id == ctx.tenant_id
    ).order_by(StockMovement.created_at.desc()).limit(SNAPSHOT_LIMIT).all()
    return _dump(StockMovementOut.model_validate(m) for m in movements)


def _invoices(db: Session, ctx: AuthContext) -> list:
    return _dump(InvoiceService(db).list_invoices(ctx.tenant_id, limit=SNAPSHOT_LIMIT).items)


def _expenses(db: Session, ctx: AuthContext) -> list:
    return _dump(ExpenseService(db).list_expenses(ctx.tenant_id, limit=SNAPSHOT_LIMIT).items)


def _returns(db: Session, ctx: AuthContext) -> list:
    return _dump(ReturnService(db).list_returns(ctx.tenant_id, limit=SNAPSHOT_LIMIT).items)


def _users(db: Session, ctx: AuthContext) -> list:
    return _dump(AuthService(db).list_users(ctx.tenant_id).items)


def _organization(db: Session, ctx: AuthContext) -> list:
    return _dump([OrganizationOut.model_validate(get_organization(db, ctx.tenant_id))])


LIVE_COLLECTIONS: Dict[str, LiveCollection] = {
    "customers": LiveCollection(ALL_ROLES, _customers),
    "suppliers": LiveCollection(MANAGER_ROLES, _suppliers),
    "inventory": LiveCollection(ALL_ROLES, _inventory),
    "stock_movements": LiveCollection(ALL_ROLES, _stock_movements),
    "invoices": LiveCollection(ALL_ROLES, _invoices),
    "expenses": LiveCollection(MANAGER_ROLES, _expenses),
    "returns": LiveCollection(ALL_ROLES, _returns),
    "users": LiveCollection(MANAGER_ROLES, _users),
    "organization": LiveCollection(ALL_ROLES, _organization),
}
