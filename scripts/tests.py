"""
Tests para el script de importación de documentos
"""

from datetime import datetime, timezone
from decimal import Decimal

from app.common.validators import normalize_timestamp
from app.modules.customers.models import Customer
from app.modules.expenses.models import Expense
from app.modules.inventory.models import InventoryItem, StockMovement
from import_documents import import_documents

EPOCH = 1700000000
EPOCH_DATETIME = datetime.fromtimestamp(EPOCH, tz=timezone.utc)


class TestImportDocuments:

    def test_creates_rows_with_normalized_timestamps(self, db_session, owner):
        results = import_documents(db_session, owner.tenant_id, {
            "customers": [
                {"name": "Amal", "phone": "0771234567", "createdAt": {"_seconds": EPOCH}},
                {"name": "Kasun", "createdAt": "2024-03-01T10:00:00Z"},
                {"phone": "0710000000"},
            ],
            "inventory": [
                {"name": "Charger", "category": "Accessories", "price": 1500, "costPrice": "900",
                 "quantity": 4, "reorderPoint": 1, "createdAt": {"seconds": EPOCH}},
            ],
            "expenses": [
                {"category": "Rent", "amount": 50000, "date": "2024-03-01", "description": "Rent"},
                {"category": "Travel", "amount": 10, "description": "Bus"},
            ],
        })

        assert results["customers"] == {"processed": 3, "created": 2, "updated": 0, "skipped": 1}
        assert results["inventory"]["created"] == 1
        assert results["expenses"] == {"processed": 2, "created": 1, "updated": 0, "skipped": 1}

        amal = db_session.query(Customer).filter(Customer.name == "Amal").one()
        assert normalize_timestamp(amal.created_at) == EPOCH_DATETIME

        item = db_session.query(InventoryItem).one()
        assert item.cost_price == Decimal("900")
        movement = db_session.query(StockMovement).one()
        assert (movement.type, movement.quantity, movement.reference_id) == ("addition", 4, "Import")

        expense = db_session.query(Expense).one()
        assert expense.tenant_id == owner.tenant_id

    def test_existing_rows_only_get_timestamp_realigned(self, db_session, owner):
        export = {"customers": [{"name": "Amal", "createdAt": {"_seconds": EPOCH}}]}
        import_documents(db_session, owner.tenant_id, export)

        again = import_documents(db_session, owner.tenant_id, export)
        assert again["customers"] == {"processed": 1, "created": 0, "updated": 0, "skipped": 1}

        moved = import_documents(db_session, owner.tenant_id, {
            "customers": [{"name": "Amal", "createdAt": {"_seconds": EPOCH + 60}}]
        })
        assert moved["customers"]["updated"] == 1
        assert db_session.query(Customer).count() == 1

    def test_unknown_collections_ignored(self, db_session, owner):
        assert import_documents(db_session, owner.tenant_id, {"chats": [{"id": "x"}]}) == {}
