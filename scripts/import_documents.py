"""
Import script: load a JSON export of the document collections into a tenant.

The export is a JSON object keyed by collection name, each holding a list of
documents with camelCase fields:

    {
        "customers": [{"name": "Amal", "phone": "077...", "createdAt": {"_seconds": 1700000000}}],
        "suppliers": [...],
        "inventory": [...],
        "expenses": [...]
    }

Every `createdAt` representation (epoch object, ISO string, datetime) is
normalized to a UTC timestamp. Documents that already exist in the tenant
(same name, or same date + description for expenses) only get their creation
timestamp realigned. Documents missing required fields are skipped.

Run inside the API container:
    docker compose exec api python scripts/import_documents.py \
        --tenant-id 7f0c... --file export.json
"""

# Add project root (/code) to sys.path so `app.*` imports work even if CWD changes
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import json
from decimal import Decimal, InvalidOperation
from uuid import UUID

from app.common.validators import normalize_timestamp
from app.database.database import SessionLocal
from app.modules.customers.models import Customer
from app.modules.expenses.models import Expense, ExpenseCategory
from app.modules.inventory.models import InventoryItem, ItemStatus, MovementType, StockMovement
from app.modules.suppliers.models import Supplier

IMPORT_REFERENCE = "Import"


def _text(doc, key, limit=None):
    value = doc.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value[:limit] if limit else value


def _decimal(value, default="0"):
    try:
        return Decimal(str(value if value is not None else default))
    except InvalidOperation:
        return None


def customer_fields(doc):
    name = _text(doc, "name", 200)
    if not name:
        return None
    return {
        "name": name,
        "phone": _text(doc, "phone", 50),
        "email": _text(doc, "email", 100),
        "address": _text(doc, "address", 300),
    }


def supplier_fields(doc):
    fields = customer_fields(doc)
    if fields is None:
        return None
    fields["contact_person"] = _text(doc, "contactPerson", 200)
    return fields


def inventory_fields(doc):
    name = _text(doc, "name", 200)
    category = _text(doc, "category", 100)
    price = _decimal(doc.get("price"))
    cost_price = _decimal(doc.get("costPrice"))
    if not name or not category or price is None or cost_price is None:
        return None
    status = doc.get("status") or ItemStatus.AVAILABLE.value
    if status not in {s.value for s in ItemStatus}:
        status = ItemStatus.AVAILABLE.value
    try:
        quantity = max(int(doc.get("quantity") or 0), 0)
        reorder_point = max(int(doc.get("reorderPoint") or 0), 0)
    except (TypeError, ValueError):
        return None
    return {
        "name": name,
        "category": category,
        "brand": _text(doc, "brand", 100),
        "quantity": quantity,
        "price": price,
        "cost_price": cost_price,
        "reorder_point": reorder_point,
        "status": status,
        "warranty_period": _text(doc, "warrantyPeriod", 50) or "N/A",
    }


def expense_fields(doc):
    category = doc.get("category")
    amount = _decimal(doc.get("amount"), default="")
    description = _text(doc, "description")
    if category not in {c.value for c in ExpenseCategory} or not description or amount is None or amount <= 0:
        return None
    return {
        "category": category,
        "amount": amount,
        "date": normalize_timestamp(doc.get("date")),
        "description": description,
        "vendor": _text(doc, "vendor", 200),
    }


def _match_by_name(model):
    def match(db, tenant_id, fields):
        return db.query(model).filter(model.tenant_id == tenant_id, model.name == fields["name"]).first()
    return match


def _match_expense(db, tenant_id, fields):
    return db.query(Expense).filter(
        Expense.tenant_id == tenant_id,
        Expense.date == fields["date"],
        Expense.description == fields["description"]
    ).first()


COLLECTIONS = {
    "customers": (Customer, customer_fields, _match_by_name(Customer)),
    "suppliers": (Supplier, supplier_fields, _match_by_name(Supplier)),
    "inventory": (InventoryItem, inventory_fields, _match_by_name(InventoryItem)),
    "expenses": (Expense, expense_fields, _match_expense),
}


def import_collection(db, tenant_id: UUID, name: str, documents: list) -> dict:
    """Import one collection. Returns processed/created/updated/skipped counters."""
    model, to_fields, find_existing = COLLECTIONS[name]
    stats = {"processed": 0, "created": 0, "updated": 0, "skipped": 0}

    for doc in documents:
        stats["processed"] += 1
        fields = to_fields(doc) if isinstance(doc, dict) else None
        if fields is None:
            stats["skipped"] += 1
            continue

        created_at = normalize_timestamp(doc.get("createdAt"))
        existing = find_existing(db, tenant_id, fields)
        if existing is not None:
            if normalize_timestamp(existing.created_at) == created_at:
                stats["skipped"] += 1
            else:
                existing.created_at = created_at
                stats["updated"] += 1
            continue

        row = model(tenant_id=tenant_id, created_at=created_at, **fields)
        db.add(row)
        if model is InventoryItem and row.quantity > 0:
            db.flush()
            db.add(StockMovement(
                tenant_id=tenant_id,
                inventory_item_id=row.id,
                type=MovementType.ADDITION.value,
                quantity=row.quantity,
                reference_id=IMPORT_REFERENCE,
                created_at=created_at,
            ))
        stats["created"] += 1

    return stats


def import_documents(db, tenant_id: UUID, export: dict) -> dict:
    """Import every known collection of the export in a single transaction."""
    results = {}
    try:
        for name in COLLECTIONS:
            if name in export:
                results[name] = import_collection(db, tenant_id, name, export[name] or [])
        db.commit()
    except Exception:
        db.rollback()
        raise
    return results


def main():
    parser = argparse.ArgumentParser(description="Import a JSON document export into a tenant")
    parser.add_argument("--tenant-id", required=True, type=UUID)
    parser.add_argument("--file", required=True, type=Path)
    args = parser.parse_args()

    export = json.loads(args.file.read_text(encoding="utf-8"))
    unknown = sorted(set(export) - set(COLLECTIONS))
    if unknown:
        print(f"Ignoring unknown collections: {', '.join(unknown)}")

    db = SessionLocal()
    try:
        results = import_documents(db, args.tenant_id, export)
    finally:
        db.close()

    for name, stats in results.items():
        print(f"[{name}] Processed: {stats['processed']} | Created: {stats['created']} | "
              f"Updated: {stats['updated']} | Skipped: {stats['skipped']}")


if __name__ == "__main__":
    main()
