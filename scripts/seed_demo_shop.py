"""
Seed script: Populate a demo electronics shop with realistic data.

What it creates (through the same services the API uses):
- Organization + owner user, plus one admin and one staff member.
- Suppliers (~5) and customers (default 40).
- Inventory items with initial stock and a supplier each.
- Invoices (default 60) mixing Unpaid / Partially Paid / Paid, some cancelled.
- Expenses for the last three months and a couple of returns.

Run inside the API container to use 'postgres' host and project PYTHONPATH:
    docker compose exec api python scripts/seed_demo_shop.py \
        --organization "Kade Electronics" \
        --email owner@kade.lk \
        --password KadeDemo2025 \
        --customers 40 --invoices 60

Note: This is intended for development environments only.
"""

# Add project root (/code) to sys.path so `app.*` imports work even if CWD changes
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import random
from datetime import timedelta
from decimal import Decimal

from fastapi import HTTPException

from app.common.mixins import utc_now
from app.database.database import SessionLocal
from app.modules.auth.models import User, Membership, UserRole
from app.modules.auth.schemas import AuthContext, UserCreate
from app.modules.auth.service import AuthService
from app.modules.auth.utils import hash_password
from app.modules.customers.schemas import CustomerCreate
from app.modules.customers.service import CustomerService
from app.modules.expenses.schemas import ExpenseCreate
from app.modules.expenses.service import ExpenseService
from app.modules.inventory.schemas import InventoryItemCreate
from app.modules.inventory.service import InventoryService
from app.modules.invoices.schemas import InvoiceCreate, LineItemCreate, PaymentCreate
from app.modules.invoices.service import InvoiceService
from app.modules.returns.schemas import ReturnCreate
from app.modules.returns.service import ReturnService
from app.modules.suppliers.schemas import SupplierCreate
from app.modules.suppliers.service import SupplierService

FIRST_NAMES = ["Amal", "Kasun", "Nadeesha", "Tharindu", "Dilani", "Ruwan", "Sanduni", "Chamara", "Ishara", "Pradeep"]
LAST_NAMES = ["Perera", "Silva", "Fernando", "Jayasinghe", "Bandara", "Wickramasinghe", "Dissanayake"]

SUPPLIERS = [
    ("Lanka Mobile Distributors", "Saman"),
    ("Colombo Tech Imports", "Niroshan"),
    ("Kandy Accessories", "Fathima"),
    ("Galle Electronics Wholesale", "Asanka"),
    ("Island Parts Co.", "Mahesh"),
]

PRODUCTS = [
    ("Samsung Galaxy A15", "Phones", "Samsung", "62000", "54000", "1 Year"),
    ("Redmi Note 13", "Phones", "Xiaomi", "58000", "50500", "1 Year"),
    ("iPhone 13 Case", "Accessories", "Generic", "1500", "600", "N/A"),
    ("Fast Charger 25W", "Accessories", "Samsung", "4500", "2900", "6 Months"),
    ("USB-C Cable 1m", "Accessories", "Anker", "1200", "550", "3 Months"),
    ("Bluetooth Earbuds", "Audio", "JBL", "9500", "7200", "6 Months"),
    ("Tempered Glass", "Accessories", "Generic", "800", "250", "N/A"),
    ("Power Bank 10000mAh", "Accessories", "Anker", "7800", "5600", "1 Year"),
    ("Lenovo IdeaPad 3", "Laptops", "Lenovo", "245000", "212000", "2 Years"),
    ("Wireless Mouse", "Computer", "Logitech", "3500", "2300", "1 Year"),
]

SERVICES = [("Screen Replacement Service", "12000"), ("Battery Replacement", "6500"), ("Software Installation", "2500")]

EXPENSES = [
    ("Rent", "85000", "Shop rent", "Landlord"),
    ("Utilities", "14500", "Electricity bill", "CEB"),
    ("Salaries", "120000", "Staff salaries", None),
    ("Marketing", "8000", "Facebook ads", "Meta"),
    ("Other", "3500", "Tea and snacks", None),
]


def pick(seq):
    return random.choice(seq)


def create_owner(db, organization: str, email: str, password: str):
    existing = db.query(User).filter(User.email == email.lower()).first()
    if existing:
        membership = db.query(Membership).filter(
            Membership.user_id == existing.id,
            Membership.role == UserRole.OWNER.value
        ).first()
        return existing, membership.tenant_id

    token = AuthService(db).signup(UserCreate(
        email=email, password=password, username="Demo Owner", organization_name=organization
    ))
    return db.get(User, token.user.id), token.active_tenant_id


def add_member(db, tenant_id, email: str, username: str, role: UserRole, password: str):
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        user = User(email=email, password=hash_password(password), username=username,
                    is_active=True, onboarding_completed=True)
        db.add(user)
        db.flush()
    exists = db.query(Membership).filter(
        Membership.user_id == user.id, Membership.tenant_id == tenant_id
    ).first()
    if not exists:
        db.add(Membership(user_id=user.id, tenant_id=tenant_id, role=role.value))
    db.commit()
    return user


def context_for(user: User, tenant_id, role: UserRole) -> AuthContext:
    return AuthContext(user_id=user.id, username=user.username, tenant_id=tenant_id, user_role=role.value)


def create_suppliers(db, auth):
    service = SupplierService(db)
    return [
        service.create_supplier(SupplierCreate(
            name=name,
            contact_person=contact,
            phone=f"011{random.randint(1000000, 9999999)}"
        ), auth.tenant_id, auth.user_id)
        for name, contact in SUPPLIERS
    ]


def create_customers(db, auth, count: int):
    service = CustomerService(db)
    customers = []
    for i in range(count):
        name = f"{pick(FIRST_NAMES)} {pick(LAST_NAMES)}"
        customers.append(service.create_customer(CustomerCreate(
            name=name,
            phone=f"07{random.randint(10000000, 99999999)}",
            email=f"customer{i}@example.lk" if i % 3 == 0 else None,
            address=pick(["Colombo 03", "Kandy", "Galle", "Negombo", "Matara"])
        ), auth.tenant_id, auth.user_id))
    return customers


def create_inventory(db, auth, suppliers):
    service = InventoryService(db)
    items = []
    for name, category, brand, price, cost, warranty in PRODUCTS:
        items.append(service.create_item(InventoryItemCreate(
            name=name,
            category=category,
            brand=brand,
            price=Decimal(price),
            cost_price=Decimal(cost),
            reorder_point=random.randint(2, 5),
            warranty_period=warranty,
            supplier_id=pick(suppliers).id,
            quantity=random.randint(15, 60)
        ), auth))
    return items


def create_invoices(db, auth, customers, items, count: int):
    service = InvoiceService(db)
    created = 0
    for _ in range(count):
        customer = pick(customers)
        lines = [
            LineItemCreate(
                type="product",
                inventory_item_id=item.id,
                description=item.name,
                quantity=random.randint(1, 2),
                price=Decimal(item.price),
                warranty_period=item.warranty_period
            )
            for item in random.sample(items, k=random.randint(1, 3))
        ]
        if random.random() < 0.3:
            description, price = pick(SERVICES)
            lines.append(LineItemCreate(type="service", description=description, quantity=1, price=Decimal(price)))

        try:
            invoice = service.create_invoice(InvoiceCreate(
                customer_id=customer.id,
                customer_name=customer.name,
                customer_phone=customer.phone,
                line_items=lines
            ), auth)
        except HTTPException as e:
            # sin stock suficiente: se omite la factura
            print(f"Skipping invoice for {customer.name}: {e.detail}")
            continue

        roll = random.random()
        paid_on = utc_now() - timedelta(days=random.randint(0, 60))
        if roll < 0.5:
            service.add_payment(invoice.id, PaymentCreate(amount=invoice.total, date=paid_on), auth)
        elif roll < 0.75:
            partial = (invoice.total / 2).quantize(Decimal("0.01"))
            service.add_payment(invoice.id, PaymentCreate(amount=partial, method="Card", date=paid_on), auth)
        elif roll < 0.8:
            service.cancel_invoice(invoice.id, auth)
        created += 1
    return created


def create_expenses(db, auth):
    service = ExpenseService(db)
    today = utc_now()
    for month in range(3):
        for category, amount, description, vendor in EXPENSES:
            service.create_expense(ExpenseCreate(
                category=category,
                amount=Decimal(amount),
                date=today - timedelta(days=30 * month + random.randint(0, 5)),
                description=description,
                vendor=vendor
            ), auth.tenant_id, auth.user_id)


def create_returns(db, auth, items):
    service = ReturnService(db)
    service.create_return(ReturnCreate(
        type="Customer Return",
        inventory_item_id=items[5].id,
        quantity=1,
        reason="Left earbud not charging",
        customer_name=f"{pick(FIRST_NAMES)} {pick(LAST_NAMES)}",
        customer_phone="0771234567"
    ), auth)
    service.create_return(ReturnCreate(
        type="Supplier Return",
        inventory_item_id=items[3].id,
        quantity=2,
        reason="Chargers arrived with damaged cables"
    ), auth)


def main():
    parser = argparse.ArgumentParser(description="Seed a demo electronics shop")
    parser.add_argument("--organization", default="Kade Electronics")
    parser.add_argument("--email", default="owner@kade.lk")
    parser.add_argument("--password", default="KadeDemo2025")
    parser.add_argument("--customers", type=int, default=40)
    parser.add_argument("--invoices", type=int, default=60)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    random.seed(args.seed)
    db = SessionLocal()
    try:
        owner, tenant_id = create_owner(db, args.organization, args.email, args.password)
        add_member(db, tenant_id, "admin@kade.lk", "Demo Admin", UserRole.ADMIN, args.password)
        staff = add_member(db, tenant_id, "staff@kade.lk", "Demo Staff", UserRole.STAFF, args.password)

        auth = context_for(owner, tenant_id, UserRole.OWNER)
        suppliers = create_suppliers(db, auth)
        customers = create_customers(db, auth, args.customers)
        items = create_inventory(db, auth, suppliers)
        invoices = create_invoices(db, context_for(staff, tenant_id, UserRole.STAFF), customers, items, args.invoices)
        create_expenses(db, auth)
        create_returns(db, auth, items)

        print(f"Organization {args.organization} ({tenant_id})")
        print(f"Suppliers: {len(suppliers)} | Customers: {len(customers)} | Items: {len(items)} | Invoices: {invoices}")
        print(f"Login: {args.email} / {args.password} (admin@kade.lk and staff@kade.lk share the password)")
    finally:
        db.close()


if __name__ == "__main__":
    main()
